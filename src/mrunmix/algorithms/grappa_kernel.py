"""Regularized estimation of the GRAPPA convolution kernel."""

import logging
import warnings

import torch
from einops import rearrange

from mrunmix.data.CalibrationRegion import CalibrationRegion
from mrunmix.data.PhaseDiagnostics import PhaseDiagnostics
from mrunmix.exceptions import LowConfidenceWarning

logger = logging.getLogger(__name__)


def phase_system(
    source_data: torch.Tensor,
    target_data: torch.Tensor,
    region: CalibrationRegion,
    kernel_size: tuple[int, int],
    acceleration_factor: int,
    phase: int,
    anchor: tuple[int, int],
) -> tuple[torch.Tensor, torch.Tensor]:
    """Assemble the least squares system of one acceleration phase.

    For a target sample at ``(kx, ky)`` the source samples are taken at
    ``kx + i - anchor[0]`` for ``i < kernel_size[0]`` and at
    ``ky + k * acceleration_factor + phase - anchor[1]`` for ``k < kernel_size[1]``,
    i.e. on the acquired lines of an undersampling pattern that is shifted by `phase`
    with respect to the target.

    Parameters
    ----------
    source_data
        source k-space `(kx, ky, source_coils)`
    target_data
        target k-space `(kx, ky, target_coils)`
    region
        calibration locations
    kernel_size
        kernel size along kx and ky (acquired lines)
    acceleration_factor
        undersampling factor along ky
    phase
        zero-based phase index in ``range(acceleration_factor)``
    anchor
        kernel indices along kx and (interleaved) ky of the tap at the target location

    Returns
    -------
        system matrix `(equations, kx*ky*source_coils)` and right hand side `(equations, target_coils)`
    """
    kx_offsets = torch.arange(kernel_size[0], device=source_data.device) - anchor[0]
    ky_offsets = torch.arange(kernel_size[1], device=source_data.device) * acceleration_factor + phase - anchor[1]
    kx_indices = region.kx[:, None] + kx_offsets
    ky_indices = region.ky[:, None] + ky_offsets

    neighborhoods = source_data[kx_indices[:, None, :, None], ky_indices[None, :, None, :]]
    system_matrix = rearrange(neighborhoods, 'nx ny kx ky coil -> (nx ny) (kx ky coil)')
    targets = target_data[region.kx[:, None], region.ky[None, :]]
    target_matrix = rearrange(targets, 'nx ny coil -> (nx ny) coil')
    return system_matrix, target_matrix


def tikhonov_parameter(singular_values: torch.Tensor, regularization_scale: float = 1e-3) -> torch.Tensor:
    """Regularization parameter ``lambda = (regularization_scale * sigma_max)**2``.

    Parameters
    ----------
    singular_values
        singular values of the system matrix, largest first, with optional batch dimensions
    regularization_scale
        scale relative to the largest singular value
    """
    return (regularization_scale * singular_values[..., 0]) ** 2


def tikhonov_solve(
    system_matrix: torch.Tensor,
    target_matrix: torch.Tensor,
    regularization: torch.Tensor | float,
) -> torch.Tensor:
    """Solve ``min ||A x - B||^2 + lambda ||x||^2``.

    The solution is ``x = pinv(A^H A + lambda I) A^H B``, which is bounded even for rank
    deficient `A`. Leading dimensions are batch dimensions, each with its own lambda.

    Parameters
    ----------
    system_matrix
        A with shape `(..., equations, unknowns)`
    target_matrix
        B with shape `(..., equations, targets)`
    regularization
        lambda, scalar or with the batch shape of A

    Returns
    -------
        x with shape `(..., unknowns, targets)`
    """
    gram = system_matrix.mH @ system_matrix
    regularization = torch.as_tensor(regularization, dtype=gram.real.dtype, device=gram.device)
    identity = torch.eye(gram.shape[-1], dtype=gram.dtype, device=gram.device)
    regularized_gram = gram + regularization[..., None, None] * identity
    return torch.linalg.pinv(regularized_gram, hermitian=True) @ (system_matrix.mH @ target_matrix)


def assemble_kernel(weights: torch.Tensor, kernel_size: tuple[int, int]) -> torch.Tensor:
    """Merge per-phase weights into one convolution kernel.

    The weights of phase ``p`` occupy ky columns ``p, p + R, p + 2R, ...``. The kx and ky
    axes are flipped, as the weights were fitted as a correlation but are applied as a
    convolution.

    Parameters
    ----------
    weights
        per-phase weights `(phase, kx*ky*source_coils, target_coils)`
    kernel_size
        kernel size along kx and ky (acquired lines)

    Returns
    -------
        kernel `(kx, ky*acceleration_factor, source_coils, target_coils)`
    """
    kernel = rearrange(
        weights,
        'phase (kx ky coil) target -> kx (ky phase) coil target',
        kx=kernel_size[0],
        ky=kernel_size[1],
    )
    return kernel.flip(0, 1)


def estimate_grappa_kernel(
    source_data: torch.Tensor,
    target_data: torch.Tensor,
    region: CalibrationRegion,
    kernel_size: tuple[int, int],
    acceleration_factor: int,
    anchor: tuple[int, int],
    regularization_scale: float = 1e-3,
    verbose: bool = False,
    stacklevel: int = 2,
) -> tuple[torch.Tensor, tuple[PhaseDiagnostics, ...]]:
    """Estimate the GRAPPA kernel from calibration data.

    One Tikhonov regularized least squares problem is solved for each of the
    `acceleration_factor` phases. The regularization parameter of each phase is derived
    from the largest singular value of its own system matrix, so the conditioning does not
    depend on the signal amplitude. The phases are independent and solved as one batch.

    Parameters
    ----------
    source_data
        source k-space `(kx, ky, source_coils)`
    target_data
        target k-space `(kx, ky, target_coils)`
    region
        calibration locations, see `mrunmix.algorithms.calibration_region`
    kernel_size
        kernel size along kx and ky (acquired lines)
    acceleration_factor
        undersampling factor along ky
    anchor
        kernel indices along kx and (interleaved) ky of the tap at the target location
    regularization_scale
        Tikhonov scale relative to the largest singular value of each system matrix
    verbose
        log progress at INFO instead of DEBUG level
    stacklevel
        stack level of the `LowConfidenceWarning`, relative to the caller of this function

    Returns
    -------
        flipped kernel `(kx, ky*acceleration_factor, source_coils, target_coils)` and the
        diagnostics of each phase
    """
    level = logging.INFO if verbose else logging.DEBUG
    logger.log(level, 'Calculating GRAPPA kernels...')

    systems = [
        phase_system(source_data, target_data, region, kernel_size, acceleration_factor, phase, anchor)
        for phase in range(acceleration_factor)
    ]
    # normal equations square the condition number
    system_matrix = torch.stack([a for a, _ in systems]).to(torch.complex128)
    target_matrix = torch.stack([b for _, b in systems]).to(torch.complex128)

    singular_values = torch.linalg.svdvals(system_matrix)
    regularization = tikhonov_parameter(singular_values, regularization_scale)
    logger.log(level, 'Inverting %d systems of %d equations...', acceleration_factor, region.n_equations)
    weights = tikhonov_solve(system_matrix, target_matrix, regularization)

    n_unknowns = system_matrix.shape[-1]
    diagnostics = []
    for phase in range(acceleration_factor):
        phase_singular_values = singular_values[phase]
        sqrt_regularization = regularization[phase].sqrt()
        phase_diagnostics = PhaseDiagnostics(
            phase=phase,
            n_equations=region.n_equations,
            n_unknowns=n_unknowns,
            sigma_max=float(phase_singular_values[0]),
            # fewer equations than unknowns leaves a null space
            sigma_min=float(phase_singular_values[-1]) if region.n_equations >= n_unknowns else 0.0,
            regularization=float(regularization[phase]),
            n_suppressed=int((phase_singular_values < sqrt_regularization).sum())
            + max(n_unknowns - region.n_equations, 0),
        )
        logger.log(
            level,
            'Inversion %d of %d: sigma_max=%.3e, lambda=%.3e, regularization ratio=%.3e, %d of %d components suppressed',
            phase + 1,
            acceleration_factor,
            phase_diagnostics.sigma_max,
            phase_diagnostics.regularization,
            phase_diagnostics.regularization_ratio,
            phase_diagnostics.n_suppressed,
            n_unknowns,
        )
        diagnostics.append(phase_diagnostics)

    if region.n_equations < n_unknowns:
        message = (
            f'Only {region.n_equations} calibration equations for {n_unknowns} unknowns per phase. '
            'The regularized kernel is biased towards the minimum-norm solution.'
        )
        logger.warning(message)
        warnings.warn(message, LowConfidenceWarning, stacklevel=stacklevel)

    kernel = assemble_kernel(weights, kernel_size).to(source_data.dtype)
    return kernel, tuple(diagnostics)

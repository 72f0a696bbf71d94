"""Image space GRAPPA unmixing coefficients."""

import logging
import math
import numbers
from collections.abc import Sequence

import torch

from mrunmix.algorithms.calibration_region import calibration_region
from mrunmix.algorithms.coil_combination import b1_weighted_combination
from mrunmix.algorithms.grappa_kernel import estimate_grappa_kernel
from mrunmix.data.GrappaUnmixing import GrappaUnmixing
from mrunmix.exceptions import ConfigurationError
from mrunmix.utils.fft import kernel_to_image
from mrunmix.utils.padding import kernel_anchor, pad_kernel

logger = logging.getLogger(__name__)


def _coil_data(data: torch.Tensor, name: str) -> torch.Tensor:
    """Return data with an explicit trailing coil dimension."""
    if data.ndim == 2:
        return data[..., None]
    if data.ndim != 3:
        raise ConfigurationError(f'{name} must have 2 or 3 dimensions (x, y[, coils]), got shape {tuple(data.shape)}.')
    return data


def _positive_int(value: int, name: str) -> int:
    if isinstance(value, torch.Tensor) and value.numel() == 1:
        value = value.item()
    if isinstance(value, numbers.Integral) and not isinstance(value, bool):
        integer = int(value)
    elif isinstance(value, numbers.Real) and math.isfinite(value) and float(value).is_integer():
        integer = int(value)
    else:
        raise ConfigurationError(f'{name} must be a positive integer, got {value!r}.')
    if integer < 1:
        raise ConfigurationError(f'{name} must be a positive integer, got {value!r}.')
    return integer


def _kernel_size(kernel_size: Sequence[int]) -> tuple[int, int]:
    """Normalize kernel_size given as a sequence, numpy array or tensor to two positive integers."""
    if isinstance(kernel_size, torch.Tensor) or hasattr(kernel_size, '__array__'):
        kernel_size = torch.as_tensor(kernel_size).tolist()
    if not isinstance(kernel_size, Sequence) or isinstance(kernel_size, str) or len(kernel_size) != 2:
        raise ConfigurationError(f'kernel_size must have two entries (kx, ky), got {kernel_size!r}.')
    return (_positive_int(kernel_size[0], 'kernel_size'), _positive_int(kernel_size[1], 'kernel_size'))


def grappa_unmixing(
    source_data: torch.Tensor,
    kernel_size: Sequence[int],
    acceleration_factor: int,
    csm: torch.Tensor,
    target_data: torch.Tensor | None = None,
    calibration_mask: torch.Tensor | None = None,
    *,
    regularization_scale: float = 1e-3,
    return_coil_kernels: bool = False,
    verbose: bool = False,
) -> GrappaUnmixing:
    """Calculate B1-weighted image space GRAPPA unmixing coefficients.

    A GRAPPA kernel is fitted to the calibration data for each of the
    `acceleration_factor` phases of a ky undersampling pattern [GRI2002]_. The kernel is
    transformed to image space and the kernels of all target coils are combined with the
    normalized conjugate coil sensitivities [HAN2013]_.

    The unmixing coefficients are applied by multiplying them with the aliased coil images and
    summing over coils. The aliased images are the centered IFFT (normalized by 1/n) of
    the zero filled undersampled k-space, multiplied by `acceleration_factor`.

    Parameters
    ----------
    source_data
        source k-space for the kernel estimation `(kx, ky, source_coils)`. 2D data is a single coil.
    kernel_size
        kernel size along kx and ky, e.g. ``(5, 4)``. Along ky, the number of acquired lines.
    acceleration_factor
        undersampling factor along ky
    csm
        coil sensitivity maps of the target coils `(x, y, target_coils)`. Defines the image grid.
    target_data
        target k-space `(kx, ky, target_coils)`. Defaults to `source_data`.
    calibration_mask
        boolean mask `(kx, ky)` of the calibration data. Defaults to all of `source_data`.
    regularization_scale
        Tikhonov regularization relative to the largest singular value of each system matrix
    return_coil_kernels
        also return the image space kernels of each target coil
    verbose
        log progress at INFO instead of DEBUG level. Has no effect on the result.

    Returns
    -------
        unmixing coefficients `(x, y, source_coils)` with optional coil kernels and diagnostics

    Raises
    ------
    ConfigurationError
        if the inputs are invalid or their dimensions do not match
    CalibrationDataError
        if the calibration region is too small for the kernel

    References
    ----------
    .. [GRI2002] Griswold MA, et al. (2002) Generalized autocalibrating partially parallel acquisitions (GRAPPA).
       MRM 47(6) https://doi.org/10.1002/mrm.10171
    .. [HAN2013] Hansen MS, Beatty P (2013) ISMRM Sunrise Educational Course: Parallel imaging.
    """
    source_data = _coil_data(torch.as_tensor(source_data), 'source_data')
    target_data = source_data if target_data is None else _coil_data(torch.as_tensor(target_data), 'target_data')
    csm = _coil_data(torch.as_tensor(csm), 'csm')

    kernel_size = _kernel_size(kernel_size)
    acceleration_factor = _positive_int(acceleration_factor, 'acceleration_factor')
    if isinstance(regularization_scale, torch.Tensor) and regularization_scale.numel() == 1:
        regularization_scale = regularization_scale.item()
    if not isinstance(regularization_scale, numbers.Real) or not regularization_scale >= 0:
        raise ConfigurationError(f'regularization_scale must be a non-negative number, got {regularization_scale!r}.')
    regularization_scale = float(regularization_scale)

    if target_data.shape[:2] != source_data.shape[:2]:
        raise ConfigurationError(
            f'target_data k-space shape {tuple(target_data.shape[:2])} does not match '
            f'source_data k-space shape {tuple(source_data.shape[:2])}.'
        )
    if calibration_mask is None:
        calibration_mask = torch.ones(source_data.shape[:2], dtype=torch.bool, device=source_data.device)
    calibration_mask = torch.as_tensor(calibration_mask, device=source_data.device).to(torch.bool)
    if calibration_mask.shape != source_data.shape[:2]:
        raise ConfigurationError(
            f'calibration_mask shape {tuple(calibration_mask.shape)} does not match '
            f'source_data k-space shape {tuple(source_data.shape[:2])}.'
        )

    n_source_coils, n_target_coils = source_data.shape[-1], target_data.shape[-1]
    if csm.shape[-1] != n_target_coils:
        raise ConfigurationError(f'csm has {csm.shape[-1]} coils, but target_data has {n_target_coils} coils.')
    image_shape = tuple(csm.shape[:2])
    kernel_shape = (kernel_size[0], kernel_size[1] * acceleration_factor)
    if any(k > n for k, n in zip(kernel_shape, image_shape, strict=True)):
        raise ConfigurationError(f'Kernel of size {kernel_shape} does not fit into the image grid {image_shape}.')

    dtype = torch.promote_types(torch.promote_types(source_data.dtype, target_data.dtype), torch.complex64)
    dtype = torch.promote_types(dtype, csm.dtype)
    device = source_data.device
    source_data = source_data.to(dtype)
    target_data = target_data.to(device=device, dtype=dtype)
    csm = csm.to(device=device, dtype=dtype)

    region = calibration_region(calibration_mask, kernel_size, acceleration_factor)
    anchor = (kernel_anchor(kernel_shape[0], image_shape[0]), kernel_anchor(kernel_shape[1], image_shape[1]))
    kernel, diagnostics = estimate_grappa_kernel(
        source_data,
        target_data,
        region,
        kernel_size,
        acceleration_factor,
        anchor,
        regularization_scale=regularization_scale,
        verbose=verbose,
        stacklevel=3,
    )
    logger.log(
        logging.INFO if verbose else logging.DEBUG,
        'Doing B1 weighted combination of %d source and %d target coils...',
        n_source_coils,
        n_target_coils,
    )

    coil_kernels = kernel_to_image(pad_kernel(kernel, image_shape), acceleration_factor)
    unmix = b1_weighted_combination(coil_kernels, csm)
    return GrappaUnmixing(
        unmix=unmix,
        coil_kernels=coil_kernels if return_coil_kernels else None,
        phase_diagnostics=diagnostics,
    )

"""Tests the regularized GRAPPA kernel estimation."""

import logging

import pytest
import torch
from mrunmix.algorithms import (
    assemble_kernel,
    calibration_region,
    estimate_grappa_kernel,
    phase_system,
    tikhonov_parameter,
    tikhonov_solve,
)
from mrunmix.exceptions import LowConfidenceWarning

from tests import RandomGenerator


def ill_conditioned_system(generator: RandomGenerator) -> tuple[torch.Tensor, torch.Tensor, torch.Tensor]:
    """System matrix with singular values between 1 and 1e-8."""
    u, _ = torch.linalg.qr(generator.complex128_tensor((40, 6)))
    v, _ = torch.linalg.qr(generator.complex128_tensor((6, 6)))
    singular_values = torch.logspace(0, -8, 6, dtype=torch.float64)
    system_matrix = (u * singular_values) @ v.mH
    target_matrix = generator.complex128_tensor((40, 3))
    return system_matrix, target_matrix, singular_values


def test_phase_system_rows(generator):
    """Test that each row contains the neighborhood of one calibration location."""
    source = generator.kspace(12, 16, 2)
    target = generator.kspace(12, 16, 3)
    kernel_size, acceleration_factor, anchor = (3, 2), 3, (1, 2)
    region = calibration_region(torch.ones(12, 16, dtype=torch.bool), kernel_size, acceleration_factor)

    for phase in range(acceleration_factor):
        system_matrix, target_matrix = phase_system(
            source, target, region, kernel_size, acceleration_factor, phase, anchor
        )
        assert system_matrix.shape == (region.n_equations, 3 * 2 * 2)
        assert target_matrix.shape == (region.n_equations, 3)

        row = 2 * len(region.ky) + 3
        kx, ky = int(region.kx[2]), int(region.ky[3])
        expected = torch.stack(
            [
                source[kx + i - anchor[0], ky + k * acceleration_factor + phase - anchor[1], coil]
                for i in range(kernel_size[0])
                for k in range(kernel_size[1])
                for coil in range(2)
            ]
        )
        torch.testing.assert_close(system_matrix[row], expected)
        torch.testing.assert_close(target_matrix[row], target[kx, ky])


def test_tikhonov_solve_without_regularization(generator):
    """Test that the unregularized solution is the least squares solution."""
    system_matrix = generator.complex128_tensor((50, 8))
    target_matrix = generator.complex128_tensor((50, 2))
    expected = torch.linalg.lstsq(system_matrix, target_matrix).solution
    torch.testing.assert_close(tikhonov_solve(system_matrix, target_matrix, 0.0), expected)


def test_tikhonov_regularization_monotonicity(generator):
    """Test that stronger regularization drives the weights towards zero."""
    system_matrix, target_matrix, singular_values = ill_conditioned_system(generator)
    scales = (1e-5, 1e-4, 1e-3, 1e-2, 1e-1, 1.0, 1e2)
    norms = torch.stack(
        [
            torch.linalg.matrix_norm(
                tikhonov_solve(system_matrix, target_matrix, tikhonov_parameter(singular_values, scale))
            )
            for scale in scales
        ]
    )
    assert torch.all(norms[1:] < norms[:-1])
    assert norms[-1] < 1e-3 * norms[0]


def test_tikhonov_solve_rank_deficient(generator):
    """Test that a rank deficient or zero system does not raise and stays bounded."""
    system_matrix = generator.complex128_tensor((20, 4))
    system_matrix[:, 2:] = 0
    target_matrix = generator.complex128_tensor((20, 1))
    regularization = tikhonov_parameter(torch.linalg.svdvals(system_matrix))
    weights = tikhonov_solve(system_matrix, target_matrix, regularization)
    assert torch.isfinite(weights).all()
    torch.testing.assert_close(weights[2:], torch.zeros_like(weights[2:]))

    zero_weights = tikhonov_solve(torch.zeros(20, 4, dtype=torch.complex128), target_matrix, 0.0)
    torch.testing.assert_close(zero_weights, torch.zeros(4, 1, dtype=torch.complex128))


def test_tikhonov_solve_batched_regularization(generator):
    """Test that each batch element uses its own regularization parameter."""
    system_matrix, target_matrix, singular_values = ill_conditioned_system(generator)
    batch = torch.stack([system_matrix, 100 * system_matrix])
    regularization = tikhonov_parameter(torch.linalg.svdvals(batch))
    weights = tikhonov_solve(batch, target_matrix, regularization)
    # the regularization scales with the signal, so the weights scale inversely
    torch.testing.assert_close(weights[1] * 100, weights[0])
    torch.testing.assert_close(regularization[0], (1e-3 * singular_values[0]) ** 2)


def test_assemble_kernel_interleaving():
    """Test that phase weights are interleaved along ky and both axes are flipped."""
    kernel_size, acceleration_factor, n_coils, n_targets = (3, 2), 3, 2, 2
    n_unknowns = kernel_size[0] * kernel_size[1] * n_coils
    weights = torch.arange(acceleration_factor * n_unknowns * n_targets, dtype=torch.float64)
    weights = weights.reshape(acceleration_factor, n_unknowns, n_targets)

    kernel = assemble_kernel(weights, kernel_size)

    n_ky = kernel_size[1] * acceleration_factor
    assert kernel.shape == (kernel_size[0], n_ky, n_coils, n_targets)
    for phase in range(acceleration_factor):
        phase_weights = weights[phase].reshape(kernel_size[0], kernel_size[1], n_coils, n_targets)
        for i in range(kernel_size[0]):
            for k in range(kernel_size[1]):
                torch.testing.assert_close(
                    kernel[kernel_size[0] - 1 - i, n_ky - 1 - (k * acceleration_factor + phase)],
                    phase_weights[i, k],
                )


def test_estimate_grappa_kernel_identity(generator):
    """Test that predicting a coil from itself yields a unit impulse at the anchor."""
    source = generator.kspace(16, 16, 3)
    kernel_size, anchor = (3, 3), (1, 1)
    region = calibration_region(torch.ones(16, 16, dtype=torch.bool), kernel_size, 1)
    kernel, diagnostics = estimate_grappa_kernel(source, source, region, kernel_size, 1, anchor)

    expected = torch.zeros(3, 3, 3, 3, dtype=source.dtype)
    # flipped anchor of a 3x3 kernel is still the center
    expected[1, 1] = torch.eye(3, dtype=source.dtype)
    torch.testing.assert_close(kernel, expected, rtol=1e-4, atol=1e-4)
    assert len(diagnostics) == 1
    assert not diagnostics[0].underdetermined


def test_estimate_grappa_kernel_diagnostics(generator):
    """Test the diagnostics and the kernel shape for an accelerated acquisition."""
    source = generator.kspace(20, 24, 2)
    target = generator.kspace(20, 24, 3)
    kernel_size, acceleration_factor = (3, 2), 2
    region = calibration_region(torch.ones(20, 24, dtype=torch.bool), kernel_size, acceleration_factor)
    kernel, diagnostics = estimate_grappa_kernel(
        source, target, region, kernel_size, acceleration_factor, anchor=(1, 1), regularization_scale=1e-2
    )

    assert kernel.shape == (3, 4, 2, 3)
    assert kernel.dtype == source.dtype
    assert [d.phase for d in diagnostics] == [0, 1]
    for phase, d in enumerate(diagnostics):
        system_matrix, _ = phase_system(source, target, region, kernel_size, acceleration_factor, phase, (1, 1))
        singular_values = torch.linalg.svdvals(system_matrix)
        assert d.n_equations == region.n_equations
        assert d.n_unknowns == 12
        assert d.sigma_max == pytest.approx(float(singular_values[0]))
        assert d.sigma_min == pytest.approx(float(singular_values[-1]))
        assert d.regularization == pytest.approx((1e-2 * d.sigma_max) ** 2)
        assert d.regularization_ratio == pytest.approx(d.regularization / d.sigma_min**2)


def test_estimate_grappa_kernel_underdetermined(generator):
    """Test that fewer equations than unknowns are flagged as low confidence."""
    source = generator.kspace(16, 16, 4)
    mask = torch.zeros(16, 16, dtype=torch.bool)
    mask[4:9, 2:11] = True
    kernel_size, acceleration_factor = (5, 4), 2
    region = calibration_region(mask, kernel_size, acceleration_factor)
    assert region.n_equations == 1

    with pytest.warns(LowConfidenceWarning, match='minimum-norm'):
        kernel, diagnostics = estimate_grappa_kernel(
            source, source, region, kernel_size, acceleration_factor, anchor=(2, 3)
        )
    assert torch.isfinite(kernel).all()
    assert all(d.underdetermined for d in diagnostics)
    assert all(d.sigma_min == 0.0 for d in diagnostics)
    assert all(d.n_suppressed == 5 * 4 * 4 - 1 for d in diagnostics)


def test_estimate_grappa_kernel_logging(generator, caplog):
    """Test that verbose progress and the conditioning of each phase are logged."""
    source = generator.kspace(16, 16, 2)
    region = calibration_region(torch.ones(16, 16, dtype=torch.bool), (3, 2), 2)

    with caplog.at_level(logging.INFO, logger='mrunmix'):
        estimate_grappa_kernel(source, source, region, (3, 2), 2, anchor=(1, 1), verbose=False)
    assert not caplog.records

    with caplog.at_level(logging.INFO, logger='mrunmix'):
        estimate_grappa_kernel(source, source, region, (3, 2), 2, anchor=(1, 1), verbose=True)
    messages = [record.getMessage() for record in caplog.records]
    assert 'Calculating GRAPPA kernels...' in messages
    assert any(message.startswith('Inversion 2 of 2: sigma_max=') for message in messages)
    assert any('regularization ratio' in message for message in messages)

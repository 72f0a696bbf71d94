"""PyTest fixtures for the mrunmix package."""

from dataclasses import dataclass

import pytest
import torch
from mrunmix.phantoms import birdcage_2d
from mrunmix.utils import centered_fft

from tests import RandomGenerator


@dataclass
class SyntheticAcquisition:
    """Fully sampled multi-coil k-space of a smooth object."""

    kspace: torch.Tensor
    csm: torch.Tensor
    image: torch.Tensor


def smooth_object(image_shape: tuple[int, int], width: float = 6.0) -> torch.Tensor:
    """Off-center Gaussian blob with a slow phase variation."""
    x, y = torch.meshgrid(
        torch.arange(image_shape[0], dtype=torch.float64) - image_shape[0] // 2,
        torch.arange(image_shape[1], dtype=torch.float64) - image_shape[1] // 2,
        indexing='ij',
    )
    magnitude = torch.exp(-((x - 1.5) ** 2 + (y + 1.0) ** 2) / (2 * width**2))
    return magnitude * torch.exp(0.05j * x)


def synthetic_acquisition(image_shape: tuple[int, int] = (32, 32), n_coils: int = 4) -> SyntheticAcquisition:
    csm = birdcage_2d(n_coils, image_shape).to(torch.complex128)
    image = smooth_object(image_shape)
    kspace = centered_fft(image[..., None] * csm)
    return SyntheticAcquisition(kspace=kspace, csm=csm, image=image)


@pytest.fixture
def generator() -> RandomGenerator:
    return RandomGenerator(seed=0)


@pytest.fixture(scope='session')
def acquisition() -> SyntheticAcquisition:
    return synthetic_acquisition()

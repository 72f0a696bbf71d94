# %% [markdown]
# # Image space GRAPPA unmixing
# Unmixing coefficients are calculated from the fully sampled center of a simulated
# acquisition and applied to retrospectively undersampled data.

# %%
import logging

import torch

from mrunmix import grappa_unmixing
from mrunmix.phantoms import birdcage_2d
from mrunmix.utils import centered_fft, centered_ifft

logging.basicConfig(level=logging.INFO)

# %% [markdown]
# ### Simulate a four coil acquisition of a smooth object

# %%
image_shape = (32, 32)
acceleration_factor = 2
csm = birdcage_2d(4, image_shape).to(torch.complex128)
x, y = torch.meshgrid(
    torch.arange(image_shape[0], dtype=torch.float64) - image_shape[0] // 2,
    torch.arange(image_shape[1], dtype=torch.float64) - image_shape[1] // 2,
    indexing='ij',
)
image = torch.exp(-(x**2 + y**2) / (2 * 6.0**2))
kspace = centered_fft(image[..., None] * csm)

# %% [markdown]
# ### Calculate the unmixing coefficients from a 20x20 calibration region

# %%
calibration_mask = torch.zeros(image_shape, dtype=torch.bool)
calibration_mask[6:26, 6:26] = True
result = grappa_unmixing(kspace, (5, 4), acceleration_factor, csm, calibration_mask=calibration_mask, verbose=True)
print(f'Low confidence kernel: {result.low_confidence}')

# %% [markdown]
# ### Apply the coefficients to the undersampled data
# The aliased coil images are scaled by the acceleration factor.

# %%
undersampled = torch.zeros_like(kspace)
undersampled[:, ::acceleration_factor] = kspace[:, ::acceleration_factor]
aliased = acceleration_factor * centered_ifft(undersampled)
reconstruction = (result.unmix * aliased).sum(-1)

nrmse = torch.linalg.vector_norm(reconstruction - image) / torch.linalg.vector_norm(image)
print(f'Normalized RMSE: {nrmse:.4f}')

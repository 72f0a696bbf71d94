"""Centered inverse FFT of k-space kernels."""

# Copyright 2023 Physikalisch-Technische Bundesanstalt
#
# Licensed under the Apache License, Version 2.0 (the "License");
#   you may not use this file except in compliance with the License.
#   You may obtain a copy of the License at
#       http://www.apache.org/licenses/LICENSE-2.0
#   Unless required by applicable law or agreed to in writing, software
#   distributed under the License is distributed on an "AS IS" BASIS,
#   WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#   See the License for the specific language governing permissions and
#   limitations under the License.

from collections.abc import Sequence
from typing import Literal

import torch


def centered_ifft(
    kdat: torch.Tensor,
    dim: Sequence[int] = (0, 1),
    norm: Literal['forward', 'backward', 'ortho'] = 'backward',
) -> torch.Tensor:
    """Centered IFFT from k-space to image space.

    The k-space origin is expected at index ``n // 2`` and is moved to index 0 before the
    transform. The image origin is moved back to ``n // 2`` afterwards. Each dimension is
    transformed separately.

    Parameters
    ----------
    kdat
        k-space data on Cartesian grid
    dim, optional
        dimensions along which the IFFT is applied
    norm, optional
        normalization of the IFFT, see `torch.fft.ifft`. Default is a factor 1/n per dimension.

    Returns
    -------
        IFFT of kdat
    """
    idat = kdat
    for d in dim:
        idat = torch.fft.fftshift(torch.fft.ifft(torch.fft.ifftshift(idat, dim=d), dim=d, norm=norm), dim=d)
    return idat


def centered_fft(
    idat: torch.Tensor,
    dim: Sequence[int] = (0, 1),
    norm: Literal['forward', 'backward', 'ortho'] = 'backward',
) -> torch.Tensor:
    """Centered FFT from image space to k-space, the inverse of `centered_ifft`.

    Parameters
    ----------
    idat
        image data on Cartesian grid
    dim, optional
        dimensions along which the FFT is applied
    norm, optional
        normalization of the FFT, see `torch.fft.fft`

    Returns
    -------
        FFT of idat
    """
    kdat = idat
    for d in dim:
        kdat = torch.fft.fftshift(torch.fft.fft(torch.fft.ifftshift(kdat, dim=d), dim=d, norm=norm), dim=d)
    return kdat


def kernel_to_image(padded_kernel: torch.Tensor, acceleration_factor: int, dim: Sequence[int] = (0, 1)) -> torch.Tensor:
    """Transform a zero padded convolution kernel into image space unmixing weights.

    The result is scaled by ``n_x * n_y / acceleration_factor``. This compensates for the
    1/n normalization of the IFFT and for the kernel only acting on every
    `acceleration_factor`-th line of zero filled k-space.

    Parameters
    ----------
    padded_kernel
        kernel padded to the image grid, e.g. with `mrunmix.utils.padding.pad_kernel`
    acceleration_factor
        undersampling factor along ky
    dim
        spatial dimensions of the kernel

    Returns
    -------
        image space kernel
    """
    n_pixels = 1
    for d in dim:
        n_pixels *= padded_kernel.shape[d]
    return centered_ifft(padded_kernel, dim=dim) * (n_pixels / acceleration_factor)

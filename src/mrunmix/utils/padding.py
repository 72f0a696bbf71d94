"""Centered zero padding of k-space kernels."""

from collections.abc import Sequence

import torch
import torch.nn.functional as F  # noqa: N812


def pad_start(kernel_extent: int, image_extent: int) -> int:
    """Index in the padded array at which the kernel starts.

    Kernel index 0 is placed at ``floor((image_extent - kernel_extent - 1) / 2) + 1``.

    Parameters
    ----------
    kernel_extent
        size of the kernel along one axis
    image_extent
        size of the image grid along the same axis
    """
    return (image_extent - kernel_extent - 1) // 2 + 1


def kernel_anchor(kernel_extent: int, image_extent: int) -> int:
    """Kernel index of the tap that acts on the target sample itself.

    The anchor refers to the kernel before it is flipped for convolution. After flipping
    and padding with `pad_kernel`, it lands on ``image_extent // 2``, the origin of the
    centered Fourier transform. Thus the image space kernel has no linear phase.

    Parameters
    ----------
    kernel_extent
        size of the kernel along one axis
    image_extent
        size of the image grid along the same axis

    Returns
    -------
        ``(kernel_extent - 1) // 2`` for even image grids. For odd image grids and even
        kernels ``kernel_extent // 2``.
    """
    return kernel_extent - 1 - (image_extent // 2 - pad_start(kernel_extent, image_extent))


def pad_kernel(
    kernel: torch.Tensor,
    image_shape: Sequence[int],
    dim: Sequence[int] = (0, 1),
) -> torch.Tensor:
    """Embed a kernel centered into a zero array of the image grid size.

    Parameters
    ----------
    kernel
        kernel with arbitrary additional dimensions, e.g. coils
    image_shape
        size of the image grid along `dim`
    dim
        kernel dimensions the image shape corresponds to

    Returns
    -------
        zero padded kernel

    Raises
    ------
    ValueError
        if the kernel is larger than the image grid
    """
    if len(image_shape) != len(dim):
        raise ValueError('length of image_shape should match length of dim')
    dim = tuple(d % kernel.ndim for d in dim)
    if len(dim) != len(set(dim)):
        raise ValueError('repeated values are not allowed in dim')

    npad = [0] * (2 * kernel.ndim)
    for d, image_extent in zip(dim, image_shape, strict=True):
        if kernel.shape[d] > image_extent:
            raise ValueError(f'Kernel size {kernel.shape[d]} exceeds image size {image_extent} in dimension {d}')
        before = pad_start(kernel.shape[d], image_extent)
        npad[2 * d] = before
        npad[2 * d + 1] = image_extent - kernel.shape[d] - before

    # F.pad expects paddings starting with the last dimension
    pairs = [npad[i : i + 2] for i in range(0, len(npad), 2)]
    return F.pad(kernel, [p for pair in pairs[::-1] for p in pair])

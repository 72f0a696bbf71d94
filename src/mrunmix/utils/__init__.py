"""Padding and Fourier transform utilities."""

from mrunmix.utils.fft import centered_fft, centered_ifft, kernel_to_image
from mrunmix.utils.padding import kernel_anchor, pad_kernel, pad_start

__all__ = [
    "centered_fft",
    "centered_ifft",
    "kernel_anchor",
    "kernel_to_image",
    "pad_kernel",
    "pad_start",
]

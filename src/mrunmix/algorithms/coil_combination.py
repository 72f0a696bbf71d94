"""B1-weighted combination of image space GRAPPA kernels."""

import torch
from einops import einsum


def rss_normalized_csm(csm: torch.Tensor) -> torch.Tensor:
    """Normalize coil sensitivity maps by their root-sum-of-squares.

    Where the root-sum-of-squares is below the smallest normal single precision value,
    e.g. in the background, it is replaced by 1 to avoid divisions by zero.

    Parameters
    ----------
    csm
        coil sensitivity maps `(x, y, coils)`

    Returns
    -------
        normalized coil sensitivity maps `(x, y, coils)`
    """
    rss = csm.abs().square().sum(dim=-1).sqrt()
    rss = torch.where(rss < torch.finfo(torch.float32).tiny, torch.ones_like(rss), rss)
    return csm / rss[..., None]


def b1_weighted_combination(coil_kernels: torch.Tensor, csm: torch.Tensor) -> torch.Tensor:
    """Combine image space kernels of all target coils into unmixing coefficients.

    ``unmix = sum_c coil_kernels[..., c] * conj(csm[..., c] / rss(csm))``

    Parameters
    ----------
    coil_kernels
        image space kernels `(x, y, source_coils, target_coils)`
    csm
        coil sensitivity maps of the target coils `(x, y, target_coils)`

    Returns
    -------
        unmixing coefficients `(x, y, source_coils)`
    """
    weights = rss_normalized_csm(csm).conj()
    return einsum(coil_kernels, weights, 'x y source target, x y target -> x y source')

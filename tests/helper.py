"""Helper/Utilities for test functions."""

import torch


def normalized_rmse(image: torch.Tensor, reference: torch.Tensor) -> torch.Tensor:
    """Root-mean-square error normalized by the root-mean-square of the reference.

    Parameters
    ----------
    image
        reconstructed image
    reference
        reference image

    Returns
    -------
        normalized root-mean-square error
    """
    reference_norm = torch.linalg.vector_norm(reference)
    if reference_norm == 0:
        raise ValueError('reference image should not be zero')
    return torch.linalg.vector_norm(image - reference) / reference_norm

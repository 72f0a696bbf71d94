"""Selection of the calibration locations for the GRAPPA kernel fit."""

import torch

from mrunmix.data.CalibrationRegion import CalibrationRegion
from mrunmix.exceptions import CalibrationDataError


def calibration_region(
    mask: torch.Tensor,
    kernel_size: tuple[int, int],
    acceleration_factor: int,
) -> CalibrationRegion:
    """Find the k-space locations with a complete calibration neighborhood.

    The bounding box of the calibration mask is shrunk by ``kernel_size[0] // 2`` along kx
    and by ``kernel_size[1] * acceleration_factor // 2`` along ky on both ends. The
    remaining locations are the targets of the least squares fit; their source samples
    for all acceleration phases lie inside the bounding box.

    Parameters
    ----------
    mask
        boolean calibration mask `(kx, ky)`, assumed to cover one rectangular region
    kernel_size
        kernel size along kx and ky (acquired lines)
    acceleration_factor
        undersampling factor along ky

    Returns
    -------
        ordered kx and ky indices of the calibration locations

    Raises
    ------
    CalibrationDataError
        if the mask is empty or the calibration area is smaller than the kernel footprint
    """
    if not mask.any():
        raise CalibrationDataError('Calibration mask does not contain any samples.')
    kx_sampled = torch.nonzero(mask.any(dim=1)).squeeze(-1)
    ky_sampled = torch.nonzero(mask.any(dim=0)).squeeze(-1)

    kx_margin = kernel_size[0] // 2
    ky_margin = kernel_size[1] * acceleration_factor // 2
    kx_first, kx_last = int(kx_sampled[0]) + kx_margin, int(kx_sampled[-1]) - kx_margin
    ky_first, ky_last = int(ky_sampled[0]) + ky_margin, int(ky_sampled[-1]) - ky_margin

    if kx_first > kx_last or ky_first > ky_last:
        raise CalibrationDataError(
            f'Calibration region of size {int(kx_sampled[-1] - kx_sampled[0]) + 1}x'
            f'{int(ky_sampled[-1] - ky_sampled[0]) + 1} is too small for a kernel footprint of '
            f'{kernel_size[0]}x{kernel_size[1] * acceleration_factor}.'
        )

    return CalibrationRegion(
        kx=torch.arange(kx_first, kx_last + 1, device=mask.device),
        ky=torch.arange(ky_first, ky_last + 1, device=mask.device),
    )

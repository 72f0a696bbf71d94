"""Calibration region dataclass."""

from dataclasses import dataclass

import torch


@dataclass(slots=True)
class CalibrationRegion:
    """K-space locations used as equations in the GRAPPA kernel fit.

    Every location has a complete neighborhood of calibration samples for all
    acceleration phases. The number of equations is ``len(kx) * len(ky)``.
    """

    kx: torch.Tensor
    """Ascending kx indices of the target samples. Shape `(n_kx,)`"""

    ky: torch.Tensor
    """Ascending ky indices of the target samples. Shape `(n_ky,)`"""

    @property
    def n_equations(self) -> int:
        """Number of equations of each per-phase least squares problem."""
        return self.kx.numel() * self.ky.numel()

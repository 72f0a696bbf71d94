"""Per-phase diagnostics of the regularized kernel fit."""

import math
from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class PhaseDiagnostics:
    """Conditioning of the least squares system of one acceleration phase."""

    phase: int
    """Zero-based phase index, i.e. the ky offset of the kernel taps modulo the acceleration factor."""

    n_equations: int
    """Number of calibration locations (rows of the system matrix)."""

    n_unknowns: int
    """Number of kernel weights per target coil (columns of the system matrix)."""

    sigma_max: float
    """Largest singular value of the system matrix."""

    sigma_min: float
    """Smallest singular value of the system matrix."""

    regularization: float
    """Tikhonov parameter lambda added to the diagonal of the normal equations."""

    n_suppressed: int
    """Number of singular values below sqrt(lambda), i.e. dominated by the regularizer."""

    @property
    def underdetermined(self) -> bool:
        """Whether there are fewer equations than unknowns."""
        return self.n_equations < self.n_unknowns

    @property
    def regularization_ratio(self) -> float:
        """Ratio of lambda to the weakest signal component, ``lambda / sigma_min**2``."""
        if self.sigma_min == 0:
            return math.inf if self.regularization > 0 else math.nan
        return self.regularization / self.sigma_min**2

"""Result of the GRAPPA unmixing calculation."""

import dataclasses
from dataclasses import dataclass

import torch

from mrunmix.data.PhaseDiagnostics import PhaseDiagnostics


@dataclass(slots=True)
class GrappaUnmixing:
    """Image space GRAPPA unmixing coefficients and optional secondary outputs."""

    unmix: torch.Tensor
    """Unmixing coefficients. Shape `(x, y, source_coils)`"""

    coil_kernels: torch.Tensor | None = None
    """Image space kernels before coil combination, only if requested.
    Shape `(x, y, source_coils, target_coils)`"""

    phase_diagnostics: tuple[PhaseDiagnostics, ...] = dataclasses.field(default_factory=tuple)
    """Conditioning information for each acceleration phase."""

    @property
    def low_confidence(self) -> bool:
        """Whether any phase kernel was estimated from an underdetermined system."""
        return any(diagnostics.underdetermined for diagnostics in self.phase_diagnostics)

"""Data containers for calibration regions and unmixing results."""

from mrunmix.data.CalibrationRegion import CalibrationRegion
from mrunmix.data.GrappaUnmixing import GrappaUnmixing
from mrunmix.data.PhaseDiagnostics import PhaseDiagnostics

__all__ = ["CalibrationRegion", "GrappaUnmixing", "PhaseDiagnostics"]

"""Algorithms for the calculation of image space GRAPPA unmixing coefficients."""

from mrunmix.algorithms.calibration_region import calibration_region
from mrunmix.algorithms.coil_combination import b1_weighted_combination, rss_normalized_csm
from mrunmix.algorithms.grappa_kernel import (
    assemble_kernel,
    estimate_grappa_kernel,
    phase_system,
    tikhonov_parameter,
    tikhonov_solve,
)
from mrunmix.algorithms.grappa_unmixing import grappa_unmixing

__all__ = [
    "assemble_kernel",
    "b1_weighted_combination",
    "calibration_region",
    "estimate_grappa_kernel",
    "grappa_unmixing",
    "phase_system",
    "rss_normalized_csm",
    "tikhonov_parameter",
    "tikhonov_solve",
]

from mrunmix._version import __version__
from mrunmix import algorithms, data, exceptions, phantoms, utils
from mrunmix.algorithms.grappa_unmixing import grappa_unmixing
from mrunmix.exceptions import CalibrationDataError, ConfigurationError, LowConfidenceWarning

__all__ = [
    "CalibrationDataError",
    "ConfigurationError",
    "LowConfidenceWarning",
    "__version__",
    "algorithms",
    "data",
    "exceptions",
    "grappa_unmixing",
    "phantoms",
    "utils",
]

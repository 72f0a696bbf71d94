"""Errors and warnings raised while calculating GRAPPA unmixing coefficients."""


class ConfigurationError(ValueError):
    """Invalid or inconsistent input to the unmixing calculation.

    Raised for non-positive kernel sizes or acceleration factors, unsupported
    array ranks and mismatching dimensions between the inputs.
    """


class CalibrationDataError(ValueError):
    """The calibration mask does not provide enough data for the kernel footprint."""


class LowConfidenceWarning(UserWarning):
    """A kernel was estimated from fewer equations than unknowns.

    The Tikhonov regularized solution is still returned, but it is biased towards
    the minimum-norm solution and should be treated as less reliable.
    """

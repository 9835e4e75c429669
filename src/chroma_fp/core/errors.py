class FingerprintError(Exception):
    """Base class for everything this package raises on purpose."""


class ConfigurationError(FingerprintError):
    """
    Bad estimator / key strategy selection or out of range tunables.
    Raised once at startup (config load or assembler construction), never per frame.
    """


class SpectrumShapeError(FingerprintError, ValueError):
    """The estimator handed back power and frequency arrays of different lengths."""

"""Error types raised while estimating percent change."""


class PercChangeError(Exception):
    """Base class for all percent change errors."""


class DataError(PercChangeError):
    """Raised when the input series cannot be used as given."""


class InsufficientDataError(PercChangeError):
    """Raised when a backend gets too few finite points to fit."""


class EstimationError(PercChangeError):
    """Raised when a backend ran but failed or did not converge."""


class ConfigError(PercChangeError):
    """Raised for invalid window, year or option values."""

"""Analytics domain errors."""


class AnalyticsError(Exception):
    """Base class for analytics engine errors."""


class AnalyticsInputError(AnalyticsError, ValueError):
    """Raised for inputs the engine cannot default (e.g. missing organization id)."""

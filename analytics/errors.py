"""
Error taxonomy for the analytics engine.
"""


class AnalyticsError(Exception):
    """Base class for all analytics failures."""
    pass


class InsufficientDataError(AnalyticsError):
    """Raised when a series is too short for the requested calculation."""
    pass


class DomainError(AnalyticsError, ValueError):
    """Raised when an argument lies outside the operation's domain."""
    pass


class AlignmentError(DomainError):
    """Raised by strict alignment when series lengths differ."""
    pass

"""Exception hierarchy for the lineup pairing engine.

Callers distinguish "no pairs available" from a failure by inspecting the
bundle (empty ``candidate_pairs``), never by catching an exception.
"""


class LineupLabError(Exception):
    """Base class for all lineup lab errors."""
    pass


class ValidationError(LineupLabError):
    """Raised when request inputs are malformed. Never retried."""
    pass


class DataSourceError(LineupLabError):
    """
    Raised when the match history store cannot be read.

    Transient from the caller's point of view: the whole bundle computation
    is idempotent and may be retried.
    """
    pass


class BundleTimeoutError(LineupLabError):
    """Raised when a bundle computation exceeds its timeout."""
    pass

"""
Error taxonomy for the scoring engines.

Malformed samples and events are not errors: they are skipped. Too little
history is not an error either: it yields an insufficient-data result.
"""


class LogisentryError(Exception):
    """Base class for all logisentry errors."""


class InvalidConfiguration(LogisentryError):
    """
    Raised when thresholds or rule maps are unusable.

    Raised before any work is done, so callers never see partial output.
    """

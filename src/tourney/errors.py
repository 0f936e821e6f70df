"""
Exceptions raised by tournament operations.
"""


class TournamentError(Exception):
    """Base exception for all tournament manager errors."""
    pass


class NotFoundError(TournamentError):
    """Raised when a tournament, match or user id does not exist."""
    pass


class PermissionDeniedError(TournamentError):
    """Raised when the current user may not perform an administrative action."""
    pass


class ValidationError(TournamentError):
    """Raised when input cannot be used at all (not for skippable entries)."""
    pass

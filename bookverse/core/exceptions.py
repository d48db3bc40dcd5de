# bookverse/core/exceptions.py
"""
Domain errors raised by the service layer.

Both subclass ValueError so callers that only know about ValueError (the
convention used across the services) keep working. Ownership violations use
the builtin PermissionError.
"""


class NotFoundError(ValueError):
    """The addressed document does not exist (404)."""


class ConflictError(ValueError):
    """The request contradicts the current state, e.g. a duplicate friend request (409)."""

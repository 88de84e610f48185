"""
Request error classifications for patrol operations.

These exceptions describe problems with what the caller asked for: malformed
input, missing records, missing rights or a forbidden status change.
"""

from typing import Optional, Dict, Any


class PatrolError(Exception):
    """Base class for errors surfaced to the caller of a patrol operation."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class ValidationError(PatrolError):
    """Creation or update input is malformed."""

    def __init__(self, message: str, field: Optional[str] = None,
                 value: Any = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value


class NotFoundError(PatrolError):
    """Patrol is absent or outside the caller's visible scope."""

    def __init__(self, message: str, patrol_id: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.patrol_id = patrol_id


class ForbiddenError(PatrolError):
    """Caller lacks rights over the target patrol."""

    def __init__(self, message: str, patrol_id: Optional[str] = None,
                 caller_id: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.patrol_id = patrol_id
        self.caller_id = caller_id


class InvalidTransitionError(PatrolError):
    """Manual status change violates the terminal-state rule."""

    def __init__(self, message: str, current_status: Optional[str] = None,
                 requested_status: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.current_status = current_status
        self.requested_status = requested_status

"""
Error classification for patrol lifecycle operations.

Request errors are raised straight to the transport layer. System failures
describe persistence or configuration problems and carry a retry hint.
"""

from .request_errors import (
    PatrolError,
    ValidationError,
    NotFoundError,
    ForbiddenError,
    InvalidTransitionError,
)
from .system_failures import (
    SystemFailureError,
    StoreError,
    ConfigurationError,
)

__all__ = [
    # Request Errors
    "PatrolError",
    "ValidationError",
    "NotFoundError",
    "ForbiddenError",
    "InvalidTransitionError",
    # System Failures
    "SystemFailureError",
    "StoreError",
    "ConfigurationError",
]

"""
System failure error classifications.

These exceptions represent infrastructure problems rather than bad requests.
Store failures are worth retrying; configuration failures need a fix.
"""

from typing import Optional, Dict, Any


class SystemFailureError(Exception):
    """Base class for system-level failures."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class StoreError(SystemFailureError):
    """Patrol store read or write failure."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 target: Optional[str] = None, retryable: bool = True, **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation
        self.target = target
        self.retryable = retryable
        self.recoverable = retryable


class ConfigurationError(SystemFailureError):
    """Settings failed validation."""

    def __init__(self, message: str, issues: Optional[list] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.issues = issues or []

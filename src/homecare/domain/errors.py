"""
Domain-specific error types for business rule violations.
"""

from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base domain error."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class EditNotAllowedError(DomainError):
    """A record edit violates the edit policy."""

    def __init__(self, error: str, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.error = error
        super().__init__(message, "EDIT_NOT_ALLOWED", details)

"""
Exception classes for the domain lookup engine.

All exceptions inherit from DomainLookupError and provide structured
error information with codes, messages, and optional details.
"""

from typing import Optional


class DomainLookupError(Exception):
    """Base exception for all domain lookup errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(DomainLookupError):
    """Raised when an identifier or request field is malformed or missing."""

    pass


class QuotaExceededError(DomainLookupError):
    """Raised when a caller has used up its request quota for the window."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
        quota=None,
    ) -> None:
        super().__init__(code, message, details)
        self.quota = quota


class ConfigurationError(DomainLookupError):
    """Raised when the engine configuration is invalid."""

    pass

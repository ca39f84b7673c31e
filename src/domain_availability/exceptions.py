"""
Exception classes for the domain availability engine.

All exceptions inherit from DomainAvailabilityError and provide structured
error information with codes, messages, and optional details.
"""

from typing import Optional


class DomainAvailabilityError(Exception):
    """Base exception for all domain availability errors."""

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


class ValidationError(DomainAvailabilityError):
    """Raised when caller input (keyword or TLD lists) is rejected."""

    pass


class NetworkError(DomainAvailabilityError):
    """Raised when network operations fail or time out."""

    pass


class ProtocolError(DomainAvailabilityError):
    """Raised when upstream data is malformed (bootstrap JSON, unexpected status)."""

    pass


class PersistenceError(DomainAvailabilityError):
    """Raised when the registry cache file cannot be read, parsed or written."""

    pass

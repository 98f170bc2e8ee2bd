"""
Shared error handling for the LTPA token library.

Message texts are matched verbatim by calling code; do not reword them.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field

from shared.logging import request_id_var


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class LtpaError(Exception):
    """Base exception for token failures."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id_var.get(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class InputError(LtpaError):
    """Missing or unusable caller input."""

    def __init__(self, message: str = "Invalid input", details: Optional[Dict[str, Any]] = None):
        super().__init__("INPUT_ERROR", message, details)


class EncodingError(InputError):
    """A username character has no representation in the token code pages."""

    def __init__(self, char: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(f"Character {char!r} cannot be encoded in a token username", details)
        self.code = "ENCODING_ERROR"
        self.char = char


class SecretLookupError(LtpaError, LookupError):
    """No secret is registered for the requested domain."""

    def __init__(self, message: str = "No such server secret exists", details: Optional[Dict[str, Any]] = None):
        super().__init__("LOOKUP_ERROR", message, details)


class FormatError(LtpaError):
    """The token bytes do not follow the LTPA1 layout."""

    def __init__(self, message: str = "Malformed Ltpa Token", details: Optional[Dict[str, Any]] = None):
        super().__init__("FORMAT_ERROR", message, details)


class TemporalError(LtpaError):
    """The token is outside its validity window."""

    def __init__(self, message: str = "Ltpa Token has expired", details: Optional[Dict[str, Any]] = None):
        super().__init__("TEMPORAL_ERROR", message, details)


class IntegrityError(LtpaError):
    """The token signature does not match its contents."""

    def __init__(self, message: str = "Ltpa Token signature doesn't validate", details: Optional[Dict[str, Any]] = None):
        super().__init__("INTEGRITY_ERROR", message, details)

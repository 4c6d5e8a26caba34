"""
Exception classes for the Code Assist adapter.

The taxonomy separates failures by where they happen:

- ``TransportError``: the request never produced an HTTP status (DNS, TLS,
  connection reset, timeout).
- ``APIError``: the backend answered with a non-2xx status.
- ``DecodeError``: the backend answered, but the payload did not match the
  expected shape.
- ``StreamError``: the connection broke while reading an event stream.
"""

from __future__ import annotations

from typing import Any


class AdapterError(Exception):
    """Base exception class for all adapter errors."""

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        *,
        status_code: int | None = None,
        **kwargs: Any,
    ):
        """Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error details
            status_code: Optional HTTP status code associated with the error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.status_code = status_code
        for key, value in (kwargs or {}).items():
            setattr(self, key, value)

    def to_dict(self) -> dict:
        error_dict: dict[str, Any] = {
            "message": self.message,
            "type": self.__class__.__name__,
            "details": self.details,
        }
        if self.status_code is not None:
            error_dict["status_code"] = self.status_code
        return {"error": error_dict}


class TransportError(AdapterError):
    """Raised when the HTTP request fails below the status-code level."""

    def __init__(
        self,
        message: str = "HTTP request failed",
        details: dict | None = None,
        **kwargs: Any,
    ):
        super().__init__(f"HTTP Request failed: {message}", details, **kwargs)


class APIError(AdapterError):
    """Raised when the backend returns a non-2xx HTTP status.

    ``status_code`` is the exact status the backend returned and ``body`` is
    the raw response text, which is also embedded in the message.
    """

    def __init__(
        self,
        status_code: int,
        body: str = "",
        *,
        context: str | None = None,
        details: dict | None = None,
    ):
        text = f"{context}: {body}" if context else body
        super().__init__(
            f"API returned error: {status_code} - {text}",
            details,
            status_code=status_code,
        )
        self.body = body


class DecodeError(AdapterError):
    """Raised when a payload does not match the expected shape."""

    def __init__(
        self,
        message: str = "Payload decoding failed",
        details: dict | None = None,
        **kwargs: Any,
    ):
        super().__init__(
            f"Serialization/Deserialization failed: {message}", details, **kwargs
        )


class StreamError(AdapterError):
    """Raised when reading an open event stream fails."""

    def __init__(
        self,
        message: str = "Stream read failed",
        details: dict | None = None,
        **kwargs: Any,
    ):
        super().__init__(f"Stream error: {message}", details, **kwargs)


class ConfigurationError(AdapterError):
    """Raised when there's a configuration issue."""

    def __init__(
        self,
        message: str = "Configuration error",
        details: dict | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, details, **kwargs)


class AuthenticationError(AdapterError):
    """Raised when no usable bearer token can be obtained."""

    def __init__(
        self,
        message: str = "Authentication failed",
        details: dict | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, details, status_code=401, **kwargs)

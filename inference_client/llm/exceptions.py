"""
Error taxonomy for inference API operations.

Every error raised by the client derives from LLMError:
- TransportError for network failures, timeouts and cancelled reads
- APIError for non-2xx responses and in-band provider errors
- ProtocolParseError for stream frames that do not decode into a chunk
- StreamStateError for reads against a poisoned, exhausted or closed stream

Errors raised by caller-supplied stream consumers are never wrapped.
"""

from __future__ import annotations

from typing import Any


class LLMError(Exception):
    """Base inference client error with response context."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_data: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response_data = response_data or {}


class TransportError(LLMError):
    """Network failure, timeout or cancellation during a request or read."""

    def __init__(self, message: str, category: str = "unknown_error", **kwargs):
        super().__init__(message, **kwargs)
        self.category = category


class StreamCancelledError(TransportError):
    """A deadline expired while waiting for stream data."""

    def __init__(self, message: str = "stream read cancelled", **kwargs):
        super().__init__(message, category="cancelled", **kwargs)


class IncompleteStreamError(TransportError):
    """The response body ended before the [DONE] sentinel arrived."""

    def __init__(
        self, message: str = "stream ended before [DONE] sentinel", **kwargs
    ):
        super().__init__(message, category="incomplete_stream", **kwargs)


class APIError(LLMError):
    """Structured error reported by the API."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_type: str | None = None,
        code: str | None = None,
        body: str = "",
        **kwargs,
    ):
        super().__init__(message, status_code=status_code, **kwargs)
        self.error_type = error_type
        self.code = code
        self.body = body

    def __str__(self) -> str:
        if self.status_code is None:
            return f"API error: {self.message}"
        return f"API error {self.status_code}: {self.message}"


class ProtocolParseError(LLMError):
    """A stream frame could not be decoded into a chunk."""

    def __init__(self, message: str, payload: str):
        super().__init__(message)
        self.payload = payload


class StreamStateError(LLMError):
    """Operation not valid in the stream's current state."""
    pass

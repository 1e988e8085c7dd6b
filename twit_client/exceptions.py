"""
Domain specific exception hierarchy for the twit_client package.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Mapping


class ErrorKind(str, Enum):
    CONFIG = "config"
    VALIDATION = "validation"
    AUTH = "auth"
    TRANSPORT = "transport"
    TRUST = "trust"
    DECODE = "decode"
    APPLICATION = "application"


class TwitError(Exception):
    """Base exception for all library errors.

    Besides the message, every error can carry the HTTP status code, the
    first API error code, the ordered list of API error entries, the decoded
    reply and the raw response body.
    """

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: int | None = None,
        all_errors: Iterable[Mapping[str, Any]] = (),
        twitter_reply: Any = None,
        raw_body: bytes | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.all_errors: tuple[dict[str, Any], ...] = tuple(dict(e) for e in all_errors)
        self.twitter_reply = twitter_reply
        self.raw_body = raw_body

    def __str__(self) -> str:
        return self.message

    def add_errors(self, entries: Iterable[Mapping[str, Any]]) -> None:
        self.all_errors = self.all_errors + tuple(dict(e) for e in entries)


class ConfigError(TwitError):
    """Raised when the client configuration or credentials are invalid."""

    kind = ErrorKind.CONFIG


class PathTemplateError(TwitError):
    """Raised when a path placeholder has no matching parameter."""

    kind = ErrorKind.VALIDATION


class CallOptionsError(TwitError):
    """Raised when `twit_options` holds values of the wrong type."""

    kind = ErrorKind.VALIDATION


class AuthResolutionError(TwitError):
    """Raised when an app-only bearer token cannot be obtained."""

    kind = ErrorKind.AUTH


class TransportError(TwitError):
    """Socket or connection level failure; no usable HTTP response."""

    kind = ErrorKind.TRANSPORT


class TrustError(TwitError):
    """Raised when the peer certificate fails pinning checks."""

    kind = ErrorKind.TRUST


class DecodeError(TwitError):
    """The HTTP exchange succeeded but the body was not valid JSON."""

    kind = ErrorKind.DECODE


class ApplicationError(TwitError):
    """Raised when the Twitter API returns an error payload."""

    kind = ErrorKind.APPLICATION


class RateLimitExceeded(ApplicationError):
    """Raised when the Twitter API enforces a rate limit."""

    def __init__(self, message: str, *, reset_at: int | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.reset_at = reset_at


class MediaValidationError(TwitError):
    """Raised when local media files do not satisfy upload requirements."""


class MediaProcessingTimeout(ApplicationError):
    """Raised when media processing does not complete in the allocated time."""


class MediaProcessingFailed(ApplicationError):
    """Raised when the API reports failure for an uploaded media asset."""

"""Twitter REST and streaming API client."""

from __future__ import annotations

__all__ = [
    "ApiResult",
    "ApplicationError",
    "AuthResolutionError",
    "CallOptions",
    "CallOptionsError",
    "ClientConfig",
    "ConfigError",
    "ConfigManager",
    "DecodeError",
    "MediaProcessingFailed",
    "MediaProcessingTimeout",
    "MediaValidationError",
    "PathTemplateError",
    "RateLimitExceeded",
    "RetryConfig",
    "StreamingConnection",
    "TransportError",
    "TrustError",
    "Twit",
    "TwitError",
]

from .client import Twit
from .config import ClientConfig, ConfigManager
from .exceptions import (
    ApplicationError,
    AuthResolutionError,
    CallOptionsError,
    ConfigError,
    DecodeError,
    MediaProcessingFailed,
    MediaProcessingTimeout,
    MediaValidationError,
    PathTemplateError,
    RateLimitExceeded,
    TransportError,
    TrustError,
    TwitError,
)
from .models import ApiResult, CallOptions
from .rate_limit import RetryConfig
from .streaming import StreamingConnection

"""
Request, result and payload models used across twit_client.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, NamedTuple

import requests
import tweepy
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from twit_client.exceptions import CallOptionsError, TwitError
from twit_client.rate_limit import RateLimitInfo
from twit_client.settings import CALL_OPTIONS_KEY


class BodyEncoding(str, Enum):
    JSON = "json"
    MULTIPART = "multipart"


@dataclass(frozen=True, slots=True)
class OAuthMaterial:
    """User-auth signing material attached to a request."""

    consumer_key: str
    consumer_secret: str
    token: str
    token_secret: str

    def to_auth(self) -> requests.auth.AuthBase:
        handler = tweepy.OAuth1UserHandler(
            self.consumer_key,
            self.consumer_secret,
            self.token,
            self.token_secret,
        )
        return handler.apply_auth()

    def __repr__(self) -> str:
        return f"OAuthMaterial(consumer_key={self.consumer_key!r}, token=***)"


@dataclass(frozen=True, slots=True)
class RequestDescriptor:
    """A fully resolved HTTP request, ready for execution."""

    method: str
    url: str
    headers: Mapping[str, str]
    encoding: BodyEncoding = BodyEncoding.JSON
    form: Mapping[str, Any] | None = None
    oauth: OAuthMaterial | None = None
    timeout: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))
        if self.form is not None:
            object.__setattr__(self, "form", MappingProxyType(dict(self.form)))

    @property
    def query_string(self) -> str:
        _, _, query = self.url.partition("?")
        return query

    def multipart_files(self) -> dict[str, tuple[str | None, Any]]:
        """Form fields in the shape ``requests`` expects for ``files=``."""

        files: dict[str, tuple[str | None, Any]] = {}
        for key, value in (self.form or {}).items():
            if isinstance(value, (bytes, bytearray)) or hasattr(value, "read"):
                files[key] = (key, value)
            elif isinstance(value, bool):
                files[key] = (None, "true" if value else "false")
            else:
                files[key] = (None, str(value))
        return files


class CallOptions(BaseModel):
    """Per-call behaviour flags passed under ``params["twit_options"]``."""

    retry: bool = False

    model_config = ConfigDict(extra="allow", frozen=True)

    @classmethod
    def from_params(cls, params: Any) -> "CallOptions":
        """
        Read the options mapping out of call params.

        Raises:
            CallOptionsError: If an option has the wrong type
        """
        if not isinstance(params, Mapping):
            return cls()
        options = params.get(CALL_OPTIONS_KEY)
        if not isinstance(options, Mapping):
            return cls()
        try:
            return cls.model_validate(dict(options))
        except ValidationError as exc:
            raise CallOptionsError(f"Invalid `{CALL_OPTIONS_KEY}`: {exc}") from exc


class ApiResult(NamedTuple):
    """Outcome of one call: unpacks as ``err, data, response``."""

    error: TwitError | None
    data: Any = None
    response: requests.Response | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def rate_limit(self) -> RateLimitInfo | None:
        if self.response is None:
            return None
        return RateLimitInfo.from_headers(self.response.headers)

    def raise_for_error(self) -> Any:
        if self.error is not None:
            raise self.error
        return self.data


class BearerTokenPayload(BaseModel):
    token_type: str
    access_token: str

    model_config = ConfigDict(extra="allow")


class MediaProcessingError(BaseModel):
    code: int | None = None
    name: str | None = None
    message: str | None = None


class MediaProcessingInfo(BaseModel):
    state: str
    check_after_secs: int | None = None
    progress_percent: int | None = None
    error: MediaProcessingError | None = None

    model_config = ConfigDict(extra="allow")


class MediaUploadResult(BaseModel):
    """Normalized response from the media upload endpoints."""

    media_id: str
    media_id_string: str | None = None
    media_key: str | None = None
    expires_after_secs: int | None = None
    processing_info: MediaProcessingInfo | None = None

    model_config = ConfigDict(extra="allow")

    @classmethod
    def from_api(cls, payload: Any) -> "MediaUploadResult":
        if not isinstance(payload, Mapping):
            raise TypeError(f"Cannot convert payload of type {type(payload)!r} to mapping.")
        data = dict(payload)
        if data.get("media_id_string"):
            data["media_id"] = data["media_id_string"]
        return cls.model_validate(data)

    @field_validator("media_id", mode="before")
    @classmethod
    def coerce_media_id(cls, value: Any) -> str:
        if isinstance(value, (int, float)):
            return str(int(value))
        if isinstance(value, str):
            return value
        raise TypeError("media_id must be serializable to str.")

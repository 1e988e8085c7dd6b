"""
App-only bearer token exchange and caching.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

import requests
from pydantic import ValidationError

from twit_client.config import ClientConfig
from twit_client.exceptions import AuthResolutionError
from twit_client.helpers import attach_body_info
from twit_client.models import BearerTokenPayload
from twit_client.settings import OAUTH2_TOKEN

logger = logging.getLogger(__name__)


class BearerTokenManager:
    """
    Resolves the app-only bearer token for one client instance.

    The first successful exchange is cached and reused. Callers that arrive
    while an exchange is running share it instead of starting their own.
    A failed exchange caches nothing, so the next call tries again.
    """

    def __init__(
        self,
        config_source: Callable[[], ClientConfig],
        *,
        session: requests.Session | None = None,
        token_url: str = OAUTH2_TOKEN,
    ) -> None:
        self._config_source = config_source
        self._session = session or requests.Session()
        self._token_url = token_url
        self._token: str | None = None
        self._generation = 0
        self._pending: asyncio.Future[str] | None = None

    @property
    def token(self) -> str | None:
        return self._token

    def invalidate(self) -> None:
        self._generation += 1
        self._token = None
        self._pending = None

    async def resolve_token(self) -> str:
        if self._token:
            logger.debug("Using cached bearer token")
            return self._token

        if self._pending is None:
            self._pending = asyncio.ensure_future(self._exchange())
        pending = self._pending

        try:
            return await asyncio.shield(pending)
        finally:
            if pending.done() and self._pending is pending:
                self._pending = None

    async def _exchange(self) -> str:
        config = self._config_source()
        generation = self._generation
        token = await asyncio.to_thread(
            self._fetch_token,
            config.consumer_key or "",
            config.consumer_secret or "",
            config.timeout,
        )
        if generation == self._generation:
            self._token = token
        return token

    def _fetch_token(self, consumer_key: str, consumer_secret: str, timeout: float | None) -> str:
        logger.debug("Requesting app-only bearer token from %s", self._token_url)
        try:
            response = self._session.post(
                self._token_url,
                auth=(consumer_key, consumer_secret),
                data={"grant_type": "client_credentials"},
                headers={"Content-Type": "application/x-www-form-urlencoded;charset=UTF-8"},
                timeout=timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Bearer token request failed: %s", exc)
            raise AuthResolutionError(f"Bearer token request failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise AuthResolutionError(
                "Bearer token response was not valid JSON",
                status_code=response.status_code,
                raw_body=response.content,
            ) from exc

        if not isinstance(body, dict) or body.get("error") or body.get("errors"):
            err = AuthResolutionError(
                "Bearer token request was rejected",
                status_code=response.status_code,
                raw_body=response.content,
            )
            logger.warning("Bearer token request rejected with status %s", response.status_code)
            raise attach_body_info(err, body)

        try:
            payload = BearerTokenPayload.model_validate(body)
        except ValidationError as exc:
            raise AuthResolutionError(
                "Bearer token response is missing fields",
                status_code=response.status_code,
                twitter_reply=body,
            ) from exc

        if payload.token_type.lower() != "bearer":
            raise AuthResolutionError(
                f'Expected token_type to equal "bearer", but got {payload.token_type} instead',
                status_code=response.status_code,
                twitter_reply=body,
            )
        return payload.access_token

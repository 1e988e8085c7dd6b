"""
Turns a verb, resource path and params into a RequestDescriptor.
"""

from __future__ import annotations

import re
from typing import Any, Callable

from twit_client.auth import BearerTokenManager
from twit_client.config import ClientConfig
from twit_client.helpers import make_query_string, move_params_into_path, normalize_params
from twit_client.models import BodyEncoding, OAuthMaterial, RequestDescriptor
from twit_client.settings import (
    CALL_OPTIONS_KEY,
    FORMDATA_PATHS,
    MEDIA_UPLOAD,
    MEDIA_UPLOAD_PATH,
    PUB_STREAM,
    REST_ROOT,
    STREAM_ENDPOINTS,
)

_ABSOLUTE_URL = re.compile(r"^https?://", re.IGNORECASE)


class RequestOptionsBuilder:
    """Resolves path templating, endpoint routing, body encoding and auth."""

    def __init__(
        self,
        config_source: Callable[[], ClientConfig],
        token_manager: BearerTokenManager,
    ) -> None:
        self._config_source = config_source
        self._token_manager = token_manager

    async def build(
        self,
        method: str,
        path: str,
        params: Any = None,
        *,
        streaming: bool = False,
    ) -> RequestDescriptor:
        """
        Build a self-contained request descriptor.

        Args:
            method: HTTP verb ("GET" or "POST")
            path: Resource path (e.g. "statuses/show/:id") or an absolute URL
            params: Request parameters; never modified
            streaming: Route to the streaming endpoints instead of REST

        Raises:
            PathTemplateError: If a path placeholder has no value
            AuthResolutionError: If the app-only bearer token cannot be fetched
        """
        config = self._config_source()
        final_params = normalize_params(params)
        final_params.pop(CALL_OPTIONS_KEY, None)

        path = move_params_into_path(final_params, path)

        headers: dict[str, str] = {}
        encoding = BodyEncoding.JSON
        form: dict[str, Any] | None = None

        if _ABSOLUTE_URL.match(path):
            url = path
        elif streaming:
            endpoint = STREAM_ENDPOINTS.get(path, PUB_STREAM)
            url = f"{endpoint}{path}.json"
        else:
            if path == MEDIA_UPLOAD_PATH:
                url = f"{MEDIA_UPLOAD}{MEDIA_UPLOAD_PATH}.json"
            else:
                url = f"{REST_ROOT}{path}.json"

            if path in FORMDATA_PATHS:
                # requests writes the multipart Content-Type with its boundary
                encoding = BodyEncoding.MULTIPART
                form = final_params
                final_params = {}
            else:
                headers["Content-Type"] = "application/json"

        if final_params:
            url = f"{url}?{make_query_string(final_params)}"

        oauth: OAuthMaterial | None = None
        if config.app_only_auth:
            bearer_token = await self._token_manager.resolve_token()
            headers["Authorization"] = f"Bearer {bearer_token}"
        else:
            oauth = OAuthMaterial(
                consumer_key=config.consumer_key or "",
                consumer_secret=config.consumer_secret or "",
                token=config.access_token or "",
                token_secret=config.access_token_secret or "",
            )

        return RequestDescriptor(
            method=method.upper(),
            url=url,
            headers=headers,
            encoding=encoding,
            form=form,
            oauth=oauth,
            timeout=config.timeout,
        )

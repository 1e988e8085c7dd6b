"""
Twitter REST and streaming API client.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

import requests

from twit_client.auth import BearerTokenManager
from twit_client.config import ClientConfig
from twit_client.exceptions import TwitError
from twit_client.executor import PeerCertificate, RequestExecutor, read_peer_certificate
from twit_client.helpers import normalize_params
from twit_client.models import ApiResult, CallOptions
from twit_client.rate_limit import RetryConfig
from twit_client.request_builder import RequestOptionsBuilder
from twit_client.streaming import StreamingConnection, StreamingConnectionFactory
from twit_client.uploader import ChunkedMediaUploader, ResultCallback, UploaderFactory

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ("GET", "POST")


class Twit:
    """
    Client for the Twitter v1.1 REST and streaming APIs.

    Every call resolves to an ``ApiResult`` (``err, data, response``). Failures
    after construction are reported inside that result, and to ``callback``
    when one is given; they are not raised.

    Args:
        config: Mapping or ``ClientConfig`` holding credentials and options
        session: Optional ``requests.Session`` shared by all calls
        retry_config: Bounds for retried transport failures
        uploader_factory: Builds the uploader used by ``post_media_chunked``
        certificate_reader: Reads the peer certificate for pinning checks

    Raises:
        ConfigError: If the configuration is invalid
    """

    def __init__(
        self,
        config: Mapping[str, Any] | ClientConfig,
        *,
        session: requests.Session | None = None,
        retry_config: RetryConfig | None = None,
        uploader_factory: UploaderFactory = ChunkedMediaUploader,
        certificate_reader: Callable[[requests.Response], PeerCertificate] = read_peer_certificate,
    ) -> None:
        if isinstance(config, ClientConfig):
            config = config.to_dict()
        self._config = ClientConfig.from_mapping(config)

        session = session or requests.Session()
        self._token_manager = BearerTokenManager(self._get_config, session=session)
        self._builder = RequestOptionsBuilder(self._get_config, self._token_manager)
        self._executor = RequestExecutor(
            self._get_config,
            session=session,
            retry_config=retry_config,
            certificate_reader=certificate_reader,
        )
        self._streams = StreamingConnectionFactory(self._builder)
        self._uploader_factory = uploader_factory

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def bearer_token(self) -> str | None:
        return self._token_manager.token

    def _get_config(self) -> ClientConfig:
        return self._config

    async def get(
        self,
        path: str,
        params: Any = None,
        callback: ResultCallback | None = None,
    ) -> ApiResult:
        return await self.request("GET", path, params, callback)

    async def post(
        self,
        path: str,
        params: Any = None,
        callback: ResultCallback | None = None,
    ) -> ApiResult:
        return await self.request("POST", path, params, callback)

    async def request(
        self,
        method: str,
        path: str,
        params: Any = None,
        callback: ResultCallback | None = None,
    ) -> ApiResult:
        """
        Build and execute one REST API call.

        ``params`` may be omitted, or replaced by the callback itself.
        """
        method = method.upper()
        if method not in ALLOWED_METHODS:
            raise ValueError(f"method must be one of {ALLOWED_METHODS}, got {method!r}")
        if callable(params) and callback is None:
            params, callback = None, params

        try:
            options = CallOptions.from_params(params)
            descriptor = await self._builder.build(method, path, params)
        except TwitError as err:
            return _deliver(ApiResult(err, None, None), callback)

        result = await self._executor.execute(descriptor, options)
        return _deliver(result, callback)

    def stream(self, path: str, params: Any = None) -> StreamingConnection:
        """
        Return a streaming handle for ``path`` (e.g. "statuses/filter").

        The handle is configured on a later loop turn; attach a
        ``fatal_error`` listener to learn about setup failures.
        """
        return self._streams.create(path, params)

    async def post_media_chunked(
        self,
        params: Mapping[str, Any],
        callback: ResultCallback | None = None,
    ) -> ApiResult:
        """
        Upload ``params["file_path"]`` through the chunked media/upload API.

        Errors raised while the uploader is being created are delivered the
        same way as errors from the upload itself.
        """
        try:
            uploader = self._uploader_factory(params, self)
        except Exception as err:
            logger.debug("Uploader construction failed: %s", err)
            return _deliver(ApiResult(err, None, None), callback)
        return await uploader.upload(callback)

    def set_auth(self, auth: Mapping[str, Any]) -> None:
        """
        Replace the credential keys present in ``auth``.

        Raises:
            ConfigError: If the updated configuration is invalid; the
                previous configuration stays in place.
        """
        updated = self._config.with_auth(auth)
        consumer_changed = (updated.consumer_key, updated.consumer_secret) != (
            self._config.consumer_key,
            self._config.consumer_secret,
        )
        self._config = updated
        if consumer_changed:
            self._token_manager.invalidate()

    def get_auth(self) -> dict[str, Any]:
        return self._config.to_dict()

    normalize_params = staticmethod(normalize_params)


def _deliver(result: ApiResult, callback: ResultCallback | None) -> ApiResult:
    if callback is not None:
        callback(*result)
    return result

"""
Executes resolved requests and classifies their outcome.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping

import requests
from requests.adapters import HTTPAdapter
from urllib3.connection import HTTPSConnection
from urllib3.connectionpool import HTTPSConnectionPool

from twit_client.config import ClientConfig
from twit_client.exceptions import (
    ApplicationError,
    DecodeError,
    RateLimitExceeded,
    TransportError,
    TrustError,
)
from twit_client.helpers import attach_body_info
from twit_client.models import ApiResult, BodyEncoding, CallOptions, RequestDescriptor
from twit_client.rate_limit import RateLimitInfo, RetryConfig
from twit_client.settings import RATE_LIMIT_ERROR_CODE, STATUS_CODES_TO_ABORT_ON

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PeerCertificate:
    """What the executor needs to know about the server certificate."""

    authorized: bool
    fingerprint: str | None = None
    error: str | None = None


def format_fingerprint(der_bytes: bytes) -> str:
    digest = hashlib.sha1(der_bytes).hexdigest().upper()
    return ":".join(digest[i : i + 2] for i in range(0, len(digest), 2))


class CertificateCaptureConnection(HTTPSConnection):
    """HTTPS connection that keeps the peer certificate once connected.

    ``http.client`` drops ``sock`` as soon as a ``Connection: close`` reply
    arrives, so the DER bytes are copied at handshake time.
    """

    peer_certificate: bytes | None = None

    def connect(self) -> None:
        super().connect()
        self.peer_certificate = self.sock.getpeercert(binary_form=True)


class CertificateCaptureConnectionPool(HTTPSConnectionPool):
    ConnectionCls = CertificateCaptureConnection


class CertificateCaptureAdapter(HTTPAdapter):
    """Transport adapter whose HTTPS pools record peer certificates."""

    def init_poolmanager(self, *args: Any, **kwargs: Any) -> None:
        super().init_poolmanager(*args, **kwargs)
        _install_capture_pool(self.poolmanager)

    def proxy_manager_for(self, proxy: str, **proxy_kwargs: Any) -> Any:
        manager = super().proxy_manager_for(proxy, **proxy_kwargs)
        _install_capture_pool(manager)
        return manager


def _install_capture_pool(manager: Any) -> None:
    # SOCKS managers bring their own pool classes
    if manager.pool_classes_by_scheme.get("https") is not HTTPSConnectionPool:
        return
    manager.pool_classes_by_scheme = {
        **manager.pool_classes_by_scheme,
        "https": CertificateCaptureConnectionPool,
    }


def read_peer_certificate(response: requests.Response) -> PeerCertificate:
    """Read the peer certificate behind ``response``."""

    connection = getattr(response.raw, "connection", None) or getattr(
        response.raw, "_connection", None
    )
    der_bytes = getattr(connection, "peer_certificate", None)
    if der_bytes is None:
        sock = getattr(connection, "sock", None)
        if sock is None or not hasattr(sock, "getpeercert"):
            return PeerCertificate(authorized=False, error="peer certificate is unavailable")
        der_bytes = sock.getpeercert(binary_form=True)

    if not der_bytes:
        return PeerCertificate(authorized=False, error="peer sent no certificate")
    return PeerCertificate(authorized=True, fingerprint=format_fingerprint(der_bytes))


def _normalize_fingerprint(value: str) -> str:
    return value.replace(":", "").strip().lower()


class _Exchange:
    """Raw outcome of one HTTP round trip."""

    __slots__ = ("response", "body")

    def __init__(self, response: requests.Response, body: bytes) -> None:
        self.response = response
        self.body = body


class RequestExecutor:
    """
    Performs the HTTP exchange for a RequestDescriptor.

    The blocking ``requests`` call runs in a worker thread. Transport failures
    whose status code is in ``STATUS_CODES_TO_ABORT_ON`` are re-issued when
    the call opted into retries, up to ``RetryConfig.max_retries`` times.
    """

    def __init__(
        self,
        config_source: Callable[[], ClientConfig],
        *,
        session: requests.Session | None = None,
        retry_config: RetryConfig | None = None,
        certificate_reader: Callable[[requests.Response], PeerCertificate] = read_peer_certificate,
    ) -> None:
        self._config_source = config_source
        self._session = session or requests.Session()
        self.retry_config = retry_config or RetryConfig()
        self._certificate_reader = certificate_reader
        if config_source().trusted_cert_fingerprints:
            self._session.mount("https://", CertificateCaptureAdapter())

    async def execute(
        self,
        descriptor: RequestDescriptor,
        options: CallOptions | None = None,
    ) -> ApiResult:
        options = options or CallOptions()
        # let callers finish wiring up before any I/O callback can fire
        await asyncio.sleep(0)

        attempt = 0
        while True:
            try:
                exchange = await asyncio.to_thread(self._perform, descriptor)
            except TransportError as err:
                if self._should_retry(err, options, attempt):
                    delay = self.retry_config.calculate_delay(attempt)
                    attempt += 1
                    logger.warning(
                        "Transport error (status %s) on %s %s, retry %d in %.2fs",
                        err.status_code,
                        descriptor.method,
                        _strip_query(descriptor.url),
                        attempt,
                        delay,
                    )
                    await asyncio.sleep(delay)
                    continue
                return ApiResult(self._wrap_transport_error(err), None, None)
            except TrustError as err:
                logger.warning("Certificate check failed for %s: %s", _strip_query(descriptor.url), err)
                return ApiResult(err, None, None)

            return self._classify(exchange)

    def _perform(self, descriptor: RequestDescriptor) -> _Exchange:
        config = self._config_source()
        logger.debug("%s %s", descriptor.method, _strip_query(descriptor.url))

        kwargs: dict[str, Any] = {
            "headers": dict(descriptor.headers),
            "timeout": descriptor.timeout,
            "stream": True,
        }
        if descriptor.oauth is not None:
            kwargs["auth"] = descriptor.oauth.to_auth()
        if descriptor.encoding is BodyEncoding.MULTIPART:
            kwargs["files"] = descriptor.multipart_files()

        try:
            response = self._session.request(descriptor.method, descriptor.url, **kwargs)
        except requests.exceptions.SSLError as exc:
            if config.trusted_cert_fingerprints:
                raise TrustError(f"TLS handshake failed: {exc}") from exc
            raise _transport_error(exc) from exc
        except requests.RequestException as exc:
            raise _transport_error(exc) from exc

        if config.trusted_cert_fingerprints:
            try:
                self._check_certificate(response, config.trusted_cert_fingerprints)
            except TrustError:
                response.close()
                raise

        try:
            body = response.content
        except requests.RequestException as exc:
            raise _transport_error(exc) from exc

        return _Exchange(response, body)

    def _check_certificate(self, response: requests.Response, trusted: tuple[str, ...]) -> None:
        peer = self._certificate_reader(response)
        if not peer.authorized:
            raise TrustError(
                f"The peer certificate was not signed; {peer.error or 'unauthorized'}",
                status_code=response.status_code,
            )

        trusted_set = {_normalize_fingerprint(item) for item in trusted}
        if not peer.fingerprint or _normalize_fingerprint(peer.fingerprint) not in trusted_set:
            raise TrustError(
                f"Certificate untrusted. Trusted fingerprints are: {','.join(trusted)}. "
                f"Got fingerprint: {peer.fingerprint}.",
                status_code=response.status_code,
            )

    def _classify(self, exchange: _Exchange) -> ApiResult:
        response = exchange.response
        raw_body = exchange.body
        body: Any = None

        if raw_body:
            try:
                body = json.loads(raw_body.decode("utf-8"))
            except (UnicodeDecodeError, ValueError) as exc:
                err = DecodeError(
                    "JSON decode error: Twitter HTTP response body was not valid JSON",
                    status_code=response.status_code,
                    all_errors=[{"error": str(exc)}],
                    raw_body=raw_body,
                )
                return ApiResult(err, raw_body, response)

        if isinstance(body, Mapping) and (body.get("error") or body.get("errors")):
            err = self._application_error(response, body)
            err.raw_body = raw_body
            logger.debug("API error %s (status %s)", err.message, err.status_code)
            return ApiResult(attach_body_info(err, body), body, response)

        return ApiResult(None, body, response)

    @staticmethod
    def _application_error(response: requests.Response, body: Mapping[str, Any]) -> ApplicationError:
        codes = [
            entry.get("code")
            for entry in body.get("errors") or []
            if isinstance(entry, Mapping)
        ]
        if response.status_code == 429 or RATE_LIMIT_ERROR_CODE in codes:
            info = RateLimitInfo.from_headers(response.headers)
            return RateLimitExceeded(
                "Twitter API Error",
                reset_at=info.reset_at,
                status_code=response.status_code,
            )
        return ApplicationError("Twitter API Error", status_code=response.status_code)

    def _should_retry(self, err: TransportError, options: CallOptions, attempt: int) -> bool:
        return (
            options.retry
            and err.status_code in STATUS_CODES_TO_ABORT_ON
            and attempt < self.retry_config.max_retries
        )

    @staticmethod
    def _wrap_transport_error(err: TransportError) -> TransportError:
        err.status_code = None
        err.code = None
        err.all_errors = ()
        return err


def _transport_error(exc: requests.RequestException) -> TransportError:
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    return TransportError(str(exc) or type(exc).__name__, status_code=status_code)


def _strip_query(url: str) -> str:
    return url.partition("?")[0]


"""
Chunked media upload (INIT/APPEND/FINALIZE/STATUS) built on the client verbs.
"""

from __future__ import annotations

import asyncio
import logging
import mimetypes
from pathlib import Path
from typing import Any, Awaitable, Callable, Mapping, Protocol

from pydantic import ValidationError

from twit_client.exceptions import (
    DecodeError,
    MediaProcessingFailed,
    MediaProcessingTimeout,
    MediaValidationError,
)
from twit_client.models import ApiResult, MediaProcessingInfo, MediaUploadResult
from twit_client.settings import MEDIA_UPLOAD, MEDIA_UPLOAD_PATH, UPLOAD_CHUNK_BYTES, UPLOAD_MAX_BYTES

logger = logging.getLogger(__name__)

STATUS_URL = f"{MEDIA_UPLOAD}{MEDIA_UPLOAD_PATH}.json"

ResultCallback = Callable[[Any, Any, Any], None]


class MediaClient(Protocol):
    """Protocol subset of the client consumed by the uploader."""

    async def get(self, path: str, params: Any = None, callback: ResultCallback | None = None) -> ApiResult:
        ...

    async def post(self, path: str, params: Any = None, callback: ResultCallback | None = None) -> ApiResult:
        ...


class Uploader(Protocol):
    """Constructed with ``(params, client)``; ``upload`` reports through ``callback``."""

    async def upload(self, callback: ResultCallback | None = None) -> ApiResult:
        ...


UploaderFactory = Callable[[Mapping[str, Any], MediaClient], Uploader]


class ChunkedMediaUploader:
    """
    Uploads ``params["file_path"]`` through the chunked media/upload API.

    The file is checked when the uploader is created, so a missing or
    unsupported file raises ``MediaValidationError`` before any request.
    Returns the FINALIZE reply, or the last STATUS reply when the media
    needed server-side processing.
    """

    def __init__(
        self,
        params: Mapping[str, Any],
        client: MediaClient,
        *,
        chunk_size: int = UPLOAD_CHUNK_BYTES,
        poll_interval: float = 2.0,
        timeout: float = 60.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if not isinstance(params, Mapping) or not params.get("file_path"):
            raise MediaValidationError("Must specify `file_path` to upload media.")

        self.client = client
        self.path = self._validate_path(Path(params["file_path"]))
        self.total_bytes = self._validate_size(self.path)
        self.media_type = self._validate_media_type(self.path)
        self.media_category: str | None = params.get("media_category")
        self.chunk_size = chunk_size
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.sleep = sleep

    async def upload(self, callback: ResultCallback | None = None) -> ApiResult:
        result = await self._run()
        if callback is not None:
            callback(*result)
        return result

    async def _run(self) -> ApiResult:
        init_params: dict[str, Any] = {
            "command": "INIT",
            "media_type": self.media_type,
            "total_bytes": self.total_bytes,
        }
        if self.media_category:
            init_params["media_category"] = self.media_category

        logger.debug("INIT upload of %s (%d bytes)", self.path.name, self.total_bytes)
        init = await self.client.post(MEDIA_UPLOAD_PATH, init_params)
        if init.error:
            return init

        try:
            media_id = MediaUploadResult.from_api(init.data).media_id
        except (TypeError, ValidationError) as exc:
            return ApiResult(
                DecodeError(f"INIT reply carried no media_id: {exc}", twitter_reply=init.data),
                init.data,
                init.response,
            )

        try:
            appended = await self._append_segments(media_id)
        except OSError as exc:
            return ApiResult(
                MediaValidationError(f"Could not read media file '{self.path}': {exc}"),
                None,
                None,
            )
        if appended is not None:
            return appended

        logger.debug("FINALIZE media %s", media_id)
        finalize = await self.client.post(
            MEDIA_UPLOAD_PATH,
            {"command": "FINALIZE", "media_id": media_id},
        )
        if finalize.error:
            return finalize
        return await self._await_processing(finalize, media_id)

    async def _append_segments(self, media_id: str) -> ApiResult | None:
        """Send the file in order; returns the first failed APPEND result."""

        with self.path.open("rb") as file_obj:
            segment_index = 0
            while True:
                chunk = await asyncio.to_thread(file_obj.read, self.chunk_size)
                if not chunk:
                    return None
                logger.debug("APPEND segment %d of media %s", segment_index, media_id)
                append = await self.client.post(
                    MEDIA_UPLOAD_PATH,
                    {
                        "command": "APPEND",
                        "media_id": media_id,
                        "segment_index": segment_index,
                        "media": chunk,
                    },
                )
                if append.error:
                    return append
                segment_index += 1

    async def _await_processing(self, result: ApiResult, media_id: str) -> ApiResult:
        try:
            info = _processing_info(result.data)
        except DecodeError as err:
            return ApiResult(err, result.data, result.response)
        if info is None:
            return result

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout
        current = result
        while info is not None:
            state = info.state.lower()
            if state == "failed":
                return ApiResult(
                    MediaProcessingFailed(
                        info.error.message if info.error and info.error.message else "Media processing failed.",
                        code=info.error.code if info.error else None,
                        twitter_reply=current.data,
                    ),
                    current.data,
                    current.response,
                )
            if state in {"succeeded", "success"}:
                return current
            if state not in {"pending", "in_progress"}:
                break

            wait_seconds = info.check_after_secs or self.poll_interval
            if loop.time() + wait_seconds > deadline:
                break
            await self.sleep(wait_seconds)

            current = await self.client.get(STATUS_URL, {"command": "STATUS", "media_id": media_id})
            if current.error:
                return current
            try:
                info = _processing_info(current.data)
            except DecodeError as err:
                return ApiResult(err, current.data, current.response)

        if info is None:
            return current
        return ApiResult(
            MediaProcessingTimeout(
                "Timed out waiting for media processing to complete.",
                twitter_reply=current.data,
            ),
            current.data,
            current.response,
        )

    @staticmethod
    def _validate_path(path: Path) -> Path:
        resolved = path.expanduser()
        if not resolved.exists() or not resolved.is_file():
            raise MediaValidationError(f"Media file '{path}' does not exist or is not a file.")
        return resolved

    @staticmethod
    def _validate_size(path: Path) -> int:
        size = path.stat().st_size
        if size == 0:
            raise MediaValidationError(f"Media file '{path}' is empty.")
        if size > UPLOAD_MAX_BYTES:
            raise MediaValidationError(
                f"Media file '{path}' exceeds the {UPLOAD_MAX_BYTES} byte size limit."
            )
        return size

    @staticmethod
    def _validate_media_type(path: Path) -> str:
        mime_type, _ = mimetypes.guess_type(path.name)
        if mime_type is None or not mime_type.startswith(("image/", "video/")):
            raise MediaValidationError(
                f"Unsupported media MIME type '{mime_type}' for '{path.name}'."
            )
        return mime_type


def _processing_info(payload: Any) -> MediaProcessingInfo | None:
    if not isinstance(payload, Mapping) or not isinstance(payload.get("processing_info"), Mapping):
        return None
    try:
        return MediaProcessingInfo.model_validate(payload["processing_info"])
    except ValidationError as exc:
        raise DecodeError(
            f"Malformed processing_info in upload reply: {exc}", twitter_reply=payload
        ) from exc

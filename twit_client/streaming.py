"""
Streaming connection handle and its asynchronous configuration.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from enum import Enum
from typing import Any, Callable

from twit_client.exceptions import TwitError
from twit_client.models import CallOptions, RequestDescriptor
from twit_client.request_builder import RequestOptionsBuilder

logger = logging.getLogger(__name__)

FATAL_ERROR = "fatal_error"

Listener = Callable[..., Any]


class StreamState(str, Enum):
    PENDING = "pending"
    CONFIGURED = "configured"
    FAILED = "failed"


class StreamingConnection:
    """
    Handle to a streaming connection that is configured after it is returned.

    Listeners may be attached at any time; the request descriptor and call
    options are filled in exactly once, or a ``fatal_error`` event is emitted
    instead. Connecting and reconnecting is left to the consumer.
    """

    def __init__(self) -> None:
        self.req_opts: RequestDescriptor | None = None
        self.twit_options: CallOptions | None = None
        self.error: TwitError | None = None
        self._state = StreamState.PENDING
        self._listeners: dict[str, list[tuple[Listener, bool]]] = defaultdict(list)
        self._settled: asyncio.Future[RequestDescriptor] | None = None
        self.setup_task: asyncio.Task[None] | None = None

    @property
    def state(self) -> StreamState:
        return self._state

    def on(self, event: str, listener: Listener) -> "StreamingConnection":
        self._listeners[event].append((listener, False))
        return self

    def once(self, event: str, listener: Listener) -> "StreamingConnection":
        self._listeners[event].append((listener, True))
        return self

    def off(self, event: str, listener: Listener) -> "StreamingConnection":
        self._listeners[event] = [
            entry for entry in self._listeners[event] if entry[0] is not listener
        ]
        return self

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def emit(self, event: str, *args: Any) -> bool:
        entries = list(self._listeners.get(event, ()))
        if not entries:
            return False
        self._listeners[event] = [entry for entry in entries if not entry[1]]
        for listener, _ in entries:
            listener(*args)
        return True

    def configure(self, descriptor: RequestDescriptor, options: CallOptions) -> None:
        if self._state is not StreamState.PENDING:
            raise RuntimeError(f"Streaming connection is already {self._state.value}.")
        self.req_opts = descriptor
        self.twit_options = options
        self._state = StreamState.CONFIGURED
        if self._settled is not None and not self._settled.done():
            self._settled.set_result(descriptor)

    def fail(self, err: TwitError) -> None:
        if self._state is not StreamState.PENDING:
            raise RuntimeError(f"Streaming connection is already {self._state.value}.")
        self.error = err
        self._state = StreamState.FAILED
        if self._settled is not None and not self._settled.done():
            self._settled.set_exception(err)
        if not self.emit(FATAL_ERROR, err):
            logger.warning("Streaming setup failed with no fatal_error listener: %s", err)

    async def wait_until_configured(self) -> RequestDescriptor:
        """Wait for setup to finish; raises the setup error if it failed."""

        if self._state is StreamState.CONFIGURED and self.req_opts is not None:
            return self.req_opts
        if self._state is StreamState.FAILED and self.error is not None:
            raise self.error
        if self._settled is None:
            self._settled = asyncio.get_running_loop().create_future()
        return await asyncio.shield(self._settled)


class StreamingConnectionFactory:
    """Returns a handle first and configures it on the next loop turn."""

    def __init__(self, builder: RequestOptionsBuilder) -> None:
        self._builder = builder

    def create(self, path: str, params: Any = None) -> StreamingConnection:
        """
        Create a streaming handle for ``path``.

        Must be called while an event loop is running; the descriptor is
        built by a task scheduled on that loop.
        """
        loop = asyncio.get_running_loop()
        connection = StreamingConnection()
        connection.setup_task = loop.create_task(self._configure(connection, path, params))
        return connection

    async def _configure(
        self,
        connection: StreamingConnection,
        path: str,
        params: Any,
    ) -> None:
        try:
            options = CallOptions.from_params(params)
            descriptor = await self._builder.build("POST", path, params, streaming=True)
        except TwitError as err:
            logger.debug("Streaming setup for %s failed: %s", path, err)
            connection.fail(err)
            return
        connection.configure(descriptor, options)

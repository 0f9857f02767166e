"""
ASGI side of the relay.

RelayResponse hands the raw ASGI `send` to the relay as a ClientSink and turns
the `http.disconnect` message into the relay's disconnect signal.
"""

from __future__ import annotations

import asyncio
from typing import Mapping, Optional

from starlette.background import BackgroundTask
from starlette.requests import ClientDisconnect
from starlette.responses import Response
from starlette.types import Receive, Scope, Send

from chatrelay.errors import ClientDisconnected
from chatrelay.llm.relay import SSE_HEADERS, StreamRelay, StreamSession


class AsgiSink:
    def __init__(self, send: Send, status_code: int, raw_headers, disconnected: asyncio.Event):
        self._send = send
        self._status_code = status_code
        self._raw_headers = raw_headers
        self._disconnected = disconnected
        self._closed = False

    async def _push(self, message) -> None:
        if self._disconnected.is_set():
            raise ClientDisconnected()
        try:
            await self._send(message)
        except (OSError, ClientDisconnect) as ex:
            raise ClientDisconnected() from ex

    async def open(self) -> None:
        await self._push(
            {
                "type": "http.response.start",
                "status": self._status_code,
                "headers": self._raw_headers,
            }
        )

    async def write(self, frame: str) -> None:
        if self._closed:
            raise ClientDisconnected("Client stream already closed")
        await self._push({"type": "http.response.body", "body": frame.encode("utf-8"), "more_body": True})

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._push({"type": "http.response.body", "body": b"", "more_body": False})


class RelayResponse(Response):
    media_type = "text/event-stream"

    def __init__(
        self,
        relay: StreamRelay,
        session: StreamSession,
        headers: Optional[Mapping[str, str]] = None,
        background: Optional[BackgroundTask] = None,
    ):
        # no super().__init__: a body-less init keeps content-length off the stream
        self.relay = relay
        self.session = session
        self.status_code = 200
        self.background = background
        self.init_headers({**SSE_HEADERS, **(headers or {})})

    @staticmethod
    async def _listen_for_disconnect(receive: Receive, disconnected: asyncio.Event) -> None:
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                disconnected.set()
                return

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        disconnected = asyncio.Event()
        sink = AsgiSink(send, self.status_code, self.raw_headers, disconnected)
        listener = asyncio.ensure_future(self._listen_for_disconnect(receive, disconnected))
        try:
            await self.relay.relay(self.session, sink, disconnected)
        finally:
            listener.cancel()

        if self.background is not None:
            await self.background()

# Streaming relay: backend chat-completions stream -> client SSE frames
from __future__ import annotations

import asyncio
import logging
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import Any, List, Optional, Protocol

import httpx

from chatrelay.errors import (
    BackendHTTPError,
    BackendUnreachable,
    ClientDisconnected,
    MalformedBackendChunk,
    RelayError,
)
from chatrelay.llm.events import RelayEvent
from chatrelay.llm.lines import LineBuffer, events_from_chunk, iter_lines, parse_data_line
from chatrelay.schemas import ConversationMessage
from chatrelay.utils.session_id import new_session_id

logger = logging.getLogger(__name__)

COMPLETIONS_PATH = "/v1/chat/completions"

CONNECT_ERROR = "Failed to connect to LLM server"
STREAM_ERROR = "Stream error"

SSE_HEADERS = {
    "Content-Type": "text/event-stream",
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Cache-Control",
}


class ClientSink(Protocol):
    """
    Client-facing half of the relay.

    write() and close() raise ClientDisconnected when the connection is gone.
    """

    async def open(self) -> None:
        ...

    async def write(self, frame: str) -> None:
        ...

    async def close(self) -> None:
        ...


@dataclass
class StreamSession:
    endpoint: str
    messages: List[ConversationMessage]
    session_id: str = field(default_factory=new_session_id)
    buffer: LineBuffer = field(default_factory=LineBuffer)
    # open | ended | failed | cancelled
    status: str = "open"
    tokens: int = 0
    malformed_lines: int = 0
    _backend: Optional["asyncio.Future[Any]"] = field(default=None, repr=False)

    @property
    def terminal(self) -> bool:
        return self.status != "open"

    def claim(self, status: str) -> bool:
        """
        Check-and-set the terminal status. Only the first caller wins; there is
        no await between the check and the set.
        """
        if self.terminal:
            return False
        self.status = status
        return True

    def bind(self, backend: "asyncio.Future[Any]") -> None:
        self._backend = backend

    def cancel(self) -> bool:
        """Cancellation token: abort the bound backend call unless already terminal."""
        if not self.claim("cancelled"):
            return False
        if self._backend is not None and not self._backend.done():
            self._backend.cancel()
        return True


class StreamRelay:
    """
    Drives one request/response exchange with the backend.

    A relay instance holds only configuration; every call works on its own
    StreamSession so instances can be shared across requests.
    """

    def __init__(
        self,
        connect_timeout_s: float = 10.0,
        read_timeout_s: Optional[float] = 300.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._timeout = httpx.Timeout(connect_timeout_s, read=read_timeout_s or None)
        self._transport = transport

    async def relay(self, session: StreamSession, sink: ClientSink, disconnected: asyncio.Event) -> None:
        # headers go out before any backend I/O
        try:
            await sink.open()
        except ClientDisconnected:
            session.claim("cancelled")
            logger.info("session %s: client gone before stream opened", session.session_id)
            return

        backend = asyncio.ensure_future(self._pump(session, sink))
        session.bind(backend)
        watcher = asyncio.ensure_future(disconnected.wait())

        try:
            done, _ = await asyncio.wait({backend, watcher}, return_when=asyncio.FIRST_COMPLETED)
            if backend not in done:
                if session.cancel():
                    logger.info("session %s: client disconnected, aborting backend request", session.session_id)
                await asyncio.wait({backend})
            if not backend.cancelled():
                backend.result()
        finally:
            watcher.cancel()
            # relay itself was cancelled; never leave the backend call running
            if not backend.done():
                session.cancel()
                backend.cancel()

        logger.info(
            "session %s: closed status=%s tokens=%d malformed_lines=%d",
            session.session_id,
            session.status,
            session.tokens,
            session.malformed_lines,
        )

    async def _pump(self, session: StreamSession, sink: ClientSink) -> None:
        url = f"{session.endpoint}{COMPLETIONS_PATH}"
        payload = {
            "messages": [m.model_dump() for m in session.messages],
            "stream": True,
        }
        streaming = False

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                logger.info("session %s: starting backend request to %s", session.session_id, url)
                async with client.stream(
                    "POST",
                    url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                ) as resp:
                    if not resp.is_success:
                        raise BackendHTTPError(resp.status_code)

                    logger.info("session %s: backend connected, starting stream", session.session_id)
                    streaming = True

                    async with aclosing(iter_lines(resp.aiter_bytes(), session.buffer)) as lines:
                        async for line in lines:
                            for event in self._translate(session, line):
                                await self._emit(session, sink, event)
                            if session.terminal:
                                return

            logger.info("session %s: backend stream ended", session.session_id)
            await self._emit(session, sink, RelayEvent.end())

        except ClientDisconnected:
            logger.info("session %s: client write failed, stopping relay", session.session_id)
        except BackendHTTPError as ex:
            await self._fail(session, sink, CONNECT_ERROR, ex)
        except httpx.HTTPError as ex:
            err = BackendUnreachable(f"{type(ex).__name__}: {ex}")
            await self._fail(session, sink, STREAM_ERROR if streaming else CONNECT_ERROR, err)

    def _translate(self, session: StreamSession, line: str) -> List[RelayEvent]:
        try:
            data = parse_data_line(line)
        except MalformedBackendChunk as ex:
            session.malformed_lines += 1
            logger.debug("session %s: error parsing JSON line %r", session.session_id, ex.line[:200])
            return []
        if data is None:
            return []
        return events_from_chunk(data)

    async def _emit(self, session: StreamSession, sink: ClientSink, event: RelayEvent) -> None:
        if event.terminal:
            if not session.claim("ended" if event.kind == "end" else "failed"):
                return
        elif session.terminal:
            return

        try:
            await sink.write(event.to_frame())
            if event.terminal:
                await sink.close()
        except ClientDisconnected:
            session.claim("cancelled")
            raise

        if event.kind == "token":
            session.tokens += 1

    async def _fail(self, session: StreamSession, sink: ClientSink, message: str, err: RelayError) -> None:
        if session.terminal:
            return
        logger.warning("session %s: backend failure (%s): %s", session.session_id, message, err)
        try:
            await self._emit(session, sink, RelayEvent.error(message))
        except ClientDisconnected:
            logger.info("session %s: client gone before error frame", session.session_id)

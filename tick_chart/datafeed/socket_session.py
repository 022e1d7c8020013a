"""
Websocket session.

Thin callback layer over aiohttp's client websocket:

    session = SocketSession(on_open=..., on_message=..., on_error=..., on_close=...)
    await session.connect(url)
    ...
    session.close()            # idempotent, on_close fires exactly once

Connection problems are surfaced through on_error / on_close, never raised.
There is no retry here; reconnecting is the caller's decision.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

import aiohttp

from ..errors import StreamConnectionError, TickParseError

logger = logging.getLogger(__name__)

# RFC 6455 close codes
NORMAL_CLOSURE = 1000
ABNORMAL_CLOSURE = 1006

MessageCallback = Callable[[bytes | str], None]
ErrorCallback = Callable[[StreamConnectionError], None]
CloseCallback = Callable[[int], None]


class SocketSession:
    """
    Single-use websocket connection with synchronous callbacks.

    Open/closed state is only observable through the callbacks. Create a new
    session for every (re)connect.
    """

    def __init__(
        self,
        on_open: Optional[Callable[[], None]] = None,
        on_message: Optional[MessageCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        on_close: Optional[CloseCallback] = None,
        heartbeat: Optional[float] = 30.0,
    ) -> None:
        self.on_open = on_open
        self.on_message = on_message
        self.on_error = on_error
        self.on_close = on_close
        self.heartbeat = heartbeat

        self.url: Optional[str] = None
        self.close_code: Optional[int] = None
        self.messages_received: int = 0
        self.messages_dropped: int = 0

        self._client: Optional[aiohttp.ClientSession] = None
        self._owns_client = False
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None
        self._reader: Optional[asyncio.Task] = None
        self._shutdown: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def connect(
        self,
        url: str,
        client: Optional[aiohttp.ClientSession] = None,
    ) -> "SocketSession":
        """
        Open the websocket and start reading.

        On failure on_error then on_close(1006) fire and the session is closed.
        """
        if self._closed or self._ws is not None:
            raise RuntimeError("SocketSession is single-use; create a new one to reconnect")

        self.url = url
        self._owns_client = client is None
        self._client = client if client is not None else aiohttp.ClientSession()

        try:
            self._ws = await self._client.ws_connect(url, heartbeat=self.heartbeat)
        except (aiohttp.ClientError, OSError, asyncio.TimeoutError) as e:
            logger.warning("[SESSION] Connect to %s failed: %s", url, e)
            self._emit_error(StreamConnectionError(f"connect failed: {e}", url))
            await self._release_client()
            self._finish(ABNORMAL_CLOSURE)
            return self

        if self._closed:
            # close() was called while the handshake was in flight
            await self._ws.close()
            await self._release_client()
            return self

        logger.info("[SESSION] Connected to %s", url)
        if self.on_open is not None:
            self.on_open()

        self._reader = asyncio.create_task(self._read_loop(self._ws))
        return self

    async def _read_loop(self, ws: aiohttp.ClientWebSocketResponse) -> None:
        """
        Pump frames into on_message until the socket closes.

        HOT PATH - runs once per message (~10-100+ per second).
        """
        errored = False
        try:
            async for msg in ws:
                if self._closed:
                    # close() already ran; frames still buffered by aiohttp are discarded
                    break
                if msg.type in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
                    self._dispatch(msg.data)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    exc = ws.exception()
                    logger.warning("[SESSION] Socket error: %s", exc)
                    self._emit_error(StreamConnectionError(f"socket error: {exc}", self.url))
                    errored = True
                    break
        except (aiohttp.ClientError, OSError) as e:
            logger.warning("[SESSION] Read failed: %s", e)
            self._emit_error(StreamConnectionError(f"read failed: {e}", self.url))
            errored = True
        finally:
            code = ws.close_code if ws.close_code is not None else ABNORMAL_CLOSURE
            if code != NORMAL_CLOSURE and not errored:
                # Peer went away without a clean close
                self._emit_error(StreamConnectionError(f"connection lost (code={code})", self.url))
            await ws.close()
            await self._release_client()
            self._finish(code)

    def _dispatch(self, raw: bytes | str) -> None:
        if self._closed:
            return
        self.messages_received += 1
        if self.on_message is None:
            return
        try:
            self.on_message(raw)
        except TickParseError as e:
            # Malformed frame: drop it, keep the session alive
            self.messages_dropped += 1
            logger.debug("[SESSION] Dropped frame: %s", e)
        except Exception:
            self.messages_dropped += 1
            logger.exception("[SESSION] on_message handler failed")

    def _emit_error(self, error: StreamConnectionError) -> None:
        if self.on_error is not None and not self._closed:
            self.on_error(error)

    def _finish(self, code: int) -> None:
        """Mark closed and fire on_close. Only the first call has any effect."""
        if self._closed:
            return
        self._closed = True
        self.close_code = code
        logger.info("[SESSION] Closed (code=%s, messages=%d, dropped=%d)",
                    code, self.messages_received, self.messages_dropped)
        if self.on_close is not None:
            self.on_close(code)

    async def _release_client(self) -> None:
        client, self._client = self._client, None
        if client is not None and self._owns_client:
            await client.close()

    def close(self) -> None:
        """
        Close the session. Safe to call any number of times.

        on_close fires synchronously on the first call; socket teardown is
        scheduled on the running loop.
        """
        if self._closed:
            return
        self._finish(NORMAL_CLOSURE)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is not None and (self._ws is not None or self._reader is not None):
            self._shutdown = loop.create_task(self._teardown())

    async def _teardown(self) -> None:
        reader = self._reader
        if reader is not None and not reader.done():
            reader.cancel()
            try:
                await reader
            except asyncio.CancelledError:
                pass
        if self._ws is not None:
            await self._ws.close()
        await self._release_client()

    async def wait_closed(self) -> None:
        """Wait until the reader and any teardown have finished."""
        for task in (self._reader, self._shutdown):
            if task is not None and not task.done():
                try:
                    await task
                except asyncio.CancelledError:
                    pass

"""
WebSocket transport for the chat service.

One instance wraps one connection attempt. Lifecycle events are pushed to a
TransportListener: ``on_open`` once the handshake succeeds, ``on_message`` per
text frame, ``on_error`` for failures, and exactly one ``on_close(code, reason)``
at the end whether or not the connection ever opened.
"""

import asyncio
import logging
from typing import Callable, Optional, Protocol

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidStatus, InvalidURI
from websockets.protocol import State

from gitboss_ai.errors import NotConnected

logger = logging.getLogger("gitboss_ai.transport.websocket")

NORMAL_CLOSURE = 1000
POLICY_VIOLATION = 1008
ABNORMAL_CLOSURE = 1006
AUTH_FAILURE_CLOSE_CODE = 4001
AUTH_FAILURE_CODES = frozenset({POLICY_VIOLATION, AUTH_FAILURE_CLOSE_CODE})


class TransportListener(Protocol):
    def on_open(self) -> None: ...
    def on_message(self, data: str) -> None: ...
    def on_close(self, code: int, reason: str) -> None: ...
    def on_error(self, error: BaseException) -> None: ...


class Transport(Protocol):
    @property
    def is_open(self) -> bool: ...
    def start(self) -> None: ...
    def send(self, text: str) -> None: ...
    def close(self, code: int = NORMAL_CLOSURE, reason: str = "") -> None: ...


TransportFactory = Callable[[str, TransportListener], Transport]


def redact_url(url: str) -> str:
    """Drop the query string so the token never reaches the logs."""
    return url.split("?", 1)[0]


class WebSocketTransport:
    def __init__(
        self,
        url: str,
        listener: TransportListener,
        open_timeout: float = 10.0,
        ping_interval: Optional[float] = 30.0,
        close_timeout: float = 10.0,
    ):
        self._url = url
        self._listener = listener
        self._open_timeout = open_timeout
        self._ping_interval = ping_interval
        self._close_timeout = close_timeout
        self._ws: Optional[ClientConnection] = None
        self._task: Optional[asyncio.Task[None]] = None
        self._closing: Optional[tuple[int, str]] = None
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def is_open(self) -> bool:
        return self._closing is None and self._ws is not None and self._ws.state is State.OPEN

    def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    def send(self, text: str) -> None:
        """Queue a text frame. Raises NotConnected if the socket isn't open."""
        ws = self._ws
        if ws is None or not self.is_open:
            raise NotConnected()

        async def _do_send() -> None:
            try:
                await ws.send(text)
            except ConnectionClosed as e:
                logger.error(f"Send failed, connection closed: {e}")

        self._spawn(_do_send())

    def close(self, code: int = NORMAL_CLOSURE, reason: str = "") -> None:
        if self._closing is not None:
            return
        self._closing = (code, reason)
        if self._ws is not None:
            self._spawn(self._ws.close(code, reason))
        elif self._task is not None:
            self._task.cancel()

    def _spawn(self, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _run(self) -> None:
        code, reason = ABNORMAL_CLOSURE, ""
        try:
            async with connect(
                self._url,
                open_timeout=self._open_timeout,
                ping_interval=self._ping_interval,
                close_timeout=self._close_timeout,
            ) as ws:
                self._ws = ws
                logger.info("WebSocket connection established: %s", redact_url(self._url))
                self._listener.on_open()
                async for message in ws:
                    if isinstance(message, bytes):
                        message = message.decode("utf-8", errors="replace")
                    self._listener.on_message(message)
        except asyncio.CancelledError:
            code, reason = self._closing or (ABNORMAL_CLOSURE, "cancelled")
            self._listener.on_close(code, reason)
            raise
        except InvalidStatus as e:
            status = e.response.status_code
            logger.warning("WebSocket handshake rejected with HTTP %s", status)
            code = AUTH_FAILURE_CLOSE_CODE if status in (401, 403) else ABNORMAL_CLOSURE
            reason = f"HTTP {status}"
            self._listener.on_error(e)
        except ConnectionClosed:
            pass
        except (OSError, InvalidHandshake, InvalidURI, asyncio.TimeoutError) as e:
            logger.warning("WebSocket error: %s", e)
            self._listener.on_error(e)

        ws = self._ws
        if self._closing is not None:
            code, reason = self._closing
        elif ws is not None and ws.close_code is not None:
            code, reason = ws.close_code, ws.close_reason or ""
        logger.info("WebSocket closed: %s %s", code, reason)
        self._listener.on_close(code, reason)


def websocket_transport(url: str, listener: TransportListener) -> WebSocketTransport:
    return WebSocketTransport(url, listener)

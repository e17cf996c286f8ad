"""
Reconnecting chat connection.

State machine (``ConnectionStatus``):

    IDLE --connect()--> CONNECTING --open--> OPEN
    CONNECTING/OPEN --close 1000--> CLOSED            (no reconnect)
    CONNECTING/OPEN --close 1008/4001--> FAILED       (authentication failed)
    CONNECTING/OPEN --abnormal close--> CLOSED, timer --> CONNECTING
    ... after max_reconnect_attempts abnormal closes --> FAILED
    any --close()--> CLOSED                            (timers cancelled)

Backoff is ``min(1000 * 2**attempt, 30000)`` ms. Timers go through an
injectable Scheduler; the socket comes from an injectable TransportFactory.
"""

import asyncio
import functools
import logging
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from gitboss_ai.auth import TokenStore
from gitboss_ai.errors import (
    AuthError,
    AuthenticationRequired,
    ConnectionFailed,
    ConnectionLost,
    GitBossError,
    MalformedFrame,
    NotConnected,
    ServerReportedError,
)
from gitboss_ai.models.message import FALLBACK_USER_SENDER, ChatMessage, FrameType, now_ms
from gitboss_ai.scheduler import LoopScheduler, Scheduler, TimerHandle
from gitboss_ai.session import ChatSession
from gitboss_ai.transport.frames import build_message_frame, parse_frame
from gitboss_ai.transport.websocket import (
    AUTH_FAILURE_CODES,
    NORMAL_CLOSURE,
    Transport,
    TransportFactory,
    redact_url,
    websocket_transport,
)

logger = logging.getLogger("gitboss_ai.connection")

BASE_RECONNECT_DELAY_MS = 1000
MAX_RECONNECT_DELAY_MS = 30000
DEFAULT_MAX_RECONNECT_ATTEMPTS = 5
DEFAULT_TYPING_TIMEOUT_S = 10.0

AUTH_REQUIRED_MESSAGE = "Authentication required. Please log in again."
AUTH_FAILED_MESSAGE = "Authentication failed. Please log in again."
CONNECTION_FAILED_MESSAGE = "Connection failed after multiple attempts. Please refresh the page."


class ConnectionStatus(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
    FAILED = "failed"


class ConnectionState(BaseModel):
    status: ConnectionStatus = ConnectionStatus.IDLE
    reconnect_attempts: int = 0
    last_error: Optional[str] = None


def reconnect_delay_ms(attempt: int) -> int:
    return min(BASE_RECONNECT_DELAY_MS * (2 ** attempt), MAX_RECONNECT_DELAY_MS)


def reconnecting_message(delay_ms: int) -> str:
    return f"Connection lost. Reconnecting in {round(delay_ms / 1000)}s..."


def transition_on_close(
    state: ConnectionState, code: int, max_attempts: int = DEFAULT_MAX_RECONNECT_ATTEMPTS,
) -> tuple[ConnectionState, Optional[int]]:
    """Next state after a transport close, plus the reconnect delay in ms (None = don't reconnect)."""
    if code == NORMAL_CLOSURE:
        return state.model_copy(update={"status": ConnectionStatus.CLOSED}), None
    if code in AUTH_FAILURE_CODES:
        return state.model_copy(update={
            "status": ConnectionStatus.FAILED, "last_error": AUTH_FAILED_MESSAGE,
        }), None
    if state.reconnect_attempts >= max_attempts:
        return state.model_copy(update={
            "status": ConnectionStatus.FAILED, "last_error": CONNECTION_FAILED_MESSAGE,
        }), None
    delay = reconnect_delay_ms(state.reconnect_attempts)
    return state.model_copy(update={
        "status": ConnectionStatus.CLOSED,
        "reconnect_attempts": state.reconnect_attempts + 1,
        "last_error": reconnecting_message(delay),
    }), delay


class _TransportEvents:
    """Routes transport callbacks to the connection, tagged with the attempt that produced them."""

    def __init__(self, connection: "ChatConnection", generation: int):
        self.on_open = functools.partial(connection._handle_open, generation)
        self.on_message = functools.partial(connection._handle_message, generation)
        self.on_close = functools.partial(connection._handle_close, generation)
        self.on_error = functools.partial(connection._handle_error, generation)


class ChatConnection:
    """Owns at most one live chat socket and the ChatSession fed by it."""

    def __init__(
        self,
        ws_url: str,
        tokens: TokenStore,
        session: Optional[ChatSession] = None,
        scheduler: Optional[Scheduler] = None,
        transport_factory: Optional[TransportFactory] = None,
        max_reconnect_attempts: int = DEFAULT_MAX_RECONNECT_ATTEMPTS,
        typing_timeout_s: float = DEFAULT_TYPING_TIMEOUT_S,
    ):
        self._ws_url = ws_url
        self._tokens = tokens
        self.session = session or ChatSession()
        self._scheduler = scheduler or LoopScheduler()
        self._transport_factory = transport_factory or websocket_transport
        self._max_reconnect_attempts = max_reconnect_attempts
        self._typing_timeout_s = typing_timeout_s

        self._state = ConnectionState()
        self._transport: Optional[Transport] = None
        self._generation = 0
        self._connecting = False
        self._reconnect_timer: Optional[TimerHandle] = None
        self._typing_timer: Optional[TimerHandle] = None
        self._open_waiters: list[asyncio.Future[bool]] = []

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def status(self) -> ConnectionStatus:
        return self._state.status

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_timer is not None

    # -- lifecycle ---------------------------------------------------------

    def connect(self) -> bool:
        """Start a fresh connection (manual retry resets the backoff counter).

        Returns False if an attempt is already in flight or no valid token exists.
        """
        if self._connecting:
            logger.debug("Connection attempt already in flight, ignoring connect()")
            return False
        self._state = self._state.model_copy(update={"reconnect_attempts": 0})
        return self._start_attempt()

    def close(self, reason: str = "Client closed") -> None:
        """Deliberate teardown: normal close code, all timers cancelled, later events ignored."""
        self._cancel_reconnect_timer()
        self._cancel_typing_timer()
        self._generation += 1
        self._connecting = False
        transport, self._transport = self._transport, None
        if transport is not None:
            transport.close(NORMAL_CLOSURE, reason)
        self._state = self._state.model_copy(update={"status": ConnectionStatus.CLOSED})
        self.session.set_connected(False)
        self.session.set_typing(False)
        self._resolve_open_waiters(False)
        logger.info("Chat connection closed: %s", reason)

    async def wait_until_open(self, timeout: Optional[float] = None) -> bool:
        """True once OPEN; False on FAILED, deliberate close or timeout. Reconnects keep waiting."""
        status = self._state.status
        if status is ConnectionStatus.OPEN:
            return True
        if status in (ConnectionStatus.FAILED, ConnectionStatus.IDLE):
            return False
        if status is ConnectionStatus.CLOSED and not self.reconnect_pending:
            return False
        fut: asyncio.Future[bool] = asyncio.get_running_loop().create_future()
        self._open_waiters.append(fut)
        try:
            return await asyncio.wait_for(fut, timeout=timeout)
        except asyncio.TimeoutError:
            return False
        finally:
            self._open_waiters.remove(fut)

    # -- sending -----------------------------------------------------------

    def send(self, content: str) -> Optional[ChatMessage]:
        """Transmit a chat message and echo it into the session log.

        On failure nothing is sent or appended, ``session.error`` is set and
        None is returned.
        """
        transport = self._transport
        if transport is None or self._state.status is not ConnectionStatus.OPEN or not transport.is_open:
            self.session.set_error(NotConnected())
            return None
        if self._tokens.get() is None:
            self.session.set_error(AuthenticationRequired())
            return None

        timestamp = now_ms()
        transport.send(build_message_frame(content, timestamp))
        message = ChatMessage.from_user(
            content, sender=self._tokens.username() or FALLBACK_USER_SENDER, timestamp=timestamp,
        )
        self.session.append(message)
        self._start_typing()
        return message

    # -- transport events --------------------------------------------------

    def _start_attempt(self) -> bool:
        self._cancel_reconnect_timer()
        self._connecting = True
        self._generation += 1
        previous, self._transport = self._transport, None
        if previous is not None:
            previous.close(NORMAL_CLOSURE, "Reconnecting")

        url = self._tokens.authenticated_ws_url(self._ws_url)
        if not url:
            self._connecting = False
            self._fail(AuthenticationRequired(AUTH_REQUIRED_MESSAGE))
            return False

        self._state = self._state.model_copy(update={"status": ConnectionStatus.CONNECTING})
        logger.info("Connecting to %s", redact_url(url))
        try:
            self._transport = self._transport_factory(url, _TransportEvents(self, self._generation))
            self._transport.start()
        except (OSError, ValueError, RuntimeError) as e:
            logger.error("Error creating WebSocket: %s", e)
            self._transport = None
            self._connecting = False
            self._set_error(GitBossError("connection_error", f"Connection error: {e}"))
            return False
        return True

    def _handle_open(self, generation: int) -> None:
        if generation != self._generation:
            return
        self._connecting = False
        self._state = ConnectionState(status=ConnectionStatus.OPEN)
        self.session.set_connected(True)
        self.session.set_error(None)
        self._resolve_open_waiters(True)

    def _handle_message(self, generation: int, data: str) -> None:
        if generation != self._generation:
            return
        try:
            frame = parse_frame(data)
        except MalformedFrame as e:
            logger.debug("Dropping malformed frame: %s", e)
            return

        if frame.type == FrameType.RESPONSE:
            if frame.content is None:
                logger.debug("Dropping response frame without content")
                return
            self.session.append(ChatMessage.from_assistant(frame.content))
            self._clear_typing()
        elif frame.type == FrameType.ERROR:
            self._set_error(ServerReportedError(frame.content or "Unknown server error"))
            self._clear_typing()
        elif frame.type == FrameType.CONNECTION_SUCCESSFUL:
            logger.info("Authentication successful")
        else:
            logger.debug("Dropping frame with unknown type %r", frame.type)

    def _handle_error(self, generation: int, error: BaseException) -> None:
        if generation != self._generation:
            return
        # the close event that follows carries the outcome
        logger.warning("WebSocket error: %s", error)
        self._connecting = False

    def _handle_close(self, generation: int, code: int, reason: str) -> None:
        if generation != self._generation:
            return
        logger.info("WebSocket closed: %s %s", code, reason)
        self._transport = None
        self._connecting = False
        self.session.set_connected(False)

        state, delay_ms = transition_on_close(self._state, code, self._max_reconnect_attempts)
        self._state = state
        if delay_ms is not None:
            self.session.set_error(ConnectionLost(state.last_error or "", state.reconnect_attempts, delay_ms))
            self._cancel_reconnect_timer()
            self._reconnect_timer = self._scheduler.call_later(delay_ms / 1000, self._on_reconnect_timer)
        elif state.status is ConnectionStatus.FAILED:
            failure = AuthError(AUTH_FAILED_MESSAGE) if code in AUTH_FAILURE_CODES else ConnectionFailed(CONNECTION_FAILED_MESSAGE)
            self.session.set_error(failure)
            self._resolve_open_waiters(False)
        else:
            self._resolve_open_waiters(False)

    def _on_reconnect_timer(self) -> None:
        self._reconnect_timer = None
        if self._connecting:
            return
        logger.info("Reconnecting (attempt %d/%d)", self._state.reconnect_attempts, self._max_reconnect_attempts)
        self._start_attempt()

    # -- helpers -----------------------------------------------------------

    def _fail(self, failure: GitBossError) -> None:
        self._state = self._state.model_copy(update={"status": ConnectionStatus.FAILED, "last_error": failure.message})
        self.session.set_connected(False)
        self.session.set_error(failure)
        self._resolve_open_waiters(False)

    def _set_error(self, failure: GitBossError) -> None:
        self._state = self._state.model_copy(update={"last_error": failure.message})
        self.session.set_error(failure)

    def _start_typing(self) -> None:
        self._cancel_typing_timer()
        self.session.set_typing(True)
        self._typing_timer = self._scheduler.call_later(self._typing_timeout_s, self._on_typing_timeout)

    def _on_typing_timeout(self) -> None:
        self._typing_timer = None
        self.session.set_typing(False)

    def _clear_typing(self) -> None:
        self._cancel_typing_timer()
        self.session.set_typing(False)

    def _cancel_reconnect_timer(self) -> None:
        if self._reconnect_timer is not None:
            self._reconnect_timer.cancel()
            self._reconnect_timer = None

    def _cancel_typing_timer(self) -> None:
        if self._typing_timer is not None:
            self._typing_timer.cancel()
            self._typing_timer = None

    def _resolve_open_waiters(self, opened: bool) -> None:
        for fut in self._open_waiters:
            if not fut.done():
                fut.set_result(opened)

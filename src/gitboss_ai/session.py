"""
Chat session state: the append-only message log plus the connection, error
and typing flags derived from connection events and local sends.
"""

import asyncio
from typing import Callable, Optional

from gitboss_ai.errors import AuthError, AuthenticationRequired, ConnectionFailed, GitBossError, ServerReportedError
from gitboss_ai.models.message import ChatMessage

# Failures that end a pending wait_for_reply() instead of letting it run to its timeout
REPLY_BREAKING_ERRORS = (ServerReportedError, ConnectionFailed, AuthenticationRequired, AuthError)

SessionListener = Callable[["ChatSession"], None]


class ChatSession:
    def __init__(self) -> None:
        self._messages: list[ChatMessage] = []
        self._is_connected = False
        self._failure: Optional[GitBossError] = None
        self._is_typing = False
        self._listeners: list[SessionListener] = []
        self._reply_waiters: list[asyncio.Future[ChatMessage]] = []

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return tuple(self._messages)

    @property
    def is_connected(self) -> bool:
        return self._is_connected

    @property
    def error(self) -> Optional[str]:
        return self._failure.message if self._failure else None

    @property
    def failure(self) -> Optional[GitBossError]:
        return self._failure

    @property
    def is_typing(self) -> bool:
        return self._is_typing

    def add_listener(self, listener: SessionListener) -> Callable[[], None]:
        """Call ``listener(session)`` after every change. Returns a cleanup function."""
        self._listeners.append(listener)

        def remove() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass
        return remove

    def append(self, message: ChatMessage) -> None:
        self._messages.append(message)
        if not message.is_from_user:
            for fut in self._reply_waiters:
                if not fut.done():
                    fut.set_result(message)
        self._notify()

    def set_connected(self, connected: bool) -> None:
        if connected != self._is_connected:
            self._is_connected = connected
            self._notify()

    def set_error(self, failure: Optional[GitBossError]) -> None:
        self._failure = failure
        if isinstance(failure, REPLY_BREAKING_ERRORS):
            for fut in self._reply_waiters:
                if not fut.done():
                    fut.set_exception(failure)
        self._notify()

    def set_typing(self, typing: bool) -> None:
        if typing != self._is_typing:
            self._is_typing = typing
            self._notify()

    async def wait_for_reply(self, timeout: Optional[float] = None) -> ChatMessage:
        """Wait for the next assistant message appended after this call."""
        fut: asyncio.Future[ChatMessage] = asyncio.get_running_loop().create_future()
        self._reply_waiters.append(fut)
        try:
            return await asyncio.wait_for(fut, timeout=timeout)
        finally:
            self._reply_waiters.remove(fut)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

"""
GitBossAI and AsyncGitBossAI, the main SDK clients.
"""

import asyncio
import inspect
from typing import Any, Optional

import httpx

from gitboss_ai.auth import AuthAPI, TokenStore
from gitboss_ai.config import Settings, load_settings
from gitboss_ai.connection import ChatConnection
from gitboss_ai.errors import ConnectionFailed, NotConnected
from gitboss_ai.models.message import ChatMessage
from gitboss_ai.repositories import RepositoryAPI
from gitboss_ai.scheduler import Scheduler
from gitboss_ai.storage import FileStorage, Storage
from gitboss_ai.transport.http import HttpClient
from gitboss_ai.transport.websocket import TransportFactory


class AsyncGitBossAI:
    """Async GitBoss AI client (primary)."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        storage: Optional[Storage] = None,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
        transport_factory: Optional[TransportFactory] = None,
        scheduler: Optional[Scheduler] = None,
    ):
        self.settings = settings or load_settings()
        self.tokens = TokenStore(storage or FileStorage(self.settings.storage_path))
        self.http = HttpClient(
            base_url=self.settings.api_base,
            token=self.tokens.get(),
            timeout=self.settings.http_timeout_s,
            transport=http_transport,
        )
        self.auth = AuthAPI(self.http, self.tokens)
        self.repos = RepositoryAPI(self.http)

        self._transport_factory = transport_factory
        self._scheduler = scheduler
        self._chat: Optional[ChatConnection] = None

    @property
    def chat(self) -> Optional[ChatConnection]:
        return self._chat

    @property
    def connected(self) -> bool:
        return self._chat is not None and self._chat.session.is_connected

    def open_chat(self) -> ChatConnection:
        """Create the chat connection and start connecting without waiting."""
        if self._chat is not None:
            self._chat.close("Replaced by a new connection")
        self._chat = ChatConnection(
            self.settings.ws_url,
            self.tokens,
            scheduler=self._scheduler,
            transport_factory=self._transport_factory,
            max_reconnect_attempts=self.settings.max_reconnect_attempts,
            typing_timeout_s=self.settings.typing_timeout_s,
        )
        self._chat.connect()
        return self._chat

    async def connect(self, timeout: float = 15.0) -> ChatConnection:
        """Open the chat connection and wait for it; raises the session's failure if it never opens."""
        chat = self.open_chat()
        if not await chat.wait_until_open(timeout):
            failure = chat.session.failure
            chat.close("Connect failed")
            self._chat = None
            if failure is not None:
                raise failure
            raise ConnectionFailed(f"Timed out connecting after {timeout}s")
        return chat

    async def disconnect(self) -> None:
        if self._chat:
            self._chat.close("Client disconnected")
            self._chat = None

    def send_message(self, content: str) -> Optional[ChatMessage]:
        """Fire-and-forget send. Returns the echoed message, or None (see ``chat.session.error``)."""
        return self._ensure_chat().send(content)

    async def ask(self, content: str, timeout: float = 60.0) -> ChatMessage:
        """Send a message and wait for the assistant's reply."""
        chat = self._ensure_chat()
        if chat.send(content) is None:
            raise chat.session.failure or NotConnected()
        return await chat.session.wait_for_reply(timeout)

    async def close(self) -> None:
        await self.disconnect()
        await self.http.close()

    async def __aenter__(self) -> "AsyncGitBossAI":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _ensure_chat(self) -> ChatConnection:
        if self._chat is None:
            raise NotConnected("Not connected. Call connect() first.")
        return self._chat


class _SyncAPI:
    """Runs an async API object's coroutine methods to completion."""

    def __init__(self, api: Any, loop: asyncio.AbstractEventLoop):
        self._api = api
        self._loop = loop

    def __getattr__(self, name: str) -> Any:
        attr = getattr(self._api, name)
        if not inspect.iscoroutinefunction(attr):
            return attr

        def call(*args: Any, **kwargs: Any) -> Any:
            return self._loop.run_until_complete(attr(*args, **kwargs))
        return call


class GitBossAI:
    """Sync wrapper around AsyncGitBossAI's REST surface. Runs the event loop internally."""

    def __init__(self, **kwargs: Any):
        self._async = AsyncGitBossAI(**kwargs)
        self._loop = asyncio.new_event_loop()
        self.auth = _SyncAPI(self._async.auth, self._loop)
        self.repos = _SyncAPI(self._async.repos, self._loop)

    @property
    def tokens(self) -> TokenStore:
        return self._async.tokens

    def close(self) -> None:
        self._loop.run_until_complete(self._async.close())
        self._loop.close()

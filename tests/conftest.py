"""Shared fakes: a hand-driven scheduler and an in-memory transport."""

import json
import time
from typing import Callable, Optional

import pytest

from gitboss_ai.auth import TokenStore
from gitboss_ai.connection import ChatConnection
from gitboss_ai.storage import MemoryStorage
from gitboss_ai.transport.websocket import NORMAL_CLOSURE

WS_URL = "wss://chat.example.test/ws"
TOKEN = "header.payload.signature"


class ManualTimer:
    def __init__(self, when: float, callback: Callable[[], None]):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """call_later() without a clock; tests advance time explicitly."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: list[ManualTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[ManualTimer]:
        return [t for t in self.timers if not t.cancelled]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [t for t in self.pending if t.when <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.when)
            self.now = timer.when
            timer.cancelled = True
            timer.callback()
        self.now = target


class FakeTransport:
    def __init__(self, url: str, listener):
        self.url = url
        self.listener = listener
        self.started = False
        self.opened = False
        self.sent: list[str] = []
        self.closed_with: Optional[tuple[int, str]] = None

    @property
    def is_open(self) -> bool:
        return self.opened and self.closed_with is None

    def start(self) -> None:
        self.started = True

    def send(self, text: str) -> None:
        self.sent.append(text)

    def close(self, code: int = NORMAL_CLOSURE, reason: str = "") -> None:
        self.closed_with = (code, reason)

    # server-side / network events

    def fire_open(self) -> None:
        self.opened = True
        self.listener.on_open()

    def fire_message(self, payload) -> None:
        self.listener.on_message(payload if isinstance(payload, str) else json.dumps(payload))

    def fire_close(self, code: int, reason: str = "") -> None:
        self.opened = False
        self.listener.on_close(code, reason)


class FakeTransportFactory:
    def __init__(self) -> None:
        self.created: list[FakeTransport] = []

    def __call__(self, url: str, listener) -> FakeTransport:
        transport = FakeTransport(url, listener)
        self.created.append(transport)
        return transport

    @property
    def last(self) -> FakeTransport:
        return self.created[-1]


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def tokens(storage) -> TokenStore:
    store = TokenStore(storage)
    store.store(TOKEN, int(time.time()) + 3600, username="octocat")
    return store


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def transports() -> FakeTransportFactory:
    return FakeTransportFactory()


@pytest.fixture
def connection(tokens, scheduler, transports) -> ChatConnection:
    return ChatConnection(WS_URL, tokens, scheduler=scheduler, transport_factory=transports)


@pytest.fixture
def open_connection(connection, transports) -> ChatConnection:
    connection.connect()
    transports.last.fire_open()
    return connection

"""Shared pytest fixtures for eformmaker tests."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

import httpx
import pytest

from eformmaker.api_client import FormsApiClient


class FakeTimer:
    def __init__(self, due: float, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeClock:
    """Timers that only fire when the test advances time."""

    def __init__(self) -> None:
        self.now = 0.0
        self._timers: list[FakeTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(self.now + delay, callback)
        self._timers.append(timer)
        return timer

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [t for t in self._timers if not t.cancelled and t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.due)
            self._timers.remove(timer)
            self.now = timer.due
            timer.callback()
        self.now = target

    def pending(self) -> list[FakeTimer]:
        return [t for t in self._timers if not t.cancelled]


class FakeApi:
    """Route table behind an ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], Any] = {}
        self.gates: dict[tuple[str, str], asyncio.Event] = {}

    def add(
        self,
        method: str,
        path: str,
        *,
        status: int = 200,
        json: Any = None,
        text: str | None = None,
        error: Exception | None = None,
    ) -> None:
        self.routes[(method, path)] = (status, json, text, error)

    def gate(self, method: str, path: str) -> asyncio.Event:
        event = asyncio.Event()
        self.gates[(method, path)] = event
        return event

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key in self.gates:
            await self.gates[key].wait()
        if key not in self.routes:
            return httpx.Response(404, json={"error": "Not found"})
        status, json_body, text, error = self.routes[key]
        if error is not None:
            raise error
        if text is not None:
            return httpx.Response(status, text=text, headers={"content-type": "text/html"})
        return httpx.Response(status, json=json_body)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def client(self, **kwargs: Any) -> FormsApiClient:
        return FormsApiClient("http://builder.test", transport=httpx.MockTransport(self.handler), **kwargs)


class RecordingNotifier:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str, float]] = []

    def show(self, message: str, kind: str = "info", duration: float = 5.0) -> None:
        self.messages.append((message, kind, duration))

    def kinds(self) -> list[str]:
        return [kind for _, kind, _ in self.messages]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def sample_fields() -> list[dict[str, Any]]:
    return [
        {"id": "fld_a", "type": "singleLine", "label": "First name", "name": "first_name",
         "required": True, "doNotStore": False},
        {"id": "fld_b", "type": "email", "label": "Email", "name": "email",
         "required": False, "doNotStore": False},
        {"id": "fld_c", "type": "dropdown", "label": "Plan", "name": "plan",
         "options": "Basic, Pro", "required": False, "doNotStore": False},
    ]

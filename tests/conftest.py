"""pytest configuration and fixtures for the chat server tests.

Provides:
- ManualScheduler: deterministic stand-in for loop.call_later
- controller: SessionController wired to a ManualScheduler
- Markers for unit vs integration tests
"""

from collections.abc import Callable

import pytest

from session import SessionController


class ManualHandle:
    def __init__(self, due: float, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Fires scheduled callbacks only when the test advances the clock."""

    def __init__(self) -> None:
        self.now = 0.0
        self.handles: list[ManualHandle] = []

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> ManualHandle:
        handle = ManualHandle(self.now + delay_s, callback)
        self.handles.append(handle)
        return handle

    def advance(self, seconds: float) -> None:
        self.now += seconds
        due = [h for h in self.handles if h.due <= self.now and not h.cancelled]
        self.handles = [h for h in self.handles if h not in due]
        for handle in sorted(due, key=lambda h: h.due):
            handle.callback()

    @property
    def pending(self) -> list[ManualHandle]:
        return [h for h in self.handles if not h.cancelled]


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test (ASGI test client)")


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def controller(scheduler: ManualScheduler) -> SessionController:
    return SessionController(scheduler)


@pytest.fixture
def connect(controller: SessionController) -> Callable[..., list[str]]:
    """Register connections by id and return them."""

    def _connect(*conn_ids: str) -> list[str]:
        for conn_id in conn_ids:
            controller.connect(conn_id)
        return list(conn_ids)

    return _connect

"""
Pytest configuration and shared fixtures.
"""

import asyncio
from dataclasses import replace

import pytest
from starlette.websockets import WebSocketState

from presence.config import Settings
from presence.game.constraints import MotionLimits, WorldBounds


class FakeSocket:
    """Stands in for a websocket: records everything sent to it."""

    def __init__(self):
        self.sent = []
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.fail_sends = False
        self.stall = False
        self._never = None

    async def send_text(self, data):
        if self.fail_sends:
            raise RuntimeError("socket is gone")
        if self.stall:
            self._never = self._never or asyncio.Event()
            await self._never.wait()
        self.sent.append(data)

    def close(self):
        self.client_state = WebSocketState.DISCONNECTED
        self.application_state = WebSocketState.DISCONNECTED


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def limits(settings):
    return MotionLimits.from_settings(settings)


@pytest.fixture
def bounds(settings):
    return WorldBounds.from_settings(settings)


@pytest.fixture
def public_dir(tmp_path):
    root = tmp_path / "public"
    root.mkdir()
    (root / "index.html").write_text("<h1>presence</h1>")
    (root / "app.js").write_text("console.log('hi');")
    return root


@pytest.fixture
def server_settings(public_dir):
    return replace(Settings(), public_dir=str(public_dir), live_reload=False, tick_interval_ms=10)


@pytest.fixture
def make_socket():
    return FakeSocket

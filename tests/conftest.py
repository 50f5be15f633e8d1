"""Test configuration and fixtures."""
import asyncio
import json

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketState

from app.main import app
from app.services.registry import registry


@pytest.fixture(autouse=True)
def clean_registry():
    """Every test starts and ends with nobody connected."""
    registry.clear()
    yield
    registry.clear()


@pytest.fixture
def client():
    # Entering the client keeps every WebSocket session on one event loop
    with TestClient(app) as c:
        yield c


def ws_url(nickname: str, room: str) -> str:
    return f"/api/ws?nickname={nickname}&room={room}"


async def wait_until(predicate, timeout: float = 1.0):
    async def _poll():
        while not predicate():
            await asyncio.sleep(0.01)
    await asyncio.wait_for(_poll(), timeout)


class FakeWebSocket:
    """Just enough of starlette's WebSocket for the relay services."""

    def __init__(self, fail_send: bool = False, stall: bool = False):
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.accepted = False
        self.closed = None
        self.sent: list[str] = []
        self.fail_send = fail_send
        self.stall = stall
        self.inbox: asyncio.Queue = asyncio.Queue()

    async def accept(self):
        self.accepted = True

    async def receive(self):
        frame = await self.inbox.get()
        if isinstance(frame, BaseException):
            raise frame
        if frame["type"] == "websocket.disconnect":
            self.client_state = WebSocketState.DISCONNECTED
        return frame

    async def send_text(self, data: str):
        if self.stall:
            await asyncio.Event().wait()
        if self.fail_send:
            raise RuntimeError("Cannot call 'send' once a close message has been sent.")
        self.sent.append(data)

    async def close(self, code: int = 1000, reason=None):
        self.closed = (code, reason)
        self.application_state = WebSocketState.DISCONNECTED

    def push_text(self, text: str):
        self.inbox.put_nowait({"type": "websocket.receive", "text": text})

    def push_json(self, data: dict):
        self.push_text(json.dumps(data))

    def push_bytes(self, data: bytes):
        self.inbox.put_nowait({"type": "websocket.receive", "bytes": data})

    def push_disconnect(self, code: int = 1000):
        self.inbox.put_nowait({"type": "websocket.disconnect", "code": code})

    def fail_receive(self, exc: BaseException):
        """Make the next receive raise ``exc``, as a broken transport would."""
        self.inbox.put_nowait(exc)

    @property
    def messages(self) -> list[dict]:
        return [json.loads(s) for s in self.sent]

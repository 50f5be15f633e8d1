import asyncio
import logging
from typing import Optional

from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from app.core.config import settings
from app.models.identity import Identity

logger = logging.getLogger(__name__)


async def close_quietly(ws: WebSocket, code: int = 1000, reason: Optional[str] = None) -> None:
    """Close ``ws`` unless either side already has."""
    if ws.application_state == WebSocketState.DISCONNECTED or ws.client_state == WebSocketState.DISCONNECTED:
        return
    try:
        await ws.close(code=code, reason=reason)
    except (RuntimeError, OSError) as e:
        logger.debug(f"[CONN] Close failed: {type(e).__name__}: {e}")


class Connection:
    """An accepted WebSocket bound to one identity.

    Outbound frames go through a bounded queue drained by a dedicated writer
    task, so a slow peer only ever delays itself and frames reach the peer in
    the order they were queued.
    """

    def __init__(
        self,
        ws: WebSocket,
        identity: Identity,
        max_queue: Optional[int] = None,
        send_timeout: Optional[float] = None,
    ):
        self.ws = ws
        self.identity = identity
        self.send_timeout = send_timeout if send_timeout is not None else settings.SEND_TIMEOUT_SECONDS
        self._outbox: asyncio.Queue[Optional[str]] = asyncio.Queue(
            maxsize=max_queue if max_queue is not None else settings.OUTBOX_MAX_SIZE
        )
        self._writer: Optional[asyncio.Task] = None
        self._dead = False

    def __repr__(self) -> str:
        return f"Connection({self.identity.nickname}@{self.identity.room})"

    @property
    def is_open(self) -> bool:
        return (
            not self._dead
            and self.ws.client_state == WebSocketState.CONNECTED
            and self.ws.application_state == WebSocketState.CONNECTED
        )

    def start(self) -> None:
        self._writer = asyncio.create_task(self._drain(), name=f"writer:{self!r}")

    def enqueue(self, payload: str) -> bool:
        """Queue one text frame. Returns False when the frame was dropped."""
        if not self.is_open:
            return False
        try:
            self._outbox.put_nowait(payload)
        except asyncio.QueueFull:
            logger.warning(f"[CONN] Outbox full for {self!r}, dropping frame")
            return False
        return True

    async def _drain(self) -> None:
        while True:
            payload = await self._outbox.get()
            if payload is None:
                return
            if not self.is_open:
                continue
            try:
                await asyncio.wait_for(self.ws.send_text(payload), timeout=self.send_timeout)
            except asyncio.TimeoutError:
                self._dead = True
                logger.warning(f"[CONN] Send to {self!r} timed out after {self.send_timeout}s")
                return
            except (WebSocketDisconnect, RuntimeError, OSError) as e:
                self._dead = True
                logger.warning(f"[CONN] Send to {self!r} failed: {type(e).__name__}: {e}")
                return

    async def stop(self) -> None:
        """Flush queued frames (bounded by the send timeout) and stop the writer."""
        writer, self._writer = self._writer, None
        if writer is None or writer.done():
            return
        try:
            self._outbox.put_nowait(None)
        except asyncio.QueueFull:
            writer.cancel()
        try:
            await asyncio.wait({writer}, timeout=self.send_timeout)
        finally:
            if not writer.done():
                writer.cancel()

    async def close(self, code: int = 1000, reason: Optional[str] = None) -> None:
        await close_quietly(self.ws, code, reason)

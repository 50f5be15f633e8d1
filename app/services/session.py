"""Per-connection session: join, relay, leave.

A session walks CONNECTING -> VALIDATING -> JOINED -> CLOSING -> CLOSED.
Rejected joins go straight from VALIDATING to CLOSING without touching the
registry. Once JOINED, teardown runs exactly once whether the peer closed
cleanly, the transport failed, or the task was cancelled.
"""

import enum
import logging
from typing import Optional

from starlette.websockets import WebSocket, WebSocketDisconnect

from app.core.config import settings
from app.core.errors import InvalidJoinError, JoinRejectedError, MalformedMessageError, NicknameTakenError
from app.models.identity import Identity
from app.models.message import Message, MessageType, parse_client_frame
from app.services.broadcaster import Broadcaster, broadcaster as default_broadcaster
from app.services.connection import Connection, close_quietly
from app.services.registry import Registry, registry as default_registry

logger = logging.getLogger(__name__)


class SessionState(str, enum.Enum):
    CONNECTING = "connecting"
    VALIDATING = "validating"
    JOINED = "joined"
    CLOSING = "closing"
    CLOSED = "closed"


class RoomSession:
    def __init__(
        self,
        ws: WebSocket,
        nickname: Optional[str],
        room: Optional[str],
        registry: Registry = default_registry,
        broadcaster: Broadcaster = default_broadcaster,
    ):
        self.ws = ws
        self.requested_nickname = nickname
        self.requested_room = room
        self.registry = registry
        self.broadcaster = broadcaster
        self.state = SessionState.CONNECTING
        self.connection: Optional[Connection] = None

    @property
    def identity(self) -> Optional[Identity]:
        return self.connection.identity if self.connection else None

    async def run(self) -> None:
        """Drive the session until the peer leaves. Never raises on client errors."""
        await self.ws.accept()
        self.state = SessionState.VALIDATING
        try:
            self.connection = self._join()
        except JoinRejectedError as e:
            logger.info(f"[SESSION] Join rejected ({e.code}): {e.reason}")
            self.state = SessionState.CLOSING
            try:
                await close_quietly(self.ws, e.code, e.reason)
            finally:
                self.state = SessionState.CLOSED
            return

        try:
            await self._relay()
        finally:
            await self._teardown()

    def _join(self) -> Connection:
        nickname = (self.requested_nickname or "").strip()
        room = (self.requested_room or "").strip()

        if not nickname:
            raise InvalidJoinError("Nickname is required")
        if len(nickname) > settings.MAX_NICKNAME_LENGTH:
            raise InvalidJoinError(f"Nickname is longer than {settings.MAX_NICKNAME_LENGTH} characters")
        if nickname.casefold() == settings.SERVER_NICKNAME.casefold():
            raise InvalidJoinError(f"Nickname {nickname!r} is reserved")
        if not settings.ROOMS_ENABLED:
            room = settings.DEFAULT_ROOM
        elif not room:
            raise InvalidJoinError("Room is required")

        connection = Connection(self.ws, Identity(nickname=nickname, room=room))
        if not self.registry.try_register(connection):
            raise NicknameTakenError(f"Nickname {nickname!r} is already in use in room {room!r}")

        connection.start()
        self.state = SessionState.JOINED
        notice = Message.notice(room, f"{nickname} joined {room}")
        logger.info(f"*{settings.SERVER_NICKNAME} -> {notice.content}")
        self.broadcaster.broadcast(notice)
        return connection

    async def _relay(self) -> None:
        identity = self.identity
        try:
            while True:
                frame = await self.ws.receive()
                if frame["type"] == "websocket.disconnect":
                    logger.info(
                        f"[SESSION] {identity.nickname}@{identity.room} disconnected (code {frame.get('code')})"
                    )
                    return
                text = frame.get("text")
                if text is None:
                    logger.debug(f"[SESSION] Ignoring binary frame from {identity.nickname}@{identity.room}")
                    continue
                self.handle_text(text)
        except (WebSocketDisconnect, RuntimeError, OSError) as e:
            logger.warning(
                f"[SESSION] Transport error for {identity.nickname}@{identity.room}: {type(e).__name__}: {e}"
            )

    def handle_text(self, text: str) -> None:
        """Relay one inbound text frame to the sender's room."""
        identity = self.identity
        try:
            received = parse_client_frame(text)
        except MalformedMessageError as e:
            logger.warning(f"[SESSION] {identity.nickname} sent an invalid message: {e}")
            return

        message = received.stamped(identity)
        if message.type == MessageType.Message:
            logger.info(f"[{message.to}] -> {identity.nickname}: {message.content}")
            exclude = None if settings.ECHO_TO_SENDER else self.connection
        else:
            # typing indicators are only interesting to the others
            exclude = self.connection
        self.broadcaster.broadcast(message, exclude=exclude)

    async def _teardown(self) -> None:
        if self.state in (SessionState.CLOSING, SessionState.CLOSED):
            return
        self.state = SessionState.CLOSING
        identity = self.identity
        try:
            # deregister first so the leaver is not among the recipients
            self.registry.deregister(identity)
            notice = Message.notice(identity.room, f"{identity.nickname} left {identity.room}")
            logger.info(f"*{settings.SERVER_NICKNAME} -> {notice.content}")
            self.broadcaster.broadcast(notice)
            await self.connection.stop()
            await self.connection.close()
        finally:
            self.state = SessionState.CLOSED

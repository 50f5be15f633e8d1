import enum
import json
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from app.core.config import settings
from app.core.errors import MalformedMessageError
from app.models.identity import Identity

# Keys a client may send but the server always assigns itself
SERVER_ASSIGNED_KEYS = ("from", "from_", "to", "sentAt", "sent_at")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MessageType(str, enum.Enum):
    Message = "Message"
    Notification = "Notification"


class Message(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: MessageType
    content: str = ""
    from_: Identity | None = Field(default=None, alias="from")
    to: str | None = None
    is_typing: bool | None = Field(default=None, alias="isTyping")
    sent_at: datetime = Field(default_factory=utcnow, alias="sentAt")

    @model_validator(mode="after")
    def _require_content(self) -> "Message":
        if self.type == MessageType.Message and not self.content.strip():
            raise ValueError("content is required for Message")
        return self

    @classmethod
    def notice(cls, room: str, content: str) -> "Message":
        """Server-authored notification addressed to ``room``."""
        return cls(
            type=MessageType.Notification,
            content=content,
            from_=Identity(nickname=settings.SERVER_NICKNAME, room=room),
            to=room,
        )

    def stamped(self, sender: Identity) -> "Message":
        """Copy with sender, target room and timestamp set by the server."""
        return self.model_copy(update={"from_": sender, "to": sender.room, "sent_at": utcnow()})

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


def parse_client_frame(raw: str) -> Message:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedMessageError(f"invalid JSON: {e.msg}") from e
    if not isinstance(data, dict):
        raise MalformedMessageError("frame must be a JSON object")

    for key in SERVER_ASSIGNED_KEYS:
        data.pop(key, None)

    try:
        return Message.model_validate(data)
    except ValidationError as e:
        errors = "; ".join(err["msg"] for err in e.errors())
        raise MalformedMessageError(errors) from e

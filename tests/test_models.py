"""Tests for identities, messages and the client frame codec."""
import json
import re

import pytest
from pydantic import ValidationError

from app.core.errors import MalformedMessageError
from app.models.identity import Identity
from app.models.message import Message, MessageType, parse_client_frame


def test_identity_key_ignores_server_fields():
    a = Identity(nickname="alice", room="general")
    b = Identity(nickname="alice", room="general")
    assert a.key == b.key == ("alice", "general")
    assert a.id != b.id
    assert re.fullmatch(r"#[0-9A-F]{6}", a.color)


def test_identity_is_immutable():
    identity = Identity(nickname="alice", room="general")
    with pytest.raises(ValidationError):
        identity.nickname = "mallory"
    assert hash(identity)


def test_parse_strips_client_supplied_sender_and_room():
    raw = json.dumps({
        "type": "Message",
        "content": "hi",
        "from": "mallory",
        "to": "secret-room",
        "sentAt": "not a date",
    })
    message = parse_client_frame(raw)
    assert message.content == "hi"
    assert message.from_ is None
    assert message.to is None


def test_stamped_overwrites_sender_fields():
    sender = Identity(nickname="alice", room="general")
    message = parse_client_frame('{"type": "Message", "content": "hi"}').stamped(sender)
    assert message.from_ == sender
    assert message.to == "general"


@pytest.mark.parametrize("raw", [
    "not json",
    "[1, 2, 3]",
    '{"content": "missing type"}',
    '{"type": "Shout", "content": "unknown type"}',
    '{"type": "Message"}',
    '{"type": "Message", "content": "   "}',
    '{"type": "Message", "content": 42}',
])
def test_parse_rejects_malformed_frames(raw):
    with pytest.raises(MalformedMessageError):
        parse_client_frame(raw)


def test_typing_notification_needs_no_content():
    message = parse_client_frame('{"type": "Notification", "isTyping": true}')
    assert message.type == MessageType.Notification
    assert message.is_typing is True
    assert message.content == ""


def test_wire_shape_uses_fixed_field_names():
    sender = Identity(nickname="alice", room="general")
    message = Message(type=MessageType.Message, content="hi").stamped(sender)
    data = json.loads(message.to_json())
    assert set(data) == {"type", "content", "from", "to", "isTyping", "sentAt"}
    assert data["type"] == "Message"
    assert data["from"]["nickname"] == "alice"
    assert data["from"]["room"] == "general"
    assert data["from"]["id"] == str(sender.id)
    assert data["to"] == "general"
    assert data["isTyping"] is None


def test_notice_is_sent_by_the_server_sentinel():
    notice = Message.notice("general", "alice joined general")
    assert notice.type == MessageType.Notification
    assert notice.from_.nickname == "SERVER"
    assert notice.from_.room == "general"
    assert notice.to == "general"

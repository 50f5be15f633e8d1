"""Relay error taxonomy.

Join rejections carry a WebSocket close code and a reason that is sent to the
client. The 44xx codes mirror the HTTP statuses used for the same conditions
(406 Not Acceptable, 409 Conflict).
"""

CLOSE_INVALID_JOIN = 4406
CLOSE_NICKNAME_TAKEN = 4409
CLOSE_GOING_AWAY = 1001


class RelayError(Exception):
    """Base class for errors raised by the relay."""


class JoinRejectedError(RelayError):
    code: int = CLOSE_INVALID_JOIN

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class InvalidJoinError(JoinRejectedError):
    code = CLOSE_INVALID_JOIN


class NicknameTakenError(JoinRejectedError):
    code = CLOSE_NICKNAME_TAKEN


class MalformedMessageError(RelayError):
    """A frame could not be decoded into a Message."""

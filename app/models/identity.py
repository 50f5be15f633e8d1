import random
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


def random_color() -> str:
    """Random ``#RRGGBB`` colour used by clients to render the nickname."""
    return f"#{random.randrange(0x1000000):06X}"


class Identity(BaseModel):
    """Who a session is: a nickname inside a room.

    Two identities collide when they share ``key``; ``id`` and ``color`` are
    assigned by the server and only tell sessions with the same key apart
    over time.
    """

    model_config = ConfigDict(frozen=True)

    nickname: str
    room: str
    id: UUID = Field(default_factory=uuid4)
    color: str = Field(default_factory=random_color)

    @property
    def key(self) -> tuple[str, str]:
        return (self.nickname, self.room)

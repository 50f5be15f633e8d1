import logging
import threading
from typing import Dict, List, Optional

from app.models.identity import Identity
from app.services.connection import Connection

logger = logging.getLogger(__name__)


class Registry:
    """Who is connected where. Thread-safe via a single lock.

    Connections are indexed room -> nickname -> Connection. The lock is only
    held for the check-and-insert, the removal, and while copying snapshots,
    never across a send.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.rooms: Dict[str, Dict[str, Connection]] = {}

    def try_register(self, connection: Connection) -> bool:
        identity = connection.identity
        with self._lock:
            members = self.rooms.setdefault(identity.room, {})
            if identity.nickname in members:
                return False
            members[identity.nickname] = connection
        logger.info(f"[REGISTRY] Registered {identity.nickname}@{identity.room}")
        return True

    def deregister(self, identity: Identity) -> bool:
        """Remove ``identity`` if it is the registered owner of its key."""
        with self._lock:
            members = self.rooms.get(identity.room)
            current = members.get(identity.nickname) if members else None
            if current is None or current.identity.id != identity.id:
                return False
            del members[identity.nickname]
            if not members:
                self.rooms.pop(identity.room, None)
        logger.info(f"[REGISTRY] Removed {identity.nickname}@{identity.room}")
        return True

    def get(self, nickname: str, room: str) -> Optional[Connection]:
        with self._lock:
            return self.rooms.get(room, {}).get(nickname)

    def snapshot_for_room(self, room: Optional[str]) -> List[Connection]:
        with self._lock:
            return list(self.rooms.get(room, {}).values())

    def snapshot_all(self, room: Optional[str] = None) -> List[Identity]:
        if room is not None:
            return [c.identity for c in self.snapshot_for_room(room)]
        return [c.identity for c in self.connections()]

    def connections(self) -> List[Connection]:
        with self._lock:
            return [c for members in self.rooms.values() for c in members.values()]

    def clear(self) -> None:
        with self._lock:
            self.rooms.clear()

    def __len__(self) -> int:
        with self._lock:
            return sum(len(members) for members in self.rooms.values())

    def __contains__(self, identity: Identity) -> bool:
        current = self.get(identity.nickname, identity.room)
        return current is not None and current.identity.id == identity.id


registry = Registry()

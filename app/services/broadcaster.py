import logging
from typing import Optional

from app.models.message import Message
from app.services.connection import Connection
from app.services.registry import Registry, registry

logger = logging.getLogger(__name__)

class Broadcaster:
    def __init__(self, registry: Registry):
        self.registry = registry

    def broadcast(self, message: Message, exclude: Optional[Connection] = None) -> int:
        """Queue ``message`` for every open connection in ``message.to``.

        Returns how many connections it was queued for. Closed or backed-up
        recipients are skipped without affecting the others.
        """
        if message.to is None:
            logger.warning("[BROADCAST] Message without target room dropped")
            return 0

        payload = message.to_json()
        delivered = 0
        for conn in self.registry.snapshot_for_room(message.to):
            if conn is exclude:
                continue
            if conn.enqueue(payload):
                delivered += 1
            else:
                logger.debug(f"[BROADCAST] Skipped {conn!r}")
        return delivered

broadcaster = Broadcaster(registry)

"""
Shop event fan-out.

Request handlers call these helpers after a database write succeeds. Delivery
is best-effort: the database is the source of truth and a socket event is only
a notification, so emit failures are logged and never raised to the caller.
"""
import logging
from typing import Any, Optional

from app.core.logging import realtime_logger
from app.realtime.rooms import RoomRegistry, now_ms, room_name

logger = logging.getLogger(__name__)

MESSAGE_NEW = "message:new"
CONVERSATION_UPDATE = "conversation:update"
ORDER_UPDATE = "order:update"
NOTIFICATION = "notification"


class EventEmitter:
    """
    Broadcasts domain events to every connection in a shop room.

    When `registry` is given it is authoritative for membership and rooms with
    no local members are skipped. Leave it out when a cross-process backplane
    is configured, since other processes may hold members of the room.
    """

    def __init__(self, sio: Any, registry: Optional[RoomRegistry] = None):
        self.sio = sio
        self.registry = registry

    async def emit_to_shop(self, shop_id: str, event: str, data: Optional[dict] = None) -> bool:
        """
        Emit `event` to the shop room with a server `timestamp` merged in.

        Returns True if the event was handed to the transport.
        """
        if self.registry is not None and self.registry.count(shop_id) == 0:
            realtime_logger.debug(f"Skipped {event}: no connections in {room_name(shop_id)}")
            return False

        try:
            payload = {**(data or {}), "timestamp": now_ms()}
            await self.sio.emit(event, payload, room=room_name(shop_id))
        except Exception as e:
            logger.warning(f"Socket.IO emit of {event} to {room_name(shop_id)} failed: {e}")
            return False

        logger.debug(f"Emitted {event} to {room_name(shop_id)}")
        return True

    async def emit_new_message(self, shop_id: str, message: dict) -> bool:
        return await self.emit_to_shop(shop_id, MESSAGE_NEW, message)

    async def emit_conversation_update(self, shop_id: str, conversation: dict) -> bool:
        return await self.emit_to_shop(shop_id, CONVERSATION_UPDATE, conversation)

    async def emit_order_update(self, shop_id: str, order: dict) -> bool:
        return await self.emit_to_shop(shop_id, ORDER_UPDATE, order)

    async def emit_notification(self, shop_id: str, notification: dict) -> bool:
        return await self.emit_to_shop(shop_id, NOTIFICATION, notification)

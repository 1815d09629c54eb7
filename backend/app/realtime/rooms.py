"""
Shop room membership tracking.

Every shop has one Socket.IO room, `shop_<shop_id>`. The registry mirrors the
transport's room membership so the process can answer "who is connected to
this shop" and clean up on disconnect.

Membership is process-local. With several server processes, fan-out across
them goes through the Socket.IO client manager (see realtime.socket).
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Set

logger = logging.getLogger(__name__)


def room_name(shop_id) -> str:
    return f"shop_{shop_id}"


def now_ms() -> int:
    """Server time in milliseconds since the epoch."""
    return int(time.time() * 1000)


@dataclass
class RoomRegistry:
    """
    In-memory room membership.

    Structure:
    - rooms[shop_id] = set(socket_ids)

    All mutations run on the event loop that owns the Socket.IO server, so no
    locking is done here.
    """
    sio: Any

    # shop_id -> set(socket_ids)
    rooms: Dict[str, Set[str]] = field(default_factory=dict)

    async def join(self, shop_id: str, sid: str, user_id: str) -> bool:
        """
        Subscribe a connection to a shop room.

        Returns True if the connection was newly added. A repeat join for a
        connection already in the room changes nothing and does not announce
        the user again.
        """
        shop_id = str(shop_id)
        if self.is_member(shop_id, sid):
            logger.debug(f"Socket {sid} already in {room_name(shop_id)}")
            return False

        await self.sio.enter_room(sid, room_name(shop_id))
        members = self.rooms.setdefault(shop_id, set())
        members.add(sid)

        await self.sio.emit("user:joined", {
            "userId": user_id,
            "timestamp": now_ms(),
        }, room=room_name(shop_id), skip_sid=sid)

        logger.info(f"User {user_id} joined {room_name(shop_id)} ({len(members)} connected)")
        return True

    async def leave(self, shop_id: str, sid: str) -> bool:
        """Unsubscribe a connection from a shop room. Returns True if it was a member."""
        shop_id = str(shop_id)
        await self.sio.leave_room(sid, room_name(shop_id))
        return self._remove(shop_id, sid)

    async def disconnect(self, sid: str) -> List[str]:
        """
        Drop a torn-down connection from every room it belonged to.

        The transport forgets its own rooms for a closed socket, so only the
        registry is updated. Returns the shop ids the socket was removed from.
        """
        removed = [shop_id for shop_id, members in list(self.rooms.items()) if sid in members]
        for shop_id in removed:
            self._remove(shop_id, sid)
        if removed:
            logger.debug(f"Socket {sid} removed from {len(removed)} room(s) on disconnect")
        return removed

    def _remove(self, shop_id: str, sid: str) -> bool:
        members = self.rooms.get(shop_id)
        if not members or sid not in members:
            return False
        members.discard(sid)
        if not members:
            del self.rooms[shop_id]
        return True

    def members(self, shop_id) -> Set[str]:
        return set(self.rooms.get(str(shop_id), set()))

    def count(self, shop_id) -> int:
        """Number of connections currently in a shop room."""
        return len(self.rooms.get(str(shop_id), ()))

    def is_member(self, shop_id, sid: str) -> bool:
        return sid in self.rooms.get(str(shop_id), ())

    def rooms_for(self, sid: str) -> List[str]:
        return [shop_id for shop_id, members in self.rooms.items() if sid in members]

    def shop_ids(self) -> List[str]:
        return list(self.rooms.keys())

    def connection_count(self) -> int:
        """Distinct connections across all rooms."""
        return len(set().union(*self.rooms.values())) if self.rooms else 0

    def clear(self) -> None:
        """Clear all membership (for testing)."""
        self.rooms.clear()

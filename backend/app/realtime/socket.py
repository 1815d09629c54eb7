"""
Socket.IO server implementation.

Rooms:
- shop_{shop_id} - all authorized connections of one shop

Client -> server events:
- shop:join     { shopId }                  verify team membership, join room
- shop:leave    { shopId }
- ping          {}                          replied to with pong
- typing:start  { shopId, conversationId }  relayed to the room minus sender
- typing:stop   { shopId, conversationId }

Server -> client events:
- user:joined   { userId, timestamp }       to other members of the room
- error         { message }                 join rejected
- pong          { timestamp }
- typing:start / typing:stop { conversationId, userId }
- message:new, conversation:update, order:update, notification (see emitter)
"""
import logging
from typing import Dict, Optional

import socketio
from socketio.exceptions import ConnectionRefusedError

from app.core.logging import set_sid, realtime_logger
from app.realtime.access import ShopAccessVerifier
from app.realtime.auth import authenticate_socket, extract_token
from app.realtime.exceptions import RealtimeError
from app.realtime.rooms import RoomRegistry, now_ms, room_name
from app.realtime.typing import TypingTracker

logger = logging.getLogger(__name__)


def create_socket_server(settings) -> socketio.AsyncServer:
    """
    Build the Socket.IO server.

    With REDIS_URL set, room broadcasts go through a Redis pub/sub client
    manager so every server process delivers to its own members of the room.
    """
    client_manager = None
    if settings.REDIS_URL:
        client_manager = socketio.AsyncRedisManager(settings.REDIS_URL)
        logger.info("Socket.IO using Redis client manager for cross-process fan-out")

    # cors_allowed_origins=[] - FastAPI's CORS middleware handles CORS
    return socketio.AsyncServer(
        async_mode="asgi",
        client_manager=client_manager,
        cors_allowed_origins=[],
        logger=False,
        engineio_logger=False,
    )


class SocketEventHandlers:
    """Connection lifecycle and client event handlers for one Socket.IO server."""

    def __init__(
        self,
        sio: socketio.AsyncServer,
        registry: RoomRegistry,
        verifier: ShopAccessVerifier,
        typing: Optional[TypingTracker] = None,
    ):
        self.sio = sio
        self.registry = registry
        self.verifier = verifier
        self.typing = typing if typing is not None else TypingTracker()
        # sid -> user_data for live, authenticated connections
        self.connections: Dict[str, dict] = {}

    def register(self) -> None:
        self.sio.on("connect", self.connect)
        self.sio.on("disconnect", self.disconnect)
        self.sio.on("shop:join", self.join_shop)
        self.sio.on("shop:leave", self.leave_shop)
        self.sio.on("ping", self.ping)
        self.sio.on("typing:start", self.typing_start)
        self.sio.on("typing:stop", self.typing_stop)

    async def connect(self, sid: str, environ: dict, auth: dict = None):
        """
        Handle new socket connection.
        Refuses the handshake unless the token verifies.
        """
        set_sid(sid)
        is_authenticated, user_data = await authenticate_socket(auth, environ)

        if not is_authenticated:
            if extract_token(auth, environ) is None:
                raise ConnectionRefusedError("Authentication error: No token provided")
            raise ConnectionRefusedError("Authentication error: Invalid token")

        self.connections[sid] = user_data
        logger.info(f"Socket connected: {sid} (user: {user_data['user_id']})")
        return True

    async def disconnect(self, sid: str, *args):
        """
        Handle socket disconnection.
        The only cleanup path for dropped connections: rooms and typing state.
        """
        set_sid(sid)
        user_data = self.connections.pop(sid, None)

        entries = [
            e for e in self.typing.connection_closed(sid)
            if self.registry.is_member(e.shop_id, sid)
        ]
        await self._relay_typing_stops(sid, entries)

        shops = await self.registry.disconnect(sid)

        if user_data:
            logger.info(f"Socket disconnected: {sid} (user: {user_data['user_id']}, shops: {shops})")
        else:
            logger.info(f"Socket disconnected: {sid} (unauthenticated)")

    async def join_shop(self, sid: str, data: dict = None):
        """
        Join a shop room after verifying team membership.

        Expected data: { "shopId": str }
        """
        set_sid(sid)
        user_data = self.connections.get(sid)
        if not user_data:
            await self.sio.emit("error", {"message": "Not authenticated"}, room=sid)
            return

        shop_id = _field(data, "shopId")
        if _missing(shop_id):
            await self.sio.emit("error", {"message": "shopId is required"}, room=sid)
            return

        user_id = user_data["user_id"]
        try:
            await self.verifier.verify(shop_id, user_id)
        except RealtimeError as e:
            await self.sio.emit("error", {"message": e.message}, room=sid)
            return

        # The connection may have closed while the membership query was pending
        if sid not in self.connections:
            realtime_logger.debug(f"Discarded join of {room_name(shop_id)}: connection closed during verification")
            return

        await self.registry.join(shop_id, sid, user_id)

    async def leave_shop(self, sid: str, data: dict = None):
        """
        Leave a shop room.
        A typing:stop goes out for any conversation the connection was typing in.

        Expected data: { "shopId": str }
        """
        set_sid(sid)
        user_data = self.connections.get(sid)
        if not user_data:
            return

        shop_id = _field(data, "shopId")
        if _missing(shop_id):
            return

        if self.registry.is_member(shop_id, sid):
            await self._relay_typing_stops(sid, self.typing.left_shop(sid, shop_id))

        await self.registry.leave(shop_id, sid)
        logger.info(f"User {user_data['user_id']} left {room_name(shop_id)}")

    async def ping(self, sid: str, data: dict = None):
        try:
            await self.sio.emit("pong", {"timestamp": now_ms()}, room=sid)
        except Exception as e:
            logger.debug(f"pong to {sid} failed: {e}")

    async def typing_start(self, sid: str, data: dict = None):
        await self._relay_typing("typing:start", sid, data)

    async def typing_stop(self, sid: str, data: dict = None):
        await self._relay_typing("typing:stop", sid, data)

    async def _relay_typing(self, event: str, sid: str, data: dict = None):
        """
        Relay a typing signal to the other members of the shop room.

        Best-effort: bad payloads, signals for rooms the sender has not joined
        and transport errors are dropped.
        """
        user_data = self.connections.get(sid)
        shop_id = _field(data, "shopId")
        conversation_id = _field(data, "conversationId")
        if not user_data or _missing(shop_id):
            return

        if not self.registry.is_member(shop_id, sid):
            logger.debug(f"Ignored {event} from {sid}: not in {room_name(shop_id)}")
            return

        user_id = user_data["user_id"]
        if event == "typing:start":
            self.typing.start_typing(shop_id, conversation_id, sid, user_id)
        else:
            self.typing.stop_typing(shop_id, conversation_id, sid)

        try:
            await self.sio.emit(event, {
                "conversationId": conversation_id,
                "userId": user_id,
            }, room=room_name(shop_id), skip_sid=sid)
        except Exception as e:
            logger.debug(f"{event} relay failed: {e}")

    async def _relay_typing_stops(self, sid: str, entries):
        for entry in entries:
            try:
                await self.sio.emit("typing:stop", {
                    "conversationId": entry.conversation_id,
                    "userId": entry.user_id,
                }, room=room_name(entry.shop_id), skip_sid=sid)
            except Exception as e:
                logger.debug(f"typing:stop relay for {sid} failed: {e}")


def _field(data, name: str):
    if isinstance(data, dict):
        return data.get(name)
    return None


def _missing(value) -> bool:
    # 0 is a valid id
    return value is None or value == ""

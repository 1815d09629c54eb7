"""
Wires the real-time layer together.

One RealtimeServer is built per process at startup and handed to whatever
needs it (the ASGI app, REST handlers through app.state).
"""
from dataclasses import dataclass

import socketio

from app.realtime.access import ShopAccessVerifier
from app.realtime.emitter import EventEmitter
from app.realtime.rooms import RoomRegistry
from app.realtime.socket import SocketEventHandlers, create_socket_server
from app.realtime.typing import TypingTracker


@dataclass
class RealtimeServer:
    sio: socketio.AsyncServer
    registry: RoomRegistry
    verifier: ShopAccessVerifier
    emitter: EventEmitter
    handlers: SocketEventHandlers
    typing: TypingTracker


def build_realtime(settings, session_factory, sio=None) -> RealtimeServer:
    if sio is None:
        sio = create_socket_server(settings)

    registry = RoomRegistry(sio)
    verifier = ShopAccessVerifier(session_factory, timeout_seconds=settings.SHOP_ACCESS_TIMEOUT_SECONDS)
    typing = TypingTracker(ttl_seconds=settings.TYPING_TIMEOUT_SECONDS)

    # Local membership is only authoritative without a backplane
    emitter = EventEmitter(sio, registry=None if settings.REDIS_URL else registry)

    handlers = SocketEventHandlers(sio, registry, verifier, typing)
    handlers.register()

    return RealtimeServer(
        sio=sio,
        registry=registry,
        verifier=verifier,
        emitter=emitter,
        handlers=handlers,
        typing=typing,
    )

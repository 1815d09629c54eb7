from fastapi import Request

from app.realtime.emitter import EventEmitter
from app.realtime.rooms import RoomRegistry
from app.realtime.server import RealtimeServer


def get_realtime(request: Request) -> RealtimeServer:
    return request.app.state.realtime


def get_emitter(request: Request) -> EventEmitter:
    """Emitter for request handlers that need to notify shop rooms after a write."""
    return request.app.state.realtime.emitter


def get_room_registry(request: Request) -> RoomRegistry:
    return request.app.state.realtime.registry

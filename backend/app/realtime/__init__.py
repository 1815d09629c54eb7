"""
Real-time module for Socket.IO based shop events.
"""
from app.realtime.server import RealtimeServer, build_realtime

__all__ = ["RealtimeServer", "build_realtime"]

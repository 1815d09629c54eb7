import uuid
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from app.core.security import create_access_token
from app.db.database import Base
from app.db.models import TeamMember
from app.realtime.access import ShopAccessVerifier
from app.realtime.rooms import RoomRegistry
from app.realtime.socket import SocketEventHandlers
from app.realtime.typing import TypingTracker


def create_test_token(user_id: str, role: str = "agent", expires_delta: timedelta = None, **claims) -> str:
    """Create a test JWT token in the shape issued by the auth service."""
    data = {"userId": user_id, "role": role, **claims}
    return create_access_token(data, expires_delta or timedelta(hours=1))


@pytest.fixture
def sio():
    """Stand-in for socketio.AsyncServer recording every transport call."""
    server = MagicMock()
    server.enter_room = AsyncMock()
    server.leave_room = AsyncMock()
    server.emit = AsyncMock()
    return server


@pytest.fixture
def registry(sio):
    return RoomRegistry(sio)


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'team_members.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def add_team_member(session_factory):
    async def _add(shop_id: str, user_id: str, role: str = "agent"):
        async with session_factory() as db:
            db.add(TeamMember(id=uuid.uuid4().hex, shop_id=shop_id, user_id=user_id, role=role))
            await db.commit()
    return _add


@pytest.fixture
def verifier(session_factory):
    return ShopAccessVerifier(session_factory, timeout_seconds=2.0)


@pytest.fixture
def handlers(sio, registry, verifier):
    h = SocketEventHandlers(sio, registry, verifier, TypingTracker())
    h.register()
    return h


@pytest.fixture
def make_token():
    return create_test_token

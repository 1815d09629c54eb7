import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text

from app.api.deps import get_room_registry
from app.core.config import settings
from app.core.redis import redis_client
from app.db.database import get_db
from app.realtime.rooms import RoomRegistry

logger = logging.getLogger(__name__)

router = APIRouter()

STARTED_AT = time.time()


@router.get('/health')
async def health(registry: RoomRegistry = Depends(get_room_registry)):
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.time() - STARTED_AT, 3),
        "env": settings.APP_ENV,
        "websocket": {
            "rooms": len(registry.shop_ids()),
            "connections": registry.connection_count(),
        },
    }


@router.get('/healthz')
def healthz():
    return {"status": "ok"}


@router.get('/readyz')
async def readyz(db: AsyncSession = Depends(get_db)):
    # Check DB connectivity
    try:
        await db.execute(text('SELECT 1'))
    except Exception:
        logger.exception('Readiness DB check failed')
        raise HTTPException(status_code=503, detail='Not ready')

    # Redis only matters when it backs cross-process fan-out
    if settings.REDIS_URL and not redis_client.health_check():
        logger.error('Redis health check failed')
        raise HTTPException(status_code=503, detail='Not ready')

    return {"status": "ready"}

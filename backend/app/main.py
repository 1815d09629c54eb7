import logging

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from app.api import health, realtime as realtime_api
from app.core.config import settings
from app.db.database import async_engine, async_session
from app.realtime import build_realtime

logging.basicConfig(level=logging.DEBUG if settings.DEBUG else logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        f"{settings.APP_NAME} starting (env: {settings.APP_ENV}, "
        f"backplane: {'redis' if settings.REDIS_URL else 'none, single process only'})"
    )
    yield
    await async_engine.dispose()


app = FastAPI(
    title="shop-realtime API",
    description="Real-time shop event distribution for the shop dashboard",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_origin_regex=r"https://.*\.vercel\.app",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix="", tags=["Health"])
app.include_router(realtime_api.router, prefix="/api/shops", tags=["Realtime"])

# One registry / emitter per process, shared by socket handlers and REST handlers
realtime = build_realtime(settings, async_session)
app.state.realtime = realtime

# Entry point for uvicorn: Socket.IO in front, FastAPI for everything else
asgi_app = socketio.ASGIApp(realtime.sio, other_asgi_app=app, socketio_path=settings.SOCKETIO_PATH)

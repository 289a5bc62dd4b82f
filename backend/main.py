# backend/main.py

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core import state
from core.config import settings
from core.logging import setup_logging, get_logger
from api.routes import root, health, metrics, chat
from api import websocket as websocket_module

# Configure logging first
setup_logging()
logger = get_logger(__name__)

# FastAPI app
app = FastAPI(title="Campus Connect Chat Relay")

# CORS: open in development, CLIENT_URL + localhost in production
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# REST routes
app.include_router(root.router)
app.include_router(health.router)
app.include_router(metrics.router)
app.include_router(chat.router)

# WebSocket routes
app.include_router(websocket_module.router)


@app.on_event("startup")
async def startup_event():
    logger.info(
        "🚀 Chat relay starting (%s) - history limit %d per room",
        settings.ENVIRONMENT,
        state.message_relay.history_limit,
    )


@app.on_event("shutdown")
async def on_shutdown():
    await state.connection_manager.close_all()
    logger.info("Chat relay stopped")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT)

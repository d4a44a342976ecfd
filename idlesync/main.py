"""
idlesync FastAPI application.

Starts the idle-sync service on startup and serves the local status API
and WebSocket event feed alongside it, on the same event loop.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, WebSocketDisconnect

from idlesync import __version__
from idlesync.api.routes import init_routes, router
from idlesync.api.websocket import EventFeed
from idlesync.sync.service import IdleSyncService

logger = logging.getLogger(__name__)


def create_app(service: IdleSyncService) -> FastAPI:
    """Build the app around an (unstarted) service."""
    feed = EventFeed()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Start/stop the sync service."""
        service.controller.on_event(feed.publish)
        try:
            await service.start()
        except Exception as e:
            logger.error(f"Startup failed: {e}")
            raise

        logger.info(
            f"idlesync ready: "
            f"API: {service.config.api_host}:{service.config.api_port}, "
            f"sync port: {service.transport.port}"
        )
        try:
            yield
        finally:
            logger.info("Shutting down idlesync...")
            await service.stop()

    app = FastAPI(
        title="idlesync",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.service = service
    app.state.feed = feed

    init_routes(service.controller)
    app.include_router(router)

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        await feed.subscribe(websocket)
        try:
            while True:
                # Client messages are read and ignored
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass
        finally:
            feed.unsubscribe(websocket)

    return app

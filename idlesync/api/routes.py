"""REST API routes for the local idlesync status surface."""

import asyncio
import logging

from fastapi import APIRouter, HTTPException

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

# Injected by main.py at startup
_controller = None


def init_routes(controller) -> None:
    """Inject the role controller into the routes module."""
    global _controller
    _controller = controller


@router.get("/status")
async def get_status():
    """Return role, schedule and registry state."""
    return _controller.status().model_dump(mode="json")


@router.get("/peers")
async def list_peers():
    """Return satellites known to this hub (empty on a satellite)."""
    if _controller.registry is None:
        return {"peers": []}
    return {"peers": [p.model_dump(mode="json") for p in _controller.registry.peers()]}


@router.get("/idle")
async def get_idle():
    """Sample local idle time."""
    loop = asyncio.get_running_loop()
    try:
        idle = await loop.run_in_executor(None, _controller.idle_seconds)
    except OSError as e:
        logger.warning(f"Idle query failed: {e}")
        raise HTTPException(status_code=503, detail="Idle time unavailable")
    return {"idle_seconds": idle}

"""
Liveness endpoints.
"""

from typing import Any

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from ..dependencies import RegistryDep
from ..realtime.connection_registry import ConnectionRegistry

health_router = APIRouter(tags=["health"])

ROOT_MESSAGE = "Server is running and waiting for Socket.io connections."


@health_router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return ROOT_MESSAGE


@health_router.get("/health")
async def health_check(registry: ConnectionRegistry = RegistryDep) -> dict[str, Any]:
    """Report open connections and distinct online users."""
    return {
        "status": "ok",
        "connections": len(registry),
        "users": len(registry.snapshot()),
    }

"""Liveness endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Request

from wasabi_mcp.core.config import SERVER_NAME, SERVER_VERSION

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request) -> dict[str, str | int]:
    return {
        "status": "healthy",
        "server": SERVER_NAME,
        "version": SERVER_VERSION,
        "sessions": len(request.app.state.sessions),
    }

"""FastAPI application with lifespan and router mounting."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import structlog
from fastapi import FastAPI

from wasabi_mcp.api.routes import health
from wasabi_mcp.api.routes.mcp import mcp_route
from wasabi_mcp.core.config import SERVER_NAME, SERVER_VERSION, AppSettings
from wasabi_mcp.core.protocols import IFileSystem, IStorageGateway
from wasabi_mcp.mcp_servers.server import session_servers
from wasabi_mcp.mcp_servers.streamable_http import StreamableHttpHost
from wasabi_mcp.persistence import create_gateway
from wasabi_mcp.sessions.manager import DEFAULT_IDLE_TIMEOUT, SessionManager
from wasabi_mcp.tools.dispatcher import Dispatcher
from wasabi_mcp.tools.registry import ToolRegistry

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Log startup and tear down every live session on shutdown."""
    logger.info("server_running", transport="http")
    yield
    await app.state.sessions.close_all()
    logger.info("server_stopped", transport="http")


def create_app(settings: Optional[AppSettings] = None,
               gateway: Optional[IStorageGateway] = None,
               files: Optional[IFileSystem] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if gateway is None:
        gateway = create_gateway(settings)

    registry = ToolRegistry()
    dispatcher = Dispatcher(registry, gateway, files=files)
    idle_timeout = settings.server.session_idle_timeout if settings else DEFAULT_IDLE_TIMEOUT
    sessions = SessionManager(idle_timeout=idle_timeout)
    sessions.opener = StreamableHttpHost(session_servers(registry, dispatcher, sessions)).open

    app = FastAPI(title=SERVER_NAME, version=SERVER_VERSION, lifespan=lifespan)
    app.state.sessions = sessions
    app.include_router(health.router)
    app.router.routes.append(mcp_route(sessions))
    return app

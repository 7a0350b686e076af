"""Unit test fixtures wired around the in-memory storage gateway."""

from __future__ import annotations

import pytest
import structlog

from tests.fakes import MemoryFileSystem, MemoryStorageGateway
from wasabi_mcp.mcp_servers.server import build_server, session_servers
from wasabi_mcp.sessions.manager import SessionManager
from wasabi_mcp.tools.dispatcher import Dispatcher
from wasabi_mcp.tools.registry import ToolRegistry


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo configure_logging() so later tests don't log to a closed capture stream."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def gateway():
    return MemoryStorageGateway()


@pytest.fixture
def files():
    return MemoryFileSystem()


@pytest.fixture
def registry():
    return ToolRegistry()


@pytest.fixture
def dispatcher(registry, gateway, files):
    return Dispatcher(registry, gateway, files=files)


@pytest.fixture
def sessions():
    return SessionManager()


@pytest.fixture
def server(registry, dispatcher):
    return build_server(registry, dispatcher)


@pytest.fixture
def servers(registry, dispatcher, sessions):
    return session_servers(registry, dispatcher, sessions)

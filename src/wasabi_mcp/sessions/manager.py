"""Session registry for long-lived transport channels.

The registry is the only shared mutable state in the server. Every mutation
happens under one asyncio lock, so concurrent resolutions of the same
identifier cannot both create a session.
"""

from __future__ import annotations

import asyncio
import contextlib
import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any, Awaitable, Callable, Optional

import structlog

from wasabi_mcp.core.exceptions import SessionNotFoundError
from wasabi_mcp.core.types import SessionId

logger = structlog.get_logger()

DEFAULT_IDLE_TIMEOUT = 30 * 60.0


class SessionState(StrEnum):
    INITIALIZING = "initializing"
    ACTIVE = "active"
    TERMINATED = "terminated"


_TRANSITIONS: dict[SessionState, frozenset[SessionState]] = {
    SessionState.INITIALIZING: frozenset({SessionState.ACTIVE, SessionState.TERMINATED}),
    SessionState.ACTIVE: frozenset({SessionState.TERMINATED}),
    SessionState.TERMINATED: frozenset(),
}


def new_session_id() -> SessionId:
    return secrets.token_hex(16)


@dataclass(eq=False)
class Session:
    """One logical client connection and the transport serving it."""

    id: SessionId
    state: SessionState = SessionState.INITIALIZING
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    last_seen: float = field(default_factory=time.monotonic)
    transport: Any = field(default=None, repr=False)
    _runner: Optional[asyncio.Task] = field(default=None, repr=False)

    @property
    def is_live(self) -> bool:
        return self.state is not SessionState.TERMINATED

    def transition(self, target: SessionState) -> None:
        if target is self.state:
            return
        if target not in _TRANSITIONS[self.state]:
            raise ValueError(f"Illegal session transition {self.state} -> {target}")
        self.state = target

    def touch(self) -> None:
        self.last_seen = time.monotonic()

    def bind(self, transport: Any, runner: Optional[asyncio.Task] = None) -> None:
        """Attach the transport handle and the task serving it."""
        self.transport = transport
        self._runner = runner

    async def close(self) -> None:
        """Stop the serving task and release the transport."""
        runner, self._runner = self._runner, None
        if runner is not None and not runner.done():
            runner.cancel()
            if runner is not asyncio.current_task():
                with contextlib.suppress(asyncio.CancelledError):
                    await runner
        terminate = getattr(self.transport, "terminate", None)
        if terminate is not None:
            await terminate()


SessionOpener = Callable[[Session], Awaitable[None]]


class SessionManager:
    """Owns the identifier -> session table.

    ``opener`` is awaited for every new session before it becomes visible;
    the HTTP transport uses it to start the session's MCP server.
    """

    def __init__(self, opener: Optional[SessionOpener] = None,
                 idle_timeout: Optional[float] = DEFAULT_IDLE_TIMEOUT) -> None:
        self.opener = opener
        self.idle_timeout = idle_timeout
        self._sessions: dict[SessionId, Session] = {}
        # Identifiers a client carried before learning its real one. Dropped
        # once the session is active, so only the issued id continues it.
        self._claims: dict[str, SessionId] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def get(self, session_id: Optional[str]) -> Optional[Session]:
        """Look up a live session by its issued id without mutating the registry."""
        if not session_id:
            return None
        return self._sessions.get(session_id)

    async def resolve(self, session_id: Optional[str] = None) -> Session:
        """Return the live session for ``session_id`` or create a new one."""
        async with self._lock:
            if session_id:
                existing = self._sessions.get(session_id)
                if existing is None and session_id in self._claims:
                    existing = self._sessions.get(self._claims[session_id])
                if existing is not None:
                    existing.touch()
                    return existing

            await self._expire_idle()
            new_id = new_session_id()
            while new_id in self._sessions:
                new_id = new_session_id()
            session = Session(id=new_id)
            if self.opener is not None:
                await self.opener(session)
            self._sessions[new_id] = session
            if session_id:
                self._claims[session_id] = new_id
            logger.info("session_created", session_id=new_id)
            return session

    async def mark_active(self, session_id: str) -> Session:
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            if session.state is SessionState.INITIALIZING:
                session.transition(SessionState.ACTIVE)
                self._drop_claims(session_id)
                logger.info("session_active", session_id=session_id)
            return session

    async def terminate(self, session_id: str) -> Session:
        async with self._lock:
            return await self._terminate(session_id)

    async def expire_idle(self, now: Optional[float] = None) -> list[SessionId]:
        """Terminate sessions that have not been seen for ``idle_timeout`` seconds."""
        async with self._lock:
            return await self._expire_idle(now)

    async def close_all(self) -> None:
        async with self._lock:
            for session_id in list(self._sessions):
                await self._terminate(session_id)

    def _drop_claims(self, session_id: str) -> None:
        self._claims = {k: v for k, v in self._claims.items() if v != session_id}

    async def _terminate(self, session_id: str) -> Session:
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError(session_id)
        self._drop_claims(session_id)
        session.transition(SessionState.TERMINATED)
        await session.close()
        logger.info("session_terminated", session_id=session_id)
        return session

    async def _expire_idle(self, now: Optional[float] = None) -> list[SessionId]:
        if self.idle_timeout is None:
            return []
        cutoff = (time.monotonic() if now is None else now) - self.idle_timeout
        expired = [s.id for s in self._sessions.values() if s.last_seen < cutoff]
        for session_id in expired:
            await self._terminate(session_id)
            logger.info("session_expired", session_id=session_id)
        return expired

from __future__ import annotations

import asyncio
import logging

from fastapi import WebSocket

from livefloor.application.session.display_session import DisplaySession

logger = logging.getLogger(__name__)


class ConnectionManager:
    def __init__(self) -> None:
        self._sessions: dict[WebSocket, DisplaySession] = {}
        self._lock = asyncio.Lock()

    async def register(self, websocket: WebSocket, session: DisplaySession) -> None:
        async with self._lock:
            self._sessions[websocket] = session
        logger.info(
            "ws_client_connected",
            extra={"display": session.display, "scope": session.scope.label},
        )

    async def unregister(self, websocket: WebSocket) -> DisplaySession | None:
        async with self._lock:
            session = self._sessions.pop(websocket, None)
        if session is None:
            return None
        logger.info(
            "ws_client_disconnected",
            extra={"display": session.display, "scope": session.scope.label},
        )
        return session

    def sessions_for(self, display: str, scope_label: str) -> list[DisplaySession]:
        return [
            session
            for session in self._sessions.values()
            if session.display == display and session.scope.label == scope_label
        ]

    def __len__(self) -> int:
        return len(self._sessions)

    async def close_all(self) -> None:
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            await session.stop()

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from livefloor.api import dependencies
from livefloor.api.middleware.request_id import REQUEST_ID_HEADER, request_id_scope
from livefloor.api.ws.manager import ConnectionManager
from livefloor.api.ws.outbox import FloorOutbox

router = APIRouter()
logger = logging.getLogger(__name__)

DISPLAYS = {"waiter", "kitchen"}


async def _send_frames(websocket: WebSocket, outbox: FloorOutbox) -> None:
    while True:
        await websocket.send_text(await outbox.next_frame())


async def _drain_client(websocket: WebSocket) -> None:
    # clients do not send commands on this socket; reading detects disconnects
    while True:
        await websocket.receive_text()


@router.websocket("/ws/floor")
async def floor_websocket(websocket: WebSocket) -> None:
    display = websocket.query_params.get("display")
    branch_id = websocket.query_params.get("branch_id") or None
    if display not in DISPLAYS:
        await websocket.close(code=1008, reason="display must be one of: kitchen, waiter")
        return

    with request_id_scope(websocket.headers.get(REQUEST_ID_HEADER)):
        await websocket.accept()
        outbox = FloorOutbox()
        session = dependencies.build_session(
            display=display,
            branch_id=branch_id,
            notifier=outbox,
            refresh_interval=dependencies.refresh_interval_seconds(),
        )
        outbox.bind(session.snapshot)
        session.add_listener(outbox.mark_changed)

        manager: ConnectionManager = websocket.app.state.ws_manager
        await manager.register(websocket, session)
        try:
            await session.start()
            outbox.mark_changed()
            sender = asyncio.create_task(_send_frames(websocket, outbox))
            receiver = asyncio.create_task(_drain_client(websocket))
            done, pending = await asyncio.wait(
                {sender, receiver},
                return_when=asyncio.FIRST_COMPLETED,
            )
            for task in pending:
                task.cancel()
                with suppress(asyncio.CancelledError):
                    await task
            for task in done:
                exc = task.exception()
                if exc is not None and not isinstance(exc, WebSocketDisconnect):
                    logger.error(
                        "ws_connection_error",
                        exc_info=exc,
                        extra={"display": display, "scope": session.scope.label},
                    )
        finally:
            await manager.unregister(websocket)
            await session.stop()

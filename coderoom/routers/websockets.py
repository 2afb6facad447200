from __future__ import annotations

import asyncio
import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..events import EventRouter
from ..session import Session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["ws"])


@router.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    await ws.accept()
    events: EventRouter = ws.app.state.events

    session = Session(ws)
    events.connect(session)
    writer = asyncio.create_task(session.writer())

    try:
        while True:
            message = await ws.receive()
            if message["type"] == "websocket.disconnect":
                break
            text = message.get("text")
            if text is None:
                logger.debug("ignoring binary frame from %r", session)
                continue
            try:
                data = json.loads(text)
            except ValueError:
                logger.debug("ignoring non-JSON frame from %r", session)
                continue
            await events.handle_message(session, data)
    except WebSocketDisconnect:
        pass
    finally:
        # A dropped transport is treated exactly like leaveRoom.
        events.disconnect(session)
        await writer

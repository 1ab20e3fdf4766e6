from __future__ import annotations

import asyncio
import json
from contextlib import suppress

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from realtime.bus import EventBus, Subscription


logger = structlog.get_logger(__name__)

router = APIRouter()


@router.websocket("/ws")
async def ws_events(websocket: WebSocket) -> None:
    await _serve(websocket, set())


@router.websocket("/ws/disasters/{disaster_id}")
async def ws_disaster_events(websocket: WebSocket, disaster_id: str) -> None:
    await _serve(websocket, {disaster_id})


async def _forward(websocket: WebSocket, sub: Subscription) -> None:
    while True:
        event = await sub.queue.get()
        await websocket.send_json(event.to_message())


async def _serve(websocket: WebSocket, topics: set[str]) -> None:
    bus: EventBus = websocket.app.state.bus
    await websocket.accept()
    sub = bus.subscribe(topics)
    logger.info("socket connected", topics=sorted(sub.topics))
    await websocket.send_json({"event": "connected", "topics": sorted(sub.topics)})

    sender = asyncio.create_task(_forward(websocket, sub))
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except ValueError:
                await websocket.send_json({"event": "error", "message": "invalid json"})
                continue
            if not isinstance(message, dict):
                await websocket.send_json(
                    {"event": "error", "message": "expected an object"}
                )
                continue

            kind = message.get("type")
            disaster_id = message.get("disaster_id")
            if disaster_id is None or kind not in ("join_disaster", "leave_disaster"):
                await websocket.send_json(
                    {"event": "error", "message": "unsupported message"}
                )
                continue

            if kind == "join_disaster":
                bus.join(sub, str(disaster_id))
                logger.info("socket joined disaster room", disaster_id=disaster_id)
                await websocket.send_json(
                    {"event": "joined", "disaster_id": str(disaster_id)}
                )
            else:
                bus.leave(sub, str(disaster_id))
                await websocket.send_json(
                    {"event": "left", "disaster_id": str(disaster_id)}
                )
    except WebSocketDisconnect:
        logger.info("socket disconnected")
    finally:
        sender.cancel()
        with suppress(asyncio.CancelledError, RuntimeError, WebSocketDisconnect):
            await sender
        bus.unsubscribe(sub)

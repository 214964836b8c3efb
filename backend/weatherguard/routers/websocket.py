"""Websocket stream of bus notifications."""

import asyncio
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from weatherguard.dependencies import get_notification_bus
from weatherguard.services.notification_bus import NotificationBus, Subscription

logger = logging.getLogger(__name__)

router = APIRouter()


async def _forward(websocket: WebSocket, subscription: Subscription) -> None:
    async for message in subscription:
        await websocket.send_text(message)


async def _until_disconnect(websocket: WebSocket) -> None:
    # Inbound frames are ignored; receive_text raises once the client goes away
    while True:
        await websocket.receive_text()


@router.websocket("/ws")
async def notifications_stream(
    websocket: WebSocket,
    bus: NotificationBus = Depends(get_notification_bus),
):
    subscription = bus.subscribe()
    await websocket.accept()
    logger.info("Websocket client connected")

    tasks = [
        asyncio.create_task(_forward(websocket, subscription)),
        asyncio.create_task(_until_disconnect(websocket)),
    ]
    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in tasks:
            task.cancel()
        subscription.close()

    for task in done:
        error = task.exception()
        if error is None or isinstance(error, WebSocketDisconnect):
            logger.info("Websocket client disconnected")
        else:
            raise error

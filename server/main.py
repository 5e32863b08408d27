"""FastAPI server exposing a live feed of decoded MiniFinder records.

Start with::

    uvicorn server.main:app --host 0.0.0.0 --port 8000

Devices connect over TCP to ``MINIFINDER_TCP_PORT`` (default 5039) and send
semicolon-delimited sentences. WebSocket clients connect to
``ws://<host>:8000/ws`` and receive one ``type="position"`` JSON message per
decoded record. ``GET /sessions`` lists the devices currently connected.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from zoneinfo import ZoneInfo

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect

from minifinder.config import settings
from minifinder.decoder import MiniFinderDecoder
from minifinder.session import DeviceRegistry
from server.broadcaster import Broadcaster
from server.listener import DeviceListener

_TIMEOUT_SECONDS = settings.WS_IDLE_TIMEOUT


async def _send_messages_until_disconnect(
    queue: asyncio.Queue[str],
    websocket: WebSocket,
) -> None:
    try:
        while True:
            message = await asyncio.wait_for(queue.get(), timeout=_TIMEOUT_SECONDS)
            await websocket.send_text(message)
    except TimeoutError:
        await websocket.close(code=1001)
    except WebSocketDisconnect:
        pass


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    logging.basicConfig(level=settings.LOG_LEVEL)
    loop = asyncio.get_running_loop()

    time_zone = ZoneInfo(settings.DEVICE_TIME_ZONE) if settings.DEVICE_TIME_ZONE else None
    registry = DeviceRegistry(
        register_unknown=settings.REGISTER_UNKNOWN_DEVICES,
        time_zone=time_zone,
    )
    broadcaster = Broadcaster(loop)
    listener = DeviceListener(
        MiniFinderDecoder(registry),
        registry,
        broadcaster.broadcast,
        host=settings.TCP_LISTEN_ADDR,
        port=settings.TCP_PORT,
        max_connections=settings.MAX_CONNECTIONS,
        read_timeout=settings.READ_TIMEOUT,
        max_frame_length=settings.MAX_FRAME_LENGTH,
    )
    application.state.registry = registry
    application.state.broadcaster = broadcaster
    application.state.listener = listener

    serving = loop.run_in_executor(None, listener.serve_forever)
    yield
    await loop.run_in_executor(None, listener.close)
    await serving


app = FastAPI(lifespan=_lifespan)


@app.get("/sessions")
def list_sessions(request: Request) -> list[dict[str, object]]:
    """List the devices bound to currently open connections."""
    registry: DeviceRegistry = request.app.state.registry
    return [
        {"unique_id": session.unique_id, "device_id": session.device_id}
        for session in registry.sessions()
    ]


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    """Stream decoded position JSON messages to a connected WebSocket client.

    Each client gets its own bounded queue (``MINIFINDER_WS_QUEUE_SIZE``
    messages). The oldest message is dropped when the queue is full so slow
    clients do not stall device connections. The connection closes with code
    1001 if no message arrives within the idle timeout.

    Args:
        websocket: The incoming WebSocket connection.
    """
    await websocket.accept()
    broadcaster: Broadcaster = websocket.app.state.broadcaster
    queue = broadcaster.subscribe(settings.WS_QUEUE_SIZE)
    try:
        await _send_messages_until_disconnect(queue, websocket)
    finally:
        broadcaster.unsubscribe(queue)

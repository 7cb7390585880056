import asyncio
import json
from typing import Dict, Iterable

from fastapi import WebSocket

from logging_config import get_logger
from outcomes import Delivery

logger = get_logger(__name__)


class ConnectionManager:
    """Delivers hub output to WebSockets.

    Each connection gets an outbound queue drained by its own writer task, so
    messages reach a connection in the order the hub produced them and a slow
    socket never holds up event processing. Delivery is fire-and-forget: a
    failed send is logged and the connection's writer stops.
    """

    def __init__(self):
        self._queues: Dict[str, asyncio.Queue] = {}
        self._writers: Dict[str, asyncio.Task] = {}

    def register(self, connection_id: str, websocket: WebSocket):
        queue: asyncio.Queue = asyncio.Queue()
        self._queues[connection_id] = queue
        self._writers[connection_id] = asyncio.create_task(self._write(connection_id, websocket, queue))
        logger.debug(f"Registered connection {connection_id} (local connections: {len(self._queues)})")

    def deliver(self, deliveries: Iterable[Delivery]):
        for target, message in deliveries:
            queue = self._queues.get(target)
            if queue is None:
                logger.debug(f"Dropping {message.get('type')} for {target}: connection is gone")
                continue
            queue.put_nowait(message)

    async def unregister(self, connection_id: str):
        self._queues.pop(connection_id, None)
        writer = self._writers.pop(connection_id, None)
        if writer is not None:
            writer.cancel()
            try:
                await writer
            except asyncio.CancelledError:
                pass
        logger.debug(f"Unregistered connection {connection_id} (local connections: {len(self._queues)})")

    def __len__(self) -> int:
        return len(self._queues)

    async def _write(self, connection_id: str, websocket: WebSocket, queue: asyncio.Queue):
        while True:
            message = await queue.get()
            try:
                await websocket.send_text(json.dumps(message))
            except Exception as e:
                logger.warning(f"Error sending {message.get('type')} to connection {connection_id}: {e}")
                self._queues.pop(connection_id, None)
                break

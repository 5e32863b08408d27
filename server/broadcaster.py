"""Fan-out of decoded records to WebSocket subscriber queues."""

import asyncio
import threading

__all__ = ["Broadcaster"]


def _enqueue_message(queue: asyncio.Queue[str], message: str) -> None:
    if queue.full():
        queue.get_nowait()
    queue.put_nowait(message)


class Broadcaster:
    """Registry of subscriber queues fed from device connection threads.

    Queues belong to the event loop; connection threads never touch them
    directly but schedule ``_enqueue_message`` on the loop. A full queue drops
    its oldest message so a slow client cannot stall a device connection.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop
        self._lock = threading.Lock()
        self._queues: list[asyncio.Queue[str]] = []

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._queues)

    def subscribe(self, maxsize: int) -> asyncio.Queue[str]:
        queue: asyncio.Queue[str] = asyncio.Queue(maxsize=maxsize)
        with self._lock:
            self._queues.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[str]) -> None:
        with self._lock:
            self._queues.remove(queue)

    def broadcast(self, message: str) -> None:
        """Dispatch *message* to every subscriber; safe from any thread."""
        with self._lock:
            queues = list(self._queues)
        for queue in queues:
            self._loop.call_soon_threadsafe(_enqueue_message, queue, message)

"""
Peer connection module.

Each open connection gets an outbound queue drained by its own sender task,
so a slow or broken peer only ever delays itself.
"""

import asyncio
from typing import Optional

from websockets.exceptions import ConnectionClosed

from common.constants import PEER_QUEUE_SIZE
from server.utils.logger import logger


class DeliveryFailure(Exception):
    """Raised when a frame cannot be queued for a peer."""


class PeerConnection:
    """Outbound side of a single client connection."""

    def __init__(self, connection_id: str, websocket, queue_size: int = PEER_QUEUE_SIZE):
        self.connection_id = connection_id
        self.websocket = websocket
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self.closed = False
        self.sender_task: Optional[asyncio.Task] = None

    def deliver(self, frame: str) -> None:
        """Queue a frame for sending. Never blocks."""
        if self.closed:
            raise DeliveryFailure("connection is closed")
        try:
            self.queue.put_nowait(frame)
        except asyncio.QueueFull as e:
            raise DeliveryFailure(f"outbound queue full ({self.queue.maxsize} frames)") from e

    def start(self) -> asyncio.Task:
        """Start the sender task."""
        self.sender_task = asyncio.create_task(self._run_sender())
        self.sender_task.add_done_callback(self._on_sender_done)
        return self.sender_task

    def _on_sender_done(self, task: asyncio.Task):
        if task.cancelled():
            return
        if task.exception():
            self.closed = True
            logger.log_error(f"sender for id={self.connection_id}", task.exception())

    async def _run_sender(self):
        """Send queued frames in order until closed."""
        while True:
            frame = await self.queue.get()
            try:
                await self.websocket.send(frame)
            except ConnectionClosed as e:
                logger.log_delivery_failure(self.connection_id, e)
                self.closed = True
                self._discard_pending()
                return
            finally:
                self.queue.task_done()

    async def flush(self):
        """Wait until every queued frame has been handed to the websocket."""
        await self.queue.join()

    async def close(self):
        """Stop accepting frames and cancel the sender task."""
        self.closed = True
        if self.sender_task is not None and not self.sender_task.done():
            self.sender_task.cancel()
            try:
                await self.sender_task
            except asyncio.CancelledError:
                pass
        self._discard_pending()

    def _discard_pending(self):
        while not self.queue.empty():
            self.queue.get_nowait()
            self.queue.task_done()

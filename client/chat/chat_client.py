"""
Chat client module.

This module handles client-side chat messaging functionality: joining,
sending text and file messages, heartbeats, and applying server resets to
the local view.
"""

import asyncio
import base64
import inspect
import mimetypes
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from websockets.asyncio.client import connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from client.utils.config import ClientConfig
from client.utils.logger import logger
from common.constants import EventNames, MAX_RETRY_ATTEMPTS, RECONNECT_ATTEMPTS, RECONNECT_DELAY_BASE
from common.protocol_definitions import (
    MalformedEvent, create_file_message, create_heartbeat_ping_message, create_join_message,
    create_text_message, decode_frame
)


class ChatClient:
    """Client-side chat functionality."""

    def __init__(self, config: Optional[ClientConfig] = None, auto_rejoin: bool = False):
        self.config = config or ClientConfig()
        self.auto_rejoin = auto_rejoin
        self.websocket = None
        self.running = False
        self.joined = False

        # Events received since joining (in memory only)
        self.history: List[Dict[str, Any]] = []

        self.on_message: Optional[Callable] = None
        self.on_system: Optional[Callable] = None
        self.on_reset: Optional[Callable] = None
        self.on_pong: Optional[Callable] = None

    async def connect(self, retry_count: int = MAX_RETRY_ATTEMPTS, base_delay: float = 1.0) -> bool:
        """Establish connection to the server with retry logic and exponential backoff."""
        attempt = 0

        while attempt < retry_count:
            try:
                self.websocket = await connect(self.config.uri, max_size=self.config.max_frame_size)
                logger.log_connection(self.config.uri, True)
                self.running = True
                return True
            except (OSError, asyncio.TimeoutError, WebSocketException) as e:
                attempt += 1
                logger.log_connection(self.config.uri, False)
                logger.log_error("connection", e)

                if attempt < retry_count:
                    delay = base_delay * (2 ** (attempt - 1))  # Exponential backoff
                    logger.info(f"[INFO] Retrying connection in {delay}s (attempt {attempt}/{retry_count})...")
                    await asyncio.sleep(delay)
                else:
                    logger.error(f"[ERROR] Failed to connect after {retry_count} attempts")
        return False

    async def send_frame(self, frame: str) -> bool:
        """Send a raw frame to the server."""
        if self.websocket is None:
            logger.error("[ERROR] Not connected to server")
            return False

        try:
            await self.websocket.send(frame)
            return True
        except ConnectionClosed as e:
            logger.error(f"[ERROR] Failed to send message: {e}")
            return False

    async def join(self, display_name: Optional[str] = None) -> bool:
        """Announce presence under a display name."""
        if display_name:
            self.config.display_name = display_name
        logger.show_join_info(self.config.display_name)
        self.joined = await self.send_frame(create_join_message(self.config.display_name))
        return self.joined

    async def send_text(self, content: str) -> bool:
        """Send a text message."""
        frame = create_text_message(self.config.display_name, content, self.config.avatar_ref)
        return await self.send_frame(frame)

    async def send_file(self, path: str) -> bool:
        """Send a file inline as a base64 data URL."""
        file_path = Path(path)
        if not file_path.is_file():
            logger.error(f"[ERROR] File not found: {path}")
            return False

        size = file_path.stat().st_size
        if size > self.config.max_file_size:
            logger.error(f"[ERROR] File size must be less than {self.config.max_file_size // (1024 * 1024)}MB")
            return False

        mime_type = mimetypes.guess_type(file_path.name)[0] or 'application/octet-stream'
        encoded = base64.b64encode(file_path.read_bytes()).decode('ascii')
        payload = f"data:{mime_type};base64,{encoded}"

        frame = create_file_message(
            self.config.display_name, file_path.name, payload, mime_type, self.config.avatar_ref
        )
        return await self.send_frame(frame)

    async def send_heartbeat(self) -> bool:
        return await self.send_frame(create_heartbeat_ping_message())

    async def heartbeat_loop(self):
        """Send periodic heartbeat messages."""
        while self.running:
            await asyncio.sleep(self.config.heartbeat_interval)
            if self.running:
                await self.send_heartbeat()

    async def listen(self):
        """Listen for incoming frames with automatic reconnection."""
        while self.running:
            try:
                async for raw in self.websocket:
                    try:
                        await self.handle_frame(raw)
                    except Exception as e:
                        logger.error(f"[ERROR] Error processing message: {e}")
                logger.info("[INFO] Server closed connection")
            except asyncio.CancelledError:
                logger.info("[INFO] Listener cancelled")
                raise
            except ConnectionClosed as e:
                logger.error(f"[ERROR] Connection lost: {e}")

            if not self.running or not await self._reconnect():
                self.running = False

    async def _reconnect(self) -> bool:
        """Reconnect to the server with exponential backoff and rejoin."""
        self.joined = False
        for attempt in range(RECONNECT_ATTEMPTS):
            delay = RECONNECT_DELAY_BASE * (2 ** attempt)
            logger.info(f"[INFO] Attempting to reconnect in {delay}s (attempt {attempt + 1}/{RECONNECT_ATTEMPTS})...")
            await asyncio.sleep(delay)

            if await self.connect(retry_count=1):
                logger.info("[INFO] Reconnected successfully!")
                await self.join()
                return True

        logger.error("[ERROR] Failed to reconnect after multiple attempts")
        return False

    async def handle_frame(self, raw: Any):
        """Handle a frame from the server."""
        try:
            event, data = decode_frame(raw)
        except MalformedEvent as e:
            logger.error(f"[ERROR] Malformed frame received: {e}")
            return

        if event in (EventNames.MESSAGE, EventNames.SYSTEM_NOTICE) and not isinstance(data, dict):
            logger.error(f"[ERROR] '{event}' frame without a payload")
            return

        if event == EventNames.MESSAGE:
            self.history.append(data)
            logger.show_chat(data)
            await self._fire(self.on_message, data)
        elif event == EventNames.SYSTEM_NOTICE:
            self.history.append(data)
            logger.show_system(data)
            await self._fire(self.on_system, data)
        elif event == EventNames.RESET:
            await self._handle_reset()
        elif event == EventNames.HEARTBEAT_PONG:
            logger.debug("Received pong from server")
            await self._fire(self.on_pong)
        else:
            logger.warning(f"Unknown event '{event}' from server")

    async def _handle_reset(self):
        """Discard the local view; the server has already dropped our presence."""
        self.history.clear()
        self.joined = False
        logger.show_reset()
        await self._fire(self.on_reset)
        if self.auto_rejoin:
            await self.join()

    async def close(self):
        """Stop listening and close the connection."""
        self.running = False
        if self.websocket is not None:
            await self.websocket.close()
            self.websocket = None

    @staticmethod
    async def _fire(callback: Optional[Callable], *args):
        if callback is None:
            return
        result = callback(*args)
        if inspect.isawaitable(result):
            await result

#!/usr/bin/env python3
"""
Chat Relay Server - Main Entry Point

This is the main entry point for the server application.
It wires the presence registry, activity clock, broadcast relay, connection
lifecycle handler and idle reaper onto a WebSocket listener.
"""

import asyncio
import logging
import uuid
from typing import Optional

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from websockets.asyncio.server import serve
from websockets.exceptions import ConnectionClosed

from server.chat.peer import PeerConnection
from server.chat.relay import BroadcastRelay
from server.connection.lifecycle import ConnectionLifecycleHandler
from server.presence.activity_clock import ActivityClock
from server.presence.idle_reaper import IdleReaper
from server.presence.registry import ConnectionRegistry
from server.utils.config import ServerConfig
from server.utils.logger import logger


class ChatRelayServer:
    """Main server class that owns the shared state and the listener."""

    def __init__(self, config: Optional[ServerConfig] = None, clock: Optional[ActivityClock] = None):
        self.config = config or ServerConfig()

        # Shared state, injected into every component
        self.registry = ConnectionRegistry()
        self.clock = clock or ActivityClock()

        self.relay = BroadcastRelay(self.registry)
        self.lifecycle = ConnectionLifecycleHandler(self.registry, self.clock, self.relay)
        self.reaper = IdleReaper(
            self.registry,
            self.clock,
            self.relay,
            threshold=self.config.inactivity_timeout,
            interval=self.config.idle_check_interval,
        )
        self.server = None

    async def handle_connection(self, websocket):
        """Handle individual client connection."""
        addr = websocket.remote_address

        # Ids are never reused for the lifetime of the process
        connection_id = uuid.uuid4().hex
        peer = PeerConnection(connection_id, websocket, self.config.peer_queue_size)
        peer.start()
        self.lifecycle.connect(peer)

        logger.log_connection(addr, connection_id)

        try:
            async for raw in websocket:
                try:
                    self.lifecycle.handle_frame(connection_id, raw)
                except Exception as e:
                    logger.error(f"Error processing message from id={connection_id}: {e}")
        except ConnectionClosed as e:
            logger.debug(f"Connection id={connection_id} closed abnormally: {e}")
        except asyncio.CancelledError:
            logger.info(f"Connection cancelled for id={connection_id}")
            raise
        finally:
            self.lifecycle.disconnect(connection_id)
            await peer.close()

    async def start(self):
        """Start listening and start the idle reaper."""
        self.server = await serve(
            self.handle_connection,
            self.config.host,
            self.config.port,
            **self.config.get_transport_settings()
        )

        self.reaper.start()
        self.reaper.task.add_done_callback(self._log_task_failure("Idle reaper"))

        addr = ', '.join(str(sock.getsockname()) for sock in self.server.sockets)
        logger.info(f"Server listening on {addr}")
        return self.server

    async def serve_forever(self):
        """Start the server and run until cancelled."""
        if self.server is None:
            await self.start()
        try:
            await self.server.serve_forever()
        finally:
            await self.stop()

    async def stop(self):
        """Stop the reaper and close every connection."""
        await self.reaper.stop()
        if self.server is not None:
            self.server.close()
            await self.server.wait_closed()
            self.server = None

    @property
    def bound_port(self) -> Optional[int]:
        """Port actually bound, useful when configured with port 0."""
        if self.server is None:
            return None
        return self.server.sockets[0].getsockname()[1]

    @staticmethod
    def _log_task_failure(name):
        def callback(task):
            if not task.cancelled() and task.exception():
                logger.error(f"{name} task failed with exception: {task.exception()}")
        return callback


import argparse

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description='Chat Relay Server')
    parser.add_argument('--host', type=str, default='0.0.0.0',
                       help='Host to bind to (default: 0.0.0.0)')
    parser.add_argument('--port', type=int, default=3001,
                       help='WebSocket port (default: 3001)')

    args = parser.parse_args()

    logger.configure(logging.INFO)
    try:
        server = ChatRelayServer(ServerConfig(host=args.host, port=args.port))
        asyncio.run(server.serve_forever())
    except KeyboardInterrupt:
        logger.info("Server shutting down...")
    except Exception as e:
        logger.log_error("server", e)

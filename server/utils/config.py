"""
Server configuration module.

This module handles server-side configuration settings.
"""

from typing import Optional

from common.constants import (
    DEFAULT_SERVER_HOST, DEFAULT_PORT, INACTIVITY_TIMEOUT, IDLE_CHECK_INTERVAL,
    MAX_FRAME_SIZE, PEER_QUEUE_SIZE, TRANSPORT_PING_INTERVAL, TRANSPORT_PING_TIMEOUT
)


class ServerConfig:
    """Server configuration class."""

    def __init__(self, host: str = DEFAULT_SERVER_HOST, port: int = DEFAULT_PORT,
                 inactivity_timeout: float = INACTIVITY_TIMEOUT,
                 idle_check_interval: float = IDLE_CHECK_INTERVAL,
                 logs_dir: Optional[str] = None):
        self.host = host
        self.port = port

        # Idle reset policy
        self.inactivity_timeout = inactivity_timeout
        self.idle_check_interval = idle_check_interval

        # Transport settings
        self.max_frame_size = MAX_FRAME_SIZE
        self.ping_interval = TRANSPORT_PING_INTERVAL
        self.ping_timeout = TRANSPORT_PING_TIMEOUT

        # Fan-out settings
        self.peer_queue_size = PEER_QUEUE_SIZE

        # Logging configuration
        self.logs_dir = logs_dir

        if self.inactivity_timeout <= 0 or self.idle_check_interval <= 0:
            raise ValueError("inactivity_timeout and idle_check_interval must be positive")

    def get_connection_info(self):
        """Get connection information."""
        return {
            'host': self.host,
            'port': self.port
        }

    def get_idle_settings(self):
        """Get idle reset settings."""
        return {
            'inactivity_timeout': self.inactivity_timeout,
            'idle_check_interval': self.idle_check_interval
        }

    def get_transport_settings(self):
        """Get keyword arguments for the websocket server."""
        return {
            'max_size': self.max_frame_size,
            'ping_interval': self.ping_interval,
            'ping_timeout': self.ping_timeout
        }

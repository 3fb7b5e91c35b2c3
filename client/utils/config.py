"""
Client configuration module.

This module handles client-side configuration settings.
"""

from typing import Optional

from common.constants import DEFAULT_HOST, DEFAULT_PORT, CLIENT_HEARTBEAT_INTERVAL, MAX_FILE_SIZE, MAX_FRAME_SIZE


class ClientConfig:
    """Client configuration class."""

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT, display_name: str = None,
                 avatar_ref: Optional[str] = None):
        self.host = host
        self.port = port
        self.display_name = display_name or f"user_{id(self) % 10000}"
        self.avatar_ref = avatar_ref

        # File settings
        self.max_file_size = MAX_FILE_SIZE
        self.max_frame_size = MAX_FRAME_SIZE

        # Connection settings
        self.heartbeat_interval = CLIENT_HEARTBEAT_INTERVAL

    @property
    def uri(self) -> str:
        return f"ws://{self.host}:{self.port}"

    def get_connection_info(self):
        """Get connection information."""
        return {
            'host': self.host,
            'port': self.port,
            'display_name': self.display_name
        }

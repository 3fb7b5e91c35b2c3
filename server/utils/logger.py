"""
Server logging module.

This module handles server-side logging functionality.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from common.constants import PRESENCE_LOG_FILE


class ServerLogger:
    """Server logging class."""

    def __init__(self, logs_dir: Optional[str] = None, log_level: int = logging.INFO):
        # Set up main logger
        self.logger = logging.getLogger('chat_relay_server')
        self.presence_log_path: Optional[Path] = None
        self.configure(log_level, logs_dir)

    def configure(self, log_level: int = logging.INFO, logs_dir: Optional[str] = None):
        """(Re)configure level, console handler and the optional presence log file."""
        self.logger.setLevel(log_level)

        # Remove existing handlers
        for handler in self.logger.handlers[:]:
            self.logger.removeHandler(handler)

        # Create console handler
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)

        # Create formatter
        formatter = logging.Formatter(
            '%(asctime)s [%(levelname)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        console_handler.setFormatter(formatter)

        # Add handler to logger
        self.logger.addHandler(console_handler)

        if logs_dir:
            logs_path = Path(logs_dir)
            logs_path.mkdir(parents=True, exist_ok=True)
            self.presence_log_path = logs_path / PRESENCE_LOG_FILE
        else:
            self.presence_log_path = None

    def info(self, message: str):
        """Log info message."""
        self.logger.info(message)

    def error(self, message: str):
        """Log error message."""
        self.logger.error(message)

    def warning(self, message: str):
        """Log warning message."""
        self.logger.warning(message)

    def debug(self, message: str):
        """Log debug message."""
        self.logger.debug(message)

    def log_connection(self, addr, connection_id: str):
        """Log client connection."""
        self.info(f"New connection from {addr}, assigned id={connection_id}")

    def log_join(self, display_name: str, connection_id: str):
        """Log user join."""
        self.info(f"User '{display_name}' joined (id={connection_id})")
        self._write_presence(f"JOIN | {display_name} | {connection_id}")

    def log_disconnect(self, display_name: Optional[str], connection_id: str):
        """Log connection close, with the display name if the connection had joined."""
        if display_name is None:
            self.info(f"Connection id={connection_id} closed without joining")
            return
        self.info(f"User {display_name} (id={connection_id}) disconnected")
        self._write_presence(f"LEAVE | {display_name} | {connection_id}")

    def log_message(self, kind: str, sender: Optional[str], connection_id: str, peers: int):
        """Log a relayed chat message. Content is never logged."""
        self.info(f"Relayed {kind} message from {sender} (id={connection_id}) to {peers} peer(s)")

    def log_heartbeat(self, connection_id: str):
        """Log heartbeat."""
        self.debug(f"Heartbeat from id={connection_id}")

    def log_idle_reset(self, cleared: int, idle_seconds: float):
        """Log an inactivity reset."""
        self.info(f"Inactive for {idle_seconds:.0f}s, cleared {cleared} presence(s)")
        self._write_presence(f"RESET | cleared={cleared} | idle={idle_seconds:.0f}s")

    def log_malformed(self, connection_id: str, reason: str):
        """Log a dropped malformed frame."""
        self.warning(f"Dropped malformed event from id={connection_id}: {reason}")

    def log_unregistered_sender(self, connection_id: str, sender: Optional[str]):
        """Log a message from a connection that never joined."""
        self.warning(f"Message from unregistered connection id={connection_id} (sender={sender})")

    def log_delivery_failure(self, connection_id: str, error: Exception):
        """Log a failed delivery to a single peer."""
        self.warning(f"Delivery to id={connection_id} failed: {error}")

    def log_error(self, operation: str, error: Exception):
        """Log error with operation context."""
        self.error(f"Error in {operation}: {error}")

    def _write_presence(self, content: str):
        """Append a presence event to the presence log file, if enabled."""
        if self.presence_log_path is None:
            return
        try:
            with open(self.presence_log_path, 'a', encoding='utf-8') as f:
                f.write(f"{datetime.now().isoformat()} | {content}\n")
        except OSError as e:
            self.error(f"Failed to write to log file {self.presence_log_path}: {e}")


# Global logger instance
logger = ServerLogger()

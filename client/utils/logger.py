"""
Client logging module.

This module handles client-side logging functionality.
"""

import logging
import sys


class ClientLogger:
    """Client logging class."""

    def __init__(self, log_level: int = logging.INFO):
        self.logger = logging.getLogger('chat_relay_client')
        self.logger.setLevel(log_level)

        # Remove existing handlers
        for handler in self.logger.handlers[:]:
            self.logger.removeHandler(handler)

        # Create console handler
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(log_level)

        # Create formatter
        formatter = logging.Formatter(
            '%(asctime)s [%(levelname)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        console_handler.setFormatter(formatter)

        # Add handler to logger
        self.logger.addHandler(console_handler)

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

    def log_connection(self, uri: str, success: bool):
        """Log connection attempt."""
        status = "Connected" if success else "Failed to connect"
        self.info(f"{status} to {uri}")

    def show_join_info(self, display_name: str):
        """Show join information."""
        self.info(f"[INFO] Joining as '{display_name}'...")

    def show_chat(self, message: dict):
        """Show an incoming text or file message."""
        timestamp = message.get('timestamp', '')[:19]
        sender = message.get('sender', 'unknown')
        if message.get('kind') == 'file':
            self.info(f"[{timestamp}] {sender} shared file '{message.get('name')}' ({message.get('mimeType')})")
        else:
            self.info(f"[{timestamp}] {sender}: {message.get('content', '')}")

    def show_system(self, message: dict):
        """Show a system notice."""
        self.info(f"[SYSTEM] {message.get('content', '')}")

    def show_reset(self):
        """Show local reset."""
        self.info("[INFO] Chat was reset by the server, local history cleared")

    def show_interactive_mode_info(self):
        """Show interactive mode information."""
        self.info("[INFO] Type messages to chat (Ctrl+C to exit)")
        self.info("[INFO] Commands: /file <path> /quit")

    def log_error(self, operation: str, error: Exception):
        """Log error with operation context."""
        self.error(f"Error in {operation}: {error}")


# Global logger instance
logger = ClientLogger()

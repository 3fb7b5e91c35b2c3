"""
Shared constants for the Chat Relay system.

This module contains all constants used across client and server components.
"""

# Network Configuration
DEFAULT_HOST = 'localhost'
DEFAULT_SERVER_HOST = '0.0.0.0'
DEFAULT_PORT = 3001

# Frame and queue limits
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB, enforced by the client
MAX_FRAME_SIZE = 16 * 1024 * 1024  # fits a base64 data URL of MAX_FILE_SIZE
PEER_QUEUE_SIZE = 1000

# Timeouts
INACTIVITY_TIMEOUT = 300  # 5 minutes in seconds
IDLE_CHECK_INTERVAL = 60  # seconds
CLIENT_HEARTBEAT_INTERVAL = 240  # 4 minutes in seconds
TRANSPORT_PING_INTERVAL = 20  # websocket-level ping, seconds
TRANSPORT_PING_TIMEOUT = 20

# Client reconnection
MAX_RETRY_ATTEMPTS = 3
RECONNECT_ATTEMPTS = 5
RECONNECT_DELAY_BASE = 1.0

# Logging
PRESENCE_LOG_FILE = 'presence.log'

# System notices
JOINED_NOTICE = '{name} joined conversation'
LEFT_NOTICE = '{name} left conversation'
INACTIVITY_NOTICE = 'Chat has been cleared due to inactivity'


# Event names carried in the frame envelope
class EventNames:
    # Client to Server
    JOIN = 'join'
    MESSAGE = 'message'
    HEARTBEAT_PING = 'heartbeat-ping'

    # Server to Client
    SYSTEM_NOTICE = 'system-notice'
    RESET = 'reset'
    HEARTBEAT_PONG = 'heartbeat-pong'


# ChatEvent kinds
class EventKinds:
    TEXT = 'text'
    FILE = 'file'
    SYSTEM = 'system'

    CLIENT_KINDS = (TEXT, FILE)

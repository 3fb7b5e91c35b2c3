"""
Connection lifecycle module.

This module drives each connection through Connected -> Present -> Closed
and routes inbound events to the registry, the activity clock and the relay.
"""

from enum import Enum
from typing import Any, Set

from common.constants import EventNames, JOINED_NOTICE, LEFT_NOTICE
from common.protocol_definitions import (
    ChatEvent, MalformedEvent, decode_frame, parse_display_name
)
from server.chat.peer import PeerConnection
from server.chat.relay import BroadcastRelay
from server.presence.activity_clock import ActivityClock
from server.presence.registry import ConnectionRegistry
from server.utils.logger import logger


class ConnectionState(Enum):
    CONNECTED = 'connected'
    PRESENT = 'present'
    CLOSED = 'closed'


class ConnectionLifecycleHandler:
    """Server-side handling of join, message, heartbeat and disconnect events."""

    def __init__(self, registry: ConnectionRegistry, clock: ActivityClock, relay: BroadcastRelay):
        self.registry = registry
        self.clock = clock
        self.relay = relay
        self.open_connections: Set[str] = set()

    def state(self, connection_id: str) -> ConnectionState:
        """
        Current state of a connection.

        Presence is read from the registry, so a connection cleared by an
        idle reset is back in CONNECTED without any extra bookkeeping.
        """
        if connection_id not in self.open_connections:
            return ConnectionState.CLOSED
        if connection_id in self.registry:
            return ConnectionState.PRESENT
        return ConnectionState.CONNECTED

    def connect(self, peer: PeerConnection):
        """Transport opened. Nothing is registered until a join arrives."""
        self.open_connections.add(peer.connection_id)
        self.relay.add_peer(peer)

    def disconnect(self, connection_id: str):
        """Transport closed: drop the peer and announce the departure if it had joined."""
        self.open_connections.discard(connection_id)
        self.relay.remove_peer(connection_id)

        entry = self.registry.remove(connection_id)
        logger.log_disconnect(entry.display_name if entry else None, connection_id)
        if entry is not None:
            self.relay.publish_system(LEFT_NOTICE.format(name=entry.display_name))

    def handle_frame(self, connection_id: str, raw: Any):
        """Decode and dispatch one inbound frame. Malformed frames are dropped."""
        if self.state(connection_id) is ConnectionState.CLOSED:
            logger.debug(f"Ignoring frame from closed connection id={connection_id}")
            return

        try:
            event, data = decode_frame(raw)

            # Dispatch message to appropriate handler
            if event == EventNames.JOIN:
                self.handle_join(connection_id, data)
            elif event == EventNames.MESSAGE:
                self.handle_message(connection_id, data)
            elif event == EventNames.HEARTBEAT_PING:
                self.handle_heartbeat(connection_id)
            else:
                raise MalformedEvent(f"unknown event '{event}'")
        except MalformedEvent as e:
            logger.log_malformed(connection_id, str(e))

    def handle_join(self, connection_id: str, data: Any):
        display_name = parse_display_name(data)

        if self.state(connection_id) is ConnectionState.PRESENT:
            logger.warning(f"Ignoring repeated join from id={connection_id} as '{display_name}'")
            return

        self.clock.touch()
        self.registry.insert(connection_id, display_name)
        logger.log_join(display_name, connection_id)
        self.relay.publish_system(JOINED_NOTICE.format(name=display_name))

    def handle_message(self, connection_id: str, data: Any):
        event = ChatEvent.from_dict(data)

        self.clock.touch()
        if self.state(connection_id) is not ConnectionState.PRESENT:
            logger.log_unregistered_sender(connection_id, event.sender)

        peers = self.relay.publish(event, origin=connection_id)
        logger.log_message(event.kind, event.sender, connection_id, peers)

    def handle_heartbeat(self, connection_id: str):
        self.clock.touch()
        logger.log_heartbeat(connection_id)
        self.relay.send_to(connection_id, EventNames.HEARTBEAT_PONG)

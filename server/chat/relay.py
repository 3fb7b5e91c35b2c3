"""
Broadcast relay module.

This module fans chat events out to every open connection in the room.
"""

from typing import Dict, List, Optional

from common.protocol_definitions import (
    ChatEvent, create_chat_frame, create_system_event, create_reset_message,
    encode_frame, utc_timestamp
)
from server.chat.peer import DeliveryFailure, PeerConnection
from server.presence.registry import ConnectionRegistry
from server.utils.logger import logger


class BroadcastRelay:
    """
    One-room fan-out over the set of open connections.

    Publishing encodes the frame once and queues it on every peer before
    returning, so each peer sees events in the order the relay accepted them.
    Sending happens on each peer's own task.
    """

    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry
        self.peers: Dict[str, PeerConnection] = {}  # connection_id -> peer

    def add_peer(self, peer: PeerConnection):
        self.peers[peer.connection_id] = peer

    def remove_peer(self, connection_id: str) -> Optional[PeerConnection]:
        return self.peers.pop(connection_id, None)

    def peer_count(self) -> int:
        return len(self.peers)

    def publish(self, event: ChatEvent, origin: Optional[str] = None) -> int:
        """
        Deliver an event to every open connection, the originator included.

        Fills in a missing timestamp and, when the event names a sender and
        an avatar reference, stores that avatar on the originating
        connection's presence entry. Returns the number of peers the frame
        was queued for.
        """
        if not event.timestamp:
            event.timestamp = utc_timestamp()

        if origin is not None and event.sender and event.sender_avatar_ref:
            self.registry.update_avatar(origin, event.sender_avatar_ref)

        return self._fan_out(create_chat_frame(event))

    def publish_system(self, content: str) -> int:
        """Broadcast a system notice."""
        return self.publish(create_system_event(content))

    def publish_reset(self) -> int:
        """Broadcast the reset signal."""
        return self._fan_out(create_reset_message())

    def send_to(self, connection_id: str, event_name: str, data: Optional[dict] = None) -> bool:
        """Send a frame to a single connection."""
        peer = self.peers.get(connection_id)
        if peer is None:
            return False
        try:
            peer.deliver(encode_frame(event_name, data))
        except DeliveryFailure as e:
            logger.log_delivery_failure(connection_id, e)
            return False
        return True

    def _fan_out(self, frame: str) -> int:
        delivered = 0
        failed: List[str] = []
        for connection_id, peer in list(self.peers.items()):
            try:
                peer.deliver(frame)
                delivered += 1
            except DeliveryFailure as e:
                logger.log_delivery_failure(connection_id, e)
                failed.append(connection_id)

        if failed:
            logger.debug(f"Fan-out skipped {len(failed)} peer(s): {failed}")
        return delivered

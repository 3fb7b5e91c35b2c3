#!/usr/bin/env python3
"""
Unit tests for the connection lifecycle handler.

Walks connections through join, chat, heartbeat and disconnect and checks
what every peer receives.
"""

import json
import unittest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from server.chat.relay import BroadcastRelay
from server.connection.lifecycle import ConnectionLifecycleHandler, ConnectionState
from server.presence.activity_clock import ActivityClock
from server.presence.idle_reaper import IdleReaper
from server.presence.registry import ConnectionRegistry
from tests.fakes import FakeTime, RecordingPeer


def frame(event: str, data=None) -> str:
    payload = {"event": event}
    if data is not None:
        payload["data"] = data
    return json.dumps(payload)


class TestConnectionLifecycle(unittest.TestCase):
    """Test cases for ConnectionLifecycleHandler."""

    def setUp(self):
        """Create a handler with a registry, clock and recording peers."""
        self.time = FakeTime()
        self.registry = ConnectionRegistry()
        self.clock = ActivityClock(self.time)
        self.relay = BroadcastRelay(self.registry)
        self.handler = ConnectionLifecycleHandler(self.registry, self.clock, self.relay)

        self.c1 = RecordingPeer("c1")
        self.c2 = RecordingPeer("c2")
        self.handler.connect(self.c1)
        self.handler.connect(self.c2)

    def join(self, connection_id: str, name: str):
        self.handler.handle_frame(connection_id, frame("join", {"displayName": name}))

    def test_join_announces_presence(self):
        """Test that a join registers the connection and announces it."""
        self.join("c1", "alice")

        self.assertEqual(self.registry.size(), 1)
        self.assertEqual(self.c1.notices(), ["alice joined conversation"])
        self.assertEqual(self.c2.notices(), ["alice joined conversation"])
        self.assertIs(self.handler.state("c1"), ConnectionState.PRESENT)

    def test_text_message_reaches_everyone_with_timestamp(self):
        """Test that a text message is relayed to all with a timestamp."""
        self.join("c1", "alice")
        self.join("c2", "bob")

        self.handler.handle_frame("c1", frame("message", {"kind": "text", "content": "hi", "sender": "alice"}))

        for peer in (self.c1, self.c2):
            messages = peer.events("message")
            self.assertEqual(len(messages), 1)
            self.assertEqual(messages[0]["data"]["content"], "hi")
            self.assertEqual(messages[0]["data"]["sender"], "alice")
            self.assertTrue(messages[0]["data"]["timestamp"])

    def test_disconnect_announces_departure(self):
        """Test that leaving removes presence and announces it."""
        self.join("c1", "alice")

        self.handler.disconnect("c1")

        self.assertEqual(self.c2.notices(), ["alice joined conversation", "alice left conversation"])
        self.assertEqual(self.registry.size(), 0)
        self.assertIs(self.handler.state("c1"), ConnectionState.CLOSED)

    def test_disconnect_without_join_is_silent(self):
        """Test that a connection that never joined leaves quietly."""
        self.handler.disconnect("c1")

        self.assertEqual(self.c2.frames, [])

    def test_join_leave_symmetry(self):
        """Test that every join notice has a matching leave notice."""
        self.join("c1", "alice")
        self.handler.handle_frame("c1", frame("message", {"kind": "text", "content": "x", "sender": "alice"}))
        self.handler.disconnect("c1")

        notices = self.c2.notices()
        self.assertEqual(notices.count("alice joined conversation"), 1)
        self.assertEqual(notices.count("alice left conversation"), 1)
        self.assertLess(notices.index("alice joined conversation"), notices.index("alice left conversation"))

    def test_repeated_join_is_ignored(self):
        """Test that a second join on one connection is ignored."""
        self.join("c1", "alice")
        self.join("c1", "alice")

        self.assertEqual(self.registry.size(), 1)
        self.assertEqual(self.c2.notices(), ["alice joined conversation"])

    def test_heartbeat_is_unicast(self):
        """Test that a heartbeat pong goes only to the pinging connection."""
        self.join("c1", "alice")
        self.join("c2", "bob")
        before = len(self.c2.frames)
        self.time.advance(100)

        self.handler.handle_frame("c1", frame("heartbeat-ping"))

        self.assertEqual(self.c1.events("heartbeat-pong"), [{"event": "heartbeat-pong"}])
        self.assertEqual(len(self.c2.frames), before)
        self.assertEqual(self.clock.elapsed_since_touch(), 0.0)

    def test_heartbeat_before_join(self):
        """Test that heartbeats work before joining."""
        self.handler.handle_frame("c1", frame("heartbeat-ping"))

        self.assertEqual(len(self.c1.events("heartbeat-pong")), 1)
        self.assertIs(self.handler.state("c1"), ConnectionState.CONNECTED)

    def test_malformed_events_are_dropped(self):
        """Test that malformed frames are dropped without a broadcast."""
        self.time.advance(50)
        bad_frames = [
            "not json",
            frame("join", {}),
            frame("message", {"kind": "text", "content": "hi"}),
            frame("message", {"kind": "system", "content": "fake notice"}),
            frame("teleport", {}),
        ]
        for raw in bad_frames:
            self.handler.handle_frame("c1", raw)

        self.assertEqual(self.c1.frames, [])
        self.assertEqual(self.c2.frames, [])
        self.assertEqual(self.registry.size(), 0)
        self.assertEqual(self.clock.elapsed_since_touch(), 50)

    def test_unregistered_sender_is_still_broadcast(self):
        """Test that messages from unjoined connections are still relayed."""
        self.handler.handle_frame("c2", frame("message", {
            "kind": "text", "content": "hello?", "sender": "ghost", "senderAvatarRef": "g.png"
        }))

        self.assertEqual(len(self.c1.events("message")), 1)
        self.assertEqual(self.registry.size(), 0)

    def test_message_updates_sender_avatar(self):
        """Test that a message avatar updates the sender presence."""
        self.join("c1", "alice")

        self.handler.handle_frame("c1", frame("message", {
            "kind": "text", "content": "hi", "sender": "alice", "senderAvatarRef": "alice-v2.png"
        }))

        self.assertEqual(self.registry.lookup("c1").avatar_ref, "alice-v2.png")

    def test_file_message_is_relayed_unchanged(self):
        """Test that file payloads are relayed as sent."""
        self.join("c1", "alice")
        data = {
            "kind": "file", "sender": "alice", "name": "notes.txt",
            "payload": "data:text/plain;base64,aGk=", "mimeType": "text/plain",
            "timestamp": "2024-05-01T10:00:00.000Z",
        }

        self.handler.handle_frame("c1", frame("message", data))

        self.assertEqual(self.c2.events("message")[0]["data"], data)

    def test_frames_after_close_are_ignored(self):
        """Test that frames after disconnect have no effect."""
        self.handler.disconnect("c1")

        self.handler.handle_frame("c1", frame("join", {"displayName": "alice"}))

        self.assertEqual(self.registry.size(), 0)
        self.assertEqual(self.c2.frames, [])

    def test_reset_returns_connections_to_connected(self):
        """Test that a reset lets connections join again."""
        self.join("c1", "alice")
        self.join("c2", "bob")
        reaper = IdleReaper(self.registry, self.clock, self.relay, threshold=300)
        self.time.advance(301)

        reaper.check_once()

        self.assertIs(self.handler.state("c1"), ConnectionState.CONNECTED)
        self.assertEqual(self.c1.events("reset"), [{"event": "reset"}])

        # Rejoining on the same connection is a fresh join
        self.join("c1", "alice")
        self.assertEqual(self.c2.notices()[-1], "alice joined conversation")

        # Disconnecting bob after the reset produces no leave notice
        self.handler.disconnect("c2")
        self.assertNotIn("bob left conversation", self.c1.notices())

    def test_registry_never_holds_duplicates(self):
        """Test that joins never create duplicate registry entries."""
        for _ in range(3):
            self.join("c1", "alice")
            self.join("c2", "bob")
            self.handler.disconnect("c2")
            self.c2 = RecordingPeer("c2")
            self.handler.connect(self.c2)

        ids = self.registry.snapshot()
        self.assertEqual(len(ids), len(set(ids)))
        self.assertEqual(ids, ["c1"])


if __name__ == '__main__':
    unittest.main()

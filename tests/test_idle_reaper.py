#!/usr/bin/env python3
"""
Unit tests for the idle reaper.

Tests the single reset cycle after inactivity, the quiet-server guard and
that joins racing a reset cycle survive it.
"""

import asyncio
import unittest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from common.constants import INACTIVITY_NOTICE
from server.chat.relay import BroadcastRelay
from server.presence.activity_clock import ActivityClock
from server.presence.idle_reaper import IdleReaper
from server.presence.registry import ConnectionRegistry
from tests.fakes import FakeTime, RecordingPeer


class TestIdleReaper(unittest.TestCase):
    """Test cases for IdleReaper.check_once."""

    def setUp(self):
        """Create a reaper over a fake clock, registry and relay."""
        self.time = FakeTime()
        self.registry = ConnectionRegistry()
        self.clock = ActivityClock(self.time)
        self.relay = BroadcastRelay(self.registry)
        self.reaper = IdleReaper(self.registry, self.clock, self.relay, threshold=300, interval=60)

        self.c1 = RecordingPeer("c1")
        self.c2 = RecordingPeer("c2")
        self.relay.add_peer(self.c1)
        self.relay.add_peer(self.c2)
        self.registry.insert("c1", "alice")
        self.registry.insert("c2", "bob")

    def test_idle_server_is_reset_once(self):
        """Test that an idle server gets one notice and one reset."""
        self.time.advance(301)

        self.assertTrue(self.reaper.check_once())

        for peer in (self.c1, self.c2):
            self.assertEqual([f["event"] for f in peer.frames], ["system-notice", "reset"])
            self.assertEqual(peer.notices(), [INACTIVITY_NOTICE])
        self.assertEqual(self.registry.size(), 0)

    def test_no_leave_notices_during_reset(self):
        """Test that a reset sends no per-user leave notices."""
        self.time.advance(301)
        self.reaper.check_once()

        self.assertFalse(any("left conversation" in n for n in self.c1.notices()))

    def test_active_server_is_left_alone(self):
        """Test that recent activity prevents a reset."""
        self.time.advance(299)
        self.clock.touch()
        self.time.advance(200)

        self.assertFalse(self.reaper.check_once())
        self.assertEqual(self.c1.frames, [])
        self.assertEqual(self.registry.size(), 2)

    def test_threshold_is_exclusive(self):
        """Test that exactly the timeout is not yet idle."""
        self.time.advance(300)

        self.assertFalse(self.reaper.check_once())

    def test_repeated_ticks_after_reset_do_nothing(self):
        """Test that later ticks on an empty registry send nothing."""
        self.time.advance(301)
        self.reaper.check_once()

        for _ in range(5):
            self.time.advance(60)
            self.assertFalse(self.reaper.check_once())

        self.assertEqual(len(self.c1.events("reset")), 1)

    def test_new_join_after_reset_allows_another_cycle(self):
        """Test that a new join makes another reset possible."""
        self.time.advance(301)
        self.reaper.check_once()

        self.clock.touch()
        self.registry.insert("c1", "alice")
        self.time.advance(301)

        self.assertTrue(self.reaper.check_once())
        self.assertEqual(len(self.c1.events("reset")), 2)

    def test_empty_registry_is_not_reset(self):
        """Test that an empty registry is never reset."""
        self.registry.clear()
        self.time.advance(1000)

        self.assertFalse(self.reaper.check_once())
        self.assertEqual(self.c1.frames, [])

    def test_join_during_reset_cycle_survives(self):
        """An entry added after the idle snapshot is not cleared."""
        original_publish_reset = self.relay.publish_reset

        def publish_reset_with_racing_join():
            delivered = original_publish_reset()
            self.registry.insert("c3", "carol")
            return delivered

        self.relay.publish_reset = publish_reset_with_racing_join
        self.time.advance(301)

        self.reaper.check_once()

        self.assertEqual(self.registry.snapshot(), ["c3"])


class TestIdleReaperTask(unittest.IsolatedAsyncioTestCase):
    """Test cases for the background reaper task."""

    async def test_background_task_fires_and_stops(self):
        """Test that the background task ticks and stops cleanly."""
        time_source = FakeTime()
        registry = ConnectionRegistry()
        clock = ActivityClock(time_source)
        relay = BroadcastRelay(registry)
        peer = RecordingPeer("c1")
        relay.add_peer(peer)
        registry.insert("c1", "alice")

        reaper = IdleReaper(registry, clock, relay, threshold=300, interval=0.01)
        time_source.advance(301)
        reaper.start()
        await asyncio.sleep(0.1)
        await reaper.stop()

        self.assertIsNone(reaper.task)
        self.assertEqual(len(peer.events("reset")), 1)
        self.assertEqual(registry.size(), 0)

    async def test_failing_tick_does_not_stop_the_loop(self):
        """Test that an error in one tick does not end the loop."""
        registry = ConnectionRegistry()
        relay = BroadcastRelay(registry)
        clock = ActivityClock(FakeTime())
        reaper = IdleReaper(registry, clock, relay, interval=0.01)

        calls = []

        def broken_check():
            calls.append(1)
            raise RuntimeError("boom")

        reaper.check_once = broken_check
        reaper.start()
        await asyncio.sleep(0.1)
        await reaper.stop()

        self.assertGreater(len(calls), 1)


if __name__ == '__main__':
    unittest.main()

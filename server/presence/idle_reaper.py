"""
Idle reaper module.

Periodically wipes presence state after a period with no activity from any
connection.
"""

import asyncio
from typing import Optional

from common.constants import INACTIVITY_NOTICE, INACTIVITY_TIMEOUT, IDLE_CHECK_INTERVAL
from server.chat.relay import BroadcastRelay
from server.presence.activity_clock import ActivityClock
from server.presence.registry import ConnectionRegistry
from server.utils.logger import logger


class IdleReaper:
    """Periodic idle check over the shared registry and activity clock."""

    def __init__(self, registry: ConnectionRegistry, clock: ActivityClock, relay: BroadcastRelay,
                 threshold: float = INACTIVITY_TIMEOUT, interval: float = IDLE_CHECK_INTERVAL):
        self.registry = registry
        self.clock = clock
        self.relay = relay
        self.threshold = threshold
        self.interval = interval
        self.task: Optional[asyncio.Task] = None

    def check_once(self) -> bool:
        """
        Run one idle check. Returns True if a reset cycle fired.

        The farewell notice and the reset signal are queued before the
        registry is cleared, and only the ids observed here are removed, so
        a connection joining after the check keeps its entry.
        """
        idle_for = self.clock.elapsed_since_touch()
        if idle_for <= self.threshold:
            return False

        observed = self.registry.snapshot()
        if not observed:
            return False

        self.relay.publish_system(INACTIVITY_NOTICE)
        self.relay.publish_reset()
        removed = self.registry.remove_many(observed)

        logger.log_idle_reset(len(removed), idle_for)
        return True

    async def run(self):
        """Check on a fixed period until cancelled."""
        while True:
            await asyncio.sleep(self.interval)
            try:
                self.check_once()
            except Exception as e:
                logger.log_error("idle reaper", e)

    def start(self) -> asyncio.Task:
        """Start the reaper in the background."""
        self.task = asyncio.create_task(self.run())
        return self.task

    async def stop(self):
        """Cancel the background task."""
        if self.task is None:
            return
        self.task.cancel()
        try:
            await self.task
        except asyncio.CancelledError:
            pass
        self.task = None

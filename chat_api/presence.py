import asyncio
import logging
import time
from typing import Callable, List, Optional

from .errors import NotFound
from .models import LEFT_TEXT, Participant, status_message
from .registry import ParticipantRegistry
from .store import Store

logger = logging.getLogger(__name__)


class PresenceTracker:
    def __init__(
        self,
        store: Store,
        registry: ParticipantRegistry,
        ttl: float,
        interval: float,
        clock: Callable[[], float] = time.time,
    ):
        if ttl <= 0 or interval <= 0:
            raise ValueError("ttl and interval must be positive")
        self.store = store
        self.registry = registry
        self.ttl = ttl
        self.interval = interval
        self.clock = clock
        self._task: Optional[asyncio.Task] = None
        self._stopping: Optional[asyncio.Event] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep(self) -> List[str]:
        """Run one eviction cycle and return the names that were reaped."""
        cutoff = self.clock() - self.ttl
        stale = await self.store.find_many(
            Participant, Participant.last_seen < cutoff, order_by=Participant.id
        )

        reaped = []
        for participant in stale:
            if await self._reap(participant, cutoff):
                reaped.append(participant.name)

        if stale:
            self.registry.invalidate()
        return reaped

    async def _reap(self, participant: Participant, cutoff: float) -> bool:
        try:
            async with self.store.atomic() as tx:
                # the guard skips anyone who pinged after the scan
                await tx.delete_one(
                    Participant, participant.id, Participant.last_seen < cutoff
                )
                await tx.insert(status_message(participant.name, LEFT_TEXT))
        except NotFound:
            logger.debug("%s refreshed or left before eviction", participant.name)
            return False
        except Exception:
            logger.exception("Failed to evict %s", participant.name)
            return False

        logger.info("%s left (inactive for more than %ss)", participant.name, self.ttl)
        return True

    async def _run(self):
        logger.info(
            "Presence tracker started (interval=%ss, ttl=%ss)", self.interval, self.ttl
        )
        while not await self._wait_for_stop():
            try:
                await self.sweep()
            except Exception:
                logger.exception("Presence sweep failed")

    async def _wait_for_stop(self) -> bool:
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout=self.interval)
        except asyncio.TimeoutError:
            return False
        return True

    def start(self):
        if self.running:
            return
        self._stopping = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name="presence-tracker")

    async def stop(self):
        if self._task is None:
            return
        # a sweep in progress runs to completion
        self._stopping.set()
        await self._task
        self._task = None
        logger.info("Presence tracker stopped")

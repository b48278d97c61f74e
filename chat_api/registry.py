import logging
import time
from typing import Callable, List, Optional

from .errors import InvalidIdentifier, NotFound
from .models import JOINED_TEXT, Participant, is_valid_name, status_message
from .store import Store

logger = logging.getLogger(__name__)


class ParticipantRegistry:
    """Who is currently in the room.

    Name uniqueness comes from the unique index on ``participant.name``.
    Presence checks go straight to the store; only :meth:`list` is served
    from the cached snapshot, which every write path invalidates.
    """

    def __init__(self, store: Store, clock: Callable[[], float] = time.time):
        self.store = store
        self.clock = clock
        self._snapshot: Optional[List[Participant]] = None
        self._generation = 0

    def invalidate(self):
        self._snapshot = None
        self._generation += 1

    async def join(self, name) -> Participant:
        if not is_valid_name(name):
            raise InvalidIdentifier()

        participant = Participant(name=name, last_seen=self.clock())
        try:
            async with self.store.atomic() as tx:
                await tx.insert(participant)
                await tx.insert(status_message(name, JOINED_TEXT))
        finally:
            self.invalidate()

        logger.info("%s joined", name)
        return participant

    async def refresh(self, name) -> None:
        participant = await self.get(name)
        if participant is None:
            raise NotFound("Unknown participant")

        # raises NotFound if the participant was reaped since the lookup
        await self.store.update_one(
            Participant, participant.id, {"last_seen": self.clock()}
        )
        self.invalidate()
        logger.debug("%s is alive", name)

    async def get(self, name) -> Optional[Participant]:
        if not name:
            return None
        return await self.store.find_one(Participant, Participant.name == name)

    async def is_present(self, name) -> bool:
        return await self.get(name) is not None

    async def list(self) -> List[Participant]:
        if self._snapshot is not None:
            return list(self._snapshot)

        generation = self._generation
        participants = list(await self.store.find_many(
            Participant, order_by=Participant.id
        ))
        # a write that landed while we were reading makes this result stale
        if generation == self._generation:
            self._snapshot = participants
        return list(participants)

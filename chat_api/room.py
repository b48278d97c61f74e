import time
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncEngine

from .config import PRESENCE_INTERVAL, PRESENCE_TTL
from .database import make_session_factory
from .presence import PresenceTracker
from .registry import ParticipantRegistry
from .router import MessageRouter
from .store import Store


class ChatRoom:
    """The services behind one chat room, sharing a single store."""

    def __init__(
        self,
        engine: AsyncEngine,
        ttl: float = PRESENCE_TTL,
        interval: float = PRESENCE_INTERVAL,
        clock: Callable[[], float] = time.time,
    ):
        self.engine = engine
        self.store = Store(make_session_factory(engine))
        self.registry = ParticipantRegistry(self.store, clock=clock)
        self.router = MessageRouter(self.store, self.registry)
        self.tracker = PresenceTracker(
            self.store, self.registry, ttl=ttl, interval=interval, clock=clock
        )

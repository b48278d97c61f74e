import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from chat_api.database import init_db, make_engine
from chat_api.main import app
from chat_api.room import ChatRoom
from chat_api.store import Store


class FakeClock:
    """Epoch-seconds clock the tests move by hand."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class BrokenSession:
    """Session stand-in whose every round trip fails with ``error``."""

    def __init__(self, error):
        self.error = error

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    def add(self, record):
        pass

    async def flush(self):
        raise self.error

    async def exec(self, statement):
        raise self.error

    async def commit(self):
        pass

    async def rollback(self):
        pass


@pytest.fixture
def broken_store():
    def make(error):
        return Store(lambda: BrokenSession(error))
    return make


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
async def engine():
    # one shared connection so every session sees the same in-memory database
    engine = make_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def room(engine, clock):
    return ChatRoom(engine, ttl=10, interval=15, clock=clock)


@pytest.fixture
def store(room):
    return room.store


@pytest.fixture
def registry(room):
    return room.registry


@pytest.fixture
def router(room):
    return room.router


@pytest.fixture
def tracker(room):
    return room.tracker


@pytest.fixture
async def client(room):
    app.state.room = room
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

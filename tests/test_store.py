import pytest
from sqlalchemy.exc import OperationalError, TimeoutError

from chat_api.errors import Conflict, NotFound, StoreUnavailable
from chat_api.models import Message, Participant, status_message


BACKEND_ERRORS = [
    OperationalError("SELECT 1", {}, Exception("database is locked")),
    TimeoutError("QueuePool limit reached"),
    ConnectionRefusedError(),
]


@pytest.mark.parametrize("error", BACKEND_ERRORS)
async def test_backend_failures_become_store_unavailable(broken_store, error):
    store = broken_store(error)

    with pytest.raises(StoreUnavailable):
        await store.find_many(Participant)
    with pytest.raises(StoreUnavailable):
        await store.find_one(Message, Message.id == 1)
    with pytest.raises(StoreUnavailable):
        await store.insert(status_message("alice", "joined"))
    with pytest.raises(StoreUnavailable):
        await store.update_one(Message, 1, {"text": "x"})
    with pytest.raises(StoreUnavailable):
        await store.delete_one(Message, 1)


async def test_backend_failure_inside_transaction(broken_store):
    store = broken_store(TimeoutError("QueuePool limit reached"))

    with pytest.raises(StoreUnavailable):
        async with store.atomic() as tx:
            await tx.delete_one(Participant, 1)


async def test_unique_violation_is_conflict(store):
    await store.insert(Participant(name="alice", last_seen=0))

    with pytest.raises(Conflict):
        await store.insert(Participant(name="alice", last_seen=1))


async def test_update_and_delete_of_missing_rows(store):
    with pytest.raises(NotFound):
        await store.update_one(Message, 42, {"text": "x"})
    with pytest.raises(NotFound):
        await store.delete_one(Message, 42)


async def test_guarded_write_that_matches_nothing(store):
    message = await store.insert(status_message("alice", "joined"))

    with pytest.raises(NotFound):
        await store.update_one(Message, message.id, {"text": "x"}, Message.sender == "bob")
    with pytest.raises(NotFound):
        await store.delete_one(Message, message.id, Message.sender == "bob")
    assert (await store.find_one(Message, Message.id == message.id)).text == "joined"


async def test_atomic_rolls_back_on_failure(store):
    with pytest.raises(NotFound):
        async with store.atomic() as tx:
            await tx.insert(Participant(name="alice", last_seen=0))
            await tx.delete_one(Message, 42)

    assert await store.find_many(Participant) == []

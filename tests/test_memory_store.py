"""Document store contract and the retrying read-modify-write."""

import pytest

from tourney.errors import NotFoundError, StoreError, TransactionConflict
from tourney.storage.memory_store import InMemoryDocumentStore


class FlakyStore(InMemoryDocumentStore):
    """Loses the first ``conflicts`` swaps."""

    def __init__(self, conflicts: int, max_attempts: int):
        super().__init__(max_attempts=max_attempts)
        self.conflicts = conflicts
        self.swaps = 0

    async def _swap(self, collection, doc_id, expected, new):
        self.swaps += 1
        if self.swaps <= self.conflicts:
            raise TransactionConflict("simulated")
        await super()._swap(collection, doc_id, expected, new)


@pytest.mark.asyncio
async def test_crud_and_queries(store):
    await store.set("teams", "A", {"group": "1"})
    await store.set("teams", "B", {"group": "2"})
    await store.update("teams", "A", {"name": "Alpha"})

    assert await store.get("teams", "A") == {"id": "A", "group": "1", "name": "Alpha"}
    assert await store.query_equals("teams", "group", "2") == [{"id": "B", "group": "2"}]
    assert len(await store.list_all("teams")) == 2

    await store.delete("teams", "A")
    assert await store.get("teams", "A") is None
    assert await store.get("other", "A") is None


@pytest.mark.asyncio
async def test_update_missing_record_fails(store):
    with pytest.raises(StoreError):
        await store.update("teams", "A", {"group": "1"})


@pytest.mark.asyncio
async def test_returned_records_are_copies(store):
    await store.set("teams", "A", {"group": "1"})
    record = await store.get("teams", "A")
    record["group"] = "9"
    assert (await store.get("teams", "A"))["group"] == "1"


@pytest.mark.asyncio
async def test_transact_reports_before_and_after(store):
    before, after = await store.transact("groups", "1", lambda cur: {"count": 1})
    assert (before, after) == (None, {"count": 1})
    before, after = await store.transact("groups", "1", lambda cur: None)
    assert (before, after) == ({"count": 1}, None)
    assert await store.get("groups", "1") is None


@pytest.mark.asyncio
async def test_transact_absent_and_nothing_to_write(store):
    assert await store.transact("groups", "1", lambda cur: None) == (None, None)


@pytest.mark.asyncio
async def test_transact_retries_conflicts():
    flaky = FlakyStore(conflicts=2, max_attempts=3)
    _, after = await flaky.transact("groups", "1", lambda cur: {"count": 1})
    assert after == {"count": 1}
    assert flaky.swaps == 3


@pytest.mark.asyncio
async def test_transact_gives_up_with_store_error():
    flaky = FlakyStore(conflicts=10, max_attempts=3)
    with pytest.raises(StoreError) as excinfo:
        await flaky.transact("groups", "1", lambda cur: {"count": 1})
    assert isinstance(excinfo.value.__cause__, TransactionConflict)
    assert flaky.swaps == 3
    assert await flaky.get("groups", "1") is None


@pytest.mark.asyncio
async def test_mutation_errors_abort_without_retry():
    flaky = FlakyStore(conflicts=0, max_attempts=3)
    calls = []

    def refuse(current):
        calls.append(current)
        raise NotFoundError("Team", "A")

    with pytest.raises(NotFoundError):
        await flaky.transact("teams", "A", refuse)
    assert calls == [None]
    assert flaky.swaps == 0


@pytest.mark.asyncio
async def test_stale_swap_conflicts(store):
    await store.set("groups", "1", {"count": 2})
    with pytest.raises(TransactionConflict):
        await store._swap("groups", "1", {"count": 1}, {"count": 2})

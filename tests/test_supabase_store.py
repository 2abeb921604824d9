"""Supabase adapter against a fake PostgREST query builder."""

import copy
from types import SimpleNamespace

import pytest
from postgrest.exceptions import APIError

from tourney.errors import StoreError, TransactionConflict
from tourney.services.group_ledger import GroupLedger
from tourney.storage.supabase_store import SupabaseDocumentStore


class FakeQuery:
    def __init__(self, rows, op, payload=None, fail=None):
        self.rows = rows
        self.op = op
        self.payload = payload
        self.fail = fail
        self.filters = []

    def select(self, *_):
        return self

    def limit(self, _):
        return self

    def eq(self, field, value):
        self.filters.append(lambda row: row.get(field) == value)
        return self

    def is_(self, field, value):
        assert value == "null"
        self.filters.append(lambda row: row.get(field) is None)
        return self

    def _matched(self):
        return [r for r in self.rows.values() if all(f(r) for f in self.filters)]

    async def execute(self):
        if self.fail:
            raise APIError(self.fail)
        if self.op == "select":
            return SimpleNamespace(data=copy.deepcopy(self._matched()))
        if self.op == "insert":
            if self.payload["id"] in self.rows:
                raise APIError({"message": "duplicate key", "code": "23505"})
            self.rows[self.payload["id"]] = dict(self.payload)
            return SimpleNamespace(data=[dict(self.payload)])
        if self.op == "upsert":
            self.rows[self.payload["id"]] = dict(self.payload)
            return SimpleNamespace(data=[dict(self.payload)])
        matched = self._matched()
        for row in matched:
            if self.op == "update":
                row.update(self.payload)
            else:
                del self.rows[row["id"]]
        return SimpleNamespace(data=copy.deepcopy(matched))


class FakeTable:
    def __init__(self, rows, fail=None):
        self.rows = rows
        self.fail = fail

    def select(self, *_):
        return FakeQuery(self.rows, "select", fail=self.fail)

    def insert(self, payload):
        return FakeQuery(self.rows, "insert", payload, fail=self.fail)

    def upsert(self, payload):
        return FakeQuery(self.rows, "upsert", payload, fail=self.fail)

    def update(self, payload):
        return FakeQuery(self.rows, "update", payload, fail=self.fail)

    def delete(self):
        return FakeQuery(self.rows, "delete", fail=self.fail)


class FakeClient:
    def __init__(self, fail=None):
        self.tables = {}
        self.fail = fail

    def table(self, name):
        return FakeTable(self.tables.setdefault(name, {}), fail=self.fail)


@pytest.fixture
def client():
    return FakeClient()


@pytest.fixture
def supabase_store(client):
    return SupabaseDocumentStore(client, max_attempts=3)


@pytest.mark.asyncio
async def test_get_set_query_delete(supabase_store):
    await supabase_store.set("teams", "A", {"group": "1", "name": None})
    assert await supabase_store.get("teams", "A") == {"id": "A", "group": "1", "name": None}
    assert await supabase_store.query_equals("teams", "group", "1") == [
        {"id": "A", "group": "1", "name": None}
    ]
    await supabase_store.update("teams", "A", {"name": "Alpha"})
    assert (await supabase_store.get("teams", "A"))["name"] == "Alpha"
    await supabase_store.delete("teams", "A")
    assert await supabase_store.get("teams", "A") is None
    assert await supabase_store.list_all("teams") == []


@pytest.mark.asyncio
async def test_update_missing_row(supabase_store):
    with pytest.raises(StoreError):
        await supabase_store.update("teams", "A", {"name": "Alpha"})


@pytest.mark.asyncio
async def test_api_errors_become_store_errors():
    failing = SupabaseDocumentStore(FakeClient(fail={"message": "boom", "code": "500"}))
    with pytest.raises(StoreError):
        await failing.get("teams", "A")


@pytest.mark.asyncio
async def test_swap_detects_concurrent_insert(supabase_store, client):
    await supabase_store.set("groups", "1", {"count": 1})
    with pytest.raises(TransactionConflict):
        await supabase_store._swap("groups", "1", None, {"count": 1})


@pytest.mark.asyncio
async def test_swap_detects_changed_row(supabase_store):
    await supabase_store.set("groups", "1", {"count": 2})
    with pytest.raises(TransactionConflict):
        await supabase_store._swap("groups", "1", {"count": 1}, {"count": 2})
    with pytest.raises(TransactionConflict):
        await supabase_store._swap("groups", "1", {"count": 1}, None)
    await supabase_store._swap("groups", "1", {"count": 2}, {"count": 3})
    assert (await supabase_store.get("groups", "1"))["count"] == 3


@pytest.mark.asyncio
async def test_swap_matches_null_fields(supabase_store):
    await supabase_store.set("teams", "A", {"group": "1", "name": None})
    await supabase_store._swap(
        "teams", "A", {"group": "1", "name": None}, {"group": "2", "name": None}
    )
    assert (await supabase_store.get("teams", "A"))["group"] == "2"


@pytest.mark.asyncio
async def test_ledger_over_supabase(supabase_store, client):
    ledger = GroupLedger(supabase_store, collection="groups")
    await ledger.increment("1")
    await ledger.increment("1")
    await ledger.decrement("1")
    assert client.tables["groups"] == {"1": {"id": "1", "count": 1}}
    await ledger.decrement("1")
    assert client.tables["groups"] == {}

# tourney/storage/supabase_store.py
from typing import Any, List, Optional

from loguru import logger
from postgrest import APIResponse
from postgrest.exceptions import APIError
from supabase import AsyncClient, create_async_client

from tourney.config.settings import AppSettings
from tourney.errors import StoreError, TransactionConflict
from tourney.storage.base import Document, DocumentStore

# Postgres unique_violation, returned when an insert races another insert
UNIQUE_VIOLATION = "23505"


async def initialize_supabase(app_settings: AppSettings) -> AsyncClient:
    """Creates an ASYNC Supabase client from settings."""
    if not app_settings.supabase_url or not app_settings.supabase_key:
        logger.critical("Supabase URL or Key not configured in settings.")
        raise StoreError("Supabase configuration missing.")

    url = str(app_settings.supabase_url)
    # Service role bypasses row level security; prefer it for admin writes
    key = app_settings.supabase_service_key or app_settings.supabase_key
    logger.debug(f"Attempting to initialize Async Supabase client with URL: {url}")

    try:
        client: AsyncClient = await create_async_client(url, key)
    except Exception as e:
        logger.exception(f"Failed to initialize Async Supabase client: {e}")
        raise StoreError("Failed to initialize Supabase client") from e
    logger.success("Async Supabase client initialized successfully.")
    return client


class SupabaseDocumentStore(DocumentStore):
    """DocumentStore over Supabase tables.

    Each collection is a table with a text ``id`` primary key and one column
    per field. Field values are flat scalars, so compare-and-swap is an
    ``update``/``delete`` filtered on every expected column.
    """

    def __init__(self, client: AsyncClient, max_attempts: int = 5):
        super().__init__(max_attempts=max_attempts)
        self.client = client

    async def _execute(self, query: Any, action: str) -> APIResponse:
        try:
            return await query.execute()
        except APIError as e:
            logger.error(f"Supabase API error during {action}: {e.message}")
            logger.debug(f"Full APIError details: {e}")
            raise StoreError(f"Supabase {action} failed: {e.message}") from e

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        query = self.client.table(collection).select("*").eq("id", doc_id).limit(1)
        response = await self._execute(query, f"get {collection}/{doc_id}")
        return response.data[0] if response.data else None

    async def set(self, collection: str, doc_id: str, fields: Document) -> None:
        row = {**fields, "id": doc_id}
        await self._execute(
            self.client.table(collection).upsert(row), f"set {collection}/{doc_id}"
        )

    async def update(self, collection: str, doc_id: str, partial: Document) -> None:
        query = self.client.table(collection).update(partial).eq("id", doc_id)
        response = await self._execute(query, f"update {collection}/{doc_id}")
        if not response.data:
            raise StoreError(f"Cannot update missing record {collection}/{doc_id}")

    async def delete(self, collection: str, doc_id: str) -> None:
        query = self.client.table(collection).delete().eq("id", doc_id)
        await self._execute(query, f"delete {collection}/{doc_id}")

    async def query_equals(
        self, collection: str, field: str, value: Any
    ) -> List[Document]:
        query = self.client.table(collection).select("*").eq(field, value)
        response = await self._execute(query, f"query {collection}.{field}")
        return list(response.data or [])

    async def list_all(self, collection: str) -> List[Document]:
        query = self.client.table(collection).select("*")
        response = await self._execute(query, f"list {collection}")
        return list(response.data or [])

    @staticmethod
    def _match_expected(query: Any, doc_id: str, expected: Document) -> Any:
        query = query.eq("id", doc_id)
        for field, value in expected.items():
            query = query.is_(field, "null") if value is None else query.eq(field, value)
        return query

    async def _swap(
        self,
        collection: str,
        doc_id: str,
        expected: Optional[Document],
        new: Optional[Document],
    ) -> None:
        table = self.client.table(collection)
        action = f"swap {collection}/{doc_id}"

        if expected is None:
            try:
                await table.insert({**new, "id": doc_id}).execute()
            except APIError as e:
                if e.code == UNIQUE_VIOLATION:
                    raise TransactionConflict(f"{collection}/{doc_id} created concurrently") from e
                logger.error(f"Supabase API error during {action}: {e.message}")
                raise StoreError(f"Supabase {action} failed: {e.message}") from e
            return

        if new is None:
            query = self._match_expected(table.delete(), doc_id, expected)
        else:
            query = self._match_expected(table.update(new), doc_id, expected)
        response = await self._execute(query, action)
        if not response.data:
            raise TransactionConflict(f"{collection}/{doc_id} changed")

import asyncio
import copy
from collections import defaultdict
from typing import Any, Dict, List, Optional

from loguru import logger

from tourney.errors import StoreError, TransactionConflict
from tourney.storage.base import Document, DocumentStore


class InMemoryDocumentStore(DocumentStore):
    """Process-local document store.

    Every public call yields to the event loop before touching data, so
    interleavings between concurrent callers look like those of a remote store.
    """

    def __init__(self, max_attempts: int = 5):
        super().__init__(max_attempts=max_attempts)
        self._collections: Dict[str, Dict[str, Document]] = defaultdict(dict)
        self._lock = asyncio.Lock()

    def _records(self, collection: str) -> Dict[str, Document]:
        return self._collections[collection]

    @staticmethod
    def _with_id(doc_id: str, fields: Document) -> Document:
        return {"id": doc_id, **copy.deepcopy(fields)}

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        await asyncio.sleep(0)
        fields = self._records(collection).get(doc_id)
        return None if fields is None else self._with_id(doc_id, fields)

    async def set(self, collection: str, doc_id: str, fields: Document) -> None:
        await asyncio.sleep(0)
        async with self._lock:
            self._records(collection)[doc_id] = copy.deepcopy(fields)

    async def update(self, collection: str, doc_id: str, partial: Document) -> None:
        await asyncio.sleep(0)
        async with self._lock:
            records = self._records(collection)
            if doc_id not in records:
                raise StoreError(f"Cannot update missing record {collection}/{doc_id}")
            records[doc_id].update(copy.deepcopy(partial))

    async def delete(self, collection: str, doc_id: str) -> None:
        await asyncio.sleep(0)
        async with self._lock:
            self._records(collection).pop(doc_id, None)

    async def query_equals(
        self, collection: str, field: str, value: Any
    ) -> List[Document]:
        await asyncio.sleep(0)
        return [
            self._with_id(doc_id, fields)
            for doc_id, fields in self._records(collection).items()
            if fields.get(field) == value
        ]

    async def list_all(self, collection: str) -> List[Document]:
        await asyncio.sleep(0)
        return [
            self._with_id(doc_id, fields)
            for doc_id, fields in self._records(collection).items()
        ]

    async def _swap(
        self,
        collection: str,
        doc_id: str,
        expected: Optional[Document],
        new: Optional[Document],
    ) -> None:
        await asyncio.sleep(0)
        async with self._lock:
            records = self._records(collection)
            if records.get(doc_id) != expected:
                logger.debug(f"Conflict on {collection}/{doc_id}, record changed.")
                raise TransactionConflict(f"{collection}/{doc_id} changed")
            if new is None:
                records.pop(doc_id, None)
            else:
                records[doc_id] = copy.deepcopy(new)

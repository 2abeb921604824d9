import copy
import uuid
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Tuple

from loguru import logger
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from tourney.errors import StoreError, TransactionConflict

# A stored record as returned by the store: its fields plus "id"
Document = Dict[str, Any]
# Receives the current fields (None when absent); returns the new fields,
# or None to delete / leave absent. Raising aborts with no write.
Mutation = Callable[[Optional[Document]], Optional[Document]]


class DocumentStore(ABC):
    """Abstract async key/document store the core is written against.

    Records are addressed by ``(collection, id)``. Fields passed in never
    contain ``id``; records handed back always do.
    """

    def __init__(self, max_attempts: int = 5):
        self.max_attempts = max_attempts

    @staticmethod
    def new_id() -> str:
        """Allocates a fresh record id."""
        return uuid.uuid4().hex[:20]

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        pass

    @abstractmethod
    async def set(self, collection: str, doc_id: str, fields: Document) -> None:
        """Writes the full field set of a record, replacing any previous one."""
        pass

    @abstractmethod
    async def update(self, collection: str, doc_id: str, partial: Document) -> None:
        """Merges ``partial`` into an existing record."""
        pass

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        pass

    @abstractmethod
    async def query_equals(
        self, collection: str, field: str, value: Any
    ) -> List[Document]:
        pass

    @abstractmethod
    async def list_all(self, collection: str) -> List[Document]:
        pass

    @abstractmethod
    async def _swap(
        self,
        collection: str,
        doc_id: str,
        expected: Optional[Document],
        new: Optional[Document],
    ) -> None:
        """Replaces ``expected`` with ``new`` only if the record still equals ``expected``.

        Raises:
            TransactionConflict: The record changed since it was read.
        """
        pass

    async def transact(
        self, collection: str, doc_id: str, mutate: Mutation
    ) -> Tuple[Optional[Document], Optional[Document]]:
        """Runs an atomic read-modify-write on one record.

        The read, ``mutate`` and compare-and-swap are retried as a unit on
        conflicts, up to ``max_attempts`` times.

        Args:
            collection: Collection holding the record.
            doc_id: Record key.
            mutate: Pure function from the current fields to the new fields.

        Returns:
            The fields before and after the write (either may be None).

        Raises:
            StoreError: The swap kept conflicting or the store failed.
        """
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential(multiplier=0.01, min=0, max=0.2),
                retry=retry_if_exception_type(TransactionConflict),
                reraise=False,
            ):
                with attempt:
                    current = await self.get(collection, doc_id)
                    before = _strip_id(current)
                    after = mutate(copy.deepcopy(before))
                    if before is None and after is None:
                        return None, None
                    await self._swap(collection, doc_id, before, after)
                    return before, after
        except RetryError as e:
            logger.error(
                f"Gave up on {collection}/{doc_id} after {self.max_attempts} conflicting attempts."
            )
            raise StoreError(
                f"Transaction on {collection}/{doc_id} kept conflicting"
            ) from e.last_attempt.exception()
        # AsyncRetrying always returns or raises above
        raise StoreError(f"Transaction on {collection}/{doc_id} did not run")


def _strip_id(record: Optional[Document]) -> Optional[Document]:
    if record is None:
        return None
    return {k: v for k, v in record.items() if k != "id"}

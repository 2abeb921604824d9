from typing import List, Optional

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from tourney.config.settings import settings
from tourney.errors import ValidationError
from tourney.models.group import Group
from tourney.storage.base import Document, DocumentStore


def decode_group(record: Document) -> Group:
    try:
        return Group.model_validate(record)
    except PydanticValidationError as e:
        raise ValidationError(f"Stored group {record.get('id')} is malformed: {e}") from e


class GroupLedger:
    """Keeps one counter record per group, equal to its number of teams.

    ``increment`` and ``decrement`` are the only writers of group records;
    each runs as one atomic read-modify-write in the store.
    """

    def __init__(self, store: DocumentStore, collection: Optional[str] = None):
        self.store = store
        self.collection = collection or settings.groups_table

    async def increment(self, group_id: str) -> Group:
        def bump(current: Optional[Document]) -> Document:
            count = 0 if current is None else decode_group({**current, "id": group_id}).count
            return {"count": count + 1}

        _, after = await self.store.transact(self.collection, group_id, bump)
        logger.debug(f"Group {group_id} count -> {after['count']}")
        return Group(id=group_id, count=after["count"])

    async def decrement(self, group_id: str) -> Optional[Group]:
        """Drops one team from a group, deleting the record when it empties.

        Returns:
            The updated group, or None when it no longer exists.

        Raises:
            ValidationError: The stored count is malformed.
        """

        def drop(current: Optional[Document]) -> Optional[Document]:
            if current is None:
                return None
            new_count = max(0, decode_group({**current, "id": group_id}).count - 1)
            if new_count == 0:
                return None
            return {"count": new_count}

        before, after = await self.store.transact(self.collection, group_id, drop)
        if before is None:
            logger.warning(f"Decrement of unknown group {group_id} ignored.")
            return None
        if after is None:
            logger.info(f"Group {group_id} is empty and was removed.")
            return None
        logger.debug(f"Group {group_id} count -> {after['count']}")
        return Group(id=group_id, count=after["count"])

    async def get(self, group_id: str) -> Optional[Group]:
        record = await self.store.get(self.collection, group_id)
        return None if record is None else decode_group(record)

    async def list(self) -> List[Group]:
        records = await self.store.list_all(self.collection)
        return [decode_group(r) for r in records]

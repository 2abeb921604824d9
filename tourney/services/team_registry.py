from typing import Any, Iterable, List, Mapping, Optional, Union

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from tourney.config.settings import settings
from tourney.errors import NotFoundError, ValidationError
from tourney.models.team import Team
from tourney.services.group_ledger import GroupLedger
from tourney.storage.base import Document, DocumentStore

TeamInput = Union[Team, Mapping[str, Any]]


def coerce_team(team: TeamInput) -> Team:
    if isinstance(team, Team):
        return team
    try:
        return Team.model_validate(team)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid team: {e}") from e


def decode_team(record: Document) -> Team:
    try:
        return Team.model_validate(record)
    except PydanticValidationError as e:
        raise ValidationError(f"Stored team {record.get('id')} is malformed: {e}") from e


class TeamRegistry:
    """Owns team records and keeps the group ledger in step with them."""

    def __init__(
        self,
        store: DocumentStore,
        ledger: Optional[GroupLedger] = None,
        collection: Optional[str] = None,
    ):
        self.store = store
        self.ledger = ledger or GroupLedger(store)
        self.collection = collection or settings.teams_table

    async def _insert(self, team: Team, team_id: str) -> Team:
        fields = team.to_document()

        def claim(current: Optional[Document]) -> Document:
            if current is not None:
                raise ValidationError(f"Team with ID {team_id} already exists.")
            return fields

        # Counted before the record is visible, so a concurrent delete of
        # this team always finds its group
        await self.ledger.increment(team.group)
        try:
            await self.store.transact(self.collection, team_id, claim)
        except Exception:
            await self.ledger.decrement(team.group)
            raise
        logger.info(f"Registered team {team_id} in group {team.group}")
        return team.model_copy(update={"id": team_id})

    async def create(self, team: TeamInput) -> Team:
        """Registers a team under its own id, or a fresh one if it has none.

        Raises:
            ValidationError: The id is already taken or the team is malformed.
        """
        team = coerce_team(team)
        return await self._insert(team, team.id or self.store.new_id())

    async def upsert(self, team: TeamInput) -> Team:
        """Inserts a team without an id, or replaces the existing team with that id.

        The previous group is read in the same atomic step as the overwrite.
        The new group is counted before that step and the old one released
        after it, so any team a concurrent reader sees has its group counted.

        Raises:
            NotFoundError: An id was given but no such team exists.
            ValidationError: The team is malformed.
        """
        team = coerce_team(team)
        if team.id is None:
            return await self._insert(team, self.store.new_id())

        team_id = team.id
        fields = team.to_document()

        def replace(current: Optional[Document]) -> Document:
            if current is None:
                raise NotFoundError(
                    "Team", team_id, "Please provide a valid ID to update."
                )
            return fields

        await self.ledger.increment(team.group)
        try:
            before, _ = await self.store.transact(self.collection, team_id, replace)
        except Exception:
            await self.ledger.decrement(team.group)
            raise

        old_group = before.get("group")
        if old_group != team.group:
            logger.info(f"Team {team_id} moves from group {old_group} to {team.group}")
        # Releases the old group, or the extra count when the group is unchanged
        await self.ledger.decrement(old_group if old_group is not None else team.group)
        return team

    async def find(self, team_id: str) -> Optional[Team]:
        record = await self.store.get(self.collection, team_id)
        return None if record is None else decode_team(record)

    async def get(self, team_id: str) -> Team:
        team = await self.find(team_id)
        if team is None:
            raise NotFoundError("Team", team_id)
        return team

    async def list(self) -> List[Team]:
        records = await self.store.list_all(self.collection)
        return [decode_team(r) for r in records]

    async def delete(self, team_id: str) -> None:
        def remove(current: Optional[Document]) -> None:
            if current is None:
                raise NotFoundError("Team", team_id)
            return None

        before, _ = await self.store.transact(self.collection, team_id, remove)
        logger.info(f"Deleted team {team_id}")
        group = before.get("group")
        if group is not None:
            await self.ledger.decrement(group)

    async def bulk_create(self, teams: Iterable[TeamInput]) -> List[Team]:
        """Registers teams in order; stops at the first failure."""
        created = []
        for team in teams:
            created.append(await self.create(team))
        logger.success(f"Registered {len(created)} teams.")
        return created

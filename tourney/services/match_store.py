from typing import Any, Iterable, List, Mapping, Optional, Union

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from tourney.config.settings import settings
from tourney.errors import NotFoundError, ValidationError
from tourney.models.enums import MatchPolicy
from tourney.models.match import Match
from tourney.services.team_registry import TeamRegistry
from tourney.storage.base import Document, DocumentStore

MatchInput = Union[Match, Mapping[str, Any]]


def coerce_match(match: MatchInput) -> Match:
    if isinstance(match, Match):
        return match
    try:
        return Match.model_validate(match)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid match: {e}") from e


def decode_match(record: Document) -> Match:
    try:
        return Match.model_validate(record)
    except PydanticValidationError as e:
        raise ValidationError(f"Stored match {record.get('id')} is malformed: {e}") from e


class MatchStore:
    """Owns match records; every write is validated against the teams first."""

    def __init__(
        self,
        store: DocumentStore,
        teams: Optional[TeamRegistry] = None,
        policy: Optional[MatchPolicy] = None,
        collection: Optional[str] = None,
    ):
        self.store = store
        self.teams = teams or TeamRegistry(store)
        self.policy = policy or settings.match_policy
        self.collection = collection or settings.matches_table

    async def validate(self, match: MatchInput) -> Match:
        """Checks scores, both team references and, under STRICT, their groups.

        Raises:
            ValidationError: Bad scores, a self-match, or teams in different groups.
            NotFoundError: ``team_a`` or ``team_b`` does not exist.
        """
        match = coerce_match(match)

        team_a = await self.teams.find(match.team_a)
        if team_a is None:
            raise NotFoundError("Team", match.team_a, "Referenced as team_a.")
        team_b = await self.teams.find(match.team_b)
        if team_b is None:
            raise NotFoundError("Team", match.team_b, "Referenced as team_b.")

        if self.policy == MatchPolicy.STRICT and team_a.group != team_b.group:
            raise ValidationError(
                f"Teams {match.team_a} and {match.team_b} are not in the same group."
            )
        return match

    async def upsert(self, match: MatchInput) -> Match:
        match = await self.validate(match)
        fields = match.to_document()

        if match.id is None:
            match_id = self.store.new_id()
            await self.store.set(self.collection, match_id, fields)
            logger.info(
                f"Recorded match {match_id}: {match.team_a} {match.score_a}-{match.score_b} {match.team_b}"
            )
            return match.model_copy(update={"id": match_id})

        match_id = match.id

        def replace(current: Optional[Document]) -> Document:
            if current is None:
                raise NotFoundError(
                    "Match", match_id, "Please provide a valid ID to update."
                )
            return fields

        # Existence check and overwrite in one step, so a concurrent delete wins
        await self.store.transact(self.collection, match_id, replace)
        logger.info(f"Updated match {match.id}")
        return match

    async def get(self, match_id: str) -> Match:
        record = await self.store.get(self.collection, match_id)
        if record is None:
            raise NotFoundError("Match", match_id)
        return decode_match(record)

    async def list(self) -> List[Match]:
        records = await self.store.list_all(self.collection)
        return [decode_match(r) for r in records]

    async def delete(self, match_id: str) -> None:
        def remove(current: Optional[Document]) -> None:
            if current is None:
                raise NotFoundError("Match", match_id, "Cannot delete.")
            return None

        await self.store.transact(self.collection, match_id, remove)
        logger.info(f"Deleted match {match_id}")

    async def find_by_team(self, team_id: str) -> List[Match]:
        """All matches in which the team played on either side."""
        as_a = await self.store.query_equals(self.collection, "team_a", team_id)
        as_b = await self.store.query_equals(self.collection, "team_b", team_id)
        seen = set()
        matches = []
        for record in as_a + as_b:
            if record["id"] in seen:
                continue
            seen.add(record["id"])
            matches.append(decode_match(record))
        return matches

    async def bulk_upsert(self, matches: Iterable[MatchInput]) -> List[Match]:
        """Records matches in order; stops at the first failure."""
        stored = []
        for match in matches:
            stored.append(await self.upsert(match))
        logger.success(f"Recorded {len(stored)} matches.")
        return stored

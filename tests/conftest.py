from datetime import datetime, timedelta, timezone

import pytest

from tourney.models.enums import MatchPolicy
from tourney.models.team import Team
from tourney.services.group_ledger import GroupLedger
from tourney.services.match_store import MatchStore
from tourney.services.standings_service import StandingsService
from tourney.services.team_registry import TeamRegistry
from tourney.storage.memory_store import InMemoryDocumentStore

BASE = datetime(2024, 9, 29, 8, 0, tzinfo=timezone.utc)


def make_team(team_id, group="1", minutes=0, name=None) -> Team:
    return Team(
        id=team_id,
        name=name,
        registered_at=BASE + timedelta(minutes=minutes),
        group=group,
    )


@pytest.fixture
def store():
    return InMemoryDocumentStore(max_attempts=20)


@pytest.fixture
def ledger(store):
    return GroupLedger(store, collection="groups")


@pytest.fixture
def registry(store, ledger):
    return TeamRegistry(store, ledger=ledger, collection="teams")


@pytest.fixture
def matches(store, registry):
    return MatchStore(
        store, teams=registry, policy=MatchPolicy.STRICT, collection="matches"
    )


@pytest.fixture
def standings(registry, matches):
    return StandingsService(registry, matches)

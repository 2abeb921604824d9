from typing import Optional

from loguru import logger

from tourney.calculation.standings import (
    compute_leaderboard,
    compute_team_stats,
    qualifiers,
)
from tourney.config.settings import settings
from tourney.models.stats import Leaderboard, TeamStat
from tourney.services.match_store import MatchStore
from tourney.services.team_registry import TeamRegistry


class StandingsService:
    """Read-only view over teams and matches; never writes to the store."""

    def __init__(self, teams: TeamRegistry, matches: MatchStore):
        self.teams = teams
        self.matches = matches

    async def team_stats(self, team_id: str) -> TeamStat:
        team = await self.teams.get(team_id)
        matches = await self.matches.find_by_team(team_id)
        return compute_team_stats(team, matches)

    async def leaderboard(self) -> Leaderboard:
        teams = await self.teams.list()
        matches = await self.matches.list()
        logger.debug(f"Ranking {len(teams)} teams over {len(matches)} matches")
        return compute_leaderboard(teams, matches)

    async def qualifiers(self, per_group: Optional[int] = None) -> Leaderboard:
        if per_group is None:
            per_group = settings.qualifiers_per_group
        return qualifiers(await self.leaderboard(), per_group)

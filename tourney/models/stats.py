from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, computed_field


class TeamStat(BaseModel):
    """Standings of one team, recomputed from its matches on every read."""

    model_config = ConfigDict(frozen=True)

    team_id: str
    group: str
    registered_at: datetime
    total_matches: int = 0
    wins: int = 0
    losses: int = 0
    draws: int = 0
    points: int = 0
    alt_points: int = 0

    @computed_field  # type: ignore[misc]
    @property
    def record(self) -> str:
        """Win-draw-loss summary, e.g. ``2-1-0``."""
        return f"{self.wins}-{self.draws}-{self.losses}"


# Group id -> stats in ranking order
Leaderboard = Dict[str, List[TeamStat]]

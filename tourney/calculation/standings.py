"""Standings arithmetic: per-team stats and the grouped leaderboard.

Everything here is pure; callers fetch teams and matches and hand them in.
"""

from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Tuple

from tourney.models.enums import MatchOutcome
from tourney.models.match import Match
from tourney.models.stats import Leaderboard, TeamStat
from tourney.models.team import Team

# Outcome -> (points, alt_points)
POINTS_TABLE: Dict[MatchOutcome, Tuple[int, int]] = {
    MatchOutcome.WIN: (3, 5),
    MatchOutcome.DRAW: (1, 3),
    MatchOutcome.LOSS: (0, 1),
}


def classify(team_id: str, match: Match) -> MatchOutcome:
    """Result of ``match`` from the point of view of ``team_id``."""
    is_team_a = match.team_a == team_id
    own = match.score_a if is_team_a else match.score_b
    opp = match.score_b if is_team_a else match.score_a
    if own == opp:
        return MatchOutcome.DRAW
    return MatchOutcome.WIN if own > opp else MatchOutcome.LOSS


def compute_team_stats(team: Team, matches: Iterable[Match]) -> TeamStat:
    """Aggregates a team's results; matches it did not play are ignored."""
    counts = {outcome: 0 for outcome in MatchOutcome}
    points = 0
    alt_points = 0

    for match in matches:
        if not match.involves(team.id):
            continue
        outcome = classify(team.id, match)
        counts[outcome] += 1
        earned, alt_earned = POINTS_TABLE[outcome]
        points += earned
        alt_points += alt_earned

    return TeamStat(
        team_id=team.id,
        group=team.group,
        registered_at=team.registered_at,
        total_matches=sum(counts.values()),
        wins=counts[MatchOutcome.WIN],
        losses=counts[MatchOutcome.LOSS],
        draws=counts[MatchOutcome.DRAW],
        points=points,
        alt_points=alt_points,
    )


def rank_key(stat: TeamStat) -> Tuple[int, int, datetime]:
    # Points, then alt points, both descending; earlier registration first
    return (-stat.points, -stat.alt_points, stat.registered_at)


def sort_group(stats: Iterable[TeamStat]) -> List[TeamStat]:
    return sorted(stats, key=rank_key)


def compute_leaderboard(teams: Iterable[Team], matches: Iterable[Match]) -> Leaderboard:
    """Ranks every team within its group.

    Teams without matches are included with zeroed stats. Groups are keyed
    in ascending id order.
    """
    by_team: Dict[str, List[Match]] = defaultdict(list)
    for match in matches:
        by_team[match.team_a].append(match)
        by_team[match.team_b].append(match)

    grouped: Dict[str, List[TeamStat]] = defaultdict(list)
    for team in teams:
        grouped[team.group].append(compute_team_stats(team, by_team.get(team.id, [])))

    return {group: sort_group(grouped[group]) for group in sorted(grouped)}


def qualifiers(leaderboard: Leaderboard, per_group: int) -> Leaderboard:
    """The top ``per_group`` teams of each group."""
    return {group: stats[:per_group] for group, stats in leaderboard.items()}

from datetime import datetime, timedelta, timezone
from typing import List

from tourney.models.match import Match
from tourney.models.team import Team

BASE_REGISTRATION = datetime(2024, 9, 29, 8, 0, tzinfo=timezone.utc)


def sample_teams() -> List[Team]:
    """Twelve teams A-L, five minutes apart; A-F in group 1, G-L in group 2."""
    teams = []
    for index, letter in enumerate("ABCDEFGHIJKL"):
        teams.append(
            Team(
                id=letter,
                name=f"Team {letter}",
                registered_at=BASE_REGISTRATION + timedelta(minutes=5 * index),
                group="1" if index < 6 else "2",
            )
        )
    return teams


def sample_matches() -> List[Match]:
    results = [
        ("A", "B", 1, 0),
        ("C", "D", 2, 2),
        ("E", "F", 3, 1),
        ("A", "C", 0, 1),
        ("B", "E", 4, 3),
        ("D", "F", 2, 2),
        ("G", "H", 0, 1),
        ("I", "J", 4, 3),
        ("K", "L", 2, 2),
        ("G", "I", 1, 1),
        ("H", "K", 3, 0),
        ("J", "L", 0, 2),
    ]
    return [
        Match(team_a=a, team_b=b, score_a=score_a, score_b=score_b)
        for a, b, score_a, score_b in results
    ]

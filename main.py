import sys
import asyncio
from typing import List

# --- Settings/Logging ---
from tourney.logging.setup import setup_logging
from tourney.config.settings import settings

setup_logging()

from loguru import logger

from rich import print
from rich.panel import Panel
from rich.table import Table

from tourney.calculation.standings import qualifiers
from tourney.errors import TourneyError
from tourney.models.match import Match
from tourney.models.stats import Leaderboard
from tourney.models.team import Team
from tourney.normalization.input_parser import (
    parse_lines,
    parse_match_line,
    parse_team_line,
)
from tourney.seed.sample_data import sample_matches, sample_teams
from tourney.services.match_store import MatchStore
from tourney.services.standings_service import StandingsService
from tourney.services.team_registry import TeamRegistry
from tourney.storage.factory import build_store


def load_seed_data() -> tuple[List[Team], List[Match]]:
    """Team and match input from the configured files, else the sample set."""
    if settings.seed_teams_file:
        logger.info(f"Reading teams from {settings.seed_teams_file}")
        teams = parse_lines(
            settings.seed_teams_file.read_text(encoding="utf-8"), parse_team_line
        )
    else:
        teams = sample_teams()

    if settings.seed_matches_file:
        logger.info(f"Reading matches from {settings.seed_matches_file}")
        matches = parse_lines(
            settings.seed_matches_file.read_text(encoding="utf-8"), parse_match_line
        )
    else:
        matches = sample_matches() if not settings.seed_teams_file else []
    return teams, matches


def render_leaderboard(leaderboard: Leaderboard, per_group: int) -> None:
    qualified = qualifiers(leaderboard, per_group)
    for group, stats in leaderboard.items():
        qualified_ids = {s.team_id for s in qualified[group]}
        table = Table(show_header=True, header_style="bold")
        for column in ("#", "Team", "Played", "W-D-L", "Points", "Alt", "Registered"):
            table.add_column(column)
        for rank, stat in enumerate(stats, start=1):
            table.add_row(
                str(rank),
                stat.team_id,
                str(stat.total_matches),
                stat.record,
                str(stat.points),
                str(stat.alt_points),
                stat.registered_at.strftime("%d/%m %H:%M"),
                style="green" if stat.team_id in qualified_ids else None,
            )
        print(Panel(table, title=f"Group {group}"))


async def main() -> None:
    """Seeds the configured store and prints the leaderboard."""
    logger.info(f"Starting standings run against the {settings.store_backend} store")

    store = await build_store(settings)
    registry = TeamRegistry(store)
    match_store = MatchStore(store, teams=registry)
    standings = StandingsService(registry, match_store)

    teams, matches = load_seed_data()
    existing = {t.id for t in await registry.list()}
    await registry.bulk_create(t for t in teams if t.id not in existing)
    if await match_store.list():
        logger.info("Matches already recorded; skipping match seeding.")
    else:
        await match_store.bulk_upsert(matches)

    for group in await registry.ledger.list():
        logger.info(f"Group {group.id}: {group.count} teams")

    render_leaderboard(await standings.leaderboard(), settings.qualifiers_per_group)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Execution interrupted by user (KeyboardInterrupt).")
        sys.exit(0)
    except TourneyError as e:
        logger.error(f"Standings run failed: {e}")
        sys.exit(1)
    except Exception as e:
        logger.exception(f"Unhandled exception in main execution: {e}")
        sys.exit(1)

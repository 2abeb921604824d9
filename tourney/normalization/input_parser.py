# tourney/normalization/input_parser.py
import re
from datetime import datetime, timezone
from typing import Callable, List, Optional, TypeVar

from pydantic import ValidationError as PydanticValidationError

from tourney.errors import ValidationError
from tourney.models.match import Match
from tourney.models.team import Team

T = TypeVar("T")

DATE_PATTERN = re.compile(r"^(\d{2})/(\d{2})$")
INTEGER_PATTERN = re.compile(r"^\d+$")

TEAM_FORMAT = "<Team Name> <Registration Date (DD/MM)> <Group Number>"
MATCH_FORMAT = "<teamA> <teamB> <scoreA> <scoreB>"


def parse_team_line(line: str, year: Optional[int] = None) -> Team:
    """Parses the admin form format ``<name> <DD/MM> <group>``.

    The name doubles as the team id. The date is midnight UTC of ``year``
    (current UTC year by default).
    """
    parts = line.split()
    if len(parts) != 3:
        raise ValidationError(f"Please enter data in the format: {TEAM_FORMAT}")
    name, reg_date, group = parts

    date_match = DATE_PATTERN.match(reg_date)
    if not date_match:
        raise ValidationError("Please enter a valid registration date in DD/MM format.")
    day, month = (int(p) for p in date_match.groups())
    year = year or datetime.now(timezone.utc).year
    try:
        registered_at = datetime(year, month, day, tzinfo=timezone.utc)
    except ValueError as e:
        raise ValidationError(f"{reg_date} is not a calendar date: {e}") from e

    if not INTEGER_PATTERN.match(group):
        raise ValidationError("Please enter a valid number for the group.")

    # "01" and "1" name the same group
    return Team(id=name, name=name, registered_at=registered_at, group=str(int(group)))


def parse_match_line(line: str) -> Match:
    """Parses the admin form format ``<teamA> <teamB> <scoreA> <scoreB>``."""
    parts = line.split()
    if len(parts) != 4:
        raise ValidationError(f"Please enter data in the format: {MATCH_FORMAT}")
    team_a, team_b, score_a, score_b = parts

    if not (INTEGER_PATTERN.match(score_a) and INTEGER_PATTERN.match(score_b)):
        raise ValidationError("Please enter valid numbers for the scores.")
    try:
        return Match(
            team_a=team_a, team_b=team_b, score_a=int(score_a), score_b=int(score_b)
        )
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid match: {e}") from e


def parse_lines(text: str, parser: Callable[[str], T]) -> List[T]:
    """Applies ``parser`` to every non-blank line, naming the line on failure."""
    parsed = []
    for number, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            parsed.append(parser(line))
        except ValidationError as e:
            raise ValidationError(f"Line {number}: {e}") from e
    return parsed

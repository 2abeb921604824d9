from enum import Enum


class MatchPolicy(str, Enum):
    STRICT = "strict"  # Both teams must belong to the same group
    OPEN = "open"  # Any two existing teams may play


class MatchOutcome(str, Enum):
    WIN = "WIN"
    DRAW = "DRAW"
    LOSS = "LOSS"

# tourney/models/team.py
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Team(BaseModel):
    """A registered team and the group it currently plays in."""

    id: Optional[str] = None  # Record key, allocated by the store when absent
    name: Optional[str] = None
    registered_at: datetime
    group: str = Field(..., min_length=1)

    @field_validator("registered_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Naive timestamps are taken as UTC so registrations stay comparable
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def to_document(self) -> dict:
        """Stored field set; the id is the record key, never a field."""
        return self.model_dump(mode="json", exclude={"id"})

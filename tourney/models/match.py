from typing import Optional

from pydantic import BaseModel, Field, model_validator


class Match(BaseModel):
    """A played match between two teams, referenced by id."""

    id: Optional[str] = None
    team_a: str = Field(..., min_length=1)
    team_b: str = Field(..., min_length=1)
    # Strict: "2", 2.0 and True are not scores
    score_a: int = Field(..., ge=0, strict=True)
    score_b: int = Field(..., ge=0, strict=True)

    @model_validator(mode="after")
    def _distinct_teams(self) -> "Match":
        if self.team_a == self.team_b:
            raise ValueError(f"Team {self.team_a} cannot play against itself.")
        return self

    def involves(self, team_id: str) -> bool:
        return team_id in (self.team_a, self.team_b)

    def to_document(self) -> dict:
        return self.model_dump(mode="json", exclude={"id"})

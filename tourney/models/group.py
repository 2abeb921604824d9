from pydantic import BaseModel, Field


class Group(BaseModel):
    """Denormalized count of the teams registered in one group."""

    id: str
    count: int = Field(..., ge=0)

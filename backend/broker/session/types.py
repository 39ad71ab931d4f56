"""
Pydantic models for the session layer.
"""

from pydantic import BaseModel, ConfigDict, Field


class RoomInfo(BaseModel):
    """Open room entry for lobby listings."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    player_count: int = Field(alias="playerCount")

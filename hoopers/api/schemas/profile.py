from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class ProfileResponse(BaseModel):
    profile_id: str
    user_id: str | None = None
    user_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    position: str | None = None
    city: str | None = None
    zip: str | None = None
    player_number: str | None = None
    points: int | None = None
    status: str | None = None
    total_wins: int = 0
    total_losses: int = 0
    created_date: datetime

    model_config = ConfigDict(from_attributes=True)

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class GameResponse(BaseModel):
    game_id: str
    court_id: str | None = None
    run_id: str | None = None
    game_number: str | None = None
    location: str | None = None
    created_date: datetime | None = None

    model_config = ConfigDict(from_attributes=True)

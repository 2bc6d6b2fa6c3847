from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class RunResponse(BaseModel):
    run_id: str
    court_id: str | None = None
    profile_id: str | None = None
    name: str | None = None
    description: str | None = None
    status: str | None = None
    run_date: datetime | None = None
    cost: Decimal | None = None
    skill_level: str | None = None
    player_limit: int | None = None
    is_public: bool = True
    created_date: datetime

    model_config = ConfigDict(from_attributes=True)

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class ClientResponse(BaseModel):
    client_id: str
    client_number: str | None = None
    name: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    phone_number: str | None = None
    created_date: datetime | None = None

    model_config = ConfigDict(from_attributes=True)

"""
SQLAlchemy 2.x ORM models for the Hoopers API.

Only the columns used by the list/detail endpoints are mapped. Each keyset
sort column carries a composite index with the primary key so cursor
predicates resolve as index range scans.
"""

import uuid
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, Index, Integer, Numeric, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class Profile(Base):
    """Player profile shown on the leaderboard and player search screens."""

    __tablename__ = "profiles"
    __table_args__ = (
        Index("ix_profiles_points_id", "points", "profile_id"),
        Index("ix_profiles_player_number_id", "player_number", "profile_id"),
        Index("ix_profiles_user_name_id", "user_name", "profile_id"),
        Index("ix_profiles_status_id", "status", "profile_id"),
    )

    profile_id: Mapped[str] = mapped_column(Text, primary_key=True, default=_new_id)
    user_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    user_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    first_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    position: Mapped[str | None] = mapped_column(Text, nullable=True)
    city: Mapped[str | None] = mapped_column(Text, nullable=True)
    zip: Mapped[str | None] = mapped_column(Text, nullable=True)
    player_number: Mapped[str | None] = mapped_column(Text, nullable=True)
    points: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str | None] = mapped_column(Text, nullable=True)
    total_wins: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_losses: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )


class Run(Base):
    """A scheduled pickup run at a court."""

    __tablename__ = "runs"
    __table_args__ = (
        Index("ix_runs_run_date_id", "run_date", "run_id"),
        Index("ix_runs_name_id", "name", "run_id"),
        Index("ix_runs_status_id", "status", "run_id"),
        Index("ix_runs_player_limit_id", "player_limit", "run_id"),
    )

    run_id: Mapped[str] = mapped_column(Text, primary_key=True, default=_new_id)
    court_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    profile_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str | None] = mapped_column(Text, nullable=True)
    run_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cost: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    skill_level: Mapped[str | None] = mapped_column(Text, nullable=True)
    player_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )


class Game(Base):
    """A completed game played during a run."""

    __tablename__ = "games"
    __table_args__ = (
        Index("ix_games_created_date_id", "created_date", "game_id"),
        Index("ix_games_game_number_id", "game_number", "game_id"),
    )

    game_id: Mapped[str] = mapped_column(Text, primary_key=True, default=_new_id)
    court_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    run_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    game_number: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class Client(Base):
    """An organisation (gym, league operator) that owns courts."""

    __tablename__ = "clients"
    __table_args__ = (
        Index("ix_clients_name_id", "name", "client_id"),
        Index("ix_clients_city_id", "city", "client_id"),
        Index("ix_clients_zip_id", "zip", "client_id"),
        Index("ix_clients_created_date_id", "created_date", "client_id"),
    )

    client_id: Mapped[str] = mapped_column(Text, primary_key=True, default=_new_id)
    client_number: Mapped[str | None] = mapped_column(Text, nullable=True)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    city: Mapped[str | None] = mapped_column(Text, nullable=True)
    state: Mapped[str | None] = mapped_column(Text, nullable=True)
    zip: Mapped[str | None] = mapped_column(Text, nullable=True)
    phone_number: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

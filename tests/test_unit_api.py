"""
Unit tests for the HTTP surface.

Tests cover:
- Keyset list endpoints for every entity
- Error mapping (404, 503, 504) without internal detail leaking
- Request validation
- Token-protected metrics endpoint
"""

import base64
import json
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest

from hoopers.core.config import settings
from hoopers.core.errors import SourceTimeoutError, SourceUnavailableError
from tests.conftest import (
    create_clients_in_db,
    create_games_in_db,
    create_profiles_in_db,
    create_runs_in_db,
    leaderboard_rows,
)


class TestProfileEndpoints:
    """Tests for /api/v1/profiles."""

    @pytest.mark.anyio
    async def test_list_profiles_first_page(self, client, async_db_session):
        await create_profiles_in_db(
            async_db_session,
            [
                {"profile_id": "1", "user_name": "A", "points": 10},
                {"profile_id": "2", "user_name": "B", "points": 10},
                {"profile_id": "3", "user_name": "C", "points": 5},
            ],
        )

        resp = await client.get("/api/v1/profiles/cursor", params={"limit": 2})

        assert resp.status_code == 200
        body = resp.json()
        assert [p["profile_id"] for p in body["items"]] == ["1", "2"]
        assert body["has_more"] is True
        assert body["next_cursor"]
        assert body["prev_cursor"] is None
        assert body["count"] == 2
        assert body["sort_by"] == "points"
        assert body["order"] == "desc"
        assert body["direction"] == "next"

    @pytest.mark.anyio
    async def test_follow_cursor_to_the_end(self, client, async_db_session):
        rows = leaderboard_rows(9, null_every=4)
        await create_profiles_in_db(async_db_session, rows)

        seen = []
        params = {"limit": 4, "sortBy": "UserName"}
        while True:
            body = (await client.get("/api/v1/profiles/cursor", params=params)).json()
            seen.extend(p["profile_id"] for p in body["items"])
            if not body["has_more"]:
                break
            params["cursor"] = body["next_cursor"]

        assert sorted(seen) == sorted(r["profile_id"] for r in rows)
        assert len(seen) == len(rows)

    @pytest.mark.anyio
    async def test_malformed_cursor_returns_first_page(self, client, async_db_session):
        await create_profiles_in_db(async_db_session, leaderboard_rows(5))

        first = await client.get("/api/v1/profiles/cursor")
        garbage = await client.get("/api/v1/profiles/cursor", params={"cursor": "eyJpZCI6"})

        assert garbage.status_code == 200
        assert garbage.json()["items"] == first.json()["items"]

    @pytest.mark.anyio
    async def test_unknown_sort_field_falls_back(self, client, async_db_session):
        await create_profiles_in_db(async_db_session, leaderboard_rows(3))

        resp = await client.get("/api/v1/profiles/cursor", params={"sortBy": "height"})

        assert resp.status_code == 200
        assert resp.json()["sort_by"] == "points"

    @pytest.mark.anyio
    @pytest.mark.parametrize(("limit", "expected"), [(0, 20), (-3, 20), (5000, 100)])
    async def test_limit_is_clamped(self, client, limit, expected):
        resp = await client.get("/api/v1/profiles/cursor", params={"limit": limit})

        assert resp.status_code == 200
        assert resp.json()["limit"] == expected

    @pytest.mark.anyio
    async def test_invalid_direction_rejected(self, client):
        resp = await client.get("/api/v1/profiles/cursor", params={"direction": "sideways"})

        assert resp.status_code == 422

    @pytest.mark.anyio
    async def test_get_profile(self, client, async_db_session):
        await create_profiles_in_db(async_db_session, [{"profile_id": "p-7", "points": 70}])

        resp = await client.get("/api/v1/profiles/p-7")

        assert resp.status_code == 200
        assert resp.json()["points"] == 70

    @pytest.mark.anyio
    async def test_get_profile_not_found(self, client):
        resp = await client.get("/api/v1/profiles/missing")

        assert resp.status_code == 404
        body = resp.json()
        assert body["error"] == "NotFoundError"
        assert body["details"] == {"profile_id": "missing"}


def _token(payload: dict) -> str:
    return base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")


class TestOutOfRangeCursors:
    """Well-formed cursors holding values the store cannot bind behave like no cursor."""

    @pytest.mark.anyio
    @pytest.mark.parametrize(
        "payload",
        [
            {"id": "p-001", "points": 10**30},
            {"id": "p-001", "points": -(2**63) - 1},
            {"id": "\ud800", "points": 100},
        ],
    )
    async def test_profile_cursor_returns_first_page(self, client, async_db_session, payload):
        await create_profiles_in_db(async_db_session, leaderboard_rows(6))
        first = await client.get("/api/v1/profiles/cursor", params={"limit": 3})

        resp = await client.get(
            "/api/v1/profiles/cursor", params={"limit": 3, "cursor": _token(payload)}
        )

        assert resp.status_code == 200
        assert resp.json() == first.json()

    @pytest.mark.anyio
    async def test_surrogate_string_sort_value(self, client, async_db_session):
        await create_profiles_in_db(async_db_session, leaderboard_rows(4))
        params = {"limit": 2, "sortBy": "username"}
        first = await client.get("/api/v1/profiles/cursor", params=params)

        cursor = _token({"id": "p-001", "username": "ab\udfff"})
        resp = await client.get("/api/v1/profiles/cursor", params={**params, "cursor": cursor})

        assert resp.status_code == 200
        assert resp.json() == first.json()

    @pytest.mark.anyio
    @pytest.mark.parametrize("cost", ["NaN", "Infinity", "-Infinity", "sNaN", float("nan")])
    async def test_non_finite_decimal_cursor_returns_first_page(
        self, client, async_db_session, cost
    ):
        await create_runs_in_db(
            async_db_session,
            [
                {"run_id": f"r-{i}", "cost": Decimal(f"{i}.50"), "run_date": datetime(2024, 6, i)}
                for i in range(1, 5)
            ],
        )
        params = {"limit": 2, "sortBy": "cost"}
        first = await client.get("/api/v1/runs/cursor", params=params)

        cursor = _token({"id": "r-1", "cost": cost})
        resp = await client.get("/api/v1/runs/cursor", params={**params, "cursor": cursor})

        assert resp.status_code == 200
        assert resp.json() == first.json()
        assert [r["run_id"] for r in resp.json()["items"]] == ["r-1", "r-2"]


class TestSourceErrors:
    """Source failures map to 503/504 with a generic message only."""

    @pytest.mark.anyio
    async def test_timeout_returns_504(self, client):
        error = SourceTimeoutError(
            "Entity source fetch timed out", details={"timeout_seconds": 5.0}
        )
        with patch(
            "hoopers.api.routes.profiles.list_profiles_with_cursor",
            AsyncMock(side_effect=error),
        ):
            resp = await client.get("/api/v1/profiles/cursor")

        assert resp.status_code == 504
        assert resp.json() == {
            "error": "SourceTimeoutError",
            "message": SourceTimeoutError.public_message,
            "details": {},
        }

    @pytest.mark.anyio
    async def test_unavailable_returns_503(self, client):
        error = SourceUnavailableError(
            "Entity source fetch failed", details={"sql": "SELECT * FROM profiles"}
        )
        with patch(
            "hoopers.api.routes.runs.list_runs_with_cursor", AsyncMock(side_effect=error)
        ):
            resp = await client.get("/api/v1/runs/cursor")

        assert resp.status_code == 503
        assert "SELECT" not in resp.text
        assert resp.json()["message"] == SourceUnavailableError.public_message


class TestOtherEntities:
    """Smoke tests for the run, game and client listings."""

    @pytest.mark.anyio
    async def test_runs_for_court(self, client, async_db_session):
        await create_runs_in_db(
            async_db_session,
            [
                {"run_id": "r-1", "court_id": "c-1", "run_date": datetime(2024, 6, 1, 18)},
                {"run_id": "r-2", "court_id": "c-2", "run_date": datetime(2024, 6, 2, 18)},
                {"run_id": "r-3", "court_id": "c-1", "run_date": datetime(2024, 6, 3, 18)},
            ],
        )

        resp = await client.get("/api/v1/runs/cursor", params={"courtId": "c-1"})

        assert resp.status_code == 200
        assert [r["run_id"] for r in resp.json()["items"]] == ["r-3", "r-1"]

    @pytest.mark.anyio
    async def test_games_by_number(self, client, async_db_session):
        await create_games_in_db(
            async_db_session,
            [{"game_id": f"g-{i}", "run_id": "r-1", "game_number": f"{i}"} for i in range(3)],
        )

        resp = await client.get(
            "/api/v1/games/cursor", params={"sortBy": "gameNumber", "runId": "r-1", "limit": 2}
        )

        body = resp.json()
        assert [g["game_id"] for g in body["items"]] == ["g-0", "g-1"]
        assert body["has_more"] is True

    @pytest.mark.anyio
    async def test_clients_default_sort(self, client, async_db_session):
        await create_clients_in_db(
            async_db_session,
            [
                {"client_id": "c-1", "name": "Zeta Courts"},
                {"client_id": "c-2", "name": "Alpha Gym"},
            ],
        )

        resp = await client.get("/api/v1/clients/cursor")

        assert [c["name"] for c in resp.json()["items"]] == ["Alpha Gym", "Zeta Courts"]

    @pytest.mark.anyio
    async def test_client_not_found(self, client):
        resp = await client.get("/api/v1/clients/unknown")

        assert resp.status_code == 404


class TestMetricsEndpoint:
    """Tests for the token-protected /metrics route."""

    @pytest.mark.anyio
    async def test_disabled_without_token(self, client, monkeypatch):
        monkeypatch.setattr(settings, "metrics_token", None)

        resp = await client.get("/metrics")

        assert resp.status_code == 404

    @pytest.mark.anyio
    async def test_rejects_wrong_token(self, client, monkeypatch):
        monkeypatch.setattr(settings, "metrics_token", "s3cret")

        resp = await client.get("/metrics", headers={"X-Metrics-Token": "guess"})

        assert resp.status_code == 403

    @pytest.mark.anyio
    async def test_serves_pagination_metrics(self, client, monkeypatch):
        monkeypatch.setattr(settings, "metrics_token", "s3cret")
        await client.get("/api/v1/profiles/cursor")

        resp = await client.get("/metrics", headers={"X-Metrics-Token": "s3cret"})

        assert resp.status_code == 200
        assert "pagination_pages_total" in resp.text

    @pytest.mark.anyio
    async def test_request_id_is_echoed(self, client):
        resp = await client.get("/api/v1/profiles/cursor", headers={"X-Request-ID": "req-42"})

        assert resp.headers["X-Request-ID"] == "req-42"

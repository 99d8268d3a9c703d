"""
backend/app/models/fixture.py

Purpose:
    Normalized fixture triple served to the UI and fed back into the
    analysis endpoint.

Dependencies:
    - pydantic
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Fixture(BaseModel):
    teams_label: str = Field(serialization_alias="teamsLabel")
    league: str
    match_status: str = Field(serialization_alias="matchStatus")
    fixture_id: int | None = Field(default=None, serialization_alias="fixtureId")
    kickoff: str | None = None

    model_config = ConfigDict(populate_by_name=True)


# API-Football short code for "not started"; listed fixtures must carry a
# status the analysis endpoint accepts.
DEFAULT_MATCH_STATUS = "NS"


def _mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def fixture_from_api_sports(record: Any) -> Fixture | None:
    """Map one API-Football ``response[]`` record; None when it is unusable."""
    if not isinstance(record, dict):
        return None
    teams = _mapping(record.get("teams"))
    home = _mapping(teams.get("home")).get("name")
    away = _mapping(teams.get("away")).get("name")
    league = _mapping(record.get("league")).get("name")
    fixture = _mapping(record.get("fixture"))
    status = _mapping(fixture.get("status")).get("short")
    if not home or not away or not league:
        return None
    fixture_id = fixture.get("id")
    return Fixture(
        teams_label=f"{home} vs {away}",
        league=str(league),
        match_status=str(status or "").strip() or DEFAULT_MATCH_STATUS,
        fixture_id=fixture_id if isinstance(fixture_id, int) else None,
        kickoff=fixture.get("date") if isinstance(fixture.get("date"), str) else None,
    )

"""
backend/tests/test_fixtures.py

Purpose:
    API-Football fixture mapping and the /fixtures endpoints, including the
    degrade-to-empty behaviour on provider failure.
"""

from __future__ import annotations

from datetime import datetime, timezone

import httpx
import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from app.models.analysis import AnalysisRequest
from app.models.fixture import DEFAULT_MATCH_STATUS, fixture_from_api_sports
from app.providers import api_sports
from app.providers.api_sports import ApiSportsProvider
from app.routers.fixtures import get_fixtures_provider


def _record(home="Team A", away="Team B", league="Test League", status="NS", fixture_id=101):
    return {
        "fixture": {"id": fixture_id, "date": "2026-10-19T18:00:00+00:00", "status": {"short": status}},
        "league": {"name": league},
        "teams": {"home": {"name": home}, "away": {"name": away}},
    }


def _provider(handler, api_key: str = "apisports-key") -> ApiSportsProvider:
    return ApiSportsProvider(
        api_key, base_url="https://api-sports.test", transport=httpx.MockTransport(handler),
    )


def _client(provider: ApiSportsProvider) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_fixtures_provider] = lambda: provider
    return TestClient(app)


def test_record_mapping():
    fixture = fixture_from_api_sports(_record())
    assert fixture.model_dump(by_alias=True) == {
        "teamsLabel": "Team A vs Team B",
        "league": "Test League",
        "matchStatus": "NS",
        "fixtureId": 101,
        "kickoff": "2026-10-19T18:00:00+00:00",
    }


def test_incomplete_record_is_skipped():
    assert fixture_from_api_sports({"teams": {"home": {"name": "A"}}}) is None


def test_non_dict_records_are_skipped():
    assert fixture_from_api_sports(None) is None
    assert fixture_from_api_sports(["Team A", "Team B"]) is None
    assert fixture_from_api_sports({"teams": "Team A vs Team B", "league": {"name": "L"}}) is None


def test_missing_status_defaults_to_not_started():
    record = _record()
    record["fixture"]["status"] = None

    fixture = fixture_from_api_sports(record)

    assert fixture.match_status == DEFAULT_MATCH_STATUS
    AnalysisRequest.model_validate(fixture.model_dump(by_alias=True))


@pytest.mark.asyncio
async def test_provider_requests_today_with_key_header(monkeypatch):
    monkeypatch.setattr(
        api_sports, "utcnow", lambda: datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc),
    )
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"response": [_record(), {"fixture": {}}]})

    provider = _provider(handler)
    fixtures = await provider.get_today_fixtures()
    await provider.aclose()

    assert [f.teams_label for f in fixtures] == ["Team A vs Team B"]
    assert seen[0].url.path == "/fixtures"
    assert seen[0].url.params["date"] == "2026-10-19"
    assert seen[0].headers["x-apisports-key"] == "apisports-key"


def test_fixtures_endpoint_lists_triples():
    provider = _provider(lambda _: httpx.Response(200, json={"response": [_record(), _record("C", "D")]}))

    resp = _client(provider).get("/fixtures")

    assert resp.status_code == 200
    labels = [f["teamsLabel"] for f in resp.json()["fixtures"]]
    assert labels == ["Team A vs Team B", "C vs D"]


def test_provider_failure_degrades_to_empty_list():
    provider = _provider(lambda _: httpx.Response(404, json={"errors": {"date": "bad"}}))

    resp = _client(provider).get("/fixtures")

    assert resp.status_code == 200
    assert resp.json() == {"fixtures": []}


@pytest.mark.parametrize(
    "payload",
    [[], {"response": [None]}, {"response": "none"}, {"response": None}, "oops"],
)
def test_malformed_payload_degrades_to_empty_list(payload):
    provider = _provider(lambda _: httpx.Response(200, json=payload))

    resp = _client(provider).get("/fixtures")

    assert resp.status_code == 200
    assert resp.json() == {"fixtures": []}


def test_malformed_records_do_not_hide_valid_ones():
    provider = _provider(
        lambda _: httpx.Response(200, json={"response": [None, 7, _record(), {"teams": []}]}),
    )

    resp = _client(provider).get("/fixtures")

    assert resp.status_code == 200
    assert [f["teamsLabel"] for f in resp.json()["fixtures"]] == ["Team A vs Team B"]


def test_missing_api_key_is_server_error():
    provider = _provider(lambda _: httpx.Response(200, json={"response": []}), api_key="")

    resp = _client(provider).get("/fixtures")

    assert resp.status_code == 500
    assert resp.json() == {"error": "Missing APISPORTS_KEY", "fixtures": []}


def test_legacy_endpoint_uses_original_field_names():
    provider = _provider(lambda _: httpx.Response(200, json={"response": [_record(status="1H")]}))

    resp = _client(provider).get("/api/meciuri")

    assert resp.status_code == 200
    assert resp.json() == {
        "meciuri": [{"echipe": "Team A vs Team B", "liga": "Test League", "status": "1H"}]
    }

"""
backend/app/routers/fixtures.py

Purpose:
    Today's fixtures from API-Football, shaped as analysis inputs. Provider
    failures degrade to an empty list; only a missing API key is an error.

Dependencies:
    - app.providers.api_sports
"""

import logging

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.models.fixture import Fixture
from app.providers.api_sports import ApiSportsProvider

logger = logging.getLogger("betlogic.routers.fixtures")

router = APIRouter(tags=["fixtures"])


def get_fixtures_provider(request: Request) -> ApiSportsProvider:
    return request.app.state.fixtures_provider


async def _load_fixtures(provider: ApiSportsProvider) -> list[Fixture]:
    try:
        return await provider.get_today_fixtures()
    except (httpx.HTTPError, ValueError):
        logger.warning("Fixture provider failed", exc_info=True)
        return []


@router.get("/fixtures")
async def list_fixtures(provider: ApiSportsProvider = Depends(get_fixtures_provider)):
    if not provider.configured:
        logger.error("Missing APISPORTS_KEY in environment variables.")
        return JSONResponse(
            status_code=500,
            content={"error": "Missing APISPORTS_KEY", "fixtures": []},
        )
    fixtures = await _load_fixtures(provider)
    return {"fixtures": [f.model_dump(by_alias=True) for f in fixtures]}


@router.get("/api/meciuri", include_in_schema=False)
async def list_fixtures_legacy(provider: ApiSportsProvider = Depends(get_fixtures_provider)):
    """Same data in the field names of the original web client."""
    if not provider.configured:
        logger.error("Missing APISPORTS_KEY in environment variables.")
        return JSONResponse(
            status_code=500,
            content={"error": "Missing APISPORTS_KEY", "meciuri": []},
        )
    fixtures = await _load_fixtures(provider)
    return {
        "meciuri": [
            {"echipe": f.teams_label, "liga": f.league, "status": f.match_status}
            for f in fixtures
        ]
    }

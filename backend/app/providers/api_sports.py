"""
backend/app/providers/api_sports.py

Purpose:
    Adapter for API-Football (api-sports.io) returning today's fixtures as
    normalized ``Fixture`` triples for the analysis endpoint.

Dependencies:
    - app.providers.http_client
    - app.models.fixture
    - app.utils.utcnow
"""

import logging
from typing import Optional

import httpx

from app.config import Settings
from app.models.fixture import Fixture, fixture_from_api_sports
from app.providers.http_client import ResilientClient
from app.utils import truncate, utcnow

logger = logging.getLogger("betlogic.api_sports")

PROVIDER_NAME = "api_sports"


class ApiSportsProvider:
    """API-Football provider for the daily fixture list."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://v3.football.api-sports.io",
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._client = ResilientClient(
            PROVIDER_NAME, timeout=timeout, max_attempts=2, transport=transport,
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ApiSportsProvider":
        return cls(
            settings.APISPORTS_KEY,
            base_url=settings.APISPORTS_BASE_URL,
            timeout=settings.APISPORTS_TIMEOUT_SECONDS,
            transport=transport,
        )

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    async def get_today_fixtures(self) -> list[Fixture]:
        """Fetch today's (UTC) fixtures.

        Raises httpx.HTTPError on transport failure or a non-2xx status.
        """
        today = utcnow().strftime("%Y-%m-%d")
        resp = await self._client.get(
            f"{self._base_url}/fixtures",
            params={"date": today},
            headers={"x-apisports-key": self._api_key},
        )
        if not resp.is_success:
            logger.error(
                "API-Football error %d: %s", resp.status_code, truncate(resp.text),
            )
        resp.raise_for_status()

        data = resp.json()
        records = data.get("response") if isinstance(data, dict) else None
        if not isinstance(records, list):
            logger.warning("API-Football payload without a response list for %s", today)
            return []

        fixtures: list[Fixture] = []
        for record in records:
            fixture = fixture_from_api_sports(record)
            if fixture is not None:
                fixtures.append(fixture)
        logger.info("Fetched %d fixtures for %s", len(fixtures), today)
        return fixtures

    async def aclose(self) -> None:
        await self._client.aclose()

"""Sports-data provider client for fixture-based predictions."""
import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import aiohttp

from pipeline.assembler import GenerationContext
from pipeline.errors import FixtureDataUnavailable, InsufficientContext
from shared.config import settings

logger = logging.getLogger(__name__)

FORM_MATCHES = 5


@dataclass
class FixtureBundle:
    """A fixture plus the derived data a prediction is written from."""
    fixture_id: int
    fixture: Dict[str, Any]
    h2h: List[Dict[str, Any]] = field(default_factory=list)
    home_form: str = ""
    away_form: str = ""

    @property
    def home(self) -> Dict[str, Any]:
        return self.fixture.get("teams", {}).get("home") or {}

    @property
    def away(self) -> Dict[str, Any]:
        return self.fixture.get("teams", {}).get("away") or {}

    @property
    def league(self) -> Dict[str, Any]:
        return self.fixture.get("league") or {}

    @property
    def logo_url(self) -> Optional[str]:
        return self.home.get("logo") or self.away.get("logo")


def form_string(matches: List[Dict[str, Any]], team_id: int) -> str:
    """W/D/L string of `matches` from the perspective of `team_id`."""
    results = []
    for match in matches:
        teams = match.get("teams", {})
        home = teams.get("home") or {}
        away = teams.get("away") or {}
        side, other = (home, away) if home.get("id") == team_id else (away, home)
        if side.get("winner"):
            results.append("W")
        elif other.get("winner"):
            results.append("L")
        else:
            results.append("D")
    return "".join(results)


def build_fixture_context(bundle: FixtureBundle) -> GenerationContext:
    """Generation context for a prediction: a labelled JSON block of match data."""
    home_name = bundle.home.get("name")
    away_name = bundle.away.get("name")
    if not home_name or not away_name:
        raise InsufficientContext(f"Fixture {bundle.fixture_id} has no team names")

    league_name = bundle.league.get("name") or "league"
    match_data = json.dumps(
        {
            "league_name": league_name,
            "home_team_name": home_name,
            "away_team_name": away_name,
            "h2h_results_count": len(bundle.h2h),
            "home_form_string": bundle.home_form,
            "away_form_string": bundle.away_form,
        },
        ensure_ascii=False,
        indent=2,
    )

    return GenerationContext(
        original_title=f"{home_name} vs {away_name}",
        original_description=f"{league_name} fixture",
        additional_context=match_data,
        image_url=bundle.logo_url,
        extra={
            "home_team": home_name,
            "away_team": away_name,
            "league_name": league_name,
            "match_data": match_data,
        },
        record_fields={
            "original_fixture_id": bundle.fixture_id,
            "linked_fixture_id": bundle.fixture_id,
            "linked_league_id": bundle.league.get("id"),
        },
    )


class FixtureDataClient:
    """Client for the API-Football style fixtures endpoint."""

    def __init__(self, host: str = None, api_key: str = None, timeout: int = None):
        self.host = (host or settings.football_api_host).rstrip("/")
        self.api_key = api_key or settings.football_api_key
        self.timeout = timeout or settings.football_api_timeout

    async def get_fixture_bundle(self, fixture_id: int) -> FixtureBundle:
        """
        Fetch the fixture once, then head-to-head and both teams' recent
        form concurrently.

        Raises FixtureDataUnavailable when the fixture cannot be loaded.
        """
        try:
            async with aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={"x-apisports-key": self.api_key or ""},
            ) as session:
                fixtures = await self._get(session, "fixtures", {"id": fixture_id})
                if not fixtures:
                    raise FixtureDataUnavailable(f"Fixture data not found for ID: {fixture_id}")

                fixture = fixtures[0]
                home_id = fixture["teams"]["home"]["id"]
                away_id = fixture["teams"]["away"]["id"]

                h2h, home_matches, away_matches = await asyncio.gather(
                    self._get(session, "fixtures/headtohead", {"h2h": f"{home_id}-{away_id}"}),
                    self._get(session, "fixtures", {"team": home_id, "last": FORM_MATCHES}),
                    self._get(session, "fixtures", {"team": away_id, "last": FORM_MATCHES}),
                )
        except FixtureDataUnavailable:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, KeyError, TypeError) as e:
            raise FixtureDataUnavailable(f"Sports data request failed for fixture {fixture_id}: {e}") from e

        logger.info(f"Loaded fixture {fixture_id} with {len(h2h)} head-to-head results")
        return FixtureBundle(
            fixture_id=fixture_id,
            fixture=fixture,
            h2h=h2h,
            home_form=form_string(home_matches, home_id),
            away_form=form_string(away_matches, away_id),
        )

    async def _get(self, session: aiohttp.ClientSession, endpoint: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        async with session.get(f"{self.host}/{endpoint}", params=params, raise_for_status=True) as response:
            data = await response.json()
        if not isinstance(data, dict):
            raise FixtureDataUnavailable(f"Unexpected sports data payload from {endpoint}: {type(data).__name__}")
        return data.get("response") or []

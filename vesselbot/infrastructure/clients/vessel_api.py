from typing import Any, Dict, List, Optional, Callable
from datetime import datetime, timedelta
import asyncio
import json
import re
import httpx
import structlog

from vesselbot.domain.errors import RecommendationsTimeout, VesselDataError

logger = structlog.get_logger(__name__)

_COMMENT_LINES = re.compile(r"^#[^\n]*\n", re.MULTILINE)


def _vessel_list(dashboard: Any) -> List[Dict[str, Any]]:
    if isinstance(dashboard, list):
        vessels = dashboard
    elif isinstance(dashboard, dict):
        vessels = dashboard.get("vessels") or dashboard.get("data") or []
    else:
        vessels = []
    return [v for v in vessels if isinstance(v, dict)] if isinstance(vessels, list) else []


def find_dashboard_vessel(dashboard: Any, name_or_id: str) -> Optional[Dict[str, Any]]:
    """Find a vessel in dashboard data by IMO number first, then by name"""
    wanted = name_or_id.strip()
    vessels = _vessel_list(dashboard)

    for vessel in vessels:
        if wanted in (str(vessel.get("imo", "")), str(vessel.get("imoNumber", ""))):
            return vessel

    wanted_name = wanted.upper()
    for vessel in vessels:
        name = vessel.get("name") or vessel.get("vesselName") or vessel.get("vessel_name") or ""
        if str(name).upper() == wanted_name:
            return vessel
    return None


class DashboardVesselClient:
    """Vessel dashboard and recommendations API client.

    The dashboard lists every vessel, so it is fetched once and cached.
    """

    def __init__(
        self,
        dashboard_url: str,
        recommendations_url: str,
        cache_seconds: int = 3600,
        dashboard_timeout: float = 10.0,
        recommendations_timeout: float = 8.0,
        client: Optional[httpx.AsyncClient] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.dashboard_url = dashboard_url
        self.recommendations_url = recommendations_url
        self.cache_ttl = timedelta(seconds=cache_seconds)
        self.dashboard_timeout = dashboard_timeout
        self.recommendations_timeout = recommendations_timeout
        self._client = client or httpx.AsyncClient(headers={"Accept": "application/json"})
        self._clock = clock or datetime.utcnow
        self._dashboard: Optional[Any] = None
        self._dashboard_fetched_at: Optional[datetime] = None
        self._lock = asyncio.Lock()

    async def aclose(self):
        await self._client.aclose()

    def clear_cache(self):
        self._dashboard = None
        self._dashboard_fetched_at = None

    async def fetch_dashboard(self) -> Any:
        """Dashboard data, served from cache while it is fresh"""
        async with self._lock:
            now = self._clock()
            if self._dashboard is not None and now - self._dashboard_fetched_at < self.cache_ttl:
                return self._dashboard

            logger.info("Fetching dashboard data")
            try:
                response = await self._client.get(self.dashboard_url, timeout=self.dashboard_timeout)
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as e:
                raise VesselDataError(f"Dashboard API returned status {e.response.status_code}") from e
            except httpx.HTTPError as e:
                raise VesselDataError(f"Dashboard API request failed: {e!r}") from e
            except ValueError as e:
                raise VesselDataError("Dashboard API returned invalid JSON") from e

            self._dashboard = data
            self._dashboard_fetched_at = now
            return data

    async def fetch_vessel_record(self, name_or_id: str) -> Optional[Dict[str, Any]]:
        if not name_or_id or not name_or_id.strip():
            return None

        dashboard = await self.fetch_dashboard()
        vessel = find_dashboard_vessel(dashboard, name_or_id)
        if vessel is None:
            logger.info("Vessel not in dashboard data", vessel=name_or_id)
        return vessel

    async def fetch_recommendations(
        self, identifier: str, timeout: Optional[float] = None
    ) -> Optional[Dict[str, Any]]:
        imo = str(identifier or "").strip()
        if not imo:
            return None

        url = self.recommendations_url.replace("{IMO}", imo)
        logger.info("Fetching recommendations", imo=imo)
        try:
            response = await self._client.get(url, timeout=timeout or self.recommendations_timeout)
        except httpx.TimeoutException as e:
            raise RecommendationsTimeout(f"Recommendations API timed out for IMO {imo}") from e
        except httpx.HTTPError as e:
            raise VesselDataError(f"Recommendations API request failed: {e!r}") from e

        if response.status_code == 404:
            logger.info("No recommendations found", imo=imo)
            return None
        if not response.is_success:
            raise VesselDataError(f"Recommendations API returned status {response.status_code}")

        # some responses start with '#' comment lines
        cleaned = _COMMENT_LINES.sub("", response.text).strip()
        try:
            data = json.loads(cleaned)
        except ValueError as e:
            raise VesselDataError(f"Invalid recommendations JSON for IMO {imo}: {cleaned[:200]!r}") from e

        if not isinstance(data, dict):
            data = {"recommendations": data}
        return data

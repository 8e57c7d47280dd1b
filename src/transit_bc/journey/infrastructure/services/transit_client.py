"""Async client for the Swedish transit providers.

ResRobot (v2.1) answers trip searches and stop lookups, Trafiklab's
realtime API answers departure boards. Every failure is mapped onto the
domain error taxonomy; nothing is retried.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from src.transit_bc.journey.domain.entities import Departure, Itinerary
from src.transit_bc.journey.infrastructure.services.response_cache import ResponseCache
from src.transit_bc.shared.domain.errors import NoRouteFound, UpstreamRateLimited, UpstreamUnavailable
from src.transit_bc.shared.domain.time_utils import now_local, to_local
from src.transit_bc.stop.domain.entities import Stop

logger = logging.getLogger(__name__)


# Provider error codes that mean "quota exhausted"
RATE_LIMIT_CODES = {"API_QUOTA", "API_TOO_MANY_REQUESTS", "API_AUTH_QUOTA"}

# Provider error codes that mean "no such stop" or "no connection"
NO_ROUTE_CODES = {
    "SVC_NO_RESULT",
    "SVC_DATATIME_PERIOD",
    "H890",
    "H891",
    "H892",
    "H895",
    "H899",
    "H9220",
    "H9240",
    "H9260",
    "H9300",
    "H9360",
    "H9380",
}


def _is_no_route_code(code: str) -> bool:
    return code in NO_ROUTE_CODES or code.startswith("SVC_LOC")


def _as_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


class TransitClient:
    """Wrapper around ResRobot and Trafiklab with a shared response cache."""

    CREDENTIAL_PARAMS = ("accessId", "key")

    def __init__(
        self,
        resrobot_api_key: str,
        trafiklab_api_key: str,
        resrobot_base_url: str = "https://api.resrobot.se/v2.1",
        trafiklab_base_url: str = "https://realtime-api.trafiklab.se/v1",
        timeout: float = 15.0,
        cache: Optional[ResponseCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.resrobot_api_key = resrobot_api_key
        self.trafiklab_api_key = trafiklab_api_key
        self.resrobot_base_url = resrobot_base_url.rstrip("/")
        self.trafiklab_base_url = trafiklab_base_url.rstrip("/")
        self.timeout = timeout
        self.cache = cache if cache is not None else ResponseCache()
        self._transport = transport

    @classmethod
    def from_settings(cls, transit_settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "TransitClient":
        return cls(
            resrobot_api_key=transit_settings.RESROBOT_API_KEY,
            trafiklab_api_key=transit_settings.TRAFIKLAB_API_KEY,
            resrobot_base_url=transit_settings.RESROBOT_BASE_URL,
            trafiklab_base_url=transit_settings.TRAFIKLAB_BASE_URL,
            timeout=transit_settings.TRANSIT_HTTP_TIMEOUT_SECONDS,
            cache=ResponseCache(
                ttl_seconds=transit_settings.TRANSIT_CACHE_TTL_SECONDS,
                max_entries=transit_settings.TRANSIT_CACHE_MAX_ENTRIES,
            ),
            transport=transport,
        )

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    async def _get_json(self, url: str, params: Dict[str, Any]) -> Any:
        """GET ``url`` and return the decoded JSON body, using the cache."""
        cache_key = ResponseCache.fingerprint(url, params, exclude=self.CREDENTIAL_PARAMS)
        cached = await self.cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, params=params)
        except httpx.HTTPError as e:
            logger.warning(f"Transit request to {url} failed: {type(e).__name__}: {e}")
            raise UpstreamUnavailable(f"Transit provider unreachable: {type(e).__name__}") from e

        payload = self._decode(response, url)
        await self.cache.set(cache_key, payload)
        return payload

    @staticmethod
    def _decode(response: httpx.Response, url: str) -> Any:
        try:
            payload = response.json()
        except ValueError:
            payload = None

        error_code = None
        error_text = None
        if isinstance(payload, dict):
            error_code = payload.get("errorCode")
            error_text = payload.get("errorText") or payload.get("message")

        if response.status_code == 429 or error_code in RATE_LIMIT_CODES:
            logger.warning(f"Transit provider rate limit hit for {url} ({error_code or 429})")
            raise UpstreamRateLimited(error_text)

        if error_code and _is_no_route_code(error_code):
            raise NoRouteFound(error_text or f"No route found ({error_code})")

        if not response.is_success or error_code:
            logger.warning(f"Transit provider returned {response.status_code} for {url}: {error_code} {error_text}")
            raise UpstreamUnavailable(
                f"Transit provider error {response.status_code}" + (f" ({error_code})" if error_code else "")
            )

        if payload is None:
            raise UpstreamUnavailable("Transit provider returned an unreadable response")

        return payload

    # ------------------------------------------------------------------
    # ResRobot
    # ------------------------------------------------------------------

    async def search_trips(
        self,
        origin_id: str,
        destination_id: str,
        when: Optional[datetime] = None,
        leave_at: bool = True,
        num_trips: int = 5,
    ) -> List[Itinerary]:
        """Search itineraries between two stop ids.

        ``leave_at`` False searches by arrival time. Raises NoRouteFound
        when the provider knows no connection.
        """
        when = to_local(when) if when else now_local()
        params = {
            "originId": origin_id,
            "destId": destination_id,
            "date": when.strftime("%Y-%m-%d"),
            "time": when.strftime("%H:%M"),
            "searchForArrival": "0" if leave_at else "1",
            "numTrips": str(num_trips),
            "format": "json",
            "accessId": self.resrobot_api_key,
        }
        payload = await self._get_json(f"{self.resrobot_base_url}/trip", params)

        itineraries = []
        for trip in _as_list(payload.get("Trip")):
            try:
                itineraries.append(Itinerary.from_resrobot_json(trip))
            except (ValueError, KeyError, TypeError) as e:
                logger.warning(f"Skipping malformed trip {origin_id}->{destination_id}: {e}")

        if not itineraries:
            raise NoRouteFound(f"No route found from {origin_id} to {destination_id}")

        logger.info(f"ResRobot: {len(itineraries)} trips {origin_id}->{destination_id} at {params['time']}")
        return itineraries

    async def search_locations(self, query: str, max_results: int = 10) -> List[Stop]:
        """Look up stops by name. Returns an empty list when nothing matches."""
        params = {
            "input": query,
            "maxNo": str(max_results),
            "format": "json",
            "accessId": self.resrobot_api_key,
        }
        try:
            payload = await self._get_json(f"{self.resrobot_base_url}/location.name", params)
        except NoRouteFound:
            return []

        stops = []
        for item in _as_list(payload.get("stopLocationOrCoordLocation")):
            location = item.get("StopLocation")
            if location:
                stops.append(Stop.from_resrobot_json(location))
        for location in _as_list(payload.get("StopLocation")):
            stops.append(Stop.from_resrobot_json(location))
        return stops[:max_results]

    # ------------------------------------------------------------------
    # Trafiklab realtime
    # ------------------------------------------------------------------

    async def get_departures(self, stop_id: str, when: Optional[datetime] = None) -> List[Departure]:
        """Upcoming departures from a stop, sorted by planned time."""
        when = to_local(when) if when else now_local()
        url = f"{self.trafiklab_base_url}/departures/{stop_id}/{when.strftime('%Y-%m-%dT%H:%M')}"
        payload = await self._get_json(url, {"key": self.trafiklab_api_key})

        departures = []
        for item in _as_list(payload.get("departures")):
            try:
                departures.append(Departure.from_trafiklab_json(item, stop_id))
            except (ValueError, KeyError, TypeError) as e:
                logger.warning(f"Skipping malformed departure at {stop_id}: {e}")

        departures.sort(key=lambda d: d.planned_time)
        return departures

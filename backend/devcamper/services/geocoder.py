"""
DevCamper Backend - Geocoding Service
=======================================

What:  Resolves a free-form address or postal code to coordinates and
       address parts using the MapQuest geocoding API.
How:   httpx.AsyncClient for the HTTP call, tenacity for retries with
       exponential backoff + jitter on transport errors and 5xx responses.
Who:   BootcampService (before a bootcamp row is flushed, and for the
       radius search) and the seeder.

Result shape (or None when the provider has no match):
    {
        "longitude": -71.104028, "latitude": 42.350846,
        "formatted_address": "233 Bay State Rd, Boston, MA 02215, US",
        "street": "233 Bay State Rd", "city": "Boston", "state": "MA",
        "zipcode": "02215", "country": "US",
    }

Without an API key the service is disabled: it logs a warning and returns
None, so records are stored with an empty location instead of failing.
"""

import logging
from typing import Any, Dict, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)
from tenacity.wait import wait_base

from devcamper.config import settings
from devcamper.exceptions import GeocodingError

logger = logging.getLogger(__name__)

Location = Dict[str, Any]


def _is_transient(exc: BaseException) -> bool:
    """Transport failures and 5xx responses are worth another attempt."""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return False


class GeocoderService:
    """
    MapQuest-backed geocoder.

    Args:
        api_key:   Provider key; defaults to settings.geocoder_api_key.
        base_url:  Geocoding endpoint.
        transport: Optional httpx transport (tests pass httpx.MockTransport).
        wait:      Tenacity wait strategy between attempts.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        retry_attempts: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        wait: Optional[wait_base] = None,
    ):
        self.api_key = settings.geocoder_api_key if api_key is None else api_key
        self.base_url = base_url or settings.geocoder_url
        self.timeout = timeout or settings.geocoder_timeout
        self.retry_attempts = retry_attempts or settings.geocoder_retry_attempts
        self.transport = transport
        self.wait = wait or wait_exponential_jitter(initial=1, max=8, jitter=1)

        if settings.geocoder_provider != "mapquest":
            logger.warning(
                "Geocoder provider '%s' is not supported, using mapquest",
                settings.geocoder_provider,
            )

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def geocode(self, query: str) -> Optional[Location]:
        """
        Resolve `query` to a location dict.

        Returns:
            The best match, or None if the provider found nothing (or the
            service is disabled).

        Raises:
            GeocodingError: provider unreachable after retries, or it
                            rejected the request (bad key, quota).
        """
        if not self.enabled:
            logger.warning("Geocoder has no API key; '%s' left unresolved", query)
            return None

        try:
            payload = await self._request_with_retry(query)
        except httpx.HTTPError as e:
            logger.error("Geocoding '%s' failed: %s", query, str(e))
            raise GeocodingError(context={"query": query, "error": str(e)})

        status_code = payload.get("info", {}).get("statuscode", 0)
        if status_code != 0:
            messages = payload.get("info", {}).get("messages", [])
            logger.error("Geocoder rejected '%s': %s %s", query, status_code, messages)
            raise GeocodingError(
                context={"query": query, "statuscode": status_code, "messages": messages}
            )

        location = self._parse_mapquest(payload)
        if location is None:
            logger.info("Geocoder found no match for '%s'", query)
        return location

    async def _request_with_retry(self, query: str) -> Dict[str, Any]:
        async for attempt in AsyncRetrying(
            retry=retry_if_exception(_is_transient),
            stop=stop_after_attempt(self.retry_attempts),
            wait=self.wait,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                async with httpx.AsyncClient(
                    timeout=self.timeout, transport=self.transport
                ) as client:
                    response = await client.get(
                        self.base_url,
                        params={"key": self.api_key, "location": query, "maxResults": 1},
                    )
                    response.raise_for_status()
                    return response.json()
        raise AssertionError("unreachable")  # pragma: no cover

    @staticmethod
    def _parse_mapquest(payload: Dict[str, Any]) -> Optional[Location]:
        results = payload.get("results") or []
        locations = results[0].get("locations") if results else None
        if not locations:
            return None

        best = locations[0]
        lat_lng = best.get("latLng") or best.get("displayLatLng") or {}
        if "lat" not in lat_lng or "lng" not in lat_lng:
            return None

        parts = {
            "street": best.get("street") or None,
            "city": best.get("adminArea5") or None,
            "state": best.get("adminArea3") or None,
            "zipcode": best.get("postalCode") or None,
            "country": best.get("adminArea1") or None,
        }
        formatted = ", ".join(
            p for p in (parts["street"], parts["city"], parts["state"], parts["zipcode"], parts["country"]) if p
        )
        return {
            "longitude": float(lat_lng["lng"]),
            "latitude": float(lat_lng["lat"]),
            "formatted_address": formatted or None,
            **parts,
        }


geocoder = GeocoderService()

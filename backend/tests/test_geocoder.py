"""
DevCamper Backend - Geocoder Unit Tests
=========================================

The MapQuest API is replaced by httpx.MockTransport; tenacity waits are
disabled so retries run instantly.
"""

import httpx
import pytest
from tenacity import wait_none

from devcamper.exceptions import GeocodingError
from devcamper.services.geocoder import GeocoderService

MAPQUEST_MATCH = {
    "info": {"statuscode": 0, "messages": []},
    "results": [
        {
            "providedLocation": {"location": "233 Bay State Rd Boston MA 02215"},
            "locations": [
                {
                    "street": "233 Bay State Rd",
                    "adminArea5": "Boston",
                    "adminArea3": "MA",
                    "adminArea1": "US",
                    "postalCode": "02215",
                    "latLng": {"lat": 42.350846, "lng": -71.104028},
                }
            ],
        }
    ],
}


def _service(handler, **kwargs) -> GeocoderService:
    return GeocoderService(
        api_key="test-key",
        base_url="https://geocoder.test/address",
        retry_attempts=kwargs.pop("retry_attempts", 3),
        transport=httpx.MockTransport(handler),
        wait=wait_none(),
        **kwargs,
    )


class TestGeocode:

    @pytest.mark.asyncio
    async def test_match_is_parsed(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=MAPQUEST_MATCH)

        location = await _service(handler).geocode("233 Bay State Rd Boston MA 02215")

        assert location == {
            "longitude": -71.104028,
            "latitude": 42.350846,
            "formatted_address": "233 Bay State Rd, Boston, MA, 02215, US",
            "street": "233 Bay State Rd",
            "city": "Boston",
            "state": "MA",
            "zipcode": "02215",
            "country": "US",
        }
        assert seen["params"]["key"] == "test-key"
        assert seen["params"]["location"] == "233 Bay State Rd Boston MA 02215"

    @pytest.mark.asyncio
    async def test_no_match_returns_none(self):
        def handler(request):
            return httpx.Response(200, json={"info": {"statuscode": 0}, "results": [{"locations": []}]})

        assert await _service(handler).geocode("nowhere") is None

    @pytest.mark.asyncio
    async def test_without_key_no_request_is_made(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=MAPQUEST_MATCH)

        service = GeocoderService(api_key="", transport=httpx.MockTransport(handler))

        assert service.enabled is False
        assert await service.geocode("02118") is None
        assert calls == []

    @pytest.mark.asyncio
    async def test_server_error_is_retried(self):
        responses = iter([httpx.Response(503), httpx.Response(200, json=MAPQUEST_MATCH)])

        def handler(request):
            return next(responses)

        location = await _service(handler).geocode("02215")

        assert location["city"] == "Boston"

    @pytest.mark.asyncio
    async def test_persistent_transport_error_raises(self):
        attempts = []

        def handler(request):
            attempts.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(GeocodingError):
            await _service(handler, retry_attempts=2).geocode("02215")
        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self):
        attempts = []

        def handler(request):
            attempts.append(request)
            return httpx.Response(401)

        with pytest.raises(GeocodingError):
            await _service(handler).geocode("02215")
        assert len(attempts) == 1

    @pytest.mark.asyncio
    async def test_provider_status_code_raises(self):
        def handler(request):
            return httpx.Response(200, json={"info": {"statuscode": 403, "messages": ["bad key"]}})

        with pytest.raises(GeocodingError) as exc_info:
            await _service(handler).geocode("02215")
        assert exc_info.value.context["statuscode"] == 403

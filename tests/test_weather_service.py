"""
Unit tests for the weather resolution pipeline.
The provider is replaced with an httpx MockTransport.
"""

import json

import httpx
import pytest

from backcountry_chat.weather.client import NwsWeatherClient
from backcountry_chat.weather.service import WeatherService
from conftest import FORECAST_HOURLY_URL, FORECAST_URL, PERIOD_FIELDS, RecordingTransport, json_response


def make_service(handler) -> tuple[WeatherService, RecordingTransport]:
    transport = RecordingTransport(handler)
    client = NwsWeatherClient(user_agent="(test-suite, test@example.com)", transport=transport)
    return WeatherService(client=client), transport


def provider(point_metadata, forecast_document, hourly_document=None):
    """Handler serving the points lookup and both forecast documents."""
    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if request.url.path.startswith("/points/"):
            return json_response(200, point_metadata)
        if url == FORECAST_URL:
            return json_response(200, forecast_document)
        if url == FORECAST_HOURLY_URL:
            return json_response(200, hourly_document or forecast_document)
        return json_response(404, {"title": "Not Found"})
    return handler


@pytest.mark.unit
@pytest.mark.asyncio
class TestWeatherServiceSuccess:
    """Tests for successful forecast resolution."""

    async def test_returns_time_zone_and_all_periods(self, point_metadata, forecast_document):
        """Test the payload carries the time zone and every period verbatim."""
        service, _ = make_service(provider(point_metadata, forecast_document))

        result = await service.get_weather_forecast(37.7749, -122.4194, "forecast")
        payload = json.loads(result)

        assert payload["timeZone"] == "America/Los_Angeles"
        assert payload["generatedAt"] == forecast_document["generatedAt"]
        assert payload["elevation"] == forecast_document["elevation"]
        expected_periods = [
            {key: value for key, value in period.items() if key in PERIOD_FIELDS}
            for period in forecast_document["periods"]
        ]
        assert payload["periods"] == expected_periods

    async def test_drops_fields_outside_schema(self, point_metadata, forecast_document):
        """Test provider fields the model does not need are removed."""
        service, _ = make_service(provider(point_metadata, forecast_document))

        payload = json.loads(await service.get_weather_forecast([37.7749], [-122.4194], "forecast"))

        assert "@context" not in payload
        assert "icon" not in payload["periods"][0]
        assert "dewpoint" not in payload["periods"][0]

    async def test_requests_normalized_point_with_identifying_headers(self, point_metadata, forecast_document):
        """Test the points URL uses decimal degrees and the client headers are sent."""
        service, transport = make_service(provider(point_metadata, forecast_document))

        await service.get_weather_forecast([37, 46, 30], [-122, 25, 9], "forecast")

        point_request = transport.requests[0]
        assert point_request.url.path.startswith("/points/37.77")
        assert ",-122.41" in point_request.url.path
        assert point_request.headers["User-Agent"] == "(test-suite, test@example.com)"
        assert point_request.headers["Accept"] == "application/ld+json"

    async def test_hourly_uses_hourly_url(self, point_metadata, forecast_document):
        """Test forecastHourly follows the hourly link from the point metadata."""
        service, transport = make_service(provider(point_metadata, forecast_document))

        await service.get_weather_forecast(37.7749, -122.4194, "forecastHourly")

        assert str(transport.requests[1].url) == FORECAST_HOURLY_URL

    async def test_metadata_is_resolved_on_every_call(self, point_metadata, forecast_document):
        """Test point metadata is not cached between calls."""
        service, transport = make_service(provider(point_metadata, forecast_document))

        await service.get_weather_forecast(37.7749, -122.4194, "forecast")
        await service.get_weather_forecast(37.7749, -122.4194, "forecastHourly")

        point_requests = [r for r in transport.requests if r.url.path.startswith("/points/")]
        assert len(point_requests) == 2


@pytest.mark.unit
@pytest.mark.asyncio
class TestWeatherServiceDiagnostics:
    """Tests for failures reported as text."""

    async def test_point_lookup_error_embeds_body(self):
        """Test a non-success points response becomes a lookup error string."""
        body = '{"title": "Data Unavailable For Requested Point"}'
        service, _ = make_service(lambda request: httpx.Response(404, text=body))

        result = await service.get_weather_forecast(51.5, -0.12, "forecast")

        assert "lookup error" in result
        assert body in result

    async def test_point_transport_failure(self):
        """Test a request that never got a response is reported, not raised."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)
        service, _ = make_service(handler)

        result = await service.get_weather_forecast(37.7749, -122.4194, "forecast")

        assert result.startswith("Weather point lookup error:")
        assert "connection refused" in result

    async def test_point_parse_error_for_foreign_url(self, point_metadata, forecast_document):
        """Test metadata linking outside the provider fails validation."""
        point_metadata["forecast"] = "http://example.com/forecast"
        service, transport = make_service(provider(point_metadata, forecast_document))

        result = await service.get_weather_forecast(37.7749, -122.4194, "forecast")

        assert result.startswith("Weather point parse error:")
        assert len(transport.requests) == 1

    async def test_point_parse_error_for_invalid_json(self):
        """Test a success status with a non-JSON body."""
        service, _ = make_service(lambda request: httpx.Response(200, text="<html>maintenance</html>"))

        result = await service.get_weather_forecast(37.7749, -122.4194, "forecast")

        assert result.startswith("Weather point parse error:")

    async def test_forecast_lookup_error_embeds_body(self, point_metadata):
        """Test a failing forecast document fetch."""
        def handler(request):
            if request.url.path.startswith("/points/"):
                return json_response(200, point_metadata)
            return httpx.Response(500, text="Unexpected Problem")
        service, _ = make_service(handler)

        result = await service.get_weather_forecast(37.7749, -122.4194, "forecast")

        assert result == "Weather forecast lookup error: Unexpected Problem"

    async def test_forecast_parse_error(self, point_metadata, forecast_document):
        """Test a forecast document with an offset-less timestamp."""
        forecast_document["periods"][0]["startTime"] = "2025-07-05T11:00:00"
        service, _ = make_service(provider(point_metadata, forecast_document))

        result = await service.get_weather_forecast(37.7749, -122.4194, "forecast")

        assert result.startswith("Weather forecast parse error:")
        assert "startTime" in result

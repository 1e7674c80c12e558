"""
Pytest configuration and fixtures.
Provides api.weather.gov documents and fakes for the model provider.
"""

import json
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

FORECAST_URL = "https://api.weather.gov/gridpoints/MTR/85,105/forecast"
FORECAST_HOURLY_URL = "https://api.weather.gov/gridpoints/MTR/85,105/forecast/hourly"

PERIOD_FIELDS = {
    "number", "name", "startTime", "isDaytime", "temperature", "temperatureUnit",
    "probabilityOfPrecipitation", "dewpoint", "relativeHumidity", "windSpeed",
    "windDirection", "shortForecast", "detailedForecast",
}


@pytest.fixture
def point_metadata() -> Dict[str, Any]:
    """Points response as served with Accept: application/ld+json."""
    return {
        "@context": ["https://geojson.org/geojson-ld/geojson-context.jsonld"],
        "@id": "https://api.weather.gov/points/37.7749,-122.4194",
        "cwa": "MTR",
        "gridId": "MTR",
        "gridX": 85,
        "gridY": 105,
        "forecast": FORECAST_URL,
        "forecastHourly": FORECAST_HOURLY_URL,
        "forecastGridData": "https://api.weather.gov/gridpoints/MTR/85,105",
        "forecastZone": "https://api.weather.gov/zones/forecast/CAZ006",
        "timeZone": "America/Los_Angeles",
        "radarStation": "KMUX",
    }


@pytest.fixture
def forecast_document() -> Dict[str, Any]:
    """Two-period gridpoint forecast with fields the schema drops."""
    return {
        "@context": ["https://geojson.org/geojson-ld/geojson-context.jsonld"],
        "geometry": "POLYGON((-122.4 37.7,-122.4 37.8,-122.5 37.8,-122.4 37.7))",
        "units": "us",
        "forecastGenerator": "BaselineForecastGenerator",
        "generatedAt": "2025-07-05T18:31:42+00:00",
        "updateTime": "2025-07-05T17:50:19+00:00",
        "validTimes": "2025-07-05T11:00:00+00:00/P7DT14H",
        "elevation": {"unitCode": "wmoUnit:m", "value": 2.1336},
        "periods": [
            {
                "number": 1,
                "name": "This Afternoon",
                "startTime": "2025-07-05T11:00:00-07:00",
                "endTime": "2025-07-05T18:00:00-07:00",
                "isDaytime": True,
                "temperature": 68,
                "temperatureUnit": "F",
                "temperatureTrend": "",
                "probabilityOfPrecipitation": {"unitCode": "wmoUnit:percent", "value": None},
                "windSpeed": "10 to 15 mph",
                "windDirection": "W",
                "icon": "https://api.weather.gov/icons/land/day/few?size=medium",
                "shortForecast": "Sunny",
                "detailedForecast": "Sunny, with a high near 68. West wind 10 to 15 mph.",
            },
            {
                "number": 2,
                "name": "Tonight",
                "startTime": "2025-07-05T18:00:00-07:00",
                "endTime": "2025-07-06T06:00:00-07:00",
                "isDaytime": False,
                "temperature": 55.5,
                "temperatureUnit": "F",
                "probabilityOfPrecipitation": {"unitCode": "wmoUnit:percent", "value": 20},
                "dewpoint": {"unitCode": "wmoUnit:degC", "value": 11.1},
                "relativeHumidity": {"unitCode": "wmoUnit:percent", "value": 93},
                "windSpeed": "5 to 10 mph",
                "windDirection": "WSW",
                "icon": "https://api.weather.gov/icons/land/night/fog?size=medium",
                "shortForecast": "Patchy Fog",
                "detailedForecast": "Patchy fog after 11pm. Mostly cloudy, with a low around 55.",
            },
        ],
    }


def json_response(status_code: int, payload: Any) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(payload).encode(), headers={"Content-Type": "application/json"})


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: List[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)


def make_response(
    response_id: str,
    status: Optional[str] = "completed",
    output: Optional[List[Any]] = None,
    output_text: str = "",
    error: Optional[Any] = None
) -> SimpleNamespace:
    """Stand-in for an openai Response object."""
    return SimpleNamespace(
        id=response_id,
        status=status,
        output=output or [],
        output_text=output_text,
        error=error,
        incomplete_details=None,
    )


def function_call(call_id: str, arguments: str, name: str = "get_weather") -> SimpleNamespace:
    """Stand-in for a function_call output item."""
    return SimpleNamespace(type="function_call", call_id=call_id, name=name, arguments=arguments)


def weather_arguments(lat: Any = 37.7749, lon: Any = -122.4194, forecast_type: str = "forecast") -> str:
    return json.dumps({"lat": lat, "lon": lon, "type": forecast_type})

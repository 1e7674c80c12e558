"""Weather resolution pipeline behind the get_weather tool."""

import json
import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from backcountry_chat.weather.client import NwsWeatherClient
from backcountry_chat.weather.coordinates import normalize_coordinate
from backcountry_chat.weather.models import Coordinate, ForecastDocument, ForecastType, PointMetadata

logger = logging.getLogger(__name__)


class WeatherService:
    """Resolve coordinates to a forecast document for the model.

    Every outcome is text: either the serialized forecast or a diagnostic the
    model can read and react to, e.g. by retrying with other coordinates.
    Point metadata is resolved again on every call.
    """

    def __init__(self, client: Optional[NwsWeatherClient] = None):
        """Initialize the weather service.

        Args:
            client: Weather client instance (creates default if None)
        """
        self.client = client or NwsWeatherClient()

    async def get_weather_forecast(
        self,
        lat: Coordinate,
        lon: Coordinate,
        forecast_type: ForecastType
    ) -> str:
        """Get a forecast document for a coordinate pair.

        Args:
            lat: Latitude as decimal degrees or [degrees, minutes, seconds]
            lon: Longitude as decimal degrees or [degrees, minutes, seconds]
            forecast_type: 'forecast' or 'forecastHourly'

        Returns:
            JSON with the time zone and all forecast periods, or a diagnostic string
        """
        parsed_lat = normalize_coordinate(lat)
        parsed_lon = normalize_coordinate(lon)

        try:
            points_response = await self.client.get_point(parsed_lat, parsed_lon)
        except httpx.HTTPError as e:
            logger.warning(f"Weather point request failed: {e}")
            return f"Weather point lookup error: {e}"
        if not points_response.is_success:
            logger.warning(f"Weather point lookup failed with {points_response.status_code}")
            return f"Weather point lookup error: {points_response.text}"

        try:
            point = PointMetadata.model_validate_json(points_response.content)
        except ValidationError as e:
            logger.warning(f"Invalid point metadata: {e}")
            return f"Weather point parse error: {e}"

        try:
            forecast_response = await self.client.get_forecast(point.url_for(forecast_type))
        except httpx.HTTPError as e:
            logger.warning(f"Weather forecast request failed: {e}")
            return f"Weather forecast lookup error: {e}"
        if not forecast_response.is_success:
            logger.warning(f"Weather forecast lookup failed with {forecast_response.status_code}")
            return f"Weather forecast lookup error: {forecast_response.text}"

        try:
            forecast = ForecastDocument.model_validate_json(forecast_response.content)
        except ValidationError as e:
            logger.warning(f"Invalid forecast document: {e}")
            return f"Weather forecast parse error: {e}"

        logger.info(f"Resolved {len(forecast.periods)} {forecast_type} periods in {point.time_zone}")
        return json.dumps(
            {
                "timeZone": point.time_zone,
                **forecast.model_dump(mode="json", by_alias=True, exclude_unset=True),
            },
            indent=2,
            ensure_ascii=False
        )

    async def aclose(self):
        """Close the weather client."""
        if self.client:
            try:
                await self.client.aclose()
            except Exception as e:
                logger.error(f"Error closing weather client: {e}")

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()

"""Data models for the weather tool and the api.weather.gov documents.

The provider schemas are not comprehensive. They mainly drop fields the
model does not need and reject documents that would be useless to it.
"""

from datetime import datetime
from typing import Annotated, List, Literal, Optional, Tuple, Union
from urllib.parse import urlparse

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, HttpUrl, field_validator

from backcountry_chat.config import NWS_API_BASE_URL

ForecastType = Literal["forecast", "forecastHourly"]

# Decimal degrees, or degrees/minutes/seconds with minutes and seconds optional
Coordinate = Union[
    float,
    Tuple[float],
    Tuple[int, float],
    Tuple[int, float, float],
]


def _check_offset_datetime(value: str) -> str:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        raise ValueError(f"Timestamp without UTC offset: {value}")
    return value


# Kept as the provider's own string so it serializes back unchanged
OffsetDatetime = Annotated[str, AfterValidator(_check_offset_datetime)]


class WeatherToolArgs(BaseModel):
    """Arguments of the get_weather tool as issued by the model."""
    model_config = ConfigDict(extra="forbid")

    lat: Coordinate = Field(..., description="Latitude as decimal degrees or [d, m, s]")
    lon: Coordinate = Field(..., description="Longitude as decimal degrees or [d, m, s]")
    forecast_type: ForecastType = Field(..., alias="type", description="Forecast document to fetch")


class PointMetadata(BaseModel):
    """Response of the /points/{lat},{lon} lookup."""
    model_config = ConfigDict(populate_by_name=True)

    forecast: HttpUrl
    forecast_hourly: HttpUrl = Field(..., alias="forecastHourly")
    forecast_zone: HttpUrl = Field(..., alias="forecastZone")
    time_zone: str = Field(..., alias="timeZone", description="IANA time zone identifier")

    @field_validator("forecast", "forecast_hourly", "forecast_zone")
    @classmethod
    def check_provider_url(cls, url: HttpUrl) -> HttpUrl:
        """Only follow https links back to the provider itself."""
        expected_host = urlparse(NWS_API_BASE_URL).hostname
        if url.scheme != "https" or url.host != expected_host:
            raise ValueError(f"URL must be https://{expected_host}/..., got {url}")
        return url

    def url_for(self, forecast_type: ForecastType) -> str:
        """Return the document URL for the requested forecast type."""
        if forecast_type == "forecastHourly":
            return str(self.forecast_hourly)
        return str(self.forecast)


class UnitValue(BaseModel):
    """Quantity with a WMO unit code."""
    model_config = ConfigDict(populate_by_name=True)

    unit_code: str = Field(..., alias="unitCode")
    value: Optional[Union[int, float]]


class ForecastPeriod(BaseModel):
    """One period of a forecast or hourly forecast document."""
    model_config = ConfigDict(populate_by_name=True)

    number: int
    name: str
    start_time: OffsetDatetime = Field(..., alias="startTime")
    is_daytime: bool = Field(..., alias="isDaytime")
    temperature: Union[int, float]
    temperature_unit: str = Field(..., alias="temperatureUnit")
    probability_of_precipitation: UnitValue = Field(..., alias="probabilityOfPrecipitation")
    dewpoint: Optional[UnitValue] = None
    relative_humidity: Optional[UnitValue] = Field(None, alias="relativeHumidity")
    wind_speed: str = Field(..., alias="windSpeed")
    wind_direction: str = Field(..., alias="windDirection")
    short_forecast: str = Field(..., alias="shortForecast")
    detailed_forecast: str = Field(..., alias="detailedForecast")


class Elevation(BaseModel):
    """Elevation of the forecast grid cell."""
    model_config = ConfigDict(populate_by_name=True)

    unit_code: str = Field(..., alias="unitCode")
    value: Union[int, float]


class ForecastDocument(BaseModel):
    """Gridpoint forecast document, daily or hourly."""
    model_config = ConfigDict(populate_by_name=True)

    generated_at: OffsetDatetime = Field(..., alias="generatedAt")
    update_time: OffsetDatetime = Field(..., alias="updateTime")
    valid_times: str = Field(..., alias="validTimes")
    elevation: Elevation
    periods: List[ForecastPeriod]

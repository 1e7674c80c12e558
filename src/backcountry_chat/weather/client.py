"""HTTP client for the api.weather.gov API."""

import logging
from typing import Optional

import httpx

from backcountry_chat.config import NWS_ACCEPT, NWS_API_BASE_URL, NWS_TIMEOUT_SECONDS, NWS_USER_AGENT

logger = logging.getLogger(__name__)


class NwsWeatherClient:
    """Async client for fetching National Weather Service documents.

    Responses are returned as-is. Status handling and validation belong to
    the caller, which turns failures into text for the model.
    """

    def __init__(
        self,
        base_url: str = NWS_API_BASE_URL,
        user_agent: str = NWS_USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """Initialize the weather client.

        Args:
            base_url: Base URL for api.weather.gov
            user_agent: User-Agent header identifying this client to the provider
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.client = httpx.AsyncClient(
            headers={"User-Agent": self.user_agent, "Accept": NWS_ACCEPT},
            timeout=NWS_TIMEOUT_SECONDS,
            follow_redirects=True,
            transport=transport
        )

    async def get_point(self, lat: float, lon: float) -> httpx.Response:
        """Fetch point metadata for decimal coordinates.

        Args:
            lat: Latitude in decimal degrees
            lon: Longitude in decimal degrees

        Returns:
            Raw response of the points endpoint

        Raises:
            httpx.RequestError: If no response was received
        """
        url = f"{self.base_url}/points/{lat},{lon}"
        logger.info(f"Fetching point metadata for lat={lat}, lon={lon}")
        response = await self.client.get(url)
        logger.info(f"Point lookup returned {response.status_code}")
        return response

    async def get_forecast(self, url: str) -> httpx.Response:
        """Fetch a forecast document by the URL named in point metadata."""
        logger.info(f"Fetching forecast document {url}")
        response = await self.client.get(url)
        logger.info(f"Forecast lookup returned {response.status_code}")
        return response

    async def aclose(self):
        """Close the async HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()

"""Weather Tool - Get current weather information using Open-Meteo API"""

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel, Field

from .base import BaseTool, ToolError, ToolExecutionContext

logger = logging.getLogger(__name__)

FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"


class WeatherInput(BaseModel):
    """Input schema for weather tool."""
    latitude: Optional[float] = Field(
        None, ge=-90, le=90, description="The latitude coordinate for the location"
    )
    longitude: Optional[float] = Field(
        None, ge=-180, le=180, description="The longitude coordinate for the location"
    )
    city: Optional[str] = Field(None, description="City name, used when coordinates are unknown")


class WeatherTool(BaseTool):
    """Tool to get current weather at a location."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__()
        self.name = "getWeather"
        self.transport = transport

    @property
    def description(self) -> str:
        return "Get the current weather at a location using latitude and longitude coordinates, or a city name."

    @property
    def input_schema(self) -> type[BaseModel]:
        return WeatherInput

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport, timeout=10.0)

    async def _geocode_city(self, city: str) -> tuple[float, float]:
        """Convert city name to coordinates using Open-Meteo Geocoding API."""
        async with self._client() as client:
            response = await client.get(
                GEOCODING_URL,
                params={"name": city, "count": 1, "language": "en", "format": "json"}
            )
            if response.status_code != 200:
                raise ToolError(f"Geocoding request failed: {response.status_code}")
            data = response.json()

        if not data.get("results"):
            raise ToolError(f"City '{city}' not found")

        result = data["results"][0]
        return result["latitude"], result["longitude"]

    async def execute(
        self,
        context: ToolExecutionContext,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        city: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Execute weather lookup.

        Args:
            context: Execution context (unused)
            latitude: Latitude coordinate
            longitude: Longitude coordinate
            city: City name (alternative to coordinates)

        Returns:
            The Open-Meteo forecast payload (current, hourly and daily blocks)
        """
        if city and (latitude is None or longitude is None):
            latitude, longitude = await self._geocode_city(city)

        if latitude is None or longitude is None:
            raise ToolError("Invalid coordinates: latitude and longitude must be numbers")

        logger.info(f"Fetching weather for coordinates: {latitude}, {longitude}")

        async with self._client() as client:
            response = await client.get(
                FORECAST_URL,
                params={
                    "latitude": latitude,
                    "longitude": longitude,
                    "current": "temperature_2m",
                    "hourly": "temperature_2m",
                    "daily": "sunrise,sunset",
                    "timezone": "auto"
                }
            )

        if response.status_code != 200:
            raise ToolError(f"Weather API request failed: {response.status_code} {response.reason_phrase}")

        data = response.json()
        if not data or "current" not in data:
            raise ToolError("Invalid weather data received from API")

        return data

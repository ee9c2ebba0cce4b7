"""
Weather lookup — OpenWeatherMap current conditions
==================================================
Turns a farmer's coordinates into the one-line summary embedded in advisory
prompts. Weather is context, not a requirement: every failure (missing key,
network, HTTP status, unexpected body) is logged and answered with
WEATHER_UNAVAILABLE instead of an exception.
"""

from typing import Any, Dict, Optional

import httpx

from agri_gateway.config import get_settings
from agri_gateway.core.logging import get_logger
from agri_gateway.models import WEATHER_UNAVAILABLE

logger = get_logger(__name__)


def format_weather_summary(document: Dict[str, Any]) -> str:
    conditions = document.get("weather") or []
    description = "unknown"
    if conditions and isinstance(conditions[0], dict):
        description = conditions[0].get("description") or "unknown"
    main = document.get("main") or {}
    wind = document.get("wind") or {}
    return (
        f"Location: {document.get('name', '')} | Condition: {description} | "
        f"Temperature: {float(main.get('temp', 0)):.1f}°C "
        f"(feels like {float(main.get('feels_like', 0)):.1f}°C) | "
        f"Min: {float(main.get('temp_min', 0)):.1f}°C, Max: {float(main.get('temp_max', 0)):.1f}°C | "
        f"Humidity: {int(main.get('humidity', 0))}% | "
        f"Wind: {float(wind.get('speed', 0)):.1f} m/s"
    )


class WeatherService:
    def __init__(
        self,
        api_key: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        base_url: Optional[str] = None,
    ) -> None:
        settings = get_settings()
        self._api_key = api_key if api_key is not None else settings.weather_api_key
        self._base_url = (base_url or settings.weather_base_url).rstrip("/")
        self._http = http_client or httpx.AsyncClient(timeout=settings.weather_timeout_seconds)
        if not self._api_key:
            logger.warning("WEATHER_API_KEY is not set; advisory prompts will carry no weather")

    async def current_summary(self, latitude: float, longitude: float) -> str:
        if not self._api_key:
            return WEATHER_UNAVAILABLE

        params = {
            "lat": f"{latitude:.6f}",
            "lon": f"{longitude:.6f}",
            "appid": self._api_key,
            "units": "metric",
        }
        try:
            response = await self._http.get(f"{self._base_url}/weather", params=params)
            response.raise_for_status()
            summary = format_weather_summary(response.json())
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Weather API returned an error status",
                extra={"status": exc.response.status_code, "body": exc.response.text[:200]},
            )
            return WEATHER_UNAVAILABLE
        except httpx.HTTPError as exc:
            logger.error("Weather API request failed", extra={"error": str(exc)})
            return WEATHER_UNAVAILABLE
        except (ValueError, TypeError, AttributeError) as exc:
            logger.error("Failed to decode weather response", extra={"error": str(exc)})
            return WEATHER_UNAVAILABLE

        logger.debug("Weather fetched", extra={"latitude": latitude, "longitude": longitude})
        return summary

    async def aclose(self) -> None:
        await self._http.aclose()

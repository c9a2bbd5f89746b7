"""
Weather Block - Open-Meteo current temperature
"""
import logging
from typing import Any, Optional, Tuple

from .rest_poller import CachedRestPoller, RestRequest
from ..ui.theme import Theme


logger = logging.getLogger(__name__)

OPEN_METEO_URL = 'https://api.open-meteo.com/v1/forecast'


def parse_location(location: str) -> Optional[Tuple[float, float]]:
    """
    Parse a "latitude,longitude" pair.

    Args:
        location: e.g. "37.7749,-122.4194"

    Returns:
        (latitude, longitude) or None if malformed
    """
    parts = [part.strip() for part in location.split(',')]
    if len(parts) != 2:
        return None
    try:
        latitude, longitude = float(parts[0]), float(parts[1])
    except ValueError:
        return None
    if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        return None
    return latitude, longitude


def format_temperature(temperature: float) -> str:
    """Render a temperature with its colour-coded thermometer"""
    return f"{Theme.get_temperature_icon(temperature)} {temperature:.1f}°C"


class WeatherBlock(CachedRestPoller):
    """
    Current temperature for a fixed location.
    Enabled only when a location is configured.
    """

    name = 'weather'

    def __init__(self, *args, location: str = '', **kwargs):
        """
        Args:
            location: "latitude,longitude", empty disables the block
            *args, **kwargs: Passed to CachedRestPoller
        """
        self._location = location
        super().__init__(*args, **kwargs)

    def build_request(self) -> Optional[RestRequest]:
        if not self._location:
            return None

        coordinates = parse_location(self._location)
        if coordinates is None:
            logger.warning(f"Invalid weather location {self._location!r}, expected 'lat,lon'")
            return None

        latitude, longitude = coordinates
        return RestRequest(
            url=OPEN_METEO_URL,
            params={
                'latitude': latitude,
                'longitude': longitude,
                'current_weather': 'true',
            }
        )

    def format_result(self, payload: Any) -> str:
        temperature = float(payload['current_weather']['temperature'])
        return format_temperature(temperature)

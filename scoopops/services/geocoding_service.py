"""Zip code geocoding against a Nominatim-compatible search endpoint."""

import logging

import httpx

from scoopops.core.config import settings

logger = logging.getLogger(__name__)


class GeocodingService:
    def __init__(self, base_url: str | None = None, timeout: float = 10.0):
        self.base_url = (base_url or settings.GEOCODING_URL).rstrip("/")
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.base_url)

    def geocode_zip(self, zip_code: str) -> tuple[float, float] | None:
        """Return ``(latitude, longitude)`` for a zip code, or None.

        Lookup failures are logged and reported as None.
        """
        if not self.enabled:
            return None

        params = {
            "postalcode": zip_code[:5],
            "countrycodes": settings.GEOCODING_COUNTRY_CODE,
            "format": "json",
            "limit": "1",
        }
        headers = {"User-Agent": settings.GEOCODING_USER_AGENT}

        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.get(f"{self.base_url}/search", params=params, headers=headers)
                response.raise_for_status()
                results = response.json()
        except httpx.HTTPError as exc:
            logger.warning("Geocoding zip %s failed: %s", zip_code, exc)
            return None
        except ValueError:
            logger.warning("Geocoder returned invalid JSON for zip %s", zip_code)
            return None

        if not results:
            logger.info("No geocoding result for zip %s", zip_code)
            return None

        try:
            first = results[0]
            return float(first["lat"]), float(first["lon"])
        except (KeyError, IndexError, TypeError, ValueError):
            logger.warning("Unexpected geocoding result for zip %s", zip_code)
            return None

"""Network geocoding providers."""
import logging
from typing import List, Optional, Protocol

import requests

from processor.models import Coordinates

logger = logging.getLogger(__name__)


class GeocodingError(Exception):
    """A provider could not turn an address into coordinates."""


class Geocoder(Protocol):
    """Anything that resolves an address to coordinates."""

    def geocode(self, address: str) -> Coordinates:
        ...


class GoogleGeocoder:
    """Google Maps Geocoding API client."""

    BASE_URL = "https://maps.googleapis.com/maps/api/geocode/json"

    def __init__(
        self,
        api_key: str,
        timeout: int = 30,
        country: Optional[str] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the geocoder.

        Args:
            api_key: Google Geocoding API key
            timeout: HTTP request timeout in seconds (default: 30)
            country: ISO country code to restrict results to (e.g. 'GB')
            session: Optional requests session to reuse connections
        """
        self.api_key = api_key
        self.timeout = timeout
        self.country = country
        self.session = session or requests.Session()

    def geocode(self, address: str) -> Coordinates:
        """
        Geocode an address.

        Args:
            address: Address or place name

        Returns:
            Coordinates of the first result

        Raises:
            GeocodingError: On HTTP failure, bad payload or zero results
        """
        params = {'address': address, 'key': self.api_key}
        if self.country:
            params['components'] = f"country:{self.country}"

        try:
            response = self.session.get(self.BASE_URL, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise GeocodingError(f"Google geocoding request failed: {e}") from e

        results = data.get('results') or []
        if not results:
            raise GeocodingError(
                f"No geocoding results for '{address}' (status {data.get('status')})"
            )

        try:
            location = results[0]['geometry']['location']
            return Coordinates(lat=float(location['lat']), lng=float(location['lng']))
        except (KeyError, TypeError, ValueError) as e:
            raise GeocodingError(f"Malformed geocoding result for '{address}'") from e


class NominatimGeocoder:
    """OpenStreetMap Nominatim search client (free, no key)."""

    BASE_URL = "https://nominatim.openstreetmap.org/search"

    def __init__(
        self,
        user_agent: str,
        timeout: int = 30,
        country_codes: str = 'gb',
        session: Optional[requests.Session] = None
    ):
        self.user_agent = user_agent
        self.timeout = timeout
        self.country_codes = country_codes
        self.session = session or requests.Session()

    def geocode(self, address: str) -> Coordinates:
        """Geocode ``address``; raises GeocodingError when nothing is found."""
        params = {
            'format': 'json',
            'q': address,
            'limit': 1,
            'countrycodes': self.country_codes,
        }
        headers = {'User-Agent': self.user_agent}

        try:
            response = self.session.get(
                self.BASE_URL,
                params=params,
                headers=headers,
                timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise GeocodingError(f"Nominatim request failed: {e}") from e

        if not data:
            raise GeocodingError(f"No Nominatim results for '{address}'")

        try:
            return Coordinates(lat=float(data[0]['lat']), lng=float(data[0]['lon']))
        except (KeyError, TypeError, ValueError, IndexError) as e:
            raise GeocodingError(f"Malformed Nominatim result for '{address}'") from e


class GeocoderChain:
    """Tries providers in order until one returns coordinates."""

    def __init__(self, geocoders: List[Geocoder]):
        self.geocoders = list(geocoders)

    def geocode(self, address: str) -> Coordinates:
        """
        Geocode with the first provider that succeeds.

        Raises:
            GeocodingError: If every provider fails (or none is configured)
        """
        for geocoder in self.geocoders:
            try:
                return geocoder.geocode(address)
            except GeocodingError as e:
                logger.warning(
                    f"{type(geocoder).__name__} failed for '{address}': {e}"
                )
                continue

        raise GeocodingError(f"No geocoding provider resolved '{address}'")

"""Resolve event location text to map coordinates."""
import logging
from typing import List, Optional, Protocol

from geo.geocoders import Geocoder, GeocodingError
from geo.known_locations import lookup_known_location
from geo.offsets import offset_from
from processor.models import Coordinates

logger = logging.getLogger(__name__)

REGION_QUALIFIER = ', Northeast England, UK'


class LocationStrategy(Protocol):
    """One step of the resolution chain; None means "try the next one"."""

    def resolve(self, location: str, venue_hint: Optional[str] = None) -> Optional[Coordinates]:
        ...


class KnownLocationStrategy:
    """Static table of towns and regular venues."""

    def resolve(self, location: str, venue_hint: Optional[str] = None) -> Optional[Coordinates]:
        return lookup_known_location(location)


class GeocodingStrategy:
    """Network geocoding; failures are logged and swallowed."""

    def __init__(self, geocoder: Geocoder, region_qualifier: str = REGION_QUALIFIER):
        self.geocoder = geocoder
        self.region_qualifier = region_qualifier

    def build_address(self, location: str, venue_hint: Optional[str] = None) -> str:
        address = location
        if venue_hint and venue_hint.lower() not in location.lower():
            address = f"{venue_hint}, {location}"
        return address + self.region_qualifier

    def resolve(self, location: str, venue_hint: Optional[str] = None) -> Optional[Coordinates]:
        if not location.strip():
            return None
        address = self.build_address(location, venue_hint)
        try:
            return self.geocoder.geocode(address)
        except GeocodingError as e:
            logger.warning(f"Geocoding failed for '{location}': {e}")
            return None


class HashOffsetStrategy:
    """Deterministic point near the default region; always succeeds."""

    def __init__(self, base: Coordinates):
        self.base = base

    def resolve(self, location: str, venue_hint: Optional[str] = None) -> Coordinates:
        return offset_from(self.base, location or '')


class LocationResolver:
    """
    Ordered chain of location strategies.

    The final strategy is always the hash offset fallback, so ``resolve``
    never fails and never returns None.
    """

    def __init__(
        self,
        default_region: Coordinates,
        geocoder: Optional[Geocoder] = None,
        strategies: Optional[List[LocationStrategy]] = None
    ):
        """
        Initialize the resolver.

        Args:
            default_region: Base coordinate for the hash fallback
            geocoder: Network geocoder, or None when geocoding is disabled
            strategies: Override the strategies tried before the fallback
        """
        if strategies is None:
            strategies = [KnownLocationStrategy()]
            if geocoder is not None:
                strategies.append(GeocodingStrategy(geocoder))
        self.strategies = list(strategies)
        self.fallback = HashOffsetStrategy(default_region)

    def resolve(self, location: Optional[str], venue_hint: Optional[str] = None) -> Coordinates:
        """
        Resolve location text to coordinates.

        Args:
            location: Free-text location from the calendar
            venue_hint: Optional venue name used to enrich geocoding queries

        Returns:
            Coordinates (never None)
        """
        text = location or ''
        for strategy in self.strategies:
            coordinates = strategy.resolve(text, venue_hint)
            if coordinates is not None:
                return coordinates

        logger.debug(f"Using hash fallback coordinates for '{text}'")
        return self.fallback.resolve(text)

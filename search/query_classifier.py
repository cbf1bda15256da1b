"""Classify search queries and resolve location searches to an origin."""
import logging
import re
from typing import Optional

from geo.geocoders import Geocoder, GeocodingError
from geo.known_locations import KNOWN_PLACES, lookup_known_location
from geo.location_resolver import REGION_QUALIFIER
from processor.models import QueryKind, SearchOrigin

logger = logging.getLogger(__name__)

FULL_POSTCODE_PATTERN = re.compile(r'^[A-Z]{1,2}[0-9][A-Z0-9]?\s?[0-9][A-Z]{2}$', re.IGNORECASE)
PARTIAL_POSTCODE_PATTERN = re.compile(r'^[A-Z]{1,2}[0-9][A-Z0-9]?$', re.IGNORECASE)
WHITESPACE_PATTERN = re.compile(r'\s+')

FULL_POSTCODE_RADIUS_KM = 15
PARTIAL_POSTCODE_RADIUS_KM = 25
PLACE_RADIUS_KM = 20


def normalize_postcode(query: str) -> str:
    """Collapse whitespace and uppercase, e.g. ' sw1a   1aa' -> 'SW1A 1AA'."""
    return WHITESPACE_PATTERN.sub(' ', query).strip().upper()


def is_known_place(query: str) -> bool:
    """Exact match, or containment either way, against the known place names."""
    query_lower = query.lower().strip()
    if not query_lower:
        return False
    return any(
        place == query_lower or place in query_lower or query_lower in place
        for place in KNOWN_PLACES
    )


def classify_query(query: Optional[str]) -> QueryKind:
    """
    Classify a search string.

    Full postcodes are tested first, then outward-code-only partial
    postcodes (whitespace ignored, so "TS 28" is partial), then known
    place names. Anything else is free text.
    """
    if not query or not query.strip():
        return QueryKind.FREETEXT

    if FULL_POSTCODE_PATTERN.match(normalize_postcode(query)):
        return QueryKind.POSTCODE
    if PARTIAL_POSTCODE_PATTERN.match(WHITESPACE_PATTERN.sub('', query)):
        return QueryKind.PARTIAL_POSTCODE
    if is_known_place(query):
        return QueryKind.PLACE
    return QueryKind.FREETEXT


class SearchOriginResolver:
    """Turns postcode and place searches into a centre point and radius."""

    def __init__(self, geocoder: Optional[Geocoder] = None):
        """
        Initialize the resolver.

        Args:
            geocoder: Geocoder (usually a GeocoderChain of Google then
                Nominatim); None restricts place searches to the known table
        """
        self.geocoder = geocoder

    def resolve(self, query: Optional[str]) -> Optional[SearchOrigin]:
        """
        Resolve a search query to a SearchOrigin.

        Args:
            query: Raw search text

        Returns:
            SearchOrigin, or None for free text or when geocoding fails
        """
        kind = classify_query(query)

        if kind in (QueryKind.POSTCODE, QueryKind.PARTIAL_POSTCODE):
            return self._resolve_postcode(query, kind)
        if kind == QueryKind.PLACE:
            return self._resolve_place(query)
        return None

    def _resolve_postcode(self, query: str, kind: QueryKind) -> Optional[SearchOrigin]:
        postcode = normalize_postcode(query)
        radius = (
            PARTIAL_POSTCODE_RADIUS_KM if kind == QueryKind.PARTIAL_POSTCODE
            else FULL_POSTCODE_RADIUS_KM
        )
        logger.info(f"{kind.value} search for {postcode}, radius {radius}km")

        coordinates = self._geocode(f"{postcode}, UK")
        if coordinates is None:
            return None
        return SearchOrigin(coordinates.lat, coordinates.lng, radius, kind)

    def _resolve_place(self, query: str) -> Optional[SearchOrigin]:
        known = lookup_known_location(query)
        if known is not None:
            return SearchOrigin(known.lat, known.lng, PLACE_RADIUS_KM, QueryKind.PLACE)

        coordinates = self._geocode(query.strip() + REGION_QUALIFIER)
        if coordinates is None:
            return None
        return SearchOrigin(coordinates.lat, coordinates.lng, PLACE_RADIUS_KM, QueryKind.PLACE)

    def _geocode(self, address: str):
        if self.geocoder is None:
            logger.warning(f"No geocoder available for '{address}'")
            return None
        try:
            return self.geocoder.geocode(address)
        except GeocodingError as e:
            logger.warning(f"Search geocoding failed for '{address}': {e}")
            return None

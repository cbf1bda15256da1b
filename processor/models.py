"""Data models for event processing."""
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

# Raw Google Calendar item, passed through untouched.
CalendarItem = Dict[str, Any]


@dataclass(frozen=True)
class Coordinates:
    """A resolved latitude/longitude pair."""
    lat: float
    lng: float


@dataclass(frozen=True)
class Categorization:
    """Result of keyword categorization."""
    tags: List[str]
    primary: str


@dataclass(frozen=True)
class Event:
    """Canonical, sanitized event ready for display."""
    id: int
    title: str
    description: str
    location: str
    category: str
    categories: Tuple[str, ...]
    date: date
    time: str
    start_time: Optional[str]
    end_time: Optional[str]
    lat: float
    lng: float
    is_elapsed: bool
    organizer: str = 'VFVIC'

    def matches_category(self, category: str) -> bool:
        """True when ``category`` is the primary tag or one of the tags."""
        return self.category == category or category in self.categories

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase shape consumed by the renderers."""
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'location': self.location,
            'category': self.category,
            'categories': list(self.categories),
            'date': self.date.isoformat(),
            'time': self.time,
            'startTime': self.start_time,
            'endTime': self.end_time,
            'lat': self.lat,
            'lng': self.lng,
            'isElapsed': self.is_elapsed,
            'organizer': self.organizer,
        }


class QueryKind(str, Enum):
    """Classification of a search string."""
    POSTCODE = 'postcode'
    PARTIAL_POSTCODE = 'partialPostcode'
    PLACE = 'place'
    FREETEXT = 'freetext'


@dataclass(frozen=True)
class SearchOrigin:
    """Geocoded centre and radius of a location-based search."""
    lat: float
    lng: float
    radius_km: float
    kind: QueryKind


@dataclass(frozen=True)
class SearchAnnotation:
    """Per-event distance information computed during a location search."""
    distance_km: float
    radius_km: float
    is_partial_postcode: bool
    is_place_search: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            '_searchDistance': self.distance_km,
            '_searchRadius': self.radius_km,
            '_isPartialPostcode': self.is_partial_postcode,
            '_isPlaceSearch': self.is_place_search,
        }


@dataclass
class FilterCriteria:
    """User-selected filters for one filter pass."""
    search_text: str = ''
    category: str = ''
    exact_date: str = ''
    quick_date_range: str = 'all'


@dataclass
class FilterResult:
    """Events surviving a filter pass plus their search annotations."""
    events: List[Event]
    annotations: Dict[int, SearchAnnotation] = field(default_factory=dict)
    origin: Optional[SearchOrigin] = None

    @property
    def is_location_search(self) -> bool:
        return self.origin is not None

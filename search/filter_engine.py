"""Combine text, location, category and date filters into the displayed event set."""
import logging
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from geo.distance import haversine_km
from processor.models import (
    Event,
    FilterCriteria,
    FilterResult,
    QueryKind,
    SearchAnnotation,
    SearchOrigin,
)
from search.query_classifier import SearchOriginResolver

logger = logging.getLogger(__name__)

QUICK_RANGES = ('today', 'week', 'month', 'all')


def add_one_month(day: date) -> date:
    """Same day next month; overflowing days roll into the following month (Jan 31 -> Mar 3)."""
    year = day.year + (1 if day.month == 12 else 0)
    month = 1 if day.month == 12 else day.month + 1
    return date(year, month, 1) + timedelta(days=day.day - 1)


def filter_by_date_range(events: Iterable[Event], quick_range: str, today: date) -> List[Event]:
    """
    Apply a quick date range bucket.

    Args:
        events: Events to filter
        quick_range: One of 'today', 'week', 'month', 'all'
        today: Local date of evaluation

    Returns:
        Events whose date falls in the bucket (both ends inclusive)
    """
    events = list(events)
    if not quick_range or quick_range == 'all':
        return events

    if quick_range == 'today':
        return [event for event in events if event.date == today]
    if quick_range == 'week':
        end = today + timedelta(days=7)
    elif quick_range == 'month':
        end = add_one_month(today)
    else:
        logger.warning(f"Unknown quick date range '{quick_range}', not filtering")
        return events

    return [event for event in events if today <= event.date <= end]


def matches_text(event: Event, query: str) -> bool:
    """Case-insensitive substring match over title, description, location and organizer."""
    return (
        query in event.title.lower()
        or query in event.description.lower()
        or query in event.location.lower()
        or query in event.organizer.lower()
    )


def _annotation(origin: SearchOrigin, distance: float) -> SearchAnnotation:
    return SearchAnnotation(
        distance_km=distance,
        radius_km=origin.radius_km,
        is_partial_postcode=origin.kind == QueryKind.PARTIAL_POSTCODE,
        is_place_search=origin.kind == QueryKind.PLACE,
    )


def apply_filters(
    events: Iterable[Event],
    criteria: FilterCriteria,
    origin_resolver: Optional[SearchOriginResolver] = None,
    today: Optional[date] = None,
    origin: Optional[SearchOrigin] = None
) -> FilterResult:
    """
    Compute the filtered view of ``events``.

    Text search, category and exact date are ANDed; the quick date range is
    applied afterwards. When the search text resolves to a location, events
    within the radius match in addition to text matches, every match is
    annotated with its distance and the result is sorted nearest first
    (stable for equal distances).

    Args:
        events: Canonical events (never modified)
        criteria: Active filters
        origin_resolver: Resolves postcode/place searches; None means text only
        today: Local date for the quick ranges (default: date.today())
        origin: Already-resolved origin for the search text, skips the
            resolver; ignored when there is no search text

    Returns:
        FilterResult with events, annotations keyed by event id and the origin
    """
    today = today or date.today()
    query = (criteria.search_text or '').lower().strip()

    if not query:
        origin = None
    elif origin is None and origin_resolver is not None:
        origin = origin_resolver.resolve(query)

    annotations: Dict[int, SearchAnnotation] = {}
    matched = []

    for event in events:
        if query:
            matches_search = matches_text(event, query)
            if origin is not None:
                distance = haversine_km(origin.lat, origin.lng, event.lat, event.lng)
                matches_search = matches_search or distance <= origin.radius_km
                if matches_search:
                    annotations[event.id] = _annotation(origin, distance)
            if not matches_search:
                continue

        if criteria.category and not event.matches_category(criteria.category):
            continue

        if criteria.exact_date and event.date.isoformat() != criteria.exact_date:
            continue

        matched.append(event)

    matched = filter_by_date_range(matched, criteria.quick_date_range, today)

    if origin is not None:
        matched.sort(key=lambda event: annotations[event.id].distance_km)
        logger.info(
            f"{origin.kind.value} search: {len(matched)} events within "
            f"{origin.radius_km}km, sorted by distance"
        )

    surviving_ids = {event.id for event in matched}
    annotations = {
        event_id: annotation for event_id, annotation in annotations.items()
        if event_id in surviving_ids
    }

    return FilterResult(events=matched, annotations=annotations, origin=origin)

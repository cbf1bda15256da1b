"""Group filtered events into map marker placements."""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

from processor.categorizer import category_label
from processor.models import Event

logger = logging.getLogger(__name__)


class MapSurface(Protocol):
    """Rendering collaborator that owns the actual map widgets."""

    def place_marker(self, lat: float, lng: float, content: str, on_click: Callable[[], None]) -> Any:
        ...

    def remove_marker(self, handle: Any) -> None:
        ...


@dataclass(frozen=True)
class MarkerPlacement:
    """One marker: all filtered events at a venue on a given day."""
    lat: float
    lng: float
    location: str
    date: date
    events: Tuple[Event, ...]

    @property
    def primary_event_id(self) -> int:
        """Event highlighted when the marker is clicked (the earliest one)."""
        return self.events[0].id

    def to_dict(self) -> Dict[str, Any]:
        return {
            'lat': self.lat,
            'lng': self.lng,
            'location': self.location,
            'date': self.date.isoformat(),
            'eventIds': [event.id for event in self.events],
        }


def _time_sort_key(event: Event) -> str:
    return event.start_time or event.time or '00:00'


def group_markers(events: Sequence[Event], max_markers: int) -> List[MarkerPlacement]:
    """
    Build marker placements for the first ``max_markers`` events.

    Events sharing the exact location text and date share one marker placed
    at the first event's coordinates; within a marker events are ordered by
    start time.

    Args:
        events: Filtered events, already in display order
        max_markers: Maximum number of events considered

    Returns:
        Placements in order of first appearance
    """
    shown = list(events)[:max_markers]
    if len(shown) < len(events):
        logger.info(f"Showing {len(shown)} of {len(events)} events on map")

    groups: Dict[Tuple[str, date], List[Event]] = {}
    for event in shown:
        groups.setdefault((event.location, event.date), []).append(event)

    placements = []
    for (location, event_date), grouped in groups.items():
        first = grouped[0]
        placements.append(MarkerPlacement(
            lat=first.lat,
            lng=first.lng,
            location=location,
            date=event_date,
            events=tuple(sorted(grouped, key=_time_sort_key)),
        ))
    return placements


def popup_text(placement: MarkerPlacement) -> str:
    """Plain-text popup body for a marker."""
    lines = []
    if len(placement.events) > 1:
        lines.append(f"{len(placement.events)} events at {placement.location}")
    for event in placement.events:
        ended = ' (Ended)' if event.is_elapsed else ''
        lines.append(f"{event.title}{ended}")
        lines.append(f"{event.date.isoformat()} {event.time}")
        if len(placement.events) == 1:
            lines.append(event.location)
            lines.append(category_label(event.category))
            lines.append(event.description)
            lines.append(f"Organizer: {event.organizer}")
    return '\n'.join(lines)


class MarkerLayer:
    """
    Keeps the marker handles the map surface hands back.

    Handles are indexed by event id so list items can focus their marker
    without the events themselves holding widget references.
    """

    def __init__(
        self,
        surface: MapSurface,
        on_select: Callable[[int], None],
        render_popup: Callable[[MarkerPlacement], str] = popup_text
    ):
        self.surface = surface
        self.on_select = on_select
        self.render_popup = render_popup
        self._handles: List[Any] = []
        self._by_event_id: Dict[int, Any] = {}

    def show(self, placements: Sequence[MarkerPlacement]) -> None:
        """Replace all markers with ``placements``."""
        self.clear()
        for placement in placements:
            event_id = placement.primary_event_id
            handle = self.surface.place_marker(
                placement.lat,
                placement.lng,
                self.render_popup(placement),
                lambda event_id=event_id: self.on_select(event_id),
            )
            self._handles.append(handle)
            for event in placement.events:
                self._by_event_id[event.id] = handle

    def clear(self) -> None:
        for handle in self._handles:
            self.surface.remove_marker(handle)
        self._handles = []
        self._by_event_id = {}

    def marker_for(self, event_id: int) -> Optional[Any]:
        return self._by_event_id.get(event_id)

    def __len__(self) -> int:
        return len(self._handles)

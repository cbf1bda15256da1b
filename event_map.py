"""Wires feed loading, normalization, filtering and markers together."""
import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, List, Optional, Protocol, Tuple
from zoneinfo import ZoneInfo

from feed.calendar_sources import CalendarLoader
from geo.geocoders import GeocoderChain, GoogleGeocoder, NominatimGeocoder
from geo.location_resolver import LocationResolver
from mapping.markers import MapSurface, MarkerLayer, MarkerPlacement, group_markers
from processor.categorizer import category_label
from processor.event_processor import EventProcessor
from processor.models import Event, FilterCriteria, FilterResult
from processor.sanitizer import validate_search_input
from search.debounce import Debouncer, SearchSequencer
from search.filter_engine import apply_filters
from search.query_classifier import SearchOriginResolver
from settings import Config

logger = logging.getLogger(__name__)

SEARCH_KEY = 'search'


class NotificationSink(Protocol):
    """Toast / spinner collaborator."""

    def notify(self, message: str, level: str = 'info') -> None:
        ...

    def set_busy(self, busy: bool) -> None:
        ...


class LoggingNotifier:
    """Notification sink that only logs; used when no UI is attached."""

    LEVELS = {
        'success': logging.INFO,
        'info': logging.INFO,
        'warning': logging.WARNING,
        'error': logging.ERROR,
    }

    def notify(self, message: str, level: str = 'info') -> None:
        logger.log(self.LEVELS.get(level, logging.INFO), message)

    def set_busy(self, busy: bool) -> None:
        logger.debug(f"busy={busy}")


def build_search_geocoder(config: Config) -> GeocoderChain:
    """Google (when configured) then Nominatim, both restricted to Great Britain."""
    geocoders = []
    if config.geocoding_configured:
        geocoders.append(GoogleGeocoder(
            config.geocoding_api_key, timeout=config.timeout_seconds, country='GB'
        ))
    geocoders.append(NominatimGeocoder(
        config.nominatim_user_agent, timeout=config.timeout_seconds, country_codes='gb'
    ))
    return GeocoderChain(geocoders)


def build_location_resolver(config: Config) -> LocationResolver:
    geocoder = None
    if config.geocoding_configured:
        geocoder = GoogleGeocoder(config.geocoding_api_key, timeout=config.timeout_seconds)
    return LocationResolver(config.default_region, geocoder=geocoder)


class EventMap:
    """
    Application state for the event map.

    ``events`` is replaced wholesale on every load and ``filter_result`` on
    every committed filter pass; neither is modified in place.
    """

    def __init__(
        self,
        config: Config,
        loader: CalendarLoader,
        processor: EventProcessor,
        origin_resolver: Optional[SearchOriginResolver] = None,
        notifier: Optional[NotificationSink] = None,
        surface: Optional[MapSurface] = None,
        debouncer: Optional[Debouncer] = None,
        sequencer: Optional[SearchSequencer] = None,
        today: Optional[Callable[[], date]] = None
    ):
        self.config = config
        self.loader = loader
        self.processor = processor
        self.origin_resolver = origin_resolver
        self.notifier = notifier or LoggingNotifier()
        self.debouncer = debouncer or Debouncer()
        self.sequencer = sequencer or SearchSequencer()
        self.today = today or (lambda: datetime.now(ZoneInfo(config.timezone)).date())
        self.markers = MarkerLayer(surface, self.select_event) if surface is not None else None

        self.events: List[Event] = []
        self.filter_result = FilterResult(events=[])
        self.criteria = FilterCriteria()
        self.selected_event_id: Optional[int] = None
        self.source: Optional[str] = None

    @classmethod
    def from_config(
        cls,
        config: Config,
        notifier: Optional[NotificationSink] = None,
        surface: Optional[MapSurface] = None
    ) -> 'EventMap':
        """Build an EventMap with the default collaborators for ``config``."""
        processor = EventProcessor(
            build_location_resolver(config),
            timezone=config.timezone,
            excluded_recurring_event_ids=config.excluded_recurring_event_ids,
        )
        return cls(
            config,
            CalendarLoader.from_config(config),
            processor,
            origin_resolver=SearchOriginResolver(build_search_geocoder(config)),
            notifier=notifier,
            surface=surface,
        )

    @property
    def filtered_events(self) -> List[Event]:
        return self.filter_result.events

    def load(self) -> List[Event]:
        """
        Load the calendar and rebuild the canonical event set.

        Returns:
            The new events
        """
        self.notifier.set_busy(True)
        try:
            items, source = self.loader.load()
            events = self.processor.process_events(items)
            # A reload supersedes any search still in flight.
            ticket = self.sequencer.next_ticket()
            self.events = events
            self.source = source
            self.sequencer.commit(ticket, lambda: self._commit(FilterResult(events=list(events))))
        finally:
            self.notifier.set_busy(False)

        if source is None:
            self.notifier.notify('Could not load calendar events', 'warning')
        else:
            self.notifier.notify(f"Loaded {len(events)} upcoming events", 'success')
        return events

    def search(self, criteria: FilterCriteria, immediate: bool = False) -> None:
        """
        Request a filter pass.

        Keystroke-driven searches are debounced; ``immediate`` (Enter key or
        search button) runs now and drops any pending debounced search.
        """
        criteria = replace(criteria, search_text=validate_search_input(criteria.search_text))

        def action():
            self.run_filters(criteria)

        if immediate:
            self.debouncer.flush(SEARCH_KEY, action)
        else:
            self.debouncer.schedule(SEARCH_KEY, self.config.debounce_delay_ms, action)

    def run_filters(self, criteria: FilterCriteria) -> FilterResult:
        """
        Run one filter pass and commit it unless a newer pass was dispatched.

        Returns:
            The computed result (committed or not)
        """
        ticket = self.sequencer.next_ticket()
        events = self.events
        result = apply_filters(events, criteria, self.origin_resolver, today=self.today())

        def apply():
            self.criteria = criteria
            self._commit(result)

        self.sequencer.commit(ticket, apply)
        return result

    def clear_filters(self) -> FilterResult:
        """Reset every filter and show all events."""
        self.debouncer.cancel(SEARCH_KEY)
        return self.run_filters(FilterCriteria())

    def _commit(self, result: FilterResult) -> None:
        self.filter_result = result
        logger.info(f"Filtered {len(result.events)} events from {len(self.events)} total")
        if self.markers is not None:
            self.markers.show(self.marker_placements())

    def marker_placements(self) -> List[MarkerPlacement]:
        return group_markers(self.filtered_events, self.config.max_markers_on_map)

    def displayed_events(self, pages: int = 1) -> List[Event]:
        """The first ``pages`` pages of the filtered list."""
        return self.filtered_events[:pages * self.config.events_per_page]

    def select_event(self, event_id: int) -> None:
        self.selected_event_id = event_id

    def category_options(self) -> List[Tuple[str, str, int]]:
        """
        Categories present in the loaded events.

        Returns:
            Sorted (category, label, count) tuples; counts use the same
            primary-or-tag rule as the category filter
        """
        present = set()
        for event in self.events:
            present.add(event.category)
            present.update(event.categories)
        present.discard('')

        return [
            (category, category_label(category),
             sum(1 for event in self.events if event.matches_category(category)))
            for category in sorted(present)
        ]

"""Event processor for turning calendar items into canonical events."""
import logging
from datetime import date, datetime, time
from typing import Callable, FrozenSet, Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo

from geo.location_resolver import LocationResolver
from processor.categorizer import categorize
from processor.models import CalendarItem, Event
from processor.sanitizer import sanitize_html, sanitize_text

logger = logging.getLogger(__name__)


class EventProcessor:
    """Processor for validating and normalizing calendar items."""

    DEFAULT_TITLE = 'Unnamed Event'
    DEFAULT_DESCRIPTION = 'No description available'
    DEFAULT_LOCATION = 'Location TBD'
    DEFAULT_ORGANIZER = 'VFVIC'
    NON_EVENT_MARKER = 'useful information'
    END_OF_DAY = time(23, 59, 59)

    def __init__(
        self,
        location_resolver: LocationResolver,
        timezone: str = 'Europe/London',
        excluded_recurring_event_ids: Iterable[str] = (),
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize the processor.

        Args:
            location_resolver: Resolves location text to coordinates
            timezone: IANA zone used for "today" and displayed times
            excluded_recurring_event_ids: Recurring series to suppress
                (announcements injected into the calendar)
            clock: Returns the current aware datetime (default: now in ``timezone``)
        """
        self.location_resolver = location_resolver
        self.tz = ZoneInfo(timezone)
        self.excluded_recurring_event_ids: FrozenSet[str] = frozenset(excluded_recurring_event_ids)
        self.clock = clock or (lambda: datetime.now(self.tz))

    def process_events(self, raw_items: List[CalendarItem]) -> List[Event]:
        """
        Normalize raw calendar items.

        Items from series on the exclusion list, items dated before today,
        administrative "Useful Information" entries and items without usable
        coordinates are dropped. Ids are assigned 1, 2, ... to surviving
        items in feed order and the result is sorted by date.

        Args:
            raw_items: Items from the calendar feed

        Returns:
            List of Event objects sorted by date
        """
        now = self.clock().astimezone(self.tz)
        events = []

        for item in raw_items:
            try:
                event = self._process_single_item(item, len(events) + 1, now)
                if event:
                    events.append(event)
            except Exception as e:
                logger.warning(
                    f"Failed to process event '{item.get('summary')}': {e}"
                )
                continue

        events.sort(key=lambda event: event.date)

        logger.info(
            f"Processed {len(events)} events for display out of "
            f"{len(raw_items)} calendar items"
        )
        return events

    def _process_single_item(self, item: CalendarItem, event_id: int, now: datetime) -> Optional[Event]:
        """
        Process a single calendar item.

        Args:
            item: Raw calendar item
            event_id: Id given to the item if it is kept
            now: Current time in the local zone

        Returns:
            Event, or None if the item is dropped

        Raises:
            ValueError: If the start/end fields are missing or malformed
        """
        today = now.date()

        recurring_id = item.get('recurringEventId')
        if recurring_id and recurring_id in self.excluded_recurring_event_ids:
            logger.debug(f"Skipping excluded recurring event {recurring_id}")
            return None

        event_date, start, end = self._extract_schedule(item)
        if event_date < today:
            return None

        title = sanitize_text(item.get('summary') or self.DEFAULT_TITLE)
        if self.NON_EVENT_MARKER in title.lower():
            return None

        description = sanitize_html(item.get('description') or self.DEFAULT_DESCRIPTION)
        location = sanitize_text(item.get('location') or self.DEFAULT_LOCATION)
        categorization = categorize(title, description)

        start_time = self.format_time(start)
        end_time = self.format_time(end)

        coordinates = self.location_resolver.resolve(location)
        if coordinates.lat == 0 and coordinates.lng == 0:
            logger.warning(f"Skipping event '{title}' - no valid coordinates")
            return None

        return Event(
            id=event_id,
            title=title,
            description=description,
            location=location,
            category=categorization.primary,
            categories=tuple(categorization.tags),
            date=event_date,
            time=self.display_time(start_time, end_time),
            start_time=start_time,
            end_time=end_time,
            lat=coordinates.lat,
            lng=coordinates.lng,
            is_elapsed=self._is_elapsed(event_date, start, end, now),
            organizer=self.extract_organizer(item),
        )

    def _extract_schedule(self, item: CalendarItem) -> Tuple[date, Optional[datetime], Optional[datetime]]:
        """
        Read the event date and, for timed events, the start/end instants.

        Returns:
            (date, start, end); start and end are None for all-day events
        """
        start_field = item.get('start') or {}
        end_field = item.get('end') or {}

        if start_field.get('dateTime'):
            start = self._parse_datetime(start_field['dateTime'])
            end = self._parse_datetime(end_field['dateTime']) if end_field.get('dateTime') else None
            return start.date(), start, end

        if start_field.get('date'):
            return date.fromisoformat(start_field['date']), None, None

        raise ValueError('calendar item has no start date')

    def _parse_datetime(self, value: str) -> datetime:
        """Parse an RFC 3339 timestamp into the local zone."""
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=self.tz)
        return parsed.astimezone(self.tz)

    def _is_elapsed(
        self,
        event_date: date,
        start: Optional[datetime],
        end: Optional[datetime],
        now: datetime
    ) -> bool:
        if event_date != now.date():
            return False
        if end is not None:
            finish = end
        elif start is not None:
            finish = start
        else:
            finish = datetime.combine(event_date, self.END_OF_DAY, tzinfo=self.tz)
        return now > finish

    @staticmethod
    def format_time(value: Optional[datetime]) -> Optional[str]:
        """24-hour HH:MM, or None for all-day events."""
        return value.strftime('%H:%M') if value else None

    @staticmethod
    def display_time(start_time: Optional[str], end_time: Optional[str]) -> str:
        """
        Time label for lists and popups.

        Args:
            start_time: HH:MM or None
            end_time: HH:MM or None

        Returns:
            'All day', 'HH:MM - HH:MM', a single time, or 'Time TBD'
        """
        if not start_time and not end_time:
            return 'All day'
        if start_time and end_time and start_time != end_time:
            return f"{start_time} - {end_time}"
        return start_time or end_time or 'Time TBD'

    def extract_organizer(self, item: CalendarItem) -> str:
        """Organizer display name, then creator display name, then the default."""
        for key in ('organizer', 'creator'):
            name = (item.get(key) or {}).get('displayName')
            if name:
                return sanitize_text(name)
        return self.DEFAULT_ORGANIZER

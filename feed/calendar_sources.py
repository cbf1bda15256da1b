"""Calendar feed sources: static snapshot file and Google Calendar API."""
import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, Tuple
from urllib.parse import quote

import requests

from processor.models import CalendarItem
from settings import Config, ConfigurationError

logger = logging.getLogger(__name__)


class CalendarSourceError(Exception):
    """A calendar source produced nothing usable."""


class CalendarSource(Protocol):
    name: str

    def fetch_items(self) -> List[CalendarItem]:
        ...


def parse_snapshot(text: str) -> List[CalendarItem]:
    """
    Parse a calendar snapshot.

    Snapshots are either a JSON object with an ``items`` list or the bare
    fragment ``"items": [...]`` written by ``save_snapshot``.

    Raises:
        ValueError: If the text is not valid JSON in either form
    """
    stripped = text.strip()
    if stripped.startswith('"items"'):
        stripped = '{' + stripped + '}'
    data = json.loads(stripped)
    if isinstance(data, list):
        return data
    return data.get('items') or []


def save_snapshot(items: Sequence[CalendarItem], path) -> None:
    """Write items in the ``"items": [...]`` snapshot format."""
    output = ' "items": ' + json.dumps(list(items), indent=1) + '\n'
    Path(path).write_text(output, encoding='utf-8')
    logger.info(f"Saved {len(items)} events to {path}")


class LocalCalendarFile:
    """Static snapshot of the calendar deployed next to the map."""

    name = 'local'

    def __init__(self, path):
        self.path = Path(path)

    def fetch_items(self) -> List[CalendarItem]:
        """
        Read items from the snapshot file.

        Raises:
            CalendarSourceError: If the file is missing, unreadable or empty
        """
        logger.info(f"Loading events from local calendar file {self.path}")
        try:
            items = parse_snapshot(self.path.read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            raise CalendarSourceError(f"Could not read {self.path}: {e}") from e

        if not items:
            raise CalendarSourceError('No events found in calendar file')

        logger.info(f"Found {len(items)} calendar items")
        return items


class GoogleCalendarApi:
    """Google Calendar v3 events endpoint."""

    BASE_URL = "https://www.googleapis.com/calendar/v3/calendars/{calendar_id}/events"

    name = 'google'

    def __init__(
        self,
        config: Config,
        max_retries: int = 2,
        base_delay: float = 1,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the API source.

        Args:
            config: Application configuration (credentials, MAX_EVENTS, timeout)
            max_retries: Attempts before giving up (default: 2)
            base_delay: First backoff delay in seconds, doubled per attempt
            session: Optional requests session
        """
        self.config = config
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.session = session or requests.Session()

    def fetch_items(self) -> List[CalendarItem]:
        """
        Fetch upcoming single events ordered by start time.

        Returns:
            Calendar items (possibly empty)

        Raises:
            ConfigurationError: If credentials are missing or placeholders
            requests.RequestException: If all retry attempts fail
        """
        self.config.require_calendar_credentials()

        url = self.BASE_URL.format(calendar_id=quote(self.config.calendar_id, safe=''))
        params = {
            'key': self.config.calendar_api_key,
            'timeMin': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'singleEvents': 'true',
            'orderBy': 'startTime',
            'maxResults': self.config.max_events,
        }

        logger.info('Loading events from Google Calendar')
        data = self._get_with_retry(url, params)
        items = data.get('items') or []
        if not items:
            logger.warning('No events found in Google Calendar')
        else:
            logger.info(f"Found {len(items)} events in calendar")
        return items

    def _get_with_retry(self, url: str, params: dict) -> dict:
        for attempt in range(self.max_retries):
            try:
                logger.info(f"Fetching calendar events (attempt {attempt + 1}/{self.max_retries})")
                response = self.session.get(url, params=params, timeout=self.config.timeout_seconds)
                response.raise_for_status()
                return response.json()

            except requests.RequestException as e:
                if attempt < self.max_retries - 1:
                    delay = self.base_delay * (2 ** attempt)
                    logger.warning(
                        f"Request failed (attempt {attempt + 1}/{self.max_retries}): {e}. "
                        f"Retrying in {delay} seconds..."
                    )
                    time.sleep(delay)
                else:
                    logger.error(
                        f"All {self.max_retries} retry attempts failed. Last error: {e}"
                    )
                    raise


class CalendarLoader:
    """Tries calendar sources in order: local snapshot, API, then nothing."""

    def __init__(self, sources: Sequence[CalendarSource]):
        self.sources = list(sources)

    @classmethod
    def from_config(cls, config: Config) -> 'CalendarLoader':
        return cls([LocalCalendarFile(config.local_calendar_file), GoogleCalendarApi(config)])

    def load(self) -> Tuple[List[CalendarItem], Optional[str]]:
        """
        Load items from the first source that succeeds.

        Returns:
            (items, source name); ([], None) when every source fails
        """
        for source in self.sources:
            try:
                return source.fetch_items(), source.name
            except (CalendarSourceError, ConfigurationError, requests.RequestException, ValueError) as e:
                logger.warning(f"Could not load {source.name} calendar events: {e}")
                continue

        logger.error('No calendar source available')
        return [], None

"""Unit tests for calendar sources and the loader fallback chain."""
import json
import logging
from unittest.mock import Mock, patch
from urllib.parse import parse_qs, urlparse

import pytest
import responses
from requests.exceptions import RequestException

from feed.calendar_sources import (
    CalendarLoader,
    CalendarSourceError,
    GoogleCalendarApi,
    LocalCalendarFile,
    parse_snapshot,
    save_snapshot,
)
from settings import Config, ConfigurationError

CALENDAR_URL = "https://www.googleapis.com/calendar/v3/calendars/vfvic-calendar/events"

SAMPLE_ITEMS = [
    {
        'id': 'abc123',
        'summary': 'Veterans Breakfast Club',
        'location': 'Hebburn Iona Social Club, Station Rd, Hebburn NE31 1BD',
        'start': {'dateTime': '2026-10-20T10:00:00+01:00'},
        'end': {'dateTime': '2026-10-20T12:00:00+01:00'},
    },
    {
        'id': 'def456',
        'summary': 'DLI Association Meeting',
        'start': {'date': '2026-10-22'},
        'end': {'date': '2026-10-23'},
    },
]


@pytest.fixture
def config():
    return Config(calendar_api_key='test-api-key', calendar_id='vfvic-calendar', max_events=50)


class TestParseSnapshot:
    """Test cases for snapshot parsing."""

    def test_items_fragment(self):
        """Test the bare '"items": [...]' fragment format."""
        text = ' "items": ' + json.dumps(SAMPLE_ITEMS) + '\n'
        assert parse_snapshot(text) == SAMPLE_ITEMS

    def test_full_object(self):
        text = json.dumps({'kind': 'calendar#events', 'items': SAMPLE_ITEMS})
        assert parse_snapshot(text) == SAMPLE_ITEMS

    def test_bare_list(self):
        assert parse_snapshot(json.dumps(SAMPLE_ITEMS)) == SAMPLE_ITEMS

    def test_object_without_items(self):
        assert parse_snapshot('{"kind": "calendar#events"}') == []

    def test_invalid_json(self):
        with pytest.raises(ValueError):
            parse_snapshot('"items": [oops')


class TestLocalCalendarFile:
    """Test cases for LocalCalendarFile."""

    def test_round_trip_with_save_snapshot(self, tmp_path):
        """Test that saved snapshots load back unchanged."""
        path = tmp_path / 'google-calendar-events'
        save_snapshot(SAMPLE_ITEMS, path)

        assert path.read_text(encoding='utf-8').lstrip().startswith('"items"')
        assert LocalCalendarFile(path).fetch_items() == SAMPLE_ITEMS

    def test_missing_file(self, tmp_path):
        with pytest.raises(CalendarSourceError):
            LocalCalendarFile(tmp_path / 'missing').fetch_items()

    def test_empty_items(self, tmp_path):
        path = tmp_path / 'events'
        path.write_text('"items": []', encoding='utf-8')

        with pytest.raises(CalendarSourceError, match='No events found'):
            LocalCalendarFile(path).fetch_items()

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / 'events'
        path.write_text('<html>not json</html>', encoding='utf-8')

        with pytest.raises(CalendarSourceError):
            LocalCalendarFile(path).fetch_items()


class TestGoogleCalendarApi:
    """Test cases for GoogleCalendarApi."""

    @responses.activate
    def test_fetch_items_success(self, config):
        """Test request parameters and item extraction."""
        responses.add(responses.GET, CALENDAR_URL, json={'items': SAMPLE_ITEMS}, status=200)

        items = GoogleCalendarApi(config).fetch_items()

        assert items == SAMPLE_ITEMS
        params = parse_qs(urlparse(responses.calls[0].request.url).query)
        assert params['key'] == ['test-api-key']
        assert params['singleEvents'] == ['true']
        assert params['orderBy'] == ['startTime']
        assert params['maxResults'] == ['50']
        assert params['timeMin'][0].endswith('Z')

    def test_calendar_id_is_url_encoded(self):
        """Test that group calendar ids are escaped in the path."""
        session = Mock()
        session.get.return_value.json.return_value = {'items': []}
        config = Config(calendar_api_key='test-api-key', calendar_id='abc@group.calendar.google.com')

        GoogleCalendarApi(config, session=session).fetch_items()

        url = session.get.call_args[0][0]
        assert '/calendars/abc%40group.calendar.google.com/events' in url

    @responses.activate
    def test_empty_calendar(self, config):
        responses.add(responses.GET, CALENDAR_URL, json={'kind': 'calendar#events'}, status=200)
        assert GoogleCalendarApi(config).fetch_items() == []

    @responses.activate
    @patch('feed.calendar_sources.time.sleep')
    def test_retry_then_success(self, mock_sleep, config):
        """Test retry logic succeeds after an initial failure."""
        responses.add(responses.GET, CALENDAR_URL, body='Server Error', status=500)
        responses.add(responses.GET, CALENDAR_URL, json={'items': SAMPLE_ITEMS}, status=200)

        items = GoogleCalendarApi(config, max_retries=3, base_delay=1).fetch_items()

        assert len(items) == 2
        assert len(responses.calls) == 2
        mock_sleep.assert_called_once_with(1)

    @responses.activate
    @patch('feed.calendar_sources.time.sleep')
    def test_all_retries_fail(self, mock_sleep, config):
        """Test that the last error is raised when all retries fail."""
        for _ in range(3):
            responses.add(responses.GET, CALENDAR_URL, body='Server Error', status=500)

        with pytest.raises(RequestException):
            GoogleCalendarApi(config, max_retries=3, base_delay=1).fetch_items()

        assert len(responses.calls) == 3
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1, 2]

    @pytest.mark.parametrize('key,calendar_id', [
        (None, 'vfvic-calendar'),
        ('test-api-key', None),
        ('your-api-key-here', 'vfvic-calendar'),
        ('test-api-key', 'your-calendar-id-here'),
    ])
    def test_missing_or_placeholder_credentials(self, key, calendar_id):
        """Test that unusable credentials fail before any request."""
        session = Mock()
        api = GoogleCalendarApi(Config(calendar_api_key=key, calendar_id=calendar_id), session=session)

        with pytest.raises(ConfigurationError):
            api.fetch_items()

        session.get.assert_not_called()


class TestCalendarLoader:
    """Test cases for the fallback chain."""

    def make_source(self, name, items=None, error=None):
        source = Mock()
        source.name = name
        if error is not None:
            source.fetch_items.side_effect = error
        else:
            source.fetch_items.return_value = items
        return source

    def test_first_source_wins(self):
        local = self.make_source('local', items=SAMPLE_ITEMS)
        google = self.make_source('google', items=[])

        assert CalendarLoader([local, google]).load() == (SAMPLE_ITEMS, 'local')
        google.fetch_items.assert_not_called()

    def test_falls_back_to_api(self, caplog):
        local = self.make_source('local', error=CalendarSourceError('No events found'))
        google = self.make_source('google', items=SAMPLE_ITEMS)

        with caplog.at_level(logging.WARNING):
            assert CalendarLoader([local, google]).load() == (SAMPLE_ITEMS, 'google')

        assert 'Could not load local calendar events' in caplog.text

    def test_everything_fails(self):
        """Test the empty result when no source is usable."""
        local = self.make_source('local', error=CalendarSourceError('missing'))
        google = self.make_source('google', error=ConfigurationError('not configured'))

        assert CalendarLoader([local, google]).load() == ([], None)

    def test_from_config_with_placeholder_key(self, tmp_path):
        """Test the real chain with no snapshot and placeholder credentials."""
        config = Config(
            calendar_api_key='your-api-key-here',
            calendar_id='your-calendar-id-here',
            local_calendar_file=str(tmp_path / 'missing')
        )

        assert CalendarLoader.from_config(config).load() == ([], None)

    def test_from_config_reads_snapshot(self, tmp_path):
        path = tmp_path / 'google-calendar-events'
        save_snapshot(SAMPLE_ITEMS, path)
        config = Config(local_calendar_file=str(path))

        items, source = CalendarLoader.from_config(config).load()

        assert source == 'local'
        assert items == SAMPLE_ITEMS

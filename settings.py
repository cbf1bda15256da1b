"""Runtime configuration read from environment variables."""
import os
from dataclasses import dataclass, field
from typing import FrozenSet, Mapping, Optional

from processor.models import Coordinates

PLACEHOLDER_PREFIX = 'your-'
DEFAULT_REGION = Coordinates(lat=54.9783, lng=-1.6178)


class ConfigurationError(ValueError):
    """Required configuration is missing or still holds a placeholder."""


def is_configured(value: Optional[str]) -> bool:
    """True when ``value`` is set and is not a ``your-...-here`` placeholder."""
    return bool(value) and not value.startswith(PLACEHOLDER_PREFIX)


def _bool(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _id_list(value: str) -> FrozenSet[str]:
    return frozenset(part.strip() for part in value.split(',') if part.strip())


@dataclass(frozen=True)
class Config:
    """Immutable application configuration."""
    events_per_page: int = 20
    max_markers_on_map: int = 100
    debounce_delay_ms: int = 300
    default_region: Coordinates = DEFAULT_REGION
    enable_geocoding: bool = True
    max_events: int = 50
    calendar_api_key: Optional[str] = None
    calendar_id: Optional[str] = None
    geocoding_api_key: Optional[str] = None
    local_calendar_file: str = 'google-calendar-events'
    excluded_recurring_event_ids: FrozenSet[str] = field(default_factory=frozenset)
    timezone: str = 'Europe/London'
    log_level: str = 'INFO'
    timeout_seconds: int = 30
    nominatim_user_agent: str = 'vfvic-event-map'

    @property
    def geocoding_configured(self) -> bool:
        """Network geocoding of event locations is enabled and has a key."""
        return self.enable_geocoding and is_configured(self.geocoding_api_key)

    def require_calendar_credentials(self) -> None:
        """
        Check the calendar API credentials.

        Raises:
            ConfigurationError: If the key or calendar id is missing or a placeholder
        """
        if not is_configured(self.calendar_api_key) or not is_configured(self.calendar_id):
            raise ConfigurationError(
                'Google Calendar configuration not found. Set GOOGLE_CALENDAR_API_KEY '
                'and GOOGLE_CALENDAR_ID.'
            )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'Config':
        """
        Build configuration from environment variables.

        Args:
            environ: Mapping to read from (default: os.environ)

        Returns:
            Config instance
        """
        env = os.environ if environ is None else environ

        return cls(
            events_per_page=int(env.get('EVENTS_PER_PAGE', '20')),
            max_markers_on_map=int(env.get('MAX_MARKERS_ON_MAP', '100')),
            debounce_delay_ms=int(env.get('DEBOUNCE_DELAY_MS', '300')),
            default_region=Coordinates(
                lat=float(env.get('DEFAULT_REGION_LAT', str(DEFAULT_REGION.lat))),
                lng=float(env.get('DEFAULT_REGION_LNG', str(DEFAULT_REGION.lng))),
            ),
            enable_geocoding=_bool(env.get('ENABLE_GEOCODING', 'true')),
            max_events=int(env.get('MAX_EVENTS', '50')),
            calendar_api_key=env.get('GOOGLE_CALENDAR_API_KEY'),
            calendar_id=env.get('GOOGLE_CALENDAR_ID'),
            geocoding_api_key=env.get('GEOCODING_API_KEY'),
            local_calendar_file=env.get('LOCAL_CALENDAR_FILE', 'google-calendar-events'),
            excluded_recurring_event_ids=_id_list(env.get('EXCLUDED_RECURRING_EVENT_IDS', '')),
            timezone=env.get('TIMEZONE', 'Europe/London'),
            log_level=env.get('LOG_LEVEL', 'INFO'),
            timeout_seconds=int(env.get('TIMEOUT_SECONDS', '30')),
            nominatim_user_agent=env.get('NOMINATIM_USER_AGENT', 'vfvic-event-map'),
        )

"""AWS Lambda handler serving the filtered VFVIC event feed."""
import json
import logging
import time
from typing import Any, Dict

from event_map import EventMap
from processor.models import FilterCriteria, FilterResult
from processor.sanitizer import validate_search_input
from settings import Config


# Attributes every LogRecord has; anything else arrived through ``extra=``.
RESERVED_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord('', logging.INFO, '', 0, '', (), None))
) | {'message', 'asctime'}


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """JSON formatter that carries ``extra=`` fields such as event counts."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        for key, value in vars(record).items():
            if key not in RESERVED_RECORD_ATTRS and key not in log_data:
                log_data[key] = value

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def criteria_from_request(event: Dict[str, Any]) -> FilterCriteria:
    """Read filters from API Gateway query string parameters."""
    params = (event or {}).get('queryStringParameters') or {}
    return FilterCriteria(
        search_text=validate_search_input(params.get('q', '')),
        category=params.get('category', ''),
        exact_date=params.get('date', ''),
        quick_date_range=params.get('range', 'all'),
    )


def serialize_result(result: FilterResult) -> Dict[str, Any]:
    """Events with any search annotation merged into each event dict."""
    events = []
    for event in result.events:
        data = event.to_dict()
        annotation = result.annotations.get(event.id)
        if annotation is not None:
            data.update(annotation.to_dict())
        events.append(data)

    origin = None
    if result.origin is not None:
        origin = {
            'lat': result.origin.lat,
            'lng': result.origin.lng,
            'radiusKm': result.origin.radius_km,
            'kind': result.origin.kind.value,
        }
    return {'events': events, 'searchOrigin': origin}


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler for the event map feed.

    Args:
        event: API Gateway proxy event; filters come from
            queryStringParameters q, category, date and range
        context: Lambda context object

    Returns:
        Response dict with statusCode and JSON body
    """
    config = Config.from_env()

    setup_logging(config.log_level)
    logger = logging.getLogger(__name__)

    start_time = time.time()
    logger.info(
        "Lambda execution started",
        extra={
            'max_events': config.max_events,
            'geocoding_enabled': config.geocoding_configured,
            'timeout_seconds': config.timeout_seconds
        }
    )

    try:
        event_map = EventMap.from_config(config)

        logger.info("Loading events from calendar")
        events = event_map.load()

        criteria = criteria_from_request(event)
        logger.info("Applying filters")
        result = event_map.run_filters(criteria)

        duration = time.time() - start_time
        logger.info(
            "Lambda execution completed successfully",
            extra={
                'duration_seconds': round(duration, 2),
                'events_loaded': len(events),
                'events_matched': len(result.events)
            }
        )

        body = serialize_result(result)
        body.update({
            'source': event_map.source,
            'statistics': {
                'events_loaded': len(events),
                'events_matched': len(result.events),
                'duration_seconds': round(duration, 2)
            },
            'markers': [placement.to_dict() for placement in event_map.marker_placements()],
            'categories': [
                {'value': value, 'label': label, 'count': count}
                for value, label, count in event_map.category_options()
            ],
        })

        return {
            'statusCode': 200,
            'headers': {'Content-Type': 'application/json'},
            'body': json.dumps(body)
        }

    except Exception as e:
        duration = time.time() - start_time

        logger.error(
            f"Lambda execution failed: {str(e)}",
            extra={
                'duration_seconds': round(duration, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )

        return {
            'statusCode': 500,
            'body': json.dumps({
                'message': 'Failed to load events',
                'error': str(e),
                'error_type': type(e).__name__,
                'duration_seconds': round(duration, 2)
            })
        }

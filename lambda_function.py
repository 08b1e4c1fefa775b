"""AWS Lambda handler for calendar event synchronization."""
import json
import logging
import os
import time
from dataclasses import dataclass
from typing import Dict, Any

from controller.event_operations import EventOperations
from controller.notifier import CollectingNotifier
from processor.models import Event, event_from_dict
from storage.dynamodb_manager import DynamoDBEventStore
from storage.http_event_store import HttpEventStore


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


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


@dataclass
class StoreConfig:
    """Event store settings read from the environment."""
    backend: str
    store_url: str
    table_name: str
    timeout_seconds: int
    log_level: str


def load_config() -> StoreConfig:
    return StoreConfig(
        backend=os.environ.get('STORE_BACKEND', 'http').lower(),
        store_url=os.environ.get('STORE_URL', 'http://localhost:3000'),
        table_name=os.environ.get('TABLE_NAME', 'calendar-events'),
        timeout_seconds=int(os.environ.get('TIMEOUT_SECONDS', '30')),
        log_level=os.environ.get('LOG_LEVEL', 'INFO')
    )


def build_store(config: StoreConfig):
    """
    Create the event store client selected by the configuration.

    Raises:
        ValueError: If the backend name is unknown
    """
    if config.backend == 'http':
        return HttpEventStore(config.store_url, timeout=config.timeout_seconds)
    if config.backend == 'dynamodb':
        return DynamoDBEventStore(table_name=config.table_name)
    raise ValueError(f"Unknown STORE_BACKEND: {config.backend}")


class BadRequest(Exception):
    """The invocation payload is missing or has an invalid field."""
    pass


def _run_action(operations: EventOperations, event: Dict[str, Any], loaded: bool) -> bool:
    action = event.get('action', 'list')

    if action == 'list':
        # The startup load already ran
        return loaded

    if action == 'save':
        payload = event.get('event')
        if not payload:
            raise BadRequest("Missing field: event")
        try:
            event_data = event_from_dict(payload)
        except ValueError as e:
            raise BadRequest(str(e)) from e
        operations.editing = bool(event.get('editing', isinstance(event_data, Event)))
        return operations.save_event(event_data)

    if action == 'delete':
        event_id = event.get('id')
        if not event_id:
            raise BadRequest("Missing field: id")
        return operations.delete_event(str(event_id))

    raise BadRequest(f"Unknown action: {action}")


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler function for calendar event synchronization.

    Args:
        event: Invocation payload with an action (list, save or delete)
        context: Lambda context object

    Returns:
        Response dict with statusCode and the refreshed event list
    """
    config = load_config()

    setup_logging(config.log_level)
    logger = logging.getLogger(__name__)

    start_time = time.time()
    action = (event or {}).get('action', 'list')
    logger.info(
        f"Lambda execution started",
        extra={
            'action': action,
            'store_backend': config.backend
        }
    )

    try:
        store = build_store(config)
        notifier = CollectingNotifier()
        operations = EventOperations(store, notifier=notifier)
        loaded = operations.init()

        try:
            succeeded = _run_action(operations, event or {}, loaded)
        except BadRequest as e:
            logger.warning(f"Rejected invocation: {e}")
            duration = time.time() - start_time
            return {
                'statusCode': 400,
                'body': json.dumps({
                    'message': 'Invalid request',
                    'error': str(e),
                    'duration_seconds': round(duration, 2)
                })
            }

        duration = time.time() - start_time
        logger.info(
            f"Lambda execution completed",
            extra={
                'action': action,
                'succeeded': succeeded,
                'event_count': len(operations.events),
                'duration_seconds': round(duration, 2)
            }
        )

        return {
            'statusCode': 200 if succeeded else 502,
            'body': json.dumps({
                'message': f"{action} {'completed' if succeeded else 'failed'}",
                'events': [e.to_dict() for e in operations.events],
                'notifications': [n.to_dict() for n in notifier.notifications],
                'duration_seconds': round(duration, 2)
            })
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
                'message': 'Event operation failed',
                'error': str(e),
                'error_type': type(e).__name__,
                'duration_seconds': round(duration, 2)
            })
        }

"""AWS Lambda handler for ICS Subscription Calendar Sync."""
import json
import logging
import os
import time
from typing import Dict, Any

from destination.credentials import load_credentials
from destination.google_calendar import GoogleCalendarClient
from feed.ics_feed import IcsFeedFetcher, IcsParser
from processor.errors import ConfigurationError
from processor.orchestrator import SyncOrchestrator
from processor.transforms import OverrideRegistry
from settings import load_settings


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

        destination_id = getattr(record, 'destination_id', None)
        if destination_id:
            log_data['destination_id'] = destination_id

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

    # Create new handler with JSON formatter
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    # Set log level
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler function for ICS Subscription Calendar Sync.

    Args:
        event: EventBridge event payload
        context: Lambda context object

    Returns:
        Response dict with statusCode and per-calendar statistics
    """
    # Initialize logging
    setup_logging(os.environ.get('LOG_LEVEL', 'INFO'))
    logger = logging.getLogger(__name__)

    # Log Lambda execution start
    start_time = time.time()
    logger.info("Lambda execution started")

    try:
        # Read configuration and credentials from environment variables
        settings = load_settings(os.environ)
        registry = OverrideRegistry.from_config(settings.transform_names)
        credentials = load_credentials(os.environ)
        client = GoogleCalendarClient.from_credentials(credentials)
    except ConfigurationError as e:
        logger.error(
            f"Invalid configuration: {str(e)}",
            extra={'error_type': type(e).__name__},
            exc_info=True
        )
        duration = time.time() - start_time
        return {
            'statusCode': 500,
            'body': json.dumps({
                'message': 'Invalid configuration',
                'error': str(e),
                'error_type': type(e).__name__,
                'duration_seconds': round(duration, 2)
            })
        }

    logger.info(f"Syncing {len(settings.destinations)} subscriptions")
    # Instantiate components
    orchestrator = SyncOrchestrator(
        fetcher=IcsFeedFetcher(
            timeout=settings.timeout_seconds,
            max_retries=settings.max_retries
        ),
        parser=IcsParser(),
        client=client,
        registry=registry
    )
    run_result = orchestrator.run(settings.destinations)

    # Calculate execution duration
    duration = time.time() - start_time
    logger.info(
        "Lambda execution completed",
        extra={
            'duration_seconds': round(duration, 2),
            'calendars_synced': len(run_result.succeeded),
            'calendars_failed': len(run_result.failed)
        }
    )

    message = 'Sync completed successfully'
    if run_result.failed:
        message = 'Sync completed with errors'

    # Return summary response
    return {
        'statusCode': 200,
        'body': json.dumps({
            'message': message,
            'calendars': {
                calendar_id: result.to_dict()
                for calendar_id, result in run_result.results
            },
            'failed': run_result.failed,
            'duration_seconds': round(duration, 2)
        })
    }


if __name__ == '__main__':
    response = lambda_handler({}, None)
    print(json.dumps(json.loads(response['body']), indent=2))

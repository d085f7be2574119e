"""AWS Lambda handler and CLI for On This Day event generation."""
import argparse
import json
import logging
import os
import sys
import time
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pipeline.config import PipelineConfig
from pipeline.coordinator import PipelineCoordinator
from processor.errors import ConfigurationError
from processor.models import RunResult

# Attributes every LogRecord has; anything else came in through `extra`
_RESERVED_LOG_ATTRS = set(vars(logging.LogRecord('', 0, '', 0, '', None, None))) | {'message'}


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

        for name, value in vars(record).items():
            if name not in _RESERVED_LOG_ATTRS and name not in log_data:
                log_data[name] = value

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


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


def parse_day(value: str) -> date:
    """Parse a YYYY-MM-DD string into a date."""
    return datetime.strptime(value, '%Y-%m-%d').date()


def run_pipeline(day: Optional[date] = None) -> RunResult:
    """Build the pipeline from the environment and run it for a day."""
    config = PipelineConfig.from_env()
    coordinator = PipelineCoordinator(config)
    return coordinator.run(day)


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler, invoked by a daily EventBridge schedule.

    Args:
        event: EventBridge event payload; an optional "date" (YYYY-MM-DD)
            selects a day other than today
        context: Lambda context object

    Returns:
        Response dict with statusCode and summary statistics
    """
    setup_logging(os.environ.get('LOG_LEVEL', 'INFO'))
    logger = logging.getLogger(__name__)

    start_time = time.time()
    requested = (event or {}).get('date')

    try:
        day = parse_day(requested) if requested else None
    except ValueError as e:
        logger.error(f"Invalid date in event payload: {requested}")
        return _error_response('Invalid date', e, start_time, status_code=400)

    logger.info("Lambda execution started", extra={'requested_date': requested})

    try:
        result = run_pipeline(day)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}", extra={'error_type': type(e).__name__})
        return _error_response('Invalid configuration', e, start_time)
    except Exception as e:
        logger.error(
            f"Event generation failed: {e}",
            extra={'error_type': type(e).__name__},
            exc_info=True
        )
        return _error_response('Event generation failed', e, start_time)

    duration = time.time() - start_time
    logger.info(
        "Lambda execution completed successfully",
        extra={
            'day_key': result.day_key,
            'source': result.source,
            'event_counts': result.event_counts,
            'duration_seconds': round(duration, 2)
        }
    )

    return {
        'statusCode': 200,
        'body': json.dumps({
            'message': 'Events generated successfully',
            'day_key': result.day_key,
            'statistics': {
                'source': result.source,
                'event_counts': result.event_counts,
                'events_file': result.events_file,
                'duration_seconds': round(duration, 2)
            }
        }, ensure_ascii=False)
    }


def _error_response(
    message: str,
    error: Exception,
    start_time: float,
    status_code: int = 500
) -> Dict[str, Any]:
    duration = time.time() - start_time
    return {
        'statusCode': status_code,
        'body': json.dumps({
            'message': message,
            'error': str(error),
            'error_type': type(error).__name__,
            'duration_seconds': round(duration, 2)
        }, ensure_ascii=False)
    }


def main(argv: Optional[List[str]] = None) -> int:
    """Command line entry point."""
    parser = argparse.ArgumentParser(
        prog='on-this-day',
        description='Generate "on this day in history" events for one day.'
    )
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument('--today', action='store_true', help="generate today's events")
    group.add_argument('date', nargs='?', type=parse_day, help='day to generate (YYYY-MM-DD)')
    args = parser.parse_args(argv)

    setup_logging(os.environ.get('LOG_LEVEL', 'INFO'))
    logger = logging.getLogger(__name__)

    try:
        result = run_pipeline(None if args.today else args.date)
    except Exception as e:
        logger.error(f"Failed to generate events: {e}", exc_info=True)
        return 1

    logger.info(f"Events for {result.day_key} written to {result.events_file}")
    return 0


if __name__ == '__main__':
    sys.exit(main())

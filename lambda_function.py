"""AWS Lambda handler for the scheduled Luma calendar sync."""
import json
import logging
import time
from typing import Dict, Any

from log_config import setup_logging
from processor.event_normalizer import EventNormalizer
from processor.event_reconciler import EventReconciler
from processor.models import SyncResult
from scraper.luma_calendar import FetchError, LumaCalendarScraper
from storage.dynamodb_manager import DynamoDBManager
from sync_config import SyncConfig


def sync_calendar(calendar_id: str, config: SyncConfig) -> SyncResult:
    """
    Fetch a calendar page and reconcile its events with DynamoDB.

    Args:
        calendar_id: Luma calendar identifier
        config: Sync configuration

    Returns:
        SyncResult; success is False only when the calendar fetch failed
    """
    logger = logging.getLogger(__name__)

    scraper = LumaCalendarScraper(config)
    normalizer = EventNormalizer(config)
    reconciler = EventReconciler(DynamoDBManager(table_name=config.table_name), config)

    try:
        logger.info("Fetching events from calendar")
        raw_events = scraper.fetch_events(calendar_id)
    except FetchError as e:
        logger.error(
            f"Failed to fetch calendar {calendar_id}: {e}",
            extra={'status_code': e.status_code}
        )
        return SyncResult(success=False, error=str(e))

    logger.info("Normalizing events")
    normalized_events = normalizer.process_events(raw_events)

    logger.info("Reconciling events with DynamoDB")
    result = reconciler.reconcile_events(normalized_events, calendar_id)
    result.skipped = len(raw_events) - len(normalized_events)

    return result


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler function for the Luma calendar sync.

    Args:
        event: EventBridge event payload, optionally carrying calendar_id
        context: Lambda context object

    Returns:
        Response dict with statusCode and the sync result as body
    """
    config = SyncConfig.from_env()

    setup_logging(config.log_level)
    logger = logging.getLogger(__name__)

    calendar_id = (event or {}).get('calendar_id') or config.calendar_id
    if not calendar_id:
        logger.error("No calendar_id in event payload or CALENDAR_ID environment")
        return {
            'statusCode': 400,
            'body': json.dumps({'success': False, 'error': 'calendar_id is required'})
        }

    start_time = time.time()
    logger.info(
        "Lambda execution started",
        extra={'calendar_id': calendar_id, 'table_name': config.table_name}
    )

    try:
        result = sync_calendar(calendar_id, config)
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
                'success': False,
                'error': str(e),
                'error_type': type(e).__name__
            })
        }

    duration = time.time() - start_time

    if not result.success:
        return {
            'statusCode': 502,
            'body': json.dumps(result.to_dict())
        }

    logger.info(
        "Lambda execution completed successfully",
        extra={
            'duration_seconds': round(duration, 2),
            'synced': result.synced,
            'created': result.created,
            'updated': result.updated,
            'errors': result.errors,
            'skipped': result.skipped
        }
    )

    return {
        'statusCode': 200,
        'body': json.dumps(result.to_dict())
    }

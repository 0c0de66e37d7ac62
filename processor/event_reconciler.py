"""Idempotent create-or-update of normalized events against DynamoDB."""
import logging
import time
from datetime import datetime
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from processor.models import NormalizedEvent, ReconcileOutcome, SyncResult
from storage.dynamodb_manager import DynamoDBManager
from sync_config import SyncConfig

logger = logging.getLogger(__name__)

# Admin-owned attributes: read back and written again on every update.
CURATION_FIELDS = ('is_published', 'is_featured')

DATE_FORMATS = [
    '%Y-%m-%dT%H:%M:%S.%f%z',
    '%Y-%m-%dT%H:%M:%S%z',
    '%Y-%m-%dT%H:%M%z',
    '%Y-%m-%d %H:%M:%S',
    '%Y-%m-%d',
]


def parse_instant(value: Optional[str], default_timezone: str) -> int:
    """
    Parse an ISO-like date string into epoch milliseconds.

    Naive values are interpreted in default_timezone.

    Args:
        value: Date string from JSON-LD (e.g. "2025-03-01T18:00:00.000-06:00")
        default_timezone: IANA zone for values without an offset

    Returns:
        Unix timestamp in milliseconds

    Raises:
        ValueError: If the value is missing or cannot be parsed
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Missing date value: {value!r}")

    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        parsed = None
        for fmt in DATE_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
        if parsed is None:
            raise ValueError(f"Unrecognized date format: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=ZoneInfo(default_timezone))

    return int(parsed.timestamp() * 1000)


class EventReconciler:
    """Reconciles normalized events with the stored canonical events."""

    def __init__(self, storage: DynamoDBManager, config: Optional[SyncConfig] = None):
        """
        Args:
            storage: Store holding canonical events keyed by slug
            config: Defaults applied to newly created events
        """
        self.storage = storage
        self.config = config or SyncConfig()

    def reconcile_events(
        self,
        events: List[NormalizedEvent],
        calendar_id: str
    ) -> SyncResult:
        """
        Create or update every normalized event, one at a time.

        Events are handled strictly in order so a slug seen twice in one run
        updates the row written by its first occurrence.

        Args:
            events: Normalized events from the calendar page
            calendar_id: Calendar the events were fetched from

        Returns:
            SyncResult aggregated from the per-event outcomes
        """
        logger.info(f"Reconciling {len(events)} events for calendar {calendar_id}")

        outcomes = [self.reconcile_event(event, calendar_id) for event in events]
        result = SyncResult.from_outcomes(len(events), outcomes)

        logger.info(
            f"Reconcile complete: {result.created} created, {result.updated} updated, "
            f"{result.errors} failed"
        )
        return result

    def reconcile_event(self, event: NormalizedEvent, calendar_id: str) -> ReconcileOutcome:
        """
        Create or update a single event, isolating any failure.

        Args:
            event: Normalized event
            calendar_id: Source calendar identifier

        Returns:
            ReconcileOutcome with action "created", "updated" or "failed"
        """
        try:
            sync_fields = self._sync_fields(event, calendar_id)
            existing = self.storage.get_item(event.slug)

            if existing is not None:
                self.storage.replace_item(self._merge_update(existing, sync_fields))
                logger.info(f"Updated event: {event.slug} ({event.title})")
                return ReconcileOutcome(slug=event.slug, title=event.title, action='updated')

            self.storage.create_item(self._new_item(sync_fields))
            logger.info(f"Created event: {event.slug} ({event.title})")
            return ReconcileOutcome(slug=event.slug, title=event.title, action='created')

        except Exception as e:
            logger.error(
                f"Error processing event {event.slug}: {e}",
                extra={'slug': event.slug, 'error_type': type(e).__name__},
                exc_info=True
            )
            return ReconcileOutcome(
                slug=event.slug,
                title=event.title,
                action='failed',
                error=str(e)
            )

    def _sync_fields(self, event: NormalizedEvent, calendar_id: str) -> Dict[str, Any]:
        """
        Attributes owned by the sync, None meaning "clear".

        Raises:
            ValueError: If the start date cannot be parsed
        """
        tz = self.config.default_timezone

        return {
            'slug': event.slug,
            'source_url': event.url,
            'title': event.title,
            'start_date': parse_instant(event.start_date, tz),
            'end_date': parse_instant(event.end_date, tz) if event.end_date else None,
            'location': event.location,
            'coordinates': (
                {'lat': event.coordinates.lat, 'lng': event.coordinates.lng}
                if event.coordinates else None
            ),
            'cover_image': event.cover_image,
            'calendar_id': calendar_id,
            'last_synced': int(time.time())
        }

    def _merge_update(self, existing: Dict[str, Any], sync_fields: Dict[str, Any]) -> Dict[str, Any]:
        """Overlay sync fields on the stored item and re-apply curation fields."""
        item = dict(existing)

        for key, value in sync_fields.items():
            if value is None:
                item.pop(key, None)
            else:
                item[key] = value

        for key in CURATION_FIELDS:
            if key in existing:
                item[key] = existing[key]

        return item

    def _new_item(self, sync_fields: Dict[str, Any]) -> Dict[str, Any]:
        """Sync fields plus first-creation defaults."""
        item = {key: value for key, value in sync_fields.items() if value is not None}
        item.update({
            'event_type': self.config.default_event_type,
            'timezone': self.config.default_timezone,
            'hosts': [],
            'status': self.config.default_status,
            'is_published': self.config.auto_publish,
            'is_featured': False,
            'registration_count': 0,
            'registration_type': self.config.default_registration_type,
            'created_at': sync_fields['last_synced']
        })
        return item

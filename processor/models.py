"""Data models for event processing."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class Coordinates:
    """Geographic position of an event venue."""
    lat: float
    lng: float


@dataclass
class NormalizedEvent:
    """Event resolved from a JSON-LD object, ready for reconciliation."""
    slug: str
    url: str
    title: str
    start_date: Optional[str]
    end_date: Optional[str]
    location: Optional[str]
    coordinates: Optional[Coordinates]
    cover_image: Optional[str]


@dataclass
class CanonicalEvent:
    """Event as stored in DynamoDB."""
    slug: str
    source_url: str
    title: str
    start_date: int
    end_date: Optional[int]
    location: Optional[str]
    coordinates: Optional[Coordinates]
    cover_image: Optional[str]
    calendar_id: Optional[str]
    event_type: str
    timezone: str
    hosts: List[Dict[str, str]]
    status: str
    is_published: bool
    is_featured: bool
    registration_count: int
    registration_type: str
    last_synced: int


@dataclass
class ReconcileOutcome:
    """Result of reconciling one normalized event."""
    slug: str
    title: str
    action: str
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.action == 'failed'


@dataclass
class SyncResult:
    """Result of sync operation."""
    success: bool
    synced: int = 0
    created: int = 0
    updated: int = 0
    errors: int = 0
    skipped: int = 0
    message: Optional[str] = None
    error: Optional[str] = None
    events: List[ReconcileOutcome] = field(default_factory=list)

    @classmethod
    def from_outcomes(cls, synced: int, outcomes: List[ReconcileOutcome]) -> 'SyncResult':
        """
        Aggregate per-event outcomes into a run summary.

        Args:
            synced: Number of normalized events handed to the reconciler
            outcomes: One outcome per normalized event

        Returns:
            Successful SyncResult with created/updated/error counts
        """
        created = sum(1 for outcome in outcomes if outcome.action == 'created')
        updated = sum(1 for outcome in outcomes if outcome.action == 'updated')
        errors = sum(1 for outcome in outcomes if outcome.failed)

        if synced == 0:
            message = 'No events found in calendar'
        else:
            message = f"Synced {synced} events ({created} created, {updated} updated)"

        return cls(
            success=True,
            synced=synced,
            created=created,
            updated=updated,
            errors=errors,
            message=message,
            events=outcomes
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for the Lambda response body."""
        if not self.success:
            return {'success': False, 'error': self.error}

        return {
            'success': True,
            'synced': self.synced,
            'created': self.created,
            'updated': self.updated,
            'errors': self.errors,
            'skipped': self.skipped,
            'message': self.message,
            'events': [
                {'slug': outcome.slug, 'title': outcome.title, 'action': outcome.action}
                for outcome in self.events
            ]
        }


@dataclass
class EventMetadata:
    """Metadata scraped from a single event page for the admin form."""
    title: str
    description: Optional[str]
    cover_image: Optional[str]
    luma_event_id: Optional[str]
    slug: str
    event_type: str
    start_date: str
    end_date: Optional[str]
    timezone: str
    location: Optional[str]
    coordinates: Optional[Coordinates]
    hosts: List[Dict[str, str]]
    calendar: Optional[str]
    registration_type: str
    source_url: str

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the camelCase keys the admin form expects."""
        return {
            'title': self.title,
            'description': self.description,
            'coverImage': self.cover_image,
            'lumaEventId': self.luma_event_id,
            'slug': self.slug,
            'eventType': self.event_type,
            'startDate': self.start_date,
            'endDate': self.end_date,
            'timezone': self.timezone,
            'location': self.location,
            'coordinates': (
                {'lat': self.coordinates.lat, 'lng': self.coordinates.lng}
                if self.coordinates else None
            ),
            'hosts': self.hosts,
            'calendar': self.calendar,
            'registrationType': self.registration_type,
            'sourceUrl': self.source_url
        }

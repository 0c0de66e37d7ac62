"""Unit tests for EventReconciler."""
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest
from botocore.exceptions import ClientError

from processor.event_reconciler import EventReconciler, parse_instant
from processor.models import Coordinates, NormalizedEvent
from sync_config import SyncConfig


def make_event(slug='talk-1', title='Talk 1', **overrides) -> NormalizedEvent:
    fields = dict(
        slug=slug,
        url=f'https://lu.ma/{slug}',
        title=title,
        start_date='2025-03-01T18:00:00.000-06:00',
        end_date='2025-03-01T20:00:00.000-06:00',
        location='Av. Reforma 222',
        coordinates=Coordinates(lat=19.4326, lng=-99.1332),
        cover_image='https://images.lumacdn.com/cover.png'
    )
    fields.update(overrides)
    return NormalizedEvent(**fields)


@pytest.fixture
def reconciler(dynamodb_manager):
    return EventReconciler(dynamodb_manager, SyncConfig())


class TestParseInstant:
    """Test cases for date parsing."""

    def test_offset_timestamp(self):
        expected = datetime(2025, 3, 2, 0, 0, tzinfo=timezone.utc)
        assert parse_instant('2025-03-01T18:00:00.000-06:00', 'UTC') == int(expected.timestamp() * 1000)

    def test_zulu_suffix(self):
        expected = datetime(2025, 3, 1, 18, 0, tzinfo=timezone.utc)
        assert parse_instant('2025-03-01T18:00:00Z', 'America/Mexico_City') == int(expected.timestamp() * 1000)

    def test_naive_value_uses_default_timezone(self):
        # Mexico City has no DST since 2022: UTC-6 all year.
        expected = datetime(2025, 3, 2, 0, 0, tzinfo=timezone.utc)
        assert parse_instant('2025-03-01T18:00:00', 'America/Mexico_City') == int(expected.timestamp() * 1000)

    @pytest.mark.parametrize('value', [None, '', 'next friday'])
    def test_invalid_values(self, value):
        with pytest.raises(ValueError):
            parse_instant(value, 'UTC')


class TestEventReconciler:
    """Test cases for EventReconciler."""

    def test_creates_new_events_with_defaults(self, reconciler, dynamodb_manager):
        result = reconciler.reconcile_events([make_event()], 'fruteroclub')

        assert result.success is True
        assert (result.synced, result.created, result.updated, result.errors) == (1, 1, 0, 0)

        event = dynamodb_manager.get_event('talk-1')
        assert event.title == 'Talk 1'
        assert event.calendar_id == 'fruteroclub'
        assert event.is_published is True
        assert event.is_featured is False
        assert event.registration_count == 0
        assert event.registration_type == 'free'
        assert event.event_type == 'in-person'
        assert event.timezone == 'America/Mexico_City'
        assert event.hosts == []
        assert event.status == 'upcoming'
        assert event.coordinates == Coordinates(lat=19.4326, lng=-99.1332)

    def test_n_events_create_n_rows(self, reconciler, dynamodb_manager):
        events = [make_event(slug=f'talk-{i}', title=f'Talk {i}') for i in range(4)]

        result = reconciler.reconcile_events(events, 'fruteroclub')

        assert result.created == 4
        stored = dynamodb_manager.get_all_events()
        assert sorted(stored) == [f'talk-{i}' for i in range(4)]

    def test_second_run_is_idempotent(self, reconciler, dynamodb_manager):
        events = [make_event(slug=f'talk-{i}') for i in range(3)]

        reconciler.reconcile_events(events, 'fruteroclub')
        result = reconciler.reconcile_events(events, 'fruteroclub')

        assert (result.created, result.updated) == (0, 3)
        assert len(dynamodb_manager.get_all_events()) == 3

    def test_update_preserves_curation_fields(self, reconciler, dynamodb_manager, dynamodb_table):
        reconciler.reconcile_events([make_event()], 'fruteroclub')
        dynamodb_table.update_item(
            Key={'slug': 'talk-1'},
            UpdateExpression='SET is_featured = :f, is_published = :p, description = :d',
            ExpressionAttributeValues={':f': True, ':p': False, ':d': 'Written by an admin'}
        )

        result = reconciler.reconcile_events([make_event(title='Talk 1 (updated)')], 'fruteroclub')

        assert result.updated == 1
        item = dynamodb_manager.get_item('talk-1')
        assert item['title'] == 'Talk 1 (updated)'
        assert item['is_featured'] is True
        assert item['is_published'] is False
        assert item['description'] == 'Written by an admin'

    def test_update_clears_fields_the_source_dropped(self, reconciler, dynamodb_manager):
        reconciler.reconcile_events([make_event()], 'fruteroclub')

        reconciler.reconcile_events(
            [make_event(location=None, coordinates=None, end_date=None)],
            'fruteroclub'
        )

        event = dynamodb_manager.get_event('talk-1')
        assert event.location is None
        assert event.coordinates is None
        assert event.end_date is None

    def test_duplicate_slug_in_one_run_is_last_write_wins(self, reconciler, dynamodb_manager):
        events = [make_event(title='First'), make_event(title='Second')]

        result = reconciler.reconcile_events(events, 'fruteroclub')

        assert (result.created, result.updated) == (1, 1)
        assert dynamodb_manager.get_event('talk-1').title == 'Second'
        assert len(dynamodb_manager.get_all_events()) == 1

    def test_bad_start_date_is_isolated(self, reconciler, dynamodb_manager):
        events = [
            make_event(slug='good-1'),
            make_event(slug='bad', start_date='not a date'),
            make_event(slug='good-2')
        ]

        result = reconciler.reconcile_events(events, 'fruteroclub')

        assert result.success is True
        assert (result.synced, result.created, result.errors) == (3, 2, 1)
        assert dynamodb_manager.get_item('bad') is None
        failed = [outcome for outcome in result.events if outcome.failed]
        assert [outcome.slug for outcome in failed] == ['bad']

    def test_storage_error_is_isolated(self):
        storage = Mock()
        storage.get_item.side_effect = [
            None,
            ClientError({'Error': {'Code': 'ProvisionedThroughputExceededException', 'Message': 'slow down'}}, 'GetItem'),
            None
        ]
        reconciler = EventReconciler(storage, SyncConfig())

        result = reconciler.reconcile_events(
            [make_event(slug='a'), make_event(slug='b'), make_event(slug='c')],
            'fruteroclub'
        )

        assert (result.created, result.updated, result.errors) == (2, 0, 1)
        assert storage.create_item.call_count == 2

    def test_auto_publish_can_be_disabled(self, dynamodb_manager):
        reconciler = EventReconciler(dynamodb_manager, SyncConfig(auto_publish=False))

        reconciler.reconcile_events([make_event()], 'fruteroclub')

        assert dynamodb_manager.get_event('talk-1').is_published is False

    def test_empty_batch_message(self, reconciler):
        result = reconciler.reconcile_events([], 'fruteroclub')

        assert result.synced == 0
        assert result.message == 'No events found in calendar'

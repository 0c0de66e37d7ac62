"""DynamoDB manager for canonical event storage."""
import logging
from decimal import Decimal
from typing import Any, Dict, Optional

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

from processor.models import CanonicalEvent, Coordinates

logger = logging.getLogger(__name__)


def to_dynamodb_value(value: Any) -> Any:
    """Convert floats (including nested ones) to Decimal for boto3."""
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_dynamodb_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_dynamodb_value(v) for v in value]
    return value


class DynamoDBManager:
    """Manager for DynamoDB operations on the events table."""

    def __init__(self, table_name: str, region_name: Optional[str] = None):
        """
        Initialize DynamoDB resource and table reference.

        Args:
            table_name: Name of the DynamoDB table (partition key: slug)
            region_name: AWS region, defaults to the boto3 environment
        """
        self.table_name = table_name
        self.dynamodb = boto3.resource('dynamodb', region_name=region_name)
        self.table = self.dynamodb.Table(table_name)
        logger.info(f"Initialized DynamoDBManager for table: {table_name}")

    def get_item(self, slug: str) -> Optional[Dict[str, Any]]:
        """
        Fetch the stored item for a slug.

        Args:
            slug: Event slug

        Returns:
            Raw DynamoDB item or None if no event has this slug
        """
        response = self.table.get_item(Key={'slug': slug}, ConsistentRead=True)
        return response.get('Item')

    def get_event(self, slug: str) -> Optional[CanonicalEvent]:
        """Fetch a stored event by slug as a CanonicalEvent."""
        item = self.get_item(slug)
        if item is None:
            return None
        return self._item_to_canonical_event(item)

    def get_all_events(self) -> Dict[str, CanonicalEvent]:
        """
        Retrieve all events from DynamoDB using Scan operation.

        Returns:
            Dictionary mapping slug to CanonicalEvent objects
        """
        logger.info("Scanning DynamoDB table for all events")
        events = {}

        try:
            response = self.table.scan()
            items = response.get('Items', [])

            while 'LastEvaluatedKey' in response:
                response = self.table.scan(
                    ExclusiveStartKey=response['LastEvaluatedKey']
                )
                items.extend(response.get('Items', []))

            for item in items:
                event = self._item_to_canonical_event(item)
                if event:
                    events[event.slug] = event

            logger.info(f"Retrieved {len(events)} events from DynamoDB")
            return events

        except ClientError as e:
            logger.error(f"Error scanning DynamoDB table: {e}")
            raise

    def create_item(self, item: Dict[str, Any]) -> None:
        """
        Insert a new event item.

        Raises:
            ClientError: ConditionalCheckFailedException if the slug already exists
        """
        self.table.put_item(
            Item=to_dynamodb_value(item),
            ConditionExpression=Attr('slug').not_exists()
        )

    def replace_item(self, item: Dict[str, Any]) -> None:
        """Overwrite an existing event item."""
        self.table.put_item(
            Item=to_dynamodb_value(item),
            ConditionExpression=Attr('slug').exists()
        )

    def _item_to_canonical_event(self, item: dict) -> Optional[CanonicalEvent]:
        """
        Convert DynamoDB item to CanonicalEvent object.

        Args:
            item: DynamoDB item dictionary

        Returns:
            CanonicalEvent object or None if conversion fails
        """
        try:
            coordinates = None
            if item.get('coordinates'):
                coordinates = Coordinates(
                    lat=float(item['coordinates']['lat']),
                    lng=float(item['coordinates']['lng'])
                )

            end_date = item.get('end_date')

            return CanonicalEvent(
                slug=item['slug'],
                source_url=item['source_url'],
                title=item['title'],
                start_date=int(item['start_date']),
                end_date=int(end_date) if end_date is not None else None,
                location=item.get('location'),
                coordinates=coordinates,
                cover_image=item.get('cover_image'),
                calendar_id=item.get('calendar_id'),
                event_type=item['event_type'],
                timezone=item['timezone'],
                hosts=list(item.get('hosts', [])),
                status=item['status'],
                is_published=bool(item['is_published']),
                is_featured=bool(item['is_featured']),
                registration_count=int(item.get('registration_count', 0)),
                registration_type=item.get('registration_type', 'free'),
                last_synced=int(item.get('last_synced', 0))
            )
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"Failed to convert item to CanonicalEvent: {e}")
            return None

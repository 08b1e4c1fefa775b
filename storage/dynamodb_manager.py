"""DynamoDB-backed event store."""
import logging
import uuid
from typing import List, Optional

import boto3
from botocore.exceptions import ClientError

from processor.models import AnyEvent, Event, RepeatInfo, StoreResult

logger = logging.getLogger(__name__)


class DynamoDBEventStore:
    """Event store operations against a DynamoDB table keyed by event_id."""

    BATCH_SIZE = 25  # DynamoDB batch operation limit

    def __init__(self, table_name: str, dynamodb=None):
        """
        Initialize DynamoDB client and table reference.

        Args:
            table_name: Name of the DynamoDB table
            dynamodb: Optional boto3 DynamoDB resource
        """
        self.table_name = table_name
        self.dynamodb = dynamodb or boto3.resource('dynamodb')
        self.table = self.dynamodb.Table(table_name)
        logger.info(f"Initialized DynamoDBEventStore for table: {table_name}")

    def list_events(self) -> StoreResult:
        """
        Retrieve all events using a paginated Scan.

        Returns:
            StoreResult whose data is the events ordered by date, start time and id
        """
        try:
            response = self.table.scan()
            items = response.get('Items', [])

            while 'LastEvaluatedKey' in response:
                response = self.table.scan(
                    ExclusiveStartKey=response['LastEvaluatedKey']
                )
                items.extend(response.get('Items', []))
        except ClientError as e:
            logger.error(f"Error scanning DynamoDB table: {e}")
            return StoreResult.failure(str(e))

        events = []
        for item in items:
            event = self._item_to_event(item)
            if event:
                events.append(event)
        events.sort(key=lambda e: (e.date, e.start_time, e.id))

        logger.info(f"Retrieved {len(events)} events from DynamoDB")
        return StoreResult.success(events)

    def create(self, event: AnyEvent) -> StoreResult:
        """Store a new event under a freshly generated id."""
        created = self._with_new_id(event)
        try:
            self.table.put_item(Item=self._event_to_item(created))
        except ClientError as e:
            logger.error(f"Error creating event '{event.title}': {e}")
            return StoreResult.failure(str(e))
        return StoreResult.success(created)

    def create_many(self, events: List[AnyEvent]) -> StoreResult:
        """
        Write new events in batches of 25 items.

        A failing batch fails the whole call; batches already written are
        not rolled back.

        Args:
            events: Events to create

        Returns:
            StoreResult whose data is the created events with their ids
        """
        created = [self._with_new_id(event) for event in events]

        for i in range(0, len(created), self.BATCH_SIZE):
            batch = created[i:i + self.BATCH_SIZE]
            try:
                with self.table.batch_writer() as writer:
                    for event in batch:
                        writer.put_item(Item=self._event_to_item(event))
            except ClientError as e:
                logger.error(
                    f"Error writing batch {i // self.BATCH_SIZE + 1}: {e}"
                )
                return StoreResult.failure(str(e))

        logger.info(f"Successfully wrote {len(created)} events")
        return StoreResult.success(created)

    def update(self, event_id: str, event: AnyEvent) -> StoreResult:
        """Replace an existing event; a missing id is a failure."""
        updated = self._with_id(event, event_id)
        try:
            self.table.put_item(
                Item=self._event_to_item(updated),
                ConditionExpression='attribute_exists(event_id)'
            )
        except ClientError as e:
            logger.error(f"Error updating event {event_id}: {e}")
            return StoreResult.failure(str(e))
        return StoreResult.success(updated)

    def delete(self, event_id: str) -> StoreResult:
        try:
            self.table.delete_item(
                Key={'event_id': event_id},
                ConditionExpression='attribute_exists(event_id)'
            )
        except ClientError as e:
            logger.error(f"Error deleting event {event_id}: {e}")
            return StoreResult.failure(str(e))
        return StoreResult.success(None)

    def _with_new_id(self, event: AnyEvent) -> Event:
        return self._with_id(event, str(uuid.uuid4()))

    def _with_id(self, event: AnyEvent, event_id: str) -> Event:
        return Event(
            id=event_id,
            title=event.title,
            date=event.date,
            start_time=event.start_time,
            end_time=event.end_time,
            description=event.description,
            location=event.location,
            category=event.category,
            repeat=event.repeat,
            notification_time=event.notification_time
        )

    def _item_to_event(self, item: dict) -> Optional[Event]:
        """
        Convert DynamoDB item to Event object.

        Args:
            item: DynamoDB item dictionary

        Returns:
            Event object or None if conversion fails
        """
        try:
            repeat = None
            if item.get('repeat_type', 'none') != 'none':
                repeat = RepeatInfo(
                    type=item['repeat_type'],
                    interval=int(item.get('repeat_interval', 1)),
                    end_date=item.get('repeat_end_date'),
                    count=int(item['repeat_count']) if 'repeat_count' in item else None,
                    id=item.get('repeat_id')
                )
            return Event(
                id=item['event_id'],
                title=item['title'],
                date=item['event_date'],
                start_time=item.get('start_time', ''),
                end_time=item.get('end_time', ''),
                description=item.get('description', ''),
                location=item.get('location', ''),
                category=item.get('category', ''),
                repeat=repeat,
                notification_time=int(item.get('notification_time', 10))
            )
        except (KeyError, ValueError) as e:
            logger.warning(f"Failed to convert item to Event: {e}")
            return None

    def _event_to_item(self, event: Event) -> dict:
        item = {
            'event_id': event.id,
            'title': event.title,
            'event_date': event.date,
            'start_time': event.start_time,
            'end_time': event.end_time,
            'description': event.description,
            'location': event.location,
            'category': event.category,
            'notification_time': event.notification_time,
            'repeat_type': 'none'
        }

        # Add optional recurrence fields if present
        repeat = event.repeat
        if repeat is not None and repeat.type != 'none':
            item['repeat_type'] = repeat.type
            item['repeat_interval'] = repeat.interval
            if repeat.end_date:
                item['repeat_end_date'] = repeat.end_date
            if repeat.count is not None:
                item['repeat_count'] = repeat.count
            if repeat.id:
                item['repeat_id'] = repeat.id

        return item

"""Data models for calendar events and store results."""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union


REPEAT_TYPES = ('none', 'daily', 'weekly', 'monthly', 'yearly')

SEVERITY_ERROR = 'error'
SEVERITY_SUCCESS = 'success'
SEVERITY_INFO = 'info'


def _to_int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid {name}: {value!r}") from e


@dataclass
class RepeatInfo:
    """Recurrence descriptor attached to an event."""
    type: str = 'none'
    interval: int = 1
    end_date: Optional[str] = None
    count: Optional[int] = None
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {'type': self.type, 'interval': self.interval}
        if self.end_date:
            data['endDate'] = self.end_date
        if self.count is not None:
            data['count'] = self.count
        if self.id:
            data['id'] = self.id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RepeatInfo':
        repeat_type = data.get('type') or 'none'
        if repeat_type not in REPEAT_TYPES:
            raise ValueError(f"Unknown repeat type: {repeat_type}")
        count = data.get('count')
        if count is not None:
            count = _to_int(count, 'repeat.count')
            if count < 1:
                raise ValueError(f"Repeat count must be at least 1, got {count}")
        return cls(
            type=repeat_type,
            interval=_to_int(data.get('interval') or 1, 'repeat.interval'),
            end_date=data.get('endDate') or None,
            count=count,
            id=data.get('id') or None
        )


@dataclass
class EventForm:
    """Event description without a store-assigned identifier."""
    title: str
    date: str
    start_time: str = ''
    end_time: str = ''
    description: str = ''
    location: str = ''
    category: str = ''
    repeat: Optional[RepeatInfo] = None
    notification_time: int = 10

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to the JSON wire shape used by the event store API.

        Returns:
            Dictionary with camelCase keys
        """
        data = {
            'title': self.title,
            'date': self.date,
            'startTime': self.start_time,
            'endTime': self.end_time,
            'description': self.description,
            'location': self.location,
            'category': self.category,
            'repeat': (self.repeat or RepeatInfo()).to_dict(),
            'notificationTime': self.notification_time
        }
        return data


@dataclass
class Event(EventForm):
    """Persisted event; the id is assigned by the event store."""
    id: str = ''

    def to_dict(self) -> Dict[str, Any]:
        data = {'id': self.id}
        data.update(super().to_dict())
        return data


AnyEvent = Union[Event, EventForm]


def event_from_dict(data: Dict[str, Any]) -> AnyEvent:
    """
    Build an Event or EventForm from a wire payload.

    A payload carrying a non-empty ``id`` yields an Event, anything else an
    EventForm. Unknown keys are ignored.

    Args:
        data: Decoded JSON object

    Returns:
        Event or EventForm

    Raises:
        ValueError: If title or date is missing or the repeat block is invalid
    """
    if not isinstance(data, dict):
        raise ValueError(f"Event payload must be an object, got {type(data).__name__}")

    title = data.get('title')
    date = data.get('date')
    if not title or not date:
        raise ValueError("Event payload missing required field: title or date")

    repeat_data = data.get('repeat')
    if repeat_data and not isinstance(repeat_data, dict):
        raise ValueError(f"Event repeat must be an object, got {type(repeat_data).__name__}")
    repeat = RepeatInfo.from_dict(repeat_data) if repeat_data else None

    fields = dict(
        title=title,
        date=date,
        start_time=data.get('startTime') or '',
        end_time=data.get('endTime') or '',
        description=data.get('description') or '',
        location=data.get('location') or '',
        category=data.get('category') or '',
        repeat=repeat,
        notification_time=_to_int(data.get('notificationTime', 10), 'notificationTime')
    )

    event_id = data.get('id')
    if event_id:
        return Event(id=str(event_id), **fields)
    return EventForm(**fields)


def events_from_list(items: List[Dict[str, Any]]) -> List[Event]:
    """Decode a list of stored events; every item must carry an id."""
    events = []
    for item in items:
        event = event_from_dict(item)
        if not isinstance(event, Event):
            raise ValueError("Stored event is missing its id")
        events.append(event)
    return events


@dataclass
class StoreResult:
    """Outcome of a single event store call."""
    ok: bool
    data: Any = None
    error: Optional[str] = None

    @classmethod
    def success(cls, data: Any = None) -> 'StoreResult':
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, error: str) -> 'StoreResult':
        return cls(ok=False, error=error)


@dataclass
class Notification:
    """User-facing outcome reported by the controller."""
    message: str
    severity: str
    duration_ms: int = 3000
    is_closable: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'message': self.message,
            'severity': self.severity,
            'duration_ms': self.duration_ms,
            'is_closable': self.is_closable
        }

"""Recurrence classification and expansion for calendar events."""
import dataclasses
import logging
import uuid
from datetime import datetime, timedelta
from typing import List

from dateutil.rrule import DAILY, MONTHLY, WEEKLY, YEARLY, rrule

from processor.models import AnyEvent, EventForm

logger = logging.getLogger(__name__)

DATE_FORMAT = '%Y-%m-%d'

# Series without an end date or count stop after this many days
DEFAULT_HORIZON_DAYS = 365

FREQUENCIES = {
    'daily': DAILY,
    'weekly': WEEKLY,
    'monthly': MONTHLY,
    'yearly': YEARLY,
}


def is_repeating_event(event: AnyEvent) -> bool:
    """
    Return True if the event belongs to a recurring series.

    Args:
        event: Event or EventForm

    Returns:
        True when a repeat descriptor is present and its type is not 'none'
    """
    repeat = event.repeat
    return repeat is not None and repeat.type != 'none'


def generate_repeat_events(event: AnyEvent) -> List[EventForm]:
    """
    Expand a template event into the concrete occurrences of its series.

    Monthly series anchored on a day some months lack (29-31) skip those
    months, and yearly series on Feb 29 only fall on leap years.

    Args:
        event: Template event; any id it carries is dropped

    Returns:
        Occurrences in date order, all sharing one series id

    Raises:
        ValueError: If the date or the repeat descriptor is invalid
    """
    template = _as_form(event)
    if not is_repeating_event(template):
        return [template]

    repeat = template.repeat
    if repeat.interval < 1:
        raise ValueError(f"Repeat interval must be at least 1, got {repeat.interval}")

    start = _parse_date(template.date)
    series_id = repeat.id or uuid.uuid4().hex
    rule_kwargs = {
        'dtstart': start,
        'interval': repeat.interval,
    }
    if repeat.count is not None:
        if repeat.count < 1:
            raise ValueError(f"Repeat count must be at least 1, got {repeat.count}")
        rule_kwargs['count'] = repeat.count
    elif repeat.end_date:
        rule_kwargs['until'] = _parse_date(repeat.end_date)
    else:
        rule_kwargs['until'] = start + timedelta(days=DEFAULT_HORIZON_DAYS)

    occurrences = []
    for occurrence_date in rrule(FREQUENCIES[repeat.type], **rule_kwargs):
        occurrences.append(dataclasses.replace(
            template,
            date=occurrence_date.strftime(DATE_FORMAT),
            repeat=dataclasses.replace(repeat, id=series_id)
        ))

    if not occurrences:
        raise ValueError(
            f"Series for '{template.title}' has no occurrences "
            f"(starts {template.date}, ends {repeat.end_date})"
        )

    logger.debug(
        f"Expanded '{template.title}' into {len(occurrences)} "
        f"{repeat.type} occurrences"
    )
    return occurrences


def _as_form(event: AnyEvent) -> EventForm:
    """Copy an event into an EventForm, dropping the id."""
    repeat = event.repeat
    return EventForm(
        title=event.title,
        date=event.date,
        start_time=event.start_time,
        end_time=event.end_time,
        description=event.description,
        location=event.location,
        category=event.category,
        repeat=dataclasses.replace(repeat) if repeat is not None else None,
        notification_time=event.notification_time
    )


def _parse_date(date_str: str) -> datetime:
    try:
        return datetime.strptime(date_str.strip(), DATE_FORMAT)
    except (AttributeError, ValueError) as e:
        raise ValueError(f"Invalid event date: {date_str!r}") from e

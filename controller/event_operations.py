"""Synchronization controller for the client-side event list."""
import logging
from typing import Callable, List, Optional

from controller.notifier import LoggingNotifier, Notifier
from processor.models import (
    SEVERITY_ERROR,
    SEVERITY_INFO,
    SEVERITY_SUCCESS,
    AnyEvent,
    Event,
    Notification,
    StoreResult,
)
from processor.recurrence import generate_repeat_events, is_repeating_event

logger = logging.getLogger(__name__)

NOTIFICATION_DURATION_MS = 3000
READY_DURATION_MS = 1000

MSG_LOAD_FAILED = 'Failed to load events'
MSG_READY = 'Events loaded!'
MSG_CREATED = 'Event added.'
MSG_UPDATED = 'Event updated.'
MSG_SAVE_FAILED = 'Failed to save event'
MSG_DELETED = 'Event deleted.'
MSG_DELETE_FAILED = 'Failed to delete event'


class EventSyncError(Exception):
    """Base exception for event synchronization errors."""
    pass


class MissingBaselineError(EventSyncError):
    """The event being edited is not in the local list."""
    pass


class RecurrenceChangeError(EventSyncError):
    """A write that changes an event's recurrence state failed."""
    pass


class EventOperations:
    """
    Keeps a local event list consistent with a remote event store.

    Every successful write is followed by a full reload; the list is never
    patched locally. The store must provide list_events, create, create_many,
    update and delete, each returning a StoreResult.
    """

    def __init__(
        self,
        store,
        notifier: Optional[Notifier] = None,
        editing: bool = False,
        on_save: Optional[Callable[[], None]] = None
    ):
        """
        Initialize the controller without touching the store.

        Args:
            store: Event store client (HttpEventStore or DynamoDBEventStore)
            notifier: Receives one notification per outcome (default: LoggingNotifier)
            editing: Whether the next save targets an existing event
            on_save: Called once after each successful save, after the reload
        """
        self.store = store
        self.notifier = notifier or LoggingNotifier()
        self.editing = editing
        self.on_save = on_save
        self.events: List[Event] = []

    def init(self) -> bool:
        """
        Run the startup load, then show the ready notice.

        The notice is shown whether or not the load succeeded.

        Returns:
            True if the startup load succeeded
        """
        loaded = self.fetch_events()
        self._notify(MSG_READY, SEVERITY_INFO, READY_DURATION_MS, is_closable=False)
        return loaded

    def fetch_events(self) -> bool:
        """
        Replace the local list with the store's current contents.

        On failure the local list is left as it was.

        Returns:
            True if the list was refreshed
        """
        try:
            result = self.store.list_events()
        except Exception as e:
            logger.error(f"Error fetching events: {e}", exc_info=True)
            self._notify(MSG_LOAD_FAILED, SEVERITY_ERROR)
            return False

        if not result.ok:
            logger.error(f"Error fetching events: {result.error}")
            self._notify(MSG_LOAD_FAILED, SEVERITY_ERROR)
            return False

        self.events = list(result.data or [])
        logger.info(f"Loaded {len(self.events)} events")
        return True

    def save_event(self, event_data: AnyEvent) -> bool:
        """
        Create or update an event, choosing the write from its recurrence state.

        In editing mode the stored copy is looked up in the local list by id.
        If the recurrence classification changed, the recurrence-change write
        runs; otherwise the event is updated in place. Outside editing mode a
        recurring event is expanded and batch-created, anything else is
        created directly.

        Args:
            event_data: Event (editing) or EventForm (creation)

        Returns:
            True if the save succeeded
        """
        try:
            if self.editing:
                existing = self._find_existing(event_data)
                if is_repeating_event(event_data) != is_repeating_event(existing):
                    response = self._update_event_with_repeat_change(event_data)
                else:
                    response = self.store.update(existing.id, event_data)
            elif is_repeating_event(event_data):
                response = self.store.create_many(generate_repeat_events(event_data))
            else:
                response = self.store.create(event_data)

            if response is None or not response.ok:
                reason = response.error if response is not None else 'no response'
                raise EventSyncError(f"Failed to save event: {reason}")
        except Exception as e:
            logger.error(f"Error saving event: {e}", exc_info=True)
            self._notify(MSG_SAVE_FAILED, SEVERITY_ERROR)
            return False

        self.fetch_events()
        if self.on_save:
            self.on_save()
        self._notify(MSG_UPDATED if self.editing else MSG_CREATED, SEVERITY_SUCCESS)
        return True

    def delete_event(self, event_id: str) -> bool:
        """
        Delete one event by id and reload.

        Other members of the same series are not touched.

        Returns:
            True if the delete succeeded
        """
        try:
            response = self.store.delete(event_id)
            if not response.ok:
                raise EventSyncError(f"Failed to delete event: {response.error}")
        except Exception as e:
            logger.error(f"Error deleting event {event_id}: {e}", exc_info=True)
            self._notify(MSG_DELETE_FAILED, SEVERITY_ERROR)
            return False

        self.fetch_events()
        self._notify(MSG_DELETED, SEVERITY_INFO)
        return True

    def _find_existing(self, event_data: AnyEvent) -> Event:
        # The local copy is not re-validated against the store.
        event_id = getattr(event_data, 'id', None)
        for event in self.events:
            if event_id and event.id == event_id:
                return event
        raise MissingBaselineError(f"No event to edit with id {event_id!r}")

    def _update_event_with_repeat_change(self, event_data: Event) -> StoreResult:
        """
        Write an event whose recurrence state changed.

        Standalone to recurring batch-creates the expanded series. Recurring
        to standalone updates the single event by id.

        Raises:
            RecurrenceChangeError: If the write fails
        """
        if is_repeating_event(event_data):
            response = self.store.create_many(generate_repeat_events(event_data))
        else:
            response = self.store.update(event_data.id, event_data)

        if not response.ok:
            raise RecurrenceChangeError(
                f"Failed to change recurrence of event {event_data.id}: {response.error}"
            )
        return response

    def _notify(
        self,
        message: str,
        severity: str,
        duration_ms: int = NOTIFICATION_DURATION_MS,
        is_closable: bool = True
    ) -> None:
        self.notifier.notify(Notification(
            message=message,
            severity=severity,
            duration_ms=duration_ms,
            is_closable=is_closable
        ))

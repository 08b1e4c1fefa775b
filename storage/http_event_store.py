"""HTTP client for the remote event store API."""
import logging
from typing import List, Optional

import requests

from processor.models import AnyEvent, Event, StoreResult, event_from_dict, events_from_list

logger = logging.getLogger(__name__)


class HttpEventStore:
    """Client for the event store REST endpoints."""

    EVENTS_PATH = '/api/events'
    EVENTS_LIST_PATH = '/api/events-list'

    def __init__(
        self,
        base_url: str,
        timeout: int = 30,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the event store client.

        Args:
            base_url: Root URL of the event store (e.g. http://localhost:3000)
            timeout: HTTP request timeout in seconds (default: 30)
            session: Optional requests session to reuse connections
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    def list_events(self) -> StoreResult:
        """
        Fetch every stored event.

        Returns:
            StoreResult whose data is the list of Event objects
        """
        response = self._request('GET', self.EVENTS_PATH)
        if not response.ok:
            return response
        try:
            events = events_from_list(response.data.get('events', []))
        except (AttributeError, TypeError, ValueError) as e:
            return StoreResult.failure(f"Malformed event list: {e}")
        logger.info(f"Loaded {len(events)} events from {self.base_url}")
        return StoreResult.success(events)

    def create(self, event: AnyEvent) -> StoreResult:
        """Create one event; the store assigns its id."""
        payload = event.to_dict()
        payload.pop('id', None)
        response = self._request('POST', self.EVENTS_PATH, json=payload)
        return self._decode_event(response)

    def create_many(self, events: List[AnyEvent]) -> StoreResult:
        """
        Create a batch of events in a single call.

        Args:
            events: Occurrences to create, typically an expanded series

        Returns:
            StoreResult whose data is the list of created Event objects
        """
        payload = []
        for event in events:
            item = event.to_dict()
            item.pop('id', None)
            payload.append(item)

        response = self._request('POST', self.EVENTS_LIST_PATH, json={'events': payload})
        if not response.ok:
            return response
        try:
            created = events_from_list((response.data or {}).get('events', []))
        except (AttributeError, TypeError, ValueError) as e:
            return StoreResult.failure(f"Malformed batch response: {e}")
        logger.info(f"Created {len(created)} events in one batch")
        return StoreResult.success(created)

    def update(self, event_id: str, event: AnyEvent) -> StoreResult:
        """Replace the stored event addressed by event_id with the full payload."""
        payload = event.to_dict()
        payload['id'] = event_id
        response = self._request('PUT', f"{self.EVENTS_PATH}/{event_id}", json=payload)
        return self._decode_event(response)

    def delete(self, event_id: str) -> StoreResult:
        response = self._request('DELETE', f"{self.EVENTS_PATH}/{event_id}", expect_body=False)
        if response.ok:
            return StoreResult.success(None)
        return response

    def _request(self, method: str, path: str, json=None, expect_body: bool = True) -> StoreResult:
        """
        Issue one request; failures come back as a failed StoreResult.

        Any non-2xx status is a failure regardless of its code. There is no
        retry at this layer.
        """
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, json=json, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"{method} {url} failed: {e}")
            return StoreResult.failure(str(e))

        if not expect_body or not response.content:
            return StoreResult.success(None)
        try:
            return StoreResult.success(response.json())
        except ValueError as e:
            logger.error(f"{method} {url} returned invalid JSON: {e}")
            return StoreResult.failure(f"Invalid JSON response: {e}")

    def _decode_event(self, response: StoreResult) -> StoreResult:
        if not response.ok:
            return response
        try:
            event = event_from_dict(response.data)
        except ValueError as e:
            return StoreResult.failure(f"Malformed event response: {e}")
        if not isinstance(event, Event):
            return StoreResult.failure("Event response is missing its id")
        return StoreResult.success(event)

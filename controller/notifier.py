"""Notifiers that report controller outcomes to the user."""
import logging
from typing import List

from processor.models import SEVERITY_ERROR, SEVERITY_INFO, SEVERITY_SUCCESS, Notification

logger = logging.getLogger(__name__)

LEVELS = {
    SEVERITY_ERROR: logging.ERROR,
    SEVERITY_SUCCESS: logging.INFO,
    SEVERITY_INFO: logging.INFO,
}


class Notifier:
    """Base notifier; subclasses override notify()."""

    def notify(self, notification: Notification) -> None:
        raise NotImplementedError


class LoggingNotifier(Notifier):
    """Writes each notification to the log at a level matching its severity."""

    def notify(self, notification: Notification) -> None:
        logger.log(
            LEVELS.get(notification.severity, logging.INFO),
            notification.message,
            extra={
                'severity': notification.severity,
                'duration_ms': notification.duration_ms,
                'is_closable': notification.is_closable
            }
        )


class CollectingNotifier(LoggingNotifier):
    """Logs notifications and keeps them for the caller to inspect."""

    def __init__(self):
        self.notifications: List[Notification] = []

    def notify(self, notification: Notification) -> None:
        super().notify(notification)
        self.notifications.append(notification)

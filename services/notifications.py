"""
Single-slot, self-expiring shopper notifications.

Only one message is visible at a time. Showing a new message cancels the
previous clearance timer, and every timer carries the token of the message
that scheduled it, so a stale timer that already fired cannot clear a newer
message.
"""
import itertools
import logging
import threading
import time

from constants import NOTIFICATION_TTL_SECONDS
from models import Notification

logger = logging.getLogger(__name__)


class NotificationSlot:
    def __init__(self, ttl=NOTIFICATION_TTL_SECONDS, clock=time.time, timer_factory=threading.Timer):
        self.ttl = ttl
        self._clock = clock
        self._timer_factory = timer_factory
        self._lock = threading.RLock()
        self._tokens = itertools.count(1)
        self._current = None
        self._timer = None
        self._disposed = False

    @property
    def current(self):
        """Active notification, or None once cleared or past its expiry."""
        with self._lock:
            if self._current and self._clock() >= self._current.expires_at:
                return None
            return self._current

    def show(self, message):
        with self._lock:
            if self._disposed:
                logger.debug(f"[Notifications] Ignoring '{message}' on disposed slot")
                return None

            self._cancel_timer()
            notification = Notification(
                message=message,
                expires_at=self._clock() + self.ttl,
                token=next(self._tokens),
            )
            self._current = notification

            timer = self._timer_factory(self.ttl, self._expire, args=(notification.token,))
            timer.daemon = True
            self._timer = timer
            timer.start()

        return notification

    def _expire(self, token):
        with self._lock:
            if self._current is None or self._current.token != token:
                return
            self._current = None
            self._timer = None

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def dispose(self):
        """Cancel the pending clearance; the slot accepts no further messages."""
        with self._lock:
            self._cancel_timer()
            self._disposed = True

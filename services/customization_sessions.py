"""
Per-shopper customization sessions.

Each browser session gets its own CustomizationController, keyed by the id
stored in the Flask session cookie. Idle sessions are closed (timers and the
transcode worker stopped) the next time the registry is touched.
"""
import logging
import threading
import time

from config import CUSTOMIZATION_SESSION_TTL_SECONDS
from services.customization import CustomizationController

logger = logging.getLogger(__name__)


class CustomizationSessionRegistry:
    def __init__(self, ledger, ttl_seconds=CUSTOMIZATION_SESSION_TTL_SECONDS, clock=time.time, controller_factory=CustomizationController):
        self._ledger = ledger
        self._ttl = ttl_seconds
        self._clock = clock
        self._factory = controller_factory
        self._lock = threading.Lock()
        self._sessions = {}
        self._owners = {}

    def __len__(self):
        with self._lock:
            return len(self._sessions)

    def get(self, session_id):
        with self._lock:
            return self._sessions.get(session_id)

    def get_or_create(self, session_id, user_id=None):
        self.prune_idle()
        with self._lock:
            controller = self._sessions.get(session_id)
            if controller is not None and self._owners.get(session_id) != user_id:
                logger.warning(f"[Sessions] Session {session_id[:8]} changed owner; starting over")
                controller.close()
                self._ledger.forget(session_id)
                controller = None
            if controller is None or controller.closed:
                controller = self._factory(
                    session_id=session_id,
                    on_continue=self._ledger.receiver(session_id, user_id),
                    clock=self._clock,
                )
                self._sessions[session_id] = controller
                self._owners[session_id] = user_id
                logger.info(f"[Sessions] Opened customization session {session_id[:8]}")
            controller.touch()
            return controller

    def discard(self, session_id):
        with self._lock:
            controller = self._sessions.pop(session_id, None)
            self._owners.pop(session_id, None)
        if controller:
            controller.close()
        self._ledger.forget(session_id)
        return controller is not None

    def prune_idle(self):
        cutoff = self._clock() - self._ttl
        with self._lock:
            stale = [sid for sid, c in self._sessions.items() if c.last_active_at < cutoff]
            expired = [self._sessions.pop(sid) for sid in stale]
            for sid in stale:
                self._owners.pop(sid, None)
        for controller in expired:
            logger.info(f"[Sessions] Closing idle session {controller.session_id[:8]}")
            controller.close()
        return len(expired)

    def close_all(self):
        with self._lock:
            controllers = list(self._sessions.values())
            self._sessions.clear()
            self._owners.clear()
        for controller in controllers:
            controller.close()

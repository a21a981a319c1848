import logging
import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone

from config import HANDOFF_LEDGER_SIZE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HandoffRecord:
    session_id: str
    user_id: object
    payload: object
    received_at: datetime

    def to_dict(self, include_image=False):
        return {
            "session_id": self.session_id,
            "user_id": self.user_id,
            "received_at": self.received_at.isoformat(),
            "payload": self.payload.to_dict() if include_image else self.payload.summary(),
        }


class HandoffLedger:
    """
    In-memory receiver of hand-off payloads.

    Keeps the latest payload per customization session for the positioning
    stage, and a bounded history for the admin listing.
    """
    def __init__(self, max_records=HANDOFF_LEDGER_SIZE):
        self._lock = threading.Lock()
        self._latest = {}
        self._history = deque(maxlen=max_records)

    def record(self, payload, session_id, user_id=None):
        entry = HandoffRecord(
            session_id=session_id,
            user_id=user_id,
            payload=payload,
            received_at=datetime.now(timezone.utc),
        )
        with self._lock:
            self._latest[session_id] = entry
            self._history.append(entry)
        logger.info(f"[Handoff] Received {payload.uploaded_file_name!r} x{payload.quantity} from session {session_id[:8]}")
        return entry

    def latest_for(self, session_id):
        with self._lock:
            return self._latest.get(session_id)

    def forget(self, session_id):
        with self._lock:
            self._latest.pop(session_id, None)

    def recent(self, limit=50):
        """Newest first."""
        with self._lock:
            entries = list(self._history)
        return list(reversed(entries))[:limit]

    def receiver(self, session_id, user_id=None):
        """Hand-off callback bound to one session."""
        def _receive(payload):
            self.record(payload, session_id, user_id)
        return _receive

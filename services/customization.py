"""
Product customization session.

Owns one shopper's SelectionState: artwork upload and transcode, color/size/
quantity/text selection, the size-chart flag, notifications, the preview
description and the validated hand-off to the positioning stage.

Every state mutation happens under the session lock. The only asynchronous
step is the transcode, which runs on a single-worker executor and applies its
result under the same lock, so the artwork is either the previous one or the
new one, never something in between.
"""
import logging
import re
import threading
import time
import uuid
from concurrent.futures import ThreadPoolExecutor

from constants import (
    SIZE_OPTIONS,
    SIZE_CHART,
    SIZE_CHART_UNIT,
    SIZE_CHART_NOTES,
    MSG_UPLOAD_SUCCESS,
    MSG_UPLOAD_UNREADABLE,
    MSG_DESIGN_REQUIRED,
    MSG_NAME_REQUIRED,
    MSG_QUANTITY_MIN,
)
from models import SelectionState, HandoffPayload, COLOR_OPTIONS, get_color_option, is_color_key
from services.notifications import NotificationSlot
from services.preview import derive_preview
from utils.uploads import TranscodeError, validate_artwork_upload, transcode_to_artwork

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def coerce_quantity(raw) -> int:
    """
    Turn any quantity input into an integer >= 1.

    Ints pass through, floats truncate, strings use their leading integer
    ("3 shirts" -> 3). Anything unparseable, zero or negative becomes 1.
    """
    if isinstance(raw, bool):
        value = None
    elif isinstance(raw, int):
        value = raw
    elif isinstance(raw, float):
        value = int(raw) if raw == raw and raw not in (float("inf"), float("-inf")) else None
    elif isinstance(raw, str):
        match = _LEADING_INT.match(raw)
        value = int(match.group(1)) if match else None
    else:
        value = None

    return max(1, value or 1)


def normalize_size_key(raw):
    if raw is None:
        return None
    return str(raw).strip().upper()


def size_chart():
    """Static garment measurements shown in the size-chart modal."""
    return {
        "unit": SIZE_CHART_UNIT,
        "sizes": list(SIZE_OPTIONS),
        "rows": [
            {"dimension": dimension, "values": [values[size] for size in SIZE_OPTIONS]}
            for dimension, values in SIZE_CHART.items()
        ],
        "notes": list(SIZE_CHART_NOTES),
    }


def _has_artwork(state):
    return state.artwork is not None


def _has_product_name(state):
    return bool(state.product_name.strip())


class CustomizationController:
    def __init__(self, on_continue=None, file_picker=None, executor=None, notifications=None,
                 session_id=None, clock=time.time):
        self.session_id = session_id or uuid.uuid4().hex
        self._state = SelectionState()
        self._lock = threading.RLock()
        self._notifications = notifications or NotificationSlot()
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"transcode-{self.session_id[:8]}")
        self._on_continue = on_continue
        self._file_picker = file_picker
        self._clock = clock
        self._closed = False
        self.last_active_at = clock()

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------
    @property
    def state(self):
        """Snapshot of the selection, with the live notification filled in."""
        with self._lock:
            snapshot = self._state.snapshot()
        snapshot.notification = self._notifications.current
        return snapshot

    @property
    def closed(self):
        return self._closed

    def touch(self):
        self.last_active_at = self._clock()

    def notify(self, message):
        logger.info(f"[Customize] {self.session_id[:8]} notification: {message}")
        return self._notifications.show(message)

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------
    def trigger_file_upload(self):
        """Ask the bound file picker to open. Returns False when none is bound."""
        if self._file_picker is None:
            return False
        self._file_picker()
        return True

    def handle_image_upload(self, upload):
        """
        Validate an upload and start transcoding it.

        Returns:
            Future resolving to the new Artwork (or None if the transcode
            failed), or None when the file was rejected outright.
        """
        with self._lock:
            if self._closed:
                logger.warning(f"[Customize] Upload on closed session {self.session_id[:8]} ignored")
                return None
            self.touch()

            problem = validate_artwork_upload(upload)
            if problem:
                logger.info(
                    f"[Customize] Rejected upload {upload.filename!r} "
                    f"({upload.content_type}, {upload.size} bytes): {problem}"
                )
                self.notify(problem)
                return None

            return self._executor.submit(self._transcode_and_apply, upload)

    def _transcode_and_apply(self, upload):
        try:
            artwork = transcode_to_artwork(upload)
        except TranscodeError as e:
            logger.warning(f"[Customize] Could not transcode {upload.filename!r}: {e}")
            artwork = None
        except Exception:
            logger.exception(f"[Customize] Unexpected error transcoding {upload.filename!r}")
            artwork = None

        if artwork is None:
            with self._lock:
                if not self._closed:
                    self.notify(MSG_UPLOAD_UNREADABLE)
            return None

        with self._lock:
            if self._closed:
                logger.info(f"[Customize] Session {self.session_id[:8]} closed before transcode finished; dropping artwork")
                return None
            self._state.artwork = artwork
            self.notify(MSG_UPLOAD_SUCCESS)
        return artwork

    # ------------------------------------------------------------------
    # Selection setters (total; never raise)
    # ------------------------------------------------------------------
    def select_color(self, key):
        with self._lock:
            self.touch()
            if not is_color_key(key):
                logger.warning(f"[Customize] Unknown color '{key}' ignored; keeping '{self._state.color_key}'")
                return self._state.color_key
            self._state.color_key = key
            return key

    def select_size(self, key):
        size = normalize_size_key(key)
        with self._lock:
            self.touch()
            if size not in SIZE_OPTIONS:
                logger.warning(f"[Customize] Unknown size '{key}' ignored; keeping '{self._state.size_key}'")
                return self._state.size_key
            self._state.size_key = size
            return size

    def set_product_name(self, text):
        with self._lock:
            self.touch()
            self._state.product_name = "" if text is None else str(text)

    def set_description(self, text):
        with self._lock:
            self.touch()
            self._state.description = "" if text is None else str(text)

    def set_quantity(self, raw):
        quantity = coerce_quantity(raw)
        with self._lock:
            self.touch()
            self._state.quantity = quantity
        return quantity

    # ------------------------------------------------------------------
    # Size chart
    # ------------------------------------------------------------------
    def open_size_chart(self):
        with self._lock:
            self._state.size_chart_visible = True

    def close_size_chart(self):
        with self._lock:
            self._state.size_chart_visible = False

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------
    def current_color(self):
        return get_color_option(self.state.color_key)

    @property
    def can_continue(self):
        state = self.state
        return _has_artwork(state) and _has_product_name(state)

    def preview(self):
        return derive_preview(self.state)

    def view(self, include_image=True):
        """JSON-ready view model of the whole customization screen."""
        state = self.state
        preview = derive_preview(state)
        return {
            "session_id": self.session_id,
            "artwork": None if state.artwork is None else {
                "file_name": state.artwork.file_name,
                "mime_type": state.artwork.mime_type,
                "size_bytes": state.artwork.size_bytes,
                "width": state.artwork.width,
                "height": state.artwork.height,
            },
            "selection": {
                "name": state.product_name or "Not set",
                "description": state.description,
                "quantity": state.quantity,
                "color": state.color_key,
                "size": state.size_key,
            },
            "colors": [
                {
                    "key": c.key,
                    "name": c.name,
                    "hex": c.hex_value,
                    "border": c.border_hex_value,
                    "selected": c.key == state.color_key,
                }
                for c in COLOR_OPTIONS
            ],
            "sizes": [{"key": s, "selected": s == state.size_key} for s in SIZE_OPTIONS],
            "notification": state.notification.message if state.notification else None,
            "size_chart_visible": state.size_chart_visible,
            "can_continue": _has_artwork(state) and _has_product_name(state),
            "preview": preview.to_dict(include_image=include_image),
        }

    # ------------------------------------------------------------------
    # Hand-off
    # ------------------------------------------------------------------
    def request_handoff(self):
        """
        Validate the selection and hand it to the next stage.

        Returns:
            The HandoffPayload that was handed off, or None when a required
            field is missing (the reason is shown as a notification).
        """
        with self._lock:
            self.touch()
            state = self._state

            if not _has_artwork(state):
                self.notify(MSG_DESIGN_REQUIRED)
                return None
            if not _has_product_name(state):
                self.notify(MSG_NAME_REQUIRED)
                return None
            if state.quantity < 1:
                self.notify(MSG_QUANTITY_MIN)
                return None

            payload = HandoffPayload(
                uploaded_image=state.artwork.data_uri,
                uploaded_file_name=state.artwork.file_name,
                selected_color=state.color_key,
                selected_size=state.size_key,
                name=state.product_name.strip(),
                description=state.description.strip(),
                quantity=state.quantity,
            )

        logger.info(f"[Customize] {self.session_id[:8]} hand-off: {payload.summary()}")
        if self._on_continue is not None:
            self._on_continue(payload)
        return payload

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------
    def close(self):
        """Cancel timers and stop the transcode worker. Pending uploads are dropped."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._notifications.dispose()
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
        logger.info(f"[Customize] Session {self.session_id[:8]} closed")

"""
Signed-in user record, kept in client-local storage.

The record lives under one fixed key in a mapping supplied by the caller;
in the app that mapping is Flask's signed cookie session. Its value is a
JSON string (user attributes plus bearer token). No record means logged out.

Everything that needs the current user or token goes through this class
instead of reading the storage key directly. Listeners registered with
subscribe() are told about every login and logout.
"""
import json
import logging

from constants import SESSION_USER_KEY
from models import User

logger = logging.getLogger(__name__)


class SessionManager:
    def __init__(self, store, key=SESSION_USER_KEY):
        self._store = store
        self._key = key
        self._listeners = []

    def _read_record(self):
        raw = self._store.get(self._key)
        if raw is None:
            return None
        try:
            return json.loads(raw) if isinstance(raw, (str, bytes)) else raw
        except (TypeError, ValueError) as e:
            logger.error(f"[Session] Error parsing stored user record: {e}")
            return None

    def get_current_user(self):
        record = self._read_record()
        if record is None:
            return None
        try:
            return User.from_record(record)
        except ValueError as e:
            logger.error(f"[Session] Stored user record is invalid: {e}")
            return None

    def get_token(self):
        """Bearer token of the stored record, if any. Tolerates malformed records."""
        record = self._read_record()
        if not isinstance(record, dict):
            return None
        token = record.get("token")
        if isinstance(token, str) and token.strip():
            return token.strip()
        return None

    @property
    def is_authenticated(self):
        return self.get_current_user() is not None

    def set_current_user(self, user):
        if not isinstance(user, User):
            user = User.from_record(user)
        self._store[self._key] = json.dumps(user.to_record())
        logger.info(f"[Session] Signed in user {user.id}")
        self._emit(user)
        return user

    def logout(self):
        had_record = self._store.pop(self._key, None) is not None
        if had_record:
            logger.info("[Session] Signed out")
        self._emit(None)

    def subscribe(self, listener):
        """
        Register listener(user_or_none) for login/logout changes.

        Returns:
            Callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, user):
        for listener in list(self._listeners):
            listener(user)

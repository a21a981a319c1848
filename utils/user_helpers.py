"""
Request-scoped access to the session manager, API client and
customization session of the current shopper.
"""
import uuid

from flask import current_app, g, session
from flask_login import login_user, logout_user

from constants import SESSION_CUSTOMIZATION_KEY
from services.api_client import ApiClient
from services.session_manager import SessionManager


def _sync_login_state(user):
    """Keep Flask-Login's view of the user in step with the stored record."""
    # A different shopper (or nobody) now owns this browser session
    end_customization()
    if user is None:
        logout_user()
    else:
        login_user(user)


def get_session_manager():
    if "session_manager" not in g:
        manager = SessionManager(session)
        manager.subscribe(_sync_login_state)
        g.session_manager = manager
    return g.session_manager


def get_api_client():
    if "api_client" not in g:
        manager = get_session_manager()
        g.api_client = ApiClient(
            base_url=current_app.config["BACKEND_URL"],
            token_provider=manager.get_token,
            timeout=current_app.config["API_TIMEOUT_SECONDS"],
        )
    return g.api_client


def get_customization_id(create=True):
    customization_id = session.get(SESSION_CUSTOMIZATION_KEY)
    if not customization_id and create:
        customization_id = uuid.uuid4().hex
        session[SESSION_CUSTOMIZATION_KEY] = customization_id
    g.customization_id = customization_id
    return customization_id


def end_customization():
    """Close this browser's customization session and forget its id."""
    customization_id = session.pop(SESSION_CUSTOMIZATION_KEY, None)
    g.pop("customization_id", None)
    if not customization_id:
        return False
    return current_app.extensions["customization_sessions"].discard(customization_id)


def get_customization(user=None):
    """CustomizationController for this browser session (created on first use)."""
    registry = current_app.extensions["customization_sessions"]
    user_id = getattr(user, "id", None)
    return registry.get_or_create(get_customization_id(), user_id=user_id)


def get_user_display_name(user):
    if not user:
        return "Guest"
    return getattr(user, "display_name", None) or getattr(user, "email", None) or "Shopper"

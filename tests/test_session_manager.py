"""
Tests for the stored signed-in user record.
"""
import json

import pytest

from models import User
from services.session_manager import SessionManager


RECORD = {"id": 7, "email": "ana@example.com", "username": "ana", "role": "customer", "token": "tok-1"}


def test_empty_store_is_logged_out():
    manager = SessionManager({})
    assert manager.get_current_user() is None
    assert manager.get_token() is None
    assert manager.is_authenticated is False


def test_set_current_user_persists_json_under_user_key():
    store = {}
    manager = SessionManager(store)

    user = manager.set_current_user(RECORD)

    assert isinstance(user, User)
    assert json.loads(store["user"])["token"] == "tok-1"
    assert manager.get_current_user().email == "ana@example.com"
    assert manager.get_token() == "tok-1"


def test_nested_login_response_shape():
    manager = SessionManager({})
    manager.set_current_user({"token": "tok-2", "user": {"id": 3, "email": "b@example.com", "roles": ["ADMIN"]}})

    user = manager.get_current_user()
    assert user.id == 3
    assert user.token == "tok-2"
    assert user.is_admin is True


def test_record_without_token_is_rejected():
    manager = SessionManager({})
    with pytest.raises(ValueError):
        manager.set_current_user({"id": 1, "email": "x@example.com"})


@pytest.mark.parametrize("raw", ["{not json", json.dumps([1, 2]), json.dumps({"id": 1})])
def test_malformed_record_reads_as_logged_out(raw):
    manager = SessionManager({"user": raw})
    assert manager.get_current_user() is None
    assert manager.get_token() is None


def test_token_readable_even_if_user_fields_are_broken():
    manager = SessionManager({"user": json.dumps({"token": "tok-3"})})
    assert manager.get_current_user() is None
    assert manager.get_token() == "tok-3"


def test_logout_removes_record_and_notifies():
    store = {}
    manager = SessionManager(store)
    seen = []
    manager.subscribe(seen.append)

    user = manager.set_current_user(RECORD)
    manager.logout()

    assert "user" not in store
    assert seen == [user, None]


def test_logout_when_already_logged_out_still_notifies():
    manager = SessionManager({})
    seen = []
    manager.subscribe(seen.append)
    manager.logout()
    assert seen == [None]


def test_unsubscribe_stops_notifications():
    manager = SessionManager({})
    seen = []
    unsubscribe = manager.subscribe(seen.append)
    unsubscribe()
    unsubscribe()

    manager.set_current_user(RECORD)
    assert seen == []


def test_display_name_fallbacks():
    assert User(1, "jane.doe@example.com", "t").display_name == "Jane Doe"
    assert User(1, "jane@example.com", "t", username="jd").display_name == "jd"
    assert User(1, "jane@example.com", "t", full_name="Jane D").display_name == "Jane D"

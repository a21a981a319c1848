"""
Tests for the backend API client.
"""
import json
from unittest.mock import MagicMock

import pytest
import requests

from services.api_client import ApiClient, ApiResponseError, NetworkError, UnauthorizedError
from services.session_manager import SessionManager


def _response(status=200, body=None, text=None):
    response = requests.Response()
    response.status_code = status
    if body is not None:
        response._content = json.dumps(body).encode()
    else:
        response._content = (text or "").encode()
    response.reason = "Reason"
    return response


@pytest.fixture
def http():
    session = MagicMock()
    session.headers = {}
    session.request.return_value = _response(200, {"ok": True})
    return session


def _client(http, store=None):
    manager = SessionManager(store if store is not None else {})
    return ApiClient(base_url="http://backend.test/", token_provider=manager.get_token, session=http), manager


def test_bearer_token_attached_when_signed_in(http):
    client, manager = _client(http)
    manager.set_current_user({"id": 1, "email": "a@example.com", "token": "tok-9"})

    assert client.get("/api/products") == {"ok": True}

    method, url = http.request.call_args.args
    kwargs = http.request.call_args.kwargs
    assert (method, url) == ("GET", "http://backend.test/api/products")
    assert kwargs["headers"]["Authorization"] == "Bearer tok-9"
    assert kwargs["timeout"] == 10
    assert http.headers["Content-Type"] == "application/json"


def test_no_auth_header_when_signed_out(http):
    client, _ = _client(http)
    client.post("api/auth/login", json={"username": "a"})
    assert "Authorization" not in http.request.call_args.kwargs["headers"]
    assert http.request.call_args.kwargs["json"] == {"username": "a"}


def test_malformed_stored_record_means_no_header(http):
    client, _ = _client(http, store={"user": "{broken"})
    client.get("/api/me")
    assert "Authorization" not in http.request.call_args.kwargs["headers"]


def test_401_raises_unauthorized_without_touching_session(http):
    store = {}
    client, manager = _client(http, store)
    manager.set_current_user({"id": 1, "email": "a@example.com", "token": "tok-9"})
    http.request.return_value = _response(401, {"message": "expired"})

    with pytest.raises(UnauthorizedError) as exc:
        client.get("/api/me")

    assert exc.value.status_code == 401
    assert "user" in store


@pytest.mark.parametrize("error", [requests.ConnectionError("refused"), requests.Timeout("slow")])
def test_no_response_is_network_error(http, error):
    client, _ = _client(http)
    http.request.side_effect = error
    with pytest.raises(NetworkError):
        client.get("/api/me")


def test_other_error_status_propagates_message(http):
    client, _ = _client(http)
    http.request.return_value = _response(422, {"message": "Quantity too high"})

    with pytest.raises(ApiResponseError) as exc:
        client.put("/api/cart", json={})

    assert exc.value.status_code == 422
    assert str(exc.value) == "Quantity too high"
    assert exc.value.payload == {"message": "Quantity too high"}


def test_server_error_with_plain_text(http):
    client, _ = _client(http)
    http.request.return_value = _response(500, text="boom")
    with pytest.raises(ApiResponseError) as exc:
        client.delete("/api/cart/1")
    assert exc.value.status_code == 500
    assert str(exc.value) == "boom"


def test_empty_body_returns_none(http):
    client, _ = _client(http)
    http.request.return_value = _response(204)
    assert client.delete("/api/cart/1") is None


def test_non_json_success_body_is_an_error(http):
    client, _ = _client(http)
    http.request.return_value = _response(200, text="<html>")
    with pytest.raises(ApiResponseError):
        client.get("/api/me")

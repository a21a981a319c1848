"""
Tests for sign-in, registration and sign-out against a mocked backend.
"""
import json
from unittest.mock import patch

from services.api_client import ApiResponseError, NetworkError, UnauthorizedError

LOGIN_RESPONSE = {
    "token": "tok-live",
    "user": {"id": 42, "email": "ana@example.com", "username": "ana", "roles": ["CUSTOMER"]},
}


def _stored_record(client):
    with client.session_transaction() as sess:
        raw = sess.get("user")
    return json.loads(raw) if raw else None


def test_login_stores_record_and_signs_in(client):
    with patch("services.api_client.ApiClient.request", return_value=LOGIN_RESPONSE) as mock_request:
        response = client.post("/login", json={"username": "ana", "password": "pw"})

    assert response.status_code == 200
    assert response.json["user"]["id"] == 42
    assert response.json["user"]["is_admin"] is False
    mock_request.assert_called_once_with("POST", "/api/auth/login", json={"username": "ana", "password": "pw"})

    record = _stored_record(client)
    assert record["token"] == "tok-live"
    assert client.get("/me").json["authenticated"] is True
    assert client.get("/customize").status_code == 200


def test_login_requires_credentials(client):
    response = client.post("/login", json={"username": "ana"})
    assert response.status_code == 400


def test_login_bad_credentials(client):
    with patch("services.api_client.ApiClient.request", side_effect=UnauthorizedError("nope", status_code=401)):
        response = client.post("/login", data={"username": "ana", "password": "wrong"})

    assert response.status_code == 401
    assert response.json["error"] == "Invalid username or password."
    assert _stored_record(client) is None


def test_login_backend_down(client):
    with patch("services.api_client.ApiClient.request", side_effect=NetworkError("refused")):
        response = client.post("/login", json={"username": "ana", "password": "pw"})
    assert response.status_code == 503


def test_login_backend_sends_garbage(client):
    with patch("services.api_client.ApiClient.request", return_value={"user": {"id": 1}}):
        response = client.post("/login", json={"username": "ana", "password": "pw"})
    assert response.status_code == 502
    assert _stored_record(client) is None


def test_register_passes_backend_rejection_through(client):
    error = ApiResponseError("Email already registered", status_code=409)
    with patch("services.api_client.ApiClient.request", side_effect=error):
        response = client.post("/register", json={
            "username": "ana", "email": "ana@example.com", "password": "pw",
        })
    assert response.status_code == 409
    assert response.json["error"] == "Email already registered"


def test_register_validates_email(client):
    response = client.post("/register", json={"username": "ana", "email": "nope", "password": "pw"})
    assert response.status_code == 400


def test_register_signs_in(client):
    with patch("services.api_client.ApiClient.request", return_value=LOGIN_RESPONSE) as mock_request:
        response = client.post("/register", json={
            "username": "ana", "email": "Ana@Example.com", "password": "pw", "full_name": "Ana P",
        })
    assert response.status_code == 200
    sent = mock_request.call_args.kwargs["json"]
    assert sent["email"] == "ana@example.com"
    assert sent["fullName"] == "Ana P"
    assert _stored_record(client)["id"] == 42


def test_logout_clears_record(client, login):
    login()
    client.patch("/customize/selection", json={"name": "Before logout"})
    response = client.post("/logout")

    assert response.status_code == 200
    assert response.json["redirect"] == "/"
    assert _stored_record(client) is None
    assert client.get("/me").json == {"authenticated": False, "user": None}
    assert client.get("/customize").status_code == 401
    with client.session_transaction() as sess:
        assert "customization_id" not in sess


def test_me_reports_display_name(client, login):
    login(email="jane.doe@example.com")
    user = client.get("/me").json["user"]
    assert user["display_name"] == "jane.doe"
    assert user["email"] == "jane.doe@example.com"


def test_tampered_record_is_treated_as_logged_out(client):
    with client.session_transaction() as sess:
        sess["user"] = "{not json"
        sess["_user_id"] = "7"
    assert client.get("/me").json["authenticated"] is False


def test_login_replaces_previous_customization(client, login):
    login(user_id=7)
    client.patch("/customize/selection", json={"name": "Someone else's tee"})

    with patch("services.api_client.ApiClient.request", return_value=LOGIN_RESPONSE):
        client.post("/login", json={"username": "ana", "password": "pw"})

    assert client.get("/customize").json["selection"]["name"] == "Not set"

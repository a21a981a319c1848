from flask import Blueprint, request, jsonify, current_app
from flask_login import current_user

from extensions import limiter
from services.api_client import ApiResponseError, NetworkError, UnauthorizedError
from utils.user_helpers import get_api_client, get_session_manager, get_user_display_name

auth_bp = Blueprint('auth', __name__)


def _credentials():
    data = request.get_json(silent=True) or request.form
    return {k: str(data.get(k) or "").strip() for k in ("username", "email", "password", "full_name")}


def _sign_in_from_response(body):
    """Store the backend's user+token record; 502 if the backend sent garbage."""
    try:
        user = get_session_manager().set_current_user(body or {})
    except ValueError as e:
        current_app.logger.error(f"[Auth] Backend returned an unusable user record: {e}")
        return jsonify({"error": "Authentication service returned an invalid response."}), 502
    return jsonify({"user": _public_user(user)}), 200


def _rejection_status(error):
    """Pass backend 4xx through; anything else is a bad gateway."""
    if error.status_code and 400 <= error.status_code < 500:
        return error.status_code
    return 502


def _public_user(user):
    return {
        "id": user.id,
        "email": user.email,
        "username": user.username,
        "display_name": get_user_display_name(user),
        "role": user.role,
        "is_admin": user.is_admin,
    }


@auth_bp.route("/login", methods=["POST"])
@limiter.limit("5 per minute")
def login():
    creds = _credentials()
    identifier = creds["username"] or creds["email"]
    if not identifier or not creds["password"]:
        return jsonify({"error": "Username and password are required."}), 400

    try:
        body = get_api_client().post("/api/auth/login", json={
            "username": identifier,
            "password": creds["password"],
        })
    except UnauthorizedError:
        current_app.logger.info(f"[Auth] Invalid credentials for {identifier!r}")
        return jsonify({"error": "Invalid username or password."}), 401
    except ApiResponseError as e:
        current_app.logger.info(f"[Auth] Login rejected for {identifier!r}: {e}")
        return jsonify({"error": str(e) or "Invalid credentials."}), _rejection_status(e)
    except NetworkError:
        return jsonify({"error": "Authentication service is unreachable. Please try again later."}), 503

    return _sign_in_from_response(body)


@auth_bp.route("/register", methods=["POST"])
@limiter.limit("5 per minute")
def register():
    creds = _credentials()
    if not creds["username"] or not creds["email"] or not creds["password"]:
        return jsonify({"error": "All fields are required."}), 400
    if "@" not in creds["email"]:
        return jsonify({"error": "Please enter a valid email address."}), 400

    try:
        body = get_api_client().post("/api/auth/register", json={
            "username": creds["username"],
            "email": creds["email"].lower(),
            "password": creds["password"],
            "fullName": creds["full_name"] or None,
        })
    except ApiResponseError as e:
        current_app.logger.info(f"[Auth] Registration rejected for {creds['email']!r}: {e}")
        return jsonify({"error": str(e) or "Registration failed."}), _rejection_status(e)
    except NetworkError:
        return jsonify({"error": "Authentication service is unreachable. Please try again later."}), 503

    return _sign_in_from_response(body)


@auth_bp.route("/logout", methods=["POST"])
def logout():
    get_session_manager().logout()
    return jsonify({"status": "ok", "redirect": "/"}), 200


@auth_bp.route("/me")
def me():
    if not current_user.is_authenticated:
        return jsonify({"authenticated": False, "user": None}), 200
    return jsonify({"authenticated": True, "user": _public_user(current_user)}), 200

from flask import Blueprint, jsonify, url_for
from flask_login import current_user
from flask_wtf.csrf import generate_csrf

from utils.user_helpers import get_user_display_name

public_bp = Blueprint('public', __name__)


@public_bp.route("/")
def landing():
    if current_user.is_authenticated:
        return jsonify({
            "authenticated": True,
            "user": get_user_display_name(current_user),
            "next": url_for("customize.index"),
            "csrf_token": generate_csrf(),
        }), 200
    return jsonify({
        "authenticated": False,
        "login": url_for("auth.login"),
        "register": url_for("auth.register"),
        "csrf_token": generate_csrf(),
    }), 200

from flask import Blueprint, jsonify, abort, current_app, request
from flask_login import current_user

from utils.user_helpers import get_api_client

admin_bp = Blueprint('admin', __name__, url_prefix='/admin')


@admin_bp.before_request
def require_admin():
    if not current_user.is_authenticated:
        return jsonify({"error": "Authentication required", "redirect": "/"}), 401
    if not current_user.is_admin:
        abort(403)


@admin_bp.route("/handoffs")
def handoff_list():
    """Most recent hand-offs, newest first, without inline images."""
    limit = min(request.args.get("limit", 50, type=int), 200)
    ledger = current_app.extensions["handoff_ledger"]
    records = [r.to_dict(include_image=False) for r in ledger.recent(limit)]
    return jsonify({"handoffs": records, "count": len(records)}), 200


@admin_bp.route("/users")
def user_list():
    # UnauthorizedError / NetworkError go to the app-level handlers
    users = get_api_client().get("/api/admin/users")
    return jsonify({"users": users or []}), 200

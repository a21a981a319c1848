import io
from concurrent.futures import TimeoutError as FutureTimeoutError

from flask import Blueprint, request, jsonify, current_app, url_for, send_file
from flask_login import current_user
from werkzeug.exceptions import RequestEntityTooLarge

from constants import MSG_FILE_TOO_LARGE
from services.customization import size_chart
from services.preview import render_preview_png
from utils.uploads import UploadedFile
from utils.user_helpers import end_customization, get_customization, get_customization_id

customize_bp = Blueprint('customize', __name__, url_prefix='/customize')


@customize_bp.before_request
def require_login():
    if not current_user.is_authenticated:
        return jsonify({"error": "Authentication required", "redirect": "/"}), 401


def _include_image():
    return request.args.get("include_image", "").lower() in ("1", "true", "yes")


def _view(controller, status=200):
    return jsonify(controller.view(include_image=_include_image())), status


@customize_bp.errorhandler(RequestEntityTooLarge)
def upload_too_large(e):
    controller = get_customization(current_user)
    controller.notify(MSG_FILE_TOO_LARGE)
    return _view(controller, 413)


@customize_bp.route("", methods=["GET"])
def index():
    return _view(get_customization(current_user))


@customize_bp.route("", methods=["DELETE"])
def end_session():
    ended = end_customization()
    return jsonify({"ended": ended}), 200


@customize_bp.route("/upload", methods=["POST"])
def upload():
    controller = get_customization(current_user)

    file = request.files.get("file")
    if not file or not file.filename:
        return jsonify({"error": "No file provided"}), 400

    future = controller.handle_image_upload(UploadedFile.from_file_storage(file))
    if future is None:
        # Rejected before transcoding; the reason is in the notification
        return _view(controller, 422)

    wait_seconds = current_app.config["UPLOAD_WAIT_SECONDS"]
    try:
        artwork = future.result(timeout=wait_seconds)
    except FutureTimeoutError:
        current_app.logger.warning(f"[Customize] Transcode still running after {wait_seconds}s")
        return _view(controller, 202)

    return _view(controller, 200 if artwork else 422)


@customize_bp.route("/selection", methods=["POST", "PATCH"])
def update_selection():
    controller = get_customization(current_user)
    data = request.get_json(silent=True) or request.form

    if "color" in data:
        controller.select_color(data.get("color"))
    if "size" in data:
        controller.select_size(data.get("size"))
    if "name" in data:
        controller.set_product_name(data.get("name"))
    if "description" in data:
        controller.set_description(data.get("description"))
    if "quantity" in data:
        controller.set_quantity(data.get("quantity"))

    return _view(controller)


@customize_bp.route("/size-chart", methods=["GET"])
def get_size_chart():
    controller = get_customization(current_user)
    return jsonify({"visible": controller.state.size_chart_visible, **size_chart()}), 200


@customize_bp.route("/size-chart", methods=["POST"])
def open_size_chart():
    controller = get_customization(current_user)
    controller.open_size_chart()
    return _view(controller)


@customize_bp.route("/size-chart", methods=["DELETE"])
def close_size_chart():
    controller = get_customization(current_user)
    controller.close_size_chart()
    return _view(controller)


@customize_bp.route("/preview", methods=["GET"])
def preview():
    controller = get_customization(current_user)
    return jsonify(controller.preview().to_dict(include_image=_include_image())), 200


@customize_bp.route("/preview.png", methods=["GET"])
def preview_png():
    controller = get_customization(current_user)
    png = render_preview_png(controller.preview())
    return send_file(io.BytesIO(png), mimetype="image/png", max_age=0)


@customize_bp.route("/continue", methods=["POST"])
def continue_to_positioning():
    controller = get_customization(current_user)
    payload = controller.request_handoff()
    if payload is None:
        body = controller.view(include_image=False)
        return jsonify({"error": body["notification"], "view": body}), 422

    return jsonify({
        "handoff": payload.summary(),
        "next": url_for("customize.position"),
    }), 200


@customize_bp.route("/position", methods=["GET"])
def position():
    """Entry point of the positioning stage: the last hand-off of this session."""
    ledger = current_app.extensions["handoff_ledger"]
    customization_id = get_customization_id(create=False)
    record = ledger.latest_for(customization_id) if customization_id else None
    if record is None:
        return jsonify({"error": "No design has been handed off yet.", "redirect": url_for("customize.index")}), 404
    return jsonify(record.to_dict(include_image=_include_image())), 200

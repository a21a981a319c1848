import atexit

from flask import Flask, request, redirect, jsonify
from flask_login import LoginManager, logout_user
from flask_wtf.csrf import CSRFProtect

from config import (
    SECRET_KEY,
    MAX_CONTENT_LENGTH,
    TRUST_PROXY_HEADERS,
    PROXY_FIX_NUM_PROXIES,
    IS_PRODUCTION,
    SESSION_COOKIE_HTTPONLY,
    SESSION_COOKIE_SAMESITE,
    SESSION_COOKIE_SECURE,
    REMEMBER_COOKIE_HTTPONLY,
    REMEMBER_COOKIE_SECURE,
    PREFERRED_URL_SCHEME,
    BACKEND_URL,
    API_TIMEOUT_SECONDS,
    RATELIMIT_ENABLED,
    UPLOAD_WAIT_SECONDS,
)
from extensions import limiter
from services.api_client import UnauthorizedError, NetworkError, ApiResponseError
from services.customization_sessions import CustomizationSessionRegistry
from services.handoff import HandoffLedger
from utils.user_helpers import get_session_manager

# Blueprints
from routes.auth import auth_bp
from routes.public import public_bp
from routes.customize import customize_bp
from routes.admin import admin_bp


def _wants_json():
    if request.is_json or request.path.startswith(("/customize", "/admin", "/me")):
        return True
    best = request.accept_mimetypes.best_match(["application/json", "text/html"])
    return best == "application/json"


def create_app(test_config=None):
    app = Flask(__name__)

    app.config['SECRET_KEY'] = SECRET_KEY
    app.config['MAX_CONTENT_LENGTH'] = MAX_CONTENT_LENGTH
    app.config['BACKEND_URL'] = BACKEND_URL
    app.config['API_TIMEOUT_SECONDS'] = API_TIMEOUT_SECONDS
    app.config['RATELIMIT_ENABLED'] = RATELIMIT_ENABLED
    app.config['UPLOAD_WAIT_SECONDS'] = UPLOAD_WAIT_SECONDS

    # Security Config
    app.config['SESSION_COOKIE_HTTPONLY'] = SESSION_COOKIE_HTTPONLY
    app.config['SESSION_COOKIE_SAMESITE'] = SESSION_COOKIE_SAMESITE
    app.config['SESSION_COOKIE_SECURE'] = SESSION_COOKIE_SECURE
    app.config['REMEMBER_COOKIE_HTTPONLY'] = REMEMBER_COOKIE_HTTPONLY
    app.config['REMEMBER_COOKIE_SECURE'] = REMEMBER_COOKIE_SECURE
    app.config['PREFERRED_URL_SCHEME'] = PREFERRED_URL_SCHEME

    # Test overrides win over env-derived config
    if test_config:
        app.config.update(test_config)

    # Setup Structured Logging
    from utils.logger import setup_logger
    setup_logger(app)

    @app.route("/healthz")
    def healthz():
        registry = app.extensions["customization_sessions"]
        return {"status": "ok", "customization_sessions": len(registry)}, 200

    @app.route("/ping")
    def ping():
        return {"status": "ok"}, 200

    # ProxyFix
    if IS_PRODUCTION and TRUST_PROXY_HEADERS:
        from werkzeug.middleware.proxy_fix import ProxyFix
        n = PROXY_FIX_NUM_PROXIES
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=n, x_proto=n, x_host=n, x_port=n)
        app.logger.info(f"[Security] ProxyFix enabled for {n} proxies")

    # Extensions
    CSRFProtect(app)
    app.config["WTF_CSRF_HEADERS"] = ["X-CSRFToken", "X-CSRF-Token"]
    app.config["WTF_CSRF_TIME_LIMIT"] = 3600
    limiter.init_app(app)

    # Customization state (in-process)
    ledger = HandoffLedger()
    registry = CustomizationSessionRegistry(ledger)
    app.extensions["handoff_ledger"] = ledger
    app.extensions["customization_sessions"] = registry
    atexit.register(registry.close_all)

    # Login Manager: the signed-in user is whatever the session manager holds
    login_manager = LoginManager()
    login_manager.init_app(app)

    @login_manager.user_loader
    def load_user(user_id):
        user = get_session_manager().get_current_user()
        if user and user.get_id() == str(user_id):
            return user
        return None

    @login_manager.unauthorized_handler
    def unauthorized():
        if _wants_json():
            return jsonify({"error": "Authentication required", "redirect": "/"}), 401
        return redirect("/")

    # Forced logout: the API client only classifies a 401, this handler acts on it
    @app.errorhandler(UnauthorizedError)
    def handle_backend_unauthorized(e):
        app.logger.warning(f"[Auth] Backend rejected token on {request.path}; forcing logout")
        get_session_manager().logout()
        logout_user()
        if _wants_json():
            return jsonify({"error": str(e), "redirect": "/"}), 401
        return redirect("/")

    @app.errorhandler(NetworkError)
    def handle_backend_unreachable(e):
        app.logger.error(f"[API] Backend unreachable while serving {request.path}: {e}")
        return jsonify({"error": "Backend service is unreachable. Please try again later."}), 503

    @app.errorhandler(ApiResponseError)
    def handle_backend_error(e):
        status = e.status_code if e.status_code and 400 <= e.status_code < 600 else 502
        return jsonify({"error": str(e)}), status

    # Blueprints
    app.register_blueprint(public_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(customize_bp)
    app.register_blueprint(admin_bp)

    return app


# WSGI Entry Point
app = create_app()

if __name__ == "__main__":
    app.run(host='0.0.0.0', debug=True)

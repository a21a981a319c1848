import os
import logging

from utils.env import get_env_str, get_env_bool, get_env_int

logger = logging.getLogger(__name__)

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

# -----------------------------------------------------------------------------
# Dotenv loading (LOCAL ONLY)
# -----------------------------------------------------------------------------
# Tests must not ingest a developer's repo-root .env.
_FLASK_ENV_EARLY = (os.getenv("FLASK_ENV") or "").strip().lower()

if _FLASK_ENV_EARLY not in {"test", "testing"}:
    try:
        from dotenv import load_dotenv
        load_dotenv(dotenv_path=os.path.join(BASE_DIR, ".env"), override=False)
    except ImportError:
        logger.warning("[Config] python-dotenv not installed; skipping .env loading.")

# -----------------------------------------------------------------------------
# Environment / Stage
# -----------------------------------------------------------------------------
def _normalize_stage(raw: str) -> str:
    raw = (raw or "").strip().lower()
    if raw in {"prod", "production"}:
        return "production"
    if raw in {"stage", "staging"}:
        return "staging"
    if raw in {"test", "testing"}:
        return "test"
    return "dev"


FLASK_ENV = (os.getenv("FLASK_ENV", "development") or "development").strip().lower()
APP_STAGE = _normalize_stage(os.getenv("APP_STAGE", "dev"))

IS_TEST = APP_STAGE == "test" or FLASK_ENV in {"test", "testing"}
IS_STAGING = APP_STAGE == "staging"
IS_PRODUCTION = APP_STAGE == "production"

DEBUG = FLASK_ENV != "production" and not IS_PRODUCTION

# -----------------------------------------------------------------------------
# Backend API
# -----------------------------------------------------------------------------
def _strip_trailing_slash(url: str) -> str:
    return url[:-1] if url.endswith("/") else url


BACKEND_URL = _strip_trailing_slash(get_env_str("BACKEND_URL", default="http://localhost:8080"))

# Fixed request timeout for every backend call (seconds).
API_TIMEOUT_SECONDS = 10

if (IS_STAGING or IS_PRODUCTION) and not BACKEND_URL.lower().startswith("https://"):
    raise RuntimeError(f"CRITICAL: BACKEND_URL must be HTTPS in {APP_STAGE} stage. Got: {BACKEND_URL}")

# -----------------------------------------------------------------------------
# Secrets
# -----------------------------------------------------------------------------
SECRET_KEY = get_env_str("SECRET_KEY")
if not SECRET_KEY:
    if IS_STAGING or IS_PRODUCTION:
        raise ValueError(f"SECRET_KEY must be set in {APP_STAGE} environment.")
    SECRET_KEY = "dev-secret-key-change-this"
    logger.warning("[Config] WARNING: Using default SECRET_KEY for development. DO NOT use in real environments!")

# -----------------------------------------------------------------------------
# Proxy / Cookie Security
# -----------------------------------------------------------------------------
TRUST_PROXY_HEADERS = get_env_bool("TRUST_PROXY_HEADERS", default=False)
PROXY_FIX_NUM_PROXIES = get_env_int("PROXY_FIX_NUM_PROXIES", 1)

IS_SECURE_ENV = IS_STAGING or IS_PRODUCTION
SESSION_COOKIE_HTTPONLY = True
SESSION_COOKIE_SAMESITE = "Lax"
SESSION_COOKIE_SECURE = IS_SECURE_ENV
REMEMBER_COOKIE_HTTPONLY = True
REMEMBER_COOKIE_SECURE = IS_SECURE_ENV
PREFERRED_URL_SCHEME = "https" if IS_SECURE_ENV else "http"

# -----------------------------------------------------------------------------
# Rate limiting
# -----------------------------------------------------------------------------
RATELIMIT_ENABLED = get_env_bool("RATELIMIT_ENABLED", default=not IS_TEST)
RATELIMIT_STORAGE_URI = get_env_str("RATELIMIT_STORAGE_URI", default="memory://")

# -----------------------------------------------------------------------------
# Upload limits
# -----------------------------------------------------------------------------
# Request ceiling only. Artwork itself is capped at MAX_ARTWORK_BYTES (constants.py)
# so oversize files reach the controller and get the friendly notification.
MAX_CONTENT_LENGTH = 32 * 1024 * 1024

# -----------------------------------------------------------------------------
# Customization sessions
# -----------------------------------------------------------------------------
CUSTOMIZATION_SESSION_TTL_SECONDS = get_env_int("CUSTOMIZATION_SESSION_TTL_SECONDS", 60 * 60)
HANDOFF_LEDGER_SIZE = get_env_int("HANDOFF_LEDGER_SIZE", 200)

# How long an upload request waits for the transcode before answering 202
UPLOAD_WAIT_SECONDS = get_env_int("UPLOAD_WAIT_SECONDS", 15)

from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from config import RATELIMIT_STORAGE_URI

# Per-route limits only (login/register).
# Bound to the app in create_app() via init_app.
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],
    storage_uri=RATELIMIT_STORAGE_URI,
)

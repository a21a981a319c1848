"""
Pytest fixtures for the garment customizer tests.

Provides a fresh app per test, a login helper that seeds the signed-in user
record, fake timers/clocks for notification expiry, and image factories.
"""
import io
import json
import os

import pytest
from PIL import Image

# Set test environment before importing app/config
os.environ['FLASK_ENV'] = 'testing'
os.environ['APP_STAGE'] = 'test'
os.environ['SECRET_KEY'] = 'test-secret-key'
os.environ.setdefault('BACKEND_URL', 'http://localhost:8080')


class FakeTimer:
    """Stand-in for threading.Timer that only fires when told to."""
    instances = []

    def __init__(self, interval, function, args=None, kwargs=None):
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.kwargs = kwargs or {}
        self.daemon = False
        self.started = False
        self.cancelled = False
        FakeTimer.instances.append(self)

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        """Run the callback as a real timer thread would, even if cancelled too late."""
        self.function(*self.args, **self.kwargs)


class FakeClock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def make_image_bytes(width=64, height=64, fmt="PNG", color=(200, 30, 30)):
    img = Image.new("RGB", (width, height), color)
    out = io.BytesIO()
    img.save(out, format=fmt)
    return out.getvalue()


@pytest.fixture
def fake_timers():
    FakeTimer.instances = []
    yield FakeTimer
    FakeTimer.instances = []


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def png_bytes():
    return make_image_bytes()


@pytest.fixture
def upload_factory():
    from utils.uploads import UploadedFile

    def _make(data=None, filename="logo.png", content_type="image/png", size=None):
        if data is None:
            data = make_image_bytes()
        return UploadedFile(
            filename=filename,
            content_type=content_type,
            size=len(data) if size is None else size,
            data=data,
        )

    return _make


@pytest.fixture
def handoffs():
    """Collects payloads passed to the hand-off callback."""
    return []


@pytest.fixture
def controller(fake_timers, clock, handoffs):
    from services.customization import CustomizationController
    from services.notifications import NotificationSlot

    ctrl = CustomizationController(
        on_continue=handoffs.append,
        notifications=NotificationSlot(clock=clock, timer_factory=fake_timers),
        clock=clock,
    )
    yield ctrl
    ctrl.close()


@pytest.fixture
def app():
    """Create application for testing."""
    from app import create_app
    flask_app = create_app({
        'TESTING': True,
        'WTF_CSRF_ENABLED': False,
        'RATELIMIT_ENABLED': False,
        'SERVER_NAME': 'localhost:5000',
    })
    yield flask_app
    flask_app.extensions["customization_sessions"].close_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    """Seed the stored user record the way a successful /login would."""
    def _login(user_id=7, role="customer", token="token-abc", email="shopper@example.com"):
        record = {
            "id": user_id,
            "email": email,
            "username": email.split("@")[0],
            "full_name": None,
            "role": role,
            "token": token,
        }
        with client.session_transaction() as sess:
            sess['user'] = json.dumps(record)
            sess['_user_id'] = str(user_id)
        return record

    return _login

import pytest

from app import create_app
from config import Config
from models import db
from services.captcha_service import CaptchaService
from services.captcha_store import CaptchaStore

START_MS = 1_700_000_000_000


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now=START_MS):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


@pytest.fixture
def test_config(tmp_path):
    class TestConfig(Config):
        TESTING = True
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'test.db'}"
        LOG_LEVEL = "DEBUG"
        REGISTRATION_OPEN = True
        MAINTENANCE_MODE = False
        CAPTCHA_RECLAIMER_ENABLED = False
        CAPTCHA_WIDTH = 200
        CAPTCHA_HEIGHT = 80
        CAPTCHA_SIZE = 32
        CAPTCHA_EXPIRY_MS = 300000
        CAPTCHA_CLEANUP_INTERVAL_MS = 60000

    return TestConfig


@pytest.fixture
def app(test_config):
    app = create_app(test_config)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield


@pytest.fixture
def store(ctx):
    return CaptchaStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings(app):
    return app.extensions["captcha_service"].settings


@pytest.fixture
def service(settings, store, clock):
    return CaptchaService(settings, store, clock=clock)

import pytest

from studyhub import create_app
from studyhub.extensions import db, bcrypt
from studyhub.models import User, Settings
from studyhub.ticker import ManualTicker
from studyhub.timer import StoreError, StudyTimer, TimerSettings

# ----------------------------------------------------
#                  TIMER TEST DOUBLES
# ----------------------------------------------------


class MemoryStore:
    """Session store that keeps inserted records in a list."""

    def __init__(self):
        self.records = []

    def insert(self, record):
        self.records.append(record)


class FailingStore:
    """Session store whose every insert fails."""

    def __init__(self, error=None):
        self.attempts = 0
        self.error = error or StoreError("database unavailable")

    def insert(self, record):
        self.attempts += 1
        raise self.error


class RecordingNotifier:
    def __init__(self):
        self.messages = []

    def notify(self, title, body):
        self.messages.append((title, body))


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def ticker():
    return ManualTicker()


@pytest.fixture
def make_timer(store, notifier, ticker):
    """Factory for a StudyTimer wired to in-memory collaborators."""

    def _make(settings=None, store_override=None):
        return StudyTimer(
            user_id=1,
            store=store_override or store,
            notifier=notifier,
            ticker=ticker,
            settings=settings or TimerSettings(),
        )

    return _make


# ----------------------------------------------------
#                  APP FIXTURES
# ----------------------------------------------------


@pytest.fixture(scope="function")
def app():
    """
    A fresh application with an in-memory database. Tickers are manual
    (TIMER_START_TICKERS is False), so no background threads run.
    """
    app = create_app("studyhub.config.TestConfig")
    yield app
    app.extensions["timers"].shutdown()
    with app.app_context():
        db.drop_all()


@pytest.fixture(scope="function")
def client(app):
    return app.test_client()


def create_user(app, username="testuser", email="test@example.com", password="password123"):
    with app.app_context():
        hashed_password = bcrypt.generate_password_hash(password).decode("utf-8")
        user = User(username=username, email=email, password=hashed_password)
        db.session.add(user)
        db.session.flush()
        db.session.add(Settings(user_id=user.id))
        db.session.commit()
        return user.id


@pytest.fixture(scope="function")
def auth_client(app, client):
    """
    Fixture that creates a user and provides a logged-in client
    by directly manipulating the session.
    """
    user_id = create_user(app)
    with client.session_transaction() as sess:
        sess["username"] = "testuser"

    return {"client": client, "user_id": user_id, "app": app}

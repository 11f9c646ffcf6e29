import os
import time

# Settings and the module-level engine are built at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["MAIN_ADMIN_IDS"] = "1000"
os.environ["VIEWER_SECRET"] = "viewer-key"
os.environ["VIEWER_BASE_URL"] = "https://screen.example.com/live"

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from confbot.core.config import get_settings
from confbot.core.database import Base
import confbot.models  # noqa: F401
from confbot.dialog.session_store import DialogSessionStore
from confbot.schemas.account import ExternalUser
from confbot.services.conferences import create_conference
from confbot.services.identity import ensure_account

MAIN_ADMIN_ID = "1000"


class FakeRedis:
    def __init__(self):
        self._store = {}

    def set(self, key, value, ex=None):
        expires_at = time.time() + ex if ex else None
        self._store[key] = (value, expires_at)

    def get(self, key):
        value, expires_at = self._store.get(key, (None, None))
        if value is None:
            return None
        if expires_at is not None and time.time() >= expires_at:
            self._store.pop(key, None)
            return None
        return value

    def delete(self, key):
        self._store.pop(key, None)

    def ttl(self, key):
        value, expires_at = self._store.get(key, (None, None))
        if value is None:
            return -2
        if expires_at is None:
            return -1
        return int(expires_at - time.time())

    def keys(self):
        return [key for key in list(self._store) if self.get(key) is not None]


class RecordingBroadcaster:
    def __init__(self):
        self.events = []

    def publish(self, conference_id, event, payload):
        self.events.append((conference_id, event, payload))


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def sessions(fake_redis):
    return DialogSessionStore(redis_client=fake_redis, ttl_seconds=60)


@pytest.fixture
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture
def make_account(db):
    def make(identity, first_name=None, last_name=None, username=None):
        user = ExternalUser(identity=identity, first_name=first_name, last_name=last_name, username=username)
        return ensure_account(db, user)

    return make


@pytest.fixture
def main_admin(make_account):
    return make_account(MAIN_ADMIN_ID, first_name="Main", last_name="Admin", username="boss")


@pytest.fixture
def conference(db, main_admin):
    return create_conference(db, main_admin, title="DevCon 2026", description="Developers conference")

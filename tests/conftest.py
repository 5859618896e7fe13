from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine

from src.auth_logins.db import init_db, make_session_factory
from src.auth_logins.store import AuthLoginStore

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Deterministic clock; every call advances one second."""

    def __init__(self, start: datetime = T0):
        self.current = start

    def __call__(self) -> datetime:
        self.current = self.current + timedelta(seconds=1)
        return self.current


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(tmp_path, clock):
    engine = create_engine(f"sqlite:///{tmp_path / 'store_test.db'}")
    init_db(engine)
    yield AuthLoginStore(make_session_factory(engine), clock=clock)
    engine.dispose()


def _record(**overrides):
    record = {
        "user_id": "auth0|123",
        "name": "Ada Lovelace",
        "nickname": "ada",
        "username": "ada",
        "email": "a@b.com",
        "picture": "https://example.com/ada.png",
        "company": "Analytical Engines",
        "blog": "",
        "phone": "",
        "locale": "en",
        "login_provider": "github",
        "last_login": T0,
        "last_ip": "10.0.0.1",
        "logins_count": 0,
    }
    record.update(overrides)
    return record


@pytest.fixture
def t0():
    """Start time of the fake clock; also the default last_login."""
    return T0


@pytest.fixture
def make_record():
    """Factory for a valid create payload; keyword arguments override fields."""
    return _record

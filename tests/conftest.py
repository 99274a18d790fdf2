"""Shared fixtures."""
from datetime import datetime, timedelta

import pytest

from qr_attendance import create_app, db
from qr_attendance.services.seed_service import SeedService
from qr_attendance.services.session_store import EXTENSION_KEY

class FrozenClock:
    """Clock for the session store that only moves when told to."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)

@pytest.fixture
def app():
    """Create test app."""
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()

@pytest.fixture
def store(app):
    return app.extensions[EXTENSION_KEY]

@pytest.fixture
def clock(store):
    clock = FrozenClock(datetime(2024, 9, 2, 9, 0, 0))
    store.clock = clock
    return clock

@pytest.fixture
def students(app):
    """Demo students, CS2024001 Alice Johnson included."""
    SeedService.seed_all()

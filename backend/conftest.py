"""
Pytest configuration file for backend testing.
"""
import os
import sys
from pathlib import Path

# Add the backend directory to Python path so imports work correctly
backend_dir = Path(__file__).parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

# Keep the application engine off the on-disk database during tests
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.config import Settings
from core.database import Base

# Import all models to register them with SQLAlchemy
from modules.orders.models import order_models  # noqa: F401
from modules.menu.models import menu_models  # noqa: F401
from modules.tables.models import table_models  # noqa: F401
from modules.kds.models import kds_models  # noqa: F401

from tests.factories import bind_session


class RecordingChannel:
    """Broadcast channel that keeps every published event"""

    def __init__(self):
        self.events = []

    async def publish(self, topic, event_type, payload):
        self.events.append((topic, event_type, payload))
        return 1

    def topics(self, event_type=None):
        return [
            topic for topic, kind, _ in self.events
            if event_type is None or kind == event_type
        ]


@pytest.fixture
def test_settings():
    return Settings(database_url="sqlite://", environment="test")


@pytest.fixture(scope="function")
def db_session():
    """Fresh in-memory database and session for each test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSessionLocal()
    bind_session(db)
    try:
        yield db
    finally:
        bind_session(None)
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def recording_channel():
    return RecordingChannel()

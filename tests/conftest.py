"""Shared pytest configuration for the notification service tests."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

TEST_DB_PATH = Path(__file__).parent / "test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["APP_TIMEZONE"] = "UTC"

from app.config import reset_settings_cache  # noqa: E402

reset_settings_cache()


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def reset_change_feed():
    """Make sure no subscriber leaks from one test into the next."""

    from app.infrastructure.notifications import notification_change_feed

    notification_change_feed.clear()
    yield
    notification_change_feed.clear()


@pytest.fixture()
def database():
    """Provide fresh notification tables on the test SQLite database."""

    from app.infrastructure import database as database_module

    database_module.initialize_database()
    database_module.Base.metadata.drop_all(bind=database_module.engine, checkfirst=True)
    database_module.Base.metadata.create_all(bind=database_module.engine)
    yield database_module
    database_module.Base.metadata.drop_all(bind=database_module.engine, checkfirst=True)
    database_module.engine.dispose()
    if TEST_DB_PATH.exists():
        TEST_DB_PATH.unlink()

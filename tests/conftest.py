"""
Shared fixtures: a fresh SQLite file per test and an in-memory event sink.
"""

import pytest
import pytest_asyncio

from study_buddy.events import RecordingEventSink
from study_buddy.storage import StudyStore


@pytest_asyncio.fixture
async def store(tmp_path):
    """An initialized store backed by a throwaway SQLite file."""
    store = StudyStore(f"sqlite+aiosqlite:///{tmp_path / 'study_buddy.db'}")
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
def events():
    return RecordingEventSink()

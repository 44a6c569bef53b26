"""
Shared fixtures for cache unit tests.
"""
import pytest

from quranc.persist.sqlite_store import BucketStore


@pytest.fixture
def store(tmp_path):
    """Create a temporary BucketStore instance."""
    db_path = tmp_path / "cache.db"
    s = BucketStore(db_path)
    yield s
    s.close()

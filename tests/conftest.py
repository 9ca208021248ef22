"""
Pytest configuration for craftworks tests.

Automatically adds project root to sys.path so that 'from craftworks...' imports work.
Defines markers and shared fixtures.
"""
import sys
import pytest
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from craftworks.core.cache import CacheAside
from craftworks.core.config import Settings, reset_cache_aside, reset_settings, reset_store
from craftworks.core.connectors import InMemoryCache, SQLiteStore
from craftworks.core.mapping import DataObject, Persister
from craftworks.core.session import session_scope


# =============================================================================
# Pytest Markers
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (store + cache together)")
    config.addinivalue_line("markers", "requires_redis: Requires Redis service")


# =============================================================================
# Test Entities
# =============================================================================

TEST_SCHEMA = """
CREATE TABLE "Widget" (
    "ID" INTEGER PRIMARY KEY AUTOINCREMENT,
    "Name" varchar(255) NOT NULL UNIQUE,
    "Price" double NOT NULL DEFAULT 0
);

CREATE TABLE "Gadget" (
    "ID" INTEGER PRIMARY KEY AUTOINCREMENT,
    "Owner" int(10) NOT NULL DEFAULT 0 REFERENCES "Widget" ("ID"),
    "Serial" char(12) UNIQUE,
    "Notes" text NOT NULL DEFAULT ''
);

CREATE TABLE "Attachment" (
    "ID" INTEGER PRIMARY KEY AUTOINCREMENT,
    "Label" varchar(64) NOT NULL DEFAULT '',
    "Payload" longblob
);

CREATE TABLE "Counter" (
    "ID" INTEGER PRIMARY KEY AUTOINCREMENT
);

CREATE TABLE "Keyless" (
    "Name" text
);

CREATE TABLE "Oddity" (
    "ID" INTEGER PRIMARY KEY,
    "Shape" geometry
);
"""


class Widget(DataObject):
    """Public entity with one secondary unique key."""
    data_is_private = False


class Gadget(DataObject):
    """Public entity with a foreign key and a nullable unique key."""
    data_is_private = False


class Attachment(DataObject):
    """Private entity with a blob field, re-cached on dispose."""
    dispose_ttl = 60


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep process singletons and environment from leaking between tests."""
    monkeypatch.setenv("CACHE_BACKENDS", "memory")
    monkeypatch.setenv("DB_PATH", ":memory:")
    monkeypatch.delenv("CACHE_NAMESPACE", raising=False)
    monkeypatch.delenv("CACHE_REQUIRED", raising=False)
    monkeypatch.delenv("DEBUG_CACHE", raising=False)
    reset_settings()
    reset_cache_aside()
    reset_store()
    yield
    reset_settings()
    reset_cache_aside()
    reset_store()


@pytest.fixture
def project_root() -> Path:
    """Return project root path."""
    return PROJECT_ROOT


@pytest.fixture
def settings() -> Settings:
    """Settings read from the test environment."""
    return Settings()


@pytest.fixture
def store() -> SQLiteStore:
    """In-memory SQLite store with the test relations."""
    store = SQLiteStore(":memory:")
    store.executescript(TEST_SCHEMA)
    yield store
    store.close()


@pytest.fixture
def memory_cache() -> InMemoryCache:
    """Backend shared by the cache front and the assertions."""
    return InMemoryCache()


@pytest.fixture
def cache_aside(memory_cache) -> CacheAside:
    """Cache front over the in-memory backend."""
    return CacheAside([lambda: memory_cache])


@pytest.fixture
def persister(store, cache_aside, settings) -> Persister:
    """Persister over the test store and in-memory cache."""
    return Persister(store, cache_aside, settings)


@pytest.fixture
def session():
    """Active visitor session."""
    with session_scope() as active:
        yield active


@pytest.fixture
def select_row(store):
    """Read a row straight from the connection, bypassing the engine."""
    def _select(relation: str, identifier: int):
        cursor = store.connection.execute(f'SELECT * FROM "{relation}" WHERE "ID" = ?', (identifier,))
        row = cursor.fetchone()
        if row is None:
            return None
        return dict(zip([column[0] for column in cursor.description], row))
    return _select

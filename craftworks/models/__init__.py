"""
Models - Site entities on top of the data-mapping engine.

- world.py: Datacenter, World
- geography.py: Region, Zone
- crafting.py: Category, Macro
- schema.sql: Relations of all models
"""

from pathlib import Path

from craftworks.common.logging import get_logger
from craftworks.core.connectors.sqlite_store import SQLiteStore
from .base import PublicDataObject, reference_id
from .world import Datacenter, World
from .geography import Region, Zone
from .crafting import Category, Macro, short_code

logger = get_logger(__name__)

SCHEMA_PATH = Path(__file__).parent / "schema.sql"


def init_schema(store: SQLiteStore) -> None:
    """Create the model relations if they do not exist."""
    store.executescript(SCHEMA_PATH.read_text(encoding="utf-8"))
    logger.info(f"Schema initialized from {SCHEMA_PATH.name}")


__all__ = [
    "PublicDataObject",
    "reference_id",
    "Datacenter",
    "World",
    "Region",
    "Zone",
    "Category",
    "Macro",
    "short_code",
    "init_schema",
    "SCHEMA_PATH",
]

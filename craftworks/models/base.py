"""
Shared pieces of the site models.
"""

from typing import TYPE_CHECKING, Any, Optional, Type

from craftworks.core.mapping import DataObject

if TYPE_CHECKING:
    from craftworks.core.mapping import Persister


class PublicDataObject(DataObject):
    """
    Reference data shared by all visitors.

    Snapshots are cached publicly and kept with the persistent TTL.
    """

    data_is_private = False

    def post_create(self) -> None:
        self.persister.cache_unique_keys(self, ttl=self.persister.settings.cache_timeout_persistent)


def reference_id(
    cls: Type[DataObject],
    value: Any,
    persister: Optional["Persister"] = None,
    by_name: bool = False,
) -> int:
    """
    ID of a referenced entity given as an entity, an ID or (optionally) a name.

    Numeric values are checked for existence.

    Raises:
        ValueError: value is neither accepted form
        NotFoundError: referenced entity does not exist
    """
    if isinstance(value, cls):
        return value.id

    if isinstance(value, bool):
        raise ValueError(f"Invalid {cls.__name__} value {value!r}")

    if isinstance(value, int) or (isinstance(value, str) and value.isdigit()):
        return cls.find_unique("ID", int(value), persister=persister).id

    if by_name and isinstance(value, str):
        return cls.find_unique("Name", value, persister=persister).id

    raise ValueError(f"Invalid {cls.__name__} value {value!r}")

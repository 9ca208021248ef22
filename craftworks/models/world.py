"""
Game servers: datacenters and the worlds hosted in them.
"""

from typing import TYPE_CHECKING, Any, List, Optional, Union

from craftworks.core.mapping import DataObject
from .base import PublicDataObject, reference_id

if TYPE_CHECKING:
    from craftworks.core.mapping import Persister


class Datacenter(PublicDataObject):
    """Datacenter grouping several worlds."""

    def get_worlds(self) -> List["World"]:
        return World.get_by_datacenter(self, persister=self.persister)


class World(PublicDataObject):
    """Game world; Datacenter holds the ID of its datacenter."""

    @classmethod
    def get_by_datacenter(
        cls,
        value: Union[Datacenter, int, str],
        persister: Optional["Persister"] = None,
    ) -> List["World"]:
        """
        Worlds of a datacenter.

        Args:
            value: Datacenter entity, its ID, or its name
        """
        datacenter_id = reference_id(Datacenter, value, persister, by_name=True)
        return cls.get_all_by("Datacenter", datacenter_id, persister=persister)

    def SetDatacenter(self, value: Any) -> None:
        """Set the datacenter from an entity, an ID or a name."""
        self.set("Datacenter", reference_id(Datacenter, value, self.persister, by_name=True))

    def get_datacenter(self) -> DataObject:
        return Datacenter.find_unique("ID", self.get("Datacenter"), persister=self.persister)

"""
Map data: regions and their zones.

IDs follow the game database, so rows are imported with fixed IDs.
"""

from typing import TYPE_CHECKING, Any, List, Optional, Union

from .base import PublicDataObject, reference_id

if TYPE_CHECKING:
    from craftworks.core.mapping import Persister


class Region(PublicDataObject):
    """Map region with names per client language."""

    LA_NOSCEA = 502
    THANALAN = 505
    THE_BLACK_SHROUD = 507
    COERTHAS = 508
    MOR_DHONA = 509
    ABALATHIAS_SPINE = 510
    DRAVANIA = 511
    GYR_ABANIA = 514
    OTHARD = 515

    def get_zones(self) -> List["Zone"]:
        return Zone.get_by_region(self, persister=self.persister)


class Zone(PublicDataObject):
    """Map zone; Region holds the ID of its region."""

    LIMSA_LOMINSA = 27
    MIDDLE_LA_NOSCEA = 30
    LOWER_LA_NOSCEA = 31
    GRIDANIA = 39
    ULDAH = 51
    ISHGARD = 62
    MOR_DHONA = 67
    IDYLLSHIRE = 2082
    KUGANE = 2404

    @classmethod
    def get_by_region(
        cls,
        value: Union[Region, int],
        persister: Optional["Persister"] = None,
    ) -> List["Zone"]:
        """Zones of a region given as an entity or its ID."""
        region_id = reference_id(Region, value, persister)
        return cls.get_all_by("Region", region_id, persister=persister)

    def SetRegion(self, value: Any) -> None:
        """Set the region from an entity or an ID."""
        self.set("Region", reference_id(Region, value, self.persister))

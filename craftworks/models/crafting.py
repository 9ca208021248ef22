"""
Crafting data: action categories and saved macros.
"""

import json
import string
from typing import TYPE_CHECKING, Any, Dict, Optional

from craftworks.core.mapping import DataObject
from .base import PublicDataObject

if TYPE_CHECKING:
    from craftworks.core.mapping import Persister

SHORT_CODE_ALPHABET = string.digits + string.ascii_letters
SHORT_CODE_LENGTH = 4


def short_code(number: int, length: int = SHORT_CODE_LENGTH) -> str:
    """
    Reversible alphanumeric code of a positive integer, zero padded.

    Examples:
        short_code(1)    -> "0001"
        short_code(62)   -> "0010"
    """
    if number < 0:
        raise ValueError("short_code() requires a non-negative number")
    base = len(SHORT_CODE_ALPHABET)
    digits = []
    while number:
        number, remainder = divmod(number, base)
        digits.append(SHORT_CODE_ALPHABET[remainder])
    return "".join(reversed(digits)).rjust(length, SHORT_CODE_ALPHABET[0])


class Category(PublicDataObject):
    """Category of a crafting action."""

    PROGRESS = 1
    QUALITY = 2
    BUFF = 3
    RESTORE_CP = 4
    RESTORE_DURABILITY = 5
    SPECIALIST = 6
    OTHER = 7


class Macro(DataObject):
    """
    Saved crafting macro, addressed by its short Hash.

    Macros are user content, so they are cached publicly but only briefly.
    """

    data_is_private = False

    DEFAULT_WAIT_SKILL = 3
    DEFAULT_WAIT_BUFF = 2

    def post_create(self) -> None:
        self.persister.cache_unique_keys(self, ttl=self.persister.settings.cache_timeout_short)

    @classmethod
    def save(cls, data: Dict[str, Any], persister: Optional["Persister"] = None) -> "Macro":
        """
        Store a macro definition and give it a hash derived from its ID.

        Two writes: the row is inserted first to obtain the ID the hash is
        built from.
        """
        macro = cls.create_new(persister=persister)
        macro.set("Data", json.dumps(data))
        macro.set("Hash", None)
        macro.write()

        macro.set("Hash", short_code(macro.id))
        macro.write()
        return macro

    @classmethod
    def find_by_hash(cls, value: str, persister: Optional["Persister"] = None) -> "Macro":
        return cls.find_unique("Hash", value, persister=persister)

    def decoded(self) -> Dict[str, Any]:
        """Macro definition stored in Data."""
        return json.loads(self.get("Data") or "{}")

"""
In-process key-value database.

Used in development and tests. Data lives only as long as the process.
"""

import copy
from typing import Any, Optional

from kvdb.database import Database


class MemoryDatabase(Database):
    """
    Dictionary-backed database.

    Values are deep-copied on the way in and out so that callers holding a
    reference to a record cannot change what is stored without calling
    set() again, mirroring the behavior of a serializing backend.
    """

    def __init__(self):
        self._data: dict[str, Any] = {}

    async def get(self, key: str) -> Optional[Any]:
        if key not in self._data:
            return None
        return copy.deepcopy(self._data[key])

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    async def health_check(self) -> bool:
        return True

    def keys(self) -> list[str]:
        """Return the keys currently stored."""
        return list(self._data)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

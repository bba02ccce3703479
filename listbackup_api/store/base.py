"""Key-value store abstraction shared by every handler."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from listbackup_api.errors import NotFoundError


class ItemNotFound(NotFoundError):
    """No item exists under the requested key."""

    def __init__(self, table: str, key: Mapping):
        super().__init__(f"Item not found in {table}")
        self.table = table
        self.key = dict(key)


@dataclass
class QueryPage:
    items: list[dict] = field(default_factory=list)
    next_key: dict | None = None  # Pass back as start_key to fetch the next page


@dataclass(frozen=True)
class KeyRange:
    """Inclusive bounds on a sort key attribute. Either bound may be open."""

    attribute: str
    lower: Any = None
    upper: Any = None

    def contains(self, value) -> bool:
        if value is None:
            return False
        if self.lower is not None and value < self.lower:
            return False
        if self.upper is not None and value > self.upper:
            return False
        return True


class KeyValueStore(ABC):
    """Async item/query interface over one-table-per-entity storage.

    ``key`` arguments are equality mappings over the table's (or index's)
    key attributes; ``filters`` are equality mappings over other attributes.
    ``key_range`` bounds the sort key of the table or index being queried.
    """

    @abstractmethod
    async def get_item(self, table: str, key: Mapping) -> dict:
        """Return the item stored under ``key``. Raises ItemNotFound."""
        ...

    @abstractmethod
    async def put_item(self, table: str, item: Mapping) -> None:
        ...

    @abstractmethod
    async def update_item(self, table: str, key: Mapping, updates: Mapping) -> dict:
        """Set the given attributes on an existing item and return the new item.

        Raises ItemNotFound when nothing is stored under ``key``.
        """
        ...

    @abstractmethod
    async def query(
        self,
        table: str,
        key: Mapping,
        *,
        limit: int | None = None,
        start_key: Mapping | None = None,
        descending: bool = False,
        filters: Mapping | None = None,
        key_range: KeyRange | None = None,
    ) -> QueryPage:
        ...

    @abstractmethod
    async def query_index(
        self,
        table: str,
        index: str,
        key: Mapping,
        *,
        limit: int | None = None,
        start_key: Mapping | None = None,
        descending: bool = False,
        filters: Mapping | None = None,
        key_range: KeyRange | None = None,
    ) -> QueryPage:
        ...

    async def find_one(self, table: str, index: str, key: Mapping) -> dict | None:
        """First item of an index query, or None."""
        page = await self.query_index(table, index, key, limit=1)
        return page.items[0] if page.items else None

"""In-process store for local development and tests.

Index queries are equality scans over the whole table, so only use this
with small data sets. Results come back ordered by the sort key of the
table or index when one is known, otherwise in insertion order.
"""

import copy
from collections.abc import Mapping

from listbackup_api.store.base import ItemNotFound, KeyValueStore, QueryPage


class MemoryStore(KeyValueStore):

    def __init__(
        self,
        key_schema: Mapping[str, tuple[str, ...]] | None = None,
        index_sort_keys: Mapping[tuple[str, str], str] | None = None,
    ):
        self._key_schema = dict(key_schema or {})
        self._index_sort_keys = dict(index_sort_keys or {})
        self._tables: dict[str, list[dict]] = {}

    def seed(self, table: str, *items: Mapping) -> None:
        """Insert fixture items synchronously."""
        for item in items:
            self._put(table, item)

    def items(self, table: str) -> list[dict]:
        return copy.deepcopy(self._tables.get(table, []))

    def _key_of(self, table: str, item: Mapping) -> dict:
        fields = self._key_schema.get(table)
        if fields is None:
            raise KeyError(f"No key schema registered for table {table}")
        return {f: item.get(f) for f in fields}

    def _find(self, table: str, key: Mapping) -> int | None:
        for i, item in enumerate(self._tables.get(table, [])):
            if all(item.get(k) == v for k, v in key.items()):
                return i
        return None

    def _put(self, table: str, item: Mapping) -> None:
        rows = self._tables.setdefault(table, [])
        index = self._find(table, self._key_of(table, item))
        if index is None:
            rows.append(copy.deepcopy(dict(item)))
        else:
            rows[index] = copy.deepcopy(dict(item))

    async def get_item(self, table: str, key: Mapping) -> dict:
        index = self._find(table, key)
        if index is None:
            raise ItemNotFound(table, key)
        return copy.deepcopy(self._tables[table][index])

    async def put_item(self, table: str, item: Mapping) -> None:
        self._put(table, item)

    async def update_item(self, table: str, key: Mapping, updates: Mapping) -> dict:
        index = self._find(table, key)
        if index is None:
            raise ItemNotFound(table, key)
        self._tables[table][index].update(copy.deepcopy(dict(updates)))
        return copy.deepcopy(self._tables[table][index])

    async def query(self, table, key, *, limit=None, start_key=None, descending=False, filters=None, key_range=None):
        fields = self._key_schema.get(table, ())
        sort_key = fields[1] if len(fields) > 1 else None
        return self._scan(table, sort_key, key, limit, start_key, descending, filters, key_range)

    async def query_index(
        self, table, index, key, *, limit=None, start_key=None, descending=False, filters=None, key_range=None,
    ):
        sort_key = self._index_sort_keys.get((table, index))
        return self._scan(table, sort_key, key, limit, start_key, descending, filters, key_range)

    def _scan(self, table, sort_key, key, limit, start_key, descending, filters, key_range) -> QueryPage:
        conditions = {**key, **(filters or {})}
        rows = [
            item for item in self._tables.get(table, [])
            if all(item.get(k) == v for k, v in conditions.items())
            and (key_range is None or key_range.contains(item.get(key_range.attribute)))
        ]
        if sort_key:
            # Stable, so ties keep insertion order
            rows.sort(key=lambda item: (item.get(sort_key) is None, item.get(sort_key)))
        if descending:
            rows.reverse()

        if start_key:
            for i, item in enumerate(rows):
                if all(item.get(k) == v for k, v in start_key.items()):
                    rows = rows[i + 1:]
                    break

        next_key = None
        if limit is not None and len(rows) > limit:
            rows = rows[:limit]
            last = rows[-1]
            # Same shape as DynamoDB's LastEvaluatedKey: table key plus index key
            next_key = {**self._key_of(table, last), **{k: last.get(k) for k in key}}
            if sort_key:
                next_key[sort_key] = last.get(sort_key)
        return QueryPage(items=copy.deepcopy(rows), next_key=next_key)

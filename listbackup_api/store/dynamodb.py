"""DynamoDB-backed key-value store.

boto3 is synchronous, so every call runs in a worker thread. Table resources
are created lazily and reused for the life of the process.
"""

import asyncio
from collections.abc import Mapping
from decimal import Decimal
from functools import reduce

from listbackup_api.errors import DependencyError
from listbackup_api.logging.audit import get_audit_logger
from listbackup_api.store.base import ItemNotFound, KeyRange, KeyValueStore, QueryPage


def from_dynamo(value):
    """Convert boto3 output (Decimal numbers, sets) into JSON-friendly values."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: from_dynamo(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [from_dynamo(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return sorted(from_dynamo(v) for v in value)
    return value


def to_dynamo(value):
    """boto3 rejects floats; store them as Decimal."""
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_dynamo(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_dynamo(v) for v in value]
    return value


class DynamoDBStore(KeyValueStore):

    def __init__(self, region: str = "us-east-1"):
        self._region = region
        self._resource = None
        self._tables: dict = {}

    def _get_table(self, name: str):
        """Lazy-init boto3 Table resource."""
        if name not in self._tables:
            if self._resource is None:
                import boto3

                self._resource = boto3.resource("dynamodb", region_name=self._region)
            self._tables[name] = self._resource.Table(name)
        return self._tables[name]

    async def _call(self, table: str, operation: str, fn, **kwargs):
        from botocore.exceptions import ClientError

        try:
            return await asyncio.to_thread(fn, **kwargs)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code == "ConditionalCheckFailedException":
                raise
            get_audit_logger().error(
                "DynamoDB call failed",
                extra={"audit_data": {"table": table, "operation": operation, "error_code": code}},
            )
            raise DependencyError(f"Storage operation failed on {table}") from e

    async def get_item(self, table: str, key: Mapping) -> dict:
        resp = await self._call(table, "GetItem", self._get_table(table).get_item, Key=dict(key))
        item = resp.get("Item")
        if item is None:
            raise ItemNotFound(table, key)
        return from_dynamo(item)

    async def put_item(self, table: str, item: Mapping) -> None:
        await self._call(table, "PutItem", self._get_table(table).put_item, Item=to_dynamo(dict(item)))

    async def update_item(self, table: str, key: Mapping, updates: Mapping) -> dict:
        from boto3.dynamodb.conditions import Attr
        from botocore.exceptions import ClientError

        names, values, assignments = {}, {}, []
        for i, (field, value) in enumerate(updates.items()):
            names[f"#f{i}"] = field
            values[f":v{i}"] = to_dynamo(value)
            assignments.append(f"#f{i} = :v{i}")

        first_key = next(iter(key))
        try:
            resp = await self._call(
                table,
                "UpdateItem",
                self._get_table(table).update_item,
                Key=dict(key),
                UpdateExpression="SET " + ", ".join(assignments),
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ConditionExpression=Attr(first_key).exists(),
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            # Only conditional failures get past _call
            raise ItemNotFound(table, key) from e
        return from_dynamo(resp.get("Attributes", {}))

    async def query(self, table, key, *, limit=None, start_key=None, descending=False, filters=None, key_range=None):
        return await self._query(table, None, key, limit, start_key, descending, filters, key_range)

    async def query_index(
        self, table, index, key, *, limit=None, start_key=None, descending=False, filters=None, key_range=None,
    ):
        return await self._query(table, index, key, limit, start_key, descending, filters, key_range)

    async def _query(self, table, index, key, limit, start_key, descending, filters, key_range) -> QueryPage:
        from boto3.dynamodb.conditions import Attr, Key

        conditions = [Key(k).eq(v) for k, v in key.items()]
        if key_range is not None:
            conditions.append(_range_condition(Key(key_range.attribute), key_range))
        params: dict = {
            "KeyConditionExpression": reduce(lambda acc, cond: acc & cond, conditions),
            "ScanIndexForward": not descending,
        }
        if index:
            params["IndexName"] = index
        if limit is not None:
            params["Limit"] = limit
        if start_key:
            params["ExclusiveStartKey"] = to_dynamo(dict(start_key))
        if filters:
            params["FilterExpression"] = reduce(
                lambda acc, cond: acc & cond,
                [Attr(k).eq(v) for k, v in filters.items()],
            )

        resp = await self._call(table, "Query", self._get_table(table).query, **params)
        last_key = resp.get("LastEvaluatedKey")
        return QueryPage(
            items=[from_dynamo(item) for item in resp.get("Items", [])],
            next_key=from_dynamo(last_key) if last_key else None,
        )


def _range_condition(key, key_range: KeyRange):
    lower, upper = to_dynamo(key_range.lower), to_dynamo(key_range.upper)
    if lower is not None and upper is not None:
        return key.between(lower, upper)
    if lower is not None:
        return key.gte(lower)
    if upper is not None:
        return key.lte(upper)
    raise ValueError("KeyRange needs at least one bound")

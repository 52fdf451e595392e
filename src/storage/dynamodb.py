"""DynamoDB store backend.

Each logical table maps to one DynamoDB table keyed ``owner_id`` (HASH) +
``id`` (RANGE), named ``<prefix><TableName>`` (e.g. ResellerInventoryItems).
Multi-record writes go through TransactWriteItems.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import boto3
from boto3.dynamodb.conditions import Attr, Key
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError

from src.core.errors import ConditionFailedError, StorageError
from src.storage.base import BaseStore, WriteKind, WriteOp
from src.storage.changes import ChangeFeed

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "Reseller"

# Number of ops DynamoDB accepts in one TransactWriteItems call
MAX_TRANSACT_ITEMS = 100


def physical_table_name(prefix: str, table: str) -> str:
    return prefix + "".join(part.capitalize() for part in table.split("_"))


def _condition_parts(op: WriteOp) -> tuple[str, dict[str, str], dict[str, Any]]:
    """ConditionExpression, attribute names and python values for one op."""
    names = {"#id": "id"}
    values: dict[str, Any] = {}

    if op.kind == WriteKind.PUT:
        return "attribute_not_exists(#id)", names, values

    clauses = ["attribute_exists(#id)"]
    for i, (field_name, allowed) in enumerate(sorted(op.expected.items())):
        names[f"#c{i}"] = field_name
        placeholders = []
        for j, value in enumerate(allowed):
            placeholders.append(f":c{i}_{j}")
            values[f":c{i}_{j}"] = value
        clauses.append(f"#c{i} IN ({', '.join(placeholders)})")
    return " AND ".join(clauses), names, values


def _update_parts(op: WriteOp) -> tuple[str, dict[str, str], dict[str, Any]]:
    names: dict[str, str] = {}
    values: dict[str, Any] = {}
    assignments = []
    for i, (field_name, value) in enumerate(sorted(op.changes().items())):
        names[f"#u{i}"] = field_name
        values[f":u{i}"] = value
        assignments.append(f"#u{i} = :u{i}")
    if not assignments:
        raise ValueError(f"Update of {op.table} record {op.record_id} sets no fields")
    return "SET " + ", ".join(assignments), names, values


def _is_condition_failure(error: ClientError) -> bool:
    code = error.response.get("Error", {}).get("Code", "")
    if code == "ConditionalCheckFailedException":
        return True
    if code == "TransactionCanceledException":
        reasons = error.response.get("CancellationReasons", [])
        return any(r.get("Code") == "ConditionalCheckFailed" for r in reasons)
    return False


class DynamoStore(BaseStore):
    def __init__(
        self,
        table_prefix: str = DEFAULT_PREFIX,
        region_name: str = "us-west-2",
        endpoint_url: Optional[str] = None,
        dynamodb_resource: Optional[Any] = None,
        change_feed: Optional[ChangeFeed] = None,
    ):
        super().__init__(change_feed)
        self.table_prefix = table_prefix
        # dependency injection for tests
        self.dynamodb = dynamodb_resource or boto3.resource(
            "dynamodb", region_name=region_name, endpoint_url=endpoint_url
        )
        self._serializer = TypeSerializer()
        logger.info("DynamoDB store ready (prefix: %s, region: %s)", table_prefix, region_name)

    def _table(self, table: str):
        return self.dynamodb.Table(physical_table_name(self.table_prefix, table))

    # --- Reads ---

    def get(self, table: str, owner_id: str, record_id: str) -> Optional[dict]:
        try:
            response = self._table(table).get_item(Key={"owner_id": owner_id, "id": record_id})
        except ClientError as e:
            logger.error("DynamoDB get_item failed [%s/%s]: %s", table, record_id, e)
            raise StorageError(f"Could not read {table} record {record_id}", e) from e
        return response.get("Item")

    def query(self, table: str, owner_id: str, **filters: Any) -> list[dict]:
        params: dict[str, Any] = {"KeyConditionExpression": Key("owner_id").eq(owner_id)}
        filter_expression = None
        for field_name, value in filters.items():
            condition = Attr(field_name).eq(value)
            filter_expression = condition if filter_expression is None else filter_expression & condition
        if filter_expression is not None:
            params["FilterExpression"] = filter_expression

        items: list[dict] = []
        dynamo_table = self._table(table)
        try:
            while True:
                response = dynamo_table.query(**params)
                items.extend(response.get("Items", []))
                if "LastEvaluatedKey" not in response:
                    break
                params["ExclusiveStartKey"] = response["LastEvaluatedKey"]
        except ClientError as e:
            logger.error("DynamoDB query failed [%s/%s]: %s", table, owner_id, e)
            raise StorageError(f"Could not query {table}", e) from e
        return items

    # --- Writes ---

    def _commit(self, ops: list[WriteOp]) -> None:
        if len(ops) == 1:
            self._write_single(ops[0])
            return
        if len(ops) > MAX_TRANSACT_ITEMS:
            raise StorageError(f"Transaction too large: {len(ops)} ops (max {MAX_TRANSACT_ITEMS})")

        transact_items = [self._transact_item(op) for op in ops]
        try:
            self.dynamodb.meta.client.transact_write_items(TransactItems=transact_items)
        except ClientError as e:
            if _is_condition_failure(e):
                logger.info("Transaction precondition failed: %s", e)
                raise ConditionFailedError("A record changed before the write could be applied", e) from e
            logger.error("DynamoDB transaction failed: %s", e)
            raise StorageError("Transaction failed", e) from e

    def _write_single(self, op: WriteOp) -> None:
        dynamo_table = self._table(op.table)
        key = {"owner_id": op.owner_id, "id": op.record_id}
        condition, names, values = _condition_parts(op)
        try:
            if op.kind == WriteKind.PUT:
                dynamo_table.put_item(
                    Item=op.record(),
                    ConditionExpression=condition,
                    ExpressionAttributeNames=names,
                )
            elif op.kind == WriteKind.UPDATE:
                update, update_names, update_values = _update_parts(op)
                dynamo_table.update_item(
                    Key=key,
                    UpdateExpression=update,
                    ConditionExpression=condition,
                    ExpressionAttributeNames={**names, **update_names},
                    ExpressionAttributeValues={**values, **update_values},
                )
            else:
                params: dict[str, Any] = {
                    "Key": key,
                    "ConditionExpression": condition,
                    "ExpressionAttributeNames": names,
                }
                if values:
                    params["ExpressionAttributeValues"] = values
                dynamo_table.delete_item(**params)
        except ClientError as e:
            if _is_condition_failure(e):
                logger.info("Precondition failed [%s %s/%s]", op.kind.value, op.table, op.record_id)
                raise ConditionFailedError(
                    f"Precondition failed for {op.table} record {op.record_id}", e
                ) from e
            logger.error("DynamoDB %s failed [%s/%s]: %s", op.kind.value, op.table, op.record_id, e)
            raise StorageError(f"Could not {op.kind.value} {op.table} record {op.record_id}", e) from e

    def _serialize(self, values: dict) -> dict:
        return {k: self._serializer.serialize(v) for k, v in values.items()}

    def _transact_item(self, op: WriteOp) -> dict:
        table_name = physical_table_name(self.table_prefix, op.table)
        key = self._serialize({"owner_id": op.owner_id, "id": op.record_id})
        condition, names, values = _condition_parts(op)

        if op.kind == WriteKind.PUT:
            return {
                "Put": {
                    "TableName": table_name,
                    "Item": self._serialize(op.record()),
                    "ConditionExpression": condition,
                    "ExpressionAttributeNames": names,
                }
            }

        if op.kind == WriteKind.UPDATE:
            update, update_names, update_values = _update_parts(op)
            return {
                "Update": {
                    "TableName": table_name,
                    "Key": key,
                    "UpdateExpression": update,
                    "ConditionExpression": condition,
                    "ExpressionAttributeNames": {**names, **update_names},
                    "ExpressionAttributeValues": self._serialize({**values, **update_values}),
                }
            }

        delete: dict[str, Any] = {
            "TableName": table_name,
            "Key": key,
            "ConditionExpression": condition,
            "ExpressionAttributeNames": names,
        }
        if values:
            delete["ExpressionAttributeValues"] = self._serialize(values)
        return {"Delete": delete}

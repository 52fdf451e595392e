"""Table-shaped data store boundary.

Records are plain dicts keyed by ``owner_id`` + ``id``. Every call is scoped
to one owner. Writes are expressed as WriteOp values so that a group of
them can be committed all-or-nothing through ``transact``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from src.models.reseller import ChangeEvent, ChangeType
from src.storage.changes import ChangeFeed

logger = logging.getLogger(__name__)

INVENTORY_ITEMS = "inventory_items"
SALES = "sales"
PLATFORMS = "platforms"
CATEGORIES = "categories"
STORES = "stores"
EXPENSES = "expenses"

TABLES = (INVENTORY_ITEMS, SALES, PLATFORMS, CATEGORIES, STORES, EXPENSES)

KEY_FIELDS = ("owner_id", "id")


class WriteKind(str, Enum):
    PUT = "put"
    UPDATE = "update"
    DELETE = "delete"


@dataclass
class WriteOp:
    """One write inside a transaction.

    ``expected`` maps a field name to the values it may currently hold; the
    whole transaction fails if any of them does not match. PUT requires the
    record to be absent, UPDATE and DELETE require it to exist.
    """

    kind: WriteKind
    table: str
    owner_id: str
    record_id: str
    values: dict = field(default_factory=dict)
    expected: dict[str, tuple] = field(default_factory=dict)

    @classmethod
    def put(cls, table: str, owner_id: str, record_id: str, values: dict) -> WriteOp:
        return cls(WriteKind.PUT, table, owner_id, record_id, values=values)

    @classmethod
    def update(
        cls,
        table: str,
        owner_id: str,
        record_id: str,
        values: dict,
        expected: Optional[dict[str, tuple]] = None,
    ) -> WriteOp:
        return cls(WriteKind.UPDATE, table, owner_id, record_id, values=values, expected=expected or {})

    @classmethod
    def delete(
        cls,
        table: str,
        owner_id: str,
        record_id: str,
        expected: Optional[dict[str, tuple]] = None,
    ) -> WriteOp:
        return cls(WriteKind.DELETE, table, owner_id, record_id, expected=expected or {})

    def record(self) -> dict:
        """Full record for a PUT, key fields included."""
        return {**self.values, "owner_id": self.owner_id, "id": self.record_id}

    def changes(self) -> dict:
        """Fields an UPDATE sets, key fields stripped."""
        return {k: v for k, v in self.values.items() if k not in KEY_FIELDS}

    def change_type(self) -> ChangeType:
        return {
            WriteKind.PUT: ChangeType.INSERT,
            WriteKind.UPDATE: ChangeType.UPDATE,
            WriteKind.DELETE: ChangeType.DELETE,
        }[self.kind]


class BaseStore(ABC):
    """Owner-scoped CRUD plus atomic multi-record writes.

    Subclasses implement ``get``, ``query`` and ``_commit``. Change events are
    published to the feed only after a commit succeeds.
    """

    def __init__(self, change_feed: Optional[ChangeFeed] = None):
        self.change_feed = change_feed or ChangeFeed()

    # --- Reads ---

    @abstractmethod
    def get(self, table: str, owner_id: str, record_id: str) -> Optional[dict]:
        ...

    @abstractmethod
    def query(self, table: str, owner_id: str, **filters: Any) -> list[dict]:
        """Every record of the owner whose fields equal the given filters."""
        ...

    # --- Writes ---

    @abstractmethod
    def _commit(self, ops: list[WriteOp]) -> None:
        """Applies every op or none; raises ConditionFailedError on a failed precondition."""
        ...

    def put(self, table: str, owner_id: str, record_id: str, values: dict) -> dict:
        op = WriteOp.put(table, owner_id, record_id, values)
        self.transact([op])
        return op.record()

    def update(
        self,
        table: str,
        owner_id: str,
        record_id: str,
        values: dict,
        expected: Optional[dict[str, tuple]] = None,
    ) -> Optional[dict]:
        self.transact([WriteOp.update(table, owner_id, record_id, values, expected)])
        return self.get(table, owner_id, record_id)

    def delete(
        self,
        table: str,
        owner_id: str,
        record_id: str,
        expected: Optional[dict[str, tuple]] = None,
    ) -> None:
        self.transact([WriteOp.delete(table, owner_id, record_id, expected)])

    def transact(self, ops: list[WriteOp]) -> None:
        if not ops:
            return
        for op in ops:
            if op.table not in TABLES:
                raise ValueError(f"Unknown table: {op.table}")
        self._commit(ops)
        logger.debug("Committed %d write(s): %s", len(ops), [(o.kind.value, o.table, o.record_id) for o in ops])
        for op in ops:
            self.change_feed.publish(
                ChangeEvent(
                    table=op.table,
                    owner_id=op.owner_id,
                    change_type=op.change_type(),
                    record_id=op.record_id,
                )
            )

    def is_empty(self, owner_id: str) -> bool:
        return all(not self.query(table, owner_id) for table in TABLES)

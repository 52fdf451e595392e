"""In-process store backend used by tests, the demo and local runs."""

from __future__ import annotations

import copy
import logging
import threading
from typing import Any, Optional

from src.core.errors import ConditionFailedError
from src.storage.base import BaseStore, WriteKind, WriteOp
from src.storage.changes import ChangeFeed

logger = logging.getLogger(__name__)


class InMemoryStore(BaseStore):
    def __init__(self, change_feed: Optional[ChangeFeed] = None):
        super().__init__(change_feed)
        self._tables: dict[tuple[str, str], dict[str, dict]] = {}
        self._lock = threading.Lock()

    def get(self, table: str, owner_id: str, record_id: str) -> Optional[dict]:
        with self._lock:
            record = self._tables.get((table, owner_id), {}).get(record_id)
            return copy.deepcopy(record) if record is not None else None

    def query(self, table: str, owner_id: str, **filters: Any) -> list[dict]:
        with self._lock:
            records = list(self._tables.get((table, owner_id), {}).values())
            return [
                copy.deepcopy(r)
                for r in records
                if all(r.get(k) == v for k, v in filters.items())
            ]

    def _commit(self, ops: list[WriteOp]) -> None:
        with self._lock:
            # Check every precondition before touching anything
            for op in ops:
                self._check(op)

            for op in ops:
                rows = self._tables.setdefault((op.table, op.owner_id), {})
                if op.kind == WriteKind.PUT:
                    rows[op.record_id] = copy.deepcopy(op.record())
                elif op.kind == WriteKind.UPDATE:
                    rows[op.record_id].update(copy.deepcopy(op.changes()))
                else:
                    del rows[op.record_id]

    def _check(self, op: WriteOp) -> None:
        current = self._tables.get((op.table, op.owner_id), {}).get(op.record_id)
        if op.kind == WriteKind.PUT:
            if current is not None:
                raise ConditionFailedError(f"{op.table} record already exists: {op.record_id}")
            return
        if current is None:
            raise ConditionFailedError(f"{op.table} record does not exist: {op.record_id}")
        for field_name, allowed in op.expected.items():
            if current.get(field_name) not in allowed:
                logger.info(
                    "Precondition failed on %s/%s: %s=%s not in %s",
                    op.table,
                    op.record_id,
                    field_name,
                    current.get(field_name),
                    allowed,
                )
                raise ConditionFailedError(
                    f"{op.table} record {op.record_id} has {field_name}={current.get(field_name)!r}"
                )

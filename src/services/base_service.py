"""Common base for the owner-scoped entity services."""

from __future__ import annotations

import logging
import uuid
from typing import Callable, TypeVar

from src.core.errors import NotFoundError, ValidationError
from src.storage.base import BaseStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BaseService:
    """Binds a store to one owner; every read and write goes through this owner."""

    def __init__(self, store: BaseStore, owner_id: str):
        if not owner_id:
            raise ValueError("owner_id is required")
        self.store = store
        self.owner_id = owner_id
        logger.debug("%s ready for owner %s", type(self).__name__, owner_id)

    @staticmethod
    def new_id() -> str:
        return str(uuid.uuid4())

    def _require(self, table: str, record_id: str, decode: Callable[[dict], T]) -> T:
        record = self.store.get(table, self.owner_id, record_id) if record_id else None
        if record is None:
            raise NotFoundError(table, record_id)
        return decode(record)

    def _list(self, table: str, decode: Callable[[dict], T], **filters) -> list[T]:
        return [decode(r) for r in self.store.query(table, self.owner_id, **filters)]

    @staticmethod
    def _reject_unknown(changes: dict, allowed: set[str]) -> None:
        unknown = sorted(set(changes) - allowed)
        if unknown:
            raise ValidationError([f"Field cannot be changed: {name}" for name in unknown])

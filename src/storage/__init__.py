from __future__ import annotations

from typing import Any, Optional

from src.config import Settings
from src.storage.base import (
    CATEGORIES,
    EXPENSES,
    INVENTORY_ITEMS,
    PLATFORMS,
    SALES,
    STORES,
    TABLES,
    BaseStore,
    WriteKind,
    WriteOp,
)
from src.storage.changes import ChangeFeed, Subscription, Watch
from src.storage.dynamodb import DynamoStore
from src.storage.memory import InMemoryStore

__all__ = [
    "CATEGORIES",
    "EXPENSES",
    "INVENTORY_ITEMS",
    "PLATFORMS",
    "SALES",
    "STORES",
    "TABLES",
    "BaseStore",
    "ChangeFeed",
    "DynamoStore",
    "InMemoryStore",
    "Subscription",
    "Watch",
    "WriteKind",
    "WriteOp",
    "build_store",
]


def build_store(settings: Settings, dynamodb_resource: Optional[Any] = None) -> BaseStore:
    """Store backend selected by settings.backend."""
    if settings.backend == "dynamodb":
        return DynamoStore(
            table_prefix=settings.table_prefix,
            region_name=settings.region,
            endpoint_url=settings.dynamodb_endpoint_url,
            dynamodb_resource=dynamodb_resource,
        )
    return InMemoryStore()

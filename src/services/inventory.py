"""Inventory intake, editing and the manual lifecycle steps (list, ship)."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

from src.core import lifecycle
from src.core.errors import (
    ConditionFailedError,
    InvalidTransitionError,
    ReferentialIntegrityError,
)
from src.core.lifecycle import Trigger
from src.core.profit import to_money
from src.core.queries import ItemQuery, apply_item_query
from src.core.validation import validate_item
from src.models.reseller import InventoryItem, ItemStatus, utc_now_iso
from src.services.base_service import BaseService
from src.storage.base import CATEGORIES, INVENTORY_ITEMS, SALES, STORES
from src.storage.records import item_from_record, item_to_record

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = {
    "title",
    "description",
    "purchase_date",
    "purchase_price",
    "store_id",
    "category_id",
    "status",
    "bin_location",
}


def _status_value(status: Any) -> Any:
    return status.value if isinstance(status, ItemStatus) else status


class InventoryService(BaseService):
    def create_item(
        self,
        title: str,
        description: str = "",
        purchase_date: Optional[date] = None,
        purchase_price: Any = None,
        store_id: Optional[str] = None,
        category_id: Optional[str] = None,
        bin_location: str = "",
        status: ItemStatus = lifecycle.INITIAL_STATUS,
    ) -> InventoryItem:
        values = {
            "title": title,
            "purchase_date": purchase_date,
            "purchase_price": purchase_price,
            "status": _status_value(status),
        }
        validate_item(values).raise_if_invalid()
        self._check_references(store_id, category_id)

        item = InventoryItem(
            item_id=self.new_id(),
            owner_id=self.owner_id,
            title=title.strip(),
            description=description or "",
            purchase_date=purchase_date,
            purchase_price=to_money(purchase_price) if purchase_price is not None else None,
            store_id=store_id or None,
            category_id=category_id or None,
            status=ItemStatus(status),
            bin_location=bin_location or "",
        )
        self.store.put(INVENTORY_ITEMS, self.owner_id, item.item_id, item_to_record(item))
        logger.info("Item created: %s (%s)", item.title, item.item_id)
        return item

    def update_item(self, item_id: str, **changes: Any) -> InventoryItem:
        """Edits an item. Status may be set directly here, outside the lifecycle triggers."""
        self._reject_unknown(changes, EDITABLE_FIELDS)
        current = self.get_item(item_id)

        values = {
            "title": changes.get("title", current.title),
            "purchase_date": changes.get("purchase_date", current.purchase_date),
            "purchase_price": changes.get("purchase_price", current.purchase_price),
            "status": _status_value(changes.get("status", current.status)),
        }
        validate_item(values).raise_if_invalid()
        if "store_id" in changes or "category_id" in changes:
            self._check_references(changes.get("store_id"), changes.get("category_id"))

        for key, value in changes.items():
            setattr(current, key, value)
        current.title = current.title.strip()
        current.store_id = current.store_id or None
        current.category_id = current.category_id or None
        current.status = ItemStatus(current.status)
        if current.purchase_price is not None:
            current.purchase_price = to_money(current.purchase_price)
        current.updated_at = utc_now_iso()

        record = item_to_record(current)
        self.store.update(
            INVENTORY_ITEMS,
            self.owner_id,
            item_id,
            {k: record[k] for k in (*changes.keys(), "title", "status", "updated_at")},
        )
        logger.info("Item updated: %s (%s)", item_id, ", ".join(sorted(changes)))
        return current

    def get_item(self, item_id: str) -> InventoryItem:
        return self._require(INVENTORY_ITEMS, item_id, item_from_record)

    def all_items(self) -> list[InventoryItem]:
        return self._list(INVENTORY_ITEMS, item_from_record)

    def list_items(self, query: Optional[ItemQuery] = None) -> list[InventoryItem]:
        query = query or ItemQuery()
        store_names = {r["id"]: r.get("name", "") for r in self.store.query(STORES, self.owner_id)}
        category_names = {r["id"]: r.get("name", "") for r in self.store.query(CATEGORIES, self.owner_id)}
        return apply_item_query(self.all_items(), query, store_names, category_names)

    # --- Lifecycle ---

    def mark_listed(self, item_id: str) -> InventoryItem:
        return self._transition(item_id, Trigger.LIST)

    def mark_shipped(self, item_id: str) -> InventoryItem:
        return self._transition(item_id, Trigger.SHIP)

    def _transition(self, item_id: str, trigger: Trigger) -> InventoryItem:
        item = self.get_item(item_id)
        previous = item.status
        item.status = lifecycle.apply(trigger, item.status)
        item.updated_at = utc_now_iso()

        sources = tuple(s.value for s in lifecycle.allowed_sources(trigger))
        try:
            self.store.update(
                INVENTORY_ITEMS,
                self.owner_id,
                item_id,
                {"status": item.status.value, "updated_at": item.updated_at},
                expected={"status": sources},
            )
        except ConditionFailedError as e:
            raise InvalidTransitionError(
                f"Item {item_id} changed status before it could be marked {item.status.value}"
            ) from e

        logger.info("Item %s: %s -> %s", item_id, previous.value, item.status.value)
        return item

    def delete_item(self, item_id: str) -> None:
        self.get_item(item_id)
        sales = self.store.query(SALES, self.owner_id, inventory_item_id=item_id)
        if sales:
            raise ReferentialIntegrityError(
                f"Item is referenced by {len(sales)} sale(s); delete the sale first"
            )
        self.store.delete(INVENTORY_ITEMS, self.owner_id, item_id)
        logger.info("Item deleted: %s", item_id)

    def _check_references(self, store_id: Optional[str], category_id: Optional[str]) -> None:
        if store_id:
            self._require(STORES, store_id, lambda r: r)
        if category_id:
            self._require(CATEGORIES, category_id, lambda r: r)

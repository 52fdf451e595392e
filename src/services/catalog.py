"""Platforms, stores and categories."""

from __future__ import annotations

import logging
from dataclasses import asdict
from decimal import Decimal
from typing import Any, Optional

from src.core import categories as category_tree
from src.core.errors import ReferentialIntegrityError, ValidationError
from src.core.profit import to_money
from src.core.validation import validate_category, validate_platform, validate_store
from src.models.reseller import Category, FeeStructure, Platform, Store
from src.services.base_service import BaseService
from src.storage.base import CATEGORIES, INVENTORY_ITEMS, PLATFORMS, STORES
from src.storage.records import (
    category_from_record,
    category_to_record,
    platform_from_record,
    platform_to_record,
    store_from_record,
    store_to_record,
)

logger = logging.getLogger(__name__)


class PlatformService(BaseService):
    def create_platform(
        self,
        name: str,
        base_fee: Any = 0,
        percentage_fee: Any = 0,
        active: bool = True,
    ) -> Platform:
        validate_platform(
            {"name": name, "base_fee": base_fee, "percentage_fee": percentage_fee}
        ).raise_if_invalid()

        platform = Platform(
            platform_id=self.new_id(),
            owner_id=self.owner_id,
            name=name.strip(),
            fee_structure=FeeStructure(
                base_fee=to_money(base_fee), percentage_fee=Decimal(str(percentage_fee))
            ),
            active=active,
        )
        record = platform_to_record(platform)
        self.store.put(PLATFORMS, self.owner_id, platform.platform_id, record)
        logger.info("Platform created: %s (%s)", platform.name, platform.platform_id)
        return platform

    def update_platform(self, platform_id: str, **changes: Any) -> Platform:
        self._reject_unknown(changes, {"name", "base_fee", "percentage_fee", "active"})
        current = self.get_platform(platform_id)

        merged = {
            "name": changes.get("name", current.name),
            "base_fee": changes.get("base_fee", current.fee_structure.base_fee),
            "percentage_fee": changes.get("percentage_fee", current.fee_structure.percentage_fee),
        }
        validate_platform(merged).raise_if_invalid()

        current.name = str(merged["name"]).strip()
        current.fee_structure = FeeStructure(
            base_fee=to_money(merged["base_fee"]),
            percentage_fee=Decimal(str(merged["percentage_fee"])),
        )
        current.active = bool(changes.get("active", current.active))

        record = platform_to_record(current)
        self.store.update(
            PLATFORMS,
            self.owner_id,
            platform_id,
            {k: record[k] for k in ("name", "fee_structure", "active")},
        )
        logger.info("Platform updated: %s", platform_id)
        return current

    def get_platform(self, platform_id: str) -> Platform:
        return self._require(PLATFORMS, platform_id, platform_from_record)

    def list_platforms(self, active_only: bool = False) -> list[Platform]:
        platforms = self._list(PLATFORMS, platform_from_record)
        if active_only:
            platforms = [p for p in platforms if p.active]
        return sorted(platforms, key=lambda p: p.name.lower())

    def delete_platform(self, platform_id: str) -> None:
        """Sales that referenced the platform report it as Unknown afterwards."""
        self.get_platform(platform_id)
        self.store.delete(PLATFORMS, self.owner_id, platform_id)
        logger.info("Platform deleted: %s", platform_id)


class StoreService(BaseService):
    def create_store(self, name: str, location: str = "", notes: str = "") -> Store:
        validate_store({"name": name}).raise_if_invalid()
        store = Store(
            store_id=self.new_id(),
            owner_id=self.owner_id,
            name=name.strip(),
            location=location or "",
            notes=notes or "",
        )
        self.store.put(STORES, self.owner_id, store.store_id, store_to_record(store))
        logger.info("Store created: %s (%s)", store.name, store.store_id)
        return store

    def update_store(self, store_id: str, **changes: Any) -> Store:
        self._reject_unknown(changes, {"name", "location", "notes"})
        current = self.get_store(store_id)
        values = {**asdict(current), **changes}
        validate_store(values).raise_if_invalid()

        current.name = str(values["name"]).strip()
        current.location = values["location"] or ""
        current.notes = values["notes"] or ""
        record = store_to_record(current)
        self.store.update(
            STORES, self.owner_id, store_id, {k: record[k] for k in ("name", "location", "notes")}
        )
        logger.info("Store updated: %s", store_id)
        return current

    def get_store(self, store_id: str) -> Store:
        return self._require(STORES, store_id, store_from_record)

    def list_stores(self) -> list[Store]:
        return sorted(self._list(STORES, store_from_record), key=lambda s: s.name.lower())

    def delete_store(self, store_id: str) -> None:
        """Items sourced from the store keep their store_id, which no longer resolves."""
        self.get_store(store_id)
        self.store.delete(STORES, self.owner_id, store_id)
        logger.info("Store deleted: %s", store_id)


class CategoryService(BaseService):
    def create_category(self, name: str, parent_id: Optional[str] = None) -> Category:
        validate_category({"name": name}).raise_if_invalid()
        if parent_id:
            self.get_category(parent_id)

        category = Category(
            category_id=self.new_id(),
            owner_id=self.owner_id,
            name=name.strip(),
            parent_id=parent_id or None,
        )
        self.store.put(CATEGORIES, self.owner_id, category.category_id, category_to_record(category))
        logger.info("Category created: %s (%s)", category.name, category.category_id)
        return category

    def update_category(self, category_id: str, **changes: Any) -> Category:
        self._reject_unknown(changes, {"name", "parent_id"})
        current = self.get_category(category_id)

        name = changes.get("name", current.name)
        validate_category({"name": name}).raise_if_invalid()

        parent_id = changes.get("parent_id", current.parent_id) or None
        if parent_id != current.parent_id and parent_id is not None:
            self.get_category(parent_id)
            if category_tree.would_create_cycle(self.list_categories(), category_id, parent_id):
                raise ValidationError(["A category cannot be moved under itself or one of its subcategories"])

        current.name = str(name).strip()
        current.parent_id = parent_id
        self.store.update(
            CATEGORIES,
            self.owner_id,
            category_id,
            {"name": current.name, "parent_id": current.parent_id},
        )
        logger.info("Category updated: %s", category_id)
        return current

    def get_category(self, category_id: str) -> Category:
        return self._require(CATEGORIES, category_id, category_from_record)

    def list_categories(self) -> list[Category]:
        return sorted(self._list(CATEGORIES, category_from_record), key=lambda c: c.name.lower())

    def eligible_parents(self, category_id: Optional[str] = None) -> list[Category]:
        return category_tree.eligible_parents(self.list_categories(), category_id)

    def tree(self) -> list[dict]:
        return category_tree.build_tree(self.list_categories())

    def delete_category(self, category_id: str) -> None:
        self.get_category(category_id)

        children = self.store.query(CATEGORIES, self.owner_id, parent_id=category_id)
        if children:
            raise ReferentialIntegrityError(
                f"Category has {len(children)} subcategories; delete or move them first"
            )
        items = self.store.query(INVENTORY_ITEMS, self.owner_id, category_id=category_id)
        if items:
            raise ReferentialIntegrityError(
                f"Category is used by {len(items)} inventory items; reassign them first"
            )

        self.store.delete(CATEGORIES, self.owner_id, category_id)
        logger.info("Category deleted: %s", category_id)

"""Wires one store and one owner into every service."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from src.config import Settings
from src.services.analytics import AnalyticsService
from src.services.catalog import CategoryService, PlatformService, StoreService
from src.services.expenses import ExpenseService
from src.services.inventory import InventoryService
from src.services.sales import SaleService
from src.storage import BaseStore, build_store

logger = logging.getLogger(__name__)


@dataclass
class ServiceContext:
    store: BaseStore
    owner_id: str
    inventory: InventoryService
    sales: SaleService
    platforms: PlatformService
    stores: StoreService
    categories: CategoryService
    expenses: ExpenseService
    analytics: AnalyticsService

    @classmethod
    def create(
        cls,
        settings: Settings,
        owner_id: Optional[str] = None,
        store: Optional[BaseStore] = None,
        dynamodb_resource: Optional[Any] = None,
    ) -> ServiceContext:
        owner_id = owner_id or settings.owner_id
        if not owner_id:
            raise ValueError("owner_id is required (set RESELLER_OWNER_ID or pass it explicitly)")
        store = store or build_store(settings, dynamodb_resource=dynamodb_resource)

        inventory = InventoryService(store, owner_id)
        sales = SaleService(
            store,
            owner_id,
            transaction_fee_rate=settings.transaction_fee_rate,
            transaction_fee_fixed=settings.transaction_fee_fixed,
        )
        logger.info("Services ready for owner %s (%s backend)", owner_id, type(store).__name__)
        return cls(
            store=store,
            owner_id=owner_id,
            inventory=inventory,
            sales=sales,
            platforms=PlatformService(store, owner_id),
            stores=StoreService(store, owner_id),
            categories=CategoryService(store, owner_id),
            expenses=ExpenseService(store, owner_id),
            analytics=AnalyticsService(store, owner_id, sales=sales, inventory=inventory),
        )

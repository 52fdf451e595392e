from src.services.analytics import AnalyticsService
from src.services.base_service import BaseService
from src.services.catalog import CategoryService, PlatformService, StoreService
from src.services.context import ServiceContext
from src.services.expenses import ExpenseService
from src.services.inventory import InventoryService
from src.services.sales import SaleService

__all__ = [
    "AnalyticsService",
    "BaseService",
    "CategoryService",
    "ExpenseService",
    "InventoryService",
    "PlatformService",
    "SaleService",
    "ServiceContext",
    "StoreService",
]

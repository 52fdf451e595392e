"""Analytics over the owner's sales: fetches joined rows and runs the reducers."""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from src.core import analytics
from src.models.reseller import (
    CategoryMetrics,
    DailyTrendPoint,
    DashboardStats,
    DateRange,
    MarginSummary,
    MonthlyTotal,
    PlatformMetrics,
    TopSeller,
    TurnoverMetrics,
)
from src.services.base_service import BaseService
from src.services.inventory import InventoryService
from src.services.sales import SaleService

logger = logging.getLogger(__name__)


class AnalyticsService(BaseService):
    def __init__(
        self,
        store,
        owner_id: str,
        sales: Optional[SaleService] = None,
        inventory: Optional[InventoryService] = None,
    ):
        super().__init__(store, owner_id)
        self.sales = sales or SaleService(store, owner_id)
        self.inventory = inventory or InventoryService(store, owner_id)

    def platform_metrics(self, date_range: DateRange) -> list[PlatformMetrics]:
        return analytics.by_platform(self.sales.joined_rows(date_range))

    def category_metrics(self, date_range: DateRange) -> list[CategoryMetrics]:
        return analytics.by_category(self.sales.joined_rows(date_range), self.inventory.all_items())

    def daily_trend(self, date_range: DateRange) -> list[DailyTrendPoint]:
        return analytics.daily_trend(self.sales.joined_rows(date_range), date_range)

    def top_sellers(self, date_range: DateRange, limit: int = analytics.TOP_SELLER_LIMIT) -> list[TopSeller]:
        return analytics.top_sellers(self.sales.joined_rows(date_range), limit=limit)

    def turnover(self, date_range: DateRange) -> TurnoverMetrics:
        total_inventory = len(self.inventory.all_items())
        return analytics.turnover(self.sales.joined_rows(date_range), total_inventory, date_range)

    def profit_margins(self, date_range: Optional[DateRange] = None) -> MarginSummary:
        return analytics.profit_margins(self.sales.joined_rows(date_range))

    def sales_breakdown(self, date_range: Optional[DateRange] = None) -> dict:
        return analytics.sales_breakdown(self.sales.joined_rows(date_range))

    def report(self, date_range: DateRange) -> dict:
        """Every reducer over one fetch of the range."""
        rows = self.sales.joined_rows(date_range)
        items = self.inventory.all_items()
        logger.info(
            "Analytics report for %s: %d sales in %s..%s",
            self.owner_id,
            len(rows),
            date_range.start,
            date_range.end,
        )
        return {
            "date_range": date_range,
            "platforms": analytics.by_platform(rows),
            "categories": analytics.by_category(rows, items),
            "daily_trend": analytics.daily_trend(rows, date_range),
            "top_sellers": analytics.top_sellers(rows),
            "turnover": analytics.turnover(rows, len(items), date_range),
            "sales_breakdown": analytics.sales_breakdown(rows),
            "profit_margins": analytics.profit_margins(rows),
        }

    def dashboard(self, today: date) -> DashboardStats:
        return analytics.dashboard_stats(self.sales.joined_rows(), self.inventory.all_items(), today)

    def monthly_overview(self, today: date, months: int = 12) -> list[MonthlyTotal]:
        return analytics.monthly_totals(self.sales.joined_rows(), today, months)

"""Reseller data models: entities, joined sale rows and analytics results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional

ZERO = Decimal("0.00")


def utc_now_iso() -> str:
    return datetime.utcnow().isoformat()


class ItemStatus(str, Enum):
    IN_STOCK = "in_stock"
    LISTED = "listed"
    PENDING_SHIPMENT = "pending_shipment"
    SHIPPED = "shipped"
    RETURNED = "returned"


class ExpenseCategory(str, Enum):
    SHIPPING = "Shipping"
    SUPPLIES = "Supplies"
    PLATFORM_FEES = "Platform Fees"
    MARKETING = "Marketing"
    TRAVEL = "Travel"
    STORAGE = "Storage"
    EQUIPMENT = "Equipment"
    SOFTWARE = "Software"
    OTHER = "Other"


class ChangeType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass
class FeeStructure:
    base_fee: Decimal = ZERO
    percentage_fee: Decimal = ZERO


@dataclass
class InventoryItem:
    item_id: str
    owner_id: str
    title: str
    description: str = ""
    purchase_date: Optional[date] = None
    purchase_price: Optional[Decimal] = None
    store_id: Optional[str] = None
    category_id: Optional[str] = None
    status: ItemStatus = ItemStatus.IN_STOCK
    bin_location: str = ""
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = field(default_factory=utc_now_iso)


@dataclass
class Platform:
    platform_id: str
    owner_id: str
    name: str
    fee_structure: FeeStructure = field(default_factory=FeeStructure)
    active: bool = True
    created_at: str = field(default_factory=utc_now_iso)


@dataclass
class ReturnDetails:
    return_date: date
    reason: str
    refund_amount: Decimal
    return_shipping_cost: Decimal = ZERO
    restocking_fee: Decimal = ZERO


@dataclass
class Sale:
    sale_id: str
    owner_id: str
    inventory_item_id: str
    platform_id: str
    sale_date: date
    sale_price: Decimal
    shipping_collected: Decimal = ZERO
    shipping_cost: Decimal = ZERO
    platform_fees: Decimal = ZERO
    transaction_fees: Decimal = ZERO
    profit: Optional[Decimal] = None
    return_details: Optional[ReturnDetails] = None
    created_at: str = field(default_factory=utc_now_iso)

    @property
    def is_returned(self) -> bool:
        return self.return_details is not None


@dataclass
class Category:
    category_id: str
    owner_id: str
    name: str
    parent_id: Optional[str] = None
    created_at: str = field(default_factory=utc_now_iso)


@dataclass
class Store:
    store_id: str
    owner_id: str
    name: str
    location: str = ""
    notes: str = ""
    created_at: str = field(default_factory=utc_now_iso)


@dataclass
class Expense:
    expense_id: str
    owner_id: str
    expense_date: date
    amount: Decimal
    category: ExpenseCategory = ExpenseCategory.OTHER
    description: str = ""
    receipt_url: str = ""
    created_at: str = field(default_factory=utc_now_iso)


@dataclass
class FeeSuggestion:
    platform_fees: Decimal
    transaction_fees: Decimal


@dataclass
class DateRange:
    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"Date range ends before it starts: {self.start} > {self.end}")

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def days(self) -> list[date]:
        """Every calendar day in the range, both ends included."""
        count = (self.end - self.start).days + 1
        return [self.start + timedelta(days=i) for i in range(count)]

    @classmethod
    def last_days(cls, today: date, days: int = 30) -> DateRange:
        return cls(start=today - timedelta(days=days), end=today)


@dataclass
class SaleRow:
    """A sale joined with the fields of its item, platform and category.

    Related fields are None when the referenced record no longer exists.
    """

    sale_id: str
    sale_date: date
    sale_price: Decimal
    profit: Optional[Decimal]
    inventory_item_id: str
    platform_id: str
    item_title: Optional[str] = None
    item_status: Optional[ItemStatus] = None
    item_purchase_date: Optional[date] = None
    item_created_at: Optional[str] = None
    bin_location: Optional[str] = None
    platform_name: Optional[str] = None
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    is_returned: bool = False


@dataclass
class ChangeEvent:
    table: str
    owner_id: str
    change_type: ChangeType
    record_id: str
    timestamp: str = field(default_factory=utc_now_iso)


# --- Analytics results ---


@dataclass
class PlatformMetrics:
    platform_id: Optional[str]
    name: str
    total_sales: Decimal
    total_profit: Decimal
    order_count: int
    average_price: Decimal
    profit_margin: float
    performance: str


@dataclass
class CategoryMetrics:
    category_id: str
    name: str
    total_sales: Decimal
    total_profit: Decimal
    item_count: int
    profit_margin: float
    percentage_of_sales: float


@dataclass
class DailyTrendPoint:
    day: date
    sales: Decimal
    profit: Decimal


@dataclass
class TopSeller:
    title: str
    units_sold: int
    total_sales: Decimal
    total_profit: Decimal
    avg_sale_price: Decimal
    profit_margin: float


@dataclass
class TurnoverMetrics:
    total_inventory: int
    sold_items: int
    average_days_to_sell: float
    turnover_rate: float


@dataclass
class PlatformMargin:
    name: str
    sales: Decimal
    profit: Decimal
    margin: float


@dataclass
class MarginSummary:
    platforms: list[PlatformMargin]
    overall_margin: float


@dataclass
class MonthlyTotal:
    month: date
    label: str
    total: Decimal


@dataclass
class DashboardStats:
    total_revenue: Decimal
    monthly_growth: float
    active_listings: int
    sold_items: int
    active_inventory: int

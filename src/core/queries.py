"""List query parameters and the filtering/sorting they describe.

Queries are explicit values passed by the caller; nothing here reads
ambient state.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Iterable, Optional

from src.models.reseller import (
    DateRange,
    Expense,
    ExpenseCategory,
    InventoryItem,
    ItemStatus,
    SaleRow,
)


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class ItemSortField(str, Enum):
    TITLE = "title"
    PURCHASE_DATE = "purchase_date"
    PURCHASE_PRICE = "purchase_price"
    STATUS = "status"
    CREATED_AT = "created_at"


class SaleSortField(str, Enum):
    SALE_DATE = "sale_date"
    SALE_PRICE = "sale_price"
    PROFIT = "profit"
    STATUS = "status"


class ExpenseSortField(str, Enum):
    EXPENSE_DATE = "expense_date"
    CATEGORY = "category"
    AMOUNT = "amount"


@dataclass
class ItemQuery:
    search: str = ""
    status: Optional[ItemStatus] = None
    category_id: Optional[str] = None
    sort_by: ItemSortField = ItemSortField.CREATED_AT
    direction: SortDirection = SortDirection.DESC


@dataclass
class SaleQuery:
    search: str = ""
    item_status: Optional[ItemStatus] = None
    date_range: Optional[DateRange] = None
    sort_by: SaleSortField = SaleSortField.SALE_DATE
    direction: SortDirection = SortDirection.DESC


@dataclass
class ExpenseQuery:
    search: str = ""
    category: Optional[ExpenseCategory] = None
    date_range: Optional[DateRange] = None
    sort_by: ExpenseSortField = ExpenseSortField.EXPENSE_DATE
    direction: SortDirection = SortDirection.DESC


def _matches(term: str, *fields: Optional[str]) -> bool:
    if not term:
        return True
    term = term.strip().lower()
    return any(term in (f or "").lower() for f in fields)


def _sorted(records: list, key: Callable[[Any], Any], direction: SortDirection) -> list:
    """Sorts with records whose key is None placed last in either direction."""
    present = [r for r in records if key(r) is not None]
    missing = [r for r in records if key(r) is None]
    present.sort(key=key, reverse=SortDirection(direction) == SortDirection.DESC)
    return present + missing


# --- Inventory ---


def apply_item_query(
    items: Iterable[InventoryItem],
    query: ItemQuery,
    store_names: Optional[dict[str, str]] = None,
    category_names: Optional[dict[str, str]] = None,
) -> list[InventoryItem]:
    """Search covers title, description, bin location, store and category name."""
    store_names = store_names or {}
    category_names = category_names or {}

    result = []
    for item in items:
        if query.status is not None and item.status != query.status:
            continue
        if query.category_id is not None and item.category_id != query.category_id:
            continue
        if not _matches(
            query.search,
            item.title,
            item.description,
            item.bin_location,
            store_names.get(item.store_id or ""),
            category_names.get(item.category_id or ""),
        ):
            continue
        result.append(item)

    keys: dict[ItemSortField, Callable[[InventoryItem], Any]] = {
        ItemSortField.TITLE: lambda i: i.title.lower(),
        ItemSortField.PURCHASE_DATE: lambda i: i.purchase_date,
        ItemSortField.PURCHASE_PRICE: lambda i: i.purchase_price,
        ItemSortField.STATUS: lambda i: ItemStatus(i.status).value,
        ItemSortField.CREATED_AT: lambda i: i.created_at,
    }
    return _sorted(result, keys[ItemSortField(query.sort_by)], query.direction)


# --- Sales ---


def apply_sale_query(rows: Iterable[SaleRow], query: SaleQuery) -> list[SaleRow]:
    """Search covers item title and platform name."""
    result = []
    for row in rows:
        if query.item_status is not None and row.item_status != query.item_status:
            continue
        if query.date_range is not None and not query.date_range.contains(row.sale_date):
            continue
        if not _matches(query.search, row.item_title, row.platform_name):
            continue
        result.append(row)

    keys: dict[SaleSortField, Callable[[SaleRow], Any]] = {
        SaleSortField.SALE_DATE: lambda r: r.sale_date,
        SaleSortField.SALE_PRICE: lambda r: r.sale_price,
        SaleSortField.PROFIT: lambda r: r.profit,
        SaleSortField.STATUS: lambda r: r.item_status.value if r.item_status else None,
    }
    return _sorted(result, keys[SaleSortField(query.sort_by)], query.direction)


def filter_pending_shipments(rows: Iterable[SaleRow], search: str = "") -> list[SaleRow]:
    """Sales waiting to ship, oldest first. Search covers title, platform and bin."""
    pending = [
        r
        for r in rows
        if r.item_status == ItemStatus.PENDING_SHIPMENT
        and not r.is_returned
        and _matches(search, r.item_title, r.platform_name, r.bin_location)
    ]
    pending.sort(key=lambda r: r.sale_date)
    return pending


# --- Expenses ---


def apply_expense_query(expenses: Iterable[Expense], query: ExpenseQuery) -> list[Expense]:
    """Search covers description and category."""
    result = []
    for expense in expenses:
        if query.category is not None and expense.category != query.category:
            continue
        if query.date_range is not None and not query.date_range.contains(expense.expense_date):
            continue
        if not _matches(query.search, expense.description, ExpenseCategory(expense.category).value):
            continue
        result.append(expense)

    keys: dict[ExpenseSortField, Callable[[Expense], Any]] = {
        ExpenseSortField.EXPENSE_DATE: lambda e: e.expense_date,
        ExpenseSortField.CATEGORY: lambda e: ExpenseCategory(e.category).value,
        ExpenseSortField.AMOUNT: lambda e: e.amount,
    }
    return _sorted(result, keys[ExpenseSortField(query.sort_by)], query.direction)


def totals_by_category(expenses: Iterable[Expense]) -> dict[str, Decimal]:
    totals: dict[str, Decimal] = {}
    for expense in expenses:
        name = ExpenseCategory(expense.category).value
        totals[name] = totals.get(name, Decimal("0.00")) + expense.amount
    return dict(sorted(totals.items(), key=lambda kv: kv[1], reverse=True))

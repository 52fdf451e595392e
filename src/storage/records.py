"""Conversions between entity dataclasses and stored record dicts.

Stored records use ``id`` for the primary key, ISO strings for dates,
Decimal for money and enum values as plain strings. Both backends store
the same shape.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Optional

from src.core.profit import to_money
from src.models.reseller import (
    Category,
    Expense,
    ExpenseCategory,
    FeeStructure,
    InventoryItem,
    ItemStatus,
    Platform,
    ReturnDetails,
    Sale,
    Store,
)


def _date_out(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _date_in(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _optional_money(value: Any) -> Optional[Decimal]:
    return to_money(value) if value is not None else None


def _percent(value: Any) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0")


# --- Inventory items ---


def item_to_record(item: InventoryItem) -> dict:
    return {
        "id": item.item_id,
        "owner_id": item.owner_id,
        "title": item.title,
        "description": item.description,
        "purchase_date": _date_out(item.purchase_date),
        "purchase_price": _optional_money(item.purchase_price),
        "store_id": item.store_id,
        "category_id": item.category_id,
        "status": ItemStatus(item.status).value,
        "bin_location": item.bin_location,
        "created_at": item.created_at,
        "updated_at": item.updated_at,
    }


def item_from_record(record: dict) -> InventoryItem:
    return InventoryItem(
        item_id=record["id"],
        owner_id=record["owner_id"],
        title=record.get("title", ""),
        description=record.get("description") or "",
        purchase_date=_date_in(record.get("purchase_date")),
        purchase_price=_optional_money(record.get("purchase_price")),
        store_id=record.get("store_id"),
        category_id=record.get("category_id"),
        status=ItemStatus(record.get("status", ItemStatus.IN_STOCK.value)),
        bin_location=record.get("bin_location") or "",
        created_at=record.get("created_at", ""),
        updated_at=record.get("updated_at", ""),
    )


# --- Platforms ---


def platform_to_record(platform: Platform) -> dict:
    return {
        "id": platform.platform_id,
        "owner_id": platform.owner_id,
        "name": platform.name,
        "fee_structure": {
            "base_fee": to_money(platform.fee_structure.base_fee),
            "percentage_fee": _percent(platform.fee_structure.percentage_fee),
        },
        "active": bool(platform.active),
        "created_at": platform.created_at,
    }


def platform_from_record(record: dict) -> Platform:
    fees = record.get("fee_structure") or {}
    return Platform(
        platform_id=record["id"],
        owner_id=record["owner_id"],
        name=record.get("name", ""),
        fee_structure=FeeStructure(
            base_fee=to_money(fees.get("base_fee")),
            percentage_fee=_percent(fees.get("percentage_fee")),
        ),
        active=bool(record.get("active", True)),
        created_at=record.get("created_at", ""),
    )


# --- Sales ---


def return_to_record(details: Optional[ReturnDetails]) -> Optional[dict]:
    if details is None:
        return None
    return {
        "return_date": _date_out(details.return_date),
        "reason": details.reason,
        "refund_amount": to_money(details.refund_amount),
        "return_shipping_cost": to_money(details.return_shipping_cost),
        "restocking_fee": to_money(details.restocking_fee),
    }


def _return_from_record(value: Optional[dict]) -> Optional[ReturnDetails]:
    if not value:
        return None
    return ReturnDetails(
        return_date=_date_in(value.get("return_date")),
        reason=value.get("reason", ""),
        refund_amount=to_money(value.get("refund_amount")),
        return_shipping_cost=to_money(value.get("return_shipping_cost")),
        restocking_fee=to_money(value.get("restocking_fee")),
    )


def sale_to_record(sale: Sale) -> dict:
    return {
        "id": sale.sale_id,
        "owner_id": sale.owner_id,
        "inventory_item_id": sale.inventory_item_id,
        "platform_id": sale.platform_id,
        "sale_date": _date_out(sale.sale_date),
        "sale_price": to_money(sale.sale_price),
        "shipping_collected": to_money(sale.shipping_collected),
        "shipping_cost": to_money(sale.shipping_cost),
        "platform_fees": to_money(sale.platform_fees),
        "transaction_fees": to_money(sale.transaction_fees),
        "profit": _optional_money(sale.profit),
        "return_details": return_to_record(sale.return_details),
        "created_at": sale.created_at,
    }


def sale_from_record(record: dict) -> Sale:
    return Sale(
        sale_id=record["id"],
        owner_id=record["owner_id"],
        inventory_item_id=record.get("inventory_item_id", ""),
        platform_id=record.get("platform_id", ""),
        sale_date=_date_in(record.get("sale_date")),
        sale_price=to_money(record.get("sale_price")),
        shipping_collected=to_money(record.get("shipping_collected")),
        shipping_cost=to_money(record.get("shipping_cost")),
        platform_fees=to_money(record.get("platform_fees")),
        transaction_fees=to_money(record.get("transaction_fees")),
        profit=_optional_money(record.get("profit")),
        return_details=_return_from_record(record.get("return_details")),
        created_at=record.get("created_at", ""),
    )


# --- Categories, stores, expenses ---


def category_to_record(category: Category) -> dict:
    return {
        "id": category.category_id,
        "owner_id": category.owner_id,
        "name": category.name,
        "parent_id": category.parent_id,
        "created_at": category.created_at,
    }


def category_from_record(record: dict) -> Category:
    return Category(
        category_id=record["id"],
        owner_id=record["owner_id"],
        name=record.get("name", ""),
        parent_id=record.get("parent_id"),
        created_at=record.get("created_at", ""),
    )


def store_to_record(store: Store) -> dict:
    return {
        "id": store.store_id,
        "owner_id": store.owner_id,
        "name": store.name,
        "location": store.location,
        "notes": store.notes,
        "created_at": store.created_at,
    }


def store_from_record(record: dict) -> Store:
    return Store(
        store_id=record["id"],
        owner_id=record["owner_id"],
        name=record.get("name", ""),
        location=record.get("location") or "",
        notes=record.get("notes") or "",
        created_at=record.get("created_at", ""),
    )


def expense_to_record(expense: Expense) -> dict:
    return {
        "id": expense.expense_id,
        "owner_id": expense.owner_id,
        "expense_date": _date_out(expense.expense_date),
        "amount": to_money(expense.amount),
        "category": ExpenseCategory(expense.category).value,
        "description": expense.description,
        "receipt_url": expense.receipt_url,
        "created_at": expense.created_at,
    }


def expense_from_record(record: dict) -> Expense:
    return Expense(
        expense_id=record["id"],
        owner_id=record["owner_id"],
        expense_date=_date_in(record.get("expense_date")),
        amount=to_money(record.get("amount")),
        category=ExpenseCategory(record.get("category", ExpenseCategory.OTHER.value)),
        description=record.get("description") or "",
        receipt_url=record.get("receipt_url") or "",
        created_at=record.get("created_at", ""),
    )

"""Input validation applied before any write reaches the store.

Each validator collects every problem it finds into a ValidationResult so
the caller can show them all at once.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Optional
from urllib.parse import urlparse

from src.core.errors import ValidationError
from src.models.reseller import ExpenseCategory, ItemStatus


@dataclass
class ValidationResult:
    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def raise_if_invalid(self) -> None:
        if not self.is_valid:
            raise ValidationError(self.errors)


def _result(errors: list[str]) -> ValidationResult:
    return ValidationResult(is_valid=len(errors) == 0, errors=errors)


def _as_decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def _check_amount(errors: list[str], label: str, value: Any, minimum: str = "0", strict: bool = False) -> None:
    amount = _as_decimal(value)
    if amount is None or not amount.is_finite():
        errors.append(f"{label} must be a number")
        return
    limit = Decimal(minimum)
    if strict and amount <= limit:
        errors.append(f"{label} must be greater than {minimum}")
    elif not strict and amount < limit:
        errors.append(f"{label} must be {minimum} or greater")


def _check_date(errors: list[str], label: str, value: Any) -> None:
    if not isinstance(value, date):
        errors.append(f"{label} must be a date")


# --- Inventory ---


def validate_item(values: dict) -> ValidationResult:
    errors: list[str] = []
    title = values.get("title")
    if not title or not str(title).strip():
        errors.append("Title is required")
    if values.get("purchase_price") is not None:
        _check_amount(errors, "Purchase price", values["purchase_price"])
    if values.get("purchase_date") is not None:
        _check_date(errors, "Purchase date", values["purchase_date"])
    status = values.get("status")
    if status is not None and status not in {s.value for s in ItemStatus}:
        errors.append(f"Unknown status: {status}")
    return _result(errors)


# --- Platforms & stores ---


def validate_platform(values: dict) -> ValidationResult:
    errors: list[str] = []
    name = values.get("name")
    if not name or len(str(name).strip()) < 2:
        errors.append("Name must be at least 2 characters")
    _check_amount(errors, "Base fee", values.get("base_fee", 0))
    _check_amount(errors, "Percentage fee", values.get("percentage_fee", 0))
    percentage = _as_decimal(values.get("percentage_fee", 0))
    if percentage is not None and percentage.is_finite() and percentage > 100:
        errors.append("Percentage fee cannot exceed 100")
    return _result(errors)


def validate_store(values: dict) -> ValidationResult:
    errors: list[str] = []
    name = values.get("name")
    if not name or len(str(name).strip()) < 2:
        errors.append("Name must be at least 2 characters")
    return _result(errors)


def validate_category(values: dict) -> ValidationResult:
    errors: list[str] = []
    name = values.get("name")
    if not name or not str(name).strip():
        errors.append("Name is required")
    return _result(errors)


# --- Sales ---


def validate_sale(values: dict) -> ValidationResult:
    errors: list[str] = []
    if not values.get("inventory_item_id"):
        errors.append("Please select an item")
    if not values.get("platform_id"):
        errors.append("Please select a platform")
    _check_date(errors, "Sale date", values.get("sale_date"))
    _check_amount(errors, "Sale price", values.get("sale_price"), minimum="0", strict=True)
    for key, label in (
        ("shipping_collected", "Shipping collected"),
        ("shipping_cost", "Shipping cost"),
        ("platform_fees", "Platform fees"),
        ("transaction_fees", "Transaction fees"),
    ):
        _check_amount(errors, label, values.get(key, 0))
    return _result(errors)


def validate_return(values: dict) -> ValidationResult:
    errors: list[str] = []
    _check_date(errors, "Return date", values.get("return_date"))
    _check_amount(errors, "Refund amount", values.get("refund_amount"))
    _check_amount(errors, "Return shipping cost", values.get("return_shipping_cost", 0))
    _check_amount(errors, "Restocking fee", values.get("restocking_fee", 0))
    reason = values.get("reason")
    if not reason or not str(reason).strip():
        errors.append("Please provide a reason for the return")
    return _result(errors)


# --- Expenses ---


def validate_expense(values: dict) -> ValidationResult:
    errors: list[str] = []
    _check_date(errors, "Date", values.get("expense_date"))
    _check_amount(errors, "Amount", values.get("amount"), minimum="0", strict=True)
    category = values.get("category", ExpenseCategory.OTHER.value)
    if category not in {c.value for c in ExpenseCategory}:
        errors.append(f"Unknown expense category: {category}")
    receipt_url = values.get("receipt_url") or ""
    if receipt_url:
        parsed = urlparse(receipt_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            errors.append("Please enter a valid URL")
    return _result(errors)

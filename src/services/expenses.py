"""Business expenses."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from src.core.profit import to_money
from src.core.queries import ExpenseQuery, apply_expense_query, totals_by_category
from src.core.validation import validate_expense
from src.models.reseller import DateRange, Expense, ExpenseCategory
from src.services.base_service import BaseService
from src.storage.base import EXPENSES
from src.storage.records import expense_from_record, expense_to_record

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = {"expense_date", "amount", "category", "description", "receipt_url"}


def _category_value(category: Any) -> Any:
    return category.value if isinstance(category, ExpenseCategory) else category


class ExpenseService(BaseService):
    def create_expense(
        self,
        expense_date: date,
        amount: Any,
        category: ExpenseCategory = ExpenseCategory.OTHER,
        description: str = "",
        receipt_url: str = "",
    ) -> Expense:
        validate_expense(
            {
                "expense_date": expense_date,
                "amount": amount,
                "category": _category_value(category),
                "receipt_url": receipt_url,
            }
        ).raise_if_invalid()

        expense = Expense(
            expense_id=self.new_id(),
            owner_id=self.owner_id,
            expense_date=expense_date,
            amount=to_money(amount),
            category=ExpenseCategory(category),
            description=description or "",
            receipt_url=receipt_url or "",
        )
        self.store.put(EXPENSES, self.owner_id, expense.expense_id, expense_to_record(expense))
        logger.info("Expense created: %s %s (%s)", expense.category.value, expense.amount, expense.expense_id)
        return expense

    def update_expense(self, expense_id: str, **changes: Any) -> Expense:
        self._reject_unknown(changes, EDITABLE_FIELDS)
        current = self.get_expense(expense_id)

        values = {
            "expense_date": changes.get("expense_date", current.expense_date),
            "amount": changes.get("amount", current.amount),
            "category": _category_value(changes.get("category", current.category)),
            "receipt_url": changes.get("receipt_url", current.receipt_url),
        }
        validate_expense(values).raise_if_invalid()

        current.expense_date = values["expense_date"]
        current.amount = to_money(values["amount"])
        current.category = ExpenseCategory(values["category"])
        current.receipt_url = values["receipt_url"] or ""
        current.description = changes.get("description", current.description) or ""

        record = expense_to_record(current)
        self.store.update(
            EXPENSES,
            self.owner_id,
            expense_id,
            {k: v for k, v in record.items() if k in EDITABLE_FIELDS},
        )
        logger.info("Expense updated: %s", expense_id)
        return current

    def get_expense(self, expense_id: str) -> Expense:
        return self._require(EXPENSES, expense_id, expense_from_record)

    def list_expenses(self, query: Optional[ExpenseQuery] = None) -> list[Expense]:
        return apply_expense_query(self._list(EXPENSES, expense_from_record), query or ExpenseQuery())

    def totals_by_category(self, date_range: Optional[DateRange] = None) -> dict[str, Decimal]:
        expenses = self.list_expenses(ExpenseQuery(date_range=date_range))
        return totals_by_category(expenses)

    def delete_expense(self, expense_id: str) -> None:
        self.get_expense(expense_id)
        self.store.delete(EXPENSES, self.owner_id, expense_id)
        logger.info("Expense deleted: %s", expense_id)

"""Sale recording, editing, returns and deletion.

Every operation that touches both a sale and its inventory item commits as
one storage transaction with a status precondition on the item, so a
failure never leaves a sale without its item transition (or the reverse).
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from src.core import lifecycle
from src.core.errors import (
    ConditionFailedError,
    InvalidTransitionError,
    NotFoundError,
    ProfitUnavailableError,
    ValidationError,
)
from src.core.lifecycle import Trigger
from src.core.profit import (
    TRANSACTION_FEE_FIXED,
    TRANSACTION_FEE_RATE,
    compute_profit,
    compute_return_profit,
    suggest_fees,
    to_money,
)
from src.core.queries import SaleQuery, apply_sale_query, filter_pending_shipments
from src.core.validation import validate_return, validate_sale
from src.models.reseller import (
    DateRange,
    FeeSuggestion,
    InventoryItem,
    Platform,
    ReturnDetails,
    Sale,
    SaleRow,
    utc_now_iso,
)
from src.services.base_service import BaseService
from src.storage.base import CATEGORIES, INVENTORY_ITEMS, PLATFORMS, SALES, WriteOp
from src.storage.records import (
    category_from_record,
    item_from_record,
    platform_from_record,
    return_to_record,
    sale_from_record,
    sale_to_record,
)

logger = logging.getLogger(__name__)

MONEY_FIELDS = ("sale_price", "shipping_collected", "shipping_cost", "platform_fees", "transaction_fees")
EDITABLE_FIELDS = {"platform_id", "sale_date", *MONEY_FIELDS}


class SaleService(BaseService):
    def __init__(
        self,
        store,
        owner_id: str,
        transaction_fee_rate: Decimal = TRANSACTION_FEE_RATE,
        transaction_fee_fixed: Decimal = TRANSACTION_FEE_FIXED,
    ):
        super().__init__(store, owner_id)
        self.transaction_fee_rate = transaction_fee_rate
        self.transaction_fee_fixed = transaction_fee_fixed

    # --- Form helpers ---

    def sellable_items(self) -> list[InventoryItem]:
        items = [
            item_from_record(r)
            for r in self.store.query(INVENTORY_ITEMS, self.owner_id)
            if r.get("status") in {s.value for s in lifecycle.SELLABLE_STATUSES}
        ]
        return sorted(items, key=lambda i: i.title.lower())

    def active_platforms(self) -> list[Platform]:
        platforms = [platform_from_record(r) for r in self.store.query(PLATFORMS, self.owner_id)]
        return sorted((p for p in platforms if p.active), key=lambda p: p.name.lower())

    def suggest_fees(self, sale_price: Any, platform_id: str) -> FeeSuggestion:
        """Pre-fill values for the fee fields; the caller may override them."""
        platform = self._require(PLATFORMS, platform_id, platform_from_record)
        return suggest_fees(
            sale_price,
            platform.fee_structure,
            self.transaction_fee_rate,
            self.transaction_fee_fixed,
        )

    # --- Recording ---

    def record_sale(
        self,
        inventory_item_id: str,
        platform_id: str,
        sale_date: date,
        sale_price: Any,
        shipping_collected: Any = 0,
        shipping_cost: Any = 0,
        platform_fees: Any = 0,
        transaction_fees: Any = 0,
    ) -> Sale:
        """Records a sale and moves its item from listed to pending_shipment."""
        values = {
            "inventory_item_id": inventory_item_id,
            "platform_id": platform_id,
            "sale_date": sale_date,
            "sale_price": sale_price,
            "shipping_collected": shipping_collected,
            "shipping_cost": shipping_cost,
            "platform_fees": platform_fees,
            "transaction_fees": transaction_fees,
        }
        validate_sale(values).raise_if_invalid()

        item = self._require(INVENTORY_ITEMS, inventory_item_id, item_from_record)
        platform = self._require(PLATFORMS, platform_id, platform_from_record)
        if not platform.active:
            raise ValidationError([f"Platform {platform.name} is not active"])
        if self._open_sales(item.item_id):
            raise InvalidTransitionError(f"Item {item.item_id} already has an open sale")
        new_status = lifecycle.apply(Trigger.SELL, item.status)

        sale = Sale(
            sale_id=self.new_id(),
            owner_id=self.owner_id,
            inventory_item_id=item.item_id,
            platform_id=platform.platform_id,
            sale_date=sale_date,
            sale_price=to_money(sale_price),
            shipping_collected=to_money(shipping_collected),
            shipping_cost=to_money(shipping_cost),
            platform_fees=to_money(platform_fees),
            transaction_fees=to_money(transaction_fees),
        )
        sale.profit = self._profit_or_none(sale, item)

        self._commit_with_item(
            [
                WriteOp.put(SALES, self.owner_id, sale.sale_id, sale_to_record(sale)),
                WriteOp.update(
                    INVENTORY_ITEMS,
                    self.owner_id,
                    item.item_id,
                    {"status": new_status.value, "updated_at": utc_now_iso()},
                    expected={"status": _values(lifecycle.SELLABLE_STATUSES)},
                ),
            ],
            f"Item {item.item_id} is no longer available for sale",
        )
        logger.info(
            "Sale recorded: %s for item %s at %s (profit: %s)",
            sale.sale_id,
            item.item_id,
            sale.sale_price,
            sale.profit,
        )
        return sale

    def update_sale(self, sale_id: str, **changes: Any) -> Sale:
        """Edits sale fields and recomputes profit. The sold item cannot change."""
        if "inventory_item_id" in changes:
            raise ValidationError(["The item of a recorded sale cannot be changed"])
        self._reject_unknown(changes, EDITABLE_FIELDS)

        sale = self.get_sale(sale_id)
        values = {
            "inventory_item_id": sale.inventory_item_id,
            "platform_id": changes.get("platform_id", sale.platform_id),
            "sale_date": changes.get("sale_date", sale.sale_date),
        }
        for name in MONEY_FIELDS:
            values[name] = changes.get(name, getattr(sale, name))
        validate_sale(values).raise_if_invalid()

        if values["platform_id"] != sale.platform_id:
            platform = self._require(PLATFORMS, values["platform_id"], platform_from_record)
            if not platform.active:
                raise ValidationError([f"Platform {platform.name} is not active"])

        sale.platform_id = values["platform_id"]
        sale.sale_date = values["sale_date"]
        for name in MONEY_FIELDS:
            setattr(sale, name, to_money(values[name]))

        # A returned sale keeps the profit booked by the return
        if not sale.is_returned:
            item = self._find_item(sale.inventory_item_id)
            sale.profit = self._profit_or_none(sale, item)

        record = sale_to_record(sale)
        self.store.update(
            SALES,
            self.owner_id,
            sale_id,
            {k: record[k] for k in ("platform_id", "sale_date", *MONEY_FIELDS, "profit")},
        )
        logger.info("Sale updated: %s (profit: %s)", sale_id, sale.profit)
        return sale

    def process_return(
        self,
        sale_id: str,
        return_date: date,
        reason: str,
        refund_amount: Any,
        return_shipping_cost: Any = 0,
        restocking_fee: Any = 0,
    ) -> Sale:
        """Books a return: profit becomes -(refund + return shipping), item goes to returned."""
        validate_return(
            {
                "return_date": return_date,
                "reason": reason,
                "refund_amount": refund_amount,
                "return_shipping_cost": return_shipping_cost,
                "restocking_fee": restocking_fee,
            }
        ).raise_if_invalid()

        sale = self.get_sale(sale_id)
        if sale.is_returned:
            raise InvalidTransitionError(f"Sale {sale_id} has already been returned")
        item = self._require(INVENTORY_ITEMS, sale.inventory_item_id, item_from_record)
        new_status = lifecycle.apply(Trigger.RETURN, item.status)

        sale.return_details = ReturnDetails(
            return_date=return_date,
            reason=reason.strip(),
            refund_amount=to_money(refund_amount),
            return_shipping_cost=to_money(return_shipping_cost),
            restocking_fee=to_money(restocking_fee),
        )
        # TODO: net the restocking fee once it is settled whether it is income or a cost
        sale.profit = compute_return_profit(refund_amount, return_shipping_cost)

        self._commit_with_item(
            [
                WriteOp.update(
                    SALES,
                    self.owner_id,
                    sale_id,
                    {"return_details": return_to_record(sale.return_details), "profit": sale.profit},
                ),
                WriteOp.update(
                    INVENTORY_ITEMS,
                    self.owner_id,
                    item.item_id,
                    {"status": new_status.value, "updated_at": utc_now_iso()},
                    expected={"status": _values(lifecycle.RETURNABLE_STATUSES)},
                ),
            ],
            f"Item {item.item_id} can no longer be returned",
        )
        logger.info("Return processed: sale %s, refund %s, profit %s", sale_id, refund_amount, sale.profit)
        return sale

    def delete_sale(self, sale_id: str) -> None:
        """Deletes a sale and puts its item back in stock unless another open sale still holds it."""
        sale = self.get_sale(sale_id)
        ops = [WriteOp.delete(SALES, self.owner_id, sale_id)]

        item = self._find_item(sale.inventory_item_id)
        others = self._open_sales(sale.inventory_item_id, exclude=sale_id)
        if item is not None and others:
            logger.warning(
                "Sale %s deleted while item %s has %d other open sale(s), status left as %s",
                sale_id,
                item.item_id,
                len(others),
                item.status.value,
            )
        elif item is not None:
            ops.append(
                WriteOp.update(
                    INVENTORY_ITEMS,
                    self.owner_id,
                    item.item_id,
                    {
                        "status": lifecycle.target_status(Trigger.DELETE_SALE).value,
                        "updated_at": utc_now_iso(),
                    },
                )
            )
        else:
            logger.warning("Sale %s references missing item %s", sale_id, sale.inventory_item_id)

        self._commit_with_item(ops, f"Sale {sale_id} changed before it could be deleted")
        logger.info("Sale deleted: %s (item %s)", sale_id, sale.inventory_item_id)

    # --- Reads ---

    def get_sale(self, sale_id: str) -> Sale:
        return self._require(SALES, sale_id, sale_from_record)

    def all_sales(self) -> list[Sale]:
        return self._list(SALES, sale_from_record)

    def joined_rows(self, date_range: Optional[DateRange] = None) -> list[SaleRow]:
        """Sales joined with item, platform and category fields."""
        items = {r["id"]: item_from_record(r) for r in self.store.query(INVENTORY_ITEMS, self.owner_id)}
        platforms = {r["id"]: platform_from_record(r) for r in self.store.query(PLATFORMS, self.owner_id)}
        categories = {r["id"]: category_from_record(r) for r in self.store.query(CATEGORIES, self.owner_id)}

        rows = []
        for sale in self.all_sales():
            if date_range is not None and not date_range.contains(sale.sale_date):
                continue
            item = items.get(sale.inventory_item_id)
            platform = platforms.get(sale.platform_id)
            category = categories.get(item.category_id) if item and item.category_id else None
            rows.append(
                SaleRow(
                    sale_id=sale.sale_id,
                    sale_date=sale.sale_date,
                    sale_price=sale.sale_price,
                    profit=sale.profit,
                    inventory_item_id=sale.inventory_item_id,
                    platform_id=sale.platform_id,
                    item_title=item.title if item else None,
                    item_status=item.status if item else None,
                    item_purchase_date=item.purchase_date if item else None,
                    item_created_at=item.created_at if item else None,
                    bin_location=item.bin_location if item else None,
                    platform_name=platform.name if platform else None,
                    category_id=category.category_id if category else None,
                    category_name=category.name if category else None,
                    is_returned=sale.is_returned,
                )
            )
        return rows

    def list_sales(self, query: Optional[SaleQuery] = None) -> list[SaleRow]:
        query = query or SaleQuery()
        return apply_sale_query(self.joined_rows(query.date_range), query)

    def pending_shipments(self, search: str = "") -> list[SaleRow]:
        return filter_pending_shipments(self.joined_rows(), search)

    # --- Internals ---

    def _open_sales(self, item_id: str, exclude: Optional[str] = None) -> list[Sale]:
        """Sales of the item that have not been returned."""
        sales = self._list(SALES, sale_from_record, inventory_item_id=item_id)
        return [s for s in sales if not s.is_returned and s.sale_id != exclude]

    def _find_item(self, item_id: str) -> Optional[InventoryItem]:
        try:
            return self._require(INVENTORY_ITEMS, item_id, item_from_record)
        except NotFoundError:
            return None

    def _profit_or_none(self, sale: Sale, item: Optional[InventoryItem]) -> Optional[Decimal]:
        cost = item.purchase_price if item is not None else None
        try:
            return compute_profit(
                sale.sale_price,
                cost,
                platform_fees=sale.platform_fees,
                transaction_fees=sale.transaction_fees,
                shipping_collected=sale.shipping_collected,
                shipping_cost=sale.shipping_cost,
            )
        except ProfitUnavailableError:
            logger.warning(
                "Sale %s: acquisition cost of item %s is unknown, profit left empty",
                sale.sale_id,
                sale.inventory_item_id,
            )
            return None

    def _commit_with_item(self, ops: list[WriteOp], conflict_message: str) -> None:
        try:
            self.store.transact(ops)
        except ConditionFailedError as e:
            raise InvalidTransitionError(conflict_message) from e


def _values(statuses) -> tuple[str, ...]:
    return tuple(sorted(s.value for s in statuses))

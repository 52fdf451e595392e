"""Sale service tests: recording, returns, deletion and transactional item updates."""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from src.config import Settings
from src.core.errors import (
    InvalidTransitionError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from src.core.queries import SaleQuery
from src.models.reseller import DateRange, ItemStatus
from src.services.context import ServiceContext
from src.storage import INVENTORY_ITEMS, SALES, InMemoryStore

SALE_DAY = date(2024, 3, 10)


def _create_context(store=None) -> ServiceContext:
    return ServiceContext.create(Settings(backend="memory"), owner_id="u1", store=store)


def _listed_item(ctx, price="50", title="Vintage Camera"):
    item = ctx.inventory.create_item(
        title=title,
        purchase_date=date(2024, 3, 1),
        purchase_price=Decimal(price) if price is not None else None,
    )
    ctx.inventory.mark_listed(item.item_id)
    return item


def _platform(ctx, name="Mercari", base_fee="0.30", percentage_fee="10"):
    return ctx.platforms.create_platform(name, base_fee=Decimal(base_fee), percentage_fee=Decimal(percentage_fee))


def _sell(ctx, item, platform, **overrides):
    values = dict(
        inventory_item_id=item.item_id,
        platform_id=platform.platform_id,
        sale_date=SALE_DAY,
        sale_price=Decimal("100"),
        platform_fees=Decimal("10.30"),
        transaction_fees=Decimal("3.20"),
    )
    values.update(overrides)
    return ctx.sales.record_sale(**values)


class TestRecordSale:
    """Recording a sale moves the item to pending shipment."""

    def test_profit_and_item_transition(self):
        ctx = _create_context()
        item = _listed_item(ctx)
        sale = _sell(ctx, item, _platform(ctx))

        assert sale.profit == Decimal("36.50")
        assert ctx.inventory.get_item(item.item_id).status == ItemStatus.PENDING_SHIPMENT
        assert ctx.sales.get_sale(sale.sale_id).profit == Decimal("36.50")

    def test_second_sale_rejected(self):
        ctx = _create_context()
        item = _listed_item(ctx)
        platform = _platform(ctx)
        _sell(ctx, item, platform)

        with pytest.raises(InvalidTransitionError):
            _sell(ctx, item, platform)
        assert len(ctx.sales.all_sales()) == 1

    def test_in_stock_item_cannot_be_sold(self):
        ctx = _create_context()
        item = ctx.inventory.create_item(title="Lamp", purchase_price=Decimal("5"))
        with pytest.raises(InvalidTransitionError):
            _sell(ctx, item, _platform(ctx))
        assert ctx.sales.all_sales() == []

    def test_unknown_cost_leaves_profit_empty(self):
        ctx = _create_context()
        item = _listed_item(ctx, price=None)
        sale = _sell(ctx, item, _platform(ctx))
        assert sale.profit is None
        assert ctx.inventory.get_item(item.item_id).status == ItemStatus.PENDING_SHIPMENT

    def test_inactive_platform_rejected(self):
        ctx = _create_context()
        item = _listed_item(ctx)
        platform = _platform(ctx)
        ctx.platforms.update_platform(platform.platform_id, active=False)
        with pytest.raises(ValidationError):
            _sell(ctx, item, platform)

    def test_second_open_sale_rejected_after_manual_relist(self):
        ctx = _create_context()
        item = _listed_item(ctx)
        platform = _platform(ctx)
        _sell(ctx, item, platform)
        ctx.inventory.update_item(item.item_id, status=ItemStatus.LISTED)

        with pytest.raises(InvalidTransitionError):
            _sell(ctx, item, platform)

        assert len(ctx.sales.all_sales()) == 1

    def test_resale_allowed_after_return(self):
        ctx = _create_context()
        item = _listed_item(ctx)
        platform = _platform(ctx)
        first = _sell(ctx, item, platform)
        ctx.sales.process_return(first.sale_id, date(2024, 3, 20), "Damaged", Decimal("100"))
        ctx.inventory.update_item(item.item_id, status=ItemStatus.LISTED)

        _sell(ctx, item, platform, sale_date=date(2024, 3, 25))

        assert len(ctx.sales.all_sales()) == 2
        assert ctx.inventory.get_item(item.item_id).status == ItemStatus.PENDING_SHIPMENT

    def test_invalid_price_rejected_before_any_write(self):
        ctx = _create_context()
        item = _listed_item(ctx)
        with pytest.raises(ValidationError):
            _sell(ctx, item, _platform(ctx), sale_price=Decimal("0"))
        assert ctx.inventory.get_item(item.item_id).status == ItemStatus.LISTED

    def test_missing_item(self):
        ctx = _create_context()
        platform = _platform(ctx)
        with pytest.raises(NotFoundError):
            ctx.sales.record_sale("nope", platform.platform_id, SALE_DAY, Decimal("10"))

    def test_failed_commit_leaves_nothing_behind(self):
        store = InMemoryStore()
        ctx = _create_context(store)
        item = _listed_item(ctx)
        platform = _platform(ctx)
        store._commit = MagicMock(side_effect=StorageError("connection lost"))

        with pytest.raises(StorageError):
            _sell(ctx, item, platform)

        assert store.query(SALES, "u1") == []
        assert store.get(INVENTORY_ITEMS, "u1", item.item_id)["status"] == "listed"

    def test_suggest_fees_uses_platform(self):
        ctx = _create_context()
        platform = _platform(ctx)
        fees = ctx.sales.suggest_fees(Decimal("100"), platform.platform_id)
        assert fees.platform_fees == Decimal("10.30")
        assert fees.transaction_fees == Decimal("3.20")

    def test_transaction_fee_from_settings(self):
        settings = Settings(backend="memory", transaction_fee_rate=Decimal("0.03"), transaction_fee_fixed=Decimal("0.25"))
        ctx = ServiceContext.create(settings, owner_id="u1")
        platform = _platform(ctx)
        assert ctx.sales.suggest_fees(Decimal("100"), platform.platform_id).transaction_fees == Decimal("3.25")

    def test_sellable_items_only_listed(self):
        ctx = _create_context()
        listed = _listed_item(ctx)
        ctx.inventory.create_item(title="Boots")
        assert [i.item_id for i in ctx.sales.sellable_items()] == [listed.item_id]


class TestUpdateSale:
    """Sale edits and profit recalculation."""

    def test_profit_recomputed(self):
        ctx = _create_context()
        sale = _sell(ctx, _listed_item(ctx), _platform(ctx))
        updated = ctx.sales.update_sale(sale.sale_id, sale_price=Decimal("120"))
        assert updated.profit == Decimal("56.50")

    def test_item_cannot_change(self):
        ctx = _create_context()
        sale = _sell(ctx, _listed_item(ctx), _platform(ctx))
        with pytest.raises(ValidationError):
            ctx.sales.update_sale(sale.sale_id, inventory_item_id="other")

    def test_returned_sale_keeps_return_profit(self):
        ctx = _create_context()
        sale = _sell(ctx, _listed_item(ctx), _platform(ctx))
        ctx.sales.process_return(sale.sale_id, date(2024, 3, 20), "Damaged", Decimal("100"), Decimal("8"))
        updated = ctx.sales.update_sale(sale.sale_id, shipping_cost=Decimal("4"))
        assert updated.profit == Decimal("-108.00")

    def test_move_to_inactive_platform_rejected(self):
        ctx = _create_context()
        sale = _sell(ctx, _listed_item(ctx), _platform(ctx))
        retired = _platform(ctx, name="Poshmark")
        ctx.platforms.update_platform(retired.platform_id, active=False)

        with pytest.raises(ValidationError):
            ctx.sales.update_sale(sale.sale_id, platform_id=retired.platform_id)

        assert ctx.sales.get_sale(sale.sale_id).platform_id == sale.platform_id


class TestProcessReturn:
    """Returns and return profit."""

    def test_return_profit_and_status(self):
        ctx = _create_context()
        item = _listed_item(ctx)
        sale = _sell(ctx, item, _platform(ctx))
        ctx.inventory.mark_shipped(item.item_id)

        returned = ctx.sales.process_return(
            sale.sale_id, date(2024, 3, 20), "Not as described", Decimal("100"), Decimal("8")
        )

        assert returned.profit == Decimal("-108.00")
        assert returned.return_details.reason == "Not as described"
        assert ctx.inventory.get_item(item.item_id).status == ItemStatus.RETURNED
        stored = ctx.sales.get_sale(sale.sale_id)
        assert stored.is_returned is True
        assert stored.profit == Decimal("-108.00")

    def test_return_from_pending_shipment(self):
        ctx = _create_context()
        item = _listed_item(ctx)
        sale = _sell(ctx, item, _platform(ctx))
        ctx.sales.process_return(sale.sale_id, date(2024, 3, 11), "Buyer cancelled", Decimal("100"))
        assert ctx.inventory.get_item(item.item_id).status == ItemStatus.RETURNED

    def test_double_return_rejected(self):
        ctx = _create_context()
        sale = _sell(ctx, _listed_item(ctx), _platform(ctx))
        ctx.sales.process_return(sale.sale_id, date(2024, 3, 20), "Damaged", Decimal("100"))
        with pytest.raises(InvalidTransitionError):
            ctx.sales.process_return(sale.sale_id, date(2024, 3, 21), "Damaged", Decimal("100"))

    def test_reason_required(self):
        ctx = _create_context()
        sale = _sell(ctx, _listed_item(ctx), _platform(ctx))
        with pytest.raises(ValidationError):
            ctx.sales.process_return(sale.sale_id, date(2024, 3, 20), "", Decimal("100"))


class TestDeleteSale:
    """Sale deletion and item restock."""

    def test_item_back_in_stock(self):
        ctx = _create_context()
        item = _listed_item(ctx)
        sale = _sell(ctx, item, _platform(ctx))
        ctx.inventory.mark_shipped(item.item_id)

        ctx.sales.delete_sale(sale.sale_id)

        assert ctx.sales.all_sales() == []
        assert ctx.inventory.get_item(item.item_id).status == ItemStatus.IN_STOCK

    def test_delete_returned_sale_restocks(self):
        ctx = _create_context()
        item = _listed_item(ctx)
        sale = _sell(ctx, item, _platform(ctx))
        ctx.sales.process_return(sale.sale_id, date(2024, 3, 20), "Damaged", Decimal("100"))
        ctx.sales.delete_sale(sale.sale_id)
        assert ctx.inventory.get_item(item.item_id).status == ItemStatus.IN_STOCK

    def test_delete_old_sale_keeps_open_resale(self):
        ctx = _create_context()
        item = _listed_item(ctx)
        platform = _platform(ctx)
        first = _sell(ctx, item, platform)
        ctx.sales.process_return(first.sale_id, date(2024, 3, 20), "Damaged", Decimal("100"))
        ctx.inventory.update_item(item.item_id, status=ItemStatus.LISTED)
        second = _sell(ctx, item, platform, sale_date=date(2024, 3, 25))

        ctx.sales.delete_sale(first.sale_id)

        assert [s.sale_id for s in ctx.sales.all_sales()] == [second.sale_id]
        assert ctx.inventory.get_item(item.item_id).status == ItemStatus.PENDING_SHIPMENT

    def test_missing_sale(self):
        with pytest.raises(NotFoundError):
            _create_context().sales.delete_sale("nope")


class TestSaleReads:
    """Joined rows and sale listing."""

    def test_joined_rows_degrade_when_platform_deleted(self):
        ctx = _create_context()
        item = _listed_item(ctx)
        platform = _platform(ctx)
        _sell(ctx, item, platform)
        ctx.platforms.delete_platform(platform.platform_id)

        row = ctx.sales.joined_rows()[0]
        assert row.platform_name is None
        assert row.item_title == "Vintage Camera"

    def test_pending_shipments(self):
        ctx = _create_context()
        platform = _platform(ctx)
        first = _listed_item(ctx, title="Camera")
        second = _listed_item(ctx, title="Boots")
        _sell(ctx, first, platform, sale_date=date(2024, 3, 12))
        _sell(ctx, second, platform, sale_date=date(2024, 3, 9))
        ctx.inventory.mark_shipped(first.item_id)

        assert [r.item_title for r in ctx.sales.pending_shipments()] == ["Boots"]

    def test_list_sales_date_range(self):
        ctx = _create_context()
        platform = _platform(ctx)
        _sell(ctx, _listed_item(ctx, title="A"), platform, sale_date=date(2024, 3, 1))
        _sell(ctx, _listed_item(ctx, title="B"), platform, sale_date=date(2024, 4, 1))
        query = SaleQuery(date_range=DateRange(date(2024, 3, 1), date(2024, 3, 31)))
        assert [r.item_title for r in ctx.sales.list_sales(query)] == ["A"]

"""Inventory service tests."""

from datetime import date
from decimal import Decimal

import pytest

from src.config import Settings
from src.core.errors import (
    InvalidTransitionError,
    NotFoundError,
    ReferentialIntegrityError,
    ValidationError,
)
from src.core.queries import ItemQuery
from src.models.reseller import ItemStatus
from src.services.context import ServiceContext


def _create_context() -> ServiceContext:
    return ServiceContext.create(Settings(backend="memory"), owner_id="u1")


class TestCreateItem:
    """Item creation and validation."""

    def test_defaults_to_in_stock(self):
        ctx = _create_context()
        item = ctx.inventory.create_item(title="  Lamp ", purchase_price="12.499")
        assert item.title == "Lamp"
        assert item.status == ItemStatus.IN_STOCK
        assert item.purchase_price == Decimal("12.50")
        assert ctx.inventory.get_item(item.item_id).purchase_price == Decimal("12.50")

    def test_unknown_store_rejected(self):
        ctx = _create_context()
        with pytest.raises(NotFoundError):
            ctx.inventory.create_item(title="Lamp", store_id="missing")

    def test_title_required(self):
        with pytest.raises(ValidationError):
            _create_context().inventory.create_item(title="")

    def test_owner_isolation(self):
        ctx = _create_context()
        item = ctx.inventory.create_item(title="Lamp")
        other = ServiceContext.create(Settings(backend="memory"), owner_id="u2", store=ctx.store)
        assert other.inventory.all_items() == []
        with pytest.raises(NotFoundError):
            other.inventory.get_item(item.item_id)


class TestUpdateItem:
    """Item edits."""

    def test_edit_fields(self):
        ctx = _create_context()
        item = ctx.inventory.create_item(title="Lamp")
        ctx.inventory.update_item(item.item_id, bin_location="C3", purchase_date=date(2024, 2, 1))
        stored = ctx.inventory.get_item(item.item_id)
        assert stored.bin_location == "C3"
        assert stored.purchase_date == date(2024, 2, 1)

    def test_status_can_be_set_directly(self):
        ctx = _create_context()
        item = ctx.inventory.create_item(title="Lamp")
        ctx.inventory.update_item(item.item_id, status=ItemStatus.SHIPPED)
        assert ctx.inventory.get_item(item.item_id).status == ItemStatus.SHIPPED

    def test_unknown_field_rejected(self):
        ctx = _create_context()
        item = ctx.inventory.create_item(title="Lamp")
        with pytest.raises(ValidationError):
            ctx.inventory.update_item(item.item_id, owner_id="u2")


class TestLifecycleSteps:
    """List and ship steps."""

    def test_list_then_ship_requires_sale(self):
        ctx = _create_context()
        item = ctx.inventory.create_item(title="Lamp")
        assert ctx.inventory.mark_listed(item.item_id).status == ItemStatus.LISTED
        with pytest.raises(InvalidTransitionError):
            ctx.inventory.mark_shipped(item.item_id)

    def test_cannot_list_twice(self):
        ctx = _create_context()
        item = ctx.inventory.create_item(title="Lamp")
        ctx.inventory.mark_listed(item.item_id)
        with pytest.raises(InvalidTransitionError):
            ctx.inventory.mark_listed(item.item_id)


class TestDeleteAndList:
    """Item deletion and listing."""

    def test_delete_blocked_by_sale(self):
        ctx = _create_context()
        item = ctx.inventory.create_item(title="Lamp", purchase_price=Decimal("5"))
        ctx.inventory.mark_listed(item.item_id)
        platform = ctx.platforms.create_platform("eBay")
        ctx.sales.record_sale(item.item_id, platform.platform_id, date(2024, 3, 1), Decimal("20"))

        with pytest.raises(ReferentialIntegrityError):
            ctx.inventory.delete_item(item.item_id)

    def test_delete(self):
        ctx = _create_context()
        item = ctx.inventory.create_item(title="Lamp")
        ctx.inventory.delete_item(item.item_id)
        assert ctx.inventory.all_items() == []

    def test_list_searches_category_name(self):
        ctx = _create_context()
        category = ctx.categories.create_category("Electronics")
        camera = ctx.inventory.create_item(title="Camera", category_id=category.category_id)
        ctx.inventory.create_item(title="Boots")
        result = ctx.inventory.list_items(ItemQuery(search="electro"))
        assert [i.item_id for i in result] == [camera.item_id]

"""Platform, store and category service tests."""

from decimal import Decimal

import pytest

from src.config import Settings
from src.core.errors import NotFoundError, ReferentialIntegrityError, ValidationError
from src.services.context import ServiceContext


def _create_context() -> ServiceContext:
    return ServiceContext.create(Settings(backend="memory"), owner_id="u1")


class TestPlatforms:
    """Platform CRUD and fee structure."""

    def test_create_and_update(self):
        ctx = _create_context()
        platform = ctx.platforms.create_platform("eBay", base_fee="0.3", percentage_fee="12.9")
        assert platform.fee_structure.base_fee == Decimal("0.30")

        ctx.platforms.update_platform(platform.platform_id, percentage_fee=Decimal("13.25"))
        stored = ctx.platforms.get_platform(platform.platform_id)
        assert stored.fee_structure.percentage_fee == Decimal("13.25")
        assert stored.name == "eBay"

    def test_active_only(self):
        ctx = _create_context()
        ctx.platforms.create_platform("eBay")
        ctx.platforms.create_platform("Mercari", active=False)
        assert [p.name for p in ctx.platforms.list_platforms(active_only=True)] == ["eBay"]
        assert len(ctx.platforms.list_platforms()) == 2

    def test_invalid_fee(self):
        with pytest.raises(ValidationError):
            _create_context().platforms.create_platform("eBay", percentage_fee=Decimal("-1"))


class TestStores:
    """Store CRUD and name rules."""

    def test_crud(self):
        ctx = _create_context()
        store = ctx.stores.create_store("Goodwill", location="Austin")
        ctx.stores.update_store(store.store_id, notes="Electronics in back")
        assert ctx.stores.get_store(store.store_id).notes == "Electronics in back"

        ctx.stores.delete_store(store.store_id)
        with pytest.raises(NotFoundError):
            ctx.stores.get_store(store.store_id)

    def test_short_name(self):
        with pytest.raises(ValidationError):
            _create_context().stores.create_store("G")


class TestCategories:
    """Category hierarchy edits and deletion."""

    def _nested(self, ctx):
        electronics = ctx.categories.create_category("Electronics")
        audio = ctx.categories.create_category("Audio", parent_id=electronics.category_id)
        headphones = ctx.categories.create_category("Headphones", parent_id=audio.category_id)
        return electronics, audio, headphones

    def test_move_under_descendant_rejected(self):
        ctx = _create_context()
        electronics, _, headphones = self._nested(ctx)
        with pytest.raises(ValidationError):
            ctx.categories.update_category(electronics.category_id, parent_id=headphones.category_id)

    def test_move_under_self_rejected(self):
        ctx = _create_context()
        electronics, _, _ = self._nested(ctx)
        with pytest.raises(ValidationError):
            ctx.categories.update_category(electronics.category_id, parent_id=electronics.category_id)

    def test_move_to_root(self):
        ctx = _create_context()
        _, audio, _ = self._nested(ctx)
        assert ctx.categories.update_category(audio.category_id, parent_id=None).parent_id is None

    def test_eligible_parents(self):
        ctx = _create_context()
        electronics, audio, _ = self._nested(ctx)
        ctx.categories.create_category("Clothing")
        names = [c.name for c in ctx.categories.eligible_parents(audio.category_id)]
        assert names == ["Clothing", "Electronics"]

    def test_unknown_parent(self):
        with pytest.raises(NotFoundError):
            _create_context().categories.create_category("Audio", parent_id="missing")

    def test_delete_with_children_blocked(self):
        ctx = _create_context()
        electronics, _, _ = self._nested(ctx)
        with pytest.raises(ReferentialIntegrityError):
            ctx.categories.delete_category(electronics.category_id)

    def test_delete_with_items_blocked(self):
        ctx = _create_context()
        category = ctx.categories.create_category("Toys")
        ctx.inventory.create_item(title="LEGO", category_id=category.category_id)
        with pytest.raises(ReferentialIntegrityError):
            ctx.categories.delete_category(category.category_id)

    def test_tree(self):
        ctx = _create_context()
        self._nested(ctx)
        roots = ctx.categories.tree()
        assert roots[0]["children"][0]["children"][0]["category"].name == "Headphones"

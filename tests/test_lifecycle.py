"""Sale lifecycle state machine unit tests."""

import pytest

from src.core import lifecycle
from src.core.errors import InvalidTransitionError
from src.core.lifecycle import Trigger
from src.models.reseller import ItemStatus


class TestTransitions:
    """Allowed status transitions."""

    def test_list_from_in_stock(self):
        assert lifecycle.apply(Trigger.LIST, ItemStatus.IN_STOCK) == ItemStatus.LISTED

    def test_sell_from_listed(self):
        assert lifecycle.apply(Trigger.SELL, ItemStatus.LISTED) == ItemStatus.PENDING_SHIPMENT

    def test_ship_from_pending(self):
        assert lifecycle.apply(Trigger.SHIP, ItemStatus.PENDING_SHIPMENT) == ItemStatus.SHIPPED

    @pytest.mark.parametrize("status", [ItemStatus.PENDING_SHIPMENT, ItemStatus.SHIPPED])
    def test_return_from_sold_states(self, status):
        assert lifecycle.apply(Trigger.RETURN, status) == ItemStatus.RETURNED

    @pytest.mark.parametrize("status", list(ItemStatus))
    def test_delete_sale_always_restocks(self, status):
        assert lifecycle.apply(Trigger.DELETE_SALE, status) == ItemStatus.IN_STOCK

    def test_accepts_plain_string_status(self):
        assert lifecycle.apply(Trigger.SELL, "listed") == ItemStatus.PENDING_SHIPMENT


class TestRejectedTransitions:
    """Triggers the current status does not allow."""

    @pytest.mark.parametrize(
        "status",
        [ItemStatus.IN_STOCK, ItemStatus.PENDING_SHIPMENT, ItemStatus.SHIPPED, ItemStatus.RETURNED],
    )
    def test_only_listed_items_sell(self, status):
        with pytest.raises(InvalidTransitionError):
            lifecycle.apply(Trigger.SELL, status)

    def test_cannot_ship_twice(self):
        with pytest.raises(InvalidTransitionError):
            lifecycle.apply(Trigger.SHIP, ItemStatus.SHIPPED)

    @pytest.mark.parametrize("status", [ItemStatus.IN_STOCK, ItemStatus.LISTED, ItemStatus.RETURNED])
    def test_return_requires_a_sale(self, status):
        with pytest.raises(InvalidTransitionError):
            lifecycle.apply(Trigger.RETURN, status)

    def test_cannot_relist_listed_item(self):
        with pytest.raises(InvalidTransitionError):
            lifecycle.apply(Trigger.LIST, ItemStatus.LISTED)

    def test_error_names_allowed_sources(self):
        with pytest.raises(InvalidTransitionError, match="pending_shipment"):
            lifecycle.apply(Trigger.SHIP, ItemStatus.IN_STOCK)


class TestStatusSets:
    """Initial, terminal and returnable statuses."""

    def test_initial_status(self):
        assert lifecycle.INITIAL_STATUS == ItemStatus.IN_STOCK

    def test_terminal_statuses_have_no_forward_trigger(self):
        forward = [Trigger.LIST, Trigger.SELL, Trigger.SHIP]
        for status in lifecycle.TERMINAL_STATUSES:
            assert not any(lifecycle.can_apply(t, status) for t in forward)

    def test_returnable_statuses(self):
        assert lifecycle.RETURNABLE_STATUSES == {ItemStatus.PENDING_SHIPMENT, ItemStatus.SHIPPED}

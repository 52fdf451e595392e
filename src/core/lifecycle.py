"""Sale lifecycle of an inventory item.

in_stock -> listed -> pending_shipment -> shipped
                      pending_shipment -> returned
                               shipped -> returned

Deleting a sale puts its item back to in_stock from any status.
"""

from __future__ import annotations

from enum import Enum

from src.core.errors import InvalidTransitionError
from src.models.reseller import ItemStatus


class Trigger(str, Enum):
    LIST = "list"
    SELL = "sell"
    SHIP = "ship"
    RETURN = "return"
    DELETE_SALE = "delete_sale"


# {trigger: (allowed source statuses, target status)}
TRANSITIONS: dict[Trigger, tuple[frozenset[ItemStatus], ItemStatus]] = {
    Trigger.LIST: (frozenset({ItemStatus.IN_STOCK}), ItemStatus.LISTED),
    Trigger.SELL: (frozenset({ItemStatus.LISTED}), ItemStatus.PENDING_SHIPMENT),
    Trigger.SHIP: (frozenset({ItemStatus.PENDING_SHIPMENT}), ItemStatus.SHIPPED),
    Trigger.RETURN: (
        frozenset({ItemStatus.PENDING_SHIPMENT, ItemStatus.SHIPPED}),
        ItemStatus.RETURNED,
    ),
    Trigger.DELETE_SALE: (frozenset(ItemStatus), ItemStatus.IN_STOCK),
}

INITIAL_STATUS = ItemStatus.IN_STOCK
TERMINAL_STATUSES = frozenset({ItemStatus.SHIPPED, ItemStatus.RETURNED})
SELLABLE_STATUSES = TRANSITIONS[Trigger.SELL][0]
RETURNABLE_STATUSES = TRANSITIONS[Trigger.RETURN][0]


def allowed_sources(trigger: Trigger) -> frozenset[ItemStatus]:
    return TRANSITIONS[trigger][0]


def target_status(trigger: Trigger) -> ItemStatus:
    return TRANSITIONS[trigger][1]


def can_apply(trigger: Trigger, status: ItemStatus) -> bool:
    return ItemStatus(status) in allowed_sources(trigger)


def apply(trigger: Trigger, status: ItemStatus) -> ItemStatus:
    """Returns the status after the trigger, or raises InvalidTransitionError."""
    status = ItemStatus(status)
    if not can_apply(trigger, status):
        allowed = ", ".join(sorted(s.value for s in allowed_sources(trigger)))
        raise InvalidTransitionError(
            f"Cannot {trigger.value} an item in status '{status.value}' (allowed: {allowed})"
        )
    return target_status(trigger)

"""Fee and profit calculation.

- Net profit of a sale from its price, acquisition cost, fees and shipping
- Suggested platform and card-processing fees (advisory pre-fill only)
- Profit of a returned sale
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from src.core.errors import ProfitUnavailableError
from src.models.reseller import FeeStructure, FeeSuggestion

Number = Union[Decimal, int, float, str]

CENT = Decimal("0.01")

# Flat card-processing approximation applied to every platform
TRANSACTION_FEE_RATE = Decimal("0.029")
TRANSACTION_FEE_FIXED = Decimal("0.30")


def to_money(value: Optional[Number]) -> Decimal:
    """Converts a number to a Decimal rounded half-up to cents. None becomes 0."""
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        # str() keeps floats like 0.1 from dragging their binary error along
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_profit(
    sale_price: Number,
    acquisition_cost: Optional[Number],
    platform_fees: Number = 0,
    transaction_fees: Number = 0,
    shipping_collected: Number = 0,
    shipping_cost: Number = 0,
) -> Decimal:
    """Net profit of a sale.

    profit = sale_price - acquisition_cost - platform_fees - transaction_fees
             + shipping_collected - shipping_cost

    Raises ProfitUnavailableError when the acquisition cost is unknown.
    """
    if acquisition_cost is None:
        raise ProfitUnavailableError("Acquisition cost is unknown, profit cannot be computed")

    profit = (
        to_money(sale_price)
        - to_money(acquisition_cost)
        - to_money(platform_fees)
        - to_money(transaction_fees)
        + to_money(shipping_collected)
        - to_money(shipping_cost)
    )
    return to_money(profit)


def compute_return_profit(refund_amount: Number, return_shipping_cost: Number = 0) -> Decimal:
    """Profit of a returned sale: the refund and return shipping booked as a loss.

    The original sale's fees and shipping terms are discarded. Restocking fee
    is not an input here; it is recorded on the sale only.
    """
    return -(to_money(refund_amount) + to_money(return_shipping_cost))


def suggest_platform_fee(sale_price: Number, fee_structure: FeeStructure) -> Decimal:
    percentage = to_money(sale_price) * Decimal(str(fee_structure.percentage_fee)) / Decimal(100)
    return to_money(percentage + to_money(fee_structure.base_fee))


def suggest_transaction_fee(
    sale_price: Number,
    rate: Number = TRANSACTION_FEE_RATE,
    fixed: Number = TRANSACTION_FEE_FIXED,
) -> Decimal:
    return to_money(to_money(sale_price) * Decimal(str(rate)) + Decimal(str(fixed)))


def suggest_fees(
    sale_price: Number,
    fee_structure: FeeStructure,
    transaction_rate: Number = TRANSACTION_FEE_RATE,
    transaction_fixed: Number = TRANSACTION_FEE_FIXED,
) -> FeeSuggestion:
    """Default fee amounts for a sale form; the user may override them."""
    return FeeSuggestion(
        platform_fees=suggest_platform_fee(sale_price, fee_structure),
        transaction_fees=suggest_transaction_fee(sale_price, transaction_rate, transaction_fixed),
    )

"""Fee/profit calculator unit tests."""

from decimal import Decimal

import pytest

from src.core.errors import ProfitUnavailableError
from src.core.profit import (
    compute_profit,
    compute_return_profit,
    suggest_fees,
    suggest_platform_fee,
    suggest_transaction_fee,
    to_money,
)
from src.models.reseller import FeeStructure


class TestComputeProfit:
    """Sale profit formula."""

    def test_reference_sale(self):
        """$50 item sold for $100, 10% + $0.30 platform fee, $3.20 transaction fee."""
        profit = compute_profit(
            sale_price=Decimal("100"),
            acquisition_cost=Decimal("50"),
            platform_fees=Decimal("10.30"),
            transaction_fees=Decimal("3.20"),
        )
        assert profit == Decimal("36.50")

    def test_shipping_collected_and_cost(self):
        profit = compute_profit(
            sale_price=Decimal("249.99"),
            acquisition_cost=Decimal("120"),
            platform_fees=Decimal("32.25"),
            transaction_fees=Decimal("7.55"),
            shipping_collected=Decimal("12.99"),
            shipping_cost=Decimal("8.50"),
        )
        assert profit == Decimal("94.68")

    def test_result_is_quantized_to_cents(self):
        profit = compute_profit(Decimal("10.005"), Decimal("0"))
        assert profit == Decimal("10.01")
        assert profit.as_tuple().exponent == -2

    def test_floats_do_not_leak_binary_error(self):
        assert compute_profit(0.1 + 0.2, 0.1) == Decimal("0.20")

    def test_negative_profit_allowed(self):
        assert compute_profit(Decimal("20"), Decimal("35")) == Decimal("-15.00")

    def test_unknown_cost_is_not_zero(self):
        with pytest.raises(ProfitUnavailableError):
            compute_profit(Decimal("100"), None)

    def test_zero_cost_is_known(self):
        assert compute_profit(Decimal("100"), Decimal("0")) == Decimal("100.00")


class TestReturnProfit:
    """Profit after a return."""

    def test_reference_return(self):
        assert compute_return_profit(Decimal("100"), Decimal("8")) == Decimal("-108.00")

    def test_return_without_shipping(self):
        assert compute_return_profit(Decimal("59.99")) == Decimal("-59.99")

    def test_free_refund_is_zero(self):
        assert compute_return_profit(Decimal("0")) == Decimal("0.00")


class TestFeeSuggestion:
    """Suggested platform and transaction fees."""

    def test_platform_fee(self):
        fees = FeeStructure(base_fee=Decimal("0.30"), percentage_fee=Decimal("10"))
        assert suggest_platform_fee(Decimal("100"), fees) == Decimal("10.30")

    def test_platform_fee_percentage_only(self):
        fees = FeeStructure(base_fee=Decimal("0"), percentage_fee=Decimal("12.9"))
        assert suggest_platform_fee(Decimal("249.99"), fees) == Decimal("32.25")

    def test_transaction_fee_defaults(self):
        assert suggest_transaction_fee(Decimal("100")) == Decimal("3.20")

    def test_transaction_fee_configurable(self):
        assert suggest_transaction_fee(Decimal("100"), rate="0.03", fixed="0.25") == Decimal("3.25")

    def test_suggest_fees_bundle(self):
        fees = FeeStructure(base_fee=Decimal("0.30"), percentage_fee=Decimal("10"))
        suggestion = suggest_fees(Decimal("100"), fees)
        assert suggestion.platform_fees == Decimal("10.30")
        assert suggestion.transaction_fees == Decimal("3.20")

    def test_zero_price(self):
        fees = FeeStructure(base_fee=Decimal("0"), percentage_fee=Decimal("15"))
        assert suggest_platform_fee(Decimal("0"), fees) == Decimal("0.00")
        assert suggest_transaction_fee(Decimal("0")) == Decimal("0.30")


class TestToMoney:
    """Cent rounding."""

    def test_none_is_zero(self):
        assert to_money(None) == Decimal("0.00")

    def test_half_up(self):
        assert to_money("2.345") == Decimal("2.35")
        assert to_money("-2.345") == Decimal("-2.35")

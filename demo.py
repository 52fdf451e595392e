"""
Walks an item through the whole sale lifecycle on the in-memory backend.

Usage:
    python demo.py
"""

import logging
import sys
from datetime import date, timedelta
from decimal import Decimal

import env_loader  # noqa: F401

from data_layer.generators.demo_data import seed_demo_data
from src.config import Settings
from src.core.errors import InvalidTransitionError
from src.models.reseller import DateRange
from src.services.context import ServiceContext

OWNER_ID = "demo-owner"


def build_context() -> ServiceContext:
    settings = Settings(backend="memory")
    return ServiceContext.create(settings, OWNER_ID)


def show_seed(ctx: ServiceContext, today: date):
    print("\n--- Demo Data ---")
    summary = seed_demo_data(ctx, today)
    for entity, count in summary.items():
        print(f"   {entity}: {count}")


def show_lifecycle(ctx: ServiceContext, today: date):
    print("\n--- Sale Lifecycle ---")
    store = ctx.stores.list_stores()[0]
    item = ctx.inventory.create_item(
        title="Vintage Polaroid Camera",
        description="SX-70, tested with film",
        purchase_date=today - timedelta(days=12),
        purchase_price=Decimal("45.00"),
        store_id=store.store_id,
        bin_location="F1",
    )
    print(f"✅ Item created: {item.title} [{item.status.value}]")

    item = ctx.inventory.mark_listed(item.item_id)
    print(f"✅ Listed [{item.status.value}]")

    platform = next(p for p in ctx.sales.active_platforms() if p.name == "eBay")
    fees = ctx.sales.suggest_fees(Decimal("129.99"), platform.platform_id)
    print(f"   Suggested fees on {platform.name}: platform={fees.platform_fees}, transaction={fees.transaction_fees}")

    sale = ctx.sales.record_sale(
        inventory_item_id=item.item_id,
        platform_id=platform.platform_id,
        sale_date=today,
        sale_price=Decimal("129.99"),
        shipping_collected=Decimal("10.00"),
        shipping_cost=Decimal("8.25"),
        platform_fees=fees.platform_fees,
        transaction_fees=fees.transaction_fees,
    )
    print(f"✅ Sold for {sale.sale_price}, profit {sale.profit} [{ctx.inventory.get_item(item.item_id).status.value}]")

    try:
        ctx.sales.record_sale(
            inventory_item_id=item.item_id,
            platform_id=platform.platform_id,
            sale_date=today,
            sale_price=Decimal("99.00"),
        )
    except InvalidTransitionError as e:
        print(f"   ⛔ Second sale rejected: {e}")

    ctx.inventory.mark_shipped(item.item_id)
    print(f"✅ Shipped [{ctx.inventory.get_item(item.item_id).status.value}]")

    sale = ctx.sales.process_return(
        sale.sale_id,
        return_date=today,
        reason="Shutter sticks",
        refund_amount=Decimal("139.99"),
        return_shipping_cost=Decimal("9.50"),
    )
    print(f"✅ Returned, profit now {sale.profit} [{ctx.inventory.get_item(item.item_id).status.value}]")

    ctx.sales.delete_sale(sale.sale_id)
    print(f"✅ Sale deleted [{ctx.inventory.get_item(item.item_id).status.value}]")


def show_analytics(ctx: ServiceContext, today: date):
    print("\n--- Analytics (last 30 days) ---")
    report = ctx.analytics.report(DateRange.last_days(today, 30))
    for p in report["platforms"]:
        print(f"   {p.name}: sales={p.total_sales} profit={p.total_profit} margin={p.profit_margin}% ({p.performance})")
    turnover = report["turnover"]
    print(f"   Turnover: {turnover.sold_items}/{turnover.total_inventory} sold, "
          f"avg {turnover.average_days_to_sell} days, rate {turnover.turnover_rate}")

    stats = ctx.analytics.dashboard(today)
    print(f"   Dashboard: revenue={stats.total_revenue} growth={stats.monthly_growth}% "
          f"listed={stats.active_listings} sold={stats.sold_items} inventory={stats.active_inventory}")


def main():
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    print("=" * 60)
    print("🧾 Reseller Ledger - Lifecycle Demo")
    print("=" * 60)

    today = date.today()
    ctx = build_context()

    changes = []
    watch = ctx.store.change_feed.watch(OWNER_ID, ["sales", "inventory_items"], lambda: changes.append(1))
    with watch:
        show_seed(ctx, today)
        show_lifecycle(ctx, today)
    print(f"\n   Change notifications received: {len(changes)}")

    show_analytics(ctx, today)

    print("\n" + "=" * 60)
    print("✅ Demo complete")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())

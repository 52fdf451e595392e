"""Demo data for an empty account.

5 stores, 5 platforms, 5 categories, 5 inventory items and 3 sales. Everything
is inserted through the services, so sales move their items through the
lifecycle and profits are computed the same way as for real data.
"""
from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal

from src.core.errors import ResellerError
from src.services.context import ServiceContext

logger = logging.getLogger(__name__)


class AccountNotEmptyError(ResellerError):
    """Demo data is only seeded into an account with no records."""
    pass


# --- CONSTANTS ---

STORES = [
    {"name": "Goodwill", "location": "123 Main St, Austin, TX", "notes": "Best location for electronics"},
    {"name": "Target", "location": "456 Oak Ave, Austin, TX", "notes": "Clearance section in back"},
    {"name": "Walmart", "location": "789 Pine Rd, Austin, TX", "notes": "Check seasonal items"},
    {"name": "Ross", "location": "321 Cedar Ln, Austin, TX", "notes": "Morning visits best"},
    {"name": "TJ Maxx", "location": "654 Elm St, Austin, TX", "notes": "Great for designer items"},
]

PLATFORMS = [
    {"name": "eBay", "base_fee": Decimal("0"), "percentage_fee": Decimal("12.9")},
    {"name": "Amazon", "base_fee": Decimal("0"), "percentage_fee": Decimal("15")},
    {"name": "Mercari", "base_fee": Decimal("0"), "percentage_fee": Decimal("10")},
    {"name": "Poshmark", "base_fee": Decimal("0"), "percentage_fee": Decimal("20")},
    {"name": "Facebook Marketplace", "base_fee": Decimal("0"), "percentage_fee": Decimal("5")},
]

CATEGORIES = ["Electronics", "Clothing", "Home & Garden", "Toys & Games", "Collectibles"]

# (title, description, purchase price, days since purchase, bin)
ITEMS = [
    ("Apple AirPods Pro", "Sealed in box, latest model", Decimal("150"), 21, "A1"),
    ("Nike Air Jordan 1", "Size 10, Red/Black colorway", Decimal("89.99"), 14, "B2"),
    ("Dyson V8 Vacuum", "Refurbished, all attachments included", Decimal("120"), 28, "C3"),
    ("LEGO Star Wars Set", "Millennium Falcon, complete set", Decimal("75"), 10, "D4"),
    ("Pokemon Cards Collection", "Rare holos from Base Set", Decimal("200"), 5, "E5"),
]

# (item title, platform name, sale price, shipping collected, shipping cost, days ago, shipped)
SALES = [
    ("Dyson V8 Vacuum", "eBay", Decimal("249.99"), Decimal("12.99"), Decimal("8.50"), 3, True),
    ("Apple AirPods Pro", "Mercari", Decimal("159.99"), Decimal("9.99"), Decimal("5.75"), 2, False),
    ("LEGO Star Wars Set", "Amazon", Decimal("299.99"), Decimal("15.99"), Decimal("12.25"), 1, False),
]

# Listed but not sold
LISTED = ["Nike Air Jordan 1"]


def seed_demo_data(ctx: ServiceContext, today: date) -> dict:
    """Seeds the owner's empty account. Returns the number of records per entity."""
    if not ctx.store.is_empty(ctx.owner_id):
        raise AccountNotEmptyError(f"Account {ctx.owner_id} already has data, demo data not loaded")

    logger.info("Seeding demo data for %s", ctx.owner_id)

    stores = [ctx.stores.create_store(**s) for s in STORES]
    platforms = {p["name"]: ctx.platforms.create_platform(**p) for p in PLATFORMS}
    categories = [ctx.categories.create_category(name) for name in CATEGORIES]

    items = {}
    for index, (title, description, price, days_ago, bin_location) in enumerate(ITEMS):
        items[title] = ctx.inventory.create_item(
            title=title,
            description=description,
            purchase_date=today - timedelta(days=days_ago),
            purchase_price=price,
            store_id=stores[index % len(stores)].store_id,
            category_id=categories[index % len(categories)].category_id,
            bin_location=bin_location,
        )

    sales = []
    for title, platform_name, price, collected, cost, days_ago, shipped in SALES:
        item = items[title]
        platform = platforms[platform_name]
        ctx.inventory.mark_listed(item.item_id)
        fees = ctx.sales.suggest_fees(price, platform.platform_id)
        sales.append(
            ctx.sales.record_sale(
                inventory_item_id=item.item_id,
                platform_id=platform.platform_id,
                sale_date=today - timedelta(days=days_ago),
                sale_price=price,
                shipping_collected=collected,
                shipping_cost=cost,
                platform_fees=fees.platform_fees,
                transaction_fees=fees.transaction_fees,
            )
        )
        if shipped:
            ctx.inventory.mark_shipped(item.item_id)

    for title in LISTED:
        ctx.inventory.mark_listed(items[title].item_id)

    summary = {
        "stores": len(stores),
        "platforms": len(platforms),
        "categories": len(categories),
        "inventory_items": len(items),
        "sales": len(sales),
    }
    logger.info("Demo data loaded for %s: %s", ctx.owner_id, summary)
    return summary

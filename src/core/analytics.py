"""Sales analytics reducers.

Pure functions over already-fetched SaleRow values. A sale whose platform or
item no longer exists is reported under "Unknown"; a sale without a category
is left out of the category breakdown. No reducer divides by zero.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional

from src.core.profit import to_money
from src.models.reseller import (
    CategoryMetrics,
    DailyTrendPoint,
    DashboardStats,
    DateRange,
    InventoryItem,
    ItemStatus,
    MarginSummary,
    MonthlyTotal,
    PlatformMargin,
    PlatformMetrics,
    SaleRow,
    TopSeller,
    TurnoverMetrics,
)

UNKNOWN = "Unknown"
TOP_SELLER_LIMIT = 10

HIGH_MARGIN = 15.0
MEDIUM_MARGIN = 10.0


def margin_percent(profit: Decimal, sales: Decimal) -> float:
    """profit / sales * 100, 0 when there are no sales."""
    if not sales:
        return 0.0
    return round(float(profit / sales * 100), 2)


def share_percent(part: Decimal, total: Decimal) -> float:
    if not total:
        return 0.0
    return round(float(part / total * 100), 2)


def performance_band(margin: float) -> str:
    if margin >= HIGH_MARGIN:
        return "High"
    if margin >= MEDIUM_MARGIN:
        return "Medium"
    return "Low"


def _profit(row: SaleRow) -> Decimal:
    # Sales recorded without an acquisition cost carry no profit
    return row.profit if row.profit is not None else Decimal("0.00")


def _in_range(rows: Iterable[SaleRow], date_range: Optional[DateRange]) -> list[SaleRow]:
    if date_range is None:
        return list(rows)
    return [r for r in rows if date_range.contains(r.sale_date)]


# --- Per platform ---


def by_platform(rows: Iterable[SaleRow], date_range: Optional[DateRange] = None) -> list[PlatformMetrics]:
    totals: dict[Optional[str], dict] = {}

    for row in _in_range(rows, date_range):
        key = row.platform_id if row.platform_name is not None else None
        if key not in totals:
            totals[key] = {
                "name": row.platform_name if key is not None else UNKNOWN,
                "sales": Decimal("0.00"),
                "profit": Decimal("0.00"),
                "count": 0,
            }
        totals[key]["sales"] += row.sale_price
        totals[key]["profit"] += _profit(row)
        totals[key]["count"] += 1

    metrics = []
    for platform_id, t in totals.items():
        margin = margin_percent(t["profit"], t["sales"])
        metrics.append(
            PlatformMetrics(
                platform_id=platform_id,
                name=t["name"],
                total_sales=to_money(t["sales"]),
                total_profit=to_money(t["profit"]),
                order_count=t["count"],
                average_price=to_money(t["sales"] / t["count"]),
                profit_margin=margin,
                performance=performance_band(margin),
            )
        )

    metrics.sort(key=lambda m: m.total_sales, reverse=True)
    return metrics


def sales_breakdown(rows: Iterable[SaleRow], date_range: Optional[DateRange] = None) -> dict[str, Decimal]:
    """Total sale price per platform name, largest first."""
    totals: dict[str, Decimal] = defaultdict(lambda: Decimal("0.00"))
    for row in _in_range(rows, date_range):
        totals[row.platform_name or UNKNOWN] += row.sale_price
    return dict(sorted(totals.items(), key=lambda kv: kv[1], reverse=True))


def profit_margins(rows: Iterable[SaleRow], date_range: Optional[DateRange] = None) -> MarginSummary:
    """Margin per platform name plus the margin across all platforms."""
    sales: dict[str, Decimal] = defaultdict(lambda: Decimal("0.00"))
    profit: dict[str, Decimal] = defaultdict(lambda: Decimal("0.00"))
    for row in _in_range(rows, date_range):
        name = row.platform_name or UNKNOWN
        sales[name] += row.sale_price
        profit[name] += _profit(row)

    platforms = [
        PlatformMargin(
            name=name,
            sales=to_money(sales[name]),
            profit=to_money(profit[name]),
            margin=margin_percent(profit[name], sales[name]),
        )
        for name in sales
    ]
    platforms.sort(key=lambda p: p.margin, reverse=True)

    total_sales = sum(sales.values(), Decimal("0.00"))
    total_profit = sum(profit.values(), Decimal("0.00"))
    return MarginSummary(platforms=platforms, overall_margin=margin_percent(total_profit, total_sales))


# --- Per category ---


def by_category(
    rows: Iterable[SaleRow],
    inventory: Iterable[InventoryItem] = (),
    date_range: Optional[DateRange] = None,
) -> list[CategoryMetrics]:
    totals: dict[str, dict] = {}

    for row in _in_range(rows, date_range):
        if not row.category_id or not row.category_name:
            continue
        if row.category_id not in totals:
            totals[row.category_id] = {
                "name": row.category_name,
                "sales": Decimal("0.00"),
                "profit": Decimal("0.00"),
            }
        totals[row.category_id]["sales"] += row.sale_price
        totals[row.category_id]["profit"] += _profit(row)

    item_counts: dict[str, int] = defaultdict(int)
    for item in inventory:
        if item.category_id:
            item_counts[item.category_id] += 1

    grand_total = sum((t["sales"] for t in totals.values()), Decimal("0.00"))

    metrics = [
        CategoryMetrics(
            category_id=category_id,
            name=t["name"],
            total_sales=to_money(t["sales"]),
            total_profit=to_money(t["profit"]),
            item_count=item_counts.get(category_id, 0),
            profit_margin=margin_percent(t["profit"], t["sales"]),
            percentage_of_sales=share_percent(t["sales"], grand_total),
        )
        for category_id, t in totals.items()
    ]
    metrics.sort(key=lambda m: m.total_sales, reverse=True)
    return metrics


# --- Over time ---


def daily_trend(rows: Iterable[SaleRow], date_range: DateRange) -> list[DailyTrendPoint]:
    """One point per day of the range, days without sales included as zero."""
    sales: dict[date, Decimal] = defaultdict(lambda: Decimal("0.00"))
    profit: dict[date, Decimal] = defaultdict(lambda: Decimal("0.00"))
    for row in _in_range(rows, date_range):
        sales[row.sale_date] += row.sale_price
        profit[row.sale_date] += _profit(row)

    return [
        DailyTrendPoint(day=day, sales=to_money(sales[day]), profit=to_money(profit[day]))
        for day in date_range.days()
    ]


def _month_start(day: date, months_back: int = 0) -> date:
    index = day.year * 12 + (day.month - 1) - months_back
    return date(index // 12, index % 12 + 1, 1)


def monthly_totals(rows: Iterable[SaleRow], today: date, months: int = 12) -> list[MonthlyTotal]:
    """Sales per calendar month for the last `months` months ending with today's month."""
    starts = [_month_start(today, back) for back in range(months - 1, -1, -1)]
    totals: dict[date, Decimal] = {start: Decimal("0.00") for start in starts}
    for row in rows:
        key = _month_start(row.sale_date)
        if key in totals:
            totals[key] += row.sale_price
    return [
        MonthlyTotal(month=start, label=start.strftime("%b"), total=to_money(totals[start]))
        for start in starts
    ]


# --- Per item ---


def top_sellers(
    rows: Iterable[SaleRow],
    date_range: Optional[DateRange] = None,
    limit: int = TOP_SELLER_LIMIT,
) -> list[TopSeller]:
    totals: dict[str, dict] = {}
    for row in _in_range(rows, date_range):
        title = row.item_title or UNKNOWN
        if title not in totals:
            totals[title] = {"units": 0, "sales": Decimal("0.00"), "profit": Decimal("0.00")}
        totals[title]["units"] += 1
        totals[title]["sales"] += row.sale_price
        totals[title]["profit"] += _profit(row)

    sellers = [
        TopSeller(
            title=title,
            units_sold=t["units"],
            total_sales=to_money(t["sales"]),
            total_profit=to_money(t["profit"]),
            avg_sale_price=to_money(t["sales"] / t["units"]),
            profit_margin=margin_percent(t["profit"], t["sales"]),
        )
        for title, t in totals.items()
    ]
    sellers.sort(key=lambda s: s.total_sales, reverse=True)
    return sellers[:limit]


def _acquired_on(row: SaleRow) -> Optional[date]:
    if row.item_purchase_date is not None:
        return row.item_purchase_date
    if row.item_created_at:
        return datetime.fromisoformat(row.item_created_at).date()
    return None


def turnover(
    rows: Iterable[SaleRow],
    total_inventory: int,
    date_range: DateRange,
) -> TurnoverMetrics:
    """Average days to sell and an annualized sold/inventory ratio.

    turnover_rate = (sold in period / total inventory) * (365 / days in period)
    """
    sold = _in_range(rows, date_range)

    days_to_sell = []
    for row in sold:
        acquired = _acquired_on(row)
        if acquired is None:
            continue
        days = (row.sale_date - acquired).days
        if days >= 0:
            days_to_sell.append(days)

    average_days = sum(days_to_sell) / len(days_to_sell) if days_to_sell else 0.0

    days_in_period = max((date_range.end - date_range.start).days, 1)
    rate = (len(sold) / total_inventory) * (365 / days_in_period) if total_inventory else 0.0

    return TurnoverMetrics(
        total_inventory=total_inventory,
        sold_items=len(sold),
        average_days_to_sell=round(average_days, 2),
        turnover_rate=round(rate, 4),
    )


# --- Dashboard ---


def dashboard_stats(
    rows: Iterable[SaleRow],
    inventory: Iterable[InventoryItem],
    today: date,
) -> DashboardStats:
    """Current month revenue against last month, plus inventory counts."""
    this_month = _month_start(today)
    last_month = _month_start(today, 1)

    current = Decimal("0.00")
    previous = Decimal("0.00")
    for row in rows:
        month = _month_start(row.sale_date)
        if month == this_month and row.sale_date <= today:
            current += row.sale_price
        elif month == last_month:
            previous += row.sale_price

    growth = round(float((current - previous) / previous * 100), 2) if previous else 0.0

    items = list(inventory)
    return DashboardStats(
        total_revenue=to_money(current),
        monthly_growth=growth,
        active_listings=sum(1 for i in items if i.status == ItemStatus.LISTED),
        sold_items=sum(
            1 for i in items if i.status in (ItemStatus.PENDING_SHIPMENT, ItemStatus.SHIPPED)
        ),
        active_inventory=len(items),
    )

"""
Reseller MCP Server

Provides tools for inventory, sales, returns and analytics for one owner
(RESELLER_OWNER_ID) over the configured store backend.
"""

import dataclasses
import json
import logging
import os
import sys
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Dict, List, Optional

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
import env_loader  # noqa: F401

from mcp.server import Server
from mcp.types import TextContent, Tool

from src.config import Settings
from src.core.errors import ResellerError, ValidationError
from src.core.queries import ItemQuery
from src.models.reseller import DateRange, ItemStatus
from src.services.context import ServiceContext

logger = logging.getLogger(__name__)

app = Server("reseller")

_ctx: Optional[ServiceContext] = None


def _context() -> ServiceContext:
    global _ctx
    if _ctx is None:
        _ctx = ServiceContext.create(Settings.from_env())
    return _ctx


def _to_json(obj):
    """Makes Decimal, dates, enums and dataclasses JSON serializable."""
    if isinstance(obj, Decimal):
        return int(obj) if obj == int(obj) else float(obj)
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, date):
        return obj.isoformat()
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: _to_json(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, dict):
        return {k: _to_json(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_to_json(i) for i in obj]
    return obj


def _result(data):
    return [TextContent(type="text", text=json.dumps(_to_json(data), indent=2, ensure_ascii=False))]


def _date(value: Optional[str], default: date) -> date:
    return date.fromisoformat(value) if value else default


_MONEY = {"type": "number"}


@app.list_tools()
async def list_tools() -> List[Tool]:
    return [
        Tool(name="list_inventory", description="List inventory items, optionally searched and filtered by status",
             inputSchema={"type": "object", "properties": {"search": {"type": "string"}, "status": {"type": "string", "enum": [s.value for s in ItemStatus]}}}),
        Tool(name="list_sellable_items", description="List items that can be sold right now (status listed)",
             inputSchema={"type": "object", "properties": {}}),
        Tool(name="list_platforms", description="List active selling platforms and their fee structures",
             inputSchema={"type": "object", "properties": {}}),
        Tool(name="mark_listed", description="Mark an in-stock item as listed for sale",
             inputSchema={"type": "object", "properties": {"item_id": {"type": "string"}}, "required": ["item_id"]}),
        Tool(name="suggest_fees", description="Suggested platform and transaction fees for a sale price",
             inputSchema={"type": "object", "properties": {"sale_price": _MONEY, "platform_id": {"type": "string"}}, "required": ["sale_price", "platform_id"]}),
        Tool(name="record_sale", description="Record a sale of a listed item; the item moves to pending shipment",
             inputSchema={"type": "object", "properties": {
                 "inventory_item_id": {"type": "string"}, "platform_id": {"type": "string"},
                 "sale_date": {"type": "string", "format": "date"}, "sale_price": _MONEY,
                 "shipping_collected": _MONEY, "shipping_cost": _MONEY,
                 "platform_fees": _MONEY, "transaction_fees": _MONEY,
                 "use_suggested_fees": {"type": "boolean"}},
                 "required": ["inventory_item_id", "platform_id", "sale_price"]}),
        Tool(name="mark_shipped", description="Mark a pending-shipment item as shipped",
             inputSchema={"type": "object", "properties": {"item_id": {"type": "string"}}, "required": ["item_id"]}),
        Tool(name="process_return", description="Process a return for a sale",
             inputSchema={"type": "object", "properties": {
                 "sale_id": {"type": "string"}, "return_date": {"type": "string", "format": "date"},
                 "reason": {"type": "string"}, "refund_amount": _MONEY,
                 "return_shipping_cost": _MONEY, "restocking_fee": _MONEY},
                 "required": ["sale_id", "reason", "refund_amount"]}),
        Tool(name="delete_sale", description="Delete a sale and put its item back in stock",
             inputSchema={"type": "object", "properties": {"sale_id": {"type": "string"}}, "required": ["sale_id"]}),
        Tool(name="pending_shipments", description="Sales waiting to be shipped, oldest first",
             inputSchema={"type": "object", "properties": {"search": {"type": "string"}}}),
        Tool(name="analytics_report", description="Platform, category, trend, top seller and turnover analytics for a date range (default last 30 days)",
             inputSchema={"type": "object", "properties": {"start_date": {"type": "string", "format": "date"}, "end_date": {"type": "string", "format": "date"}}}),
        Tool(name="dashboard", description="Current month revenue, growth and inventory counts",
             inputSchema={"type": "object", "properties": {}}),
    ]


@app.call_tool()
async def call_tool(name: str, arguments: dict) -> List[TextContent]:
    return _result(dispatch(_context(), name, arguments or {}))


def dispatch(ctx: ServiceContext, name: str, arguments: dict) -> Dict:
    handlers = {
        "list_inventory": lambda a: list_inventory(ctx, a.get("search", ""), a.get("status")),
        "list_sellable_items": lambda a: list_sellable_items(ctx),
        "list_platforms": lambda a: list_platforms(ctx),
        "mark_listed": lambda a: mark_listed(ctx, a["item_id"]),
        "suggest_fees": lambda a: suggest_fees(ctx, a["sale_price"], a["platform_id"]),
        "record_sale": lambda a: record_sale(ctx, a),
        "mark_shipped": lambda a: mark_shipped(ctx, a["item_id"]),
        "process_return": lambda a: process_return(ctx, a),
        "delete_sale": lambda a: delete_sale(ctx, a["sale_id"]),
        "pending_shipments": lambda a: pending_shipments(ctx, a.get("search", "")),
        "analytics_report": lambda a: analytics_report(ctx, a.get("start_date"), a.get("end_date")),
        "dashboard": lambda a: dashboard(ctx),
    }
    handler = handlers.get(name)
    if not handler:
        raise ValueError(f"Unknown tool: {name}")
    try:
        return handler(arguments)
    except ValidationError as e:
        return {"success": False, "error": str(e), "errors": e.errors}
    except ResellerError as e:
        logger.info("Tool %s rejected: %s", name, e)
        return {"success": False, "error": str(e)}
    except KeyError as e:
        return {"success": False, "error": f"Missing argument: {e.args[0]}"}
    except (ValueError, InvalidOperation) as e:
        return {"success": False, "error": str(e) or "Invalid number"}


# --- Implementation ---

def list_inventory(ctx: ServiceContext, search: str = "", status: Optional[str] = None) -> Dict:
    query = ItemQuery(search=search, status=ItemStatus(status) if status else None)
    items = ctx.inventory.list_items(query)
    return {"success": True, "count": len(items), "data": items}


def list_sellable_items(ctx: ServiceContext) -> Dict:
    items = ctx.sales.sellable_items()
    return {"success": True, "count": len(items), "data": items}


def list_platforms(ctx: ServiceContext) -> Dict:
    platforms = ctx.sales.active_platforms()
    return {"success": True, "count": len(platforms), "data": platforms}


def mark_listed(ctx: ServiceContext, item_id: str) -> Dict:
    item = ctx.inventory.mark_listed(item_id)
    return {"success": True, "item_id": item.item_id, "status": item.status}


def mark_shipped(ctx: ServiceContext, item_id: str) -> Dict:
    item = ctx.inventory.mark_shipped(item_id)
    return {"success": True, "item_id": item.item_id, "status": item.status}


def suggest_fees(ctx: ServiceContext, sale_price, platform_id: str) -> Dict:
    fees = ctx.sales.suggest_fees(Decimal(str(sale_price)), platform_id)
    return {"success": True, "platform_fees": fees.platform_fees, "transaction_fees": fees.transaction_fees}


def record_sale(ctx: ServiceContext, args: dict) -> Dict:
    sale_price = Decimal(str(args["sale_price"]))
    platform_fees = args.get("platform_fees")
    transaction_fees = args.get("transaction_fees")
    if args.get("use_suggested_fees"):
        fees = ctx.sales.suggest_fees(sale_price, args["platform_id"])
        platform_fees = fees.platform_fees if platform_fees is None else platform_fees
        transaction_fees = fees.transaction_fees if transaction_fees is None else transaction_fees

    sale = ctx.sales.record_sale(
        inventory_item_id=args["inventory_item_id"],
        platform_id=args["platform_id"],
        sale_date=_date(args.get("sale_date"), date.today()),
        sale_price=sale_price,
        shipping_collected=Decimal(str(args.get("shipping_collected", 0))),
        shipping_cost=Decimal(str(args.get("shipping_cost", 0))),
        platform_fees=Decimal(str(platform_fees or 0)),
        transaction_fees=Decimal(str(transaction_fees or 0)),
    )
    return {"success": True, "sale_id": sale.sale_id, "profit": sale.profit, "data": sale}


def process_return(ctx: ServiceContext, args: dict) -> Dict:
    sale = ctx.sales.process_return(
        sale_id=args["sale_id"],
        return_date=_date(args.get("return_date"), date.today()),
        reason=args["reason"],
        refund_amount=Decimal(str(args["refund_amount"])),
        return_shipping_cost=Decimal(str(args.get("return_shipping_cost", 0))),
        restocking_fee=Decimal(str(args.get("restocking_fee", 0))),
    )
    return {"success": True, "sale_id": sale.sale_id, "profit": sale.profit}


def delete_sale(ctx: ServiceContext, sale_id: str) -> Dict:
    ctx.sales.delete_sale(sale_id)
    return {"success": True, "sale_id": sale_id, "deleted": True}


def pending_shipments(ctx: ServiceContext, search: str = "") -> Dict:
    rows = ctx.sales.pending_shipments(search)
    return {"success": True, "count": len(rows), "data": rows}


def analytics_report(ctx: ServiceContext, start_date: Optional[str] = None, end_date: Optional[str] = None) -> Dict:
    end = _date(end_date, date.today())
    start = _date(start_date, end - timedelta(days=30))
    report = ctx.analytics.report(DateRange(start=start, end=end))
    return {"success": True, **report}


def dashboard(ctx: ServiceContext) -> Dict:
    today = date.today()
    return {
        "success": True,
        "stats": ctx.analytics.dashboard(today),
        "monthly": ctx.analytics.monthly_overview(today),
    }


if __name__ == "__main__":
    import asyncio
    from mcp.server.stdio import stdio_server

    logging.basicConfig(
        level=getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    async def run():
        async with stdio_server() as (read, write):
            await app.run(read, write, app.create_initialization_options())

    asyncio.run(run())

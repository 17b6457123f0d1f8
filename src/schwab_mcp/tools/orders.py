from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from schwab_mcp.accounts import friendly_name, resolve_account_hash, validate_account_name
from schwab_mcp.data.schwab import response_json
from schwab_mcp.errors import NoDataError, ToolError
from schwab_mcp.tools.base import (
    ACCOUNT_NAME_PROPERTY,
    DATE_PATTERN,
    ToolContext,
    ToolRegistry,
    ToolSpec,
    schema,
)
from schwab_mcp.utils.dates import end_of_day, parse_timestamp, parse_ymd
from schwab_mcp.utils.formatting import fmt_amount
from schwab_mcp.utils.redaction import redact_json

logger = logging.getLogger(__name__)

ORDER_STATUSES = [
    "AWAITING_PARENT_ORDER",
    "AWAITING_CONDITION",
    "AWAITING_STOP_CONDITION",
    "AWAITING_MANUAL_REVIEW",
    "ACCEPTED",
    "AWAITING_UR_OUT",
    "PENDING_ACTIVATION",
    "QUEUED",
    "WORKING",
    "REJECTED",
    "PENDING_CANCEL",
    "CANCELED",
    "PENDING_REPLACE",
    "REPLACED",
    "FILLED",
    "EXPIRED",
    "NEW",
    "AWAITING_RELEASE_TIME",
    "PENDING_ACKNOWLEDGEMENT",
    "PENDING_RECALL",
    "UNKNOWN",
]


def _line(out: List[str], label: str, value: Any, prefix: str = "- ") -> None:
    if value is not None:
        out.append(f"{prefix}{label}: {value}\n")


def format_order_summary(order: Mapping[str, Any], n: int) -> str:
    out = [f"**Order {n}:**\n"]
    _line(out, "Order ID", order.get("orderId"))
    _line(out, "Status", order.get("status"))
    _line(out, "Order Type", order.get("orderType"))
    _line(out, "Duration", order.get("duration"))
    _line(out, "Entered Time", order.get("enteredTime"))
    _line(out, "Close Time", order.get("closeTime"))
    _line(out, "Quantity", order.get("quantity"))
    _line(out, "Filled Quantity", order.get("filledQuantity"))
    if order.get("price") is not None:
        out.append(f"- Price: ${fmt_amount(order['price'])}\n")
    legs = order.get("orderLegCollection") or []
    if legs:
        out.append("- Instruments:\n")
        for leg in legs:
            inst = leg.get("instrument")
            if inst:
                out.append(f"  * {inst.get('symbol')} - {leg.get('instruction')}\n")
    return "".join(out)


def format_orders(orders: List[Mapping[str, Any]], account_name: str, filters: Dict[str, Any]) -> str:
    out = f"**Orders for {friendly_name(account_name)} ({account_name}):**\n\n"
    applied = [(k, v) for k, v in filters.items() if v is not None]
    if applied:
        out += "**Filters Applied:**\n"
        for label, value in applied:
            out += f"- {label}: {value}\n"
        out += "\n"

    out += "**Orders Summary:**\n"
    out += f"- Total Orders: {len(orders)}\n\n"
    if orders:
        out += "**Order Details:**\n"
        out += "\n".join(format_order_summary(o, i) for i, o in enumerate(orders, 1))
    else:
        out += "No orders found matching the specified criteria.\n"

    out += "\n**Full Response (Redacted):**\n"
    out += f"```json\n{redact_json(orders)}\n```"
    return out


def list_account_orders_tool(
    ctx: ToolContext,
    account_name: str,
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
    max_results: Optional[int] = None,
    status: Optional[str] = None,
) -> str:
    logger.info("Listing orders for %s", account_name)
    validate_account_name(account_name)

    try:
        from_dt = parse_timestamp(from_date) if from_date else None
    except ValueError:
        raise ToolError("Invalid from_date format. Use YYYY-MM-DD format.") from None
    try:
        to_dt = end_of_day(parse_ymd(to_date)) if to_date else None
    except ValueError:
        raise ToolError("Invalid to_date format. Use YYYY-MM-DD format.") from None

    account_hash = resolve_account_hash(ctx.client, account_name, ctx.environ)
    data = response_json(
        ctx.client.get_orders_for_account(
            account_hash,
            max_results=max_results,
            from_entered_datetime=from_dt,
            to_entered_datetime=to_dt,
            status=status,
        )
    )
    if data is None:
        raise NoDataError(f"Empty response from Schwab API for account: {account_name}")
    orders = data if isinstance(data, list) else [data]
    filters = {
        "Max Results": max_results,
        "From Date": from_date,
        "To Date": to_date,
        "Status": status,
    }
    return format_orders(orders, account_name, filters)


def format_order_details(order: Mapping[str, Any], order_id: str, account_name: str) -> str:
    out = [f"**Order Details for Order ID {order_id}:**\n\n"]
    out.append(f"**Account:** {friendly_name(account_name)} ({account_name})\n\n")

    out.append("**Order Information:**\n")
    _line(out, "Order ID", order.get("orderId"))
    _line(out, "Status", order.get("status"))
    _line(out, "Order Type", order.get("orderType"))
    _line(out, "Duration", order.get("duration"))
    _line(out, "Complex Order Strategy Type", order.get("complexOrderStrategyType"))

    out.append("\n**Timing:**\n")
    _line(out, "Entered Time", order.get("enteredTime"))
    _line(out, "Close Time", order.get("closeTime"))

    out.append("\n**Quantity & Pricing:**\n")
    _line(out, "Quantity", order.get("quantity"))
    _line(out, "Filled Quantity", order.get("filledQuantity"))
    _line(out, "Remaining Quantity", order.get("remainingQuantity"))
    if order.get("price") is not None:
        out.append(f"- Price: ${fmt_amount(order['price'])}\n")

    legs = order.get("orderLegCollection") or []
    if legs:
        out.append("\n**Order Legs:**\n")
        for i, leg in enumerate(legs, 1):
            out.append(f"**Leg {i}:**\n")
            _line(out, "Instruction", leg.get("instruction"))
            _line(out, "Quantity", leg.get("quantity"))
            _line(out, "Position Effect", leg.get("positionEffect"))
            inst = leg.get("instrument")
            if inst:
                out.append("- **Instrument:**\n")
                _line(out, "Asset Type", inst.get("assetType"), "  * ")
                _line(out, "Symbol", inst.get("symbol"), "  * ")
                _line(out, "Description", inst.get("description"), "  * ")
            if i < len(legs):
                out.append("\n")

    activities = order.get("orderActivityCollection") or []
    if activities:
        out.append("\n**Order Activities:**\n")
        for i, act in enumerate(activities, 1):
            out.append(f"**Activity {i}:**\n")
            _line(out, "Activity Type", act.get("activityType"))
            _line(out, "Execution Type", act.get("executionType"))
            _line(out, "Quantity", act.get("quantity"))
            _line(out, "Order Remaining Quantity", act.get("orderRemainingQuantity"))
            for j, ex in enumerate(act.get("executionLegs") or [], 1):
                out.append(f"- **Execution Leg {j}:**\n")
                _line(out, "Leg ID", ex.get("legId"), "  * ")
                if ex.get("price") is not None:
                    out.append(f"  * Price: ${fmt_amount(ex['price'])}\n")
                _line(out, "Quantity", ex.get("quantity"), "  * ")
                _line(out, "Mismarked Quantity", ex.get("mismarkedQuantity"), "  * ")
                _line(out, "Time", ex.get("time"), "  * ")
            if i < len(activities):
                out.append("\n")

    out.append("\n**Full Response (Redacted):**\n")
    out.append(f"```json\n{redact_json(order)}\n```")
    return "".join(out)


def get_order_tool(ctx: ToolContext, order_id: str, account_name: str) -> str:
    logger.info("Getting order %s for %s", order_id, account_name)
    validate_account_name(account_name)
    order_id = str(order_id).strip()
    if not order_id.isdigit():
        raise ToolError("Order ID must be numeric. Example: '123456789'")

    account_hash = resolve_account_hash(ctx.client, account_name, ctx.environ)
    order = response_json(ctx.client.get_order(int(order_id), account_hash))
    if not order:
        raise NoDataError(
            f"Empty response from Schwab API for order ID: {order_id}. "
            "Order may not exist or may be in a different account."
        )
    return format_order_details(order, order_id, account_name)


def register(registry: ToolRegistry) -> None:
    registry.add(
        ToolSpec(
            name="list_account_orders_tool",
            title="List Account Orders",
            description="List orders for a configured Schwab account within a date window",
            input_schema=schema(
                {
                    "account_name": ACCOUNT_NAME_PROPERTY,
                    "max_results": {"type": "integer", "description": "Maximum number of orders", "minimum": 1},
                    "from_date": {"type": "string", "description": "Start date (YYYY-MM-DD)", "pattern": DATE_PATTERN},
                    "to_date": {"type": "string", "description": "End date (YYYY-MM-DD)", "pattern": DATE_PATTERN},
                    "status": {"type": "string", "description": "Filter orders by status", "enum": ORDER_STATUSES},
                },
                ["account_name", "from_date", "to_date"],
            ),
            handler=list_account_orders_tool,
            action="retrieving orders for {account_name}",
        )
    )
    registry.add(
        ToolSpec(
            name="get_order_tool",
            title="Get Order Details",
            description="Get details for a specific order in a configured Schwab account",
            input_schema=schema(
                {
                    "order_id": {"type": "string", "description": "The order ID", "pattern": r"^\d+$"},
                    "account_name": ACCOUNT_NAME_PROPERTY,
                },
                ["order_id", "account_name"],
            ),
            handler=get_order_tool,
            action="retrieving order details for order ID {order_id}",
        )
    )

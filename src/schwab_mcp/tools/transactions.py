from __future__ import annotations

import logging
from collections import Counter
from typing import Any, List, Mapping, Optional

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

TRANSACTION_TYPES = [
    "TRADE",
    "RECEIVE_AND_DELIVER",
    "DIVIDEND_OR_INTEREST",
    "ACH_RECEIPT",
    "ACH_DISBURSEMENT",
    "CASH_RECEIPT",
    "CASH_DISBURSEMENT",
    "ELECTRONIC_FUND",
    "WIRE_OUT",
    "WIRE_IN",
    "JOURNAL",
    "MEMORANDUM",
    "MARGIN_CALL",
    "MONEY_MARKET",
    "SMA_ADJUSTMENT",
]


def format_transaction(t: Mapping[str, Any], n: int) -> str:
    out = f"**Transaction {n}:**\n"
    for label, key in (
        ("Activity ID", "activityId"),
        ("Type", "type"),
        ("Status", "status"),
        ("Trade Date", "tradeDate"),
    ):
        if t.get(key) is not None:
            out += f"- {label}: {t[key]}\n"
    if t.get("netAmount") is not None:
        out += f"- Net Amount: ${fmt_amount(t['netAmount'])}\n"
    for label, key in (("Sub Account", "subAccount"), ("Order ID", "orderId"), ("Position ID", "positionId")):
        if t.get(key) is not None:
            out += f"- {label}: {t[key]}\n"

    items = t.get("transferItems") or []
    if items:
        out += "- Transfer Items:\n"
        for i, item in enumerate(items, 1):
            out += f"  * Item {i}:\n"
            for label, key in (("Amount", "amount"), ("Cost", "cost")):
                if item.get(key) is not None:
                    out += f"    - {label}: ${fmt_amount(item[key])}\n"
            if item.get("feeType"):
                out += f"    - Fee Type: {item['feeType']}\n"
            if item.get("positionEffect"):
                out += f"    - Position Effect: {item['positionEffect']}\n"
            inst = item.get("instrument")
            if inst:
                out += "    - Instrument:\n"
                for label, key in (("Symbol", "symbol"), ("Asset Type", "assetType"), ("Description", "description")):
                    if inst.get(key):
                        out += f"      * {label}: {inst[key]}\n"
    return out


def format_transactions(
    transactions: List[Mapping[str, Any]],
    account_name: str,
    *,
    start_date: Optional[str],
    end_date: Optional[str],
    transaction_types: Optional[List[str]],
    symbol: Optional[str],
) -> str:
    out = f"**Transactions for {friendly_name(account_name)} ({account_name}):**\n\n"
    if start_date or end_date or transaction_types or symbol:
        out += "**Filters Applied:**\n"
        if start_date:
            out += f"- Start Date: {start_date}\n"
        if end_date:
            out += f"- End Date: {end_date}\n"
        if transaction_types:
            out += f"- Transaction Types: {', '.join(transaction_types)}\n"
        if symbol:
            out += f"- Symbol: {symbol}\n"
        out += "\n"

    out += "**Transactions Summary:**\n"
    out += f"- Total Transactions: {len(transactions)}\n\n"
    if transactions:
        out += "**Transactions by Type:**\n"
        for ttype, count in Counter(t.get("type") for t in transactions).items():
            out += f"- {ttype}: {count} transactions\n"
        out += "\n**Transaction Details:**\n"
        out += "\n".join(format_transaction(t, i) for i, t in enumerate(transactions, 1))
    else:
        out += "No transactions found matching the specified criteria.\n"

    out += "\n**Full Response (Redacted):**\n"
    out += f"```json\n{redact_json(transactions)}\n```"
    return out


def list_account_transactions_tool(
    ctx: ToolContext,
    account_name: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    transaction_types: Optional[List[str]] = None,
    symbol: Optional[str] = None,
) -> str:
    logger.info("Listing transactions for %s", account_name)
    validate_account_name(account_name)

    try:
        start_dt = parse_timestamp(start_date) if start_date else None
    except ValueError:
        raise ToolError("Invalid start_date format. Use YYYY-MM-DD format.") from None
    try:
        end_dt = end_of_day(parse_ymd(end_date)) if end_date else None
    except ValueError:
        raise ToolError("Invalid end_date format. Use YYYY-MM-DD format.") from None

    account_hash = resolve_account_hash(ctx.client, account_name, ctx.environ)
    data = response_json(
        ctx.client.get_transactions(
            account_hash,
            start_date=start_dt,
            end_date=end_dt,
            transaction_types=transaction_types,
            symbol=symbol,
        )
    )
    if data is None:
        raise NoDataError(f"Empty response from Schwab API for account: {account_name}")
    transactions = data if isinstance(data, list) else [data]
    return format_transactions(
        transactions,
        account_name,
        start_date=start_date,
        end_date=end_date,
        transaction_types=transaction_types,
        symbol=symbol,
    )


def register(registry: ToolRegistry) -> None:
    registry.add(
        ToolSpec(
            name="list_account_transactions_tool",
            title="List Account Transactions",
            description="List transactions for a configured Schwab account (default window: last 60 days)",
            input_schema=schema(
                {
                    "account_name": ACCOUNT_NAME_PROPERTY,
                    "start_date": {"type": "string", "description": "Start date (YYYY-MM-DD)", "pattern": DATE_PATTERN},
                    "end_date": {"type": "string", "description": "End date (YYYY-MM-DD)", "pattern": DATE_PATTERN},
                    "transaction_types": {
                        "type": "array",
                        "description": "Transaction types to include (default: all)",
                        "items": {"type": "string", "enum": TRANSACTION_TYPES},
                    },
                    "symbol": {"type": "string", "description": "Only transactions for this symbol"},
                },
                ["account_name"],
            ),
            handler=list_account_transactions_tool,
            action="retrieving transactions for {account_name}",
        )
    )

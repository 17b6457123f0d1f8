from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from schwab_mcp.accounts import (
    configured_account_names,
    configured_accounts,
    fetch_account_mappings,
    friendly_name,
    resolve_account_hash,
)
from schwab_mcp.data.schwab import response_json
from schwab_mcp.errors import NoDataError
from schwab_mcp.tools.base import ACCOUNT_NAME_PROPERTY, ToolContext, ToolRegistry, ToolSpec, schema
from schwab_mcp.utils.formatting import fmt_amount
from schwab_mcp.utils.redaction import redact_json

logger = logging.getLogger(__name__)

NO_ACCOUNTS_TEXT = (
    "**No Configured Accounts Found**\n\n"
    "No environment variables found ending with '_ACCOUNT'.\n\n"
    "To configure accounts, set environment variables like:\n"
    "- TRADING_BROKERAGE_ACCOUNT=123456789\n"
    "- RETIREMENT_IRA_ACCOUNT=987654321\n"
    "- INCOME_BROKERAGE_ACCOUNT=555666777"
)


def get_account_names_tool(ctx: ToolContext, topic: Optional[str] = None) -> str:
    names = configured_account_names(ctx.environ)
    if not names:
        return NO_ACCOUNTS_TEXT
    lines = "\n".join(f"- {n} ({friendly_name(n)})" for n in names)
    return f"Configured Schwab Account Names:\n\n{lines}"


def list_schwab_accounts_tool(ctx: ToolContext) -> str:
    logger.info("Listing configured Schwab accounts")
    mappings = fetch_account_mappings(ctx.client)
    configured = configured_accounts(mappings, ctx.environ)
    if not configured:
        return NO_ACCOUNTS_TEXT

    out = "**Configured Schwab Accounts:**\n\n"
    for i, acct in enumerate(configured, 1):
        out += f"{i}. **{acct.friendly_name}** (`{acct.name}`)\n"
        out += "   - Account ID: [REDACTED]\n"
        out += "   - Status: Configured\n\n"

    known = {a.account_number for a in configured}
    unconfigured = [m for m in mappings if str(m.get("accountNumber")) not in known]
    if unconfigured:
        out += "**Unconfigured Accounts Available:**\n\n"
        for i, _ in enumerate(unconfigured, 1):
            out += f"{i}. Account ID: [REDACTED]\n"
            out += "   - To configure: Set `YOUR_NAME_ACCOUNT=<account number>` in your .env file\n\n"

    out += "**Usage:**\n"
    out += "Pass one of these names as `account_name` to the account tools:\n"
    for acct in configured:
        out += f"- `{acct.name}`\n"
    out += (
        "\n**Example:**\n```\n"
        "Tool: schwab_account_details_tool\n"
        f'Parameters: {{\n  "account_name": "{configured[0].name}"\n}}\n```'
    )
    return out


def format_account(data: Mapping[str, Any], account_name: str) -> str:
    account = data.get("securitiesAccount") or {}
    out = f"**Account Information for {friendly_name(account_name)} ({account_name}):**\n\n"
    if account:
        out += "**Account Number:** [REDACTED]\n"
        out += f"**Account Type:** {account.get('type')}\n"

        bal = account.get("currentBalances")
        if bal:
            out += "\n**Current Balances:**\n"
            out += f"- Cash Balance: ${fmt_amount(bal.get('cashBalance'))}\n"
            out += f"- Buying Power: ${fmt_amount(bal.get('buyingPower'))}\n"
            out += f"- Total Cash: ${fmt_amount(bal.get('totalCash'))}\n"
            out += f"- Liquidation Value: ${fmt_amount(bal.get('liquidationValue'))}\n"
            out += f"- Long Market Value: ${fmt_amount(bal.get('longMarketValue'))}\n"
            out += f"- Short Market Value: ${fmt_amount(bal.get('shortMarketValue'))}\n"

        positions = account.get("positions")
        if positions is not None:
            out += "\n**Positions Summary:**\n"
            out += f"- Total Positions: {len(positions)}\n"
            if positions:
                out += "\n**Position Details:**\n"
                for p in positions:
                    symbol = (p.get("instrument") or {}).get("symbol")
                    qty = float(p.get("longQuantity") or 0) - float(p.get("shortQuantity") or 0)
                    out += f"- {symbol}: {qty} shares, Market Value: ${fmt_amount(p.get('marketValue'))}\n"

        orders = account.get("orderStrategies")
        if orders is not None:
            out += "\n**Active Orders:**\n"
            out += f"- Total Orders: {len(orders)}\n"
            for o in orders:
                legs = o.get("orderLegCollection") or [{}]
                symbol = (legs[0].get("instrument") or {}).get("symbol")
                out += f"- {symbol}: {o.get('status')}\n"

    out += "\n**Full Response (Redacted):**\n"
    out += f"```json\n{redact_json(data)}\n```"
    return out


def schwab_account_details_tool(ctx: ToolContext, account_name: str, fields: Optional[List[str]] = None) -> str:
    logger.info("Getting account information for %s", account_name)
    account_hash = resolve_account_hash(ctx.client, account_name, ctx.environ)
    data = response_json(ctx.client.get_account(account_hash, fields=fields))
    if not data:
        raise NoDataError(f"Empty response from Schwab API for account: {account_name}")
    return format_account(data, account_name)


def register(registry: ToolRegistry) -> None:
    registry.add(
        ToolSpec(
            name="get_account_names_tool",
            title="Get Account Names",
            description="List the account names configured through *_ACCOUNT environment variables",
            input_schema=schema(
                {"topic": {"type": "string", "description": "Optional topic related to account names"}}
            ),
            handler=get_account_names_tool,
            action="listing account names",
        )
    )
    registry.add(
        ToolSpec(
            name="list_schwab_accounts_tool",
            title="List Schwab Accounts",
            description="List Schwab accounts, showing which ones are configured with *_ACCOUNT names",
            input_schema=schema({}),
            handler=list_schwab_accounts_tool,
            action="listing accounts",
        )
    )
    registry.add(
        ToolSpec(
            name="schwab_account_details_tool",
            title="Get Schwab Account Details",
            description="Get balances, positions and open orders for a configured Schwab account",
            input_schema=schema(
                {
                    "account_name": ACCOUNT_NAME_PROPERTY,
                    "fields": {
                        "type": "array",
                        "items": {"type": "string", "enum": ["positions"]},
                        "description": "Extra account fields to include (positions)",
                    },
                },
                ["account_name"],
            ),
            handler=schwab_account_details_tool,
            action="retrieving account information for {account_name}",
        )
    )

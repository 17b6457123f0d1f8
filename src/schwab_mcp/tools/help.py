from __future__ import annotations

import logging
from typing import Optional

from schwab_mcp.errors import ToolError
from schwab_mcp.tools.base import ToolContext, ToolRegistry, ToolSpec, schema

logger = logging.getLogger(__name__)

GENERAL_HELP = """\
# Schwab MCP Server

## Market Data
- **quote_tool**: Real-time quote for a single symbol
- **quotes_tool**: Real-time quotes for up to 500 symbols
- **option_chain_tool**: Option chain, optionally filtered by delta/strike
- **option_strategy_finder_tool**: Best iron condor / call spread / put spread
- **get_price_history_tool**: Price candles for a symbol
- **list_movers_tool**: Top movers for an index
- **get_market_hours_tool**: Market hours for equity/option/bond/future/forex

## Accounts
- **get_account_names_tool**: Configured `*_ACCOUNT` names
- **list_schwab_accounts_tool**: Configured and unconfigured Schwab accounts
- **schwab_account_details_tool**: Balances, positions and open orders
- **list_account_orders_tool**: Orders in a date window
- **get_order_tool**: One order's legs and executions
- **list_account_transactions_tool**: Transactions in a date window

## Usage Examples:
```
quote_tool(symbol: "AAPL")
quotes_tool(symbols: ["AAPL", "TSLA", "MSFT"])
option_strategy_finder_tool(strategy_type: "ironcondor", underlying_symbol: "$SPX", expiration_date: "2025-07-18")
help_tool(topic: "setup")
```

## Help Topics:
- `tools` - Detailed tool documentation
- `setup` - Configuration and authentication setup
"""

TOOLS_HELP = """\
# Available Tools

## quote_tool
**Parameters**: `symbol` (required) - e.g., "AAPL", "$SPX"

## quotes_tool
**Parameters**:
- `symbols` (required) - Array of symbols, e.g., ["AAPL", "/ES"]
- `fields` (optional) - quote, fundamental, extended, reference, regular
- `indicative` (optional) - Boolean for indicative quotes

## option_chain_tool
**Parameters**: `symbol` (required) plus any Schwab chain parameter
(contract_type, strike_count, strategy, strike_range, from_date, to_date, ...).
Filtering with `min_delta`, `max_delta`, `min_strike`, `max_strike` requires
`expiration_date`.

## option_strategy_finder_tool
**Parameters**: `strategy_type` (ironcondor, callspread, putspread),
`underlying_symbol`, `expiration_date` (required); `max_delta`, `max_spread`,
`min_credit` (dollars per contract), `min_open_interest`, `dist_from_strike`,
`expiration_type`, `settlement_type`, `option_root`, `quantity` (optional).

## Account tools
All account tools take `account_name`, an environment variable name ending in
`_ACCOUNT` whose value is the Schwab account number.

**Supported symbols**: Stocks (AAPL), indices ($SPX), futures (/ES), ETFs
**Limits**: Max 500 symbols per quotes_tool request
"""

SETUP_HELP = """\
# Setup Guide

## 1. Environment Variables
Set these in your environment or a `.env` file:
```bash
SCHWAB_API_KEY="your_app_key"
SCHWAB_APP_SECRET="your_app_secret"
SCHWAB_CALLBACK_URI="https://127.0.0.1:8182"
TOKEN_PATH="~/.schwab_mcp/token.json"
TRADING_BROKERAGE_ACCOUNT="123456789"
```

## 2. Initial Authentication
```bash
schwab-mcp login
```
This opens a browser for the Schwab OAuth flow and saves the token to TOKEN_PATH.

## 3. Start Server
```bash
schwab-mcp serve
```

## Troubleshooting:
- The callback URL must match your Schwab app settings exactly
- Logs go to LOGFILE (default: <tmpdir>/schwab_mcp.log); set DEBUG=true for detail
"""

TOPICS = {"tools": TOOLS_HELP, "setup": SETUP_HELP}


def help_tool(ctx: ToolContext, topic: Optional[str] = None) -> str:
    logger.info("Help requested for topic: %s", topic or "general")
    if topic is None:
        return GENERAL_HELP
    text = TOPICS.get(topic)
    if text is None:
        raise ToolError(f"Unknown topic '{topic}'. Available topics: {', '.join(TOPICS)}")
    return text


def register(registry: ToolRegistry) -> None:
    registry.add(
        ToolSpec(
            name="help_tool",
            title="Get Help and Documentation",
            description="Get help about the Schwab MCP server tools and setup",
            input_schema=schema(
                {
                    "topic": {
                        "type": "string",
                        "description": "Optional topic: 'tools' or 'setup'",
                        "enum": list(TOPICS),
                    }
                }
            ),
            handler=help_tool,
            action="building help",
        )
    )

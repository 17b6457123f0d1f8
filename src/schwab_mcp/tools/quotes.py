from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from schwab_mcp.data.schwab import response_json
from schwab_mcp.errors import NoDataError
from schwab_mcp.tools.base import ToolContext, ToolRegistry, ToolSpec, schema

logger = logging.getLogger(__name__)


def format_quote(entry: Mapping[str, Any]) -> str:
    """One quote entry from the quotes endpoint, rendered by asset type."""
    q = entry.get("quote") or {}
    ref = entry.get("reference") or {}
    asset = str(entry.get("assetMainType") or "").upper()
    symbol = entry.get("symbol")

    if asset == "OPTION":
        return (
            f"Option: {symbol}\n"
            f"Last: {q.get('lastPrice')}  Bid: {q.get('bidPrice')}  Ask: {q.get('askPrice')}  "
            f"Mark: {q.get('mark')}  Delta: {q.get('delta')}  Gamma: {q.get('gamma')}  "
            f"Vol: {q.get('volatility')}  OI: {q.get('openInterest')}  "
            f"Exp: {ref.get('contractMonth')}/{ref.get('contractDay')}/{ref.get('contractYear')}  "
            f"Strike: {ref.get('strikePrice')}"
        )
    if asset == "INDEX":
        return (
            f"Index: {symbol}\n"
            f"Last: {q.get('lastPrice')}  Bid: N/A  Ask: N/A  Mark: {q.get('mark')}  "
            f"Net Chg: {q.get('netChange')}  %Chg: {q.get('netPercentChange')}  Vol: {q.get('totalVolume')}"
        )
    if asset in ("EQUITY", "MUTUAL_FUND", "FUTURE", "FOREX"):
        return (
            f"{asset.replace('_', ' ').title()}: {symbol}\n"
            f"Last: {q.get('lastPrice')}  Bid: {q.get('bidPrice')}  Ask: {q.get('askPrice')}  "
            f"Mark: {q.get('mark')}  Net Chg: {q.get('netChange')}  %Chg: {q.get('netPercentChange')}  "
            f"Vol: {q.get('totalVolume')}"
        )
    return repr(dict(entry))


def quote_tool(ctx: ToolContext, symbol: str) -> str:
    sym = symbol.strip().upper()
    logger.info("Getting quote for %s", sym)
    data = response_json(ctx.client.get_quote(sym))
    if not data:
        raise NoDataError(f"No quote data returned for symbol: {symbol}")
    entry = data.get(sym) or next(iter(data.values()), None)
    if not entry:
        raise NoDataError(f"No quote data returned for symbol: {symbol}")
    return f"**Quote for {sym}:**\n\n{format_quote(entry)}"


def quotes_tool(
    ctx: ToolContext,
    symbols: List[str] | str,
    fields: Optional[List[str]] = None,
    indicative: Optional[bool] = None,
) -> str:
    if isinstance(symbols, str):
        symbols = [symbols]
    if fields is None:
        fields = ["quote"]
    normalized = [s.strip().upper() for s in symbols]
    logger.info("Getting quotes for %d symbols", len(normalized))

    data = response_json(ctx.client.get_quotes(normalized, fields=fields, indicative=indicative))
    if not data:
        raise NoDataError(f"No quote data returned for symbols: {', '.join(symbols)}")

    blocks = []
    for sym in normalized:
        entry = data.get(sym)
        blocks.append(format_quote(entry) if entry else f"{sym}: No data available")

    field_info = f" (fields: {', '.join(fields)})" if fields else " (all fields)"
    indicative_info = "" if indicative is None else f" (indicative: {str(indicative).lower()})"
    return f"**Quotes for {', '.join(normalized)}:**{field_info}{indicative_info}\n\n" + "\n\n".join(blocks)


def register(registry: ToolRegistry) -> None:
    registry.add(
        ToolSpec(
            name="quote_tool",
            title="Get Financial Instrument Quote",
            description="Get real-time quote for a single instrument symbol using Schwab API",
            input_schema=schema(
                {
                    "symbol": {
                        "type": "string",
                        "description": "Instrument symbol (e.g., 'AAPL', 'TSLA', '$SPX')",
                        "pattern": r"^[\$\^]?[A-Za-z0-9]{1,5}$",
                    }
                },
                ["symbol"],
            ),
            handler=quote_tool,
            action="retrieving quote for {symbol}",
        )
    )
    registry.add(
        ToolSpec(
            name="quotes_tool",
            title="Get Multiple Financial Instrument Quotes",
            description="Get real-time quotes for multiple instrument symbols using Schwab API",
            input_schema=schema(
                {
                    "symbols": {
                        "type": "array",
                        "items": {"type": "string", "pattern": r"^[A-Za-z0-9/.$-]{1,12}$"},
                        "description": "Array of instrument symbols (e.g., ['AAPL', 'TSLA', '/ES'])",
                        "minItems": 1,
                        "maxItems": 500,
                    },
                    "fields": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Quote fields to return (quote, fundamental, extended, reference, regular). Defaults to quote.",
                    },
                    "indicative": {
                        "type": "boolean",
                        "description": "Fetch indicative quotes for ETF symbols",
                    },
                },
                ["symbols"],
            ),
            handler=quotes_tool,
            action="retrieving quotes for {symbols}",
        )
    )

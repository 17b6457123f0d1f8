"""
Market-wide data tools: movers, market hours, price history.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import pandas as pd

from schwab_mcp.data.schwab import response_json
from schwab_mcp.errors import NoDataError, ToolError
from schwab_mcp.tools.base import DATE_PATTERN, ToolContext, ToolRegistry, ToolSpec, schema
from schwab_mcp.utils.dates import parse_timestamp, parse_ymd
from schwab_mcp.utils.formatting import fmt_int, fmt_signed, fmt_value, json_block

logger = logging.getLogger(__name__)

MOVER_INDEXES = [
    "$DJI", "$COMPX", "$SPX", "NYSE", "NASDAQ", "OTCBB",
    "INDEX_ALL", "EQUITY_ALL", "OPTION_ALL", "OPTION_PUT", "OPTION_CALL",
]
MOVER_SORT_ORDERS = ["VOLUME", "TRADES", "PERCENT_CHANGE_UP", "PERCENT_CHANGE_DOWN"]
MOVER_FREQUENCIES = [0, 1, 5, 10, 30, 60]
MARKETS = ["equity", "option", "bond", "future", "forex"]

# candles shown in full before the JSON preview is cut to head/tail
PREVIEW_CANDLES = 10


# ---------------------------------------------------------------------------
# Movers
# ---------------------------------------------------------------------------

def _first(d: Dict[str, Any], *keys: str, default: Any = 0) -> Any:
    for k in keys:
        if d.get(k) is not None:
            return d[k]
    return default


def format_movers(data: Any, index: str, sort_order: Optional[str], frequency: Optional[int]) -> str:
    header = f"**Market Movers for {index}**"
    if sort_order:
        header += f" (sorted by {sort_order})"
    if frequency is not None:
        header += f" (frequency filter: {frequency})"
    header += "\n\n"

    movers = data.get("screeners") if isinstance(data, dict) else data
    if not isinstance(movers, list) or not movers:
        return f"{header}No movers data available.\n\n**Raw Response:**\n{json_block(data)}"

    blocks = []
    for i, m in enumerate(movers, 1):
        change = _first(m, "netChange", "change")
        pct = _first(m, "netPercentChange", "percentChange")
        blocks.append(
            f"{i}. **{fmt_value(m.get('symbol'))}** - {fmt_value(m.get('description'))}\n"
            f"   Last: ${_first(m, 'lastPrice', 'last')}\n"
            f"   Change: {fmt_signed(change)} ({fmt_signed(pct)}%)\n"
            f"   Volume: {fmt_int(_first(m, 'totalVolume', 'volume'))}"
        )
    return header + "\n\n".join(blocks)


def list_movers_tool(
    ctx: ToolContext,
    index: str,
    sort_order: Optional[str] = None,
    frequency: Optional[int] = None,
) -> str:
    logger.info("Getting movers for %s", index)
    data = response_json(ctx.client.get_movers(index, sort_order=sort_order, frequency=frequency))
    if not data:
        raise NoDataError("Empty response from Schwab API for movers")
    return format_movers(data, index, sort_order, frequency)


# ---------------------------------------------------------------------------
# Market hours
# ---------------------------------------------------------------------------

def get_market_hours_tool(ctx: ToolContext, markets: List[str] | str, date: Optional[str] = None) -> str:
    if isinstance(markets, str):
        markets = [markets]
    logger.info("Getting market hours for %s", ", ".join(markets))
    parsed = None
    if date:
        try:
            parsed = parse_ymd(date)
        except ValueError:
            raise ToolError(f"Invalid date format '{date}'. Please use YYYY-MM-DD format.") from None

    data = response_json(ctx.client.get_market_hours(markets, date=parsed))
    if not data:
        raise NoDataError(f"Empty response from Schwab API for markets: {', '.join(markets)}")
    when = f" for {date}" if date else " for today"
    return f"**Market Hours{when}:**\n\n{json_block(data)}"


# ---------------------------------------------------------------------------
# Price history
# ---------------------------------------------------------------------------

def candles_frame(candles: List[Dict[str, Any]]) -> pd.DataFrame:
    df = pd.DataFrame(candles)
    if "datetime" in df.columns:
        df["datetime"] = pd.to_datetime(df["datetime"], unit="ms", utc=True)
        df = df.sort_values("datetime").reset_index(drop=True)
    return df


def summarize_candles(df: pd.DataFrame) -> str:
    if df.empty:
        return "No price data available for the specified parameters"

    def row(i: int) -> str:
        r = df.iloc[i]
        ts = r["datetime"].isoformat() if "datetime" in df.columns else "n/a"
        return (
            f"{ts} O:{r.get('open')} H:{r.get('high')} L:{r.get('low')} "
            f"C:{r.get('close')} V:{fmt_int(r.get('volume'))}"
        )

    lines = [f"Retrieved {len(df)} price candles", f"First candle: {row(0)}", f"Last candle: {row(-1)}"]
    if {"high", "low", "close"} <= set(df.columns):
        first_close = float(df["close"].iloc[0])
        last_close = float(df["close"].iloc[-1])
        change = last_close - first_close
        pct = (change / first_close * 100.0) if first_close else 0.0
        lines.append(f"Range: {float(df['low'].min())} - {float(df['high'].max())}")
        lines.append(f"Change: {change:+.2f} ({pct:+.2f}%)")
    if "volume" in df.columns:
        lines.append(f"Total Volume: {fmt_int(int(df['volume'].sum()))}")
    return "\n".join(lines)


def _preview(payload: Dict[str, Any]) -> Dict[str, Any]:
    candles = payload.get("candles") or []
    if len(candles) <= 2 * PREVIEW_CANDLES:
        return payload
    out = dict(payload)
    out["candles"] = candles[:PREVIEW_CANDLES] + candles[-PREVIEW_CANDLES:]
    out["candlesOmitted"] = len(candles) - 2 * PREVIEW_CANDLES
    return out


def get_price_history_tool(
    ctx: ToolContext,
    symbol: str,
    period_type: Optional[str] = None,
    period: Optional[int] = None,
    frequency_type: Optional[str] = None,
    frequency: Optional[int] = None,
    start_datetime: Optional[str] = None,
    end_datetime: Optional[str] = None,
    need_extended_hours_data: Optional[bool] = None,
    need_previous_close: Optional[bool] = None,
) -> str:
    sym = symbol.strip().upper()
    logger.info("Getting price history for %s", sym)

    try:
        start = parse_timestamp(start_datetime) if start_datetime else None
    except ValueError:
        raise ToolError("Invalid start_datetime format. Use ISO format like '2024-01-01T00:00:00Z'") from None
    try:
        end = parse_timestamp(end_datetime) if end_datetime else None
    except ValueError:
        raise ToolError("Invalid end_datetime format. Use ISO format like '2024-01-31T23:59:59Z'") from None
    if (start_datetime or end_datetime) and (period_type or period):
        raise ToolError("Cannot use start_datetime/end_datetime with period_type/period. Choose one approach.")

    payload = response_json(
        ctx.client.get_price_history(
            sym,
            period_type=period_type,
            period=period,
            frequency_type=frequency_type,
            frequency=frequency,
            start_datetime=start,
            end_datetime=end,
            need_extended_hours_data=need_extended_hours_data,
            need_previous_close=need_previous_close,
        )
    )
    if not payload:
        raise NoDataError(f"Empty response from Schwab API for symbol: {symbol}")

    summary = summarize_candles(candles_frame(payload.get("candles") or []))
    preview = json.dumps(_preview(payload), indent=2, default=str)
    return f"**Price History for {sym}:**\n\n{summary}\n\n```json\n{preview}\n```"


def register(registry: ToolRegistry) -> None:
    registry.add(
        ToolSpec(
            name="list_movers_tool",
            title="List Market Movers",
            description="Get the top ten movers for an index or market category",
            input_schema=schema(
                {
                    "index": {"type": "string", "description": "Category of mover", "enum": MOVER_INDEXES},
                    "sort_order": {"type": "string", "description": "Sort order", "enum": MOVER_SORT_ORDERS},
                    "frequency": {
                        "type": "integer",
                        "description": "Only movers with at least this magnitude of change",
                        "enum": MOVER_FREQUENCIES,
                    },
                },
                ["index"],
            ),
            handler=list_movers_tool,
            action="retrieving movers",
        )
    )
    registry.add(
        ToolSpec(
            name="get_market_hours_tool",
            title="Get Market Hours",
            description="Get trading hours for one or more markets",
            input_schema=schema(
                {
                    "markets": {
                        "type": "array",
                        "description": "Markets for which to return trading hours",
                        "items": {"type": "string", "enum": MARKETS},
                        "minItems": 1,
                    },
                    "date": {
                        "type": "string",
                        "description": "Date (YYYY-MM-DD, defaults to today, up to one year ahead)",
                        "pattern": DATE_PATTERN,
                    },
                },
                ["markets"],
            ),
            handler=get_market_hours_tool,
            action="retrieving market hours for {markets}",
        )
    )
    registry.add(
        ToolSpec(
            name="get_price_history_tool",
            title="Get Price History",
            description="Get price candles for a symbol, by period or by explicit date range",
            input_schema=schema(
                {
                    "symbol": {
                        "type": "string",
                        "description": "Instrument symbol (e.g., 'AAPL', '$SPX')",
                        "pattern": r"^[\$A-Za-z]{1,6}$",
                    },
                    "period_type": {"type": "string", "enum": ["day", "month", "year", "ytd"]},
                    "period": {"type": "integer", "description": "Number of periods"},
                    "frequency_type": {"type": "string", "enum": ["minute", "daily", "weekly", "monthly"]},
                    "frequency": {"type": "integer", "description": "Candle size in frequency_type units"},
                    "start_datetime": {"type": "string", "description": "ISO start (e.g. '2024-01-01T00:00:00Z')"},
                    "end_datetime": {"type": "string", "description": "ISO end (e.g. '2024-01-31T23:59:59Z')"},
                    "need_extended_hours_data": {"type": "boolean", "description": "Include extended hours"},
                    "need_previous_close": {"type": "boolean", "description": "Include previous close"},
                },
                ["symbol"],
            ),
            handler=get_price_history_tool,
            action="retrieving price history for {symbol}",
        )
    )

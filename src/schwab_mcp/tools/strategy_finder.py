"""
Credit spread / iron condor finder.

Fetches one expiration's option chain, runs OptionChainFilter.find_spreads and
reports the best candidate as markdown.
"""
from __future__ import annotations

import logging
from typing import Optional

from schwab_mcp.data.chain import OptionContract, parse_option_chain
from schwab_mcp.data.schwab import response_json
from schwab_mcp.errors import NoDataError, ToolError, UnderlyingPriceRequired
from schwab_mcp.options.chain_filter import OptionChainFilter, SpreadCandidate
from schwab_mcp.options.strategy import (
    STRATEGY_TYPES,
    IronCondor,
    VerticalSpread,
    contract_type_for,
    find_strategy,
)
from schwab_mcp.tools.base import ToolContext, ToolRegistry, ToolSpec, schema
from schwab_mcp.utils.dates import parse_ymd
from schwab_mcp.utils.formatting import fmt_round

logger = logging.getLogger(__name__)


def _leg_line(label: str, c: OptionContract, kind: str) -> str:
    return f"- {label} {c.symbol} ${c.strike} {kind} @ ${fmt_round(c.mark)}"


def _side_block(title: str, s: SpreadCandidate, kind: str) -> str:
    return (
        f"**{title}**:\n"
        f"{_leg_line('Short:', s.short_option, kind)}\n"
        f"{_leg_line('Long: ', s.long_option, kind)}\n"
        f"- Credit: ${fmt_round(s.credit * 100)}\n"
        f"- Width: ${fmt_round(s.spread_width)}\n"
        f"- Delta: {fmt_round(s.delta)}\n"
    )


def format_iron_condor(ic: IronCondor) -> str:
    return (
        "**IRON CONDOR FOUND**\n\n"
        f"**Underlying Price**: ${fmt_round(ic.underlying_price)}\n"
        f"**Total Credit**: ${fmt_round(ic.total_credit * 100)}\n\n"
        + _side_block("Call Spread (Short)", ic.call_spread, "Call")
        + "\n"
        + _side_block("Put Spread (Short)", ic.put_spread, "Put")
    )


def format_vertical(v: VerticalSpread) -> str:
    s = v.spread
    kind = "Call" if v.side == "call" else "Put"

    def leg(label: str, c: OptionContract) -> str:
        return (
            f"**{label}**: {c.symbol} ${c.strike} {kind} @ ${fmt_round(c.mark)}\n"
            f"- Delta: {fmt_round(c.delta, 4)}\n"
            f"- Open Interest: {c.open_interest}\n"
        )

    return (
        f"**{kind.upper()} SPREAD FOUND**\n\n"
        f"**Underlying Price**: ${fmt_round(v.underlying_price)}\n"
        f"**Credit**: ${fmt_round(s.credit * 100)}\n"
        f"**Spread Width**: ${fmt_round(s.spread_width)}\n"
        f"**Delta**: {fmt_round(s.delta, 4)}\n"
        f"**Quantity**: {s.quantity}\n\n"
        + leg("Short", s.short_option)
        + "\n"
        + leg("Long", s.long_option)
    )


def option_strategy_finder_tool(
    ctx: ToolContext,
    strategy_type: str,
    underlying_symbol: str,
    expiration_date: str,
    expiration_type: Optional[str] = None,
    settlement_type: Optional[str] = None,
    option_root: Optional[str] = None,
    max_delta: float = 0.15,
    max_spread: float = 20.0,
    min_credit: float = 0.0,
    min_open_interest: int = 0,
    dist_from_strike: float = 0.0,
    quantity: int = 1,
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
) -> str:
    st = strategy_type.strip().lower()
    sym = underlying_symbol.strip().upper()
    logger.info("Finding %s strategy for %s expiring %s", st, sym, expiration_date)

    if st not in STRATEGY_TYPES:
        raise ToolError(f"Invalid strategy type '{strategy_type}'. Must be one of: {', '.join(STRATEGY_TYPES)}")

    try:
        exp = parse_ymd(expiration_date)
        from_dt = parse_ymd(from_date) if from_date else exp
        to_dt = parse_ymd(to_date) if to_date else exp
    except ValueError:
        raise ToolError("Invalid date format. Use YYYY-MM-DD format.") from None

    payload = response_json(
        ctx.client.get_option_chain(
            sym,
            contract_type=contract_type_for(st),
            from_date=from_dt,
            to_date=to_dt,
            include_underlying_quote=True,
        )
    )
    if not payload:
        raise NoDataError(f"Could not retrieve option chain for {sym}")

    chain = parse_option_chain(payload)
    flt = OptionChainFilter(
        expiration_date=exp,
        expiration_type=expiration_type,
        settlement_type=settlement_type,
        option_root=option_root,
        max_delta=max_delta,
        max_spread=max_spread,
        min_credit=min_credit,
        min_open_interest=min_open_interest,
        dist_from_strike=dist_from_strike,
        quantity=quantity,
    )
    try:
        result = find_strategy(st, chain, flt)
    except UnderlyingPriceRequired:
        raise NoDataError(f"No underlying price in the option chain for {sym}") from None

    if result is None:
        logger.info("No suitable %s found for %s", st, sym)
        return (
            f"**No Strategy Found**: Could not find a suitable {strategy_type} for {sym} "
            "with the specified criteria."
        )

    logger.info("Found %s strategy for %s", st, sym)
    if isinstance(result, IronCondor):
        return format_iron_condor(result)
    return format_vertical(result)


STRATEGY_FINDER_SCHEMA = schema(
    {
        "strategy_type": {
            "type": "string",
            "description": "Type of option strategy to find",
            "enum": list(STRATEGY_TYPES),
        },
        "underlying_symbol": {
            "type": "string",
            "description": "Underlying symbol for the options (e.g., '$SPX', 'SPY')",
            "pattern": r"^[A-Za-z$]{1,6}$",
        },
        "expiration_date": {"type": "string", "description": "Target expiration date (YYYY-MM-DD)"},
        "expiration_type": {
            "type": "string",
            "description": "Expiration type ('W' weekly, 'M' monthly, 'Q' quarterly)",
            "enum": ["W", "M", "Q"],
        },
        "settlement_type": {
            "type": "string",
            "description": "Settlement type ('P' PM settled, 'A' AM settled)",
            "enum": ["P", "A"],
        },
        "option_root": {"type": "string", "description": "Option root symbol (e.g., 'SPXW')"},
        "max_delta": {
            "type": "number",
            "description": "Maximum absolute delta for short legs (default: 0.15)",
            "minimum": 0.01,
            "maximum": 1.0,
        },
        "max_spread": {"type": "number", "description": "Maximum spread width in dollars (default: 20.0)", "minimum": 1.0},
        "min_credit": {
            "type": "number",
            "description": "Minimum credit in dollars per contract (default: 0)",
            "minimum": 0,
        },
        "min_open_interest": {"type": "integer", "description": "Minimum open interest per leg (default: 0)", "minimum": 0},
        "dist_from_strike": {
            "type": "number",
            "description": "Minimum distance of the short strike from the underlying, as a fraction (default: 0)",
            "minimum": 0.0,
            "maximum": 1.0,
        },
        "quantity": {"type": "integer", "description": "Contracts per leg (default: 1)", "minimum": 1},
        "from_date": {"type": "string", "description": "Chain request start date (YYYY-MM-DD)"},
        "to_date": {"type": "string", "description": "Chain request end date (YYYY-MM-DD)"},
    },
    ["strategy_type", "underlying_symbol", "expiration_date"],
)


def register(registry: ToolRegistry) -> None:
    registry.add(
        ToolSpec(
            name="option_strategy_finder_tool",
            title="Find Option Strategy",
            description="Find option strategies (iron condor, call spread, put spread) using Schwab API",
            input_schema=STRATEGY_FINDER_SCHEMA,
            handler=option_strategy_finder_tool,
            action="finding {strategy_type} for {underlying_symbol}",
        )
    )

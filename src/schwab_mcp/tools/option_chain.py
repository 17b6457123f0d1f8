from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from schwab_mcp.data.chain import parse_buckets, regroup
from schwab_mcp.data.schwab import response_json
from schwab_mcp.errors import NoDataError, ToolError
from schwab_mcp.options.chain_filter import OptionChainFilter
from schwab_mcp.tools.base import ToolContext, ToolRegistry, ToolSpec, schema
from schwab_mcp.utils.dates import parse_ymd

logger = logging.getLogger(__name__)

_PASSTHROUGH = (
    "contract_type",
    "strike_count",
    "include_underlying_quote",
    "strategy",
    "interval",
    "strike",
    "strike_range",
    "volatility",
    "underlying_price",
    "interest_rate",
    "days_to_expiration",
    "exp_month",
    "option_type",
    "entitlement",
)


def _date_arg(name: str, value: Optional[str]):
    if value is None:
        return None
    try:
        return parse_ymd(value)
    except ValueError:
        raise ToolError(f"Invalid {name} format. Use YYYY-MM-DD format.") from None


def filter_chain_payload(
    payload: Dict[str, Any],
    flt: OptionChainFilter,
    expiration_date: str,
) -> Dict[str, Any]:
    """Copy of a chain payload whose call/put maps hold only contracts passing `flt.select`."""
    out = dict(payload)
    for key in ("callExpDateMap", "putExpDateMap"):
        if payload.get(key) is None:
            continue
        selected = flt.select(parse_buckets(payload[key]))
        logger.debug("Filtered %d options from %s", len(selected), key)
        out[key] = regroup(selected, expiration_date)
    return out


def option_chain_tool(
    ctx: ToolContext,
    symbol: str,
    max_delta: Optional[float] = None,
    min_delta: Optional[float] = None,
    max_strike: Optional[float] = None,
    min_strike: Optional[float] = None,
    expiration_date: Optional[str] = None,
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
    **params: Any,
) -> str:
    sym = symbol.strip().upper()
    logger.info("Getting option chain for %s", sym)

    filtering = any(v is not None for v in (max_delta, min_delta, max_strike, min_strike))
    if filtering and not expiration_date:
        raise ToolError("expiration_date is required when filtering by delta or strike.")

    kwargs: Dict[str, Any] = {k: params[k] for k in _PASSTHROUGH if params.get(k) is not None}
    unknown = set(params) - set(_PASSTHROUGH)
    if unknown:
        raise ToolError(f"Unknown parameter(s): {', '.join(sorted(unknown))}")

    exp = _date_arg("expiration_date", expiration_date)
    if exp is not None:
        kwargs["from_date"] = exp
        kwargs["to_date"] = exp
    else:
        if from_date:
            kwargs["from_date"] = _date_arg("from_date", from_date)
        if to_date:
            kwargs["to_date"] = _date_arg("to_date", to_date)

    logger.debug("Requesting option chain with params %s", kwargs)
    payload = response_json(ctx.client.get_option_chain(sym, **kwargs))
    if not payload:
        raise NoDataError(f"Empty response from Schwab API for option chain: {sym}")

    if not filtering:
        return json.dumps(payload, indent=2) + "\n"

    flt = OptionChainFilter(
        expiration_date=exp,
        max_delta=1.0 if max_delta is None else max_delta,
        min_delta=0.0 if min_delta is None else min_delta,
        max_strike=max_strike,
        min_strike=min_strike,
    )
    return json.dumps(filter_chain_payload(payload, flt, exp.isoformat()), indent=2) + "\n"


_MONTHS = ["JAN", "FEB", "MAR", "APR", "MAY", "JUN", "JUL", "AUG", "SEP", "OCT", "NOV", "DEC", "ALL"]

OPTION_CHAIN_SCHEMA = schema(
    {
        "symbol": {
            "type": "string",
            "description": "Instrument symbol (e.g., 'AAPL', '$SPX')",
            "pattern": r"^\$?[A-Za-z]{1,5}$",
        },
        "contract_type": {"type": "string", "description": "Type of contracts to return", "enum": ["CALL", "PUT", "ALL"]},
        "strike_count": {"type": "integer", "description": "Number of strikes above and below the ATM price", "minimum": 1},
        "include_underlying_quote": {"type": "boolean", "description": "Include a quote for the underlying"},
        "strategy": {
            "type": "string",
            "description": "Strategy type for the option chain",
            "enum": ["SINGLE", "ANALYTICAL", "COVERED", "VERTICAL", "CALENDAR", "STRANGLE",
                     "STRADDLE", "BUTTERFLY", "CONDOR", "DIAGONAL", "COLLAR", "ROLL"],
        },
        "strike_range": {
            "type": "string",
            "description": "Range of strikes to include",
            "enum": ["ITM", "NTM", "OTM", "SAK", "SBK", "SNK", "ALL"],
        },
        "option_type": {"type": "string", "description": "Standard/non-standard contracts", "enum": ["S", "NS", "ALL"]},
        "exp_month": {"type": "string", "description": "Filter by expiration month", "enum": _MONTHS},
        "interval": {"type": "number", "description": "Strike interval for spread strategy chains"},
        "strike": {"type": "number", "description": "Specific strike price"},
        "from_date": {"type": "string", "description": "Expirations on or after this date (YYYY-MM-DD)"},
        "to_date": {"type": "string", "description": "Expirations on or before this date (YYYY-MM-DD)"},
        "volatility": {"type": "number", "description": "Volatility for ANALYTICAL chains"},
        "underlying_price": {"type": "number", "description": "Underlying price for ANALYTICAL chains"},
        "interest_rate": {"type": "number", "description": "Interest rate for ANALYTICAL chains"},
        "days_to_expiration": {"type": "integer", "description": "Days to expiration for ANALYTICAL chains"},
        "entitlement": {"type": "string", "description": "Client entitlement", "enum": ["PP", "NP", "PN"]},
        "max_delta": {"type": "number", "description": "Maximum absolute delta to keep", "minimum": 0, "maximum": 1},
        "min_delta": {"type": "number", "description": "Minimum absolute delta to keep", "minimum": 0, "maximum": 1},
        "max_strike": {"type": "number", "description": "Maximum strike to keep"},
        "min_strike": {"type": "number", "description": "Minimum strike to keep"},
        "expiration_date": {
            "type": "string",
            "description": "Single expiration date (YYYY-MM-DD); required when filtering by delta or strike",
        },
    },
    ["symbol"],
)


def register(registry: ToolRegistry) -> None:
    registry.add(
        ToolSpec(
            name="option_chain_tool",
            title="Get Option Chain Data",
            description="Get option chain data for an optionable symbol using Schwab API, optionally filtered by delta and strike",
            input_schema=OPTION_CHAIN_SCHEMA,
            handler=option_chain_tool,
            action="retrieving option chain for {symbol}",
        )
    )

"""
Option chain normalization for Schwab market data payloads.

Provides:
- OptionContract: one contract record with numeric fields resolved once
- OptionChain: underlying price plus call/put expiration buckets
- parse_option_chain / regroup helpers between the raw and normalized shapes
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional

from schwab_mcp.utils.dates import parse_iso_date

# expiration key ("YYYY-MM-DD:DTE") -> strike string ("5500.0") -> contracts
ChainBuckets = Dict[str, Dict[str, List["OptionContract"]]]


def _to_float(value: Any, default: Optional[float] = None) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return default
    try:
        out = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(out):
        return default
    return out


def _to_int(value: Any, default: int = 0) -> int:
    f = _to_float(value)
    return int(f) if f is not None else default


@dataclass(frozen=True)
class OptionContract:
    """A single option contract as listed in a chain bucket."""
    symbol: str
    strike: Optional[float]
    mark: float = 0.0
    delta: float = 0.0
    open_interest: int = 0
    bid: Optional[float] = None
    ask: Optional[float] = None
    put_call: Optional[str] = None
    expiration_type: Optional[str] = None
    settlement_type: Optional[str] = None
    option_root: Optional[str] = None
    days_to_expiration: Optional[int] = None
    expiration_date: Optional[date] = None
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_schwab(cls, record: Mapping[str, Any]) -> "OptionContract":
        dte = record.get("daysToExpiration")
        return cls(
            symbol=str(record.get("symbol") or "").strip(),
            strike=_to_float(record.get("strikePrice")),
            mark=_to_float(record.get("mark"), 0.0),
            delta=_to_float(record.get("delta"), 0.0),
            open_interest=_to_int(record.get("openInterest")),
            bid=_to_float(record.get("bid")),
            ask=_to_float(record.get("ask")),
            put_call=record.get("putCall"),
            expiration_type=record.get("expirationType"),
            settlement_type=record.get("settlementType"),
            option_root=record.get("optionRoot"),
            days_to_expiration=_to_int(dte) if dte is not None else None,
            expiration_date=parse_iso_date(record.get("expirationDate")),
            raw=dict(record),
        )

    def to_record(self) -> Dict[str, Any]:
        """The feed record this contract was built from (or a minimal one)."""
        if self.raw:
            return dict(self.raw)
        return {
            "symbol": self.symbol,
            "strikePrice": self.strike,
            "mark": self.mark,
            "delta": self.delta,
            "openInterest": self.open_interest,
            "daysToExpiration": self.days_to_expiration,
        }


@dataclass(frozen=True)
class OptionChain:
    symbol: str
    underlying_price: Optional[float]
    calls: ChainBuckets
    puts: ChainBuckets
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def side(self, option_type: str) -> ChainBuckets:
        t = option_type.strip().lower()
        if t == "call":
            return self.calls
        if t == "put":
            return self.puts
        return {}


def parse_buckets(exp_date_map: Optional[Mapping[str, Any]]) -> ChainBuckets:
    """Convert a raw `callExpDateMap`/`putExpDateMap` into normalized buckets."""
    out: ChainBuckets = {}
    for exp_key, strikes in (exp_date_map or {}).items():
        bucket: Dict[str, List[OptionContract]] = {}
        for strike_key, records in (strikes or {}).items():
            bucket[str(strike_key)] = [OptionContract.from_schwab(r) for r in (records or [])]
        out[str(exp_key)] = bucket
    return out


def _underlying_price(payload: Mapping[str, Any]) -> Optional[float]:
    px = _to_float(payload.get("underlyingPrice"))
    if px:
        return px
    underlying = payload.get("underlying") or {}
    for key in ("mark", "last", "close"):
        px = _to_float(underlying.get(key))
        if px:
            return px
    return None


def parse_option_chain(payload: Mapping[str, Any]) -> OptionChain:
    return OptionChain(
        symbol=str(payload.get("symbol") or ""),
        underlying_price=_underlying_price(payload),
        calls=parse_buckets(payload.get("callExpDateMap")),
        puts=parse_buckets(payload.get("putExpDateMap")),
        raw=payload,
    )


def iter_contracts(buckets: ChainBuckets) -> Iterable[OptionContract]:
    for strikes in buckets.values():
        for contracts in strikes.values():
            yield from contracts


def regroup(contracts: Iterable[OptionContract], expiration: date | str) -> Dict[str, Dict[str, List[Dict[str, Any]]]]:
    """
    Rebuild the bucket shape from a flat contract list for JSON output.

    Every contract lands under "<expiration>:<daysToExpiration or 0>", keyed by
    its strike rendered the way the feed renders it.
    """
    exp = expiration.isoformat() if isinstance(expiration, date) else str(expiration)
    grouped: Dict[str, Dict[str, List[Dict[str, Any]]]] = {}
    for c in contracts:
        exp_key = f"{exp}:{c.days_to_expiration or 0}"
        strike_key = str(c.raw.get("strikePrice", c.strike)) if c.raw else str(c.strike)
        grouped.setdefault(exp_key, {}).setdefault(strike_key, []).append(c.to_record())
    return grouped

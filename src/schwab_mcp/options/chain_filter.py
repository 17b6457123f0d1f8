"""
Option chain filtering and vertical spread discovery.

Provides:
- OptionChainFilter.select: delta/strike-range screen across every bucket
- OptionChainFilter.find_spreads: short/long pairing inside one expiration
- SpreadCandidate: the resulting credit spread description

Credits are per-share (short mark minus long mark); `min_credit` is expressed in
whole dollars per contract and compared against `credit * 100`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Literal, Optional

from schwab_mcp.data.chain import ChainBuckets, OptionContract, iter_contracts
from schwab_mcp.errors import UnderlyingPriceRequired
from schwab_mcp.utils.dates import parse_expiration_key

logger = logging.getLogger(__name__)

SpreadSide = Literal["call", "put"]


@dataclass(frozen=True)
class SpreadCandidate:
    """A short/long pair within one expiration bucket."""
    short_option: OptionContract
    long_option: OptionContract
    credit: float
    delta: float
    spread_width: float
    quantity: int = 1


@dataclass(frozen=True)
class OptionChainFilter:
    """
    Immutable filter configuration.

    `expiration_date` selects the bucket searched by `find_spreads`; `select`
    ignores it. `underlying_price` is only needed when pairing spreads, since
    the distance-from-strike check on short legs divides by it.
    """
    expiration_date: date
    underlying_price: Optional[float] = None
    expiration_type: Optional[str] = None
    settlement_type: Optional[str] = None
    option_root: Optional[str] = None
    min_delta: float = 0.0
    max_delta: float = 0.15
    max_spread: float = 20.0
    min_credit: float = 0.0
    min_open_interest: int = 0
    dist_from_strike: float = 0.0
    quantity: int = 1
    max_strike: Optional[float] = None
    min_strike: Optional[float] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def select(self, buckets: ChainBuckets) -> List[OptionContract]:
        out = [c for c in iter_contracts(buckets) if self._passes_delta(c) and self._passes_strike_range(c)]
        logger.debug("Found %d filtered options", len(out))
        return out

    def find_spreads(self, buckets: ChainBuckets, option_type: str) -> List[SpreadCandidate]:
        side = option_type.strip().lower()
        if side not in ("call", "put"):
            return []
        self._require_underlying()

        spreads: List[SpreadCandidate] = []
        shorts = 0
        for exp_key, strikes in buckets.items():
            if parse_expiration_key(exp_key) != self.expiration_date:
                continue
            logger.debug("Processing options for %s, searching %d strikes", exp_key, len(strikes))

            for contracts in strikes.values():
                for short in contracts:
                    if not self.passes_short_option_filters(short):
                        continue
                    shorts += 1
                    for long in self._long_candidates(strikes, short, side):
                        spreads.append(self._build_spread(short, long))

        logger.debug("Found %d %s spreads for %d short options", len(spreads), side, shorts)
        return spreads

    def passes_short_option_filters(self, contract: OptionContract) -> bool:
        self._require_underlying()
        return (
            self._passes_delta(contract)
            and self._passes_open_interest(contract)
            and self._passes_distance(contract)
            and self._passes_optional(contract)
        )

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    def _require_underlying(self) -> None:
        if not self.underlying_price or self.underlying_price <= 0:
            raise UnderlyingPriceRequired()

    def _passes_delta(self, c: OptionContract) -> bool:
        d = abs(c.delta)
        return self.min_delta <= d <= self.max_delta

    def _passes_open_interest(self, c: OptionContract) -> bool:
        return c.open_interest >= self.min_open_interest

    def _passes_distance(self, c: OptionContract) -> bool:
        if c.strike is None:
            return False
        u = float(self.underlying_price)
        return abs((u - c.strike) / u) >= self.dist_from_strike

    def _passes_optional(self, c: OptionContract) -> bool:
        if self.expiration_type is not None and c.expiration_type != self.expiration_type:
            return False
        if self.settlement_type is not None and c.settlement_type != self.settlement_type:
            return False
        if self.option_root is not None and c.option_root != self.option_root:
            return False
        return True

    def _passes_strike_range(self, c: OptionContract) -> bool:
        if c.strike is None:
            return False
        if self.min_strike is not None and c.strike < self.min_strike:
            return False
        if self.max_strike is not None and c.strike > self.max_strike:
            return False
        return True

    def _valid_structure(self, short_strike: float, long_strike: float, side: SpreadSide) -> bool:
        if side == "call":
            return long_strike > short_strike and (long_strike - short_strike) <= self.max_spread
        return long_strike < short_strike and (short_strike - long_strike) <= self.max_spread

    def _passes_min_credit(self, short: OptionContract, long: OptionContract) -> bool:
        if self.min_credit <= 0:
            return True
        return (short.mark - long.mark) * 100.0 >= self.min_credit

    # ------------------------------------------------------------------
    # Pairing
    # ------------------------------------------------------------------

    def _long_candidates(self, strikes, short: OptionContract, side: SpreadSide) -> List[OptionContract]:
        if short.strike is None:
            return []
        out: List[OptionContract] = []
        for contracts in strikes.values():
            for long in contracts:
                if long.mark <= 0 or long.strike is None:
                    continue
                if not self._valid_structure(short.strike, long.strike, side):
                    continue
                if not self._passes_min_credit(short, long):
                    continue
                if not self._passes_optional(long):
                    continue
                if not self._passes_open_interest(long):
                    continue
                out.append(long)
        return out

    def _build_spread(self, short: OptionContract, long: OptionContract) -> SpreadCandidate:
        return SpreadCandidate(
            short_option=short,
            long_option=long,
            credit=short.mark - long.mark,
            delta=short.delta or 0.0,
            spread_width=abs(short.strike - long.strike),
            quantity=self.quantity,
        )

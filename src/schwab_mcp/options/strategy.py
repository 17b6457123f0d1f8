"""
Strategy selection over spread candidates.

- best single vertical: highest credit
- best iron condor: one call spread plus one put spread with the highest
  credit-to-delta ratio
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import List, Literal, Optional

from schwab_mcp.data.chain import OptionChain
from schwab_mcp.options.chain_filter import OptionChainFilter, SpreadCandidate

logger = logging.getLogger(__name__)

STRATEGY_TYPES: tuple[str, ...] = ("ironcondor", "callspread", "putspread")


@dataclass(frozen=True)
class IronCondor:
    call_spread: SpreadCandidate
    put_spread: SpreadCandidate
    total_credit: float
    total_delta: float
    underlying_price: float


@dataclass(frozen=True)
class VerticalSpread:
    spread: SpreadCandidate
    side: Literal["call", "put"]
    underlying_price: float


def contract_type_for(strategy_type: str) -> str:
    """Chain contract type to request for a strategy."""
    st = strategy_type.lower()
    if st == "callspread":
        return "CALL"
    if st == "putspread":
        return "PUT"
    return "ALL"


def best_by_credit(spreads: List[SpreadCandidate]) -> Optional[SpreadCandidate]:
    if not spreads:
        return None
    return max(spreads, key=lambda s: s.credit)


def pick_iron_condor(
    call_spreads: List[SpreadCandidate],
    put_spreads: List[SpreadCandidate],
    *,
    min_credit: float,
    underlying_price: float,
) -> Optional[IronCondor]:
    """
    Best call/put pairing by total_credit / total_delta.

    `min_credit` is in dollars per contract; pairs whose
    per-share credit falls short of min_credit / 100 are skipped. Pairs with zero
    combined delta have no defined ratio and are skipped too.
    """
    if not call_spreads or not put_spreads:
        return None

    best: Optional[IronCondor] = None
    best_ratio = 0.0
    for cs in call_spreads:
        for ps in put_spreads:
            total_credit = cs.credit + ps.credit
            if total_credit < min_credit / 100.0:
                continue
            total_delta = abs(cs.delta) + abs(ps.delta)
            if total_delta <= 0:
                continue
            ratio = total_credit / total_delta
            if ratio > best_ratio:
                best_ratio = ratio
                best = IronCondor(
                    call_spread=cs,
                    put_spread=ps,
                    total_credit=total_credit,
                    total_delta=total_delta,
                    underlying_price=underlying_price,
                )
    return best


def find_strategy(
    strategy_type: str,
    chain: OptionChain,
    base: OptionChainFilter,
) -> IronCondor | VerticalSpread | None:
    """
    Run the spread search for a strategy against a normalized chain.

    `base` carries the user's filter parameters; its underlying price is taken
    from the chain. For iron condors each side is searched with half the
    minimum credit.
    """
    st = strategy_type.lower()
    flt = replace(base, underlying_price=chain.underlying_price)

    if st == "ironcondor":
        side_filter = replace(flt, min_credit=flt.min_credit / 2.0)
        calls = side_filter.find_spreads(chain.calls, "call")
        puts = side_filter.find_spreads(chain.puts, "put")
        logger.debug("Iron condor search: %d call spreads, %d put spreads", len(calls), len(puts))
        return pick_iron_condor(
            calls,
            puts,
            min_credit=side_filter.min_credit,
            underlying_price=float(chain.underlying_price),
        )

    if st in ("callspread", "putspread"):
        side = "call" if st == "callspread" else "put"
        best = best_by_credit(flt.find_spreads(chain.side(side), side))
        if best is None:
            return None
        return VerticalSpread(spread=best, side=side, underlying_price=float(chain.underlying_price))

    raise ValueError(f"unknown strategy type: {strategy_type!r}")

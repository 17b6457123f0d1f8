"""
Tests for strategy selection (verticals and iron condors).
"""
from datetime import date

import pytest

from conftest import chain_payload
from schwab_mcp.data.chain import OptionContract, parse_option_chain
from schwab_mcp.errors import UnderlyingPriceRequired
from schwab_mcp.options.chain_filter import OptionChainFilter, SpreadCandidate
from schwab_mcp.options.strategy import (
    IronCondor,
    VerticalSpread,
    best_by_credit,
    contract_type_for,
    find_strategy,
    pick_iron_condor,
)

EXP = date(2025, 1, 17)


def _base(**overrides) -> OptionChainFilter:
    kwargs = dict(
        expiration_date=EXP,
        max_delta=0.15,
        max_spread=20.0,
        min_credit=1.0,
        min_open_interest=10,
        dist_from_strike=0.05,
    )
    kwargs.update(overrides)
    return OptionChainFilter(**kwargs)


def _spread(credit: float, delta: float) -> SpreadCandidate:
    short = OptionContract(symbol="S", strike=100.0, mark=credit, delta=delta)
    long = OptionContract(symbol="L", strike=95.0, mark=0.0)
    return SpreadCandidate(short_option=short, long_option=long, credit=credit, delta=delta, spread_width=5.0)


class TestContractType:
    @pytest.mark.parametrize(
        "strategy,expected",
        [("callspread", "CALL"), ("putspread", "PUT"), ("ironcondor", "ALL"), ("IronCondor", "ALL")],
    )
    def test_mapping(self, strategy, expected):
        assert contract_type_for(strategy) == expected


class TestVerticals:
    def test_put_spread_picks_highest_credit(self):
        chain = parse_option_chain(chain_payload())
        result = find_strategy("putspread", chain, _base())

        assert isinstance(result, VerticalSpread)
        assert result.side == "put"
        assert result.underlying_price == 5800.0
        assert (result.spread.short_option.strike, result.spread.long_option.strike) == (5500.0, 5480.0)
        assert result.spread.credit == pytest.approx(1.75)

    def test_call_spread_picks_highest_credit(self):
        chain = parse_option_chain(chain_payload())
        result = find_strategy("callspread", chain, _base())

        assert isinstance(result, VerticalSpread)
        assert result.side == "call"
        assert (result.spread.short_option.strike, result.spread.long_option.strike) == (6100.0, 6120.0)

    def test_none_when_nothing_qualifies(self):
        chain = parse_option_chain(chain_payload())
        assert find_strategy("putspread", chain, _base(max_delta=0.01)) is None

    def test_best_by_credit_empty(self):
        assert best_by_credit([]) is None


class TestIronCondor:
    def test_best_ratio(self):
        chain = parse_option_chain(chain_payload())
        result = find_strategy("ironcondor", chain, _base(min_credit=200.0))

        assert isinstance(result, IronCondor)
        assert (result.call_spread.short_option.strike, result.call_spread.long_option.strike) == (6100.0, 6120.0)
        assert (result.put_spread.short_option.strike, result.put_spread.long_option.strike) == (5490.0, 5470.0)
        assert result.total_credit == pytest.approx(3.5)
        assert result.total_delta == pytest.approx(0.18)
        assert result.underlying_price == 5800.0

    def test_requires_both_sides(self):
        assert pick_iron_condor([_spread(1.0, 0.1)], [], min_credit=0.0, underlying_price=100.0) is None
        assert pick_iron_condor([], [_spread(1.0, -0.1)], min_credit=0.0, underlying_price=100.0) is None

    def test_min_credit_applies_to_total(self):
        calls = [_spread(0.40, 0.10)]
        puts = [_spread(0.40, -0.10)]
        assert pick_iron_condor(calls, puts, min_credit=100.0, underlying_price=100.0) is None
        ic = pick_iron_condor(calls, puts, min_credit=80.0, underlying_price=100.0)
        assert ic is not None
        assert ic.total_credit == pytest.approx(0.80)

    def test_zero_delta_pairs_are_skipped(self):
        calls = [_spread(1.0, 0.0)]
        puts = [_spread(1.0, 0.0)]
        assert pick_iron_condor(calls, puts, min_credit=0.0, underlying_price=100.0) is None

    def test_ratio_uses_absolute_deltas(self):
        calls = [_spread(1.0, 0.10), _spread(1.0, 0.05)]
        puts = [_spread(1.0, -0.10)]
        ic = pick_iron_condor(calls, puts, min_credit=0.0, underlying_price=100.0)
        assert ic.call_spread.delta == 0.05
        assert ic.total_delta == pytest.approx(0.15)


class TestFindStrategyErrors:
    def test_missing_underlying_price(self):
        chain = parse_option_chain(chain_payload(underlying=None))
        with pytest.raises(UnderlyingPriceRequired):
            find_strategy("putspread", chain, _base())

    def test_unknown_strategy(self):
        chain = parse_option_chain(chain_payload())
        with pytest.raises(ValueError):
            find_strategy("butterfly", chain, _base())

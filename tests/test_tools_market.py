"""
Tests for quote, movers, market hours, price history and help tools.
"""
import json
from datetime import date

from conftest import ok_response
from schwab_mcp.tools import build_registry
from schwab_mcp.tools.market import candles_frame, summarize_candles


def _run(ctx, name, **arguments):
    return build_registry().get(name).run(ctx, arguments)


def _candles(n: int) -> list:
    start = 1735689600000  # 2025-01-01T00:00:00Z
    return [
        {
            "datetime": start + i * 86_400_000,
            "open": 99.5 + i,
            "high": 101.0 + i,
            "low": 99.0 + i,
            "close": 100.0 + i,
            "volume": 1000,
        }
        for i in range(n)
    ]


class TestQuotes:
    def test_single_equity_quote(self, ctx, mock_client):
        mock_client.get_quote.return_value = ok_response({
            "AAPL": {
                "assetMainType": "EQUITY",
                "symbol": "AAPL",
                "quote": {"lastPrice": 190.5, "bidPrice": 190.4, "askPrice": 190.6, "mark": 190.5},
            }
        })

        text = _run(ctx, "quote_tool", symbol="aapl")

        assert text.startswith("**Quote for AAPL:**\n\nEquity: AAPL\nLast: 190.5  Bid: 190.4  Ask: 190.6")
        mock_client.get_quote.assert_called_once_with("AAPL")

    def test_index_quote(self, ctx, mock_client):
        mock_client.get_quote.return_value = ok_response({
            "$SPX": {"assetMainType": "INDEX", "symbol": "$SPX", "quote": {"lastPrice": 5800.0}}
        })

        text = _run(ctx, "quote_tool", symbol="$SPX")

        assert "Index: $SPX\nLast: 5800.0  Bid: N/A  Ask: N/A" in text

    def test_empty_quote(self, ctx, mock_client):
        mock_client.get_quote.return_value = ok_response({})

        assert _run(ctx, "quote_tool", symbol="XYZ") == "**No Data**: No quote data returned for symbol: XYZ"

    def test_multiple_quotes(self, ctx, mock_client):
        mock_client.get_quotes.return_value = ok_response({
            "AAPL": {"assetMainType": "EQUITY", "symbol": "AAPL", "quote": {"lastPrice": 190.5}}
        })

        text = _run(ctx, "quotes_tool", symbols=["aapl", "msft"])

        assert text.startswith("**Quotes for AAPL, MSFT:** (fields: quote)")
        assert "Equity: AAPL" in text
        assert "MSFT: No data available" in text
        mock_client.get_quotes.assert_called_once_with(["AAPL", "MSFT"], fields=["quote"], indicative=None)

    def test_indicative_flag_is_reported(self, ctx, mock_client):
        mock_client.get_quotes.return_value = ok_response({
            "SPY": {"assetMainType": "EQUITY", "symbol": "SPY", "quote": {}}
        })

        text = _run(ctx, "quotes_tool", symbols=["SPY"], fields=["quote", "fundamental"], indicative=True)

        assert "(fields: quote, fundamental) (indicative: true)" in text


class TestMovers:
    def test_screeners(self, ctx, mock_client):
        mock_client.get_movers.return_value = ok_response({
            "screeners": [
                {
                    "symbol": "AAPL",
                    "description": "Apple Inc",
                    "lastPrice": 190.5,
                    "netChange": 2.5,
                    "netPercentChange": 1.33,
                    "totalVolume": 1234567,
                }
            ]
        })

        text = _run(ctx, "list_movers_tool", index="$SPX", sort_order="VOLUME")

        assert text.startswith("**Market Movers for $SPX** (sorted by VOLUME)")
        assert "1. **AAPL** - Apple Inc" in text
        assert "Last: $190.5" in text
        assert "Change: +2.5 (+1.33%)" in text
        assert "Volume: 1,234,567" in text
        mock_client.get_movers.assert_called_once_with("$SPX", sort_order="VOLUME", frequency=None)

    def test_no_movers(self, ctx, mock_client):
        mock_client.get_movers.return_value = ok_response({"screeners": []})

        assert "No movers data available." in _run(ctx, "list_movers_tool", index="NYSE")


class TestMarketHours:
    def test_hours_for_date(self, ctx, mock_client):
        mock_client.get_market_hours.return_value = ok_response({"equity": {"EQ": {"isOpen": True}}})

        text = _run(ctx, "get_market_hours_tool", markets=["equity"], date="2025-01-17")

        assert text.startswith("**Market Hours for 2025-01-17:**")
        assert '"isOpen": true' in text
        mock_client.get_market_hours.assert_called_once_with(["equity"], date=date(2025, 1, 17))

    def test_bad_date(self, ctx, mock_client):
        text = _run(ctx, "get_market_hours_tool", markets=["equity"], date="17-01-2025")

        assert text == "**Error**: Invalid date format '17-01-2025'. Please use YYYY-MM-DD format."
        mock_client.get_market_hours.assert_not_called()


class TestPriceHistory:
    def test_summary_and_preview(self, ctx, mock_client):
        mock_client.get_price_history.return_value = ok_response(
            {"symbol": "SPY", "empty": False, "candles": _candles(25)}
        )

        text = _run(ctx, "get_price_history_tool", symbol="spy", period_type="month", period=1)

        assert text.startswith("**Price History for SPY:**")
        assert "Retrieved 25 price candles" in text
        assert "Range: 99.0 - 125.0" in text
        assert "Change: +24.00 (+24.00%)" in text
        assert "Total Volume: 25,000" in text
        preview = json.loads(text.split("```json\n", 1)[1].rsplit("\n```", 1)[0])
        assert len(preview["candles"]) == 20
        assert preview["candlesOmitted"] == 5

    def test_period_and_range_are_exclusive(self, ctx, mock_client):
        text = _run(
            ctx,
            "get_price_history_tool",
            symbol="SPY",
            period_type="day",
            start_datetime="2025-01-01T00:00:00Z",
        )

        assert text.startswith("**Error**: Cannot use start_datetime/end_datetime with period_type/period.")
        mock_client.get_price_history.assert_not_called()

    def test_bad_start(self, ctx):
        text = _run(ctx, "get_price_history_tool", symbol="SPY", start_datetime="yesterday")
        assert text.startswith("**Error**: Invalid start_datetime format.")

    def test_summary_of_no_candles(self):
        assert summarize_candles(candles_frame([])) == "No price data available for the specified parameters"

    def test_frame_is_sorted_by_time(self):
        df = candles_frame(list(reversed(_candles(3))))
        assert list(df["close"]) == [100.0, 101.0, 102.0]


class TestHelp:
    def test_general(self, ctx):
        assert _run(ctx, "help_tool").startswith("# Schwab MCP Server")

    def test_topics(self, ctx):
        assert "option_strategy_finder_tool" in _run(ctx, "help_tool", topic="tools")
        assert "_ACCOUNT" in _run(ctx, "help_tool", topic="setup")

    def test_unknown_topic(self, ctx):
        assert _run(ctx, "help_tool", topic="nope").startswith("**Error**: Unknown topic 'nope'")

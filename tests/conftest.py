"""
Pytest configuration and shared fixtures for schwab_mcp tests.

Usage:
    @pytest.fixture functions are automatically available to all tests.
    Import helpers from conftest when needed.
"""
import sys
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest


def pytest_configure():
    """
    Ensure `src/` is on sys.path for the src-layout package import (`schwab_mcp`).
    This keeps tests runnable without requiring an editable install.
    """
    root = Path(__file__).resolve().parents[1]
    src = root / "src"
    if src.exists():
        sys.path.insert(0, str(src))


# =============================================================================
# Settings / context fixtures
# =============================================================================

@pytest.fixture
def settings(tmp_path):
    """Settings that never read the developer's .env or real token."""
    from schwab_mcp.config import Settings

    return Settings(
        _env_file=None,
        SCHWAB_API_KEY="test_key",
        SCHWAB_APP_SECRET="test_secret",
        TOKEN_PATH=str(tmp_path / "token.json"),
        LOGFILE=str(tmp_path / "schwab_mcp.log"),
    )


@pytest.fixture
def accounts_env() -> dict:
    return {
        "TRADING_BROKERAGE_ACCOUNT": "123456789",
        "RETIREMENT_IRA_ACCOUNT": "87654321",
        "UNRELATED_VAR": "x",
    }


@pytest.fixture
def mock_client() -> MagicMock:
    """Mock schwab-py client; each test sets the endpoint responses it needs."""
    client = MagicMock()
    client.get_account_numbers.return_value = ok_response([
        {"accountNumber": "123456789", "hashValue": "A" * 64},
        {"accountNumber": "55566677", "hashValue": "B" * 64},
    ])
    return client


@pytest.fixture
def ctx(settings, mock_client, accounts_env):
    from schwab_mcp.tools import ToolContext

    return ToolContext(settings=settings, client_factory=lambda s: mock_client, environ=accounts_env)


# =============================================================================
# Test Data Helpers
# =============================================================================

def ok_response(payload: Any) -> MagicMock:
    """
    Mock httpx.Response carrying a JSON payload.

    Usage:
        client.get_quote.return_value = ok_response({"AAPL": {...}})
    """
    resp = MagicMock()
    resp.status_code = 200
    resp.content = b"" if payload is None else b"{}"
    resp.raise_for_status.return_value = None
    resp.json.return_value = payload
    return resp


def make_option(
    strike: float,
    mark: float,
    delta: float,
    oi: int = 100,
    put_call: str = "PUT",
    symbol: str | None = None,
    **extra: Any,
) -> dict:
    """
    A Schwab option-chain contract record.

    Usage:
        make_option(5500.0, 5.50, -0.10, oi=50)
    """
    if symbol is None:
        cp = "P" if put_call == "PUT" else "C"
        symbol = f"SPXW  250117{cp}{int(strike * 1000):08d}"
    record = {
        "putCall": put_call,
        "symbol": symbol,
        "strikePrice": strike,
        "mark": mark,
        "bid": round(mark - 0.05, 2),
        "ask": round(mark + 0.05, 2),
        "delta": delta,
        "openInterest": oi,
        "daysToExpiration": 3,
        "expirationDate": "2025-01-17T20:00:00.000+00:00",
        "expirationType": "W",
        "settlementType": "P",
        "optionRoot": "SPXW",
    }
    record.update(extra)
    return record


def exp_map(records: list[dict], key: str = "2025-01-17:3") -> dict:
    """Group records into an exp-date map under a single expiration key."""
    strikes: dict = {}
    for r in records:
        strikes.setdefault(str(r["strikePrice"]), []).append(r)
    return {key: strikes}


def sample_puts() -> list[dict]:
    return [
        make_option(5500.0, 5.50, -0.10, oi=50),
        make_option(5490.0, 4.25, -0.08, oi=30),
        make_option(5480.0, 3.75, -0.06, oi=25),
        make_option(5470.0, 2.50, -0.04, oi=15),
    ]


def sample_calls() -> list[dict]:
    return [
        make_option(6100.0, 5.50, 0.10, oi=50, put_call="CALL"),
        make_option(6110.0, 4.25, 0.08, oi=30, put_call="CALL"),
        make_option(6120.0, 3.75, 0.06, oi=25, put_call="CALL"),
    ]


def chain_payload(underlying: float | None = 5800.0, key: str = "2025-01-17:3") -> dict:
    payload = {
        "symbol": "$SPX",
        "status": "SUCCESS",
        "callExpDateMap": exp_map(sample_calls(), key),
        "putExpDateMap": exp_map(sample_puts(), key),
    }
    if underlying is not None:
        payload["underlyingPrice"] = underlying
    return payload


@pytest.fixture
def restore_logging():
    """Put the root logger back after a test that calls setup_logging."""
    import logging

    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for h in list(root.handlers):
        if h not in handlers:
            h.close()
        root.removeHandler(h)
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)

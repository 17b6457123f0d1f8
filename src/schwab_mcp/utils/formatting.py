"""
Text formatting helpers for tool responses.

Provides consistent rendering for:
- currency amounts and rounded prices
- signed changes and volumes
- friendly values for missing fields
"""
from __future__ import annotations

import json
import numbers
from typing import Any, Optional


# ============================================================================
# Numbers
# ============================================================================

def fmt_amount(x: Any) -> str:
    """Two-decimal amount without currency sign; missing -> '0.00'."""
    if x is None or isinstance(x, bool):
        return "0.00"
    try:
        return f"{float(x):.2f}"
    except (TypeError, ValueError):
        return "0.00"


def fmt_round(x: Optional[float], decimals: int = 2) -> str:
    """Round like a ledger would print it: 5.5 -> '5.5', 1.257 -> '1.26'."""
    if x is None or not isinstance(x, (int, float)):
        return "n/a"
    return f"{round(float(x), decimals)}"


def fmt_int(x: Any) -> str:
    """Integer with comma separators, or the raw value when not numeric."""
    if isinstance(x, bool) or not isinstance(x, numbers.Real):
        return "n/a" if x is None else str(x)
    return f"{int(x):,}"


def fmt_signed(x: Any) -> str:
    """Value with a '+' prefix when non-negative."""
    if x is None or isinstance(x, bool) or not isinstance(x, (int, float)):
        return "n/a"
    return f"+{x}" if x >= 0 else f"{x}"


def fmt_value(x: Any, missing: str = "N/A") -> str:
    if x is None or x == "":
        return missing
    return str(x)


# ============================================================================
# Blocks
# ============================================================================

def json_block(data: Any) -> str:
    """Fenced, pretty-printed JSON block."""
    return "```json\n" + json.dumps(data, indent=2, default=str) + "\n```"

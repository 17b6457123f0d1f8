"""
Redaction of account identifiers and credentials.

Everything that leaves the server (tool text, log records) passes through here:
- account numbers (8-9 digits) -> [REDACTED_ACCOUNT]
- account hash values -> [REDACTED_HASH]
- bearer tokens -> Bearer [REDACTED_TOKEN]

Keys that merely look numeric (cusip, orderId, strikePrice, ...) are left alone.
"""
from __future__ import annotations

import json
import re
from typing import Any

REDACTED_ACCOUNT = "[REDACTED_ACCOUNT]"
REDACTED_HASH = "[REDACTED_HASH]"
REDACTED_TOKEN = "[REDACTED_TOKEN]"

ACCOUNT_FIELDS = (
    "accountNumber",
    "accountId",
    "account_number",
    "account_id",
    "hashValue",
    "hash_value",
)
NON_SENSITIVE_FIELDS = (
    "cusip",
    "orderId",
    "order_id",
    "legId",
    "leg_id",
    "strikePrice",
    "strike_price",
    "quantity",
    "daysToExpiration",
    "days_to_expiration",
    "expirationDate",
    "expiration_date",
    "price",
    "netChange",
    "net_change",
    "mismarkedQuantity",
    "mismarked_quantity",
)
_ACCOUNT_KEYS = tuple(f.lower() for f in ACCOUNT_FIELDS)
_SAFE_KEYS = tuple(f.lower() for f in NON_SENSITIVE_FIELDS)

_ACCOUNT_NUMBER = re.compile(r"\b\d{8,9}\b")
_ALNUM = re.compile(r"[A-Za-z0-9]+")
_BEARER = re.compile(r"Bearer\s+[A-Za-z0-9.\-_]+", re.IGNORECASE)

# JSON fragments embedded in free text
_JSON_HASH = re.compile(r'"hashValue":\s*"[^"]+"', re.IGNORECASE)
_JSON_ACCOUNT_NUMBER = re.compile(r'"accountNumber":\s*"?\d{8,9}"?', re.IGNORECASE)
_JSON_ACCOUNT_ID = re.compile(r'"account_id":\s*"?\d{8,9}"?', re.IGNORECASE)

# human/log text
_TEXT_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"Account\s+ID:\s*\d{8,9}", re.IGNORECASE), f"Account ID: {REDACTED_ACCOUNT}"),
    (re.compile(r"Account\s+Number:\s*\d{8,9}", re.IGNORECASE), f"Account Number: {REDACTED_ACCOUNT}"),
    (re.compile(r"Account:\s*\d{8,9}", re.IGNORECASE), f"Account: {REDACTED_ACCOUNT}"),
    (re.compile(r"account[_\s]*number[_\s]*[:=]\s*\d{8,9}", re.IGNORECASE), f"account_number: {REDACTED_ACCOUNT}"),
    (re.compile(r"account[_\s]*id[_\s]*[:=]\s*\d{8,9}", re.IGNORECASE), f"account_id: {REDACTED_ACCOUNT}"),
    (re.compile(r"\b[0-9a-fA-F]{40,}\b"), REDACTED_HASH),
)


def redact(data: Any) -> Any:
    """Redacted copy of a decoded JSON value (dict/list/str); other values pass through."""
    if isinstance(data, dict):
        return _redact_dict(data)
    if isinstance(data, list):
        return [redact(item) for item in data]
    if isinstance(data, str):
        return _redact_string(data)
    return data


def redact_api_response(body: Any) -> Any:
    """Pretty-printed redacted JSON for a raw response body string."""
    if not isinstance(body, str):
        return body
    try:
        parsed = json.loads(body)
    except ValueError:
        return _redact_string(body)
    return json.dumps(redact(parsed), indent=2)


def redact_json(data: Any) -> str:
    """Pretty-printed redacted JSON for an already-decoded payload."""
    return json.dumps(redact(data), indent=2, default=str)


def redact_formatted_text(text: Any) -> Any:
    if not isinstance(text, str):
        return text
    out = _BEARER.sub(f"Bearer {REDACTED_TOKEN}", text)
    for pattern, repl in _TEXT_PATTERNS:
        out = pattern.sub(repl, out)
    return out


def redact_log_message(message: Any) -> Any:
    if not isinstance(message, str):
        return message
    return redact_formatted_text(_redact_string(message))


def _redact_dict(data: dict) -> dict:
    out = {}
    for key, value in data.items():
        k = str(key).lower()
        if any(f in k for f in _SAFE_KEYS):
            out[key] = value
        elif any(f in k for f in _ACCOUNT_KEYS):
            out[key] = _redact_account_value(value)
        else:
            out[key] = redact(value)
    return out


def _redact_string(s: str) -> str:
    out = _BEARER.sub(f"Bearer {REDACTED_TOKEN}", s)
    out = _JSON_HASH.sub(f'"hashValue": "{REDACTED_HASH}"', out)
    out = _JSON_ACCOUNT_NUMBER.sub(f'"accountNumber": "{REDACTED_ACCOUNT}"', out)
    out = _JSON_ACCOUNT_ID.sub(f'"account_id": "{REDACTED_ACCOUNT}"', out)
    return out


def _redact_account_value(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        if 8 <= len(value) <= 9 and _ACCOUNT_NUMBER.search(value):
            return REDACTED_ACCOUNT
        if len(value) > 20 and _ALNUM.fullmatch(value):
            return REDACTED_HASH
        return value
    if isinstance(value, int):
        if 8 <= len(str(value)) <= 9:
            return REDACTED_ACCOUNT
        return value
    return redact(value)

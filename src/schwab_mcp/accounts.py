"""
Account-name resolution.

Accounts are addressed by environment variable names ending in `_ACCOUNT`
(e.g. TRADING_BROKERAGE_ACCOUNT=123456789). The account number is mapped to
the hash value the Schwab API expects through `get_account_numbers`.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

from schwab_mcp.data.schwab import response_json
from schwab_mcp.errors import ToolError

logger = logging.getLogger(__name__)

ACCOUNT_SUFFIX = "_ACCOUNT"


@dataclass(frozen=True)
class ConfiguredAccount:
    name: str
    friendly_name: str
    account_number: str
    hash_value: Optional[str] = None


def friendly_name(env_key: str) -> str:
    """TRADING_BROKERAGE_ACCOUNT -> 'Trading Brokerage'."""
    base = env_key.replace(ACCOUNT_SUFFIX, "")
    return " ".join(p.capitalize() for p in base.split("_") if p)


def configured_account_names(environ: Optional[Mapping[str, str]] = None) -> List[str]:
    env = os.environ if environ is None else environ
    return sorted(k for k in env if k.endswith(ACCOUNT_SUFFIX))


def validate_account_name(account_name: str) -> None:
    if not account_name or not account_name.endswith(ACCOUNT_SUFFIX):
        raise ToolError("Account name must end with '_ACCOUNT'. Example: 'TRADING_BROKERAGE_ACCOUNT'")


def account_number_for(account_name: str, environ: Optional[Mapping[str, str]] = None) -> str:
    env = os.environ if environ is None else environ
    validate_account_name(account_name)
    number = env.get(account_name)
    if not number:
        available = ", ".join(configured_account_names(env))
        raise ToolError(
            f"Account name '{account_name}' not found in environment variables.\n\n"
            f"Available accounts: {available}\n\n"
            f"To configure: Set {account_name} in your environment or .env file to your account number."
        )
    return number.strip()


def fetch_account_mappings(client: Any) -> List[dict]:
    data = response_json(client.get_account_numbers())
    if not isinstance(data, list):
        raise ToolError("Failed to retrieve account numbers from Schwab API")
    logger.debug("Retrieved %d account mappings", len(data))
    return data


def resolve_account_hash(client: Any, account_name: str, environ: Optional[Mapping[str, str]] = None) -> str:
    """Account hash for a configured `*_ACCOUNT` name. Raises ToolError when unresolvable."""
    number = account_number_for(account_name, environ)
    mappings = fetch_account_mappings(client)
    for m in mappings:
        if str(m.get("accountNumber")) == number:
            logger.debug("Resolved account hash for %s", account_name)
            return m["hashValue"]
    raise ToolError(f"Account ID not found in available accounts. {len(mappings)} accounts available.")


def configured_accounts(mappings: List[dict], environ: Optional[Mapping[str, str]] = None) -> List[ConfiguredAccount]:
    """Environment-configured accounts that the API also reports, sorted by name."""
    env = os.environ if environ is None else environ
    by_number = {str(m.get("accountNumber")): m for m in mappings}
    out: List[ConfiguredAccount] = []
    for name in configured_account_names(env):
        number = (env.get(name) or "").strip()
        m = by_number.get(number)
        if m is None:
            continue
        out.append(
            ConfiguredAccount(
                name=name,
                friendly_name=friendly_name(name),
                account_number=number,
                hash_value=m.get("hashValue"),
            )
        )
    return out

"""
MCP tool definitions.

Each module registers its tools on a ToolRegistry; `build_registry()` collects
them in the order they are listed to clients.
"""
from __future__ import annotations

from schwab_mcp.tools.base import ToolContext, ToolRegistry, ToolSpec


def build_registry() -> ToolRegistry:
    """Register all tools."""
    from schwab_mcp.tools.accounts import register as register_accounts
    from schwab_mcp.tools.help import register as register_help
    from schwab_mcp.tools.market import register as register_market
    from schwab_mcp.tools.option_chain import register as register_option_chain
    from schwab_mcp.tools.orders import register as register_orders
    from schwab_mcp.tools.quotes import register as register_quotes
    from schwab_mcp.tools.strategy_finder import register as register_strategy_finder
    from schwab_mcp.tools.transactions import register as register_transactions

    registry = ToolRegistry()
    register_quotes(registry)
    register_option_chain(registry)
    register_strategy_finder(registry)
    register_market(registry)
    register_accounts(registry)
    register_orders(registry)
    register_transactions(registry)
    register_help(registry)
    return registry


__all__ = ["ToolContext", "ToolRegistry", "ToolSpec", "build_registry"]

"""
schwab_mcp: an MCP tool server for Charles Schwab account and options data.
"""

__version__ = "0.3.0"

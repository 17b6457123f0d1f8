from __future__ import annotations


class SchwabMCPError(Exception):
    """Base class for errors raised by schwab_mcp."""


class UnderlyingPriceRequired(SchwabMCPError, ValueError):
    """Distance-from-strike filtering was requested without an underlying price."""

    def __init__(self, message: str = "underlying_price is required for distance filtering"):
        super().__init__(message)


class ToolError(SchwabMCPError):
    """A user-facing tool failure, rendered as '**Error**: <message>'."""

    label = "Error"

    def render(self) -> str:
        return f"**{self.label}**: {self}"


class NoDataError(ToolError):
    """The broker returned nothing usable for the request."""

    label = "No Data"


class ClientUnavailable(ToolError):
    """The Schwab API client could not be constructed."""

    def __init__(self, message: str = "Failed to initialize Schwab client. Check your credentials."):
        super().__init__(message)

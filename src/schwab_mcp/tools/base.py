"""
Tool plumbing shared by every MCP tool.

A ToolSpec bundles the MCP-facing definition (name, description, JSON schema,
annotations) with the synchronous handler that produces the response text.
Handlers raise ToolError/NoDataError for user-facing failures; anything else
is reported as '**Error** <action>: <message>'.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

import mcp.types as types

from schwab_mcp.config import Settings
from schwab_mcp.errors import ToolError

logger = logging.getLogger(__name__)

Handler = Callable[..., str]


class _Blank(dict):
    def __missing__(self, key: str) -> str:
        return ""


@dataclass
class ToolContext:
    """Per-server state handed to every handler; the Schwab client is built on first use."""
    settings: Settings
    client_factory: Optional[Callable[[Settings], Any]] = None
    environ: Optional[Mapping[str, str]] = None
    _client: Any = field(default=None, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @property
    def client(self) -> Any:
        with self._lock:
            if self._client is None:
                factory = self.client_factory
                if factory is None:
                    from schwab_mcp.data.schwab import make_client

                    factory = make_client
                self._client = factory(self.settings)
                logger.info("Schwab client initialized")
            return self._client


@dataclass(frozen=True)
class ToolSpec:
    name: str
    title: str
    description: str
    input_schema: Dict[str, Any]
    handler: Handler
    # e.g. "retrieving quote for {symbol}"; formatted with the call arguments
    action: str = "running tool"

    def to_tool(self) -> types.Tool:
        return types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.input_schema,
            annotations=types.ToolAnnotations(
                title=self.title,
                readOnlyHint=True,
                destructiveHint=False,
                idempotentHint=True,
            ),
        )

    def run(self, ctx: ToolContext, arguments: Optional[Mapping[str, Any]] = None) -> str:
        args = dict(arguments or {})
        try:
            return self.handler(ctx, **args)
        except ToolError as e:
            logger.error("%s: %s", self.name, e)
            return e.render()
        except Exception as e:
            action = self.action.format_map(_Blank(args))
            logger.error("Error %s: %s", action, e)
            logger.debug("Traceback for %s", self.name, exc_info=True)
            return f"**Error** {action}: {e}"


class ToolRegistry:
    """Ordered name -> ToolSpec map."""

    def __init__(self) -> None:
        self._tools: Dict[str, ToolSpec] = {}

    def add(self, spec: ToolSpec) -> None:
        if spec.name in self._tools:
            raise ValueError(f"duplicate tool name: {spec.name}")
        self._tools[spec.name] = spec

    def get(self, name: str) -> Optional[ToolSpec]:
        return self._tools.get(name)

    def specs(self) -> List[ToolSpec]:
        return list(self._tools.values())

    def names(self) -> List[str]:
        return list(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools


def schema(properties: Dict[str, Any], required: Optional[List[str]] = None) -> Dict[str, Any]:
    return {"type": "object", "properties": properties, "required": list(required or [])}


ACCOUNT_NAME_PROPERTY: Dict[str, Any] = {
    "type": "string",
    "description": "Account name mapped to environment variable ending with '_ACCOUNT' (e.g., 'TRADING_BROKERAGE_ACCOUNT')",
    "pattern": "^[A-Z_]+_ACCOUNT$",
}
DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"

"""
Logging setup.

The MCP server speaks JSON-RPC over stdout, so server logging goes to a size
rotated file only. Every record is scrubbed of account identifiers and tokens
before it is written.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from schwab_mcp.config import Settings
from schwab_mcp.utils.redaction import redact_log_message

LOG_FORMAT = "[%(asctime)s] SCHWAB_MCP %(levelname)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"

_NOISY = ("httpx", "httpcore", "schwab", "authlib", "urllib3")


class RedactingFilter(logging.Filter):
    """Rewrites record messages and tracebacks with account numbers/hashes/tokens removed."""

    _formatter = logging.Formatter()

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            msg = record.getMessage()
        except (TypeError, ValueError):
            return True
        record.msg = redact_log_message(msg)
        record.args = None

        # formatters render exc_text as-is once exc_info is cleared
        if record.exc_info:
            record.exc_text = self._formatter.formatException(record.exc_info)
            record.exc_info = None
        if record.exc_text:
            record.exc_text = redact_log_message(record.exc_text)
        if record.stack_info:
            record.stack_info = redact_log_message(record.stack_info)
        return True


def _file_handler(settings: Settings) -> logging.Handler:
    path: Path = settings.log_file
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        path,
        maxBytes=settings.log_max_size,
        backupCount=settings.log_max_files,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    handler.addFilter(RedactingFilter())
    return handler


def setup_logging(settings: Settings, *, console: bool = False) -> Path:
    """
    Configure the root logger for the server (file) or a CLI command (+ stderr).

    Returns the log file path.
    """
    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level, logging.INFO)

    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    root.setLevel(level)
    root.addHandler(_file_handler(settings))

    if console:
        from rich.console import Console
        from rich.logging import RichHandler

        rich_handler = RichHandler(console=Console(file=sys.stderr), show_path=False)
        rich_handler.addFilter(RedactingFilter())
        root.addHandler(rich_handler)

    noisy_level = logging.DEBUG if settings.debug else logging.WARNING
    for name in _NOISY:
        logging.getLogger(name).setLevel(noisy_level)

    return settings.log_file

"""
Tests for logging setup and record redaction.
"""
import logging
import sys
from logging.handlers import RotatingFileHandler

from schwab_mcp.utils.logging import RedactingFilter, setup_logging


def _record(msg, *args):
    return logging.LogRecord("schwab_mcp.test", logging.INFO, __file__, 1, msg, args, None)


def test_filter_redacts_formatted_message():
    record = _record("Resolved account_number: %s with %s", "123456789", "Bearer abc.def")

    assert RedactingFilter().filter(record) is True
    assert record.getMessage() == "Resolved account_number: [REDACTED_ACCOUNT] with Bearer [REDACTED_TOKEN]"
    assert record.args is None


def test_filter_leaves_plain_messages():
    record = _record("Getting quote for %s", "SPY")
    RedactingFilter().filter(record)
    assert record.getMessage() == "Getting quote for SPY"


def test_filter_redacts_traceback():
    account_hash = "A1" * 32
    try:
        raise RuntimeError(f"Client error '400' for url 'https://api.schwabapi.com/trader/v1/accounts/{account_hash}/orders'")
    except RuntimeError:
        record = logging.LogRecord(
            "schwab_mcp.test", logging.DEBUG, __file__, 1, "Traceback for %s", ("get_order_tool",), sys.exc_info()
        )

    RedactingFilter().filter(record)

    assert record.exc_info is None
    assert "RuntimeError" in record.exc_text
    assert "accounts/[REDACTED_HASH]/orders" in record.exc_text
    assert account_hash not in record.exc_text


def test_traceback_in_log_file_is_redacted(settings, restore_logging):
    path = setup_logging(settings.model_copy(update={"DEBUG": True}))
    account_hash = "A1" * 32
    log = logging.getLogger("schwab_mcp.test")

    try:
        raise RuntimeError(f"GET /trader/v1/accounts/{account_hash}/orders failed")
    except RuntimeError as e:
        log.error("Error retrieving orders: %s", e)
        log.debug("Traceback for list_account_orders_tool", exc_info=True)
    for h in restore_logging.handlers:
        h.flush()

    text = path.read_text()
    assert "Traceback (most recent call last)" in text
    assert "accounts/[REDACTED_HASH]/orders" in text
    assert account_hash not in text


def test_setup_logging_writes_redacted_file(settings, restore_logging):
    path = setup_logging(settings)

    assert path == settings.log_file
    handlers = [h for h in restore_logging.handlers if isinstance(h, RotatingFileHandler)]
    assert len(handlers) == 1
    assert handlers[0].maxBytes == settings.log_max_size
    assert handlers[0].backupCount == settings.log_max_files

    logging.getLogger("schwab_mcp.test").warning("Account ID: %s", "123456789")
    handlers[0].flush()

    text = path.read_text()
    assert "SCHWAB_MCP WARNING: Account ID: [REDACTED_ACCOUNT]" in text
    assert "123456789" not in text


def test_debug_levels(settings, restore_logging):
    setup_logging(settings.model_copy(update={"DEBUG": True}))
    assert restore_logging.level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.DEBUG

    setup_logging(settings)
    assert restore_logging.level == logging.INFO
    assert logging.getLogger("httpx").level == logging.WARNING

from __future__ import annotations

import logging
from typing import Any

import httpx
from schwab.auth import client_from_token_file, easy_client
from schwab.client import Client

from schwab_mcp.config import Settings
from schwab_mcp.errors import ClientUnavailable
from schwab_mcp.utils.redaction import redact_api_response

logger = logging.getLogger(__name__)


def make_client(settings: Settings) -> Client:
    """
    Build a Schwab client from the stored token file.

    Enums are not enforced so tool arguments (plain strings/ints taken from the
    JSON schema enums) pass straight through to the API.
    """
    if not settings.has_credentials:
        logger.error("SCHWAB_API_KEY / SCHWAB_APP_SECRET are not set")
        raise ClientUnavailable()
    token_path = settings.token_path
    if not token_path.exists():
        logger.error("Token file not found at %s; run `schwab-mcp login`", token_path)
        raise ClientUnavailable()
    try:
        return client_from_token_file(
            str(token_path),
            settings.schwab_api_key,
            settings.schwab_app_secret,
            enforce_enums=False,
        )
    except (OSError, ValueError) as e:
        logger.error("Failed to initialize Schwab client: %s", e)
        raise ClientUnavailable() from e


def login(settings: Settings, *, interactive: bool = True) -> Client:
    """Run the browser login flow (or reuse a valid token) and persist the token file."""
    if not settings.has_credentials:
        raise ClientUnavailable("SCHWAB_API_KEY and SCHWAB_APP_SECRET must be set before logging in.")
    settings.token_path.parent.mkdir(parents=True, exist_ok=True)
    return easy_client(
        settings.schwab_api_key,
        settings.schwab_app_secret,
        settings.schwab_callback_uri,
        str(settings.token_path),
        enforce_enums=False,
        interactive=interactive,
    )


def response_json(resp: httpx.Response) -> Any:
    """Decoded JSON body of a successful response; None for an empty body."""
    if resp.status_code >= 400:
        logger.error("Schwab API returned %s: %s", resp.status_code, redact_api_response(resp.text))
    resp.raise_for_status()
    if not resp.content:
        return None
    return resp.json()

"""
Tests for Settings and the Schwab client factory.
"""
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from schwab_mcp.config import Settings
from schwab_mcp.errors import ClientUnavailable


@pytest.fixture
def clean_env(monkeypatch):
    for key in ("SCHWAB_API_KEY", "SCHWAB_APP_SECRET", "TOKEN_PATH", "LOGFILE", "LOG_LEVEL", "DEBUG"):
        monkeypatch.delenv(key, raising=False)


def test_defaults(clean_env):
    s = Settings(_env_file=None)

    assert s.has_credentials is False
    assert s.schwab_callback_uri == "https://127.0.0.1:8182"
    assert s.token_path == Path("~/.schwab_mcp/token.json").expanduser()
    assert s.log_file == Path(tempfile.gettempdir()) / "schwab_mcp.log"
    assert s.log_level == "INFO"
    assert s.debug is False
    assert s.log_max_size == 10 * 1024 * 1024
    assert s.log_max_files == 5


def test_reads_environment(clean_env, monkeypatch):
    monkeypatch.setenv("SCHWAB_API_KEY", "key")
    monkeypatch.setenv("SCHWAB_APP_SECRET", "secret")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    s = Settings(_env_file=None)

    assert s.has_credentials is True
    assert s.schwab_api_key == "key"
    assert s.debug is True
    assert s.log_level == "DEBUG"


def test_debug_flag_overrides_level(clean_env):
    s = Settings(_env_file=None, DEBUG=True, LOG_LEVEL="WARNING")
    assert s.log_level == "DEBUG"


class TestMakeClient:
    def test_requires_credentials(self, settings):
        from schwab_mcp.data.schwab import make_client

        with pytest.raises(ClientUnavailable):
            make_client(settings.model_copy(update={"SCHWAB_APP_SECRET": None}))

    def test_requires_token_file(self, settings):
        from schwab_mcp.data.schwab import make_client

        with pytest.raises(ClientUnavailable):
            make_client(settings)

    def test_builds_from_token_file(self, settings):
        from schwab_mcp.data import schwab

        settings.token_path.write_text("{}")
        with patch.object(schwab, "client_from_token_file", return_value="client") as factory:
            assert schwab.make_client(settings) == "client"
        factory.assert_called_once_with(
            str(settings.token_path), "test_key", "test_secret", enforce_enums=False
        )

    def test_bad_token_file(self, settings):
        from schwab_mcp.data import schwab

        settings.token_path.write_text("not json")
        with patch.object(schwab, "client_from_token_file", side_effect=ValueError("bad token")):
            with pytest.raises(ClientUnavailable):
                schwab.make_client(settings)

    def test_response_json_empty_body(self):
        from unittest.mock import MagicMock

        from schwab_mcp.data.schwab import response_json

        resp = MagicMock()
        resp.status_code = 204
        resp.content = b""
        assert response_json(resp) is None
        resp.raise_for_status.assert_called_once_with()

    def test_response_json_logs_redacted_error_body(self, caplog):
        import httpx

        from schwab_mcp.data.schwab import response_json

        resp = httpx.Response(
            400,
            text='{"accountNumber":"123456789","message":"bad request"}',
            request=httpx.Request("GET", "https://api.schwabapi.com/trader/v1/accounts"),
        )
        with caplog.at_level("ERROR", logger="schwab_mcp"):
            with pytest.raises(httpx.HTTPStatusError):
                response_json(resp)

        assert "Schwab API returned 400" in caplog.text
        assert "[REDACTED_ACCOUNT]" in caplog.text
        assert "123456789" not in caplog.text

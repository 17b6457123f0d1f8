"""
CLI smoke tests - verify commands load without errors.

These tests don't talk to Schwab (which would require API keys and a token);
the client is patched where a command needs one.
"""
from __future__ import annotations

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from conftest import chain_payload, ok_response

runner = CliRunner()


@pytest.fixture
def cli_env(monkeypatch, tmp_path, restore_logging):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("LOGFILE", str(tmp_path / "cli.log"))
    monkeypatch.setenv("SCHWAB_API_KEY", "test_key")
    monkeypatch.setenv("SCHWAB_APP_SECRET", "test_secret")
    return tmp_path


class TestCLIStructure:
    """Test that CLI commands are properly registered and accessible."""

    def test_cli_imports_without_error(self):
        from schwab_mcp.cli import app
        assert app is not None

    def test_main_help(self):
        from schwab_mcp.cli import app
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "Schwab MCP CLI" in result.output

    @pytest.mark.parametrize("command", ["serve", "login", "tools", "accounts", "spreads"])
    def test_command_help(self, command):
        from schwab_mcp.cli import app
        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0


class TestCommands:
    def test_tools_table(self):
        from schwab_mcp.cli import app
        result = runner.invoke(app, ["tools"])
        assert result.exit_code == 0
        assert "quote_tool" in result.output
        assert "help_tool" in result.output

    def test_accounts(self, cli_env, monkeypatch):
        from schwab_mcp.cli import app
        monkeypatch.setenv("TRADING_BROKERAGE_ACCOUNT", "123456789")
        result = runner.invoke(app, ["accounts"])
        assert result.exit_code == 0
        assert "TRADING_BROKERAGE_ACCOUNT" in result.output
        assert "Trading Brokerage" in result.output

    def test_spreads(self, cli_env, mock_client):
        from schwab_mcp.cli import app
        mock_client.get_option_chain.return_value = ok_response(chain_payload())

        with patch("schwab_mcp.data.schwab.make_client", return_value=mock_client):
            result = runner.invoke(
                app,
                ["spreads", "-s", "$SPX", "-e", "2025-01-17", "-t", "putspread", "--dist", "0.05", "--min-oi", "10"],
            )

        assert result.exit_code == 0
        assert "PUT SPREAD FOUND" in result.output

    def test_login_without_credentials(self, cli_env, monkeypatch):
        from schwab_mcp.cli import app
        monkeypatch.delenv("SCHWAB_API_KEY")
        result = runner.invoke(app, ["login"])
        assert result.exit_code == 1
        assert "SCHWAB_API_KEY" in result.output

"""
Schwab MCP CLI

Commands:
- schwab-mcp serve     Run the MCP server on stdio
- schwab-mcp login     Browser login; writes the token file
- schwab-mcp tools     List registered MCP tools
- schwab-mcp accounts  List configured *_ACCOUNT names
- schwab-mcp spreads   Run the spread / iron condor finder from the terminal
"""
from __future__ import annotations

import typer

app = typer.Typer(
    add_completion=False,
    help="""Schwab MCP CLI: Schwab account and options data for MCP clients

\b
  schwab-mcp login                      Authenticate with Schwab
  schwab-mcp serve                      Start the stdio MCP server
  schwab-mcp spreads -s '$SPX' -e 2025-07-18 -t ironcondor
""",
)


def _settings(verbose: bool = False, *, console: bool = True):
    from dotenv import load_dotenv

    from schwab_mcp.config import load_settings
    from schwab_mcp.utils.logging import setup_logging

    load_dotenv()
    settings = load_settings()
    if verbose:
        settings = settings.model_copy(update={"DEBUG": True})
    setup_logging(settings, console=console and verbose)
    return settings


@app.command("serve")
def serve_cmd(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging (to the log file)"),
):
    """Start the MCP server on stdio."""
    from schwab_mcp.server import run

    # stdout belongs to the MCP transport; logs only go to the file
    settings = _settings(verbose, console=False)
    run(settings)


@app.command("login")
def login_cmd(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Authenticate with Schwab and save the token file."""
    from rich.console import Console

    from schwab_mcp.data.schwab import login
    from schwab_mcp.errors import ClientUnavailable

    console = Console()
    settings = _settings(verbose)
    try:
        login(settings)
    except ClientUnavailable as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]Token saved to {settings.token_path}[/green]")


@app.command("tools")
def tools_cmd():
    """List the MCP tools this server exposes."""
    from rich.console import Console
    from rich.table import Table

    from schwab_mcp.tools import build_registry

    table = Table(title="Schwab MCP tools")
    table.add_column("Tool", style="bold cyan", no_wrap=True)
    table.add_column("Description")
    table.add_column("Required")
    for spec in build_registry().specs():
        table.add_row(spec.name, spec.description, ", ".join(spec.input_schema.get("required", [])) or "-")
    Console().print(table)


@app.command("accounts")
def accounts_cmd():
    """List account names configured through *_ACCOUNT variables."""
    from rich.console import Console
    from rich.table import Table

    from schwab_mcp.accounts import configured_account_names, friendly_name

    _settings()
    console = Console()
    names = configured_account_names()
    if not names:
        console.print("[yellow]No *_ACCOUNT environment variables configured[/yellow]")
        raise typer.Exit(code=1)
    table = Table()
    table.add_column("Name", style="bold")
    table.add_column("Friendly name")
    for n in names:
        table.add_row(n, friendly_name(n))
    console.print(table)


@app.command("spreads")
def spreads_cmd(
    symbol: str = typer.Option(..., "--symbol", "-s", help="Underlying symbol (e.g. SPY, $SPX)"),
    expiration: str = typer.Option(..., "--expiration", "-e", help="Expiration date YYYY-MM-DD"),
    strategy: str = typer.Option("ironcondor", "--type", "-t", help="ironcondor | callspread | putspread"),
    max_delta: float = typer.Option(0.15, "--max-delta", help="Max |delta| of short legs"),
    max_spread: float = typer.Option(20.0, "--max-spread", help="Max width in dollars"),
    min_credit: float = typer.Option(0.0, "--min-credit", help="Min credit in dollars per contract"),
    min_oi: int = typer.Option(0, "--min-oi", help="Min open interest per leg"),
    dist: float = typer.Option(0.0, "--dist", help="Min short-strike distance from underlying (fraction)"),
    expiration_type: str = typer.Option(None, "--expiration-type", help="W | M | Q"),
    settlement_type: str = typer.Option(None, "--settlement-type", help="P | A"),
    option_root: str = typer.Option(None, "--root", help="Option root (e.g. SPXW)"),
    quantity: int = typer.Option(1, "--quantity", "-q", help="Contracts per leg"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Find the best credit spread or iron condor for one expiration."""
    from rich.console import Console
    from rich.markdown import Markdown

    from schwab_mcp.tools import ToolContext, build_registry
    from schwab_mcp.utils.redaction import redact_formatted_text

    settings = _settings(verbose)
    spec = build_registry().get("option_strategy_finder_tool")
    text = spec.run(
        ToolContext(settings=settings),
        {
            "strategy_type": strategy,
            "underlying_symbol": symbol,
            "expiration_date": expiration,
            "max_delta": max_delta,
            "max_spread": max_spread,
            "min_credit": min_credit,
            "min_open_interest": min_oi,
            "dist_from_strike": dist,
            "expiration_type": expiration_type,
            "settlement_type": settlement_type,
            "option_root": option_root,
            "quantity": quantity,
        },
    )
    Console().print(Markdown(redact_formatted_text(text)))


if __name__ == "__main__":
    app()

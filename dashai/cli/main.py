"""
CLI interface for DashAI.

Provides command-line access to the assistant, its usage ledgers and the
HTTP server.
"""

import os
import sys
from decimal import Decimal
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from dashai.config.loader import CONFIG_ENV_VAR, AssistantConfig, load_config
from dashai.core.errors import AssistantError
from dashai.core.pipeline import AssistantPipeline
from dashai.demo.seed_demo_data import seed_demo_data
from dashai.logging_config import setup_logging
from dashai.storage.repository import LedgerRepository, initialize_schema

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1


def _load(config_path: Optional[str]) -> AssistantConfig:
    config = load_config(config_path)
    setup_logging(config.log_level)
    return config


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """DashAI assistant CLI."""
    if ctx.invoked_subcommand is None:
        console.print("DashAI - Use --help to see available commands")


@app.command()
def init(
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="Path to YAML config file")
):
    """Initialize the DashAI database."""
    try:
        config = _load(config_path)
        initialize_schema(config.db_path)
        console.print("[green]✓[/] Database initialized successfully")
        sys.exit(EXIT_CODE_PASS)
    except Exception as e:
        console.print(f"[red]Error initializing database:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command("seed-demo")
def seed_demo(
    caller_id: str = typer.Option(..., "--caller-id", "-u", help="Caller to create demo records for"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="Path to YAML config file")
):
    """Insert a demo profile, semester, courses and deadlines."""
    try:
        config = _load(config_path)
        semester_id = seed_demo_data(caller_id, db_path=config.db_path)
        console.print(f"[green]✓[/] Demo data created for {caller_id} (semester {semester_id})")
    except Exception as e:
        console.print(f"[red]Error seeding demo data:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command()
def ask(
    message: str = typer.Argument(..., help="Message for the assistant"),
    caller_id: str = typer.Option(..., "--caller-id", "-u", help="Authenticated caller id"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="Path to YAML config file")
):
    """Ask the assistant one question, counted against the daily limit."""
    try:
        config = _load(config_path)
        pipeline = AssistantPipeline.from_config(config)
        result = pipeline.handle(caller_id, {"message": message, "chatHistory": []})
    except AssistantError as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    console.print(result.reply)
    console.print(f"\n[dim]{result.tokens_used} tokens · {_format_currency(result.cost)}[/]")


@app.command()
def usage(
    days: int = typer.Option(30, "--days", "-d", help="Number of recent days to show"),
    months: int = typer.Option(12, "--months", "-m", help="Number of recent months to show"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="Path to YAML config file")
):
    """Show daily call counts and the daily and monthly cost ledgers."""
    try:
        config = _load(config_path)
        repository = LedgerRepository(config.db_path)
        counters = repository.fetch_call_counters(limit=days)
        daily_costs = repository.fetch_daily_costs(limit=days)
        monthly_costs = repository.fetch_monthly_costs(limit=months)
    except Exception as e:
        console.print(f"[red]Error reading usage:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    if not counters and not daily_costs and not monthly_costs:
        console.print("\n[bold yellow]No assistant usage recorded yet[/]\n")
        return

    calls_table = Table(title=f"Daily Calls (limit {config.daily_call_limit})")
    calls_table.add_column("Day")
    calls_table.add_column("Calls", justify="right")
    for counter in counters:
        calls_table.add_row(counter.day_key, str(counter.count))
    console.print(calls_table)

    daily_table = Table(title="Daily Costs")
    daily_table.add_column("Day")
    daily_table.add_column("Calls", justify="right")
    daily_table.add_column("Tokens", justify="right")
    daily_table.add_column("Cost", justify="right")
    for record in daily_costs:
        daily_table.add_row(record.day_key, str(record.calls), f"{record.tokens:,}", _format_currency(record.cost))
    console.print(daily_table)

    monthly_table = Table(title="Monthly Costs")
    monthly_table.add_column("Month")
    monthly_table.add_column("Calls", justify="right")
    monthly_table.add_column("Tokens", justify="right")
    monthly_table.add_column("Cost", justify="right")
    for record in monthly_costs:
        monthly_table.add_row(
            record.month_key,
            str(record.call_count),
            f"{record.total_tokens:,}",
            _format_currency(record.total_cost)
        )
    console.print(monthly_table)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind"),
    port: int = typer.Option(8080, "--port", "-p", help="Port to listen on"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="Path to YAML config file")
):
    """Run the HTTP API under uvicorn."""
    import uvicorn

    if config_path:
        os.environ[CONFIG_ENV_VAR] = config_path
    _load(config_path)
    uvicorn.run("dashai.api.app:app", host=host, port=port)


def _format_currency(amount: Decimal) -> str:
    """Format small dollar amounts with enough precision to be non-zero."""
    return f"${amount:,.4f}"


if __name__ == "__main__":
    app()

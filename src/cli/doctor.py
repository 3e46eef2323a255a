"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.registrobr import RegistroBrChecker
from core.config import AppSettings, get_user_env_file
from core.domain.models import Checked, CheckOutcome

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()

# Always registered; used only to probe that the API answers with a known shape.
_PROBE_DOMAIN = "registro.br"


async def _probe(settings: AppSettings) -> CheckOutcome:
    async with RegistroBrChecker(settings) as checker:
        return await checker.check(_PROBE_DOMAIN)


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="registrobr-finder Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    env_file = get_user_env_file()
    table.add_row("User .env", "OK" if env_file.exists() else "OPTIONAL", str(env_file))
    table.add_row("API URL", "OK", settings.avail_api_url)
    table.add_row("Workers / timeout", "OK", f"{settings.default_workers} / {settings.http_timeout_seconds:g}s")
    table.add_row(
        "Retries",
        "OK",
        f"rate limit: {settings.rate_limit_max_retries}, network: {settings.network_max_retries}",
    )

    # Connectivity (best-effort)
    outcome = asyncio.run(_probe(settings))
    if isinstance(outcome, Checked):
        table.add_row("Availability API", "OK", f"{_PROBE_DOMAIN}: {outcome.status.describe()}")
    else:
        detail = getattr(outcome, "detail", "") or outcome.kind
        table.add_row("Availability API", "FAIL", f"{outcome.kind}: {detail}")

    _console.print(table)

    if not isinstance(outcome, Checked):
        _console.print(
            "\n[yellow]Note:[/yellow] If the API is rate limiting you, lower `--workers` "
            "or raise REGISTROBR_FINDER_RATE_LIMIT_BACKOFF_SECONDS."
        )
        raise typer.Exit(code=1)


@app.command(name="config")
def show_config() -> None:
    """Print the effective settings (env vars + .env files)."""

    settings = AppSettings()
    table = Table(title="Effective settings")
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Value")
    for key, value in settings.model_dump().items():
        table.add_row(f"REGISTROBR_FINDER_{key.upper()}", str(value))
    _console.print(table)

"""CLI (Typer).

Comandos:
- `scan`: genera (o recibe) candidatos y verifica su estado en Registro.br.
- `doctor`: diagnóstico de configuración y conectividad.

Exit codes de `scan`:
- 0: corrida completa (aunque haya fallos individuales).
- 1: todas las verificaciones fallaron o se perdió la conectividad.
- 2: error de configuración.
- 130: cancelada por el usuario (se imprime el resumen parcial).
"""

from __future__ import annotations

import asyncio
import signal
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from adapters.json_exporter import export_run_json
from cli import doctor
from cli.ui_components import (
    ConsoleSink,
    build_progress,
    build_summary_table,
    print_available,
    print_banner,
)
from core.config import AppSettings
from core.domain.models import ProgressSnapshot, RunConfig, StatusKind
from core.errors import ConfigError, RunCancelled
from core.logging_setup import setup_logging
from core.services.candidates import build_candidates
from core.services.finder_pipeline import PipelineHooks, RunReport, build_run_config, run_finder

EXIT_OK = 0
EXIT_SYSTEMIC_FAILURE = 1
EXIT_CONFIG_ERROR = 2
EXIT_CANCELLED = 130

app = typer.Typer(no_args_is_help=True, help="Find short, available .br domains via Registro.br.")
app.add_typer(doctor.app, name="doctor")

_console = Console()
_err_console = Console(stderr=True)


async def _run_with_interrupt(
    *,
    settings: AppSettings,
    config: RunConfig,
    hooks: PipelineHooks,
) -> RunReport:
    """Ejecuta la corrida; el primer Ctrl-C cancela de forma ordenada.

    El segundo Ctrl-C vuelve al comportamiento por defecto (KeyboardInterrupt).
    """

    loop = asyncio.get_running_loop()
    cancel_event = asyncio.Event()

    def on_sigint() -> None:
        _err_console.print(
            "[yellow]Interrupted: finishing in-flight checks (Ctrl-C again to abort)...[/yellow]"
        )
        cancel_event.set()
        loop.remove_signal_handler(signal.SIGINT)

    installed = False
    try:
        loop.add_signal_handler(signal.SIGINT, on_sigint)
        installed = True
    except (NotImplementedError, RuntimeError):
        # Windows / hilos secundarios: sin cancelación ordenada.
        pass

    try:
        return await run_finder(settings=settings, config=config, hooks=hooks, cancel_event=cancel_event)
    finally:
        if installed:
            loop.remove_signal_handler(signal.SIGINT)


@app.command()
def scan(
    digits: int = typer.Option(2, "--digits", "-d", help="Number of characters (2 or 3)."),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", help="Parallel checks (default from settings: 20)."),
    timeout: Optional[float] = typer.Option(None, "--timeout", "-t", help="Per-request timeout in seconds."),
    suffix: Optional[str] = typer.Option(None, "--suffix", "-s", help="Domain suffix (default .com.br)."),
    letters: bool = typer.Option(False, "--letters", help="Letters only (no digits)."),
    numbers: bool = typer.Option(False, "--numbers", help="Digits only (no letters)."),
    check: Optional[str] = typer.Option(None, "--check", "-c", help="Check specific domain(s), comma separated."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="File to write available domains to (one per line)."),
    json_path: Optional[Path] = typer.Option(None, "--json", help="Write the full run (every result) as JSON."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show every checked domain."),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override REGISTROBR_FINDER_LOG_LEVEL."),
) -> None:
    """Check availability of every candidate and print a summary."""

    settings = AppSettings()
    setup_logging(log_level or settings.log_level, console=_err_console)

    try:
        config = build_run_config(
            settings=settings,
            digits=digits,
            workers=workers,
            timeout=timeout,
            suffix=suffix,
            letters=letters,
            numbers=numbers,
            check=check,
            output=output,
            verbose=verbose,
        )
    except ConfigError as exc:
        _err_console.print(f"[red]Configuration error:[/red] {exc}")
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from exc

    print_banner(_console, config, len(build_candidates(config)))

    cancelled = False
    with build_progress(_console) as progress:
        task_id = progress.add_task("checking", total=None, available=0, unknown=0)

        def on_start(total: int) -> None:
            progress.update(task_id, total=total)

        def on_progress(snapshot: ProgressSnapshot) -> None:
            progress.update(
                task_id,
                completed=snapshot.processed,
                available=snapshot.counts.get(StatusKind.AVAILABLE, 0),
                unknown=snapshot.counts.get(StatusKind.UNKNOWN, 0),
            )

        hooks = PipelineHooks(start=on_start, progress=on_progress, sinks=[ConsoleSink(progress.console)])
        try:
            report = asyncio.run(_run_with_interrupt(settings=settings, config=config, hooks=hooks))
        except RunCancelled as exc:
            report = exc.report
            cancelled = True

    summary = report.summary
    _console.print()
    _console.print(build_summary_table(summary))
    print_available(_console, summary)

    if config.output_path is not None and summary.available:
        _console.print(f"\nResults saved to: {config.output_path}")
    if json_path is not None:
        written = export_run_json(report=report, output_path=json_path)
        _console.print(f"JSON report: {written}")

    if cancelled:
        raise typer.Exit(code=EXIT_CANCELLED)
    if summary.connectivity_lost:
        _err_console.print("[red]Most checks exhausted network retries: is the network up?[/red]")
        raise typer.Exit(code=EXIT_SYSTEMIC_FAILURE)
    if summary.all_failed:
        _err_console.print("[red]Every check failed; see the unknown counts above.[/red]")
        raise typer.Exit(code=EXIT_SYSTEMIC_FAILURE)
    raise typer.Exit(code=EXIT_OK)


def run() -> None:
    app()


if __name__ == "__main__":
    run()

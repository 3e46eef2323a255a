"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- El pipeline solo ve callbacks (`PipelineHooks`) y sinks; todo lo que pinta
  en terminal vive aquí.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.table import Table
from rich.text import Text

from core.domain.models import CheckResult, RunConfig, RunSummary, StatusKind

_KIND_STYLES: dict[StatusKind, str] = {
    StatusKind.AVAILABLE: "bold green",
    StatusKind.REGISTERED: "white",
    StatusKind.PENDING: "yellow",
    StatusKind.UNAVAILABLE: "magenta",
    StatusKind.UNKNOWN: "red",
}


def print_banner(console: Console, config: RunConfig, total: int) -> None:
    """Imprime el banner con los parámetros efectivos de la corrida."""

    title = Text("registrobr-finder", style="bold cyan")
    subtitle = Text(
        f"Suffix: {config.suffix} • Workers: {config.workers} • Timeout: {config.timeout_seconds:g}s",
        style="dim",
    )
    source = "explicit list" if config.check_list is not None else f"{config.alphabet.value}, {config.digits} chars"
    detail = Text(f"{total} domains to check ({source})")
    body = Align.center(Text.assemble(title, "\n", subtitle, "\n", detail), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_progress(console: Console) -> Progress:
    return Progress(
        SpinnerColumn(style="green"),
        TimeElapsedColumn(),
        BarColumn(),
        MofNCompleteColumn(),
        TimeRemainingColumn(),
        TextColumn("[green]{task.fields[available]} available[/green] [red]{task.fields[unknown]} unknown[/red]"),
        console=console,
    )


class ConsoleSink:
    """Imprime resultados encima de la barra de progreso."""

    def __init__(self, console: Console) -> None:
        self._console = console

    def write(self, result: CheckResult) -> None:
        kind = result.status.kind
        style = _KIND_STYLES[kind]
        if kind is StatusKind.AVAILABLE:
            self._console.print(Text(f"AVAILABLE: {result.domain}", style=style))
            return
        line = Text(f"   {kind.value.upper()}: ", style=style)
        line.append(result.domain)
        if result.status.describe() != kind.value:
            line.append(f" ({result.status.describe()})", style="dim")
        self._console.print(line)

    def close(self) -> None:
        return None


def build_summary_table(summary: RunSummary) -> Table:
    """Tabla final: conteos por estado, incluido `unknown`, y motivos de fallo."""

    title = "Summary (cancelled)" if summary.cancelled else "Summary"
    table = Table(title=title)
    table.add_column("Status", style="cyan", no_wrap=True)
    table.add_column("Count", justify="right")

    table.add_row("processed", f"{summary.processed}/{summary.total}")
    for kind in StatusKind:
        table.add_row(Text(kind.value, style=_KIND_STYLES[kind]), str(summary.count(kind)))
    for reason, count in sorted(summary.failures.items(), key=lambda item: item[0].value):
        table.add_row(Text(f"  unknown: {reason.value}", style="dim"), str(count))
    table.add_row("elapsed", f"{summary.elapsed_seconds:.1f}s")
    return table


def print_available(console: Console, summary: RunSummary) -> None:
    if not summary.available:
        return
    console.print("\n[bold green]Available domains:[/bold green]")
    for domain in summary.available:
        console.print(f"   - {domain}")

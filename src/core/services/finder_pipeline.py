"""Run orchestration.

Wires candidates, checker, retry policy, dispatcher, aggregator and sinks
together for one run. The CLI delegates everything here, so side effects that
belong to the UI (printing, progress bars) arrive only through `PipelineHooks`
and the pipeline stays reusable from tests or other entry-points.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import AsyncExitStack, aclosing
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Sequence

from pydantic import ValidationError

from adapters.file_sink import FileSink
from adapters.registrobr import RegistroBrChecker
from core.config import AppSettings
from core.domain.models import (
    Alphabet,
    ProgressSnapshot,
    RunConfig,
    RunResult,
    RunSummary,
    StatusKind,
)
from core.errors import ConfigError, RunCancelled
from core.interfaces.checker import StatusChecker
from core.interfaces.sink import ResultSink
from core.services.aggregator import ResultAggregator
from core.services.candidates import (
    MAX_FQDN_LENGTH,
    MAX_LABEL_LENGTH,
    build_candidates,
    oversized_entries,
    parse_check_list,
)
from core.services.dispatcher import Dispatcher
from core.services.retry_policy import RetryPolicy

logger = logging.getLogger(__name__)


@dataclass
class PipelineHooks:
    """Optional callbacks and extra sinks for UI layers."""

    start: Callable[[int], None] | None = None
    progress: Callable[[ProgressSnapshot], None] | None = None
    sinks: Sequence[ResultSink] = field(default_factory=tuple)


@dataclass
class RunReport:
    """Output of a finished (or cancelled) run."""

    config: RunConfig
    summary: RunSummary
    result: RunResult


def build_run_config(
    *,
    settings: AppSettings,
    digits: int = 2,
    workers: int | None = None,
    timeout: float | None = None,
    suffix: str | None = None,
    letters: bool = False,
    numbers: bool = False,
    check: str | None = None,
    output: Path | None = None,
    verbose: bool = False,
) -> RunConfig:
    """Merge CLI flags over settings defaults into a validated `RunConfig`.

    Raises:
        ConfigError: on any invalid combination or value.
    """

    try:
        alphabet = Alphabet.from_flags(letters=letters, numbers=numbers)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc

    check_list: tuple[str, ...] | None = None
    if check is not None:
        check_list = tuple(parse_check_list(check))
        if not check_list:
            raise ConfigError("--check was given but contains no domain")

    try:
        config = RunConfig(
            digits=digits,  # type: ignore[arg-type]
            alphabet=alphabet,
            suffix=suffix if suffix is not None else settings.default_suffix,
            workers=workers if workers is not None else settings.default_workers,
            timeout_seconds=timeout if timeout is not None else settings.http_timeout_seconds,
            check_list=check_list,
            output_path=output,
            verbose=verbose,
        )
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}" for err in exc.errors()
        )
        raise ConfigError(problems) from exc

    if config.check_list is not None:
        too_long = oversized_entries(config.check_list, suffix=config.suffix)
        if too_long:
            shown = ", ".join(f"{entry[:20]}..." if len(entry) > 20 else entry for entry in too_long[:3])
            raise ConfigError(
                "--check entries over the DNS length limits "
                f"({MAX_LABEL_LENGTH} per label, {MAX_FQDN_LENGTH} total): {shown}"
            )
    return config


async def run_finder(
    *,
    settings: AppSettings,
    config: RunConfig,
    checker: StatusChecker | None = None,
    policy: RetryPolicy | None = None,
    hooks: PipelineHooks | None = None,
    cancel_event: asyncio.Event | None = None,
) -> RunReport:
    """Check every candidate of `config` and return the aggregated report.

    When `checker` is omitted a `RegistroBrChecker` is opened for the run.

    Raises:
        RunCancelled: if `cancel_event` cut the run short; carries the partial report.
    """

    hooks = hooks or PipelineHooks()
    policy = policy or RetryPolicy.from_settings(settings)
    candidates = build_candidates(config)
    total = len(candidates)

    logger.info(
        "Checking %d candidates (suffix=%s, workers=%d, timeout=%.1fs)",
        total,
        config.suffix,
        config.workers,
        config.timeout_seconds,
    )
    if hooks.start:
        hooks.start(total)

    async with AsyncExitStack() as stack:
        if checker is None:
            checker = await stack.enter_async_context(
                RegistroBrChecker(
                    settings,
                    timeout=config.timeout_seconds,
                    max_connections=config.workers,
                )
            )

        sinks: list[ResultSink] = list(hooks.sinks)
        if config.output_path is not None:
            file_sink = FileSink(config.output_path)
            stack.callback(file_sink.close)
            sinks.append(file_sink)

        aggregator = ResultAggregator(
            total=total,
            sinks=sinks,
            verbose=config.verbose,
            on_progress=hooks.progress,
            connectivity_loss_ratio=settings.connectivity_loss_ratio,
        )
        dispatcher = Dispatcher(
            checker,
            policy,
            workers=config.workers,
            suffix=config.suffix,
            cancel_event=cancel_event,
        )
        async with aclosing(dispatcher.run(candidates)) as stream:
            summary = await aggregator.consume(
                stream,
                cancelled=(cancel_event.is_set if cancel_event is not None else None),
            )

    logger.info(
        "Run finished: %d/%d processed, %d available, %d unknown",
        summary.processed,
        summary.total,
        summary.count(StatusKind.AVAILABLE),
        summary.count(StatusKind.UNKNOWN),
    )

    report = RunReport(config=config, summary=summary, result=aggregator.result)
    if summary.cancelled:
        raise RunCancelled(report)
    return report

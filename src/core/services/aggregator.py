"""Result aggregation.

The aggregator is the single owner of the run's counters: workers never touch
them, they only push results onto the dispatcher's queue, and one coroutine
(`consume`) feeds them here in arrival order.
"""

from __future__ import annotations

import logging
import time
from collections import Counter
from typing import AsyncIterable, Callable, Sequence

from core.domain.models import (
    CheckResult,
    ProgressSnapshot,
    RunResult,
    RunSummary,
    StatusKind,
)
from core.errors import FailureReason
from core.interfaces.sink import ResultSink

logger = logging.getLogger(__name__)


class ResultAggregator:
    """Counts results and forwards them to sinks as they arrive.

    - `available` results always reach the sinks; every other result only in
      verbose mode. Sinks may filter further (the file sink keeps availables).
    - `on_progress` receives a snapshot after each result.
    """

    def __init__(
        self,
        *,
        total: int,
        sinks: Sequence[ResultSink] = (),
        verbose: bool = False,
        on_progress: Callable[[ProgressSnapshot], None] | None = None,
        connectivity_loss_ratio: float = 0.9,
    ) -> None:
        self.total = total
        self.result = RunResult()
        self._sinks = list(sinks)
        self._verbose = verbose
        self._on_progress = on_progress
        self._connectivity_loss_ratio = connectivity_loss_ratio
        self._counts: Counter[StatusKind] = Counter()
        self._failures: Counter[FailureReason] = Counter()
        self._started = time.monotonic()

    @property
    def processed(self) -> int:
        return len(self.result)

    def add(self, result: CheckResult) -> None:
        self.result.append(result)
        kind = result.status.kind
        self._counts[kind] += 1
        if kind is StatusKind.UNKNOWN and result.status.reason is not None:
            self._failures[result.status.reason] += 1

        if kind is StatusKind.AVAILABLE or self._verbose:
            for sink in self._sinks:
                sink.write(result)

        if self._on_progress is not None:
            self._on_progress(self.snapshot())

    async def consume(self, results: AsyncIterable[CheckResult], *, cancelled: Callable[[], bool] | None = None) -> RunSummary:
        """Drain `results`, then build the final summary."""

        async for result in results:
            self.add(result)
        # A late Ctrl-C on a run that checked everything is not a cancellation.
        interrupted = self.processed < self.total or self._failures[FailureReason.CANCELLED] > 0
        return self.summary(cancelled=bool(cancelled and cancelled()) and interrupted)

    def snapshot(self) -> ProgressSnapshot:
        return ProgressSnapshot(processed=self.processed, total=self.total, counts=dict(self._counts))

    def summary(self, *, cancelled: bool = False) -> RunSummary:
        processed = self.processed
        unknown = self._counts[StatusKind.UNKNOWN]
        network = self._failures[FailureReason.NETWORK_EXHAUSTED]

        all_failed = processed > 0 and unknown == processed
        connectivity_lost = processed > 0 and network / processed >= self._connectivity_loss_ratio
        if connectivity_lost:
            logger.error(
                "%d of %d candidates exhausted network retries: connectivity looks lost",
                network,
                processed,
            )

        return RunSummary(
            total=self.total,
            processed=processed,
            counts={kind: self._counts[kind] for kind in StatusKind},
            failures=dict(self._failures),
            available=self.result.available_domains(),
            elapsed_seconds=round(time.monotonic() - self._started, 3),
            cancelled=cancelled,
            all_failed=all_failed,
            connectivity_lost=connectivity_lost,
        )

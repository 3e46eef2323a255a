"""Bounded dispatcher.

A fixed pool of `workers` asyncio tasks pulls candidates from a single
scheduler, checks them, lets the retry policy interpret the outcome and pushes
terminal results onto a bounded queue that `Dispatcher.run` yields from.

- At most `workers` checks are in flight: there are exactly `workers` tasks and
  each one performs one check at a time.
- A retry is a re-submission at a due time, not a sleeping task. The waiting
  candidate holds no slot; it takes one again when it becomes due.
- The scheduler is the only owner of the pull index, the retry heap and the
  in-flight counter. Its methods never await between reading and mutating that
  state, so workers see every call as atomic.
- Cancellation stops pulling new candidates. In-flight checks finish (or time
  out in the checker); candidates waiting for a retry are resolved as
  `unknown/cancelled` without another remote call.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import AsyncIterator, Iterable, Iterator

from core.domain.models import CheckOutcome, CheckResult, DomainStatus, FatalError
from core.errors import FailureReason
from core.interfaces.checker import StatusChecker
from core.services.retry_policy import Accept, Retry, RetryPolicy

logger = logging.getLogger(__name__)

_DONE = object()


@dataclass(frozen=True)
class _Job:
    candidate: str
    attempt: int = 0


@dataclass(order=True)
class _Pending:
    due: float
    seq: int
    job: _Job = field(compare=False)


class _Scheduler:
    def __init__(self, candidates: Iterator[str]) -> None:
        self._source = candidates
        self._exhausted = False
        self._pending: list[_Pending] = []
        self._seq = itertools.count()
        self._changed = asyncio.Event()
        self.in_flight = 0
        self.cancelled = False

    def take(self, now: float) -> _Job | object | None:
        """Next job, `None` to wait, or `_DONE` when nothing is left anywhere.

        Due retries go first, then fresh candidates in source order. Once
        cancelled, pending retries are handed out immediately so the worker can
        resolve them as skipped.
        """

        if self._pending and (self.cancelled or self._pending[0].due <= now):
            self.in_flight += 1
            return heapq.heappop(self._pending).job

        if not self.cancelled and not self._exhausted:
            try:
                candidate = next(self._source)
            except StopIteration:
                self._exhausted = True
            else:
                self.in_flight += 1
                return _Job(candidate)

        if not self._pending and self.in_flight == 0:
            return _DONE
        return None

    async def wait(self, now: float) -> None:
        """Sleep until the earliest retry is due or the state changes."""

        timeout = None
        if self._pending and not self.cancelled:
            timeout = max(0.0, self._pending[0].due - now)
        changed = self._changed
        try:
            await asyncio.wait_for(changed.wait(), timeout)
        except asyncio.TimeoutError:
            pass

    def finish(self) -> None:
        self.in_flight -= 1
        self._notify()

    def reschedule(self, job: _Job, due: float) -> None:
        heapq.heappush(self._pending, _Pending(due, next(self._seq), job))
        self.in_flight -= 1
        self._notify()

    def cancel(self) -> None:
        self.cancelled = True
        self._notify()

    def _notify(self) -> None:
        self._changed.set()
        self._changed = asyncio.Event()


class Dispatcher:
    """Pull-based pool of `workers` concurrent checks.

    Example:
        dispatcher = Dispatcher(checker, policy, workers=20, suffix=".com.br")
        async for result in dispatcher.run(CandidateSpace(Alphabet.NUMBERS, 2)):
            ...
    """

    def __init__(
        self,
        checker: StatusChecker,
        policy: RetryPolicy,
        *,
        workers: int,
        suffix: str,
        cancel_event: asyncio.Event | None = None,
        queue_size: int | None = None,
    ) -> None:
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")
        self._checker = checker
        self._policy = policy
        self._workers = workers
        self._suffix = suffix
        self._cancel_event = cancel_event
        self._queue_size = queue_size or workers * 2

    async def run(self, candidates: Iterable[str]) -> AsyncIterator[CheckResult]:
        """Yield one terminal `CheckResult` per candidate, in completion order."""

        scheduler = _Scheduler(iter(candidates))
        results: asyncio.Queue[object] = asyncio.Queue(maxsize=self._queue_size)

        workers = [
            asyncio.create_task(self._worker(scheduler, results), name=f"finder-worker-{i}")
            for i in range(self._workers)
        ]

        async def close_when_idle() -> None:
            # Not on cancellation: nobody is reading the queue then.
            try:
                await asyncio.gather(*workers)
            except Exception:
                await results.put(_DONE)
                raise
            await results.put(_DONE)

        tasks = [*workers, asyncio.create_task(close_when_idle(), name="finder-supervisor")]
        if self._cancel_event is not None:
            tasks.append(asyncio.create_task(self._watch_cancel(scheduler), name="finder-cancel-watch"))

        try:
            while True:
                item = await results.get()
                if item is _DONE:
                    break
                assert isinstance(item, CheckResult)
                yield item
            # Re-raise anything that escaped a worker.
            await tasks[self._workers]
        finally:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

    async def _watch_cancel(self, scheduler: _Scheduler) -> None:
        assert self._cancel_event is not None
        await self._cancel_event.wait()
        logger.info("Cancellation requested: no new candidates will be dispatched")
        scheduler.cancel()

    async def _worker(self, scheduler: _Scheduler, results: asyncio.Queue[object]) -> None:
        loop = asyncio.get_running_loop()
        while True:
            job = scheduler.take(loop.time())
            if job is _DONE:
                return
            if job is None:
                await scheduler.wait(loop.time())
                continue
            assert isinstance(job, _Job)

            domain = f"{job.candidate}{self._suffix}"
            if scheduler.cancelled:
                # Only pending retries are handed out after cancellation.
                status = DomainStatus.unknown(FailureReason.CANCELLED, "cancelled while waiting for retry")
                scheduler.finish()
                await results.put(CheckResult(candidate=job.candidate, domain=domain, status=status, attempts=job.attempt))
                continue

            outcome = await self._check(domain)
            decision = self._policy.decide(outcome, job.attempt)
            attempts = job.attempt + 1

            if isinstance(decision, Retry):
                if not scheduler.cancelled:
                    logger.debug("%s: retry #%d in %.2fs (%s)", domain, attempts, decision.after, outcome.kind)
                    scheduler.reschedule(_Job(job.candidate, attempts), loop.time() + decision.after)
                    continue
                status = DomainStatus.unknown(FailureReason.CANCELLED, f"cancelled before retry ({outcome.kind})")
            elif isinstance(decision, Accept):
                status = decision.status
            else:
                status = DomainStatus.unknown(decision.reason, decision.detail)
                if isinstance(outcome, FatalError):
                    logger.warning("%s: unclassified response (%s) raw=%.500r", domain, outcome.detail, outcome.raw)
                else:
                    logger.warning("%s: %s after %d attempts", domain, decision.reason.value, attempts)

            scheduler.finish()
            await results.put(CheckResult(candidate=job.candidate, domain=domain, status=status, attempts=attempts))

    async def _check(self, domain: str) -> CheckOutcome:
        try:
            return await self._checker.check(domain)
        except Exception as exc:
            logger.debug("checker raised for %s", domain, exc_info=True)
            return FatalError(detail=f"checker raised {type(exc).__name__}: {exc}")

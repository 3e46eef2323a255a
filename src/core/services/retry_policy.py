"""Rate-limit and retry policy.

Turns one `CheckOutcome` into a decision. Kept apart from the checker so the
two can be tested independently: the checker never retries, the policy never
does I/O.

Backoff follows the usual `base * 2**attempt` shape with a small uniform
jitter, honoring `Retry-After` when the server sends one.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Union

from core.config import AppSettings
from core.domain.models import (
    CheckOutcome,
    Checked,
    DomainStatus,
    FatalError,
    RateLimited,
    TransientError,
)
from core.errors import FailureReason


@dataclass(frozen=True)
class Accept:
    status: DomainStatus


@dataclass(frozen=True)
class Retry:
    after: float


@dataclass(frozen=True)
class Fail:
    reason: FailureReason
    detail: str | None = None


Decision = Union[Accept, Retry, Fail]


class RetryPolicy:
    """Decide what happens to a candidate after one attempt.

    `attempt` is the zero-based index of the attempt that produced the
    outcome, so a candidate makes at most `max_retries + 1` remote calls.
    """

    def __init__(
        self,
        *,
        rate_limit_max_retries: int = 5,
        network_max_retries: int = 3,
        rate_limit_backoff: float = 1.25,
        transient_backoff: float = 0.5,
        max_delay: float = 60.0,
        jitter: float = 0.35,
        rng: random.Random | None = None,
    ) -> None:
        self.rate_limit_max_retries = rate_limit_max_retries
        self.network_max_retries = network_max_retries
        self.rate_limit_backoff = rate_limit_backoff
        self.transient_backoff = transient_backoff
        self.max_delay = max_delay
        self.jitter = jitter
        self._rng = rng or random.Random()

    @classmethod
    def from_settings(cls, settings: AppSettings, *, rng: random.Random | None = None) -> "RetryPolicy":
        return cls(
            rate_limit_max_retries=settings.rate_limit_max_retries,
            network_max_retries=settings.network_max_retries,
            rate_limit_backoff=settings.rate_limit_backoff_seconds,
            transient_backoff=settings.transient_backoff_seconds,
            max_delay=settings.backoff_max_seconds,
            jitter=settings.jitter_seconds,
            rng=rng,
        )

    def decide(self, outcome: CheckOutcome, attempt: int) -> Decision:
        if isinstance(outcome, Checked):
            return Accept(outcome.status)

        if isinstance(outcome, RateLimited):
            if attempt >= self.rate_limit_max_retries:
                return Fail(FailureReason.RATE_LIMIT_EXHAUSTED, f"rate limited {attempt + 1} times")
            base = outcome.retry_after if outcome.retry_after is not None else self.rate_limit_backoff * (2**attempt)
            return Retry(self._delay(base))

        if isinstance(outcome, TransientError):
            if attempt >= self.network_max_retries:
                return Fail(FailureReason.NETWORK_EXHAUSTED, outcome.detail or None)
            return Retry(self._delay(self.transient_backoff * (2**attempt)))

        if isinstance(outcome, FatalError):
            return Fail(FailureReason.UNCLASSIFIED, outcome.detail or None)

        return Fail(FailureReason.UNCLASSIFIED, f"unexpected outcome type {type(outcome).__name__}")

    def _delay(self, base: float) -> float:
        delay = min(max(0.0, base), self.max_delay)
        if self.jitter > 0:
            delay += self._rng.uniform(0.0, self.jitter)
        return delay

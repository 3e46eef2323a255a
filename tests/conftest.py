from __future__ import annotations

import asyncio
from typing import Callable, Sequence, Union

import pytest

from core.config import AppSettings
from core.domain.models import CheckOutcome, Checked, DomainStatus
from core.services.retry_policy import RetryPolicy

OutcomeSpec = Union[CheckOutcome, Sequence[CheckOutcome], Callable[[str, int], CheckOutcome]]


class StubChecker:
    """Deterministic in-memory checker.

    `outcomes` maps an FQDN to a fixed outcome, to a list consumed one item
    per call (the last item repeats), or to `fn(domain, call_number)`.
    Records every call and the high-water mark of concurrent calls.
    """

    def __init__(
        self,
        outcomes: dict[str, OutcomeSpec] | None = None,
        *,
        default: CheckOutcome | None = None,
        delay: float = 0.0,
    ) -> None:
        self.outcomes = outcomes or {}
        self.default = default or Checked(status=DomainStatus.registered())
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.high_water = 0

    async def check(self, domain_name: str) -> CheckOutcome:
        self.calls.append(domain_name)
        call_number = self.calls.count(domain_name)
        self.in_flight += 1
        self.high_water = max(self.high_water, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            planned = self.outcomes.get(domain_name, self.default)
            if callable(planned):
                return planned(domain_name, call_number)
            if isinstance(planned, (list, tuple)):
                return planned[min(call_number, len(planned)) - 1]
            return planned
        finally:
            self.in_flight -= 1


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        _env_file=None,
        rate_limit_backoff_seconds=0.001,
        transient_backoff_seconds=0.001,
        backoff_max_seconds=0.01,
        jitter_seconds=0.0,
    )


@pytest.fixture
def fast_policy() -> RetryPolicy:
    return RetryPolicy(
        rate_limit_backoff=0.001,
        transient_backoff=0.001,
        max_delay=0.01,
        jitter=0.0,
    )


@pytest.fixture
def make_checker() -> type[StubChecker]:
    return StubChecker

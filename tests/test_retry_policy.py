from __future__ import annotations

import random

import pytest

from core.config import AppSettings
from core.domain.models import Checked, DomainStatus, FatalError, RateLimited, TransientError
from core.errors import FailureReason
from core.services.retry_policy import Accept, Fail, Retry, RetryPolicy


def _policy(**overrides: object) -> RetryPolicy:
    params: dict[str, object] = {"jitter": 0.0}
    params.update(overrides)
    return RetryPolicy(**params)  # type: ignore[arg-type]


def test_checked_outcome_is_accepted() -> None:
    status = DomainStatus.pending()
    assert _policy().decide(Checked(status=status), 0) == Accept(status)


def test_rate_limited_retries_with_exponential_backoff_until_cap() -> None:
    policy = _policy(rate_limit_max_retries=5, rate_limit_backoff=1.25, max_delay=60.0)

    delays = []
    for attempt in range(5):
        decision = policy.decide(RateLimited(), attempt)
        assert isinstance(decision, Retry)
        delays.append(decision.after)

    assert delays == [1.25, 2.5, 5.0, 10.0, 20.0]

    final = policy.decide(RateLimited(), 5)
    assert isinstance(final, Fail)
    assert final.reason is FailureReason.RATE_LIMIT_EXHAUSTED


def test_retry_after_header_wins_over_backoff() -> None:
    decision = _policy().decide(RateLimited(retry_after=7.0), 0)
    assert decision == Retry(7.0)


def test_delay_is_capped() -> None:
    policy = _policy(rate_limit_backoff=10.0, max_delay=15.0)
    assert policy.decide(RateLimited(), 3) == Retry(15.0)
    assert policy.decide(RateLimited(retry_after=3600.0), 0) == Retry(15.0)


def test_jitter_stays_within_bounds() -> None:
    policy = RetryPolicy(rate_limit_backoff=1.0, jitter=0.35, rng=random.Random(1234))

    for _ in range(50):
        decision = policy.decide(RateLimited(), 0)
        assert isinstance(decision, Retry)
        assert 1.0 <= decision.after <= 1.35


def test_transient_errors_use_shorter_delay_and_lower_cap() -> None:
    policy = _policy(network_max_retries=3, transient_backoff=0.5, rate_limit_backoff=1.25)

    assert policy.decide(TransientError(detail="timeout"), 0) == Retry(0.5)
    assert policy.decide(TransientError(detail="timeout"), 2) == Retry(2.0)

    final = policy.decide(TransientError(detail="timeout"), 3)
    assert final == Fail(FailureReason.NETWORK_EXHAUSTED, "timeout")


def test_fatal_error_fails_immediately() -> None:
    decision = _policy().decide(FatalError(detail="HTTP 404"), 0)
    assert decision == Fail(FailureReason.UNCLASSIFIED, "HTTP 404")


def test_unknown_outcome_type_is_unclassified() -> None:
    decision = _policy().decide(object(), 0)  # type: ignore[arg-type]
    assert isinstance(decision, Fail)
    assert decision.reason is FailureReason.UNCLASSIFIED


@pytest.mark.parametrize("max_retries", [0, 1])
def test_zero_retries_fails_on_first_rate_limit(max_retries: int) -> None:
    policy = _policy(rate_limit_max_retries=max_retries)
    decision = policy.decide(RateLimited(), max_retries)
    assert isinstance(decision, Fail)


def test_from_settings_reads_caps() -> None:
    settings = AppSettings(_env_file=None, rate_limit_max_retries=2, network_max_retries=1, jitter_seconds=0.0)
    policy = RetryPolicy.from_settings(settings)

    assert isinstance(policy.decide(RateLimited(), 1), Retry)
    assert isinstance(policy.decide(RateLimited(), 2), Fail)
    assert isinstance(policy.decide(TransientError(), 0), Retry)
    assert isinstance(policy.decide(TransientError(), 1), Fail)

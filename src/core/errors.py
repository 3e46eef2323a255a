"""Error taxonomy shared by the core, the adapters and the CLI.

Per-candidate failures are not exceptions: they travel as `FailureReason`
values attached to an `unknown` status so the run keeps going. Only
configuration problems and user cancellation surface as exceptions.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from core.services.finder_pipeline import RunReport


class FailureReason(str, Enum):
    """Why a candidate ended as `unknown` instead of a real status."""

    RATE_LIMIT_EXHAUSTED = "rate_limit_exhausted"
    NETWORK_EXHAUSTED = "network_exhausted"
    UNCLASSIFIED = "unclassified"
    CANCELLED = "cancelled"


class FinderError(Exception):
    """Base class for run-level errors."""


class ConfigError(FinderError):
    """Invalid flags or settings; raised before any remote call is made."""


class RunCancelled(FinderError):
    """The user interrupted the run; `report` holds the partial results."""

    def __init__(self, report: RunReport) -> None:
        super().__init__(f"run cancelled after {report.summary.processed} candidates")
        self.report = report

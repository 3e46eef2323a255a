"""Candidate sources.

Two interchangeable sources feed the dispatcher:

- `CandidateSpace`: every string of a given length over an alphabet, in
  lexicographic order of the alphabet's canonical ordering. Iteration is lazy
  (`itertools.product`) and restartable; `len()` is arithmetic, so the space is
  never materialized.
- `ExplicitCandidates`: a user supplied list, trimmed and lower-cased, in the
  given order, duplicates kept.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Iterable, Iterator

from core.domain.models import Alphabet, RunConfig


@dataclass(frozen=True)
class CandidateSpace:
    alphabet: Alphabet
    length: int

    def __post_init__(self) -> None:
        if self.length < 1:
            raise ValueError(f"candidate length must be positive, got {self.length}")

    def __iter__(self) -> Iterator[str]:
        return ("".join(chars) for chars in itertools.product(self.alphabet.characters, repeat=self.length))

    def __len__(self) -> int:
        return len(self.alphabet.characters) ** self.length


class ExplicitCandidates:
    """Ordered, restartable sequence over an explicit check list."""

    def __init__(self, entries: Iterable[str], *, suffix: str | None = None) -> None:
        self._entries: tuple[str, ...] = tuple(normalize_entries(entries, suffix=suffix))

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ExplicitCandidates({list(self._entries)!r})"


def normalize_entries(entries: Iterable[str], *, suffix: str | None = None) -> list[str]:
    """Trim and lower-case entries; drop empty ones and a trailing `suffix`."""

    suffix_l = suffix.lower() if suffix else None
    out: list[str] = []
    for raw in entries:
        entry = raw.strip().lower()
        if suffix_l and entry.endswith(suffix_l) and len(entry) > len(suffix_l):
            entry = entry[: -len(suffix_l)]
        if entry:
            out.append(entry)
    return out


MAX_LABEL_LENGTH = 63
MAX_FQDN_LENGTH = 253


def oversized_entries(entries: Iterable[str], *, suffix: str) -> list[str]:
    """Entries whose FQDN breaks the DNS length limits (label or whole name)."""

    bad: list[str] = []
    for entry in normalize_entries(entries, suffix=suffix):
        fqdn = f"{entry}{suffix}"
        if len(fqdn) > MAX_FQDN_LENGTH or any(len(label) > MAX_LABEL_LENGTH for label in fqdn.split(".")):
            bad.append(entry)
    return bad


def parse_check_list(value: str) -> list[str]:
    """Split the CLI's comma separated `--check` value."""

    return [part for part in (p.strip() for p in value.split(",")) if part]


def build_candidates(config: RunConfig) -> CandidateSpace | ExplicitCandidates:
    """Pick the candidate source for a run."""

    if config.check_list is not None:
        return ExplicitCandidates(config.check_list, suffix=config.suffix)
    return CandidateSpace(config.alphabet, config.digits)

from __future__ import annotations

import types

import pytest

from core.domain.models import Alphabet, RunConfig
from core.services.candidates import (
    CandidateSpace,
    ExplicitCandidates,
    build_candidates,
    normalize_entries,
    oversized_entries,
    parse_check_list,
)


def _reference(chars: str, length: int) -> set[str]:
    if length == 0:
        return {""}
    return {c + rest for c in chars for rest in _reference(chars, length - 1)}


@pytest.mark.parametrize("alphabet", list(Alphabet))
@pytest.mark.parametrize("length", [2, 3])
def test_space_has_every_combination_exactly_once(alphabet: Alphabet, length: int) -> None:
    space = CandidateSpace(alphabet, length)
    produced = list(space)

    assert len(produced) == len(alphabet.characters) ** length == len(space)
    assert len(set(produced)) == len(produced)
    assert set(produced) == _reference(alphabet.characters, length)
    assert all(len(c) == length for c in produced)


def test_digits_are_generated_in_order() -> None:
    assert list(CandidateSpace(Alphabet.NUMBERS, 2)) == [f"{i:02d}" for i in range(100)]


def test_alphanumeric_order_puts_letters_first() -> None:
    produced = list(CandidateSpace(Alphabet.ALPHANUMERIC, 2))
    assert produced[0] == "aa"
    assert produced[1] == "ab"
    assert produced[25] == "az"
    assert produced[26] == "a0"
    assert produced[-1] == "99"
    assert produced == sorted(produced, key=lambda s: [Alphabet.ALPHANUMERIC.characters.index(c) for c in s])


def test_space_is_lazy_and_restartable() -> None:
    space = CandidateSpace(Alphabet.ALPHANUMERIC, 8)

    assert len(space) == 36**8
    it = iter(space)
    assert isinstance(it, types.GeneratorType)
    assert next(it) == "aaaaaaaa"
    assert next(it) == "aaaaaaab"
    # A fresh iteration starts over.
    assert next(iter(space)) == "aaaaaaaa"


def test_space_rejects_non_positive_length() -> None:
    with pytest.raises(ValueError):
        CandidateSpace(Alphabet.LETTERS, 0)


def test_explicit_list_keeps_order_and_duplicates() -> None:
    candidates = ExplicitCandidates([" AB", "ab ", "Cd"])
    assert list(candidates) == ["ab", "ab", "cd"]
    assert len(candidates) == 3
    assert list(candidates) == list(candidates)


def test_explicit_list_strips_suffix_and_empty_entries() -> None:
    assert normalize_entries(["meudominio.com.br", "  ", "OutroDominio"], suffix=".com.br") == [
        "meudominio",
        "outrodominio",
    ]


def test_parse_check_list() -> None:
    assert parse_check_list("ab,ab,cd") == ["ab", "ab", "cd"]
    assert parse_check_list(" ab , ,cd,") == ["ab", "cd"]


def test_build_candidates_prefers_explicit_list() -> None:
    explicit = build_candidates(RunConfig(check_list=("x1", "x2")))
    generated = build_candidates(RunConfig(digits=3, alphabet=Alphabet.NUMBERS))

    assert list(explicit) == ["x1", "x2"]
    assert isinstance(generated, CandidateSpace)
    assert len(generated) == 1000


def test_oversized_entries_flags_long_labels_and_names() -> None:
    label_63 = "a" * 63
    long_label = "b" * 64
    long_name = ".".join(["c" * 60] * 5)

    assert oversized_entries([label_63, "ab"], suffix=".com.br") == []
    assert oversized_entries(["ab", long_label, long_name], suffix=".com.br") == [long_label, long_name]

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from adapters.registrobr import RegistroBrChecker
from cli.main import EXIT_CONFIG_ERROR, EXIT_SYSTEMIC_FAILURE, app
from core.domain.models import CheckOutcome, Checked, DomainStatus, FatalError

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("REGISTROBR_FINDER_JITTER_SECONDS", "0")
    monkeypatch.setenv("REGISTROBR_FINDER_TRANSIENT_BACKOFF_SECONDS", "0")


def _patch_checker(monkeypatch: pytest.MonkeyPatch, outcomes: dict[str, CheckOutcome], default: CheckOutcome) -> list[str]:
    calls: list[str] = []

    async def fake_check(self: RegistroBrChecker, domain_name: str) -> CheckOutcome:
        calls.append(domain_name)
        return outcomes.get(domain_name, default)

    monkeypatch.setattr(RegistroBrChecker, "check", fake_check)
    return calls


def test_invalid_digit_count_is_a_config_error() -> None:
    result = runner.invoke(app, ["scan", "--digits", "4"])
    assert result.exit_code == EXIT_CONFIG_ERROR


def test_letters_and_numbers_are_exclusive() -> None:
    result = runner.invoke(app, ["scan", "--letters", "--numbers"])
    assert result.exit_code == EXIT_CONFIG_ERROR


def test_scan_explicit_list_writes_output(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    calls = _patch_checker(
        monkeypatch,
        {"livre.com.br": Checked(status=DomainStatus.available())},
        Checked(status=DomainStatus.registered()),
    )
    output = tmp_path / "available.txt"
    json_path = tmp_path / "run.json"

    result = runner.invoke(
        app,
        ["scan", "--check", "livre,ocupado", "--workers", "2", "-o", str(output), "--json", str(json_path)],
    )

    assert result.exit_code == 0, result.output
    assert sorted(calls) == ["livre.com.br", "ocupado.com.br"]
    assert "livre.com.br" in result.output
    assert output.read_text(encoding="utf-8") == "livre.com.br\n"

    payload = json.loads(json_path.read_text(encoding="utf-8"))
    assert payload["summary"]["processed"] == 2
    assert payload["summary"]["available"] == ["livre.com.br"]
    assert len(payload["results"]) == 2


def test_scan_exits_non_zero_when_every_check_fails(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_checker(monkeypatch, {}, FatalError(detail="HTTP 403"))

    result = runner.invoke(app, ["scan", "--check", "ab,cd", "--workers", "2"])

    assert result.exit_code == EXIT_SYSTEMIC_FAILURE


def test_scan_generated_numbers(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = _patch_checker(
        monkeypatch,
        {"42.com.br": Checked(status=DomainStatus.available())},
        Checked(status=DomainStatus.registered()),
    )

    result = runner.invoke(app, ["scan", "-d", "2", "--numbers", "-w", "5"])

    assert result.exit_code == 0, result.output
    assert len(calls) == 100
    assert "42.com.br" in result.output


def test_doctor_config_lists_settings() -> None:
    result = runner.invoke(app, ["doctor", "config"])
    assert result.exit_code == 0
    assert "Effective settings" in result.output

from __future__ import annotations

import json
from pathlib import Path

from adapters.file_sink import FileSink
from adapters.json_exporter import export_run_json
from core.domain.models import CheckResult, DomainStatus, RunConfig, RunResult
from core.errors import FailureReason
from core.services.aggregator import ResultAggregator
from core.services.finder_pipeline import RunReport


def _result(candidate: str, status: DomainStatus) -> CheckResult:
    return CheckResult(candidate=candidate, domain=f"{candidate}.com.br", status=status)


def test_file_sink_flushes_each_available_line(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "available.txt"
    sink = FileSink(path)

    sink.write(_result("ab", DomainStatus.available()))
    # Visible on disk before close.
    assert path.read_text(encoding="utf-8") == "ab.com.br\n"

    sink.write(_result("cd", DomainStatus.registered()))
    sink.write(_result("ef", DomainStatus.available()))
    sink.close()

    assert path.read_text(encoding="utf-8").splitlines() == ["ab.com.br", "ef.com.br"]


def test_file_sink_does_not_create_file_without_matches(tmp_path: Path) -> None:
    path = tmp_path / "available.txt"
    sink = FileSink(path)
    sink.write(_result("ab", DomainStatus.registered()))
    sink.close()

    assert not path.exists()


def test_file_sink_all_results_mode(tmp_path: Path) -> None:
    path = tmp_path / "all.txt"
    sink = FileSink(path, available_only=False)
    sink.write(_result("ab", DomainStatus.unknown(FailureReason.NETWORK_EXHAUSTED, "timeout")))
    sink.close()

    assert path.read_text(encoding="utf-8") == "ab.com.br\tunknown (network_exhausted: timeout)\n"


def test_export_run_json(tmp_path: Path) -> None:
    aggregator = ResultAggregator(total=2)
    aggregator.add(_result("ab", DomainStatus.available()))
    aggregator.add(_result("cd", DomainStatus.unknown(FailureReason.UNCLASSIFIED, "HTTP 404")))
    report = RunReport(
        config=RunConfig(check_list=("ab", "cd")),
        summary=aggregator.summary(),
        result=aggregator.result,
    )

    path = export_run_json(report=report, output_path=tmp_path / "run.json")
    payload = json.loads(path.read_text(encoding="utf-8"))

    assert payload["config"]["check_list"] == ["ab", "cd"]
    assert payload["summary"]["counts"]["unknown"] == 1
    assert payload["summary"]["failures"] == {"unclassified": 1}
    assert [r["status"]["kind"] for r in payload["results"]] == ["available", "unknown"]
    assert payload["results"][1]["status"]["detail"] == "HTTP 404"


def test_run_result_helpers() -> None:
    result = RunResult()
    result.append(_result("zz", DomainStatus.available()))
    result.append(_result("aa", DomainStatus.available()))
    result.append(_result("bb", DomainStatus.pending()))

    assert len(result) == 3
    assert result.available_domains() == ["aa.com.br", "zz.com.br"]

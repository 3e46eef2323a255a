"""Exportación JSON de una corrida.

Por qué JSON:
- Interoperabilidad con otras herramientas y pipelines.
- Conserva todos los resultados (no solo los disponibles) con su diagnóstico.
"""

from __future__ import annotations

import json
from pathlib import Path

from core.services.finder_pipeline import RunReport


def export_run_json(*, report: RunReport, output_path: Path) -> Path:
    """Exporta `RunReport` a JSON UTF-8 con formato estable."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "config": report.config.model_dump(mode="json"),
        "summary": report.summary.model_dump(mode="json"),
        "results": report.result.model_dump(mode="json")["results"],
    }
    output_path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    return output_path

"""Contrato de los consumidores de resultados (archivo, consola)."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import CheckResult


@runtime_checkable
class ResultSink(Protocol):
    """Consumidor append-only de resultados, en orden de llegada."""

    def write(self, result: CheckResult) -> None:
        ...

    def close(self) -> None:
        ...

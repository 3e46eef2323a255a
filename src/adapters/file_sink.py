"""Salida a archivo, línea por línea.

Por qué incremental:
- Una corrida larga puede interrumpirse; lo escrito hasta ese momento queda
  en disco (flush tras cada línea).
"""

from __future__ import annotations

from pathlib import Path
from typing import TextIO

from core.domain.models import CheckResult, StatusKind


class FileSink:
    """Escribe un FQDN por línea.

    Por defecto solo los disponibles; con `available_only=False` escribe
    `<fqdn>\t<estado>` para cada resultado recibido.
    """

    def __init__(self, path: Path, *, available_only: bool = True) -> None:
        self.path = path
        self._available_only = available_only
        self._handle: TextIO | None = None

    def _open(self) -> TextIO:
        if self._handle is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._handle = self.path.open("w", encoding="utf-8")
        return self._handle

    def write(self, result: CheckResult) -> None:
        if self._available_only:
            if result.status.kind is not StatusKind.AVAILABLE:
                return
            line = result.domain
        else:
            line = f"{result.domain}\t{result.status.describe()}"

        handle = self._open()
        handle.write(line + "\n")
        handle.flush()

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

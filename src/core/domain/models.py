"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- Los modelos son inmutables (`frozen`): un resultado verificado no se toca.

Nota:
- Estos modelos describen *qué* es la información, no *cómo* se obtiene.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

from core.errors import FailureReason


class Alphabet(str, Enum):
    """Characters eligible for candidate generation."""

    LETTERS = "letters"
    NUMBERS = "numbers"
    ALPHANUMERIC = "alphanumeric"

    @property
    def characters(self) -> str:
        """Canonical ordering used for lexicographic generation."""

        if self is Alphabet.LETTERS:
            return "abcdefghijklmnopqrstuvwxyz"
        if self is Alphabet.NUMBERS:
            return "0123456789"
        return "abcdefghijklmnopqrstuvwxyz0123456789"

    @classmethod
    def from_flags(cls, *, letters: bool, numbers: bool) -> "Alphabet":
        if letters and numbers:
            raise ValueError("--letters and --numbers are mutually exclusive")
        if letters:
            return cls.LETTERS
        if numbers:
            return cls.NUMBERS
        return cls.ALPHANUMERIC


class StatusKind(str, Enum):
    AVAILABLE = "available"
    REGISTERED = "registered"
    PENDING = "pending"
    UNAVAILABLE = "unavailable"
    UNKNOWN = "unknown"


class DomainStatus(BaseModel):
    """Clasificación final de un dominio.

    `pending` ("em processo") y `unavailable` son estados terminales
    distintos: no se reintentan ni se fusionan.
    """

    model_config = ConfigDict(frozen=True)

    kind: StatusKind = Field(..., description="Tipo de estado.")
    expires_at: date | None = Field(
        default=None,
        description="Fecha de expiración (solo `registered`, si el registro la publica).",
    )
    reason: FailureReason | None = Field(
        default=None,
        description="Motivo del fallo (solo `unknown`).",
    )
    detail: str | None = Field(
        default=None,
        max_length=2_000,
        description="Diagnóstico libre (mensaje de error, código inesperado, etc.).",
    )

    @classmethod
    def available(cls) -> "DomainStatus":
        return cls(kind=StatusKind.AVAILABLE)

    @classmethod
    def registered(cls, expires_at: date | None = None) -> "DomainStatus":
        return cls(kind=StatusKind.REGISTERED, expires_at=expires_at)

    @classmethod
    def pending(cls) -> "DomainStatus":
        return cls(kind=StatusKind.PENDING)

    @classmethod
    def unavailable(cls) -> "DomainStatus":
        return cls(kind=StatusKind.UNAVAILABLE)

    @classmethod
    def unknown(cls, reason: FailureReason | None = None, detail: str | None = None) -> "DomainStatus":
        if detail is not None and len(detail) > 2_000:
            detail = detail[:1_999] + "…"
        return cls(kind=StatusKind.UNKNOWN, reason=reason, detail=detail)

    def describe(self) -> str:
        """Etiqueta corta para consola/logs."""

        if self.kind is StatusKind.REGISTERED and self.expires_at:
            return f"registered (expires {self.expires_at.isoformat()})"
        if self.kind is StatusKind.UNKNOWN and self.reason:
            text = f"unknown ({self.reason.value}"
            return f"{text}: {self.detail})" if self.detail else f"{text})"
        return self.kind.value


class Checked(BaseModel):
    """La fuente respondió y el payload se pudo clasificar."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["checked"] = "checked"
    status: DomainStatus


class RateLimited(BaseModel):
    """Señal explícita de throttling (HTTP 429)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["rate_limited"] = "rate_limited"
    retry_after: float | None = Field(
        default=None,
        ge=0,
        description="Segundos sugeridos por el servidor (header Retry-After).",
    )


class TransientError(BaseModel):
    """Fallo de red/timeout/5xx: puede mejorar reintentando."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["transient_error"] = "transient_error"
    detail: str = ""


class FatalError(BaseModel):
    """Respuesta con forma inesperada: reintentar no la arregla."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["fatal_error"] = "fatal_error"
    detail: str = ""
    raw: str | None = Field(default=None, description="Cuerpo crudo para diagnóstico.")


CheckOutcome = Annotated[
    Union[Checked, RateLimited, TransientError, FatalError],
    Field(discriminator="kind"),
]


class RunConfig(BaseModel):
    """Configuración inmutable de una corrida.

    La CLI la construye a partir de flags + `AppSettings`; el resto de
    componentes solo la leen.
    """

    model_config = ConfigDict(frozen=True)

    digits: Literal[2, 3] = Field(default=2, description="Longitud de los candidatos generados.")
    alphabet: Alphabet = Field(default=Alphabet.ALPHANUMERIC)
    suffix: str = Field(default=".com.br", min_length=2, max_length=64)
    workers: int = Field(default=20, ge=1, le=500)
    timeout_seconds: float = Field(default=10.0, gt=0)
    check_list: tuple[str, ...] | None = Field(
        default=None,
        description="Lista explícita; si está presente reemplaza la generación.",
    )
    output_path: Path | None = None
    verbose: bool = False

    @field_validator("suffix")
    @classmethod
    def _normalize_suffix(cls, value: str) -> str:
        value = value.strip().lower()
        if not value.startswith("."):
            value = "." + value
        if value == "." or ".." in value or any(ch.isspace() for ch in value):
            raise ValueError(f"invalid suffix: {value!r}")
        return value


class CheckResult(BaseModel):
    """Resolución terminal de un candidato."""

    model_config = ConfigDict(frozen=True)

    candidate: str = Field(..., min_length=1, max_length=253)
    domain: str = Field(..., description="FQDN consultado (candidato + sufijo).")
    status: DomainStatus
    attempts: int = Field(
        default=1,
        ge=0,
        description="Llamadas remotas realizadas (0 si se omitió por cancelación).",
    )


class RunResult(BaseModel):
    """Colección append-only de resultados; el orden es el de llegada."""

    results: list[CheckResult] = Field(default_factory=list)

    def append(self, result: CheckResult) -> None:
        self.results.append(result)

    def __len__(self) -> int:
        return len(self.results)

    def by_kind(self, kind: StatusKind) -> list[CheckResult]:
        return [r for r in self.results if r.status.kind is kind]

    def available_domains(self) -> list[str]:
        return sorted(r.domain for r in self.by_kind(StatusKind.AVAILABLE))


class ProgressSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    processed: int = Field(..., ge=0)
    total: int = Field(..., ge=0)
    counts: dict[StatusKind, int] = Field(default_factory=dict)


class RunSummary(BaseModel):
    """Resumen final de una corrida.

    `all_failed` y `connectivity_lost` son los dos veredictos de nivel
    corrida que la CLI traduce a exit code distinto de cero.
    """

    total: int = Field(..., ge=0, description="Tamaño del espacio de candidatos.")
    processed: int = Field(..., ge=0)
    counts: dict[StatusKind, int] = Field(default_factory=dict)
    failures: dict[FailureReason, int] = Field(default_factory=dict)
    available: list[str] = Field(default_factory=list)
    elapsed_seconds: float = Field(default=0.0, ge=0)
    cancelled: bool = False
    all_failed: bool = False
    connectivity_lost: bool = False

    def count(self, kind: StatusKind) -> int:
        return self.counts.get(kind, 0)

    @property
    def systemic_failure(self) -> bool:
        return self.all_failed or self.connectivity_lost

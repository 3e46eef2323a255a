"""Checker: Registro.br (disponibilidad de dominios .br).

Implementación:
- `GET https://registro.br/v2/ajax/avail/raw/<fqdn>` devuelve JSON con un
  código numérico de estado.
- 0 = disponible, 2 = registrado, 3 = em processo, 4 = indisponível.

Notas:
- 429 => rate limit (se respeta `Retry-After` si viene).
- 5xx / errores de red / timeout => transitorio.
- Cualquier otra cosa (4xx, JSON raro, código desconocido) => fatal, con el
  cuerpo crudo para diagnóstico.
- Una consulta por llamada: no reintenta, eso es trabajo de la política.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date

import httpx
from pydantic import BaseModel, Field, ValidationError
from pydantic.config import ConfigDict

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.models import (
    CheckOutcome,
    Checked,
    DomainStatus,
    FatalError,
    RateLimited,
    TransientError,
)
from core.interfaces.checker import StatusChecker

logger = logging.getLogger(__name__)

_RAW_LIMIT = 2_000


class AvailResponse(BaseModel):
    """Respuesta del endpoint de disponibilidad."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    status: int = Field(..., description="0 disponible, 2 registrado, 3 em processo, 4 indisponível.")
    fqdn: str = Field(..., min_length=1)
    publication_status: str | None = Field(default=None, alias="publication-status")
    expires_at: str | None = Field(default=None, alias="expires-at")


def _retry_after_seconds(response: httpx.Response) -> float | None:
    value = response.headers.get("retry-after")
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        # Formato HTTP-date: no lo interpretamos, cae al backoff propio.
        return None


def _expiry_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value.split("T", 1)[0])
    except ValueError:
        logger.debug("unparseable expires-at %r", value)
        return None


def status_from_payload(payload: AvailResponse) -> CheckOutcome:
    if payload.status == 0:
        return Checked(status=DomainStatus.available())
    if payload.status == 2:
        return Checked(status=DomainStatus.registered(_expiry_date(payload.expires_at)))
    if payload.status == 3:
        return Checked(status=DomainStatus.pending())
    if payload.status == 4:
        return Checked(status=DomainStatus.unavailable())
    return FatalError(
        detail=f"unrecognized status code {payload.status}",
        raw=payload.model_dump_json(by_alias=True),
    )


def classify_response(response: httpx.Response) -> CheckOutcome:
    """Traduce una respuesta HTTP a `CheckOutcome`."""

    code = response.status_code
    if code == 429:
        return RateLimited(retry_after=_retry_after_seconds(response))
    if 500 <= code < 600:
        return TransientError(detail=f"HTTP {code}")
    if not response.is_success:
        return FatalError(detail=f"HTTP {code}", raw=response.text[:_RAW_LIMIT])

    try:
        payload = AvailResponse.model_validate_json(response.content)
    except ValidationError as exc:
        return FatalError(
            detail=f"parse error: {exc.error_count()} validation error(s)",
            raw=response.text[:_RAW_LIMIT],
        )
    return status_from_payload(payload)


class RegistroBrChecker(StatusChecker):
    """Consulta la disponibilidad de un FQDN en Registro.br.

    Se usa como async context manager: abre un único `httpx.AsyncClient`
    compartido por todos los workers de la corrida.
    """

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        timeout: float | None = None,
        max_connections: int | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._timeout = timeout if timeout is not None else self._settings.http_timeout_seconds
        self._max_connections = max_connections
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "RegistroBrChecker":
        if self._client is None:
            self._client = build_async_client(
                self._settings,
                timeout=self._timeout,
                max_connections=self._max_connections,
            )
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def check(self, domain_name: str) -> CheckOutcome:
        if self._client is None:
            raise RuntimeError("RegistroBrChecker must be entered with 'async with' before checking")

        url = f"{self._settings.avail_api_url}{domain_name}"
        try:
            # Tope global: los timeouts de httpx son por fase (connect/read/...).
            response = await asyncio.wait_for(self._client.get(url), self._timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return TransientError(detail=f"timeout after {self._timeout:g}s")
        except httpx.TransportError as exc:
            return TransientError(detail=f"{type(exc).__name__}: {exc}")
        except httpx.HTTPError as exc:
            return FatalError(detail=f"{type(exc).__name__}: {exc}")

        return classify_response(response)

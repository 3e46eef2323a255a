"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeouts, headers y límites de conexión del pool.
- Facilita testeo: se puede inyectar un `httpx.MockTransport`.

Los reintentos NO viven aquí: son responsabilidad de la política de
reintentos del Core.
"""

from __future__ import annotations

import httpx

from core.config import AppSettings


def build_async_client(
    settings: AppSettings | None = None,
    *,
    timeout: float | None = None,
    max_connections: int | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` con defaults seguros.

    Por qué un builder:
    - Centraliza timeouts/headers para que checker y doctor se comporten igual.
    - `max_connections` se alinea con el número de workers para no abrir
      más sockets que verificaciones en vuelo.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json",
    }

    limits = httpx.Limits(max_connections=max_connections) if max_connections else httpx.Limits()
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout if timeout is not None else settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        limits=limits,
        transport=transport,
    )

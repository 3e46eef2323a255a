"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (HTTP) y servicios (política de reintentos) lean
  la config de forma consistente.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "registrobr-finder"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "registrobr-finder"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "registrobr-finder"
    return Path.home() / ".config" / "registrobr-finder"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters/servicios.

    Los flags de la CLI tienen prioridad; estos valores son los defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="REGISTROBR_FINDER_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    avail_api_url: str = Field(
        default="https://registro.br/v2/ajax/avail/raw/",
        min_length=8,
        description="Endpoint de disponibilidad; el FQDN se concatena al final.",
    )
    user_agent: str = Field(
        default="Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7)",
        min_length=1,
        description="User-Agent enviado al endpoint de disponibilidad.",
    )
    http_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout por request (segundos).",
    )

    default_workers: int = Field(
        default=20,
        ge=1,
        le=500,
        description="Número de verificaciones concurrentes por defecto.",
    )
    default_suffix: str = Field(
        default=".com.br",
        min_length=2,
        description="Sufijo por defecto para formar el FQDN.",
    )

    rate_limit_max_retries: int = Field(
        default=5,
        ge=0,
        le=20,
        description="Reintentos máximos de un candidato ante HTTP 429.",
    )
    network_max_retries: int = Field(
        default=3,
        ge=0,
        le=20,
        description="Reintentos máximos de un candidato ante fallos de red/timeout.",
    )
    rate_limit_backoff_seconds: float = Field(
        default=1.25,
        ge=0,
        description="Base del backoff exponencial ante rate limit.",
    )
    transient_backoff_seconds: float = Field(
        default=0.5,
        ge=0,
        description="Base del backoff (más corto) ante fallos transitorios.",
    )
    backoff_max_seconds: float = Field(
        default=60.0,
        ge=0,
        description="Tope de cualquier espera entre reintentos (sin jitter).",
    )
    jitter_seconds: float = Field(
        default=0.35,
        ge=0,
        description="Jitter uniforme máximo sumado a cada espera.",
    )

    connectivity_loss_ratio: float = Field(
        default=0.9,
        gt=0,
        le=1.0,
        description="Proporción de NetworkExhausted a partir de la cual la corrida se considera sin conectividad.",
    )
    log_level: str = Field(
        default="WARNING",
        description="Nivel de logging (DEBUG, INFO, WARNING, ERROR).",
    )

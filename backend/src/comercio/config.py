# backend/src/comercio/config.py
"""
Configuración de proceso del backend.

Todas las variables se leen desde el entorno con defaults locales. Las dos
credenciales de conexión (URL del servicio y API key pública) se tratan como
parámetros opacos: el núcleo nunca las interpreta.

Variables
---------
- SUPABASE_URL / REACT_APP_SUPABASE_URL (compat)
- SUPABASE_ANON_KEY / REACT_APP_SUPABASE_ANON_KEY (compat)
- CE_GATEWAY: "supabase" | "memoria"
- CE_FIXTURE_PATH: JSON con filas de las vistas (gateway en memoria)
- CE_SESSION_FILE: ruta para persistir la sesión entre arranques
- CE_HTTP_TIMEOUT: timeout en segundos para llamadas HTTP
- CE_ALLOWED_ORIGINS: orígenes CORS separados por coma
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Literal, Optional

DEFAULT_SUPABASE_URL = "http://localhost:54321"
DEFAULT_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]

GatewayKind = Literal["supabase", "memoria"]


@dataclass(frozen=True)
class Settings:
    """Parámetros de conexión y arranque (inmutables)."""

    supabase_url: str = DEFAULT_SUPABASE_URL
    supabase_anon_key: str = ""
    gateway: GatewayKind = "supabase"
    fixture_path: Optional[str] = None
    session_file: Optional[str] = None
    http_timeout: float = 20.0
    allowed_origins: List[str] = field(default_factory=lambda: list(DEFAULT_ORIGINS))


def _env_first(*names: str) -> Optional[str]:
    """Primer valor no vacío entre varias variables de entorno (en orden)."""
    for name in names:
        value = os.getenv(name)
        if value and value.strip():
            return value.strip()
    return None


def _parse_origins(raw: Optional[str]) -> List[str]:
    if not raw:
        return list(DEFAULT_ORIGINS)
    return [o.strip() for o in raw.split(",") if o.strip()]


def load_settings() -> Settings:
    """Construye :class:`Settings` a partir del entorno actual.

    - Las variables ``SUPABASE_*`` tienen prioridad sobre ``REACT_APP_SUPABASE_*``
      (estas últimas se aceptan como respaldo por compatibilidad con el frontend).
    - ``CE_GATEWAY`` desconocido se trata como error de configuración.
    """
    kind = (os.getenv("CE_GATEWAY") or "supabase").strip().lower()
    if kind not in ("supabase", "memoria"):
        raise ValueError(f"CE_GATEWAY inválido: {kind!r} (usa 'supabase' o 'memoria')")

    try:
        timeout = float(os.getenv("CE_HTTP_TIMEOUT", "20"))
    except ValueError:
        timeout = 20.0

    return Settings(
        supabase_url=_env_first("SUPABASE_URL", "REACT_APP_SUPABASE_URL") or DEFAULT_SUPABASE_URL,
        supabase_anon_key=_env_first("SUPABASE_ANON_KEY", "REACT_APP_SUPABASE_ANON_KEY") or "",
        gateway=kind,  # type: ignore[arg-type]
        fixture_path=_env_first("CE_FIXTURE_PATH"),
        session_file=_env_first("CE_SESSION_FILE"),
        http_timeout=timeout,
        allowed_origins=_parse_origins(os.getenv("CE_ALLOWED_ORIGINS")),
    )

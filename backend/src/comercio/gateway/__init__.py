# backend/src/comercio/gateway/__init__.py
"""
Paquete del Gateway remoto.
Exporta el contrato, las fallas y la fábrica que elige implementación según config.
"""

from __future__ import annotations

from comercio.config import Settings

from .base import (
    VIEW_QUERIES,
    AuthFault,
    Gateway,
    GatewayFault,
    QueryFault,
    Row,
    Sesion,
    Usuario,
    ViewQuery,
)
from .memoria import MemoryGateway
from .supabase import SupabaseGateway


def build_gateway(settings: Settings) -> Gateway:
    """Instancia el Gateway configurado (``supabase`` o ``memoria``)."""
    if settings.gateway == "memoria":
        if settings.fixture_path:
            return MemoryGateway.from_json(settings.fixture_path)
        return MemoryGateway()
    return SupabaseGateway(
        settings.supabase_url,
        settings.supabase_anon_key,
        session_file=settings.session_file,
        timeout=settings.http_timeout,
    )


__all__ = [
    "VIEW_QUERIES",
    "AuthFault",
    "Gateway",
    "GatewayFault",
    "MemoryGateway",
    "QueryFault",
    "Row",
    "Sesion",
    "SupabaseGateway",
    "Usuario",
    "ViewQuery",
    "build_gateway",
]

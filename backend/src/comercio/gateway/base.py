# backend/src/comercio/gateway/base.py
"""Contrato del servicio remoto (Gateway).

El Gateway es un colaborador externo y opaco que ofrece:

1) Operaciones de autenticación: sign-in, sign-up, sign-out, sesión actual y
   notificaciones de cambio de sesión.
2) Consultas tabulares de solo lectura sobre vistas con nombre, cada una con un
   límite opcional de filas.

Las fallas del Gateway se reportan como excepciones (:class:`AuthFault`,
:class:`QueryFault`). Solo los componentes de dominio (gestor de sesión y
pipeline del dashboard) las capturan y las convierten en resultados
etiquetados.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

# Eventos de cambio de sesión (mismos nombres que el proveedor de identidad)
EV_SIGNED_IN = "SIGNED_IN"
EV_SIGNED_OUT = "SIGNED_OUT"
EV_TOKEN_REFRESHED = "TOKEN_REFRESHED"
EV_INITIAL_SESSION = "INITIAL_SESSION"


# ---------------------------------------------------------------------------
# Fallas
# ---------------------------------------------------------------------------

class GatewayFault(Exception):
    """Falla reportada por el Gateway (distinta de un defecto de programación)."""

    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class AuthFault(GatewayFault):
    """Credenciales inválidas, registro duplicado o error de transporte en auth."""


class QueryFault(GatewayFault):
    """Falla al leer una vista."""


# ---------------------------------------------------------------------------
# Identidad
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Usuario:
    """Identidad emitida por el Gateway (id + metadata libre)."""

    id: str
    email: Optional[str] = None
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Sesion:
    """Sesión autenticada. Los tokens son opacos para este sistema."""

    usuario: Usuario
    access_token: str = ""
    refresh_token: Optional[str] = None
    expires_at: Optional[float] = None  # epoch seconds


SessionCallback = Callable[[str, Optional[Sesion]], None]


class Subscription(Protocol):
    def unsubscribe(self) -> None: ...


class Gateway(Protocol):
    """Interfaz mínima que consumen los componentes de dominio."""

    async def get_current_session(self) -> Optional[Sesion]: ...

    def on_change(self, callback: SessionCallback) -> Subscription: ...

    async def sign_in(self, email: str, password: str) -> Sesion: ...

    async def sign_up(
        self, email: str, password: str, metadata: Mapping[str, Any]
    ) -> Optional[Usuario]: ...

    async def sign_out(self) -> None: ...

    async def query(self, view: str, limit: Optional[int] = None) -> List[Row]: ...


# ---------------------------------------------------------------------------
# Vistas consultadas por el Dashboard
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ViewQuery:
    """Consulta con nombre contra una vista remota."""

    key: str
    view: str
    limit: Optional[int] = None


VIEW_QUERIES: Tuple[ViewQuery, ...] = (
    ViewQuery("estadisticas", "vista_estadisticas_generales", 10),
    ViewQuery("operaciones_mes", "vista_operaciones_por_mes", 12),
    ViewQuery("exportaciones_pais", "vista_exportaciones_por_pais", 10),
    ViewQuery("medio_transporte", "vista_medio_transporte", None),
    ViewQuery("operaciones_recientes", "vista_operaciones_recientes", 10),
)


# ---------------------------------------------------------------------------
# Notificador de cambios (compartido por las implementaciones)
# ---------------------------------------------------------------------------

class _Handle:
    def __init__(self, notifier: "ChangeNotifier", callback: SessionCallback) -> None:
        self._notifier = notifier
        self._callback = callback

    def unsubscribe(self) -> None:
        self._notifier._remove(self._callback)


class ChangeNotifier:
    """Lista de callbacks de cambio de sesión con entrega sin garantías.

    Un callback que falla no interrumpe a los demás (se deja rastro en logs).
    """

    def __init__(self) -> None:
        self._callbacks: List[SessionCallback] = []

    def add(self, callback: SessionCallback) -> Subscription:
        self._callbacks.append(callback)
        return _Handle(self, callback)

    def _remove(self, callback: SessionCallback) -> None:
        try:
            self._callbacks.remove(callback)
        except ValueError:
            pass

    def __len__(self) -> int:
        return len(self._callbacks)

    def notify(self, event: str, sesion: Optional[Sesion]) -> None:
        for callback in list(self._callbacks):
            try:
                callback(event, sesion)
            except Exception as e:
                logger.warning("Callback de sesión falló (event=%s): %s", event, e)


def usuario_from_payload(data: Mapping[str, Any]) -> Usuario:
    """Construye un :class:`Usuario` desde el JSON del proveedor de identidad."""
    meta = data.get("user_metadata") or data.get("metadata") or {}
    return Usuario(
        id=str(data.get("id") or ""),
        email=data.get("email"),
        metadata=dict(meta) if isinstance(meta, Mapping) else {},
    )


def sesion_from_payload(data: Mapping[str, Any]) -> Sesion:
    """Construye una :class:`Sesion` desde la respuesta de token del proveedor."""
    user = data.get("user") or {}
    expires_at = data.get("expires_at")
    return Sesion(
        usuario=usuario_from_payload(user),
        access_token=str(data.get("access_token") or ""),
        refresh_token=data.get("refresh_token"),
        expires_at=float(expires_at) if expires_at is not None else None,
    )


def sesion_to_payload(sesion: Sesion) -> Dict[str, Any]:
    """Inverso de :func:`sesion_from_payload` (para persistir en disco)."""
    return {
        "access_token": sesion.access_token,
        "refresh_token": sesion.refresh_token,
        "expires_at": sesion.expires_at,
        "user": {
            "id": sesion.usuario.id,
            "email": sesion.usuario.email,
            "user_metadata": dict(sesion.usuario.metadata),
        },
    }

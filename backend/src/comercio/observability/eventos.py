# backend/src/comercio/observability/eventos.py
"""
Constantes y helpers de eventos de sesión y del dashboard.
Solo estandariza nombres y payloads (validados con Pydantic) y los publica en el bus.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

from .bus_eventos import publicador
from .payloads import AuthEvent, FetchCompleted, FetchFailed, FetchStarted, SessionChanged

# Nombres canónicos de eventos
EV_AUTH_LOGIN = "auth.login"
EV_AUTH_LOGOUT = "auth.logout"
EV_AUTH_REGISTER = "auth.register"
EV_AUTH_SESSION_CHANGED = "auth.session_changed"

EV_DASH_FETCH_STARTED = "dashboard.fetch_started"
EV_DASH_FETCH_COMPLETED = "dashboard.fetch_completed"
EV_DASH_FETCH_FAILED = "dashboard.fetch_failed"

_AUTH_TOPICS = {
    "login": EV_AUTH_LOGIN,
    "logout": EV_AUTH_LOGOUT,
    "register": EV_AUTH_REGISTER,
}


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def emit_auth(
    operation: str,
    outcome: str,
    *,
    user_id: Optional[str] = None,
    message: Optional[str] = None,
) -> None:
    """
    Emite ``auth.login`` | ``auth.logout`` | ``auth.register``.
    - outcome: "ok" | "error" | "sin_identidad".
    - message: texto de falla (nunca credenciales).
    """
    payload = AuthEvent(
        operation=operation,
        outcome=outcome,
        user_id=user_id,
        message=message,
        ts=_now_utc(),
    ).model_dump(mode="json", exclude_none=True)

    publicador(_AUTH_TOPICS[operation], payload)


def emit_session_changed(event: str, user_id: Optional[str]) -> None:
    payload = SessionChanged(
        event=event,
        authenticated=user_id is not None,
        user_id=user_id,
        ts=_now_utc(),
    ).model_dump(mode="json", exclude_none=True)

    publicador(EV_AUTH_SESSION_CHANGED, payload)


def emit_fetch_started(n_queries: int) -> None:
    payload = FetchStarted(n_queries=n_queries, ts=_now_utc()).model_dump(mode="json", exclude_none=True)
    publicador(EV_DASH_FETCH_STARTED, payload)


def emit_fetch_completed(latencia_ms: int, filas_por_vista: Dict[str, int], total_operaciones: int) -> None:
    """Emite ``dashboard.fetch_completed`` con el conteo de filas por vista."""
    payload = FetchCompleted(
        latencia_ms=latencia_ms,
        filas_por_vista=filas_por_vista,
        total_operaciones=total_operaciones,
        ts=_now_utc(),
    ).model_dump(mode="json", exclude_none=True)

    publicador(EV_DASH_FETCH_COMPLETED, payload)


def emit_fetch_failed(latencia_ms: int, error: str, vistas_fallidas: List[str]) -> None:
    """
    Emite ``dashboard.fetch_failed``.
    - error: mensaje expuesto al usuario (incluye la primera falla).
    - vistas_fallidas: todas las vistas que fallaron (solo para logs; el
      resultado hacia el caller no distingue cuál falló).
    """
    payload = FetchFailed(
        latencia_ms=latencia_ms,
        error=error,
        vistas_fallidas=vistas_fallidas,
        ts=_now_utc(),
    ).model_dump(mode="json", exclude_none=True)

    publicador(EV_DASH_FETCH_FAILED, payload)


__all__ = [
    "EV_AUTH_LOGIN",
    "EV_AUTH_LOGOUT",
    "EV_AUTH_REGISTER",
    "EV_AUTH_SESSION_CHANGED",
    "EV_DASH_FETCH_STARTED",
    "EV_DASH_FETCH_COMPLETED",
    "EV_DASH_FETCH_FAILED",
    "emit_auth",
    "emit_session_changed",
    "emit_fetch_started",
    "emit_fetch_completed",
    "emit_fetch_failed",
]

# backend/src/comercio/observability/__init__.py
"""
Paquete de observabilidad.
Exporta constantes y helpers de eventos de sesión y del dashboard.
"""

from .eventos import (
    EV_AUTH_LOGIN,
    EV_AUTH_LOGOUT,
    EV_AUTH_REGISTER,
    EV_AUTH_SESSION_CHANGED,
    EV_DASH_FETCH_COMPLETED,
    EV_DASH_FETCH_FAILED,
    EV_DASH_FETCH_STARTED,
    emit_auth,
    emit_fetch_completed,
    emit_fetch_failed,
    emit_fetch_started,
    emit_session_changed,
)

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

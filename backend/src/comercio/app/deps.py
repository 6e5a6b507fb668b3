# backend/src/comercio/app/deps.py
"""Dependencias FastAPI: acceso a los componentes de dominio de la app.

Los componentes se crean una vez por aplicación (ver ``create_app``) y se
guardan en ``app.state``; los routers nunca usan estado global.
"""

from __future__ import annotations

from fastapi import Request

from comercio.dashboard import DashboardPipeline
from comercio.sesion import SessionManager


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.sesion


def get_pipeline(request: Request) -> DashboardPipeline:
    return request.app.state.pipeline

"""
Módulo principal de la API del Dashboard de Comercio Internacional.

Responsabilidades:
- Instanciación de FastAPI (``create_app``) con sus componentes de dominio:
  Gateway, gestor de sesión y pipeline del Dashboard en ``app.state``
- Registro de routers (``/auth``, ``/dashboard``) y ``/health``
- CORS para el frontend (orígenes desde CE_ALLOWED_ORIGINS)
- Logging (dictConfig) + Correlation-Id (X-Correlation-Id) para trazabilidad
- Al arrancar: restaurar la sesión persistida, suscribirse a cambios y lanzar
  la primera carga del Dashboard en segundo plano
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from comercio.app.logging_config import setup_logging
from comercio.config import Settings, load_settings
from comercio.dashboard import DashboardPipeline
from comercio.gateway import Gateway, build_gateway
from comercio.observability.logging_context import install_logrecord_factory
from comercio.observability.middleware_correlation import CorrelationIdMiddleware
from comercio.sesion import SessionManager

from .routers import auth, dashboard

log = logging.getLogger("comercio")


def _wire_observability_safe() -> None:
    """Conecta el destino de logging a los eventos auth.* y dashboard.*.

    Si falla, la app sigue funcionando sin ese destino.
    """
    try:
        from comercio.observability.destinos.log_handler import wire_logging_destination

        wire_logging_destination()
    except Exception as e:
        log.warning("Fallo conectando observabilidad (se ignora para no bloquear): %s", e)


def create_app(gateway: Optional[Gateway] = None, settings: Optional[Settings] = None) -> FastAPI:
    """Crea la app con sus componentes.

    Parameters
    ----------
    gateway:
        Gateway a usar. Si es ``None`` se construye según ``settings``.
    settings:
        Configuración; por defecto se lee del entorno.
    """
    settings = settings or load_settings()
    gateway = gateway if gateway is not None else build_gateway(settings)

    app = FastAPI(title="Comercio Exterior API", version=os.getenv("API_VERSION", "0.1.0"))
    app.state.settings = settings
    app.state.gateway = gateway
    app.state.sesion = SessionManager(gateway)
    app.state.pipeline = DashboardPipeline(gateway)
    app.state.fetch_lock = asyncio.Lock()
    app.state.initial_fetch = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["*"],
        max_age=600,
    )
    app.add_middleware(CorrelationIdMiddleware)

    async def _initial_fetch() -> None:
        async with app.state.fetch_lock:
            await app.state.pipeline.fetch_dashboard()

    @app.on_event("startup")
    async def _startup() -> None:
        """
        - Configura logging (dictConfig con filtro cid) y la LogRecordFactory
        - Conecta el destino de logging para eventos auth.* y dashboard.*
        - Restaura la sesión y se suscribe a cambios del proveedor
        - Lanza la primera carga del Dashboard sin bloquear el arranque
        """
        setup_logging()
        install_logrecord_factory()
        _wire_observability_safe()

        sesion: SessionManager = app.state.sesion
        sesion.subscribe_to_changes()
        await sesion.initialize()

        app.state.initial_fetch = asyncio.create_task(_initial_fetch())
        log.info("Arranque OK (gateway=%s)", type(gateway).__name__)

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        task = app.state.initial_fetch
        if task is not None and not task.done():
            await task
        app.state.sesion.close()
        aclose = getattr(gateway, "aclose", None)
        if aclose is not None:
            await aclose()

    @app.get("/health")
    def health() -> dict:
        """Endpoint de salud: permite saber si la API está arriba."""
        return {"status": "ok"}

    app.include_router(auth.router,      prefix="/auth",      tags=["auth"])
    app.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
    return app


app = create_app()

# backend/src/comercio/app/routers/dashboard.py
"""Router del Dashboard de comercio internacional.

- ``GET /dashboard/status``: estado de carga (loading|ready|failed).
- ``POST /dashboard/refresh``: reintento manual; vuelve a ejecutar el ciclo
  completo de ``fetch_dashboard()``. Si ya hay un ciclo en vuelo responde 409
  (el pipeline no de-duplica llamadas concurrentes).
- ``GET /dashboard/snapshot`` y ``GET /dashboard/cards``: 503 mientras el
  estado no sea ``ready``; el detalle incluye el motivo de la falla.

Los routers se mantienen delgados: la lógica vive en ``comercio.dashboard``.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request

from comercio.app.deps import get_pipeline
from comercio.app.schemas.dashboard import (
    DashboardCards,
    DashboardSnapshotOut,
    DashboardStatus,
    MetricCardOut,
)
from comercio.dashboard import DashboardPipeline, DashboardSnapshot, Failed, build_cards

router = APIRouter()

MSG_LOADING = "Cargando datos del dashboard..."


def _require_snapshot(pipeline: DashboardPipeline) -> DashboardSnapshot:
    """Devuelve el snapshot vigente o lanza 503 con el motivo."""
    state = pipeline.state
    if isinstance(state, Failed):
        raise HTTPException(status_code=503, detail=state.reason)
    snapshot = pipeline.snapshot
    if snapshot is None:
        raise HTTPException(status_code=503, detail=MSG_LOADING)
    return snapshot


@router.get("/status", response_model=DashboardStatus)
def dashboard_status(pipeline: DashboardPipeline = Depends(get_pipeline)) -> DashboardStatus:
    return DashboardStatus.from_state(pipeline.state)


@router.post("/refresh", response_model=DashboardStatus)
async def dashboard_refresh(
    request: Request,
    pipeline: DashboardPipeline = Depends(get_pipeline),
) -> DashboardStatus:
    """Ejecuta un ciclo de carga y devuelve el estado resultante."""
    lock = request.app.state.fetch_lock
    if lock.locked():
        raise HTTPException(status_code=409, detail="Ya hay una carga del dashboard en curso")
    async with lock:
        state = await pipeline.fetch_dashboard()
    return DashboardStatus.from_state(state)


@router.get("/snapshot", response_model=DashboardSnapshotOut)
def dashboard_snapshot(pipeline: DashboardPipeline = Depends(get_pipeline)) -> DashboardSnapshotOut:
    return DashboardSnapshotOut.from_snapshot(_require_snapshot(pipeline))


@router.get("/cards", response_model=DashboardCards)
def dashboard_cards(pipeline: DashboardPipeline = Depends(get_pipeline)) -> DashboardCards:
    snapshot = _require_snapshot(pipeline)
    return DashboardCards(items=[MetricCardOut.from_card(c) for c in build_cards(snapshot.metricas)])

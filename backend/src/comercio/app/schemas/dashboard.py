# backend/src/comercio/app/schemas/dashboard.py
"""Esquemas (Pydantic) para la API del Dashboard.

Contratos de respuesta estables para ``/dashboard/*``: el frontend no debe
romperse si cambia la forma en que el pipeline obtiene o agrega las vistas.

Notas
-----
- Las filas de las vistas se exponen tal cual las devuelve el servidor
  (``List[Dict[str, Any]]``); solo las métricas tienen esquema fijo.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from comercio.dashboard import DashboardMetrics, DashboardSnapshot, LoadState, MetricCard
from comercio.dashboard.pipeline import Failed


class DashboardStatus(BaseModel):
    """Contrato para ``GET /dashboard/status`` y ``POST /dashboard/refresh``."""

    status: Literal["loading", "ready", "failed"]
    reason: Optional[str] = Field(None, description="Motivo de la falla (solo si status=failed).")

    @classmethod
    def from_state(cls, state: LoadState) -> "DashboardStatus":
        return cls(status=state.status, reason=state.reason if isinstance(state, Failed) else None)


class FilaEstadisticaOut(BaseModel):
    total_operaciones: int = 0
    paises_destino: int = 0
    valor_total_usd: float = 0.0


class MercadoOut(BaseModel):
    pais: str
    valor_total_usd: float


class DashboardMetricsOut(BaseModel):
    """KPIs derivados del snapshot."""

    exportaciones: FilaEstadisticaOut
    reexportaciones: FilaEstadisticaOut
    efectos_personales: FilaEstadisticaOut
    total_operaciones: int
    total_paises: int
    promedio_mensual: int
    operaciones_maritimas: int
    operaciones_terrestres: int
    exportaciones_valor_usd: float
    exportaciones_operaciones: int
    principales_mercados: List[MercadoOut] = Field(default_factory=list)

    @classmethod
    def from_metrics(cls, m: DashboardMetrics) -> "DashboardMetricsOut":
        return cls(
            exportaciones=FilaEstadisticaOut(**vars(m.exportaciones)),
            reexportaciones=FilaEstadisticaOut(**vars(m.reexportaciones)),
            efectos_personales=FilaEstadisticaOut(**vars(m.efectos_personales)),
            total_operaciones=m.total_operaciones,
            total_paises=m.total_paises,
            promedio_mensual=m.promedio_mensual,
            operaciones_maritimas=m.operaciones_maritimas,
            operaciones_terrestres=m.operaciones_terrestres,
            exportaciones_valor_usd=m.exportaciones_valor_usd,
            exportaciones_operaciones=m.exportaciones_operaciones,
            principales_mercados=[MercadoOut(**vars(x)) for x in m.principales_mercados],
        )


class DashboardSnapshotOut(BaseModel):
    """Contrato para ``GET /dashboard/snapshot``."""

    estadisticas: List[Dict[str, Any]] = Field(default_factory=list)
    operaciones_mes: List[Dict[str, Any]] = Field(default_factory=list)
    exportaciones_pais: List[Dict[str, Any]] = Field(default_factory=list)
    medio_transporte: List[Dict[str, Any]] = Field(default_factory=list)
    operaciones_recientes: List[Dict[str, Any]] = Field(default_factory=list)
    metricas: DashboardMetricsOut

    @classmethod
    def from_snapshot(cls, s: DashboardSnapshot) -> "DashboardSnapshotOut":
        return cls(
            estadisticas=list(s.estadisticas),
            operaciones_mes=list(s.operaciones_mes),
            exportaciones_pais=list(s.exportaciones_pais),
            medio_transporte=list(s.medio_transporte),
            operaciones_recientes=list(s.operaciones_recientes),
            metricas=DashboardMetricsOut.from_metrics(s.metricas),
        )


class MetricCardOut(BaseModel):
    key: str
    title: str
    value: str
    subtitle: str

    @classmethod
    def from_card(cls, c: MetricCard) -> "MetricCardOut":
        return cls(**vars(c))


class DashboardCards(BaseModel):
    """Contrato para ``GET /dashboard/cards``."""

    items: List[MetricCardOut] = Field(default_factory=list)

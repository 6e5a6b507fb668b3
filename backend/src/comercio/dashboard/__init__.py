"""comercio.dashboard

Pipeline de agregación del Dashboard de comercio internacional.

El pipeline consulta cinco vistas remotas en paralelo, aplica la política
"todo o nada" ante fallas y publica un snapshot inmutable con las filas y los
KPIs derivados. Los helpers de formato y las tarjetas son funciones puras sobre
ese snapshot; los routers se mantienen delgados (HTTP/serialización).
"""

from .formato import format_currency, format_number, round_half_up
from .metricas import DashboardMetrics, FilaEstadistica, Mercado, compute_metrics
from .pipeline import (
    DashboardPipeline,
    DashboardSnapshot,
    Failed,
    LoadState,
    Loading,
    Ready,
    build_snapshot,
)
from .tarjetas import MetricCard, build_cards

__all__ = [
    "DashboardMetrics",
    "DashboardPipeline",
    "DashboardSnapshot",
    "Failed",
    "FilaEstadistica",
    "LoadState",
    "Loading",
    "Mercado",
    "MetricCard",
    "Ready",
    "build_cards",
    "build_snapshot",
    "compute_metrics",
    "format_currency",
    "format_number",
    "round_half_up",
]

# backend/src/comercio/dashboard/tarjetas.py
"""Tarjetas de métricas ya formateadas.

La capa de presentación solo pinta estos textos; el cálculo y el formato viven
aquí para que cualquier cliente (web, reporte, CLI) muestre exactamente lo mismo.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from .formato import format_currency, format_number
from .metricas import DashboardMetrics


@dataclass(frozen=True)
class MetricCard:
    key: str
    title: str
    value: str
    subtitle: str


def build_cards(m: DashboardMetrics) -> List[MetricCard]:
    """Tarjetas de KPIs derivadas de las métricas de un snapshot."""
    return [
        MetricCard(
            "exportaciones",
            "Exportaciones Totales",
            format_currency(m.exportaciones_valor_usd),
            f"{format_number(m.exportaciones_operaciones)} operaciones",
        ),
        MetricCard("paises", "Países Socios", format_number(m.total_paises), "destinos comerciales"),
        MetricCard(
            "promedio_mensual",
            "Transacciones Mensuales",
            format_number(m.promedio_mensual),
            "promedio mensual",
        ),
        MetricCard(
            "maritimo",
            "Envíos Marítimos",
            format_number(m.operaciones_maritimas),
            "operaciones marítimas",
        ),
        MetricCard(
            "terrestre",
            "Envíos Terrestres",
            format_number(m.operaciones_terrestres),
            "operaciones terrestres",
        ),
    ]

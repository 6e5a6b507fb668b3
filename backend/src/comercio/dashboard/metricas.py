# backend/src/comercio/dashboard/metricas.py
"""Métricas derivadas del Dashboard.

A partir de las filas ya descargadas de las vistas se calculan los KPIs que
muestra la UI.

Reglas de negocio
-----------------
- Las filas de ``vista_estadisticas_generales`` se ubican por *substring* en
  ``tipo_operacion`` (sensible a mayúsculas, gana la primera coincidencia en el
  orden devuelto por el servidor):

  - ``EXPORTACIONES`` (exportaciones)
  - ``REEXPORTACIONES`` (reexportaciones)
  - ``EFECTOS`` (efectos personales)

  Ojo: ``"REEXPORTACIONES"`` también contiene ``"EXPORTACIONES"``; si la fila de
  reexportaciones llega primero, será la elegida para ambos selectores.
- Una fila ausente aporta ceros a todos los campos que se derivan de ella.
- ``total_operaciones`` suma las tres filas; ``total_paises`` toma el **máximo**
  (no la suma) de ``paises_destino``; ``promedio_mensual`` es
  ``round(total_operaciones / 12)`` con empates hacia arriba.
- En ``vista_medio_transporte`` se ubican ``MARITIMO`` y ``TERRESTRE`` en
  ``medio_transporte`` de forma independiente.

Notas de implementación
-----------------------
Se agrega con pandas y de forma defensiva: etiquetas no-string o ausentes no
coinciden; valores no numéricos cuentan como 0.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, Tuple

import pandas as pd

from comercio.gateway.base import Row

from .formato import round_half_up

logger = logging.getLogger(__name__)

STATS_LABEL_COL = "tipo_operacion"
TRANSPORT_LABEL_COL = "medio_transporte"
COUNTRY_NAME_COL = "nombre_del_pais_de_destino"

SEL_EXPORTACIONES = "EXPORTACIONES"
SEL_REEXPORTACIONES = "REEXPORTACIONES"
SEL_EFECTOS = "EFECTOS"
SEL_MARITIMO = "MARITIMO"
SEL_TERRESTRE = "TERRESTRE"

MESES_POR_ANIO = 12
TOP_MERCADOS = 6


@dataclass(frozen=True)
class FilaEstadistica:
    """Campos usados de una fila de estadísticas generales (0 si falta)."""

    total_operaciones: int = 0
    paises_destino: int = 0
    valor_total_usd: float = 0.0


@dataclass(frozen=True)
class Mercado:
    pais: str
    valor_total_usd: float


@dataclass(frozen=True)
class DashboardMetrics:
    """KPIs derivados de un snapshot."""

    exportaciones: FilaEstadistica = field(default_factory=FilaEstadistica)
    reexportaciones: FilaEstadistica = field(default_factory=FilaEstadistica)
    efectos_personales: FilaEstadistica = field(default_factory=FilaEstadistica)
    total_operaciones: int = 0
    total_paises: int = 0
    promedio_mensual: int = 0
    operaciones_maritimas: int = 0
    operaciones_terrestres: int = 0
    principales_mercados: Tuple[Mercado, ...] = ()

    @property
    def exportaciones_valor_usd(self) -> float:
        return self.exportaciones.valor_total_usd

    @property
    def exportaciones_operaciones(self) -> int:
        return self.exportaciones.total_operaciones


# ---------------------------------------------------------------------------
# Helpers (defensivos)
# ---------------------------------------------------------------------------

def _to_frame(rows: Sequence[Row]) -> pd.DataFrame:
    return pd.DataFrame.from_records(list(rows)) if rows else pd.DataFrame()


def _as_float(value: Any) -> float:
    num = pd.to_numeric(pd.Series([value]), errors="coerce").iloc[0]
    return 0.0 if pd.isna(num) else float(num)


def _as_int(value: Any) -> int:
    return int(_as_float(value))


def first_match(df: pd.DataFrame, label_col: str, selector: str) -> Optional[pd.Series]:
    """Primera fila cuya etiqueta contiene ``selector`` (substring exacto).

    Returns
    -------
    pandas.Series | None
        La fila encontrada, o ``None`` si no hay coincidencias o falta la columna.
    """
    if df.empty or label_col not in df.columns:
        return None
    mask = df[label_col].map(lambda v: isinstance(v, str) and selector in v)
    hits = df.loc[mask.astype(bool)]
    if hits.empty:
        return None
    return hits.iloc[0]


def _fila_estadistica(df: pd.DataFrame, selector: str) -> FilaEstadistica:
    row = first_match(df, STATS_LABEL_COL, selector)
    if row is None:
        logger.debug("Sin fila de estadísticas para selector=%s", selector)
        return FilaEstadistica()
    return FilaEstadistica(
        total_operaciones=_as_int(row.get("total_operaciones")),
        paises_destino=_as_int(row.get("paises_destino")),
        valor_total_usd=_as_float(row.get("valor_total_usd")),
    )


def _operaciones_transporte(df: pd.DataFrame, selector: str) -> int:
    row = first_match(df, TRANSPORT_LABEL_COL, selector)
    return 0 if row is None else _as_int(row.get("total_operaciones"))


def principales_mercados(rows: Sequence[Row], limit: int = TOP_MERCADOS) -> Tuple[Mercado, ...]:
    """Primeros ``limit`` países en el orden devuelto por la vista."""
    return tuple(
        Mercado(
            pais=str(r.get(COUNTRY_NAME_COL) or ""),
            valor_total_usd=_as_float(r.get("valor_total_usd")),
        )
        for r in list(rows)[:limit]
    )


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------

def compute_metrics(
    estadisticas: Sequence[Row],
    medio_transporte: Sequence[Row],
    exportaciones_pais: Sequence[Row] = (),
) -> DashboardMetrics:
    """Calcula los KPIs del Dashboard a partir de las filas de las vistas."""
    stats = _to_frame(estadisticas)
    transporte = _to_frame(medio_transporte)

    exp = _fila_estadistica(stats, SEL_EXPORTACIONES)
    reexp = _fila_estadistica(stats, SEL_REEXPORTACIONES)
    efectos = _fila_estadistica(stats, SEL_EFECTOS)
    filas = (exp, reexp, efectos)

    total_operaciones = sum(f.total_operaciones for f in filas)

    return DashboardMetrics(
        exportaciones=exp,
        reexportaciones=reexp,
        efectos_personales=efectos,
        total_operaciones=total_operaciones,
        total_paises=max(f.paises_destino for f in filas),
        promedio_mensual=round_half_up(total_operaciones / MESES_POR_ANIO),
        operaciones_maritimas=_operaciones_transporte(transporte, SEL_MARITIMO),
        operaciones_terrestres=_operaciones_transporte(transporte, SEL_TERRESTRE),
        principales_mercados=principales_mercados(exportaciones_pais),
    )

# backend/src/comercio/dashboard/pipeline.py
"""Pipeline de agregación del Dashboard.

Un ciclo de :meth:`DashboardPipeline.fetch_dashboard`:

1. Lanza las cinco consultas de :data:`~comercio.gateway.base.VIEW_QUERIES`
   a la vez (sin dependencias entre ellas).
2. Espera a que **todas** terminen (``asyncio.gather`` con
   ``return_exceptions=True``): una falla no cancela a las demás.
3. Si alguna falló, el ciclo completo falla (todo o nada, sin reintentos ni
   render parcial). El motivo expuesto incluye el mensaje de la primera falla
   en el orden de declaración de las consultas; el caller no puede distinguir
   cuál vista falló ni si fue un problema de transporte.
4. Si todas respondieron, se calculan las métricas derivadas y se publica un
   :class:`DashboardSnapshot` inmutable, que reemplaza por completo al anterior.

Precondición
------------
No invocar ``fetch_dashboard()`` mientras otra llamada sigue en vuelo; no hay
de-duplicación interna. El reintento manual es simplemente volver a llamarlo.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import ClassVar, Dict, List, Optional, Sequence, Tuple, Union

from comercio.gateway.base import VIEW_QUERIES, Gateway, GatewayFault, Row, ViewQuery
from comercio.observability.eventos import (
    emit_fetch_completed,
    emit_fetch_failed,
    emit_fetch_started,
)

from .metricas import DashboardMetrics, compute_metrics

logger = logging.getLogger(__name__)

FETCH_ERROR_PREFIX = "Error al cargar datos"

Rows = Tuple[Row, ...]


@dataclass(frozen=True)
class DashboardSnapshot:
    """Filas de las cinco vistas + métricas derivadas (inmutable)."""

    estadisticas: Rows
    operaciones_mes: Rows
    exportaciones_pais: Rows
    medio_transporte: Rows
    operaciones_recientes: Rows
    metricas: DashboardMetrics

    def filas_por_vista(self) -> Dict[str, int]:
        return {
            "estadisticas": len(self.estadisticas),
            "operaciones_mes": len(self.operaciones_mes),
            "exportaciones_pais": len(self.exportaciones_pais),
            "medio_transporte": len(self.medio_transporte),
            "operaciones_recientes": len(self.operaciones_recientes),
        }


@dataclass(frozen=True)
class Loading:
    status: ClassVar[str] = "loading"


@dataclass(frozen=True)
class Ready:
    snapshot: DashboardSnapshot
    status: ClassVar[str] = "ready"


@dataclass(frozen=True)
class Failed:
    """``FetchFailed``: un único motivo textual, sin distinguir la vista."""

    reason: str
    status: ClassVar[str] = "failed"


LoadState = Union[Loading, Ready, Failed]


def _fault_message(exc: BaseException) -> str:
    if isinstance(exc, GatewayFault):
        return exc.message
    return str(exc) or type(exc).__name__


def build_snapshot(rows: Dict[str, Sequence[Row]]) -> DashboardSnapshot:
    """Arma el snapshot a partir de las filas indexadas por ``ViewQuery.key``."""
    frozen = {key: tuple(dict(r) for r in value) for key, value in rows.items()}
    metricas = compute_metrics(
        frozen["estadisticas"],
        frozen["medio_transporte"],
        frozen["exportaciones_pais"],
    )
    return DashboardSnapshot(
        estadisticas=frozen["estadisticas"],
        operaciones_mes=frozen["operaciones_mes"],
        exportaciones_pais=frozen["exportaciones_pais"],
        medio_transporte=frozen["medio_transporte"],
        operaciones_recientes=frozen["operaciones_recientes"],
        metricas=metricas,
    )


class DashboardPipeline:
    """Dueño del :data:`LoadState` del Dashboard."""

    def __init__(self, gateway: Gateway, queries: Sequence[ViewQuery] = VIEW_QUERIES) -> None:
        self._gateway = gateway
        self._queries: Tuple[ViewQuery, ...] = tuple(queries)
        self._state: LoadState = Loading()

    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def snapshot(self) -> Optional[DashboardSnapshot]:
        """Snapshot vigente o ``None`` si el estado no es ``Ready``."""
        return self._state.snapshot if isinstance(self._state, Ready) else None

    async def fetch_dashboard(self) -> LoadState:
        """Ejecuta un ciclo completo de carga y devuelve el nuevo estado."""
        self._state = Loading()
        t0 = time.perf_counter()
        emit_fetch_started(len(self._queries))

        results = await asyncio.gather(
            *(self._gateway.query(q.view, q.limit) for q in self._queries),
            return_exceptions=True,
        )
        latencia_ms = int((time.perf_counter() - t0) * 1000)

        faults: List[Tuple[ViewQuery, BaseException]] = []
        rows: Dict[str, Sequence[Row]] = {}
        for query, result in zip(self._queries, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                faults.append((query, result))
            else:
                rows[query.key] = result

        if faults:
            _, first_exc = faults[0]
            reason = f"{FETCH_ERROR_PREFIX}: {_fault_message(first_exc)}"
            for query, exc in faults:
                logger.error(
                    "Falla consultando %s: %s",
                    query.view,
                    _fault_message(exc),
                    exc_info=None if isinstance(exc, GatewayFault) else exc,
                )
            self._state = Failed(reason)
            emit_fetch_failed(latencia_ms, reason, [q.view for q, _ in faults])
            return self._state

        snapshot = build_snapshot(rows)
        self._state = Ready(snapshot)
        logger.info("Dashboard cargado en %d ms (%s)", latencia_ms, snapshot.filas_por_vista())
        emit_fetch_completed(latencia_ms, snapshot.filas_por_vista(), snapshot.metricas.total_operaciones)
        return self._state

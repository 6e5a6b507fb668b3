"""tests.unit.test_pipeline

Contrato del pipeline de agregación:
- consultas concurrentes con espera de todas (sin cancelar hermanas)
- política todo-o-nada ante fallas
- snapshot inmutable reemplazado por completo en cada ciclo
"""

from __future__ import annotations

import asyncio

import pytest

from comercio.dashboard import DashboardPipeline, Failed, Loading, Ready
from comercio.gateway import VIEW_QUERIES, MemoryGateway


def _run(coro):
    return asyncio.run(coro)


def test_estado_inicial_es_loading(gateway):
    pipeline = DashboardPipeline(gateway)
    assert isinstance(pipeline.state, Loading)
    assert pipeline.snapshot is None


def test_fetch_ok_produce_snapshot_con_metricas(gateway):
    pipeline = DashboardPipeline(gateway)
    state = _run(pipeline.fetch_dashboard())

    assert isinstance(state, Ready)
    assert pipeline.state is state
    snap = state.snapshot
    assert len(snap.estadisticas) == 3
    assert len(snap.operaciones_mes) == 12
    assert len(snap.exportaciones_pais) == 7
    assert len(snap.medio_transporte) == 3
    assert len(snap.operaciones_recientes) == 5

    m = snap.metricas
    assert m.total_operaciones == 125
    assert m.promedio_mensual == 10
    assert m.total_paises == 30
    assert m.operaciones_maritimas == 70
    assert m.operaciones_terrestres == 40
    assert len(m.principales_mercados) == 6


def test_consulta_las_cinco_vistas_con_sus_limites(views):
    views["vista_estadisticas_generales"] = views["vista_estadisticas_generales"] * 5  # 15 filas
    views["vista_medio_transporte"] = views["vista_medio_transporte"] * 10  # sin límite
    gw = MemoryGateway(views=views)

    state = _run(DashboardPipeline(gw).fetch_dashboard())

    assert sorted(gw.query_log) == sorted(q.view for q in VIEW_QUERIES)
    assert len(state.snapshot.estadisticas) == 10
    assert len(state.snapshot.medio_transporte) == 30


@pytest.mark.parametrize("view", [q.view for q in VIEW_QUERIES])
def test_una_falla_hace_fallar_todo(gateway, view):
    gateway.fail_view(view, "permission denied for view")
    state = _run(DashboardPipeline(gateway).fetch_dashboard())

    assert isinstance(state, Failed)
    assert state.reason == "Error al cargar datos: permission denied for view"
    # Las demás consultas no se cancelaron
    assert len(gateway.query_log) == 5


def test_falla_reporta_la_primera_en_orden_de_declaracion(gateway):
    gateway.fail_view("vista_operaciones_recientes", "timeout recientes")
    gateway.fail_view("vista_estadisticas_generales", "timeout estadisticas")

    state = _run(DashboardPipeline(gateway).fetch_dashboard())
    assert state == Failed("Error al cargar datos: timeout estadisticas")


def test_falla_no_cancela_consultas_lentas(views):
    gw = MemoryGateway(views=views, latency_s=0.01)
    gw.fail_view("vista_estadisticas_generales", "boom")
    completadas = []

    original = gw.query

    async def query_contada(view, limit=None):
        try:
            return await original(view, limit)
        finally:
            completadas.append(view)

    gw.query = query_contada  # type: ignore[method-assign]
    state = _run(DashboardPipeline(gw).fetch_dashboard())

    assert isinstance(state, Failed)
    assert len(completadas) == 5


def test_error_inesperado_tambien_es_failed(gateway, monkeypatch):
    original = gateway.query

    async def query_rota(view, limit=None):
        if view == "vista_medio_transporte":
            raise RuntimeError("conexión reiniciada")
        return await original(view, limit)

    monkeypatch.setattr(gateway, "query", query_rota)
    state = _run(DashboardPipeline(gateway).fetch_dashboard())
    assert state == Failed("Error al cargar datos: conexión reiniciada")


def test_reintento_tras_falla_reemplaza_estado(gateway):
    pipeline = DashboardPipeline(gateway)
    gateway.fail_view("vista_operaciones_por_mes", "caído")
    assert isinstance(_run(pipeline.fetch_dashboard()), Failed)

    gateway.clear_faults()
    state = _run(pipeline.fetch_dashboard())
    assert isinstance(state, Ready)
    assert pipeline.snapshot is state.snapshot


def test_dos_fetch_seguidos_dan_snapshots_iguales(gateway):
    pipeline = DashboardPipeline(gateway)
    first = _run(pipeline.fetch_dashboard()).snapshot
    second = _run(pipeline.fetch_dashboard()).snapshot

    assert first == second
    assert first is not second


def test_snapshot_no_comparte_filas_con_el_gateway(gateway):
    snap = _run(DashboardPipeline(gateway).fetch_dashboard()).snapshot
    gateway.views["vista_estadisticas_generales"][0]["total_operaciones"] = 0
    assert snap.estadisticas[0]["total_operaciones"] == 100

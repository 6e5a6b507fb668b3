"""tests.unit.test_metricas

Reglas de negocio de los KPIs derivados:
- localización por substring (primera coincidencia gana)
- suma de operaciones, máximo (no suma) de países, promedio mensual redondeado
- filas ausentes aportan ceros
"""

from __future__ import annotations

import pandas as pd

from comercio.dashboard.metricas import (
    FilaEstadistica,
    compute_metrics,
    first_match,
    principales_mercados,
)


def _stats(exp=(100, 30, 1_000.0), reexp=(20, 10, 500.0), efectos=(5, 2, 10.0)):
    rows = []
    for label, values in (
        ("EXPORTACIONES DEFINITIVAS", exp),
        ("REEXPORTACIONES", reexp),
        ("EFECTOS PERSONALES", efectos),
    ):
        if values is None:
            continue
        ops, paises, valor = values
        rows.append(
            {
                "tipo_operacion": label,
                "total_operaciones": ops,
                "paises_destino": paises,
                "valor_total_usd": valor,
            }
        )
    return rows


def test_totales_y_promedio_mensual():
    m = compute_metrics(_stats(), [])

    assert m.total_operaciones == 125
    assert m.promedio_mensual == 10
    assert m.exportaciones == FilaEstadistica(100, 30, 1_000.0)
    assert m.exportaciones_operaciones == 100
    assert m.exportaciones_valor_usd == 1_000.0


def test_total_paises_es_maximo_no_suma():
    m = compute_metrics(_stats(), [])
    assert m.total_paises == 30


def test_filas_ausentes_aportan_cero():
    m = compute_metrics(_stats(reexp=None, efectos=None), [])
    assert m.total_operaciones == 100
    assert m.reexportaciones == FilaEstadistica()
    assert m.efectos_personales == FilaEstadistica()

    vacio = compute_metrics([], [])
    assert vacio.total_operaciones == 0
    assert vacio.total_paises == 0
    assert vacio.promedio_mensual == 0
    assert vacio.operaciones_maritimas == 0
    assert vacio.operaciones_terrestres == 0


def test_substring_sensible_a_mayusculas():
    rows = [{"tipo_operacion": "exportaciones definitivas", "total_operaciones": 99}]
    m = compute_metrics(rows, [])
    assert m.exportaciones.total_operaciones == 0


def test_primera_coincidencia_gana_en_orden_del_servidor():
    # REEXPORTACIONES contiene EXPORTACIONES: si llega primero, gana en ambos.
    rows = [
        {"tipo_operacion": "REEXPORTACIONES", "total_operaciones": 20, "paises_destino": 10},
        {"tipo_operacion": "EXPORTACIONES", "total_operaciones": 100, "paises_destino": 30},
    ]
    m = compute_metrics(rows, [])
    assert m.exportaciones.total_operaciones == 20
    assert m.reexportaciones.total_operaciones == 20
    assert m.total_operaciones == 40


def test_transporte_por_substring():
    transporte = [
        {"medio_transporte": "AEREO", "total_operaciones": 3},
        {"medio_transporte": "VIA MARITIMO", "total_operaciones": 70},
        {"medio_transporte": "TERRESTRE", "total_operaciones": 40},
        {"medio_transporte": "MARITIMO (CONTENEDOR)", "total_operaciones": 1},
    ]
    m = compute_metrics([], transporte)
    assert m.operaciones_maritimas == 70
    assert m.operaciones_terrestres == 40


def test_etiquetas_y_valores_defensivos():
    transporte = [
        {"medio_transporte": None, "total_operaciones": 5},
        {"medio_transporte": 7, "total_operaciones": 5},
        {"medio_transporte": "TERRESTRE", "total_operaciones": None},
        {"otra_columna": "MARITIMO"},
    ]
    m = compute_metrics([{"tipo_operacion": "EFECTOS", "total_operaciones": "12"}], transporte)
    assert m.operaciones_maritimas == 0
    assert m.operaciones_terrestres == 0
    assert m.efectos_personales.total_operaciones == 12


def test_first_match_sin_columna_o_vacio():
    assert first_match(pd.DataFrame(), "tipo_operacion", "X") is None
    df = pd.DataFrame([{"a": "EXPORTACIONES"}])
    assert first_match(df, "tipo_operacion", "EXPORTACIONES") is None


def test_principales_mercados_toma_los_seis_primeros():
    rows = [{"nombre_del_pais_de_destino": f"P{i}", "valor_total_usd": i * 10} for i in range(8)]
    top = principales_mercados(rows)
    assert [m.pais for m in top] == ["P0", "P1", "P2", "P3", "P4", "P5"]
    assert top[2].valor_total_usd == 20.0

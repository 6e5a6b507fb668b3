#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Genera un fixture sintético con las cinco vistas del Dashboard para el
Gateway en memoria (``CE_GATEWAY=memoria``).

Vistas:
- vista_estadisticas_generales (EXPORTACIONES / REEXPORTACIONES / EFECTOS PERSONALES)
- vista_operaciones_por_mes    (12 meses)
- vista_exportaciones_por_pais (ordenada por valor, descendente)
- vista_medio_transporte       (marítimo, terrestre, aéreo, ...)
- vista_operaciones_recientes

Uso:
  python tools/sim/generate_synthetic.py --n 5000 --out data/fixture.json
"""
import argparse
import json
import os

import numpy as np
import pandas as pd

TIPOS = ["EXPORTACIONES DEFINITIVAS", "REEXPORTACIONES", "EFECTOS PERSONALES"]
TIPOS_P = [0.85, 0.12, 0.03]
MEDIOS = ["TRANSPORTE MARITIMO", "TRANSPORTE TERRESTRE", "TRANSPORTE AEREO", "TRANSPORTE POSTAL"]
MEDIOS_P = [0.55, 0.30, 0.13, 0.02]
PAISES = [
    "ESTADOS UNIDOS", "ECUADOR", "PERU", "MEXICO", "PANAMA", "CHILE",
    "ESPAÑA", "PAISES BAJOS", "CHINA", "BRASIL", "ALEMANIA", "CANADA",
]


def _operaciones(n: int, anio: int) -> pd.DataFrame:
    """Operaciones individuales de las que se agregan las vistas."""
    df = pd.DataFrame(
        {
            "tipo_operacion": np.random.choice(TIPOS, size=n, p=TIPOS_P),
            "medio_transporte": np.random.choice(MEDIOS, size=n, p=MEDIOS_P),
            "nombre_del_pais_de_destino": np.random.choice(PAISES, size=n, p=_zipf(len(PAISES))),
            "mes": np.random.randint(1, 13, size=n),
            # valores FOB con cola larga
            "valor_total_usd": np.round(np.random.lognormal(mean=9.5, sigma=1.2, size=n), 2),
        }
    )
    df["fecha"] = [f"{anio}-{m:02d}-{d:02d}" for m, d in zip(df["mes"], np.random.randint(1, 29, size=n))]
    return df


def _zipf(k: int) -> np.ndarray:
    w = 1.0 / np.arange(1, k + 1)
    return w / w.sum()


def _records(df: pd.DataFrame) -> list:
    return json.loads(df.to_json(orient="records", force_ascii=False))


def build_views(df: pd.DataFrame, anio: int) -> dict:
    estadisticas = (
        df.groupby("tipo_operacion", sort=False)
        .agg(
            total_operaciones=("valor_total_usd", "size"),
            paises_destino=("nombre_del_pais_de_destino", "nunique"),
            valor_total_usd=("valor_total_usd", "sum"),
        )
        .reindex(TIPOS)
        .dropna()
        .reset_index()
    )
    por_mes = (
        df.groupby("mes")
        .agg(total_operaciones=("valor_total_usd", "size"), valor_total_usd=("valor_total_usd", "sum"))
        .reset_index()
    )
    por_mes["mes"] = [f"{anio}-{m:02d}" for m in por_mes["mes"]]
    por_pais = (
        df.groupby("nombre_del_pais_de_destino")
        .agg(total_operaciones=("valor_total_usd", "size"), valor_total_usd=("valor_total_usd", "sum"))
        .sort_values("valor_total_usd", ascending=False)
        .reset_index()
    )
    medios = (
        df.groupby("medio_transporte")
        .agg(total_operaciones=("valor_total_usd", "size"))
        .sort_values("total_operaciones", ascending=False)
        .reset_index()
    )
    recientes = df.sort_values("fecha", ascending=False).head(10).reset_index(drop=True)
    recientes.insert(0, "id", range(1, len(recientes) + 1))

    return {
        "vista_estadisticas_generales": _records(estadisticas),
        "vista_operaciones_por_mes": _records(por_mes),
        "vista_exportaciones_por_pais": _records(por_pais),
        "vista_medio_transporte": _records(medios),
        "vista_operaciones_recientes": _records(recientes.drop(columns=["mes"])),
    }


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--n", type=int, default=2000, help="Operaciones a simular")
    ap.add_argument("--out", required=True, help="Ruta de salida (.json)")
    ap.add_argument("--anio", type=int, default=2024)
    ap.add_argument("--seed", type=int, default=42)
    args = ap.parse_args()
    np.random.seed(args.seed)

    if os.path.splitext(args.out)[1].lower() != ".json":
        raise ValueError("Usa .json en --out")

    views = build_views(_operaciones(args.n, args.anio), args.anio)

    out_dir = os.path.dirname(args.out)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    with open(args.out, "w", encoding="utf-8") as f:
        json.dump({"views": views}, f, ensure_ascii=False, indent=2)

    print(f"[OK] Fixture sintético escrito en: {args.out} (N={args.n})")


if __name__ == "__main__":
    main()

# tests/conftest.py
import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Asegura que el código del backend esté en el path (además de pip install -e .)
BACKEND_SRC = Path(__file__).resolve().parent.parent / "backend" / "src"
if str(BACKEND_SRC) not in sys.path:
    sys.path.insert(0, str(BACKEND_SRC))

# La app de módulo se construye al importar; en tests nunca debe salir a la red.
os.environ.setdefault("CE_GATEWAY", "memoria")

from comercio.app.main import create_app  # noqa: E402
from comercio.gateway import MemoryGateway  # noqa: E402


def sample_views() -> dict:
    """Filas mínimas de las cinco vistas (orden = orden del servidor)."""
    return {
        "vista_estadisticas_generales": [
            {"tipo_operacion": "EXPORTACIONES DEFINITIVAS", "total_operaciones": 100,
             "paises_destino": 30, "valor_total_usd": 2_300_000.0},
            {"tipo_operacion": "REEXPORTACIONES", "total_operaciones": 20,
             "paises_destino": 10, "valor_total_usd": 45_000.0},
            {"tipo_operacion": "EFECTOS PERSONALES", "total_operaciones": 5,
             "paises_destino": 2, "valor_total_usd": 950.0},
        ],
        "vista_operaciones_por_mes": [
            {"mes": f"2024-{m:02d}", "total_operaciones": 10 + m} for m in range(1, 13)
        ],
        "vista_exportaciones_por_pais": [
            {"nombre_del_pais_de_destino": p, "valor_total_usd": v}
            for p, v in [
                ("ESTADOS UNIDOS", 1_200_000.0), ("ECUADOR", 400_000.0), ("PERU", 250_000.0),
                ("MEXICO", 150_000.0), ("PANAMA", 90_000.0), ("CHILE", 60_000.0),
                ("ESPAÑA", 40_000.0),
            ]
        ],
        "vista_medio_transporte": [
            {"medio_transporte": "VIA MARITIMO", "total_operaciones": 70},
            {"medio_transporte": "TERRESTRE", "total_operaciones": 40},
            {"medio_transporte": "AEREO", "total_operaciones": 15},
        ],
        "vista_operaciones_recientes": [
            {"id": i, "fecha": f"2024-12-{i:02d}", "valor_total_usd": 1000.0 * i} for i in range(1, 6)
        ],
    }


@pytest.fixture
def views() -> dict:
    return sample_views()


@pytest.fixture
def gateway(views) -> MemoryGateway:
    gw = MemoryGateway(views=views)
    gw.add_user("admin@univalle.edu.co", "secreto", {"rol": "admin", "nombre": "Ana"})
    gw.add_user("cliente@empresa.co", "clave123", {"rol": "cliente"})
    return gw


@pytest.fixture
def app(gateway):
    return create_app(gateway=gateway)


@pytest.fixture
def client(app):
    return TestClient(app)

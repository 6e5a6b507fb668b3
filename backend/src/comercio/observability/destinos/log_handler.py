# backend/src/comercio/observability/destinos/log_handler.py
"""
Destino de observabilidad vía logging.

- Se suscribe al bus in-memory para eventos auth.* y dashboard.*
- Escribe cada evento en el logger ``comercio.events`` (WARNING para fallas).

Idempotente con _WIRED para evitar duplicar suscripciones en entornos con --reload.
"""

import logging
from typing import Tuple

from ..bus_eventos import BUS, Evento

logger = logging.getLogger("comercio.events")

_WIRED = False

_AUTH_TOPICS: Tuple[str, ...] = (
    "auth.login",
    "auth.logout",
    "auth.register",
    "auth.session_changed",
)

_DASHBOARD_TOPICS: Tuple[str, ...] = (
    "dashboard.fetch_started",
    "dashboard.fetch_completed",
    "dashboard.fetch_failed",
)


def _to_log(evt: Evento) -> None:
    level = logging.WARNING if evt.name.endswith("_failed") or evt.payload.get("outcome") == "error" else logging.INFO
    logger.log(level, "%s cid=%s %s", evt.name, evt.correlation_id, evt.payload)


def wire_logging_destination() -> None:
    """Conecta una única vez el log handler al bus de eventos."""
    global _WIRED
    if _WIRED:
        return

    for topic in _AUTH_TOPICS + _DASHBOARD_TOPICS:
        BUS.subscribe(topic, _to_log)

    _WIRED = True
    logger.info("Observability logging wired for topics: %s", _AUTH_TOPICS + _DASHBOARD_TOPICS)

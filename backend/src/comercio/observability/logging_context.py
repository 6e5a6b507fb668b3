# backend/src/comercio/observability/logging_context.py
from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Optional

# correlation_id del request (o ciclo de fetch) en curso
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="-")

_INSTALLED = False


def set_correlation_id(cid: Optional[str]) -> None:
    """Fija el correlation_id del contexto actual ('-' si viene vacío)."""
    correlation_id_var.set((cid or "").strip() or "-")


def get_correlation_id() -> str:
    return correlation_id_var.get()


def install_logrecord_factory() -> None:
    """
    Instala una LogRecordFactory que copia el correlation_id de la ContextVar
    en cada LogRecord. No combinar con ``extra={"correlation_id": ...}``:
    ``Logger.makeRecord`` rechaza sobrescribir atributos ya presentes.

    Idempotente: en recargas no encadena factories repetidas.
    """
    global _INSTALLED
    if _INSTALLED:
        return

    old_factory = logging.getLogRecordFactory()

    def record_factory(*args, **kwargs):
        record = old_factory(*args, **kwargs)
        record.__dict__["correlation_id"] = correlation_id_var.get() or "-"
        return record

    logging.setLogRecordFactory(record_factory)
    _INSTALLED = True

# backend/src/comercio/observability/bus_eventos.py
from __future__ import annotations
from typing import Any, Callable, Dict, List
from dataclasses import dataclass
import logging
import time
import uuid

from .logging_context import get_correlation_id


@dataclass(frozen=True)
class Evento:
    name: str              # e.g., "dashboard.fetch_failed"
    ts: float              # epoch seconds
    correlation_id: str    # cid del request o del ciclo de fetch
    payload: Dict[str, Any]


class EventBus:
    """Bus pub/sub in-memory con entrega sin garantías.

    Un handler que falla nunca interrumpe el flujo del dominio.
    """

    def __init__(self) -> None:
        self._subs: Dict[str, List[Callable[[Evento], None]]] = {}
        self._log = logging.getLogger("comercio.events.bus")

    def subscribe(self, topic: str, handler: Callable[[Evento], None]) -> None:
        self._subs.setdefault(topic, []).append(handler)
        self._log.debug("Suscrito handler a topic=%s: %s",
                        topic, getattr(handler, "__name__", repr(handler)))

    def unsubscribe(self, topic: str, handler: Callable[[Evento], None]) -> None:
        handlers = self._subs.get(topic, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, topic: str, payload: Dict[str, Any]) -> Evento:
        cid = payload.get("correlation_id") or get_correlation_id()
        evt = Evento(
            name=topic,
            ts=time.time(),
            correlation_id=cid if cid and cid != "-" else str(uuid.uuid4()),
            payload=payload,
        )
        for handler in list(self._subs.get(topic, [])):
            try:
                handler(evt)
            except Exception as e:
                self._log.warning("Handler error for topic=%s: %s", topic, e)
        return evt


# Singleton del proceso
BUS = EventBus()


def publicador(event: str, payload: Dict[str, Any]) -> Evento:
    """Punto único para publicar eventos desde el dominio."""
    return BUS.publish(event, payload)


def suscribir(topic: str, handler: Callable[[Evento], None]) -> None:
    BUS.subscribe(topic, handler)


__all__ = ["Evento", "EventBus", "BUS", "publicador", "suscribir"]

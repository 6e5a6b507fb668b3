# backend/src/comercio/gateway/memoria.py
"""Gateway en memoria.

Implementa el mismo contrato que :class:`~comercio.gateway.supabase.SupabaseGateway`
sin red. Se usa en tests y en modo demo (``CE_GATEWAY=memoria``), cargando las
filas de las vistas desde un JSON generado por ``tools/sim/generate_synthetic.py``.

Permite inyectar fallas por vista (``fail_view``) y por operación de auth
(``fail_auth``) para ejercitar los caminos de error.
"""

from __future__ import annotations

import asyncio
import json
import uuid
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .base import (
    EV_SIGNED_IN,
    EV_SIGNED_OUT,
    AuthFault,
    ChangeNotifier,
    QueryFault,
    Row,
    Sesion,
    SessionCallback,
    Subscription,
    Usuario,
)


class MemoryGateway:
    """Gateway determinístico para pruebas y demo offline."""

    def __init__(
        self,
        views: Optional[Mapping[str, List[Row]]] = None,
        *,
        auto_confirm: bool = True,
        latency_s: float = 0.0,
    ) -> None:
        self.views: Dict[str, List[Row]] = {k: list(v) for k, v in (views or {}).items()}
        self.auto_confirm = auto_confirm
        self.latency_s = latency_s
        self.session: Optional[Sesion] = None
        self.query_log: List[str] = []
        self._users: Dict[str, Dict[str, Any]] = {}
        self._view_faults: Dict[str, str] = {}
        self._auth_faults: Dict[str, str] = {}
        self._notifier = ChangeNotifier()

    @classmethod
    def from_json(cls, path: str | Path, **kwargs: Any) -> "MemoryGateway":
        """Carga vistas desde un JSON ``{"views": {nombre: [filas]}}``."""
        with Path(path).open("r", encoding="utf-8") as f:
            data = json.load(f)
        return cls(views=data.get("views", data), **kwargs)

    # ------------------------------------------------------------------
    # Helpers de test
    # ------------------------------------------------------------------

    def add_user(self, email: str, password: str, metadata: Optional[Mapping[str, Any]] = None) -> Usuario:
        user = Usuario(id=str(uuid.uuid4()), email=email, metadata=dict(metadata or {}))
        self._users[email] = {"password": password, "user": user}
        return user

    def fail_view(self, view: str, message: str) -> None:
        self._view_faults[view] = message

    def fail_auth(self, operation: str, message: str) -> None:
        """``operation`` ∈ {get_current_session, sign_in, sign_up, sign_out}."""
        self._auth_faults[operation] = message

    def clear_faults(self) -> None:
        self._view_faults.clear()
        self._auth_faults.clear()

    def emit(self, event: str, sesion: Optional[Sesion]) -> None:
        """Simula un cambio de sesión empujado por el servidor."""
        self.session = sesion
        self._notifier.notify(event, sesion)

    @property
    def subscriber_count(self) -> int:
        return len(self._notifier)

    def _check_auth(self, operation: str) -> None:
        message = self._auth_faults.get(operation)
        if message is not None:
            raise AuthFault(message)

    def _new_session(self, user: Usuario) -> Sesion:
        return Sesion(usuario=user, access_token=uuid.uuid4().hex, refresh_token=uuid.uuid4().hex)

    # ------------------------------------------------------------------
    # Contrato Gateway
    # ------------------------------------------------------------------

    async def get_current_session(self) -> Optional[Sesion]:
        self._check_auth("get_current_session")
        return self.session

    def on_change(self, callback: SessionCallback) -> Subscription:
        return self._notifier.add(callback)

    async def sign_in(self, email: str, password: str) -> Sesion:
        self._check_auth("sign_in")
        entry = self._users.get(email)
        if entry is None or entry["password"] != password:
            raise AuthFault("Invalid login credentials", status=400)
        sesion = self._new_session(entry["user"])
        self.emit(EV_SIGNED_IN, sesion)
        return sesion

    async def sign_up(
        self, email: str, password: str, metadata: Mapping[str, Any]
    ) -> Optional[Usuario]:
        self._check_auth("sign_up")
        if email in self._users:
            raise AuthFault("User already registered", status=422)
        user = self.add_user(email, password, metadata)
        if self.auto_confirm:
            self.emit(EV_SIGNED_IN, self._new_session(user))
        return user

    async def sign_out(self) -> None:
        self._check_auth("sign_out")
        self.emit(EV_SIGNED_OUT, None)

    async def query(self, view: str, limit: Optional[int] = None) -> List[Row]:
        self.query_log.append(view)
        if self.latency_s:
            await asyncio.sleep(self.latency_s)
        message = self._view_faults.get(view)
        if message is not None:
            raise QueryFault(message)
        if view not in self.views:
            raise QueryFault(f'relation "public.{view}" does not exist', status=404)
        rows = [dict(r) for r in self.views[view]]
        return rows if limit is None else rows[:limit]

# backend/src/comercio/gateway/supabase.py
"""Gateway sobre Supabase (GoTrue para auth + PostgREST para vistas).

Notas
-----
- Se usa un único ``httpx.AsyncClient``; el caller es responsable de llamar a
  :meth:`SupabaseGateway.aclose` al apagar la app.
- La sesión vive en memoria y opcionalmente se persiste como JSON en disco
  (equivalente al almacenamiento local del navegador). Al arrancar,
  :meth:`get_current_session` la restaura y, si expiró, intenta refrescarla.
- No hay reintentos ni backoff: cualquier error HTTP o de transporte se
  reporta como :class:`AuthFault` / :class:`QueryFault`.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import httpx

from .base import (
    EV_SIGNED_IN,
    EV_SIGNED_OUT,
    EV_TOKEN_REFRESHED,
    AuthFault,
    ChangeNotifier,
    QueryFault,
    Row,
    Sesion,
    SessionCallback,
    Subscription,
    Usuario,
    sesion_from_payload,
    sesion_to_payload,
    usuario_from_payload,
)

logger = logging.getLogger(__name__)

# Margen (segundos) para considerar expirado un token antes de tiempo
EXPIRY_MARGIN_S = 10.0

# Respuestas de logout que significan "la sesión ya no existe en el servidor"
_LOGOUT_IGNORED_STATUS = (401, 403, 404)


def _error_message(resp: httpx.Response) -> str:
    """Extrae el mensaje de error legible de una respuesta de Supabase."""
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("error_description", "msg", "message", "error"):
            value = body.get(key)
            if value:
                return str(value)
    return f"HTTP {resp.status_code}"


class SupabaseGateway:
    """Implementación HTTP del contrato :class:`~comercio.gateway.base.Gateway`."""

    def __init__(
        self,
        url: str,
        anon_key: str,
        *,
        session_file: Optional[str | Path] = None,
        timeout: float = 20.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._url = url.rstrip("/")
        self._anon_key = anon_key
        self._session_file = Path(session_file) if session_file else None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._session: Optional[Sesion] = None
        self._restored = False
        self._notifier = ChangeNotifier()

    # ------------------------------------------------------------------
    # Infraestructura
    # ------------------------------------------------------------------

    def _headers(self, token: Optional[str] = None) -> Dict[str, str]:
        return {
            "apikey": self._anon_key,
            "Authorization": f"Bearer {token or self._anon_key}",
            "Accept": "application/json",
        }

    async def _auth_post(
        self,
        path: str,
        payload: Mapping[str, Any],
        *,
        params: Optional[Mapping[str, str]] = None,
        token: Optional[str] = None,
    ) -> httpx.Response:
        try:
            return await self._client.post(
                f"{self._url}/auth/v1/{path}",
                json=dict(payload),
                params=params,
                headers=self._headers(token),
            )
        except httpx.HTTPError as e:
            raise AuthFault(f"Error de red en auth: {e}") from e

    def _set_session(self, sesion: Optional[Sesion], event: str) -> None:
        self._session = sesion
        self._persist()
        self._notifier.notify(event, sesion)

    def _persist(self) -> None:
        if self._session_file is None:
            return
        if self._session is None:
            try:
                self._session_file.unlink(missing_ok=True)
            except OSError as e:
                logger.warning("No se pudo borrar la sesión persistida %s: %s", self._session_file, e)
            return
        try:
            self._session_file.parent.mkdir(parents=True, exist_ok=True)
            with self._session_file.open("w", encoding="utf-8") as f:
                json.dump(sesion_to_payload(self._session), f, ensure_ascii=False, indent=2)
        except OSError as e:
            logger.warning("No se pudo persistir la sesión en %s: %s", self._session_file, e)

    def _restore(self) -> Optional[Sesion]:
        if self._session_file is None or not self._session_file.exists():
            return None
        try:
            with self._session_file.open("r", encoding="utf-8") as f:
                return sesion_from_payload(json.load(f))
        except (OSError, ValueError) as e:
            logger.warning("Sesión persistida ilegible (%s): %s", self._session_file, e)
            return None

    @staticmethod
    def _with_expiry(data: Dict[str, Any]) -> Dict[str, Any]:
        if data.get("expires_at") is None and data.get("expires_in") is not None:
            data = {**data, "expires_at": time.time() + float(data["expires_in"])}
        return data

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    async def get_current_session(self) -> Optional[Sesion]:
        if not self._restored:
            self._restored = True
            if self._session is None:
                self._session = self._restore()

        sesion = self._session
        if sesion is None or sesion.expires_at is None:
            return sesion
        if sesion.expires_at - EXPIRY_MARGIN_S > time.time():
            return sesion

        if not sesion.refresh_token:
            self._set_session(None, EV_SIGNED_OUT)
            return None
        return await self._refresh(sesion.refresh_token)

    async def _refresh(self, refresh_token: str) -> Sesion:
        resp = await self._auth_post(
            "token",
            {"refresh_token": refresh_token},
            params={"grant_type": "refresh_token"},
        )
        if resp.status_code >= 400:
            message = _error_message(resp)
            self._set_session(None, EV_SIGNED_OUT)
            raise AuthFault(message, status=resp.status_code)
        sesion = sesion_from_payload(self._with_expiry(resp.json()))
        self._set_session(sesion, EV_TOKEN_REFRESHED)
        return sesion

    def on_change(self, callback: SessionCallback) -> Subscription:
        return self._notifier.add(callback)

    async def sign_in(self, email: str, password: str) -> Sesion:
        resp = await self._auth_post(
            "token",
            {"email": email, "password": password},
            params={"grant_type": "password"},
        )
        if resp.status_code >= 400:
            raise AuthFault(_error_message(resp), status=resp.status_code)
        sesion = sesion_from_payload(self._with_expiry(resp.json()))
        self._set_session(sesion, EV_SIGNED_IN)
        return sesion

    async def sign_up(
        self, email: str, password: str, metadata: Mapping[str, Any]
    ) -> Optional[Usuario]:
        resp = await self._auth_post(
            "signup",
            {"email": email, "password": password, "data": dict(metadata)},
        )
        if resp.status_code >= 400:
            raise AuthFault(_error_message(resp), status=resp.status_code)

        body = resp.json() or {}
        # Con auto-confirmación el proveedor devuelve una sesión completa;
        # si requiere confirmación por correo devuelve solo el usuario.
        if body.get("access_token"):
            sesion = sesion_from_payload(self._with_expiry(body))
            self._set_session(sesion, EV_SIGNED_IN)
            return sesion.usuario
        if isinstance(body.get("user"), dict) and body["user"].get("id"):
            return usuario_from_payload(body["user"])
        if body.get("id"):
            return usuario_from_payload(body)
        return None

    async def sign_out(self) -> None:
        sesion = self._session
        if sesion is not None and sesion.access_token:
            # La sesión local se descarta aunque el proveedor falle.
            try:
                resp = await self._auth_post("logout", {}, token=sesion.access_token)
            finally:
                self._set_session(None, EV_SIGNED_OUT)
            if resp.status_code >= 400 and resp.status_code not in _LOGOUT_IGNORED_STATUS:
                raise AuthFault(_error_message(resp), status=resp.status_code)
            return
        self._set_session(None, EV_SIGNED_OUT)

    # ------------------------------------------------------------------
    # Vistas
    # ------------------------------------------------------------------

    async def query(self, view: str, limit: Optional[int] = None) -> List[Row]:
        params: Dict[str, str] = {"select": "*"}
        if limit is not None:
            params["limit"] = str(int(limit))
        token = self._session.access_token if self._session else None

        try:
            resp = await self._client.get(
                f"{self._url}/rest/v1/{view}",
                params=params,
                headers=self._headers(token),
            )
        except httpx.HTTPError as e:
            raise QueryFault(f"Error de red consultando {view}: {e}") from e

        if resp.status_code >= 400:
            raise QueryFault(_error_message(resp), status=resp.status_code)

        try:
            body = resp.json()
        except ValueError as e:
            raise QueryFault(f"Respuesta no JSON para {view}") from e
        if not isinstance(body, list):
            raise QueryFault(f"Respuesta inesperada para {view}: se esperaba una lista")
        return [dict(r) for r in body]

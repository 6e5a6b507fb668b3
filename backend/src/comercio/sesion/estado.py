# backend/src/comercio/sesion/estado.py
"""Gestor de estado de sesión.

Fuente única de verdad para "quién es el usuario actual" y "qué puede hacer".

Reglas
------
- Una sola :class:`~comercio.gateway.base.Sesion` (o ninguna) vive a la vez y
  solo este componente la escribe. Cada escritura es un reemplazo completo.
- Toda falla del Gateway se captura aquí y se convierte en un
  :class:`AuthResult` etiquetado; nada se propaga como excepción al caller.
- El rol se deriva de ``metadata["rol"]``. Valores desconocidos o ausentes se
  tratan como "sin rol" (``None``), aunque la sesión siga autenticada.

Concurrencia
------------
Todo corre en un único event loop. El callback de cambios del Gateway puede
dispararse en cualquier momento entre ``await``; por eso ``initialize()`` solo
aplica la sesión leída si ninguna otra escritura ocurrió mientras esperaba.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Literal, Mapping, Optional

from comercio.gateway.base import (
    AuthFault,
    Gateway,
    GatewayFault,
    Sesion,
    Subscription,
    Usuario,
)
from comercio.observability.eventos import emit_auth, emit_session_changed

logger = logging.getLogger(__name__)

ROLE_METADATA_KEY = "rol"

MSG_LOGIN_UNEXPECTED = "Error inesperado al iniciar sesión"
MSG_REGISTER_UNEXPECTED = "Error inesperado al registrarse"
MSG_REGISTER_NO_IDENTITY = "No se pudo registrar el usuario"
MSG_MISSING_CREDENTIALS = "Email y contraseña son obligatorios"

_CREDENTIAL_FIELDS = ("email", "password")


class Rol(str, Enum):
    """Roles reconocidos. No hay jerarquía: ``admin`` no implica ``cliente``."""

    ADMIN = "admin"
    CLIENTE = "cliente"


def rol_de(sesion: Optional[Sesion]) -> Optional[Rol]:
    """Rol tipado de una sesión; ``None`` si no hay sesión o el valor no se reconoce."""
    if sesion is None:
        return None
    raw = sesion.usuario.metadata.get(ROLE_METADATA_KEY)
    if not isinstance(raw, str):
        return None
    try:
        return Rol(raw)
    except ValueError:
        return None


AuthStatus = Literal["ok", "error", "sin_identidad"]


@dataclass(frozen=True)
class AuthResult:
    """Resultado etiquetado de login/registro.

    - ``ok``: ``usuario`` presente.
    - ``error``: ``message`` con el texto del Gateway (verbatim) o genérico.
    - ``sin_identidad``: el Gateway aceptó el registro pero no devolvió usuario.
    """

    status: AuthStatus
    usuario: Optional[Usuario] = None
    message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status == "ok"

    @classmethod
    def ok(cls, usuario: Usuario) -> "AuthResult":
        return cls("ok", usuario=usuario)

    @classmethod
    def error(cls, message: str) -> "AuthResult":
        return cls("error", message=message)


SessionObserver = Callable[[Optional[Sesion]], None]


class SessionManager:
    """Contenedor explícito del estado de autenticación.

    Se crea con un Gateway y se pasa por referencia a quien lo consuma (routers,
    presentación). Los consumidores pueden registrarse con :meth:`add_observer`
    para enterarse de cada reemplazo de sesión.
    """

    def __init__(self, gateway: Gateway) -> None:
        self._gateway = gateway
        self._sesion: Optional[Sesion] = None
        self._loading = True
        self._initialized = False
        self._writes = 0
        self._subscription: Optional[Subscription] = None
        self._observers: List[SessionObserver] = []

    # ------------------------------------------------------------------
    # Estado
    # ------------------------------------------------------------------

    @property
    def sesion(self) -> Optional[Sesion]:
        return self._sesion

    @property
    def usuario(self) -> Optional[Usuario]:
        return self._sesion.usuario if self._sesion else None

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def rol(self) -> Optional[Rol]:
        return rol_de(self._sesion)

    def add_observer(self, observer: SessionObserver) -> Callable[[], None]:
        """Registra un observador; devuelve la función para darlo de baja."""
        self._observers.append(observer)

        def _remove() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _remove

    def _replace(self, sesion: Optional[Sesion]) -> None:
        self._sesion = sesion
        self._writes += 1
        for observer in list(self._observers):
            try:
                observer(sesion)
            except Exception as e:
                logger.warning("Observador de sesión falló: %s", e)

    # ------------------------------------------------------------------
    # Ciclo de vida
    # ------------------------------------------------------------------

    async def initialize(self) -> Optional[Sesion]:
        """Restaura la sesión persistida (una sola vez).

        Una falla del Gateway equivale a "sin sesión": la ausencia de
        autenticación no es fatal para el resto del sistema.
        """
        if self._initialized:
            return self._sesion

        writes_before = self._writes
        try:
            sesion = await self._gateway.get_current_session()
        except Exception as e:
            logger.warning("No se pudo recuperar la sesión persistida: %s", e)
            sesion = None

        # Un cambio empujado por el Gateway durante la espera es más reciente.
        if self._writes == writes_before:
            self._replace(sesion)

        self._initialized = True
        self._loading = False
        return self._sesion

    def subscribe_to_changes(self) -> None:
        """Registra el callback de cambios en el Gateway (idempotente)."""
        if self._subscription is None:
            self._subscription = self._gateway.on_change(self._on_gateway_change)

    def _on_gateway_change(self, event: str, sesion: Optional[Sesion]) -> None:
        self._replace(sesion)
        self._loading = False
        logger.debug("Cambio de sesión: %s (autenticado=%s)", event, sesion is not None)
        emit_session_changed(event, sesion.usuario.id if sesion else None)

    def close(self) -> None:
        """Da de baja el callback del Gateway. Seguro de llamar varias veces."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    async def __aenter__(self) -> "SessionManager":
        self.subscribe_to_changes()
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Operaciones
    # ------------------------------------------------------------------

    async def login(self, email: str, password: str) -> AuthResult:
        """Inicia sesión. No reintenta; el mensaje de falla es el del Gateway."""
        try:
            sesion = await self._gateway.sign_in(email, password)
        except GatewayFault as e:
            emit_auth("login", "error", message=e.message)
            return AuthResult.error(e.message)
        except Exception:
            logger.exception("Error en login")
            emit_auth("login", "error", message=MSG_LOGIN_UNEXPECTED)
            return AuthResult.error(MSG_LOGIN_UNEXPECTED)

        # El caller necesita la identidad ya; no se espera al callback.
        self._replace(sesion)
        self._loading = False
        emit_auth("login", "ok", user_id=sesion.usuario.id)
        return AuthResult.ok(sesion.usuario)

    async def register(self, fields: Mapping[str, Any]) -> AuthResult:
        """Registra un usuario.

        ``email`` y ``password`` son credenciales; el resto de ``fields``
        (nombre, rol, empresa, ...) se adjunta como metadata de la identidad.
        """
        email = fields.get("email")
        password = fields.get("password")
        if not email or not password:
            return AuthResult.error(MSG_MISSING_CREDENTIALS)
        metadata = {k: v for k, v in fields.items() if k not in _CREDENTIAL_FIELDS}

        try:
            usuario = await self._gateway.sign_up(str(email), str(password), metadata)
        except GatewayFault as e:
            emit_auth("register", "error", message=e.message)
            return AuthResult.error(e.message)
        except Exception:
            logger.exception("Error en registro")
            emit_auth("register", "error", message=MSG_REGISTER_UNEXPECTED)
            return AuthResult.error(MSG_REGISTER_UNEXPECTED)

        if usuario is None:
            emit_auth("register", "sin_identidad", message=MSG_REGISTER_NO_IDENTITY)
            return AuthResult("sin_identidad", message=MSG_REGISTER_NO_IDENTITY)

        emit_auth("register", "ok", user_id=usuario.id)
        return AuthResult.ok(usuario)

    async def logout(self) -> None:
        """Cierra sesión. La sesión local queda limpia aunque el Gateway falle."""
        user_id = self._sesion.usuario.id if self._sesion else None
        try:
            await self._gateway.sign_out()
        except AuthFault as e:
            logger.error("Error en logout: %s", e.message)
            emit_auth("logout", "error", user_id=user_id, message=e.message)
        except Exception as e:
            logger.error("Error en logout: %s", e)
            emit_auth("logout", "error", user_id=user_id, message=str(e))
        else:
            emit_auth("logout", "ok", user_id=user_id)
        finally:
            if self._sesion is not None:
                self._replace(None)

    # ------------------------------------------------------------------
    # Predicados de autorización
    # ------------------------------------------------------------------

    def is_authenticated(self) -> bool:
        return self._sesion is not None

    def has_role(self, role: Rol | str) -> bool:
        """True solo si hay sesión y su rol coincide exactamente (sensible a mayúsculas)."""
        rol = self.rol
        if rol is None:
            return False
        return rol.value == (role.value if isinstance(role, Rol) else role)

    def is_admin(self) -> bool:
        return self.has_role(Rol.ADMIN)

    def is_client(self) -> bool:
        return self.has_role(Rol.CLIENTE)

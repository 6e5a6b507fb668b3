"""comercio.sesion

Estado de autenticación del usuario actual y predicados de rol derivados de la
metadata de la sesión.
"""

from .estado import (
    MSG_LOGIN_UNEXPECTED,
    MSG_REGISTER_NO_IDENTITY,
    MSG_REGISTER_UNEXPECTED,
    ROLE_METADATA_KEY,
    AuthResult,
    Rol,
    SessionManager,
    rol_de,
)

__all__ = [
    "MSG_LOGIN_UNEXPECTED",
    "MSG_REGISTER_NO_IDENTITY",
    "MSG_REGISTER_UNEXPECTED",
    "ROLE_METADATA_KEY",
    "AuthResult",
    "Rol",
    "SessionManager",
    "rol_de",
]

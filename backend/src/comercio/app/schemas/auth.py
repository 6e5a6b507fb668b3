# backend/src/comercio/app/schemas/auth.py
"""Esquemas (Pydantic) para la API ``/auth/*``.

Los contratos exponen la identidad y los predicados de rol del gestor de
sesión; los tokens nunca salen del backend.
"""

from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from comercio.gateway.base import Usuario


class UserOut(BaseModel):
    """Identidad pública del usuario."""

    id: str
    email: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_usuario(cls, usuario: Usuario) -> "UserOut":
        return cls(id=usuario.id, email=usuario.email, metadata=dict(usuario.metadata))


class SessionOut(BaseModel):
    """Contrato para ``GET /auth/session`` y ``POST /auth/logout``."""

    authenticated: bool
    loading: bool = False
    rol: Optional[str] = Field(None, description="Rol reconocido (admin|cliente) o null.")
    user: Optional[UserOut] = None


class LoginIn(BaseModel):
    email: str
    password: str


class RegisterIn(BaseModel):
    """Credenciales + campos de perfil libres (nombre, rol, empresa, ...)."""

    model_config = ConfigDict(extra="allow")

    email: str
    password: str


class AuthOut(BaseModel):
    """Resultado de login/registro."""

    status: Literal["ok", "error", "sin_identidad"]
    message: Optional[str] = None
    user: Optional[UserOut] = None


class RoleCheckOut(BaseModel):
    role: str
    granted: bool

# backend/src/comercio/app/routers/auth.py
"""
Router del contexto 'auth'.

Capa HTTP delgada sobre :class:`comercio.sesion.SessionManager`:
- Los resultados etiquetados del gestor se traducen a códigos HTTP.
- Los mensajes de falla del proveedor de identidad se devuelven tal cual.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from comercio.app.deps import get_session_manager
from comercio.app.schemas.auth import (
    AuthOut,
    LoginIn,
    RegisterIn,
    RoleCheckOut,
    SessionOut,
    UserOut,
)
from comercio.sesion import AuthResult, SessionManager

router = APIRouter()


def _session_out(sesion: SessionManager) -> SessionOut:
    usuario = sesion.usuario
    return SessionOut(
        authenticated=sesion.is_authenticated(),
        loading=sesion.loading,
        rol=sesion.rol.value if sesion.rol else None,
        user=UserOut.from_usuario(usuario) if usuario else None,
    )


def _auth_out(result: AuthResult) -> AuthOut:
    return AuthOut(
        status=result.status,
        message=result.message,
        user=UserOut.from_usuario(result.usuario) if result.usuario else None,
    )


@router.get("/session", response_model=SessionOut)
async def current_session(sesion: SessionManager = Depends(get_session_manager)) -> SessionOut:
    """Sesión actual (restaura la persistida en la primera llamada)."""
    await sesion.initialize()
    return _session_out(sesion)


@router.post("/login", response_model=AuthOut)
async def login(body: LoginIn, sesion: SessionManager = Depends(get_session_manager)) -> AuthOut:
    result = await sesion.login(body.email, body.password)
    if not result.success:
        raise HTTPException(status_code=401, detail=result.message)
    return _auth_out(result)


@router.post("/register", response_model=AuthOut, status_code=201)
async def register(body: RegisterIn, sesion: SessionManager = Depends(get_session_manager)):
    result = await sesion.register(body.model_dump())
    if result.status == "error":
        raise HTTPException(status_code=400, detail=result.message)
    if result.status == "sin_identidad":
        # Aceptado por el proveedor pero sin identidad: no es un éxito.
        return JSONResponse(status_code=202, content=_auth_out(result).model_dump(mode="json"))
    return _auth_out(result)


@router.post("/logout", response_model=SessionOut)
async def logout(sesion: SessionManager = Depends(get_session_manager)) -> SessionOut:
    await sesion.logout()
    return _session_out(sesion)


@router.get("/roles/{role}", response_model=RoleCheckOut)
def check_role(role: str, sesion: SessionManager = Depends(get_session_manager)) -> RoleCheckOut:
    return RoleCheckOut(role=role, granted=sesion.has_role(role))

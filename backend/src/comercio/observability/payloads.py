# backend/src/comercio/observability/payloads.py
from __future__ import annotations
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, Field
from datetime import datetime


class AuthEvent(BaseModel):
    operation: Literal["login", "logout", "register"]
    outcome: Literal["ok", "error", "sin_identidad"]
    user_id: Optional[str] = None
    message: Optional[str] = None
    ts: Optional[datetime] = None


class SessionChanged(BaseModel):
    event: str = Field(..., description="Evento del proveedor (SIGNED_IN, SIGNED_OUT, ...)")
    authenticated: bool
    user_id: Optional[str] = None
    ts: Optional[datetime] = None


class FetchStarted(BaseModel):
    n_queries: int = Field(..., ge=1)
    ts: Optional[datetime] = None


class FetchCompleted(BaseModel):
    latencia_ms: int = Field(..., ge=0)
    filas_por_vista: Dict[str, int]
    total_operaciones: int
    ts: Optional[datetime] = None


class FetchFailed(BaseModel):
    latencia_ms: int = Field(..., ge=0)
    error: str
    vistas_fallidas: List[str] = Field(default_factory=list)
    ts: Optional[datetime] = None

# backend/src/comercio/dashboard/formato.py
"""Helpers de formato para valores del Dashboard.

Funciones puras; su salida forma parte del contrato porque cualquier capa de
presentación debe mostrar exactamente los mismos textos.

- Moneda: escalado a K/M/B con un decimal; redondeo "half away from zero"
  sobre el valor binario exacto (igual que ``Number.prototype.toFixed``).
- Números: agrupación es-ES (``.`` miles, ``,`` decimales, hasta 3 decimales).
  Con menos de cinco dígitos enteros no se agrupa (``1234`` → ``"1234"``).
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Optional, Union

Number = Union[int, float]

_SCALES = (
    (1_000_000_000, "B"),
    (1_000_000, "M"),
    (1_000, "K"),
)


def _clean(value: Optional[Number]) -> float:
    """None/NaN/inf → 0 (equivalente al ``valor || 0`` de los callers)."""
    if value is None:
        return 0.0
    try:
        v = float(value)
    except (TypeError, ValueError):
        return 0.0
    return v if math.isfinite(v) else 0.0


def _fixed(value: float, digits: int) -> str:
    exact = Decimal(value)
    quantum = Decimal(1).scaleb(-digits)
    with localcontext() as ctx:
        # quantize exige que todos los dígitos del resultado quepan en la precisión
        ctx.prec = max(ctx.prec, exact.adjusted() + digits + 2)
        return str(exact.quantize(quantum, rounding=ROUND_HALF_UP))


def round_half_up(value: Number) -> int:
    """Redondeo al entero más cercano; los empates suben (``Math.round``)."""
    return int(math.floor(float(value) + 0.5))


def format_currency(value: Optional[Number]) -> str:
    """``950`` → ``$950``, ``1500`` → ``$1.5K``, ``2_300_000`` → ``$2.3M``."""
    v = _clean(value)
    for threshold, suffix in _SCALES:
        if v >= threshold:
            return f"${_fixed(v / threshold, 1)}{suffix}"
    return f"${_fixed(v, 0)}"


def format_number(value: Optional[Number]) -> str:
    """Formato es-ES: ``12345`` → ``12.345``; ``1234.5`` → ``1234,5``."""
    v = _clean(value)
    text = _fixed(abs(v), 3)
    int_part, _, frac_part = text.partition(".")
    frac_part = frac_part.rstrip("0")

    if len(int_part) >= 5:
        groups = []
        while int_part:
            groups.append(int_part[-3:])
            int_part = int_part[:-3]
        int_part = ".".join(reversed(groups))

    sign = "-" if v < 0 and (int_part.strip("0.") or frac_part) else ""
    return f"{sign}{int_part}" + (f",{frac_part}" if frac_part else "")

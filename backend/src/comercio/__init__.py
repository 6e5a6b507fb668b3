"""comercio

Backend del Dashboard de Comercio Internacional.

Subpaquetes principales
-----------------------
- :mod:`comercio.gateway`: contrato del servicio remoto (auth + vistas) y sus
  implementaciones (Supabase vía HTTP, memoria).
- :mod:`comercio.sesion`: gestor de estado de sesión y predicados de rol.
- :mod:`comercio.dashboard`: pipeline de agregación, métricas derivadas y
  helpers de formato.
- :mod:`comercio.app`: API FastAPI (routers delgados sobre lo anterior).
"""

__version__ = "0.1.0"

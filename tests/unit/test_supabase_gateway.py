"""tests.unit.test_supabase_gateway

Gateway HTTP contra Supabase simulado con ``httpx.MockTransport``:
- mapeo de endpoints GoTrue/PostgREST y headers
- traducción de errores HTTP/transporte a AuthFault/QueryFault
- persistencia y refresco de la sesión en disco
"""

from __future__ import annotations

import asyncio
import json
import time
from pathlib import Path

import httpx
import pytest

from comercio.gateway import AuthFault, QueryFault, SupabaseGateway
from comercio.sesion import SessionManager

URL = "https://demo.supabase.co"
KEY = "anon-key"


def _token_body(uid="u-1", rol="admin", expires_in=3600):
    return {
        "access_token": f"access-{uid}",
        "refresh_token": f"refresh-{uid}",
        "expires_in": expires_in,
        "user": {"id": uid, "email": f"{uid}@x.co", "user_metadata": {"rol": rol}},
    }


class Recorder:
    """Handler de MockTransport que registra requests y responde con una cola."""

    def __init__(self, *responses):
        self.requests = []
        self.responses = list(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        resp = self.responses.pop(0)
        if isinstance(resp, Exception):
            raise resp
        return resp


def _gateway(handler, **kwargs) -> SupabaseGateway:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SupabaseGateway(URL, KEY, client=client, **kwargs)


def _run(coro):
    return asyncio.run(coro)


def test_sign_in_ok_notifica_y_guarda_sesion():
    rec = Recorder(httpx.Response(200, json=_token_body()))
    gw = _gateway(rec)
    eventos = []
    gw.on_change(lambda ev, s: eventos.append((ev, s.usuario.id if s else None)))

    sesion = _run(gw.sign_in("u-1@x.co", "pw"))

    req = rec.requests[0]
    assert req.method == "POST"
    assert req.url.path == "/auth/v1/token"
    assert req.url.params["grant_type"] == "password"
    assert req.headers["apikey"] == KEY
    assert json.loads(req.content) == {"email": "u-1@x.co", "password": "pw"}

    assert sesion.usuario.metadata["rol"] == "admin"
    assert sesion.expires_at is not None and sesion.expires_at > time.time()
    assert eventos == [("SIGNED_IN", "u-1")]
    assert _run(gw.get_current_session()) == sesion


def test_sign_in_error_usa_mensaje_del_proveedor():
    rec = Recorder(httpx.Response(400, json={"error": "invalid_grant", "error_description": "Invalid login credentials"}))
    gw = _gateway(rec)

    with pytest.raises(AuthFault) as exc:
        _run(gw.sign_in("a", "b"))
    assert exc.value.message == "Invalid login credentials"
    assert exc.value.status == 400


def test_error_de_transporte_en_auth_es_authfault():
    rec = Recorder(httpx.ConnectError("refused"))
    gw = _gateway(rec)
    with pytest.raises(AuthFault):
        _run(gw.sign_in("a", "b"))


def test_sign_up_con_autoconfirmacion_abre_sesion():
    rec = Recorder(httpx.Response(200, json=_token_body(uid="nuevo", rol="cliente")))
    gw = _gateway(rec)

    usuario = _run(gw.sign_up("n@x.co", "pw", {"rol": "cliente", "nombre": "N"}))

    body = json.loads(rec.requests[0].content)
    assert rec.requests[0].url.path == "/auth/v1/signup"
    assert body["data"] == {"rol": "cliente", "nombre": "N"}
    assert usuario.id == "nuevo"
    assert _run(gw.get_current_session()) is not None


def test_sign_up_con_confirmacion_pendiente_devuelve_solo_usuario():
    rec = Recorder(httpx.Response(200, json={"id": "pend", "email": "p@x.co", "user_metadata": {}}))
    gw = _gateway(rec)

    usuario = _run(gw.sign_up("p@x.co", "pw", {}))
    assert usuario.id == "pend"
    assert _run(gw.get_current_session()) is None


def test_sign_up_sin_identidad_devuelve_none():
    gw = _gateway(Recorder(httpx.Response(200, json={})))
    assert _run(gw.sign_up("p@x.co", "pw", {})) is None


def test_sign_out_envia_token_y_limpia():
    rec = Recorder(httpx.Response(200, json=_token_body()), httpx.Response(204))
    gw = _gateway(rec)
    _run(gw.sign_in("a", "b"))

    _run(gw.sign_out())

    logout = rec.requests[1]
    assert logout.url.path == "/auth/v1/logout"
    assert logout.headers["Authorization"] == "Bearer access-u-1"
    assert _run(gw.get_current_session()) is None


def test_sign_out_error_del_servidor_es_authfault():
    rec = Recorder(httpx.Response(200, json=_token_body()), httpx.Response(500, json={"msg": "boom"}))
    gw = _gateway(rec)
    _run(gw.sign_in("a", "b"))

    with pytest.raises(AuthFault) as exc:
        _run(gw.sign_out())
    assert exc.value.message == "boom"


def test_sign_out_con_sesion_ya_invalida_no_falla():
    rec = Recorder(httpx.Response(200, json=_token_body()), httpx.Response(401, json={"msg": "expired"}))
    gw = _gateway(rec)
    _run(gw.sign_in("a", "b"))

    _run(gw.sign_out())
    assert _run(gw.get_current_session()) is None


def test_query_arma_url_y_limite():
    rows = [{"tipo_operacion": "EXPORTACIONES", "total_operaciones": 1}]
    rec = Recorder(httpx.Response(200, json=rows), httpx.Response(200, json=[]))
    gw = _gateway(rec)

    assert _run(gw.query("vista_estadisticas_generales", 10)) == rows
    _run(gw.query("vista_medio_transporte"))

    first, second = rec.requests
    assert first.url.path == "/rest/v1/vista_estadisticas_generales"
    assert first.url.params["select"] == "*"
    assert first.url.params["limit"] == "10"
    assert first.headers["Authorization"] == f"Bearer {KEY}"
    assert "limit" not in second.url.params


def test_query_usa_token_del_usuario_si_hay_sesion():
    rec = Recorder(httpx.Response(200, json=_token_body()), httpx.Response(200, json=[]))
    gw = _gateway(rec)
    _run(gw.sign_in("a", "b"))
    _run(gw.query("vista_operaciones_recientes", 10))
    assert rec.requests[1].headers["Authorization"] == "Bearer access-u-1"


@pytest.mark.parametrize(
    "response, message",
    [
        (httpx.Response(404, json={"message": 'relation "x" does not exist'}), 'relation "x" does not exist'),
        (httpx.Response(500, text="oops"), "HTTP 500"),
        (httpx.Response(200, json={"no": "lista"}), "Respuesta inesperada para x: se esperaba una lista"),
    ],
)
def test_query_errores_son_queryfault(response, message):
    gw = _gateway(Recorder(response))
    with pytest.raises(QueryFault) as exc:
        _run(gw.query("x"))
    assert exc.value.message == message


def test_query_error_de_transporte_es_queryfault():
    gw = _gateway(Recorder(httpx.ReadTimeout("slow")))
    with pytest.raises(QueryFault):
        _run(gw.query("x", 10))


def test_sesion_persistida_se_restaura(tmp_path: Path):
    path = tmp_path / "sesion.json"
    gw = _gateway(Recorder(httpx.Response(200, json=_token_body())), session_file=path)
    _run(gw.sign_in("a", "b"))
    assert path.exists()

    nuevo = _gateway(Recorder(), session_file=path)
    sesion = _run(nuevo.get_current_session())
    assert sesion is not None
    assert sesion.usuario.id == "u-1"


def test_sesion_expirada_se_refresca(tmp_path: Path):
    path = tmp_path / "sesion.json"
    body = _token_body()
    body["expires_at"] = time.time() - 60
    path.write_text(json.dumps(body), encoding="utf-8")

    rec = Recorder(httpx.Response(200, json=_token_body(uid="u-1", rol="cliente")))
    gw = _gateway(rec, session_file=path)
    eventos = []
    gw.on_change(lambda ev, s: eventos.append(ev))

    sesion = _run(gw.get_current_session())

    assert rec.requests[0].url.params["grant_type"] == "refresh_token"
    assert json.loads(rec.requests[0].content) == {"refresh_token": "refresh-u-1"}
    assert sesion.usuario.metadata["rol"] == "cliente"
    assert eventos == ["TOKEN_REFRESHED"]


def test_refresco_fallido_limpia_y_lanza(tmp_path: Path):
    path = tmp_path / "sesion.json"
    body = _token_body()
    body["expires_at"] = time.time() - 60
    path.write_text(json.dumps(body), encoding="utf-8")

    gw = _gateway(Recorder(httpx.Response(400, json={"error_description": "Invalid Refresh Token"})), session_file=path)
    with pytest.raises(AuthFault):
        _run(gw.get_current_session())
    assert not path.exists()


def test_sesion_persistida_corrupta_se_ignora(tmp_path: Path):
    path = tmp_path / "sesion.json"
    path.write_text("{no json", encoding="utf-8")
    gw = _gateway(Recorder(), session_file=path)
    assert _run(gw.get_current_session()) is None


@pytest.mark.parametrize(
    "logout_response",
    [httpx.Response(500, json={"msg": "boom"}), httpx.ConnectError("refused")],
)
def test_logout_fallido_igual_borra_sesion_persistida(tmp_path: Path, logout_response):
    path = tmp_path / "sesion.json"
    rec = Recorder(httpx.Response(200, json=_token_body()), logout_response, httpx.Response(200, json=[]))
    gw = _gateway(rec, session_file=path)
    eventos = []
    gw.on_change(lambda ev, s: eventos.append(ev))
    _run(gw.sign_in("a", "b"))

    with pytest.raises(AuthFault):
        _run(gw.sign_out())

    assert not path.exists()
    assert eventos == ["SIGNED_IN", "SIGNED_OUT"]
    assert _run(gw.get_current_session()) is None
    _run(gw.query("vista_medio_transporte"))
    assert rec.requests[-1].headers["Authorization"] == f"Bearer {KEY}"

    # Un proceso nuevo sobre el mismo archivo arranca sin sesión.
    reiniciado = SessionManager(_gateway(Recorder(), session_file=path))
    _run(reiniciado.initialize())
    assert not reiniciado.is_authenticated()


def test_sesion_no_persistible_igual_se_notifica(tmp_path: Path):
    path = tmp_path / "es_un_directorio"
    path.mkdir()
    gw = _gateway(Recorder(httpx.Response(200, json=_token_body())), session_file=path)
    eventos = []
    gw.on_change(lambda ev, s: eventos.append(ev))

    sesion = _run(gw.sign_in("a", "b"))

    assert eventos == ["SIGNED_IN"]
    assert _run(gw.get_current_session()) == sesion

"""Unit tests for middleware auth (src/collabnotes/middleware/auth.py)."""

import uuid
from typing import Optional

from fastapi import Depends, FastAPI, WebSocket
from fastapi.testclient import TestClient

from src.collabnotes.middleware import auth as auth_module
from src.collabnotes.middleware.auth import (
    JWTBearer,
    extract_websocket_token,
    get_current_user_id,
    negotiated_subprotocol,
)


def build_app(depends_current_user: bool = False) -> FastAPI:
    app = FastAPI()

    @app.get("/protected")
    async def protected(user_id=Depends(JWTBearer())):
        return {"user_id": str(user_id)}

    @app.get("/me")
    async def me(
        user_id=Depends(get_current_user_id) if depends_current_user else Depends(JWTBearer()),
    ):
        return {"user_id": str(user_id)}

    @app.websocket("/ws")
    async def ws(websocket: WebSocket):
        subprotocol = negotiated_subprotocol(websocket)
        await websocket.accept(subprotocol=subprotocol)
        await websocket.send_json({"token": extract_websocket_token(websocket), "subprotocol": subprotocol})
        await websocket.close()

    return app


def _make_bearer(token: Optional[str]) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"} if token is not None else {}


def _resolve_to(monkeypatch, value):
    async def fake(token):
        return value

    monkeypatch.setattr(auth_module, "get_user_id_from_token", fake)


def test_jwtbearer_accepts_valid_token(monkeypatch):
    uid = uuid.uuid4()
    _resolve_to(monkeypatch, uid)

    client = TestClient(build_app())
    resp = client.get("/protected", headers=_make_bearer("valid-token"))
    assert resp.status_code == 200
    assert resp.json() == {"user_id": str(uid)}


def test_jwtbearer_rejects_missing_header():
    client = TestClient(build_app())
    resp = client.get("/protected")
    assert resp.status_code in (401, 403)


def test_jwtbearer_rejects_wrong_scheme():
    client = TestClient(build_app())
    resp = client.get("/protected", headers={"Authorization": "Basic abc"})
    assert resp.status_code in (401, 403)


def test_jwtbearer_rejects_invalid_token(monkeypatch):
    _resolve_to(monkeypatch, None)

    client = TestClient(build_app())
    resp = client.get("/protected", headers=_make_bearer("invalid"))
    assert resp.status_code == 403


def test_get_current_user_id_dependency(monkeypatch):
    uid = uuid.uuid4()
    _resolve_to(monkeypatch, uid)

    client = TestClient(build_app(depends_current_user=True))
    resp = client.get("/me", headers=_make_bearer("valid"))
    assert resp.status_code == 200
    assert resp.json() == {"user_id": str(uid)}


def test_websocket_token_from_query():
    client = TestClient(build_app())
    with client.websocket_connect("/ws?token=abc") as ws:
        assert ws.receive_json() == {"token": "abc", "subprotocol": None}


def test_websocket_token_from_header():
    client = TestClient(build_app())
    with client.websocket_connect("/ws", headers={"Authorization": "Bearer hdr"}) as ws:
        assert ws.receive_json()["token"] == "hdr"


def test_websocket_token_from_subprotocol():
    client = TestClient(build_app())
    with client.websocket_connect("/ws", subprotocols=["bearer", "proto-token"]) as ws:
        assert ws.receive_json() == {"token": "proto-token", "subprotocol": "bearer"}


def test_websocket_without_token():
    client = TestClient(build_app())
    with client.websocket_connect("/ws") as ws:
        assert ws.receive_json()["token"] is None

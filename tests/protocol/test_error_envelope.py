from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from pgnboard.protocol.http.app import create_app


def _new_game(client: TestClient) -> str:
    return client.post("/api/games").json()["game_id"]


def test_error_envelope_for_unknown_game() -> None:
    client = TestClient(create_app())
    r = client.get("/api/games/nope/state", headers={"x-request-id": "req-42"})
    assert r.status_code == 404
    body = r.json()
    assert "error" in body
    err = body["error"]
    assert err["code"] == "not_found"
    assert err["message"] == "game not found"
    assert err["type"] == "client_error"
    assert err["request_id"] == "req-42"
    assert r.headers["x-request-id"] == "req-42"


def test_unhandled_exception_is_internal_error() -> None:
    app: FastAPI = create_app()

    @app.get("/crash")
    def crash():  # type: ignore[no-redef]
        raise RuntimeError("kaboom")

    client = TestClient(app, raise_server_exceptions=False)
    r = client.get("/crash")
    assert r.status_code == 500
    err = r.json()["error"]
    assert err["code"] == "internal_error"
    assert err["type"] == "server_error"
    assert "kaboom" not in err["message"]


def test_invalid_notation_envelope() -> None:
    client = TestClient(create_app())
    game_id = _new_game(client)
    r = client.post(f"/api/games/{game_id}/move", json={"move": "e2e4"})
    assert r.status_code == 400
    err = r.json()["error"]
    assert err["code"] == "invalid_notation"
    assert err["type"] == "client_error"


def test_illegal_move_envelope() -> None:
    client = TestClient(create_app())
    game_id = _new_game(client)
    r = client.post(f"/api/games/{game_id}/move", json={"move": "Nf4"})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "illegal_move"


def test_ambiguous_move_lists_candidates() -> None:
    client = TestClient(create_app())
    game_id = _new_game(client)
    for token in ("d4", "d5", "Nf3", "Nf6"):
        assert client.post(f"/api/games/{game_id}/move", json={"move": token}).status_code == 200
    r = client.post(f"/api/games/{game_id}/move", json={"move": "Nd2"})
    assert r.status_code == 400
    err = r.json()["error"]
    assert err["code"] == "ambiguous_move"
    assert err["candidates"] == ["b1d2", "f3d2"]


def test_invalid_fen_envelope() -> None:
    client = TestClient(create_app())
    r = client.post("/api/games", json={"fen": "8/8/8/8/8/8/8/8"})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "invalid_fen"


def test_non_ascii_digit_in_fen_is_invalid_fen() -> None:
    client = TestClient(create_app(), raise_server_exceptions=False)
    r = client.post("/api/games", json={"fen": "4k3/8/\u00b2222/8/8/8/8/4K3"})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "invalid_fen"


def test_validation_error_envelope() -> None:
    client = TestClient(create_app())
    game_id = _new_game(client)
    r = client.post(f"/api/games/{game_id}/move", json={})
    assert r.status_code == 422
    err = r.json()["error"]
    assert err["code"] == "unprocessable_entity"
    assert any(fe["field"].endswith("move") for fe in err["field_errors"])

    r = client.post("/api/games", json={"side_to_move": "x"})
    assert r.status_code == 422

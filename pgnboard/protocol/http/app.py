from __future__ import annotations

import logging
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field

from .error import (
    chess_error_handler,
    exception_handler,
    http_exception_handler,
    request_validation_exception_handler,
)
from .logging_middleware import RequestIDLoggingMiddleware
from ...engine.errors import ChessError
from ...engine.game import Game
from ...engine.legality import STATUS_CHECKMATE, STATUS_DRAW, STATUS_STALEMATE
from .session import InMemorySessionStore


logger = logging.getLogger(__name__)


class CreateGameRequest(BaseModel):
    fen: Optional[str] = Field(default=None, description="FEN piece placement (first field)")
    side_to_move: str = Field(default="w", pattern="^[wb]$")


class MoveRequest(BaseModel):
    move: str = Field(..., min_length=1, description="Strict PGN move token, e.g., Nf3")


class GameState(BaseModel):
    game_id: str
    fen: str
    placement: str
    side_to_move: str
    status: str
    in_check: bool
    checkmate: bool
    stalemate: bool
    draw: bool
    legal_moves: List[str]
    legal_moves_uci: List[str]
    last_move: Optional[str]
    move_history: List[str]
    move_text: str


def create_app(log_level: str = "INFO", max_sessions: Optional[int] = None) -> FastAPI:
    app = FastAPI(title="pgnboard API", version="0.1.0")

    logging.basicConfig(level=log_level.upper())

    # Middleware & error handling
    app.add_middleware(RequestIDLoggingMiddleware)
    app.add_exception_handler(ChessError, chess_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(Exception, exception_handler)

    store = InMemorySessionStore(max_sessions=max_sessions)

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/games", response_model=GameState, status_code=201)
    async def create_game(req: Optional[CreateGameRequest] = None) -> GameState:
        if req is None or req.fen is None:
            game = Game.new()
        else:
            # InvalidFen propagates to the ChessError handler
            game = Game.from_fen(req.fen, req.side_to_move)
        game_id = store.create(game)
        logger.info("game created", extra={"game_id": game_id})
        return _state(game_id, game)

    @app.get("/api/games/{game_id}/state", response_model=GameState)
    async def get_state(game_id: str) -> GameState:
        return _state(game_id, _require_game(store, game_id))

    @app.post("/api/games/{game_id}/move", response_model=GameState)
    async def make_move(game_id: str, req: MoveRequest) -> GameState:
        game = _require_game(store, game_id)
        game.make_move(req.move)
        return _state(game_id, game)

    @app.post("/api/games/{game_id}/undo", response_model=GameState)
    async def undo(game_id: str) -> GameState:
        game = _require_game(store, game_id)
        game.undo_move()
        return _state(game_id, game)

    @app.delete("/api/games/{game_id}", status_code=204)
    async def delete_game(game_id: str) -> None:
        if not store.delete(game_id):
            raise HTTPException(status_code=404, detail="game not found")
        logger.info("game deleted", extra={"game_id": game_id})

    return app


def _state(game_id: str, game: Game) -> GameState:
    legal = game.legal_moves_for_display()
    status = game.status()
    return GameState(
        game_id=game_id,
        fen=game.to_fen(),
        placement=game.placement(),
        side_to_move=game.side_to_move,
        status=status,
        in_check=game.in_check(),
        checkmate=status == STATUS_CHECKMATE,
        stalemate=status == STATUS_STALEMATE,
        draw=status == STATUS_DRAW,
        legal_moves=game.legal_moves_pgn(),
        legal_moves_uci=[m.to_uci() for m in legal],
        last_move=game.last_move(),
        move_history=game.history(),
        move_text=game.move_text(),
    )


def _require_game(store: InMemorySessionStore, game_id: str) -> Game:
    game = store.get(game_id)
    if game is None:
        raise HTTPException(status_code=404, detail="game not found")
    return game


# Default app for non-factory servers
app = create_app()

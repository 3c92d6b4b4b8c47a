from __future__ import annotations

import pytest

from pgnboard.engine.board import Board
from pgnboard.engine.errors import IllegalMove
from pgnboard.engine.legality import legal_moves
from pgnboard.engine.move import Move, str_to_square
from pgnboard.notation.pgn import move_to_pgn, resolve


def _find(b: Board, uci: str) -> Move:
    return next(m for m in legal_moves(b) if m.to_uci() == uci)


def _render(b: Board, uci: str) -> str:
    return move_to_pgn(b, _find(b, uci))


def test_plain_moves() -> None:
    b = Board.startpos()
    assert _render(b, "e2e4") == "e4"
    assert _render(b, "g1f3") == "Nf3"


def test_file_then_rank_then_square_disambiguation() -> None:
    b = Board.from_fen("4k3/8/8/8/R7/8/8/R3K3")
    assert _render(b, "a1a3") == "R1a3"
    b = Board.from_fen("4k3/8/8/8/8/8/R6R/4K3")
    assert _render(b, "a2d2") == "Rad2"
    # Three queens attack d4: a1 and a7 share the file, a1 and g1 share the rank
    b = Board.from_fen("4k3/Q7/8/8/8/8/8/Q5QK")
    assert _render(b, "a1d4") == "Qa1d4"
    assert _render(b, "a7d4") == "Q7d4"
    assert _render(b, "g1d4") == "Qgd4"


def test_captures_promotions_and_castles() -> None:
    b = Board.from_fen("3rk3/4P3/8/8/8/8/8/4K3")
    assert _render(b, "e7d8q") == "exd8=Q+"
    assert _render(b, "e7d8n") == "exd8=N"
    b = Board.from_fen("r3k2r/8/8/8/8/8/8/R3K2R")
    assert _render(b, "e1g1") == "O-O"
    assert _render(b, "e1c1") == "O-O-O"


def test_mate_suffix() -> None:
    b = Board.startpos()
    for token in ("f3", "e5", "g4"):
        b.apply(resolve(b, token))
    assert _render(b, "d8h4") == "Qh4#"


def test_rendering_round_trips_through_resolve() -> None:
    b = Board.from_fen("r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R")
    legal = legal_moves(b)
    for mv in legal:
        assert resolve(b, move_to_pgn(b, mv, legal)) == mv


def test_illegal_move_not_rendered() -> None:
    b = Board.startpos()
    bogus = Move(str_to_square("e2"), str_to_square("e5"), 0)
    with pytest.raises(IllegalMove):
        move_to_pgn(b, bogus)


def test_check_rendered_without_mating_material() -> None:
    b = Board.from_fen("4k3/8/8/8/8/8/8/2B1K3")
    assert _render(b, "c1b5") == "Bb5+"

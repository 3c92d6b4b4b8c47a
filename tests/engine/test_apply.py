from __future__ import annotations

import pytest

from pgnboard.engine.board import BN, BP, STARTPOS_PLACEMENT, WK, WN, WP, Board
from pgnboard.engine.errors import BoardInvariantError, NothingToUndo
from pgnboard.engine.legality import legal_moves
from pgnboard.engine.move import DOUBLE_PUSH, Move, str_to_square


def _find(b: Board, uci: str) -> Move:
    return next(m for m in legal_moves(b) if m.to_uci() == uci)


def _snapshot(b: Board):
    return (list(b.bb), b.side_to_move, b.castling, b.ep_square, b.halfmove_clock, b.fullmove_number)


def test_double_push_sets_ep_target_and_flips_side() -> None:
    b = Board.startpos()
    mv = _find(b, "e2e4")
    assert mv.kind == DOUBLE_PUSH
    b.apply(mv)
    assert b.placement() == "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR"
    assert b.side_to_move == "b"
    assert b.ep_square == str_to_square("e3")
    assert b.to_fen().endswith(" b KQkq e3 0 1")


def test_counters_follow_moves() -> None:
    b = Board.startpos()
    for uci in ("g1f3", "g8f6", "f3g1"):
        b.apply(_find(b, uci))
    assert b.halfmove_clock == 3
    assert b.fullmove_number == 2
    b.apply(_find(b, "e7e5"))
    assert b.halfmove_clock == 0
    assert b.fullmove_number == 3
    assert b.ep_square == str_to_square("e6")


def test_apply_undo_restores_everything() -> None:
    b = Board.startpos()
    before = _snapshot(b)
    for uci in ("e2e4", "d7d5", "e4d5", "d8d5", "b1c3"):
        b.apply(_find(b, uci))
    for _ in range(5):
        b.undo()
    assert _snapshot(b) == before
    assert b.placement() == STARTPOS_PLACEMENT
    assert b.history == ()


def test_undo_returns_last_move() -> None:
    b = Board.startpos()
    mv = _find(b, "g1f3")
    b.apply(mv)
    assert b.history == (mv,)
    assert b.undo() == mv


def test_undo_on_fresh_board_raises() -> None:
    with pytest.raises(NothingToUndo):
        Board.startpos().undo()


def test_bitboards_disjoint_after_every_apply() -> None:
    b = Board.startpos()
    for uci in ("e2e4", "d7d5", "e4d5", "g8f6", "f1b5", "c7c6", "d5c6", "d8a5", "c6b7", "a5b5"):
        b.apply(_find(b, uci))
        b.check_invariant()
        seen = 0
        for bb in b.bb:
            assert seen & bb == 0
            seen |= bb


def test_capture_of_wrong_piece_rejected_without_mutation() -> None:
    b = Board.startpos()
    before = _snapshot(b)
    # Knight "captures" a piece that is not there
    bogus = Move(str_to_square("g1"), str_to_square("f3"), WN, captured=BN)
    with pytest.raises(BoardInvariantError):
        b.apply(bogus)
    assert _snapshot(b) == before


def test_inconsistent_moves_rejected_without_mutation() -> None:
    b = Board.startpos()
    before = _snapshot(b)
    with pytest.raises(BoardInvariantError):
        b.apply(Move(str_to_square("e1"), str_to_square("e2"), WK))
    with pytest.raises(BoardInvariantError):
        b.apply(Move(str_to_square("e7"), str_to_square("e5"), BP, kind=DOUBLE_PUSH))
    with pytest.raises(BoardInvariantError):
        b.apply(Move(str_to_square("e3"), str_to_square("e4"), WP))
    assert _snapshot(b) == before


def test_copy_is_independent() -> None:
    b = Board.startpos()
    c = b.copy()
    c.apply(_find(c, "e2e4"))
    assert b.placement() == STARTPOS_PLACEMENT
    assert b.side_to_move == "w"
    assert c.history and not b.history

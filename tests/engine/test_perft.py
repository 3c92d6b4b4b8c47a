from __future__ import annotations

import pytest

from pgnboard.engine.board import Board
from pgnboard.engine.perft import divide, perft


def test_perft_startpos_depths_1_3() -> None:
    b = Board.startpos()
    assert perft(b, 0) == 1
    assert perft(b, 1) == 20
    assert perft(b, 2) == 400
    assert perft(b, 3) == 8902


def test_perft_kiwipete_depth_2() -> None:
    # Castling rights KQkq follow from the home squares
    b = Board.from_fen("r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R")
    assert perft(b, 1) == 48
    assert perft(b, 2) == 2039


@pytest.mark.parametrize(
    "placement,expected",
    [
        ("8/2p5/3p4/KP5r/1R3p1k/8/4P1P1/8", [14, 191, 2812]),
        ("r3k2r/Pppp1ppp/1b3nbN/nP6/BBP1P3/q4N2/Pp1P2PP/R2Q1RK1", [6, 264]),
        ("rnbq1k1r/pp1Pbppp/2p5/8/2B5/8/PPP1NnPP/RNBQK2R", [44, 1486]),
    ],
)
def test_perft_reference_positions(placement: str, expected: list[int]) -> None:
    b = Board.from_fen(placement)
    for depth, nodes in enumerate(expected, start=1):
        assert perft(b, depth) == nodes


def test_perft_leaves_board_unchanged() -> None:
    b = Board.from_fen("r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R")
    before = b.to_fen()
    perft(b, 2)
    assert b.to_fen() == before
    assert b.history == ()


def test_divide_sums_to_perft() -> None:
    b = Board.startpos()
    counts = divide(b, 2)
    assert len(counts) == 20
    assert all(n == 20 for n in counts.values())
    assert sum(counts.values()) == perft(b, 2)


def test_perft_negative_depth_rejected() -> None:
    with pytest.raises(ValueError):
        perft(Board.startpos(), -1)

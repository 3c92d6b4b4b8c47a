from __future__ import annotations

from typing import Dict

from .board import Board
from .legality import legal_moves


def perft(board: Board, depth: int) -> int:
    """Compute perft node count for `board` at `depth`.

    Definition:
    - depth == 0 returns 1 (the current node).
    - depth > 0 returns the sum over all legal child positions' perft(depth-1).

    Children are visited with apply/undo on `board` itself, so the board is
    back in its original state when the call returns.
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth == 0:
        return 1

    moves = legal_moves(board)
    if depth == 1:
        return len(moves)
    nodes = 0
    for m in moves:
        board.apply(m)
        try:
            nodes += perft(board, depth - 1)
        finally:
            board.undo()
    return nodes


def divide(board: Board, depth: int) -> Dict[str, int]:
    """Return perft(depth - 1) below each legal root move, keyed by UCI."""
    if depth < 1:
        raise ValueError("depth must be >= 1")
    counts: Dict[str, int] = {}
    for m in legal_moves(board):
        board.apply(m)
        try:
            counts[m.to_uci()] = perft(board, depth - 1)
        finally:
            board.undo()
    return counts

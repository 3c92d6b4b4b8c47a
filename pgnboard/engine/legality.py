from __future__ import annotations

from typing import List, Optional

from .board import BB, BN, BP, BQ, BR, WB, WN, WP, WQ, WR, Board
from .movegen import attack_mask, generate_pseudo_legal, is_attacked
from .move import Move


STATUS_NORMAL = "normal"
STATUS_CHECK = "check"
STATUS_CHECKMATE = "checkmate"
STATUS_STALEMATE = "stalemate"
STATUS_DRAW = "draw"

# (white knights, black knights, white bishops, black bishops) with no mating material
_DEAD_MINORS = frozenset(
    [
        (0, 0, 0, 0),
        (1, 0, 0, 0),
        (0, 1, 0, 0),
        (0, 0, 1, 0),
        (0, 0, 0, 1),
        (1, 1, 0, 0),
        (0, 0, 1, 1),
        (1, 0, 0, 1),
        (0, 1, 1, 0),
        (2, 0, 0, 0),
        (0, 2, 0, 0),
    ]
)

__all__ = [
    "STATUS_NORMAL",
    "STATUS_CHECK",
    "STATUS_CHECKMATE",
    "STATUS_STALEMATE",
    "STATUS_DRAW",
    "attack_mask",
    "is_attacked",
    "in_check",
    "is_legal",
    "legal_moves",
    "has_legal_moves",
    "insufficient_material",
    "game_status",
]


def in_check(board: Board, white: Optional[bool] = None) -> bool:
    """Return True if `white`'s king (default: side to move) is attacked."""
    side_white = board.white_to_move if white is None else white
    ksq = board.king_square(side_white)
    if ksq is None:
        return False
    return is_attacked(board, ksq, by_white=not side_white)


def is_legal(board: Board, move: Move) -> bool:
    """Simulate a pseudo-legal `move` on a scratch copy and test own-king safety.

    Castling is additionally rejected when the king starts on or passes over an
    attacked square; the destination is covered by the simulation.
    """
    white = board.white_to_move
    if move.is_castle:
        transit = (move.from_sq + move.to_sq) // 2
        if is_attacked(board, move.from_sq, by_white=not white) or is_attacked(
            board, transit, by_white=not white
        ):
            return False
    scratch = board.copy()
    scratch.apply(move)
    ksq = scratch.king_square(white)
    if ksq is None:
        return False
    return not is_attacked(scratch, ksq, by_white=not white)


def legal_moves(board: Board) -> List[Move]:
    """Return every legal move for the side to move.

    Each pseudo-legal candidate is applied to a copy of the board and dropped
    when it leaves the mover's king attacked. Pins, discovered checks through
    en passant and king walks into attacked squares all fall out of this
    simulation; no pin bookkeeping is kept.
    """
    return [mv for mv in generate_pseudo_legal(board) if is_legal(board, mv)]


def has_legal_moves(board: Board) -> bool:
    """Return True if the side to move has at least one legal move."""
    return any(is_legal(board, mv) for mv in generate_pseudo_legal(board))


def insufficient_material(board: Board) -> bool:
    """Return True when neither side keeps enough material to mate.

    Any pawn, rook or queen is sufficient. Otherwise only bare kings, a single
    minor piece, two knights on one side, or one minor piece each count as dead.
    """
    bb = board.bb
    if bb[WP] | bb[BP] | bb[WR] | bb[BR] | bb[WQ] | bb[BQ]:
        return False
    minors = (
        bin(bb[WN]).count("1"),
        bin(bb[BN]).count("1"),
        bin(bb[WB]).count("1"),
        bin(bb[BB]).count("1"),
    )
    return minors in _DEAD_MINORS


def game_status(board: Board) -> str:
    """Classify the position for the side to move.

    Mate and stalemate take precedence; a position with moves left but no
    mating material is a draw.

    Returns:
        str: ``"checkmate"``, ``"stalemate"``, ``"draw"``, ``"check"`` or ``"normal"``.
    """
    checked = in_check(board)
    if not has_legal_moves(board):
        return STATUS_CHECKMATE if checked else STATUS_STALEMATE
    if insufficient_material(board):
        return STATUS_DRAW
    return STATUS_CHECK if checked else STATUS_NORMAL

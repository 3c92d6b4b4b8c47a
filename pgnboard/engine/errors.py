from __future__ import annotations

from typing import Sequence, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .move import Move


class ChessError(ValueError):
    """Base class for rejected input. State is never modified when raised."""

    code = "chess_error"


class InvalidFen(ChessError):
    code = "invalid_fen"


class InvalidNotation(ChessError):
    code = "invalid_notation"


class IllegalMove(ChessError):
    code = "illegal_move"


class AmbiguousMove(ChessError):
    """More than one legal move matches the token."""

    code = "ambiguous_move"

    def __init__(self, token: str, candidates: Sequence["Move"]) -> None:
        self.token = token
        self.candidates: Tuple["Move", ...] = tuple(candidates)
        squares = ", ".join(sorted(m.to_uci() for m in self.candidates))
        super().__init__(f"ambiguous move {token!r}: matches {squares}")


class NothingToUndo(ChessError):
    code = "nothing_to_undo"


class BoardInvariantError(RuntimeError):
    """Engine defect: a mutation would produce an inconsistent position."""

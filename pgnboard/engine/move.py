from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


PROMOTION_PIECES = ("q", "r", "b", "n")

# Move kinds
NORMAL = "normal"
DOUBLE_PUSH = "double_push"
CASTLE_KINGSIDE = "castle_kingside"
CASTLE_QUEENSIDE = "castle_queenside"
EN_PASSANT = "en_passant"
PROMOTION = "promotion"
MOVE_KINDS = frozenset(
    (NORMAL, DOUBLE_PUSH, CASTLE_KINGSIDE, CASTLE_QUEENSIDE, EN_PASSANT, PROMOTION)
)


@dataclass(frozen=True)
class Move:
    """Fully specified move, the unit applied to a board.

    Attributes:
        from_sq (int): Origin square index (0-based).
        to_sq (int): Destination square index (0-based).
        piece (int): Piece index (WP..BK) of the moving piece.
        captured (Optional[int]): Piece index removed by the move, if any. For
            en passant this is the passed pawn, which does not stand on
            ``to_sq``.
        kind (str): One of ``MOVE_KINDS``.
        promotion (Optional[str]): Lowercase promotion piece for kind
            ``promotion``, otherwise ``None``.
    """

    from_sq: int
    to_sq: int
    piece: int
    captured: Optional[int] = None
    kind: str = NORMAL
    promotion: Optional[str] = None

    def __post_init__(self) -> None:
        if self.kind not in MOVE_KINDS:
            raise ValueError(f"unknown move kind: {self.kind!r}")
        if (self.kind == PROMOTION) != (self.promotion is not None):
            raise ValueError("promotion piece must be given exactly for promotion moves")
        if self.promotion is not None and self.promotion not in PROMOTION_PIECES:
            raise ValueError(f"invalid promotion piece: {self.promotion!r}")
        if not (0 <= self.from_sq < 64 and 0 <= self.to_sq < 64):
            raise ValueError("square index out of range")

    @property
    def is_capture(self) -> bool:
        return self.captured is not None

    @property
    def is_castle(self) -> bool:
        return self.kind in (CASTLE_KINGSIDE, CASTLE_QUEENSIDE)

    def to_uci(self) -> str:
        """Serialize the move into long algebraic form.

        Returns:
            str: Move encoded like ``"e2e4"`` or ``"e7e8q"``.
        """
        return square_to_str(self.from_sq) + square_to_str(self.to_sq) + (self.promotion or "")


def str_to_square(s: str) -> int:
    """Convert algebraic notation into a 0-based square index.

    Args:
        s (str): Square name such as ``"e4"``.

    Returns:
        int: Zero-based square index.

    Raises:
        ValueError: If ``s`` is not a valid square.
    """
    if len(s) != 2 or s[0] < "a" or s[0] > "h" or s[1] < "1" or s[1] > "8":
        raise ValueError(f"invalid square: {s!r}")
    file = ord(s[0]) - ord("a")
    rank = int(s[1]) - 1
    return rank * 8 + file


def square_to_str(idx: int) -> str:
    """Convert a 0-based square index into algebraic notation.

    Args:
        idx (int): Square index in range 0..63.

    Returns:
        str: Algebraic notation for ``idx``.

    Raises:
        ValueError: If ``idx`` is outside the valid square range.
    """
    if idx < 0 or idx > 63:
        raise ValueError(f"invalid square index: {idx}")
    file = idx % 8
    rank = idx // 8
    return chr(ord("a") + file) + str(rank + 1)


def file_of(idx: int) -> int:
    return idx % 8


def rank_of(idx: int) -> int:
    return idx // 8

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .errors import BoardInvariantError, InvalidFen, NothingToUndo
from .geometry import RANK_1, RANK_8, bit, lsb_index
from .move import (
    CASTLE_KINGSIDE,
    CASTLE_QUEENSIDE,
    DOUBLE_PUSH,
    EN_PASSANT,
    PROMOTION,
    Move,
    square_to_str,
)


STARTPOS_PLACEMENT = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR"


# Piece indices for bitboards
WP, WN, WB, WR, WQ, WK, BP, BN, BB, BR, BQ, BK = range(12)
PIECE_ORDER = [WP, WN, WB, WR, WQ, WK, BP, BN, BB, BR, BQ, BK]
PIECE_TO_CHAR = {
    WP: "P",
    WN: "N",
    WB: "B",
    WR: "R",
    WQ: "Q",
    WK: "K",
    BP: "p",
    BN: "n",
    BB: "b",
    BR: "r",
    BQ: "q",
    BK: "k",
}
CHAR_TO_PIECE = {v: k for k, v in PIECE_TO_CHAR.items()}

# Colourless piece types; a piece index is type + 6 for black
PAWN, KNIGHT, BISHOP, ROOK, QUEEN, KING = range(6)
PROMOTION_TO_TYPE = {"n": KNIGHT, "b": BISHOP, "r": ROOK, "q": QUEEN}

# Castling right -> (king from, king to, rook from, rook to)
CASTLING_SQUARES: Dict[str, Tuple[int, int, int, int]] = {
    "K": (4, 6, 7, 5),
    "Q": (4, 2, 0, 3),
    "k": (60, 62, 63, 61),
    "q": (60, 58, 56, 59),
}
# Squares that must be empty between king and rook
CASTLING_PATHS: Dict[str, int] = {
    "K": bit(5) | bit(6),
    "Q": bit(1) | bit(2) | bit(3),
    "k": bit(61) | bit(62),
    "q": bit(57) | bit(58) | bit(59),
}
# Any move from or to one of these squares drops the listed rights
_RIGHTS_LOST_ON_SQUARE = {4: "KQ", 7: "K", 0: "Q", 60: "kq", 63: "k", 56: "q"}


def piece_type(piece: int) -> int:
    return piece % 6


def is_white_piece(piece: int) -> bool:
    return piece < 6


def colored(ptype: int, white: bool) -> int:
    return ptype if white else ptype + 6


def castling_right_for(move: Move) -> Optional[str]:
    """Return the castling right letter a castle move uses, else ``None``."""
    if move.kind == CASTLE_KINGSIDE:
        return "K" if is_white_piece(move.piece) else "k"
    if move.kind == CASTLE_QUEENSIDE:
        return "Q" if is_white_piece(move.piece) else "q"
    return None


def captured_square(move: Move) -> int:
    """Square the captured piece stands on (differs from to_sq for en passant)."""
    if move.kind == EN_PASSANT:
        return move.to_sq - 8 if is_white_piece(move.piece) else move.to_sq + 8
    return move.to_sq


def _toggle_move(bb: List[int], move: Move) -> None:
    """XOR the squares touched by `move` into `bb`.

    Applying the toggle twice restores the original bitboards, which is what
    ``Board.undo`` relies on.
    """
    white = is_white_piece(move.piece)
    from_bit = bit(move.from_sq)
    to_bit = bit(move.to_sq)
    if move.captured is not None:
        bb[move.captured] ^= bit(captured_square(move))
    if move.kind == PROMOTION:
        bb[move.piece] ^= from_bit
        bb[colored(PROMOTION_TO_TYPE[move.promotion or "q"], white)] ^= to_bit
    else:
        bb[move.piece] ^= from_bit | to_bit
    right = castling_right_for(move)
    if right is not None:
        _, _, rook_from, rook_to = CASTLING_SQUARES[right]
        bb[colored(ROOK, white)] ^= bit(rook_from) | bit(rook_to)


def _overlap(bb: List[int]) -> int:
    """Return the squares claimed by more than one bitboard (0 when consistent)."""
    seen = 0
    clash = 0
    for b in bb:
        clash |= seen & b
        seen |= b
    return clash


@dataclass(frozen=True)
class HistoryEntry:
    """State needed to take back one move."""

    move: Move
    castling: str
    ep_square: Optional[int]
    halfmove_clock: int
    fullmove_number: int


@dataclass
class Board:
    """Board state with bitboards, FEN placement I/O and reversible moves.

    Notes:
    - Squares are 0..63 (a1=0 .. h8=63), rank-major from white's perspective.
    - The twelve bitboards are pairwise disjoint; ``apply`` refuses any move
      that would break this before touching the board.
    """

    # 12 piece bitboards, indexed by constants above
    bb: List[int]
    side_to_move: str  # 'w' or 'b'
    castling: str  # subset of 'KQkq' or ''
    ep_square: Optional[int]  # square index or None
    halfmove_clock: int = 0
    fullmove_number: int = 1
    _history: List[HistoryEntry] = field(default_factory=list, repr=False)

    @classmethod
    def startpos(cls) -> "Board":
        """Create a board initialized to the standard chess starting position."""
        return cls.from_fen(STARTPOS_PLACEMENT)

    @classmethod
    def from_fen(cls, fen: str, side_to_move: str = "w") -> "Board":
        """Create a board from the piece-placement field of a FEN string.

        Args:
            fen (str): Piece placement such as
                ``"rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR"``. When a longer
                FEN is passed only its first field is read.
            side_to_move (str): ``"w"`` or ``"b"``.

        Returns:
            Board: Board with castling rights granted for every king/rook pair
                on its home squares and no en-passant target.

        Raises:
            InvalidFen: If the placement is empty, does not have 8 ranks, has a
                rank that does not sum to 8 squares, contains an unknown piece,
                does not have exactly one king per side, or puts a pawn on the
                first or last rank.
        """
        if not fen or not isinstance(fen, str) or not fen.strip():
            raise InvalidFen("FEN must be a non-empty string")
        if side_to_move not in ("w", "b"):
            raise InvalidFen("side to move must be 'w' or 'b'")
        placement = fen.split()[0]

        ranks = placement.split("/")
        if len(ranks) != 8:
            raise InvalidFen("FEN board must have 8 ranks")
        bb = [0] * 12
        for rank_idx, rank in enumerate(ranks[::-1]):  # start from rank 1 (bottom)
            file_idx = 0
            for ch in rank:
                if ch in "12345678":
                    file_idx += int(ch)
                else:
                    if ch not in CHAR_TO_PIECE:
                        raise InvalidFen(f"invalid piece in FEN: {ch!r}")
                    if file_idx >= 8:
                        raise InvalidFen("too many squares in FEN rank")
                    p = CHAR_TO_PIECE[ch]
                    bb[p] |= bit(rank_idx * 8 + file_idx)
                    file_idx += 1
            if file_idx != 8:
                raise InvalidFen("rank does not sum to 8 squares in FEN")

        for king, name in ((WK, "white"), (BK, "black")):
            if bin(bb[king]).count("1") != 1:
                raise InvalidFen(f"FEN must contain exactly one {name} king")
        if (bb[WP] | bb[BP]) & (RANK_1 | RANK_8):
            raise InvalidFen("pawns cannot stand on the first or last rank")

        castling = "".join(
            right
            for right, (king_sq, _, rook_sq, _) in CASTLING_SQUARES.items()
            if _has_piece(bb, WK if right.isupper() else BK, king_sq)
            and _has_piece(bb, WR if right.isupper() else BR, rook_sq)
        )
        return cls(bb=bb, side_to_move=side_to_move, castling=castling, ep_square=None)

    def placement(self) -> str:
        """Serialize piece placement (the first FEN field)."""
        ranks_str: List[str] = []
        for rank_idx in range(7, -1, -1):  # 7..0 maps to ranks 8..1
            run = 0
            row = []
            for file_idx in range(8):
                p = self.piece_at(rank_idx * 8 + file_idx)
                if p is None:
                    run += 1
                else:
                    if run > 0:
                        row.append(str(run))
                        run = 0
                    row.append(PIECE_TO_CHAR[p])
            if run > 0:
                row.append(str(run))
            ranks_str.append("".join(row))
        return "/".join(ranks_str)

    def to_fen(self) -> str:
        """Serialize the full position into a six-field FEN string for display."""
        castling = self.castling if self.castling else "-"
        ep = square_to_str(self.ep_square) if self.ep_square is not None else "-"
        return (
            f"{self.placement()} {self.side_to_move} {castling} {ep} "
            f"{self.halfmove_clock} {self.fullmove_number}"
        )

    # --- Queries ---
    @property
    def white_to_move(self) -> bool:
        return self.side_to_move == "w"

    @property
    def occupied(self) -> int:
        occ = 0
        for b in self.bb:
            occ |= b
        return occ

    def occupancy(self, white: bool) -> int:
        if white:
            return self.bb[WP] | self.bb[WN] | self.bb[WB] | self.bb[WR] | self.bb[WQ] | self.bb[WK]
        return self.bb[BP] | self.bb[BN] | self.bb[BB] | self.bb[BR] | self.bb[BQ] | self.bb[BK]

    def piece_at(self, sq: int) -> Optional[int]:
        """Return the piece index occupying `sq`, or ``None`` when empty."""
        for idx in PIECE_ORDER:
            if (self.bb[idx] >> sq) & 1:
                return idx
        return None

    def king_square(self, white: bool) -> Optional[int]:
        kbb = self.bb[WK] if white else self.bb[BK]
        if kbb == 0:
            return None
        return lsb_index(kbb)

    @property
    def history(self) -> Tuple[Move, ...]:
        return tuple(entry.move for entry in self._history)

    def check_invariant(self) -> None:
        """Raise BoardInvariantError when two bitboards claim the same square."""
        clash = _overlap(self.bb)
        if clash:
            raise BoardInvariantError(
                f"squares occupied twice: {[square_to_str(s) for s in range(64) if clash >> s & 1]}"
            )

    def copy(self) -> "Board":
        """Return a scratch copy sharing no mutable state (history not copied)."""
        return Board(
            bb=list(self.bb),
            side_to_move=self.side_to_move,
            castling=self.castling,
            ep_square=self.ep_square,
            halfmove_clock=self.halfmove_clock,
            fullmove_number=self.fullmove_number,
        )

    # --- Mutation ---
    def apply(self, move: Move) -> None:
        """Apply `move` in-place and record what is needed to undo it.

        The move is trusted to come from the move generator; only consistency
        with the current bitboards is checked. Bitboards are updated on a copy
        and committed together with castling rights, en-passant target,
        counters and side to move once the occupancy invariant holds.

        Raises:
            BoardInvariantError: If the move does not fit the position (wrong
                side, no piece on the origin, captured piece missing, occupied
                destination) or the result would overlap. The board is left
                unchanged.
        """
        white = self.white_to_move
        if is_white_piece(move.piece) != white:
            raise BoardInvariantError("move belongs to the side not on move")
        if not (self.bb[move.piece] >> move.from_sq) & 1:
            raise BoardInvariantError(
                f"no {PIECE_TO_CHAR[move.piece]} on {square_to_str(move.from_sq)}"
            )
        if move.captured is not None:
            if is_white_piece(move.captured) == white or piece_type(move.captured) == KING:
                raise BoardInvariantError("captured piece must be an enemy non-king piece")
            if not (self.bb[move.captured] >> captured_square(move)) & 1:
                raise BoardInvariantError("captured piece is not on the board")
        elif (self.occupied >> move.to_sq) & 1:
            raise BoardInvariantError(
                f"destination {square_to_str(move.to_sq)} is occupied but no capture given"
            )

        new_bb = list(self.bb)
        _toggle_move(new_bb, move)
        clash = _overlap(new_bb)
        if clash:
            raise BoardInvariantError(f"move {move.to_uci()} would overlap pieces")

        self._history.append(
            HistoryEntry(
                move=move,
                castling=self.castling,
                ep_square=self.ep_square,
                halfmove_clock=self.halfmove_clock,
                fullmove_number=self.fullmove_number,
            )
        )
        self.bb = new_bb

        lost = _RIGHTS_LOST_ON_SQUARE.get(move.from_sq, "") + _RIGHTS_LOST_ON_SQUARE.get(
            move.to_sq, ""
        )
        if lost:
            self.castling = "".join(c for c in self.castling if c not in lost)

        if move.kind == DOUBLE_PUSH:
            self.ep_square = (move.from_sq + move.to_sq) // 2
        else:
            self.ep_square = None

        if piece_type(move.piece) == PAWN or move.captured is not None:
            self.halfmove_clock = 0
        else:
            self.halfmove_clock += 1
        if not white:
            self.fullmove_number += 1
        self.side_to_move = "b" if white else "w"

    def undo(self) -> Move:
        """Take back the most recent move and return it.

        Raises:
            NothingToUndo: If no move has been applied.
        """
        if not self._history:
            raise NothingToUndo("no moves to undo")
        entry = self._history.pop()
        _toggle_move(self.bb, entry.move)
        self.castling = entry.castling
        self.ep_square = entry.ep_square
        self.halfmove_clock = entry.halfmove_clock
        self.fullmove_number = entry.fullmove_number
        self.side_to_move = "w" if self.side_to_move == "b" else "b"
        return entry.move


def _has_piece(bb: List[int], piece: int, sq: int) -> bool:
    return (bb[piece] >> sq) & 1 == 1

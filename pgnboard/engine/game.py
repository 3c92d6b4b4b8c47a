from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..notation.pgn import move_to_pgn, resolve
from .board import Board
from .errors import ChessError, IllegalMove, NothingToUndo
from .legality import (
    STATUS_CHECKMATE,
    STATUS_DRAW,
    STATUS_STALEMATE,
    game_status,
    in_check,
    legal_moves,
)
from .move import Move


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistoryItem:
    move: Move
    pgn: str


@dataclass
class Game:
    """Game session around a board; the only mutation path is a PGN token.

    Responsibility: resolve tokens, apply moves, keep a PGN history for undo and
    display, and report check, mate, stalemate or a dead-material draw after
    each move.
    """

    board: Board
    _entries: List[HistoryItem] = field(default_factory=list, repr=False)

    @classmethod
    def new(cls) -> "Game":
        return cls(board=Board.startpos())

    @classmethod
    def from_fen(cls, placement: str, side_to_move: str = "w") -> "Game":
        return cls(board=Board.from_fen(placement, side_to_move))

    @property
    def side_to_move(self) -> str:
        return self.board.side_to_move

    def make_move(self, token: str) -> str:
        """Resolve `token`, apply it and return the resulting status.

        Raises:
            InvalidNotation, IllegalMove, AmbiguousMove: The token is rejected;
                the game is unchanged.
        """
        try:
            if self.is_over():
                raise IllegalMove("game is over")
            move = resolve(self.board, token)
        except ChessError as exc:
            logger.info("move rejected", extra={"token": token, "reason": str(exc)})
            raise
        pgn = move_to_pgn(self.board, move)
        self.board.apply(move)
        self._entries.append(HistoryItem(move=move, pgn=pgn))
        status = game_status(self.board)
        logger.debug("move applied", extra={"pgn": pgn, "uci": move.to_uci(), "status": status})
        return status

    def undo_move(self) -> Move:
        """Take back the last move.

        Raises:
            NothingToUndo: If no move has been made in this game.
        """
        if not self._entries:
            raise NothingToUndo("no moves to undo")
        move = self.board.undo()
        item = self._entries.pop()
        logger.debug("move undone", extra={"pgn": item.pgn, "uci": move.to_uci()})
        return move

    # --- Queries ---
    def legal_moves_for_display(self) -> Tuple[Move, ...]:
        # A finished game offers nothing to play, dead-material draws included
        if self.is_over():
            return ()
        return tuple(sorted(legal_moves(self.board), key=_display_key))

    def legal_moves_pgn(self) -> List[str]:
        legal = self.legal_moves_for_display()
        return [move_to_pgn(self.board, m, legal) for m in legal]

    def status(self) -> str:
        return game_status(self.board)

    def in_check(self) -> bool:
        return in_check(self.board)

    def checkmate(self) -> bool:
        return self.status() == STATUS_CHECKMATE

    def stalemate(self) -> bool:
        return self.status() == STATUS_STALEMATE

    def draw(self) -> bool:
        """True when neither side has mating material left."""
        return self.status() == STATUS_DRAW

    def is_over(self) -> bool:
        return self.status() in (STATUS_CHECKMATE, STATUS_STALEMATE, STATUS_DRAW)

    def history(self) -> List[str]:
        return [item.pgn for item in self._entries]

    def moves(self) -> Tuple[Move, ...]:
        return tuple(item.move for item in self._entries)

    def last_move(self) -> Optional[str]:
        return self._entries[-1].pgn if self._entries else None

    def placement(self) -> str:
        return self.board.placement()

    def to_fen(self) -> str:
        return self.board.to_fen()

    def move_text(self) -> str:
        """Numbered movetext such as ``"1. e4 e5 2. Nf3"``.

        A game that started with Black on move opens with ``"1... "``.
        """
        white = self.board.white_to_move == (len(self._entries) % 2 == 0)
        number = 1
        parts: List[str] = []
        for i, item in enumerate(self._entries):
            if white:
                parts.append(f"{number}. {item.pgn}")
            else:
                parts.append(f"{number}... {item.pgn}" if i == 0 else item.pgn)
                number += 1
            white = not white
        return " ".join(parts)


def _display_key(move: Move) -> Tuple[int, int, str]:
    return (move.from_sq, move.to_sq, move.promotion or "")

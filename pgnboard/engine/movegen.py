from __future__ import annotations

from typing import List, Optional

from .board import (
    BISHOP,
    BK,
    BP,
    BR,
    CASTLING_PATHS,
    CASTLING_SQUARES,
    KING,
    KNIGHT,
    QUEEN,
    ROOK,
    WB,
    WK,
    WN,
    WP,
    WQ,
    WR,
    Board,
    colored,
)
from .geometry import (
    FULL,
    KING_MOVES,
    KNIGHT_MOVES,
    RANK_1,
    RANK_8,
    bishop_attacks,
    bit,
    iter_squares,
    pawn_attacks,
    pawn_double_pushes,
    pawn_pushes,
    queen_attacks,
    rook_attacks,
)
from .move import (
    CASTLE_KINGSIDE,
    CASTLE_QUEENSIDE,
    DOUBLE_PUSH,
    EN_PASSANT,
    PROMOTION,
    PROMOTION_PIECES,
    Move,
)


def generate_pseudo_legal(board: Board) -> List[Move]:
    """Return pseudo-legal moves for the side to move.

    Moves obey per-piece movement rules but may leave the mover's own king
    attacked; ``legality.legal_moves`` filters those. Order is unspecified.
    """
    white = board.white_to_move
    own = board.occupancy(white)
    opp = board.occupancy(not white)
    occ = own | opp
    # The enemy king is never a capture target
    enemy_king = board.bb[BK if white else WK]
    targetable = FULL ^ own ^ enemy_king
    moves: List[Move] = []

    _pawn_moves(board, white, opp ^ enemy_king, FULL ^ occ, moves)

    for ptype in (KNIGHT, BISHOP, ROOK, QUEEN, KING):
        piece = colored(ptype, white)
        for from_sq in iter_squares(board.bb[piece]):
            targets = _piece_targets(ptype, from_sq, occ) & targetable
            for to_sq in iter_squares(targets):
                captured = _enemy_at(board, to_sq, white) if (opp >> to_sq) & 1 else None
                moves.append(Move(from_sq, to_sq, piece, captured=captured))

    _castling_moves(board, white, occ, moves)
    return moves


def _piece_targets(ptype: int, sq: int, occ: int) -> int:
    if ptype == KNIGHT:
        return KNIGHT_MOVES[sq]
    if ptype == KING:
        return KING_MOVES[sq]
    if ptype == BISHOP:
        return bishop_attacks(sq, occ)
    if ptype == ROOK:
        return rook_attacks(sq, occ)
    return queen_attacks(sq, occ)


def _enemy_at(board: Board, sq: int, white: bool) -> Optional[int]:
    first = BP if white else WP
    for piece in range(first, first + 6):
        if (board.bb[piece] >> sq) & 1:
            return piece
    return None


def _pawn_moves(board: Board, white: bool, opp: int, empty: int, moves: List[Move]) -> None:
    pawn = WP if white else BP
    enemy_pawn = BP if white else WP
    forward = 8 if white else -8
    ep_bit = bit(board.ep_square) if board.ep_square is not None else 0

    for from_sq in iter_squares(board.bb[pawn]):
        b = bit(from_sq)
        if pawn_pushes(b, empty, white):
            _add_pawn_move(moves, from_sq, from_sq + forward, pawn, None)
            if pawn_double_pushes(b, empty, white):
                moves.append(Move(from_sq, from_sq + 2 * forward, pawn, kind=DOUBLE_PUSH))

        attacks = pawn_attacks(b, white)
        for to_sq in iter_squares(attacks & opp):
            _add_pawn_move(moves, from_sq, to_sq, pawn, _enemy_at(board, to_sq, white))
        if attacks & ep_bit:
            moves.append(
                Move(from_sq, board.ep_square, pawn, captured=enemy_pawn, kind=EN_PASSANT)  # type: ignore[arg-type]
            )


def _add_pawn_move(
    moves: List[Move], from_sq: int, to_sq: int, pawn: int, captured: Optional[int]
) -> None:
    if bit(to_sq) & (RANK_1 | RANK_8):
        for promo in PROMOTION_PIECES:
            moves.append(Move(from_sq, to_sq, pawn, captured, kind=PROMOTION, promotion=promo))
    else:
        moves.append(Move(from_sq, to_sq, pawn, captured))


def _castling_moves(board: Board, white: bool, occ: int, moves: List[Move]) -> None:
    rights = [r for r in board.castling if r.isupper() == white]
    if not rights:
        return
    king = WK if white else BK
    rook = WR if white else BR
    in_check: Optional[bool] = None
    for right in rights:
        king_from, king_to, rook_from, _ = CASTLING_SQUARES[right]
        if not ((board.bb[king] >> king_from) & 1 and (board.bb[rook] >> rook_from) & 1):
            continue
        if occ & CASTLING_PATHS[right]:
            continue
        # Advisory: the legality filter re-checks origin, transit and destination
        if in_check is None:
            in_check = is_attacked(board, king_from, by_white=not white)
        if in_check:
            return
        kind = CASTLE_KINGSIDE if right in "Kk" else CASTLE_QUEENSIDE
        moves.append(Move(king_from, king_to, king, kind=kind))


# --- Attack detection (same movement rules, no castling or en passant) ---
def is_attacked(board: Board, sq: int, *, by_white: bool) -> bool:
    """Return True if square `sq` is attacked by the given side.

    Args:
        board (Board): Position to inspect.
        sq (int): Target square.
        by_white (bool): Attacking side.
    """
    bb = board.bb
    o = 0 if by_white else 6
    # A pawn of the attacking side hits sq from the squares a defending pawn on sq would hit
    if pawn_attacks(bit(sq), not by_white) & bb[WP + o]:
        return True
    if KNIGHT_MOVES[sq] & bb[WN + o]:
        return True
    if KING_MOVES[sq] & bb[WK + o]:
        return True
    occ = board.occupied
    if bishop_attacks(sq, occ) & (bb[WB + o] | bb[WQ + o]):
        return True
    if rook_attacks(sq, occ) & (bb[WR + o] | bb[WQ + o]):
        return True
    return False


def attack_mask(board: Board, *, by_white: bool) -> int:
    """Return every square attacked by the given side (AttackMask)."""
    bb = board.bb
    o = 0 if by_white else 6
    occ = board.occupied
    mask = pawn_attacks(bb[WP + o], by_white)
    for sq in iter_squares(bb[WN + o]):
        mask |= KNIGHT_MOVES[sq]
    for sq in iter_squares(bb[WK + o]):
        mask |= KING_MOVES[sq]
    for sq in iter_squares(bb[WB + o] | bb[WQ + o]):
        mask |= bishop_attacks(sq, occ)
    for sq in iter_squares(bb[WR + o] | bb[WQ + o]):
        mask |= rook_attacks(sq, occ)
    return mask

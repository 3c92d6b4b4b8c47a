from __future__ import annotations

from typing import Iterator, List


# Squares are 0..63 (a1=0 .. h8=63), bit i of a bitboard is square i.
FULL = 0xFFFFFFFFFFFFFFFF

FILE_A = 0x0101010101010101
FILE_B = FILE_A << 1
FILE_C = FILE_A << 2
FILE_D = FILE_A << 3
FILE_E = FILE_A << 4
FILE_F = FILE_A << 5
FILE_G = FILE_A << 6
FILE_H = FILE_A << 7
FILES = [FILE_A, FILE_B, FILE_C, FILE_D, FILE_E, FILE_F, FILE_G, FILE_H]

RANK_1 = 0xFF
RANK_2 = RANK_1 << 8
RANK_3 = RANK_1 << 16
RANK_4 = RANK_1 << 24
RANK_5 = RANK_1 << 32
RANK_6 = RANK_1 << 40
RANK_7 = RANK_1 << 48
RANK_8 = RANK_1 << 56
RANKS = [RANK_1, RANK_2, RANK_3, RANK_4, RANK_5, RANK_6, RANK_7, RANK_8]

NOT_FILE_A = FULL ^ FILE_A
NOT_FILE_H = FULL ^ FILE_H
NOT_FILE_AB = FULL ^ (FILE_A | FILE_B)
NOT_FILE_GH = FULL ^ (FILE_G | FILE_H)

# Compass directions, clockwise from north (towards rank 8)
N, NE, E, SE, S, SW, W, NW = range(8)
DIRECTIONS = (N, NE, E, SE, S, SW, W, NW)
ORTHOGONAL = (N, E, S, W)
DIAGONAL = (NE, SE, SW, NW)
# Directions whose squares have increasing indices along the ray
POSITIVE_DIRECTIONS = frozenset((N, NE, E, NW))

# (shift, mask applied after the shift to drop squares that wrapped a board edge)
_DIRECTION_STEPS = {
    N: (8, FULL),
    NE: (9, NOT_FILE_A),
    E: (1, NOT_FILE_A),
    SE: (-7, NOT_FILE_A),
    S: (-8, FULL),
    SW: (-9, NOT_FILE_H),
    W: (-1, NOT_FILE_H),
    NW: (7, NOT_FILE_H),
}

_KNIGHT_OFFSETS = (
    (17, NOT_FILE_A),  # up 2, right 1
    (15, NOT_FILE_H),  # up 2, left 1
    (10, NOT_FILE_AB),  # up 1, right 2
    (6, NOT_FILE_GH),  # up 1, left 2
    (-6, NOT_FILE_AB),  # down 1, right 2
    (-10, NOT_FILE_GH),  # down 1, left 2
    (-15, NOT_FILE_A),  # down 2, right 1
    (-17, NOT_FILE_H),  # down 2, left 1
)


def bit(sq: int) -> int:
    return 1 << sq


def shift(bb: int, offset: int) -> int:
    """Shift a bitboard by `offset` squares, discarding bits pushed off the board."""
    if offset >= 0:
        return (bb << offset) & FULL
    return bb >> -offset


def step(bb: int, direction: int) -> int:
    """Move every set square one step in `direction` without wrapping files."""
    offset, mask = _DIRECTION_STEPS[direction]
    return shift(bb, offset) & mask


def lsb_index(bb: int) -> int:
    """Index of the least significant set bit (bb must be non-zero)."""
    return (bb & -bb).bit_length() - 1


def msb_index(bb: int) -> int:
    return bb.bit_length() - 1


def iter_squares(bb: int) -> Iterator[int]:
    """Yield the square index of every set bit, lowest first."""
    while bb:
        lsb = bb & -bb
        yield lsb.bit_length() - 1
        bb ^= lsb


def popcount(bb: int) -> int:
    return bin(bb).count("1")


def _knight_mask(sq: int) -> int:
    b = bit(sq)
    mask = 0
    for offset, edge in _KNIGHT_OFFSETS:
        mask |= shift(b, offset) & edge
    return mask


def _king_mask(sq: int) -> int:
    b = bit(sq)
    mask = 0
    for direction in DIRECTIONS:
        mask |= step(b, direction)
    return mask


def _ray_mask(sq: int, direction: int) -> int:
    mask = 0
    b = step(bit(sq), direction)
    while b:
        mask |= b
        b = step(b, direction)
    return mask


KNIGHT_MOVES: List[int] = [_knight_mask(sq) for sq in range(64)]
KING_MOVES: List[int] = [_king_mask(sq) for sq in range(64)]
# RAYS[direction][sq]: every square reachable from sq in direction on an empty board
RAYS: List[List[int]] = [[_ray_mask(sq, d) for sq in range(64)] for d in DIRECTIONS]


def ray_attacks(sq: int, direction: int, occupied: int) -> int:
    """Return the ray from `sq` in `direction`, truncated after the first blocker.

    The blocking square itself is included so captures can be derived by
    masking with enemy occupancy.
    """
    ray = RAYS[direction][sq]
    blockers = ray & occupied
    if not blockers:
        return ray
    if direction in POSITIVE_DIRECTIONS:
        first = lsb_index(blockers)
    else:
        first = msb_index(blockers)
    return ray ^ RAYS[direction][first]


def bishop_attacks(sq: int, occupied: int) -> int:
    attacks = 0
    for direction in DIAGONAL:
        attacks |= ray_attacks(sq, direction, occupied)
    return attacks


def rook_attacks(sq: int, occupied: int) -> int:
    attacks = 0
    for direction in ORTHOGONAL:
        attacks |= ray_attacks(sq, direction, occupied)
    return attacks


def queen_attacks(sq: int, occupied: int) -> int:
    return bishop_attacks(sq, occupied) | rook_attacks(sq, occupied)


# --- Pawns: computed per call from the pawn set and current occupancy ---
def pawn_pushes(pawns: int, empty: int, white: bool) -> int:
    """Single-step pushes of `pawns` onto empty squares."""
    if white:
        return shift(pawns, 8) & empty
    return shift(pawns, -8) & empty


def pawn_double_pushes(pawns: int, empty: int, white: bool) -> int:
    """Two-step pushes from the start rank; both squares must be empty."""
    if white:
        single = shift(pawns & RANK_2, 8) & empty
        return shift(single, 8) & empty
    single = shift(pawns & RANK_7, -8) & empty
    return shift(single, -8) & empty


def pawn_attacks(pawns: int, white: bool) -> int:
    """Diagonal squares attacked by `pawns` (regardless of occupancy)."""
    if white:
        return (shift(pawns, 9) & NOT_FILE_A) | (shift(pawns, 7) & NOT_FILE_H)
    return (shift(pawns, -7) & NOT_FILE_A) | (shift(pawns, -9) & NOT_FILE_H)

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from ..engine.board import (
    BISHOP,
    KING,
    KNIGHT,
    PAWN,
    QUEEN,
    ROOK,
    Board,
    piece_type,
)
from ..engine.errors import AmbiguousMove, IllegalMove, InvalidNotation
from ..engine.legality import STATUS_CHECKMATE, game_status, in_check, legal_moves
from ..engine.move import (
    CASTLE_KINGSIDE,
    CASTLE_QUEENSIDE,
    Move,
    file_of,
    rank_of,
    square_to_str,
    str_to_square,
)


LETTER_TO_TYPE = {"N": KNIGHT, "B": BISHOP, "R": ROOK, "Q": QUEEN, "K": KING}
TYPE_TO_LETTER = {v: k for k, v in LETTER_TO_TYPE.items()}
_TYPE_NAMES = {
    PAWN: "pawn",
    KNIGHT: "knight",
    BISHOP: "bishop",
    ROOK: "rook",
    QUEEN: "queen",
    KING: "king",
}

_CASTLE_RE = re.compile(r"(?P<castle>O-O(?:-O)?)")
_PIECE_RE = re.compile(
    r"(?P<piece>[NBRQ])(?P<file>[a-h])?(?P<rank>[1-8])?(?P<capture>x)?(?P<to>[a-h][1-8])"
)
_KING_RE = re.compile(r"(?P<piece>K)(?P<capture>x)?(?P<to>[a-h][1-8])")
_PAWN_PUSH_RE = re.compile(r"(?P<to>[a-h][1-8])(?:=(?P<promotion>[NBRQ]))?")
_PAWN_CAPTURE_RE = re.compile(
    r"(?P<file>[a-h])(?P<capture>x)(?P<to>[a-h][1-8])(?:=(?P<promotion>[NBRQ]))?"
)


@dataclass(frozen=True)
class ParsedToken:
    """Grammar-level reading of one PGN move token.

    Attributes:
        text (str): The token as given.
        piece (Optional[int]): Colourless piece type (PAWN..KING); ``KING``
            for castling.
        to_sq (Optional[int]): Destination square; ``None`` for castling.
        from_file (Optional[int]): File disambiguator (0..7), always set for
            pawn captures.
        from_rank (Optional[int]): Rank disambiguator (0..7).
        capture (bool): Whether the token carries ``x``.
        promotion (Optional[str]): Lowercase promotion piece.
        castle (Optional[str]): Castle move kind for ``O-O`` / ``O-O-O``.
        suffix (Optional[str]): ``"+"``, ``"#"`` or ``None``.
    """

    text: str
    piece: Optional[int] = None
    to_sq: Optional[int] = None
    from_file: Optional[int] = None
    from_rank: Optional[int] = None
    capture: bool = False
    promotion: Optional[str] = None
    castle: Optional[str] = None
    suffix: Optional[str] = None


def parse_token(token: str) -> ParsedToken:
    """Check `token` against the strict PGN move grammar.

    No position is consulted; the result says only what the token claims.

    Raises:
        InvalidNotation: If the token does not match the grammar.
    """
    if not isinstance(token, str) or not token:
        raise InvalidNotation("empty move token")
    body = token
    suffix: Optional[str] = None
    if body[-1] in "+#":
        suffix = body[-1]
        body = body[:-1]

    m = _CASTLE_RE.fullmatch(body)
    if m:
        kind = CASTLE_QUEENSIDE if m.group("castle") == "O-O-O" else CASTLE_KINGSIDE
        return ParsedToken(text=token, castle=kind, piece=KING, suffix=suffix)

    for regex in (_PIECE_RE, _KING_RE):
        m = regex.fullmatch(body)
        if m:
            gd = m.groupdict()
            return ParsedToken(
                text=token,
                piece=LETTER_TO_TYPE[gd["piece"]],
                to_sq=str_to_square(gd["to"]),
                from_file=_file_index(gd.get("file")),
                from_rank=_rank_index(gd.get("rank")),
                capture=gd["capture"] is not None,
                suffix=suffix,
            )

    for regex in (_PAWN_PUSH_RE, _PAWN_CAPTURE_RE):
        m = regex.fullmatch(body)
        if m:
            gd = m.groupdict()
            promo = gd["promotion"]
            return ParsedToken(
                text=token,
                piece=PAWN,
                to_sq=str_to_square(gd["to"]),
                from_file=_file_index(gd.get("file")),
                capture=gd.get("capture") is not None,
                promotion=promo.lower() if promo else None,
                suffix=suffix,
            )

    raise InvalidNotation(f"not a strict PGN move: {token!r}")


def _file_index(ch: Optional[str]) -> Optional[int]:
    return None if ch is None else ord(ch) - ord("a")


def _rank_index(ch: Optional[str]) -> Optional[int]:
    return None if ch is None else int(ch) - 1


def resolve(board: Board, token: str) -> Move:
    """Resolve a PGN token to the unique legal move it denotes.

    Args:
        board (Board): Position with the mover on turn. Not modified.
        token (str): One strict PGN move token such as ``"Nbd2"`` or ``"exd6"``.

    Returns:
        Move: The single legal move matching the token.

    Raises:
        InvalidNotation: If the token fails the grammar, or its ``+``/``#``
            suffix disagrees with the position after the move.
        IllegalMove: If no legal move matches.
        AmbiguousMove: If more than one legal move matches.
    """
    parsed = parse_token(token)
    legal = legal_moves(board)

    if parsed.castle is not None:
        candidates = [m for m in legal if m.kind == parsed.castle]
        if not candidates:
            raise IllegalMove(f"{token!r}: castling is not legal in this position")
    else:
        candidates = _filter_candidates(parsed, legal)

    if len(candidates) > 1:
        raise AmbiguousMove(token, candidates)
    move = candidates[0]
    if parsed.suffix is not None:
        _check_suffix(board, move, parsed)
    return move


def _filter_candidates(parsed: ParsedToken, legal: Sequence[Move]) -> List[Move]:
    """Narrow the legal moves stage by stage, reporting the first stage that empties."""
    dest = square_to_str(parsed.to_sq)  # type: ignore[arg-type]
    name = _TYPE_NAMES[parsed.piece]  # type: ignore[index]
    stages: List[Tuple[Callable[[Move], bool], str]] = [
        (
            lambda m: not m.is_castle
            and piece_type(m.piece) == parsed.piece
            and m.to_sq == parsed.to_sq,
            f"no {name} can move to {dest}",
        ),
        (
            lambda m: parsed.from_file is None or file_of(m.from_sq) == parsed.from_file,
            f"no {name} on the given file can move to {dest}",
        ),
        (
            lambda m: parsed.from_rank is None or rank_of(m.from_sq) == parsed.from_rank,
            f"no {name} on the given rank can move to {dest}",
        ),
        (
            lambda m: m.is_capture == parsed.capture,
            "capture marker does not match the move"
            if parsed.capture
            else f"move to {dest} is a capture and needs 'x'",
        ),
        (
            lambda m: m.promotion == parsed.promotion,
            "promotion piece required" if parsed.promotion is None else "promotion not possible",
        ),
    ]
    candidates = list(legal)
    for keep, reason in stages:
        candidates = [m for m in candidates if keep(m)]
        if not candidates:
            raise IllegalMove(f"{parsed.text!r}: {reason}")
    return candidates


def _check_suffix(board: Board, move: Move, parsed: ParsedToken) -> None:
    scratch = board.copy()
    scratch.apply(move)
    mate = game_status(scratch) == STATUS_CHECKMATE
    if parsed.suffix == "#" and not mate:
        raise InvalidNotation(f"{parsed.text!r}: '#' given but the move does not mate")
    if parsed.suffix == "+" and (mate or not in_check(scratch)):
        if mate:
            raise InvalidNotation(f"{parsed.text!r}: the move mates, use '#'")
        raise InvalidNotation(f"{parsed.text!r}: '+' given but the move does not check")


def move_to_pgn(board: Board, move: Move, legal: Optional[Sequence[Move]] = None) -> str:
    """Render a legal move as its canonical strict PGN token.

    Disambiguation is minimal: file first, then rank, then the full origin
    square. Pawn captures always carry the origin file.

    Args:
        board (Board): Position before the move. Not modified.
        move (Move): A legal move in ``board``.
        legal (Optional[Sequence[Move]]): Precomputed legal moves for ``board``.

    Raises:
        IllegalMove: If ``move`` is not legal in ``board``.
    """
    if legal is None:
        legal = legal_moves(board)
    if move not in legal:
        raise IllegalMove(f"{move.to_uci()} is not legal in this position")

    if move.kind == CASTLE_KINGSIDE:
        text = "O-O"
    elif move.kind == CASTLE_QUEENSIDE:
        text = "O-O-O"
    else:
        ptype = piece_type(move.piece)
        dest = square_to_str(move.to_sq)
        if ptype == PAWN:
            text = dest
            if move.is_capture:
                text = square_to_str(move.from_sq)[0] + "x" + dest
            if move.promotion:
                text += "=" + move.promotion.upper()
        else:
            text = TYPE_TO_LETTER[ptype] + _disambiguation(move, legal)
            if move.is_capture:
                text += "x"
            text += dest

    scratch = board.copy()
    scratch.apply(move)
    if game_status(scratch) == STATUS_CHECKMATE:
        text += "#"
    elif in_check(scratch):
        text += "+"
    return text


def _disambiguation(move: Move, legal: Sequence[Move]) -> str:
    rivals = [
        m
        for m in legal
        if m.piece == move.piece
        and m.to_sq == move.to_sq
        and m.from_sq != move.from_sq
        and not m.is_castle
    ]
    if not rivals:
        return ""
    origin = square_to_str(move.from_sq)
    if all(file_of(m.from_sq) != file_of(move.from_sq) for m in rivals):
        return origin[0]
    if all(rank_of(m.from_sq) != rank_of(move.from_sq) for m in rivals):
        return origin[1]
    return origin

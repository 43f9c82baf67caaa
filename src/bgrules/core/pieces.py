"""Per-piece tracking layered on top of the board counts.

The board only stores counts; this module follows the 30 individual checkers
(``w0``-``w14`` and ``b15``-``b29``) so a UI can animate a specific piece or
show per-piece statistics. The piece view can always be collapsed back into a
board with ``synchronize_board_from_pieces``.
"""

from collections import Counter
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Tuple

from bgrules.core.board import board_from_positions, initial_board, is_in_home_board, is_in_outer_board
from bgrules.core.types import (
    BAR,
    BOARD_SIZE,
    OFF,
    Board,
    Move,
    Piece,
    PieceState,
    Side,
)

Pieces = Tuple[Piece, ...]


def state_for_position(position: int) -> PieceState:
    if position == BAR:
        return PieceState.ON_BAR
    if position == OFF:
        return PieceState.BORNE_OFF
    return PieceState.ACTIVE


def create_piece(piece_id: str, player: Side, position: int) -> Piece:
    return Piece(id=piece_id, player=player, position=position, state=state_for_position(position))


# ==============================================================================
# CONSTRUCTION
# ==============================================================================


def pieces_from_board(board: Board) -> Pieces:
    """Assign ids to the pieces of an arbitrary board.

    White ids start at ``w0``; black ids continue the numbering from where
    white stopped (``b15`` on a full board). Pieces are numbered by position:
    points in ascending order, then bar, then off.
    """
    pieces: List[Piece] = []
    next_id = 0
    for side, prefix in ((Side.WHITE, "w"), (Side.BLACK, "b")):
        positions: List[int] = []
        for point in range(BOARD_SIZE):
            positions.extend([point] * board.count(point, side))
        positions.extend([BAR] * board.bar_count(side))
        positions.extend([OFF] * board.off_count(side))
        for position in positions:
            pieces.append(create_piece(f"{prefix}{next_id}", side, position))
            next_id += 1
    return update_blot_states(pieces)


def generate_initial_pieces() -> Pieces:
    """The 30 pieces of the standard starting position."""
    return pieces_from_board(initial_board())


def synchronize_board_from_pieces(pieces: Iterable[Piece]) -> Board:
    """Rebuild board counts from the piece list."""
    on_point: Dict[Side, Counter] = {Side.WHITE: Counter(), Side.BLACK: Counter()}
    bar = [0, 0]
    off = [0, 0]
    for piece in pieces:
        if piece.state == PieceState.ON_BAR:
            bar[piece.player.index] += 1
        elif piece.state == PieceState.BORNE_OFF:
            off[piece.player.index] += 1
        else:
            on_point[piece.player][piece.position] += 1
    return board_from_positions(
        white=dict(on_point[Side.WHITE]),
        black=dict(on_point[Side.BLACK]),
        bar=(bar[0], bar[1]),
        off=(off[0], off[1]),
    )


# ==============================================================================
# UPDATES
# ==============================================================================


def update_blot_states(pieces: Iterable[Piece]) -> Pieces:
    """Recompute ``is_blot`` for every piece."""
    pieces = tuple(pieces)
    counts = Counter(
        (p.player, p.position) for p in pieces if p.state == PieceState.ACTIVE
    )
    return tuple(
        replace(p, is_blot=(p.state == PieceState.ACTIVE and counts[(p.player, p.position)] == 1))
        for p in pieces
    )


def move_piece(pieces: Iterable[Piece], piece_id: str, new_position: int, turn_number: int) -> Pieces:
    """Move one piece, leaving every other piece untouched.

    Blot flags are not recomputed; call ``update_blot_states`` afterwards.

    Raises:
        KeyError: If no piece has ``piece_id``
    """
    pieces = tuple(pieces)
    if get_piece_by_id(pieces, piece_id) is None:
        raise KeyError(piece_id)
    return tuple(
        replace(
            p,
            position=new_position,
            state=state_for_position(new_position),
            move_count=p.move_count + 1,
            last_move_turn=turn_number,
            is_blot=False,
        )
        if p.id == piece_id
        else p
        for p in pieces
    )


def _send_to_bar(pieces: Pieces, piece_id: str) -> Pieces:
    return tuple(
        replace(p, position=BAR, state=PieceState.ON_BAR, is_blot=False) if p.id == piece_id else p
        for p in pieces
    )


def track_move(pieces: Iterable[Piece], move: Move, turn_number: int) -> Pieces:
    """Mirror a validated board move in the piece view.

    The moved piece is the most recently numbered piece of ``move.side`` at
    the source position. A hit opponent piece is sent to the bar without
    counting as one of its own moves.

    Raises:
        ValueError: If no piece of the moving side is at the source
    """
    pieces = tuple(pieces)
    candidates = get_pieces_at_position(pieces, move.from_point, move.side)
    if not candidates:
        raise ValueError(f"No {move.side} piece at position {move.from_point}")

    if move.hits:
        hit = get_pieces_at_position(pieces, move.to_point, move.side.opponent())
        if hit:
            pieces = _send_to_bar(pieces, hit[0].id)

    pieces = move_piece(pieces, candidates[-1].id, move.to_point, turn_number)
    return update_blot_states(pieces)


# ==============================================================================
# QUERIES
# ==============================================================================


def get_piece_by_id(pieces: Iterable[Piece], piece_id: str) -> Optional[Piece]:
    for piece in pieces:
        if piece.id == piece_id:
            return piece
    return None


def get_pieces_at_position(pieces: Iterable[Piece], position: int, player: Optional[Side] = None) -> List[Piece]:
    return [p for p in pieces if p.position == position and (player is None or p.player == player)]


def get_pieces_by_player(pieces: Iterable[Piece], player: Side) -> List[Piece]:
    return [p for p in pieces if p.player == player]


def get_pieces_by_state(pieces: Iterable[Piece], state: PieceState, player: Optional[Side] = None) -> List[Piece]:
    return [p for p in pieces if p.state == state and (player is None or p.player == player)]


def get_pieces_in_home_board(pieces: Iterable[Piece], player: Side) -> List[Piece]:
    return [
        p for p in get_pieces_by_state(pieces, PieceState.ACTIVE, player)
        if is_in_home_board(p.position, player)
    ]


def get_pieces_in_outer_board(pieces: Iterable[Piece], player: Side) -> List[Piece]:
    return [
        p for p in get_pieces_by_state(pieces, PieceState.ACTIVE, player)
        if is_in_outer_board(p.position)
    ]


def get_most_active_pieces(pieces: Iterable[Piece], player: Side, limit: int = 5) -> List[Piece]:
    return sorted(get_pieces_by_player(pieces, player), key=lambda p: -p.move_count)[:limit]


def get_least_active_pieces(pieces: Iterable[Piece], player: Side, limit: int = 5) -> List[Piece]:
    return sorted(get_pieces_by_player(pieces, player), key=lambda p: p.move_count)[:limit]


def get_pieces_not_moved_this_turn(pieces: Iterable[Piece], player: Side, turn_number: int) -> List[Piece]:
    return [
        p for p in get_pieces_by_player(pieces, player)
        if p.last_move_turn is None or p.last_move_turn < turn_number
    ]

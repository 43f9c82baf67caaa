"""Board model and region classifier.

This module holds the pure board queries used by the move validator and the
game-end detector, plus ``apply_move`` which produces the board after one
validated checker movement.
"""

from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Tuple

from bgrules.core.types import (
    BAR,
    BOARD_SIZE,
    OFF,
    PIECES_PER_SIDE,
    Board,
    Move,
    Point,
    PointStatus,
    Region,
    Side,
)


# ==============================================================================
# BOARD CONSTRUCTION
# ==============================================================================

STARTING_POSITION: Dict[Side, Dict[int, int]] = {
    Side.WHITE: {23: 2, 12: 5, 7: 3, 5: 5},
    Side.BLACK: {0: 2, 11: 5, 16: 3, 18: 5},
}


def initial_board() -> Board:
    """Create the standard backgammon starting position.

    White: 2 on 23, 5 on 12, 3 on 7, 5 on 5
    Black: 2 on 0, 5 on 11, 3 on 16, 5 on 18

    Returns:
        Board with the starting position
    """
    return board_from_positions(
        white=STARTING_POSITION[Side.WHITE],
        black=STARTING_POSITION[Side.BLACK],
    )


def empty_board() -> Board:
    """Create an empty board (for testing)."""
    return Board()


def board_from_positions(
    white: Optional[Dict[int, int]] = None,
    black: Optional[Dict[int, int]] = None,
    bar: Tuple[int, int] = (0, 0),
    off: Tuple[int, int] = (0, 0),
) -> Board:
    """Build a board from ``{point: count}`` mappings.

    The result is not required to hold 15 pieces per side, which makes it
    convenient for constructing test positions.

    Args:
        white: White piece counts by point
        black: Black piece counts by point
        bar: Pieces on the bar as (white, black)
        off: Pieces borne off as (white, black)

    Returns:
        New Board
    """
    points = [Point() for _ in range(BOARD_SIZE)]
    for point, count in (white or {}).items():
        points[point] = Point(white=count, black=points[point].black)
    for point, count in (black or {}).items():
        points[point] = Point(white=points[point].white, black=count)
    return Board(points=tuple(points), bar=tuple(bar), off=tuple(off))


# ==============================================================================
# BOARD QUERIES
# ==============================================================================


def point_counts(board: Board, point: int) -> Tuple[int, int]:
    """Return ``(white_count, black_count)`` on a point."""
    p = board.points[point]
    return (p.white, p.black)


def is_blot(board: Board, point: int, side: Side) -> bool:
    """True if exactly one piece of ``side`` sits on ``point``."""
    return board.points[point].status_for(side) == PointStatus.BLOT


def is_blocked(board: Board, point: int, side: Side) -> bool:
    """True if the opponent of ``side`` holds the point with two or more pieces."""
    return board.points[point].count_for(side.opponent()) >= 2


def checkers_on_bar(board: Board, side: Side) -> int:
    return board.bar_count(side)


def checkers_borne_off(board: Board, side: Side) -> int:
    return board.off_count(side)


def checkers_on_board(board: Board, side: Side) -> int:
    """Pieces of ``side`` on the 24 points (excludes bar and off)."""
    return sum(p.count_for(side) for p in board.points)


def pip_count(board: Board, side: Side) -> int:
    """Calculate pip count (total distance to bear off all checkers).

    A piece on the bar counts the full 25 pips.

    Args:
        board: Current board state
        side: Side to count

    Returns:
        Total pip count
    """
    total = board.bar_count(side) * 25
    for point in range(BOARD_SIZE):
        n = board.count(point, side)
        if n:
            total += n * bear_off_distance(side, point)
    return total


def is_valid_board(board: Board) -> Tuple[bool, str]:
    """Check piece conservation for both sides.

    Returns:
        Tuple of (is_valid, error_message)
    """
    for side in Side:
        total = checkers_on_board(board, side) + board.bar_count(side) + board.off_count(side)
        if total != PIECES_PER_SIDE:
            return False, f"{side} has {total} checkers (expected {PIECES_PER_SIDE})"
    return True, ""


# ==============================================================================
# REGIONS
# ==============================================================================


def home_range(side: Side) -> Tuple[int, int]:
    """Inclusive point range of ``side``'s home board."""
    return (0, 5) if side == Side.WHITE else (18, 23)


def outer_range() -> Tuple[int, int]:
    """Inclusive point range of the outer board (shared by both sides)."""
    return (6, 17)


def is_in_home_board(point: int, side: Side) -> bool:
    low, high = home_range(side)
    return low <= point <= high


def is_in_outer_board(point: int) -> bool:
    low, high = outer_range()
    return low <= point <= high


def board_region(point: int) -> Region:
    """Classify a board point."""
    if is_in_home_board(point, Side.WHITE):
        return Region.WHITE_HOME
    if is_in_home_board(point, Side.BLACK):
        return Region.BLACK_HOME
    return Region.OUTER_BOARD


def is_all_in_home_board(board: Board, side: Side) -> bool:
    """True if ``side`` has nothing on the bar and nothing outside its home board.

    This is the gate for bearing off.
    """
    if board.bar_count(side) > 0:
        return False
    return all(
        board.count(point, side) == 0
        for point in range(BOARD_SIZE)
        if not is_in_home_board(point, side)
    )


@dataclass(frozen=True)
class RegionStatus:
    """Where one side's pieces stand relative to its home board."""
    home_board_pieces: int
    outer_board_pieces: int
    opponent_home_pieces: int
    home_board_points: Tuple[int, ...]
    outer_board_points: Tuple[int, ...]
    can_bear_off: bool
    message: str


def get_region_status(board: Board, side: Side) -> RegionStatus:
    """Summarise ``side``'s distribution across the board regions."""
    home: List[int] = []
    outer: List[int] = []
    home_pieces = outer_pieces = far_pieces = 0
    for point in range(BOARD_SIZE):
        n = board.count(point, side)
        if not n:
            continue
        if is_in_home_board(point, side):
            home_pieces += n
            home.append(point)
        elif is_in_outer_board(point):
            outer_pieces += n
            outer.append(point)
        else:
            far_pieces += n

    can_bear_off = is_all_in_home_board(board, side)
    if can_bear_off:
        message = f"{side.title} can bear off pieces"
    elif outer_pieces > 0:
        message = f"{side.title} has {outer_pieces} pieces in outer board"
    elif far_pieces > 0 or board.bar_count(side) > 0:
        message = f"{side.title} has {far_pieces + board.bar_count(side)} pieces outside home board"
    else:
        message = f"{side.title} has all pieces in home board"

    return RegionStatus(
        home_board_pieces=home_pieces,
        outer_board_pieces=outer_pieces,
        opponent_home_pieces=far_pieces,
        home_board_points=tuple(home),
        outer_board_points=tuple(outer),
        can_bear_off=can_bear_off,
        message=message,
    )


@dataclass(frozen=True)
class AreaStatus:
    """Counts for the bar or the off-board tray."""
    white_pieces: int
    black_pieces: int
    message: str

    @property
    def total_pieces(self) -> int:
        return self.white_pieces + self.black_pieces

    @property
    def has_pieces(self) -> bool:
        return self.total_pieces > 0


def _area_status(pair: Tuple[int, int], where: str, empty: str) -> AreaStatus:
    white, black = pair
    if white and black:
        message = f"White: {white}, Black: {black} pieces {where}"
    elif white:
        message = f"{white} white piece{'s' if white > 1 else ''} {where}"
    elif black:
        message = f"{black} black piece{'s' if black > 1 else ''} {where}"
    else:
        message = empty
    return AreaStatus(white_pieces=white, black_pieces=black, message=message)


def get_bar_status(board: Board) -> AreaStatus:
    return _area_status(board.bar, "on bar", "No pieces on bar")


def get_off_board_status(board: Board) -> AreaStatus:
    return _area_status(board.off, "borne off", "No pieces borne off")


# ==============================================================================
# GEOMETRY
# ==============================================================================


def direction(side: Side) -> int:
    """-1 for white (moves toward point 0), +1 for black."""
    return -1 if side == Side.WHITE else 1


def entry_point(side: Side, die: int) -> int:
    """Point where a piece on the bar enters with ``die``.

    White enters at ``24 - die`` (black's home board), black at ``die - 1``.
    """
    return BOARD_SIZE - die if side == Side.WHITE else die - 1


def bear_off_distance(side: Side, point: int) -> int:
    """Pips from ``point`` to the bearing-off edge for ``side``."""
    return point + 1 if side == Side.WHITE else BOARD_SIZE - point


def target_point(side: Side, from_point: int, die: int) -> int:
    """Raw destination of a move; may fall off the board (< 0 or > 23)."""
    if from_point == BAR:
        return entry_point(side, die)
    return from_point + direction(side) * die


# ==============================================================================
# BLOT ANALYSIS
# ==============================================================================


def get_all_blots(board: Board, side: Side) -> List[int]:
    """Points where ``side`` has exactly one piece."""
    return [point for point in range(BOARD_SIZE) if is_blot(board, point, side)]


def get_blot_count(board: Board, side: Side) -> int:
    return len(get_all_blots(board, side))


def _attackers(board: Board, point: int, side: Side) -> int:
    """Opponent pieces within a single die of ``point``."""
    opponent = side.opponent()
    count = 0
    for die in range(1, 7):
        if entry_point(opponent, die) == point:
            count += board.bar_count(opponent)
        source = point - direction(opponent) * die
        if 0 <= source < BOARD_SIZE:
            count += board.count(source, opponent)
    return count


def is_point_vulnerable(board: Board, point: int, side: Side) -> bool:
    """True if ``side`` has a blot on ``point`` that an opponent piece can hit with one die."""
    return is_blot(board, point, side) and _attackers(board, point, side) > 0


def get_vulnerable_blots(board: Board, side: Side) -> List[int]:
    return [p for p in get_all_blots(board, side) if is_point_vulnerable(board, p, side)]


def get_blot_risk_level(board: Board, point: int, side: Side) -> str:
    """Rate a blot as ``"low"``, ``"medium"`` or ``"high"`` by its number of direct attackers."""
    if not is_blot(board, point, side):
        return "low"
    attackers = _attackers(board, point, side)
    if attackers == 0:
        return "low"
    if attackers <= 2:
        return "medium"
    return "high"


# ==============================================================================
# MOVE APPLICATION
# ==============================================================================


def _add(pair: Tuple[int, int], side: Side, delta: int) -> Tuple[int, int]:
    values = list(pair)
    values[side.index] += delta
    return (values[0], values[1])


def apply_move(board: Board, move: Move) -> Board:
    """Apply a validated single-checker move.

    A hit blot is moved to its owner's bar. The move is assumed legal; use
    ``bgrules.rules.validator.validate`` first.

    Args:
        board: Current board state
        move: Move to apply

    Returns:
        New board after the move
    """
    side = move.side
    opponent = side.opponent()
    bar = board.bar
    off = board.off

    if move.from_point == BAR:
        assert bar[side.index] > 0, f"{side} has no pieces on the bar"
        bar = _add(bar, side, -1)
    else:
        source = board.points[move.from_point]
        assert source.count_for(side) > 0, f"No {side} piece on point {move.from_point}"
        board = board.with_point(move.from_point, Point.of(side, source.count_for(side) - 1))

    if move.to_point == OFF:
        off = _add(off, side, 1)
    else:
        dest = board.points[move.to_point]
        if dest.count_for(opponent) == 1:
            bar = _add(bar, opponent, 1)
            dest = Point()
        board = board.with_point(move.to_point, Point.of(side, dest.count_for(side) + 1))

    return replace(board, bar=bar, off=off)


# ==============================================================================
# DISPLAY
# ==============================================================================


def board_to_string(board: Board) -> str:
    """Convert board to string representation.

    Args:
        board: Board to display

    Returns:
        ASCII representation
    """
    lines = []
    lines.append("=" * 40)
    lines.append(f"White pip count: {pip_count(board, Side.WHITE)}")
    lines.append(f"Black pip count: {pip_count(board, Side.BLACK)}")
    lines.append("")
    lines.append("Point | White | Black")
    lines.append("------+-------+------")
    for point in range(BOARD_SIZE):
        w, b = point_counts(board, point)
        lines.append(f"{point:2d}    |  {w:2d}   |  {b:2d}")
    lines.append(f"BAR   |  {board.bar[0]:2d}   |  {board.bar[1]:2d}")
    lines.append(f"OFF   |  {board.off[0]:2d}   |  {board.off[1]:2d}")
    lines.append("=" * 40)
    return "\n".join(lines)

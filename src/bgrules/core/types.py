"""Core type definitions for the backgammon rules engine.

Every value here is an immutable dataclass or a closed enum. State transitions
elsewhere in the package take one of these values and return a new one; nothing
is mutated in place.

Board geometry:
- Points are numbered 0-23.
- White's home board is 0-5. White moves from high to low points, re-enters
  at ``24 - die`` and bears off past point 0.
- Black's home board is 18-23. Black moves from low to high points, re-enters
  at ``die - 1`` and bears off past point 23.
- ``BAR`` and ``OFF`` are pseudo-positions used as the source of a re-entry
  and the destination of a bear-off.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Tuple


# ==============================================================================
# CONSTANTS
# ==============================================================================

BOARD_SIZE = 24
PIECES_PER_SIDE = 15
BAR = 25
OFF = 26
MAX_CUBE_VALUE = 64


# ==============================================================================
# ENUMERATIONS
# ==============================================================================


class Side(Enum):
    """Player colors."""
    WHITE = "white"
    BLACK = "black"

    def opponent(self) -> "Side":
        """Return the opposing side."""
        return Side.BLACK if self == Side.WHITE else Side.WHITE

    @property
    def index(self) -> int:
        """Slot of this side in ``(white, black)`` pairs."""
        return 0 if self == Side.WHITE else 1

    @property
    def title(self) -> str:
        return self.value.capitalize()

    def __str__(self) -> str:
        return self.value


class GamePhase(Enum):
    """Lifecycle of a single game."""
    PLAYING = "playing"
    GAME_OVER = "gameOver"

    def __str__(self) -> str:
        return self.value


class TurnPhase(Enum):
    """Where a turn is between the roll and the hand-over."""
    ROLLING = "rolling"
    FORCED_REENTRY = "forcedReentry"
    FREE_MOVE = "freeMove"
    TURN_COMPLETE = "turnComplete"

    def __str__(self) -> str:
        return self.value


class MoveKind(Enum):
    """Classification of a validated single-checker move."""
    ORDINARY = "ordinary"
    HIT = "hit"
    REENTRY = "reentry"
    BEAR_OFF = "bearOff"

    def __str__(self) -> str:
        return self.value


class WinClass(Enum):
    """How decisively a game was won."""
    NORMAL = 1
    GAMMON = 2
    BACKGAMMON = 3

    @property
    def points(self) -> int:
        """Base points before the cube multiplier."""
        return self.value

    @property
    def label(self) -> str:
        return self.name.capitalize()


class Region(Enum):
    WHITE_HOME = "whiteHome"
    BLACK_HOME = "blackHome"
    OUTER_BOARD = "outerBoard"


class PointStatus(Enum):
    """Occupancy of a point from one side's point of view."""
    EMPTY = "empty"
    BLOT = "blot"
    MADE = "made"


class PieceState(Enum):
    ACTIVE = "active"
    ON_BAR = "onBar"
    BORNE_OFF = "borneOff"

    def __str__(self) -> str:
        return self.value


# ==============================================================================
# BOARD
# ==============================================================================


@dataclass(frozen=True)
class Point:
    """Occupancy of one point.

    A point holds pieces of at most one side, so at least one of the two
    counts is always zero.

    Attributes:
        white: Number of white pieces on the point
        black: Number of black pieces on the point
    """
    white: int = 0
    black: int = 0

    def __post_init__(self):
        """Validate point occupancy."""
        assert 0 <= self.white <= PIECES_PER_SIDE, f"Invalid white count: {self.white}"
        assert 0 <= self.black <= PIECES_PER_SIDE, f"Invalid black count: {self.black}"
        assert self.white == 0 or self.black == 0, "Both sides cannot share a point"

    @classmethod
    def of(cls, side: Side, count: int) -> "Point":
        """Point holding ``count`` pieces of ``side``."""
        if side == Side.WHITE:
            return cls(white=count)
        return cls(black=count)

    @property
    def owner(self) -> Optional[Side]:
        if self.white:
            return Side.WHITE
        if self.black:
            return Side.BLACK
        return None

    @property
    def count(self) -> int:
        return self.white + self.black

    def count_for(self, side: Side) -> int:
        return self.white if side == Side.WHITE else self.black

    def status_for(self, side: Side) -> PointStatus:
        n = self.count_for(side)
        if n == 0:
            return PointStatus.EMPTY
        if n == 1:
            return PointStatus.BLOT
        return PointStatus.MADE


def _empty_points() -> Tuple[Point, ...]:
    return tuple(Point() for _ in range(BOARD_SIZE))


@dataclass(frozen=True)
class Board:
    """Board state.

    Attributes:
        points: 24 points, index 0-23
        bar: Pieces on the bar as ``(white, black)``
        off: Pieces borne off as ``(white, black)``
    """
    points: Tuple[Point, ...] = field(default_factory=_empty_points)
    bar: Tuple[int, int] = (0, 0)
    off: Tuple[int, int] = (0, 0)

    def __post_init__(self):
        """Validate board shape."""
        assert len(self.points) == BOARD_SIZE, f"Board must have {BOARD_SIZE} points"
        assert len(self.bar) == 2 and len(self.off) == 2, "bar and off are (white, black) pairs"
        assert all(c >= 0 for c in self.bar), f"Invalid bar counts: {self.bar}"
        assert all(c >= 0 for c in self.off), f"Invalid off counts: {self.off}"

    def count(self, point: int, side: Side) -> int:
        """Pieces of ``side`` on a board point."""
        return self.points[point].count_for(side)

    def bar_count(self, side: Side) -> int:
        return self.bar[side.index]

    def off_count(self, side: Side) -> int:
        return self.off[side.index]

    def with_point(self, point: int, value: Point) -> "Board":
        """Return a copy with one point replaced."""
        points = list(self.points)
        points[point] = value
        return replace(self, points=tuple(points))


# ==============================================================================
# DICE AND MOVES
# ==============================================================================


@dataclass(frozen=True)
class Dice:
    """Dice for the current turn.

    Doubles are expanded to four copies of the value.

    Attributes:
        values: Rolled values (empty before rolling, 2 or 4 after)
        used: Parallel flags marking which values were consumed
    """
    values: Tuple[int, ...] = ()
    used: Tuple[bool, ...] = ()

    def __post_init__(self):
        """Validate dice."""
        assert len(self.values) in (0, 2, 4), f"Invalid dice count: {len(self.values)}"
        assert all(1 <= v <= 6 for v in self.values), f"Invalid dice: {self.values}"
        assert len(self.used) == len(self.values), "used must match values"
        if len(self.values) == 4:
            assert len(set(self.values)) == 1, "Four dice must be doubles"
        if len(self.values) == 2:
            assert self.values[0] != self.values[1], "Doubles are played as four dice"

    @property
    def is_rolled(self) -> bool:
        return bool(self.values)

    @property
    def is_doubles(self) -> bool:
        return len(self.values) == 4

    @property
    def all_used(self) -> bool:
        return self.is_rolled and all(self.used)

    def remaining(self) -> List[int]:
        """Unused die values, in roll order."""
        return [v for v, u in zip(self.values, self.used) if not u]

    def use(self, value: int) -> "Dice":
        """Mark the first unused copy of ``value`` as used.

        Raises:
            ValueError: If no unused die shows ``value``
        """
        for i, (v, u) in enumerate(zip(self.values, self.used)):
            if v == value and not u:
                used = list(self.used)
                used[i] = True
                return Dice(values=self.values, used=tuple(used))
        raise ValueError(f"No unused die with value {value} in {self.values}")


@dataclass(frozen=True)
class Move:
    """A validated single checker movement.

    Attributes:
        side: Side moving
        from_point: Source point (0-23) or BAR
        to_point: Destination point (0-23) or OFF
        die: Die value consumed (1-6)
        kind: Move classification
        hits: Whether an opponent blot is sent to the bar
    """
    side: Side
    from_point: int
    to_point: int
    die: int
    kind: MoveKind = MoveKind.ORDINARY
    hits: bool = False

    def __post_init__(self):
        """Validate move."""
        assert 0 <= self.from_point < BOARD_SIZE or self.from_point == BAR, \
            f"Invalid from_point: {self.from_point}"
        assert 0 <= self.to_point < BOARD_SIZE or self.to_point == OFF, \
            f"Invalid to_point: {self.to_point}"
        assert 1 <= self.die <= 6, f"Invalid die: {self.die}"


# ==============================================================================
# CUBE AND MATCH
# ==============================================================================


@dataclass(frozen=True)
class CubeState:
    """Doubling cube state.

    Attributes:
        value: Current cube value (power of two, 1-64)
        owner: Side that may redouble, None when centered
        pending_offer: A double has been offered and not yet answered
        offering_player: Side that made the pending offer
    """
    value: int = 1
    owner: Optional[Side] = None
    pending_offer: bool = False
    offering_player: Optional[Side] = None

    def __post_init__(self):
        """Validate cube state."""
        assert 1 <= self.value <= MAX_CUBE_VALUE, f"Invalid cube value: {self.value}"
        assert self.value & (self.value - 1) == 0, f"Cube value must be a power of 2: {self.value}"
        assert self.pending_offer == (self.offering_player is not None), \
            "offering_player is set exactly when an offer is pending"


@dataclass(frozen=True)
class MatchState:
    """Match score and Crawford bookkeeping.

    Attributes:
        match_length: Points needed to win the match
        white_score: White's match score
        black_score: Black's match score
        game_number: 1-based number of the game in progress
        match_winner: Winner once a side reaches ``match_length``
        is_match_play: False for a single (money) game
        crawford_game: The game in progress is the Crawford game
        post_crawford: The Crawford game has been played
        jacoby_rule: Gammons only count with a turned cube (money play)
    """
    match_length: int = 7
    white_score: int = 0
    black_score: int = 0
    game_number: int = 1
    match_winner: Optional[Side] = None
    is_match_play: bool = True
    crawford_game: bool = False
    post_crawford: bool = False
    jacoby_rule: bool = False

    def __post_init__(self):
        """Validate match state."""
        assert self.match_length >= 1, f"Invalid match length: {self.match_length}"
        assert self.white_score >= 0 and self.black_score >= 0, "Scores must be non-negative"
        assert self.game_number >= 1, f"Invalid game number: {self.game_number}"
        assert not (self.crawford_game and self.post_crawford), \
            "Crawford and post-Crawford are exclusive"

    def score(self, side: Side) -> int:
        return self.white_score if side == Side.WHITE else self.black_score


# ==============================================================================
# PIECES
# ==============================================================================


@dataclass(frozen=True)
class Piece:
    """An individually tracked checker.

    Attributes:
        id: Stable identifier (``w0``-``w14`` for white, ``b15``-``b29`` for black)
        player: Owning side
        position: Point 0-23, BAR or OFF
        state: Where the piece is
        move_count: Number of times this piece has moved
        last_move_turn: Turn number of its last move, None if never moved
        is_blot: Piece stands alone on its point
    """
    id: str
    player: Side
    position: int
    state: PieceState = PieceState.ACTIVE
    move_count: int = 0
    last_move_turn: Optional[int] = None
    is_blot: bool = False

    def __post_init__(self):
        """Validate piece."""
        assert 0 <= self.position < BOARD_SIZE or self.position in (BAR, OFF), \
            f"Invalid position: {self.position}"
        expected = {BAR: PieceState.ON_BAR, OFF: PieceState.BORNE_OFF}.get(
            self.position, PieceState.ACTIVE
        )
        assert self.state == expected, f"State {self.state} does not match position {self.position}"

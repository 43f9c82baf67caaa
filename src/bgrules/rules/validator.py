"""Move validation.

A candidate ``(from_point, to_point)`` is checked against the remaining dice
in this order:

1. Forced re-entry: with pieces on the bar, only ``BAR`` is a legal source.
2. Ordinary move / hit: the destination must match a die and not be blocked.
3. Bear-off: every piece must be home; the die must match the distance to the
   edge, or exceed it when no piece sits farther back.
4. Maximum dice: the move must start a sequence that plays as many of the
   remaining dice as possible. When only one of two dice can be played, it
   has to be the higher one.

``validate`` returns the classified ``Move`` or raises a ``RulesError``.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, List, Optional, Sequence, Tuple

from bgrules.core.board import (
    apply_move,
    bear_off_distance,
    entry_point,
    is_all_in_home_board,
    is_blocked,
    target_point,
)
from bgrules.core.types import BAR, BOARD_SIZE, OFF, Board, Dice, Move, MoveKind, Side
from bgrules.errors import (
    CannotBearOffError,
    InvalidMoveError,
    MustReenterFromBarError,
    MustUseHigherDieFirstError,
    NoLegalMoveError,
)


# ==============================================================================
# SINGLE-DIE MOVES
# ==============================================================================


def reentry_point(side: Side, die: int) -> int:
    """Point where ``side`` re-enters from the bar with ``die``."""
    return entry_point(side, die)


def can_bear_off_with(board: Board, side: Side, from_point: int, die: int) -> bool:
    """Check the bear-off distance rule for one piece.

    Assumes every piece of ``side`` is already in its home board.
    """
    distance = bear_off_distance(side, from_point)
    if die == distance:
        return True
    if die < distance:
        return False
    # Overage: only from the farthest occupied point
    return not any(
        board.count(point, side) > 0 and bear_off_distance(side, point) > distance
        for point in range(BOARD_SIZE)
    )


def _landing(board: Board, side: Side, from_point: int, to_point: int, die: int) -> Optional[Move]:
    if is_blocked(board, to_point, side):
        return None
    hits = board.count(to_point, side.opponent()) == 1
    if from_point == BAR:
        kind = MoveKind.REENTRY
    elif hits:
        kind = MoveKind.HIT
    else:
        kind = MoveKind.ORDINARY
    return Move(side=side, from_point=from_point, to_point=to_point, die=die, kind=kind, hits=hits)


def legal_moves_for_die(board: Board, side: Side, die: int) -> List[Move]:
    """All single-checker moves for one die, ignoring the maximum-dice rule.

    Args:
        board: Current board state
        side: Side to move
        die: Die value (1-6)

    Returns:
        List of moves, re-entries only while ``side`` has pieces on the bar
    """
    if board.bar_count(side) > 0:
        move = _landing(board, side, BAR, entry_point(side, die), die)
        return [move] if move is not None else []

    moves = []
    bearing_off = is_all_in_home_board(board, side)
    for from_point in range(BOARD_SIZE):
        if board.count(from_point, side) == 0:
            continue
        to_point = target_point(side, from_point, die)
        if 0 <= to_point < BOARD_SIZE:
            move = _landing(board, side, from_point, to_point, die)
            if move is not None:
                moves.append(move)
        elif bearing_off and can_bear_off_with(board, side, from_point, die):
            moves.append(Move(side=side, from_point=from_point, to_point=OFF, die=die, kind=MoveKind.BEAR_OFF))
    return moves


# ==============================================================================
# MAXIMUM DICE USAGE
# ==============================================================================


def _without(values: Tuple[int, ...], die: int) -> Tuple[int, ...]:
    i = values.index(die)
    return values[:i] + values[i + 1:]


@lru_cache(maxsize=65536)
def _max_usage(board: Board, side: Side, values: Tuple[int, ...]) -> int:
    if not values:
        return 0
    best = 0
    for die in sorted(set(values), reverse=True):
        rest = _without(values, die)
        for move in legal_moves_for_die(board, side, die):
            best = max(best, 1 + _max_usage(apply_move(board, move), side, rest))
            if best == len(values):
                return best
    return best


def max_dice_playable(board: Board, side: Side, values: Sequence[int]) -> int:
    """Largest number of the given dice that can be played in sequence."""
    return _max_usage(board, side, tuple(sorted(values)))


def legal_moves(board: Board, side: Side, dice: Dice) -> List[Move]:
    """All single moves that respect the maximum-dice and higher-die rules.

    Args:
        board: Current board state
        side: Side to move
        dice: Dice with used flags

    Returns:
        Legal next moves (empty if nothing can be played)
    """
    values = tuple(sorted(dice.remaining()))
    if not values:
        return []
    target = _max_usage(board, side, values)
    if target == 0:
        return []

    moves = []
    for die in sorted(set(values)):
        rest = _without(values, die)
        for move in legal_moves_for_die(board, side, die):
            if 1 + _max_usage(apply_move(board, move), side, rest) == target:
                moves.append(move)

    if target == 1 and len(set(values)) == 2:
        higher = max(values)
        if any(m.die == higher for m in moves):
            moves = [m for m in moves if m.die == higher]
    return moves


def has_legal_move(board: Board, side: Side, dice: Dice) -> bool:
    values = tuple(sorted(dice.remaining()))
    return bool(values) and _max_usage(board, side, values) > 0


def can_use_both_dice(board: Board, side: Side, dice: Dice) -> bool:
    """True if every remaining die can be played."""
    values = dice.remaining()
    return max_dice_playable(board, side, values) == len(values)


# ==============================================================================
# VALIDATION
# ==============================================================================


def _candidate_dice(board: Board, side: Side, from_point: int, to_point: int, values: Sequence[int]) -> List[int]:
    if to_point == OFF:
        return [d for d in sorted(set(values)) if can_bear_off_with(board, side, from_point, d)]
    return [d for d in sorted(set(values)) if target_point(side, from_point, d) == to_point]


def validate(board: Board, side: Side, dice: Dice, from_point: int, to_point: int) -> Move:
    """Validate one candidate move.

    Args:
        board: Current board state
        side: Side to move
        dice: Rolled dice with used flags
        from_point: Source point (0-23) or BAR
        to_point: Destination point (0-23) or OFF

    Returns:
        The classified Move

    Raises:
        NoLegalMoveError: No unused dice remain
        MustReenterFromBarError: ``side`` has pieces on the bar and ``from_point`` is not BAR
        CannotBearOffError: Bear-off with pieces outside home, or no die fits
        MustUseHigherDieFirstError: The move strands the higher die
        InvalidMoveError: Anything else (empty source, blocked or unreachable point,
            or a move that would forfeit a playable die)
    """
    values = dice.remaining()
    if not values:
        raise NoLegalMoveError("No dice remaining")

    if board.bar_count(side) > 0 and from_point != BAR:
        raise MustReenterFromBarError(f"{side} must re-enter from the bar first")

    if from_point == BAR:
        if board.bar_count(side) == 0:
            raise InvalidMoveError(f"{side} has no pieces on the bar")
    elif not 0 <= from_point < BOARD_SIZE:
        raise InvalidMoveError(f"Invalid source point: {from_point}")
    elif board.count(from_point, side) == 0:
        raise InvalidMoveError(f"No {side} piece on point {from_point}")

    if to_point == OFF:
        if not is_all_in_home_board(board, side):
            raise CannotBearOffError(f"{side} must have all pieces in the home board to bear off")
        dice_for_move = _candidate_dice(board, side, from_point, to_point, values)
        if not dice_for_move:
            raise CannotBearOffError(f"No die bears off from point {from_point}")
    else:
        if not 0 <= to_point < BOARD_SIZE:
            raise InvalidMoveError(f"Invalid destination point: {to_point}")
        dice_for_move = _candidate_dice(board, side, from_point, to_point, values)
        if not dice_for_move:
            raise InvalidMoveError(f"No die moves {from_point} to {to_point}")
        if is_blocked(board, to_point, side):
            raise InvalidMoveError(f"Point {to_point} is blocked")

    allowed = legal_moves(board, side, dice)
    for die in dice_for_move:
        for move in allowed:
            if move.die == die and move.from_point == from_point and move.to_point == to_point:
                return move

    higher = max(values)
    if min(dice_for_move) < higher and any(m.die == higher for m in allowed):
        raise MustUseHigherDieFirstError(f"Must use higher die ({higher}) first")
    raise InvalidMoveError("Move would leave a playable die unused")


# ==============================================================================
# BAR RE-ENTRY AND MESSAGES
# ==============================================================================


@dataclass(frozen=True)
class ReentryOptions:
    """Which remaining dice can bring a piece in from the bar."""
    available: Tuple[int, ...]
    blocked: Tuple[int, ...]
    points: Dict[int, int]
    message: str


def get_bar_reentry_options(board: Board, side: Side, dice: Dice) -> ReentryOptions:
    if board.bar_count(side) == 0:
        return ReentryOptions(available=(), blocked=(), points={}, message="No pieces on bar")

    available = []
    blocked = []
    points = {}
    for die in dice.remaining():
        point = entry_point(side, die)
        if is_blocked(board, point, side):
            blocked.append(die)
        else:
            available.append(die)
            points[die] = point

    if not available:
        message = "No re-entry options available"
    elif not blocked:
        message = "All re-entry options available"
    else:
        message = f"{len(available)} re-entry option{'s' if len(available) > 1 else ''} available"
    return ReentryOptions(available=tuple(available), blocked=tuple(blocked), points=points, message=message)


def higher_die_message(board: Board, side: Side, dice: Dice) -> str:
    """Explain a higher-die restriction, or return an empty string."""
    values = dice.remaining()
    if len(values) != 2 or values[0] == values[1] or can_use_both_dice(board, side, dice):
        return ""
    higher, lower = max(values), min(values)
    if legal_moves_for_die(board, side, higher):
        return f"Must use higher die ({higher}) first! Both dice cannot be used."
    if legal_moves_for_die(board, side, lower):
        return f"Only lower die ({lower}) can be used. Higher die ({higher}) has no valid moves."
    return ""

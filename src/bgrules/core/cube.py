"""Doubling cube state machine.

Transitions:
- offer: value doubles and the offer becomes pending
- accept: the acceptor takes ownership, value unchanged
- reject: the game ends and the offering side wins the pre-double stake
- beaver / raccoon: an immediate redouble by the side the cube is held
  against, at values 2 and 4 respectively

Each transition returns a new ``CubeState`` or raises ``CannotDoubleError``.
"""

from dataclasses import dataclass, replace
from typing import Optional

from bgrules.core.types import MAX_CUBE_VALUE, CubeState, GamePhase, Side
from bgrules.errors import CannotDoubleError


# ==============================================================================
# CUBE STATE
# ==============================================================================


def initial_cube() -> CubeState:
    """Create initial cube state (centered, value 1)."""
    return CubeState()


def is_cube_centered(cube: CubeState) -> bool:
    return cube.owner is None


def get_cube_owner(cube: CubeState) -> Optional[Side]:
    return cube.owner


def get_next_cube_value(cube: CubeState) -> int:
    return cube.value * 2


def cube_value_display(cube: CubeState) -> str:
    return str(cube.value)


def calculate_final_points(base_points: int, cube: CubeState) -> int:
    """Total points won = base points (1, 2 or 3) * cube value."""
    return base_points * cube.value


# ==============================================================================
# CUBE RULES
# ==============================================================================


def can_offer_double(
    cube: CubeState,
    side: Side,
    phase: GamePhase = GamePhase.PLAYING,
    first_roll: bool = False,
    max_value: int = MAX_CUBE_VALUE,
) -> bool:
    """Check if a side can offer a double.

    A side can double if:
    - The game is in progress and no offer is pending
    - Doubling would not take the cube past ``max_value`` (64 by default)
    - The cube is centered (but not on the opening roll of the game), OR
      the side owns the cube

    Args:
        cube: Current cube state
        side: Side wanting to double
        phase: Current game phase
        first_roll: True before the game's opening roll has been played
        max_value: Highest cube value allowed in this game

    Returns:
        True if the side can legally double
    """
    if phase != GamePhase.PLAYING or cube.pending_offer:
        return False
    if cube.value * 2 > max_value:
        return False
    if cube.owner is None:
        return not first_roll
    return cube.owner == side


def offer_double(
    cube: CubeState,
    side: Side,
    phase: GamePhase = GamePhase.PLAYING,
    first_roll: bool = False,
    max_value: int = MAX_CUBE_VALUE,
) -> CubeState:
    """Offer a double.

    Raises:
        CannotDoubleError: If ``side`` may not double now
    """
    if not can_offer_double(cube, side, phase, first_roll, max_value):
        raise CannotDoubleError(
            f"{side} cannot double: cube value={cube.value}, owner={cube.owner}, "
            f"pending={cube.pending_offer}, limit={max_value}"
        )
    return CubeState(
        value=cube.value * 2,
        owner=cube.owner,
        pending_offer=True,
        offering_player=side,
    )


def accept_double(cube: CubeState, side: Side) -> CubeState:
    """Accept a pending double; the acceptor now owns the cube.

    Raises:
        CannotDoubleError: If no offer is pending or ``side`` made the offer
    """
    if not cube.pending_offer:
        raise CannotDoubleError("No double has been offered")
    if cube.offering_player == side:
        raise CannotDoubleError(f"{side} cannot accept their own double")
    return CubeState(value=cube.value, owner=side)


@dataclass(frozen=True)
class CubeResolution:
    """Outcome of a rejected double."""
    cube_state: CubeState
    game_ended: bool
    winner: Side
    points: int


def reject_double(cube: CubeState, side: Optional[Side] = None) -> CubeResolution:
    """Decline a pending double, conceding the game at the pre-double value.

    Args:
        cube: Cube with a pending offer
        side: Declining side (optional; must not be the offering side)

    Returns:
        CubeResolution with the offering side as winner

    Raises:
        CannotDoubleError: If no offer is pending or ``side`` made the offer
    """
    if not cube.pending_offer:
        raise CannotDoubleError("No double has been offered")
    if side is not None and cube.offering_player == side:
        raise CannotDoubleError(f"{side} cannot reject their own double")
    winner = cube.offering_player
    return CubeResolution(
        cube_state=replace(cube, pending_offer=False, offering_player=None),
        game_ended=True,
        winner=winner,
        points=cube.value // 2,
    )


def _held_against(cube: CubeState, side: Side) -> bool:
    """True if the cube is owned by, or being offered by, the other side."""
    if cube.pending_offer:
        return cube.offering_player != side
    return cube.owner is not None and cube.owner != side


def can_beaver(cube: CubeState, side: Side, max_value: int = MAX_CUBE_VALUE) -> bool:
    """Beaver: immediate redouble of a 2-cube held against ``side``."""
    return cube.value == 2 and cube.value * 2 <= max_value and _held_against(cube, side)


def can_raccoon(cube: CubeState, side: Side, max_value: int = MAX_CUBE_VALUE) -> bool:
    """Raccoon: immediate redouble of a beavered 4-cube."""
    return cube.value == 4 and cube.value * 2 <= max_value and _held_against(cube, side)


def _redouble(cube: CubeState, side: Side) -> CubeState:
    return CubeState(value=cube.value * 2, owner=side)


def beaver_double(cube: CubeState, side: Side, max_value: int = MAX_CUBE_VALUE) -> CubeState:
    """Beaver the cube: value doubles, ``side`` takes ownership.

    Raises:
        CannotDoubleError: If the cube is not a 2-cube held against ``side``
    """
    if not can_beaver(cube, side, max_value):
        raise CannotDoubleError(f"{side} cannot beaver at cube value {cube.value}")
    return _redouble(cube, side)


def raccoon_double(cube: CubeState, side: Side, max_value: int = MAX_CUBE_VALUE) -> CubeState:
    """Raccoon the cube: value doubles, ``side`` takes ownership.

    Raises:
        CannotDoubleError: If the cube is not a 4-cube held against ``side``
    """
    if not can_raccoon(cube, side, max_value):
        raise CannotDoubleError(f"{side} cannot raccoon at cube value {cube.value}")
    return _redouble(cube, side)


# ==============================================================================
# DISPLAY
# ==============================================================================


def get_doubling_cube_message(cube: CubeState) -> str:
    """Human-readable cube status."""
    if cube.pending_offer:
        return f"{cube.offering_player.title} offers to double to {cube.value}. Accept or reject?"
    if cube.owner is not None:
        return f"Cube at {cube.value} (owned by {cube.owner.title})"
    return f"Cube at {cube.value} (centered)"

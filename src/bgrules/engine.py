"""Game engine: the full game state and the actions that advance it.

``GameState`` is an immutable value. Every action takes a state and returns
the next one, or raises a ``RulesError`` and leaves the caller's state as it
was. A UI layer holds the current state and replaces it with each result.

Typical flow for one turn::

    state = roll(state, rng)
    state = validate_and_apply_move(state, 12, 7)
    state = validate_and_apply_move(state, 7, 4)
"""

import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple

import numpy as np

from bgrules.core import cube as cube_rules
from bgrules.core.board import initial_board
from bgrules.core.dice import dice_to_string, roll_dice
from bgrules.core.match import (
    DEFAULT_MATCH_LENGTH,
    can_double_in_match,
    initial_match_state,
    is_crawford_game,
    is_match_complete,
    single_game_state,
    update_match_state,
)
from bgrules.core.pieces import pieces_from_board, track_move
from bgrules.core.types import (
    MAX_CUBE_VALUE,
    Board,
    CubeState,
    Dice,
    GamePhase,
    MatchState,
    Move,
    Piece,
    Side,
    TurnPhase,
)
from bgrules.errors import CannotDoubleError, IllegalActionError
from bgrules.history import ReplayHistory, start_history
from bgrules.rules import turn as turn_rules
from bgrules.rules.game_end import GameEndResult, check_game_end_with_cube, rejected_double_result
from bgrules.rules.validator import higher_die_message, legal_moves as legal_moves_for

logger = logging.getLogger(__name__)


# ==============================================================================
# GAME STATE
# ==============================================================================


@dataclass(frozen=True)
class GameState:
    """Complete engine state.

    Attributes:
        board: Live board
        turn: Side to act
        phase: Playing or game over
        dice: Current roll (empty before rolling)
        cube: Doubling cube
        match: Match score and Crawford state
        history: Replay snapshots of the board
        turn_number: Rolls made so far in this game (0 before the opening roll)
        pieces: Per-piece view of the board
        result: Scored result once the game is over
    """
    board: Board = field(default_factory=initial_board)
    turn: Side = Side.WHITE
    phase: GamePhase = GamePhase.PLAYING
    dice: Dice = Dice()
    cube: CubeState = CubeState()
    match: MatchState = MatchState()
    history: ReplayHistory = ReplayHistory()
    turn_number: int = 0
    pieces: Tuple[Piece, ...] = ()
    result: Optional[GameEndResult] = None

    @property
    def displayed_board(self) -> Board:
        """Board at the replay index (the live board when not stepped back)."""
        if self.history.index < 0:
            return self.board
        return self.history.current


def new_game_state(
    match: Optional[MatchState] = None,
    first_turn: Side = Side.WHITE,
    board: Optional[Board] = None,
) -> GameState:
    """Create a fresh game.

    Args:
        match: Match state to play in (defaults to a new 7-point match)
        first_turn: Side that rolls first
        board: Starting position (defaults to the standard one)

    Returns:
        GameState ready for the opening roll
    """
    if board is None:
        board = initial_board()
    if match is None:
        match = initial_match_state(DEFAULT_MATCH_LENGTH)
    return GameState(
        board=board,
        turn=first_turn,
        match=match,
        history=start_history(board),
        pieces=pieces_from_board(board),
    )


# ==============================================================================
# PHASE CHECKS
# ==============================================================================


def _require_playing(state: GameState) -> None:
    if state.phase != GamePhase.PLAYING:
        raise IllegalActionError("The game is over")


def _require_no_offer(state: GameState) -> None:
    if state.cube.pending_offer:
        raise IllegalActionError("A double is pending; accept or reject it first")


# ==============================================================================
# DICE AND MOVES
# ==============================================================================


def _end_turn(state: GameState) -> GameState:
    return replace(state, turn=state.turn.opponent(), dice=Dice())


def roll(
    state: GameState,
    rng: Optional[np.random.Generator] = None,
    dice: Optional[Dice] = None,
) -> GameState:
    """Roll the dice for the side to act.

    A roll with no playable die completes the turn immediately.

    Args:
        state: Current state
        rng: Random generator (ignored when ``dice`` is given)
        dice: Predetermined roll, e.g. for replays and tests

    Returns:
        New state

    Raises:
        IllegalActionError: Game over, offer pending, or dice already rolled
    """
    _require_playing(state)
    _require_no_offer(state)
    if state.dice.is_rolled:
        raise IllegalActionError(f"{state.turn.title} has already rolled")

    if dice is None:
        dice = roll_dice(rng)
    state = replace(state, dice=dice, turn_number=state.turn_number + 1)
    logger.debug("%s rolls %s", state.turn, dice_to_string(dice))

    turn = turn_rules.start_turn(state.board, state.turn, dice)
    if turn.is_complete:
        logger.debug("%s has no legal move with %s", state.turn, dice_to_string(dice))
        return _end_turn(state)
    return state


def validate_and_apply_move(state: GameState, from_point: int, to_point: int) -> GameState:
    """Validate a move for the side to act and apply it.

    Applies the move, tracks pieces, records history and then either ends
    the game (scoring it with the cube and updating the match), ends the
    turn, or leaves the remaining dice to play.

    Args:
        state: Current state
        from_point: Source point (0-23) or BAR
        to_point: Destination point (0-23) or OFF

    Returns:
        New state

    Raises:
        IllegalActionError: Game over, offer pending, not rolled, or replay stepped back
        RulesError: The move itself is illegal
    """
    _require_playing(state)
    _require_no_offer(state)
    if not state.dice.is_rolled:
        raise IllegalActionError("Roll the dice before moving")
    if not state.history.at_latest:
        raise IllegalActionError("Return to the latest position before moving")

    phase = turn_rules.turn_phase(state.board, state.turn, state.dice)
    turn = turn_rules.TurnState(side=state.turn, board=state.board, dice=state.dice, phase=phase)
    turn = turn_rules.play(turn, from_point, to_point)
    move = turn.moves[-1]

    state = replace(
        state,
        board=turn.board,
        dice=turn.dice,
        pieces=track_move(state.pieces, move, state.turn_number) if state.pieces else state.pieces,
        history=state.history.push(turn.board),
    )

    result = check_game_end_with_cube(state.board, state.cube, state.match)
    if result.game_ended:
        return _finish_game(state, result)
    if turn.is_complete:
        return _end_turn(state)
    return state


def legal_moves(state: GameState) -> List[Move]:
    """Legal next moves for the side to act (empty when it cannot move)."""
    if state.phase != GamePhase.PLAYING or state.cube.pending_offer or not state.dice.is_rolled:
        return []
    return legal_moves_for(state.board, state.turn, state.dice)


def turn_phase(state: GameState) -> TurnPhase:
    if state.phase == GamePhase.GAME_OVER:
        return TurnPhase.TURN_COMPLETE
    return turn_rules.turn_phase(state.board, state.turn, state.dice)


def _finish_game(state: GameState, result: GameEndResult) -> GameState:
    match = update_match_state(state.match, result.winner, result.final_points)
    logger.info("Game over: %s", result.message)
    return replace(
        state,
        phase=GamePhase.GAME_OVER,
        dice=Dice(),
        match=match,
        result=result,
    )


# ==============================================================================
# DOUBLING CUBE
# ==============================================================================


def can_double(state: GameState, max_cube_value: int = MAX_CUBE_VALUE) -> bool:
    """True if the side to act may offer a double right now."""
    if state.dice.is_rolled:
        return False
    return can_double_in_match(
        state.match,
        state.cube,
        state.turn,
        state.phase,
        first_roll=state.turn_number == 0,
        max_value=max_cube_value,
    )


def offer_double(
    state: GameState,
    side: Optional[Side] = None,
    max_cube_value: int = MAX_CUBE_VALUE,
) -> GameState:
    """Offer a double before rolling.

    Raises:
        CannotDoubleError: If the offer is not allowed
    """
    side = side or state.turn
    if side != state.turn:
        raise CannotDoubleError(f"It is not {side}'s turn")
    if state.dice.is_rolled:
        raise CannotDoubleError("Doubles must be offered before rolling")
    if is_crawford_game(state.match):
        raise CannotDoubleError("No doubling in the Crawford game")
    cube = cube_rules.offer_double(
        state.cube, side, state.phase, first_roll=state.turn_number == 0, max_value=max_cube_value
    )
    logger.debug("%s offers the cube at %d", side, cube.value)
    return replace(state, cube=cube)


def _responder(state: GameState, side: Optional[Side]) -> Side:
    if not state.cube.pending_offer:
        raise CannotDoubleError("No double has been offered")
    return side or state.cube.offering_player.opponent()


def accept_double(state: GameState, side: Optional[Side] = None) -> GameState:
    """Take a pending double; the taker owns the cube."""
    _require_playing(state)
    side = _responder(state, side)
    cube = cube_rules.accept_double(state.cube, side)
    logger.debug("%s takes at %d", side, cube.value)
    return replace(state, cube=cube)


def reject_double(state: GameState, side: Optional[Side] = None) -> GameState:
    """Decline a pending double, conceding at the pre-double value."""
    _require_playing(state)
    side = _responder(state, side)
    resolution = cube_rules.reject_double(state.cube, side)
    state = replace(state, cube=resolution.cube_state)
    return _finish_game(state, rejected_double_result(resolution.winner, resolution.points))


def _held_against(state: GameState, side: Optional[Side]) -> Side:
    if side is not None:
        return side
    cube = state.cube
    if cube.pending_offer:
        return cube.offering_player.opponent()
    if cube.owner is not None:
        return cube.owner.opponent()
    raise CannotDoubleError("The cube is centered")


def beaver_double(
    state: GameState,
    side: Optional[Side] = None,
    max_cube_value: int = MAX_CUBE_VALUE,
) -> GameState:
    """Immediately redouble a 2-cube held against ``side``."""
    _require_playing(state)
    if is_crawford_game(state.match):
        raise CannotDoubleError("No doubling in the Crawford game")
    side = _held_against(state, side)
    return replace(state, cube=cube_rules.beaver_double(state.cube, side, max_cube_value))


def raccoon_double(
    state: GameState,
    side: Optional[Side] = None,
    max_cube_value: int = MAX_CUBE_VALUE,
) -> GameState:
    """Immediately redouble a beavered 4-cube held against ``side``."""
    _require_playing(state)
    if is_crawford_game(state.match):
        raise CannotDoubleError("No doubling in the Crawford game")
    side = _held_against(state, side)
    return replace(state, cube=cube_rules.raccoon_double(state.cube, side, max_cube_value))


# ==============================================================================
# GAME AND MATCH LIFECYCLE
# ==============================================================================


def start_new_game(state: GameState, first_turn: Optional[Side] = None) -> GameState:
    """Start the next game of the match, keeping the score.

    Raises:
        IllegalActionError: If the current game is still running or the match is over
    """
    if state.phase != GamePhase.GAME_OVER:
        raise IllegalActionError("The current game has not finished")
    if is_match_complete(state.match):
        raise IllegalActionError("The match is over; start a new match")
    if first_turn is None:
        first_turn = state.result.winner if state.result is not None else Side.WHITE
    logger.info("Starting game %d", state.match.game_number)
    return new_game_state(match=state.match, first_turn=first_turn)


def start_new_match(
    match_length: int = DEFAULT_MATCH_LENGTH,
    first_turn: Side = Side.WHITE,
) -> GameState:
    logger.info("Starting a %d-point match", match_length)
    return new_game_state(match=initial_match_state(match_length), first_turn=first_turn)


def start_single_game(jacoby_rule: bool = False, first_turn: Side = Side.WHITE) -> GameState:
    """Start a money game (no match score, no Crawford rule)."""
    return new_game_state(match=single_game_state(jacoby_rule), first_turn=first_turn)


def end_match(state: GameState) -> GameState:
    """Abandon the current match and reset to a default one."""
    return start_new_match(DEFAULT_MATCH_LENGTH)


# ==============================================================================
# REPLAY AND STATUS
# ==============================================================================


def step_history(state: GameState, direction: int) -> GameState:
    """Step the replay view backwards (-1) or forwards (+1).

    The live board is untouched; moves are refused until the view is back at
    the latest snapshot.
    """
    return replace(state, history=state.history.step(direction))


def status_message(state: GameState) -> str:
    if state.result is not None:
        return state.result.message
    if state.cube.pending_offer:
        return cube_rules.get_doubling_cube_message(state.cube)
    if not state.dice.is_rolled:
        return f"{state.turn.title} to roll"
    message = f"{state.turn.title} to move ({dice_to_string(state.dice)})"
    hint = higher_die_message(state.board, state.turn, state.dice)
    return f"{message}. {hint}" if hint else message

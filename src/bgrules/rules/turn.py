"""Turn resolver.

Sequences one roll into validated moves:

    ROLLING -> (FORCED_REENTRY | FREE_MOVE)* -> TURN_COMPLETE

The turn completes when every die is used or when none of the remaining dice
can be played; those dice are recorded as forfeited.
"""

import logging
from dataclasses import dataclass, replace
from typing import Tuple

from bgrules.core.board import apply_move
from bgrules.core.types import Board, Dice, Move, Side, TurnPhase
from bgrules.errors import IllegalActionError, NoLegalMoveError
from bgrules.rules.validator import has_legal_move, validate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TurnState:
    """A turn in progress.

    Attributes:
        side: Side to move
        board: Board after the moves played so far
        dice: Dice with used flags
        phase: Current turn phase
        moves: Moves played this turn, in order
        forfeited: Dice left unplayed because no legal move exists
    """
    side: Side
    board: Board
    dice: Dice = Dice()
    phase: TurnPhase = TurnPhase.ROLLING
    moves: Tuple[Move, ...] = ()
    forfeited: Tuple[int, ...] = ()

    @property
    def is_complete(self) -> bool:
        return self.phase == TurnPhase.TURN_COMPLETE


def turn_phase(board: Board, side: Side, dice: Dice) -> TurnPhase:
    """Phase implied by a board and dice."""
    if not dice.is_rolled:
        return TurnPhase.ROLLING
    if not has_legal_move(board, side, dice):
        return TurnPhase.TURN_COMPLETE
    if board.bar_count(side) > 0:
        return TurnPhase.FORCED_REENTRY
    return TurnPhase.FREE_MOVE


def _settle(turn: TurnState) -> TurnState:
    phase = turn_phase(turn.board, turn.side, turn.dice)
    if phase != TurnPhase.TURN_COMPLETE:
        return replace(turn, phase=phase)
    forfeited = tuple(turn.dice.remaining())
    if forfeited:
        logger.debug("%s forfeits %s", turn.side, forfeited)
    return replace(turn, phase=phase, forfeited=forfeited)


def start_turn(board: Board, side: Side, dice: Dice) -> TurnState:
    """Begin a turn with a fresh roll.

    Raises:
        IllegalActionError: If ``dice`` has not been rolled
    """
    if not dice.is_rolled:
        raise IllegalActionError("Cannot start a turn without rolling")
    return _settle(TurnState(side=side, board=board, dice=dice))


def play(turn: TurnState, from_point: int, to_point: int) -> TurnState:
    """Validate and play one move.

    Args:
        turn: Current turn
        from_point: Source point or BAR
        to_point: Destination point or OFF

    Returns:
        Updated turn; phase is TURN_COMPLETE once nothing more can be played

    Raises:
        IllegalActionError: If the dice have not been rolled
        NoLegalMoveError: If the turn is already complete
        RulesError: Any validation failure from ``validate``
    """
    if turn.phase == TurnPhase.ROLLING:
        raise IllegalActionError("Roll the dice before moving")
    if turn.phase == TurnPhase.TURN_COMPLETE:
        raise NoLegalMoveError("Turn is complete")

    move = validate(turn.board, turn.side, turn.dice, from_point, to_point)
    logger.debug("%s plays %s", turn.side, move)
    return _settle(
        replace(
            turn,
            board=apply_move(turn.board, move),
            dice=turn.dice.use(move.die),
            moves=turn.moves + (move,),
        )
    )

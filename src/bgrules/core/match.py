"""Match scoring with the Crawford rule.

- Points won in a game are capped at what the winner needs to clinch the
  match, so a gammon cannot overshoot.
- The game right after a side first reaches ``match_length - 1`` is the
  Crawford game: no doubling. Every later game is post-Crawford.
- Single-game (money) mode keeps the same record but never caps points and
  never enters Crawford.
"""

import logging
from dataclasses import replace
from typing import List, Optional, Tuple

from bgrules.config import MATCH_LENGTH_OPTIONS
from bgrules.core.cube import can_offer_double
from bgrules.core.types import MAX_CUBE_VALUE, CubeState, GamePhase, MatchState, Side

logger = logging.getLogger(__name__)

DEFAULT_MATCH_LENGTH = 7


# ==============================================================================
# MATCH CREATION
# ==============================================================================


def match_length_options() -> List[Tuple[int, str]]:
    """Selectable match lengths as ``(value, label)`` pairs."""
    return [(n, f"{n} Point" + ("" if n == 1 else "s")) for n in MATCH_LENGTH_OPTIONS]


def initial_match_state(match_length: int = DEFAULT_MATCH_LENGTH) -> MatchState:
    """Create a new match.

    Args:
        match_length: Points to play to (odd, 1-25)

    Returns:
        New MatchState

    Raises:
        ValueError: If the length is not one of the selectable options
    """
    if match_length not in MATCH_LENGTH_OPTIONS:
        raise ValueError(f"Match length must be one of {MATCH_LENGTH_OPTIONS}, got {match_length}")
    return MatchState(match_length=match_length)


new_match = initial_match_state


def reset_match(match_length: int = DEFAULT_MATCH_LENGTH) -> MatchState:
    return initial_match_state(match_length)


def single_game_state(jacoby_rule: bool = False) -> MatchState:
    """Match record for a single (money) game."""
    return MatchState(match_length=1, is_match_play=False, jacoby_rule=jacoby_rule)


# ==============================================================================
# SCORING
# ==============================================================================


def score_for(match: MatchState, side: Side) -> int:
    return match.score(side)


def calculate_match_points(points: int, match: MatchState, winner: Side) -> int:
    """Cap game points at what ``winner`` still needs to win the match.

    Args:
        points: Game points (base points * cube value)
        match: Current match state
        winner: Side that won the game

    Returns:
        Points to add to the winner's score
    """
    if not match.is_match_play:
        return points
    return max(0, min(points, match.match_length - match.score(winner)))


def update_match_state(match: MatchState, winner: Side, points: int) -> MatchState:
    """Record a finished game.

    Also handles Crawford rule transitions:
    - If a side just reached match point - 1, the next game is Crawford
    - After the Crawford game, play is post-Crawford for the rest of the match

    Args:
        match: Current match state
        winner: Who won the game
        points: Points won (base points * cube value), before capping

    Returns:
        Updated MatchState

    Raises:
        ValueError: If the match is already over
    """
    if match.match_winner is not None:
        raise ValueError(f"Match already won by {match.match_winner}")

    awarded = calculate_match_points(points, match, winner)
    white = match.white_score + (awarded if winner == Side.WHITE else 0)
    black = match.black_score + (awarded if winner == Side.BLACK else 0)

    if not match.is_match_play:
        return replace(
            match,
            white_score=white,
            black_score=black,
            game_number=match.game_number + 1,
        )

    match_winner = None
    if white >= match.match_length:
        match_winner = Side.WHITE
    elif black >= match.match_length:
        match_winner = Side.BLACK

    crawford = False
    post_crawford = match.post_crawford
    if match.crawford_game:
        # Crawford game just happened
        post_crawford = True
    elif not match.post_crawford and match_winner is None:
        threshold = match.match_length - 1
        white_reached = white == threshold and match.white_score < threshold
        black_reached = black == threshold and match.black_score < threshold
        already_there = max(match.white_score, match.black_score) >= threshold
        if (white_reached or black_reached) and not already_there:
            crawford = True

    new_state = replace(
        match,
        white_score=white,
        black_score=black,
        game_number=match.game_number + 1,
        match_winner=match_winner,
        crawford_game=crawford,
        post_crawford=post_crawford,
    )
    if crawford:
        logger.info("Crawford game next (score %d-%d)", white, black)
    if match_winner is not None:
        logger.info("%s wins the match %d-%d", match_winner.title, white, black)
    return new_state


# ==============================================================================
# MATCH QUERIES
# ==============================================================================


def is_crawford_game(match: MatchState) -> bool:
    """In the Crawford game the doubling cube is disabled."""
    return match.is_match_play and match.crawford_game


def is_post_crawford(match: MatchState) -> bool:
    return match.is_match_play and match.post_crawford


def is_match_complete(match: MatchState) -> bool:
    return match.match_winner is not None


def can_double_in_match(
    match: MatchState,
    cube: CubeState,
    side: Side,
    phase: GamePhase = GamePhase.PLAYING,
    first_roll: bool = False,
    max_value: int = MAX_CUBE_VALUE,
) -> bool:
    """Check if doubling is allowed considering match context.

    Doubling is disabled in the Crawford game; otherwise the normal cube
    rules apply, capped at ``max_value``.
    """
    if is_crawford_game(match):
        return False
    return can_offer_double(cube, side, phase, first_roll, max_value)


def get_leader(match: MatchState) -> Optional[Side]:
    """Side ahead in the match, None when tied."""
    if match.white_score > match.black_score:
        return Side.WHITE
    if match.black_score > match.white_score:
        return Side.BLACK
    return None


def get_match_progress(match: MatchState) -> Tuple[float, float]:
    """Percent of the match length each side has scored, as (white, black)."""
    return (
        match.white_score / match.match_length * 100,
        match.black_score / match.match_length * 100,
    )


# ==============================================================================
# DISPLAY
# ==============================================================================


def get_match_score_display(match: MatchState) -> str:
    """One-line scoreboard, e.g. ``"Match to 7 | White 2 - 1 Black | Game 4"``."""
    if not match.is_match_play:
        return "Single Game"

    status = ""
    if match.match_winner is not None:
        status = f" - {match.match_winner.title} wins match!"
    elif match.crawford_game:
        status = " - Crawford Game (no doubling)"
    elif match.post_crawford:
        status = " - Post-Crawford"

    return (
        f"Match to {match.match_length} | "
        f"White {match.white_score} - {match.black_score} Black | "
        f"Game {match.game_number}{status}"
    )


def get_match_status_message(
    match: MatchState,
    game_winner: Optional[Side] = None,
    game_points: int = 0,
) -> str:
    """Status line, optionally previewing the result of a just-finished game."""
    if not match.is_match_play:
        return "Single game mode"

    if match.match_winner is not None:
        return f"{match.match_winner.title} wins the match {match.white_score}-{match.black_score}!"

    if game_winner is not None:
        awarded = calculate_match_points(game_points, match, game_winner)
        white = match.white_score + (awarded if game_winner == Side.WHITE else 0)
        black = match.black_score + (awarded if game_winner == Side.BLACK else 0)
        plural = "s" if awarded != 1 else ""
        return f"{game_winner.title} wins {awarded} point{plural}. Match score: {white}-{black}"

    if match.crawford_game:
        return "Crawford Game - No doubling allowed"
    if match.post_crawford:
        return "Post-Crawford phase - Doubling allowed"
    return f"Match to {match.match_length} points"

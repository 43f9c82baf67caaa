"""Game-end detection and point calculation."""

from dataclasses import dataclass
from typing import Optional

from bgrules.core.board import is_in_home_board
from bgrules.core.cube import calculate_final_points
from bgrules.core.types import (
    BOARD_SIZE,
    PIECES_PER_SIDE,
    Board,
    CubeState,
    MatchState,
    Side,
    WinClass,
)


@dataclass(frozen=True)
class GameEndState:
    """Winner and win class read off a board."""
    winner: Optional[Side]
    win_class: Optional[WinClass]
    points: int


@dataclass(frozen=True)
class GameEndResult:
    """A finished (or unfinished) game scored with the cube.

    Attributes:
        game_ended: True if someone has won
        winner: Winning side
        win_class: Normal, gammon or backgammon
        base_points: 1, 2 or 3 before the cube
        final_points: Points after the cube (and Jacoby rule, if applied)
        message: Human-readable result
        by_rejection: The game ended because a double was declined
    """
    game_ended: bool
    winner: Optional[Side] = None
    win_class: Optional[WinClass] = None
    base_points: int = 0
    final_points: int = 0
    message: str = ""
    by_rejection: bool = False


def has_all_pieces_borne_off(board: Board, side: Side) -> bool:
    return board.off_count(side) == PIECES_PER_SIDE


def get_win_type(board: Board, side: Side) -> Optional[WinClass]:
    """Classify a win by ``side``.

    - Gammon: the loser has not borne off any piece
    - Backgammon: gammon, and the loser still has a piece on the bar or in
      the winner's home board

    Returns:
        WinClass, or None if ``side`` has not borne off all pieces
    """
    if not has_all_pieces_borne_off(board, side):
        return None
    loser = side.opponent()
    if board.off_count(loser) > 0:
        return WinClass.NORMAL
    stranded = board.bar_count(loser) > 0 or any(
        board.count(point, loser) > 0
        for point in range(BOARD_SIZE)
        if is_in_home_board(point, side)
    )
    return WinClass.BACKGAMMON if stranded else WinClass.GAMMON


def calculate_win_points(board: Board, side: Side) -> int:
    win_class = get_win_type(board, side)
    return win_class.points if win_class is not None else 0


def get_game_end_state(board: Board) -> GameEndState:
    for side in Side:
        win_class = get_win_type(board, side)
        if win_class is not None:
            return GameEndState(winner=side, win_class=win_class, points=win_class.points)
    return GameEndState(winner=None, win_class=None, points=0)


def is_game_over(board: Board) -> bool:
    return get_game_end_state(board).winner is not None


def get_win_message(board: Board, side: Side) -> str:
    win_class = get_win_type(board, side)
    if win_class is None:
        return ""
    if win_class == WinClass.BACKGAMMON:
        return f"{side.title} wins by Backgammon! (3x points)"
    if win_class == WinClass.GAMMON:
        return f"{side.title} wins by Gammon! (2x points)"
    return f"{side.title} wins!"


def apply_jacoby(base_points: int, cube: CubeState, match: MatchState) -> int:
    """Jacoby rule: in money play, gammons only count once the cube is turned."""
    if match.jacoby_rule and not match.is_match_play and cube.value == 1:
        return min(base_points, WinClass.NORMAL.points)
    return base_points


def check_game_end_with_cube(
    board: Board,
    cube: CubeState,
    match: Optional[MatchState] = None,
) -> GameEndResult:
    """Detect a finished game and score it with the cube.

    Args:
        board: Current board state
        cube: Current cube state
        match: Match state, used for the Jacoby rule (optional)

    Returns:
        GameEndResult (``game_ended`` False while play continues)
    """
    end = get_game_end_state(board)
    if end.winner is None:
        return GameEndResult(game_ended=False)

    base_points = end.points
    if match is not None:
        base_points = apply_jacoby(base_points, cube, match)
    final_points = calculate_final_points(base_points, cube)
    cube_text = f" (Cube: {cube.value}x)" if cube.value > 1 else ""
    return GameEndResult(
        game_ended=True,
        winner=end.winner,
        win_class=end.win_class,
        base_points=base_points,
        final_points=final_points,
        message=f"{get_win_message(board, end.winner)}{cube_text} Final score: {final_points} points",
    )


def rejected_double_result(winner: Side, points: int) -> GameEndResult:
    """Result of a game conceded by declining a double."""
    plural = "s" if points != 1 else ""
    return GameEndResult(
        game_ended=True,
        winner=winner,
        win_class=WinClass.NORMAL,
        base_points=WinClass.NORMAL.points,
        final_points=points,
        message=f"{winner.opponent().title} declines the double. {winner.title} wins {points} point{plural}",
        by_rejection=True,
    )

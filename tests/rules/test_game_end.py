"""Tests for game-end detection and scoring."""

from bgrules.core.board import board_from_positions, initial_board
from bgrules.core.match import initial_match_state, single_game_state
from bgrules.core.types import CubeState, Side, WinClass
from bgrules.rules.game_end import (
    apply_jacoby,
    calculate_win_points,
    check_game_end_with_cube,
    get_game_end_state,
    get_win_message,
    get_win_type,
    is_game_over,
    rejected_double_result,
)


def white_won(**black):
    """White has borne off everything; black's pieces as given."""
    return board_from_positions(off=(15, black.pop("off", 0)), **black)


class TestWinClassification:
    """Tests for normal, gammon and backgammon."""

    def test_game_in_progress(self):
        assert not is_game_over(initial_board())
        assert get_win_type(initial_board(), Side.WHITE) is None
        assert get_game_end_state(initial_board()).winner is None
        assert calculate_win_points(initial_board(), Side.WHITE) == 0

    def test_normal_win(self):
        board = white_won(black={20: 14}, off=1)
        assert get_win_type(board, Side.WHITE) == WinClass.NORMAL
        assert get_win_message(board, Side.WHITE) == "White wins!"

    def test_gammon(self):
        board = white_won(black={12: 15})
        assert get_win_type(board, Side.WHITE) == WinClass.GAMMON
        assert calculate_win_points(board, Side.WHITE) == 2

    def test_backgammon_from_bar(self):
        board = white_won(black={10: 14}, bar=(0, 1))
        end = get_game_end_state(board)
        assert end.winner == Side.WHITE
        assert end.win_class == WinClass.BACKGAMMON
        assert end.points == 3

    def test_backgammon_in_winner_home(self):
        board = white_won(black={2: 1, 20: 14})
        assert get_win_type(board, Side.WHITE) == WinClass.BACKGAMMON
        assert get_win_message(board, Side.WHITE) == "White wins by Backgammon! (3x points)"

    def test_black_gammon(self):
        board = board_from_positions(white={12: 15}, off=(0, 15))
        assert get_win_type(board, Side.BLACK) == WinClass.GAMMON
        assert get_win_message(board, Side.BLACK) == "Black wins by Gammon! (2x points)"


class TestCubeScoring:
    """Tests for scoring with the cube."""

    def test_no_result_while_playing(self):
        assert not check_game_end_with_cube(initial_board(), CubeState()).game_ended

    def test_gammon_with_cube(self):
        result = check_game_end_with_cube(white_won(black={12: 15}), CubeState(value=4, owner=Side.BLACK))
        assert result.game_ended
        assert result.winner == Side.WHITE
        assert result.base_points == 2
        assert result.final_points == 8
        assert result.message == "White wins by Gammon! (2x points) (Cube: 4x) Final score: 8 points"

    def test_centered_cube_message(self):
        result = check_game_end_with_cube(white_won(black={20: 14}, off=1), CubeState())
        assert result.message == "White wins! Final score: 1 points"

    def test_rejected_double(self):
        result = rejected_double_result(Side.WHITE, 2)
        assert result.by_rejection
        assert result.final_points == 2
        assert result.message == "Black declines the double. White wins 2 points"
        assert rejected_double_result(Side.BLACK, 1).message.endswith("Black wins 1 point")


class TestJacoby:
    """Gammons count only once the cube is turned, in money play with the rule on."""

    def test_unturned_cube_caps_gammon(self):
        match = single_game_state(jacoby_rule=True)
        assert apply_jacoby(2, CubeState(), match) == 1
        result = check_game_end_with_cube(white_won(black={12: 15}), CubeState(), match)
        assert result.final_points == 1

    def test_turned_cube_counts_gammon(self):
        match = single_game_state(jacoby_rule=True)
        cube = CubeState(value=2, owner=Side.BLACK)
        assert check_game_end_with_cube(white_won(black={12: 15}), cube, match).final_points == 4

    def test_not_in_match_play(self):
        assert apply_jacoby(3, CubeState(), initial_match_state(7)) == 3

    def test_rule_off(self):
        assert apply_jacoby(2, CubeState(), single_game_state()) == 2

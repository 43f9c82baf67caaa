"""Tests for the game engine."""

from dataclasses import replace

import pytest

from bgrules.core.board import board_from_positions, initial_board, is_valid_board
from bgrules.core.dice import make_dice
from bgrules.core.match import initial_match_state
from bgrules.core.types import BAR, OFF, CubeState, GamePhase, MatchState, Side, TurnPhase, WinClass
from bgrules.engine import (
    accept_double,
    beaver_double,
    can_double,
    end_match,
    legal_moves,
    new_game_state,
    offer_double,
    raccoon_double,
    reject_double,
    roll,
    start_new_game,
    start_new_match,
    start_single_game,
    status_message,
    step_history,
    turn_phase,
    validate_and_apply_move,
)
from bgrules.errors import CannotDoubleError, IllegalActionError, InvalidMoveError


def play_opening(state):
    """White opens with 3-1 by making the 4 point."""
    state = roll(state, dice=make_dice(3, 1))
    state = validate_and_apply_move(state, 7, 4)
    return validate_and_apply_move(state, 5, 4)


# White needs one more checker off; black has not borne any off.
BEAR_OFF_FINISH = dict(white={0: 1}, black={12: 15}, off=(14, 0))


class TestNewGame:
    """Tests for a fresh game."""

    def test_initial_state(self, fresh_state):
        assert fresh_state.board == initial_board()
        assert fresh_state.turn == Side.WHITE
        assert fresh_state.phase == GamePhase.PLAYING
        assert not fresh_state.dice.is_rolled
        assert fresh_state.turn_number == 0
        assert len(fresh_state.pieces) == 30
        assert len(fresh_state.history) == 1
        assert fresh_state.match.match_length == 7
        assert turn_phase(fresh_state) == TurnPhase.ROLLING
        assert status_message(fresh_state) == "White to roll"

    def test_single_game(self):
        state = start_single_game(jacoby_rule=True)
        assert not state.match.is_match_play
        assert state.match.jacoby_rule

    def test_new_match_length(self):
        assert start_new_match(11, Side.BLACK).match.match_length == 11
        assert start_new_match(11, Side.BLACK).turn == Side.BLACK


class TestTurnFlow:
    """Tests for rolling and moving."""

    def test_roll(self, fresh_state, rng):
        state = roll(fresh_state, rng)
        assert state.dice.is_rolled
        assert state.turn_number == 1

    def test_cannot_roll_twice(self, fresh_state):
        state = roll(fresh_state, dice=make_dice(3, 1))
        with pytest.raises(IllegalActionError):
            roll(state, dice=make_dice(2, 2))

    def test_move_before_roll(self, fresh_state):
        with pytest.raises(IllegalActionError):
            validate_and_apply_move(fresh_state, 7, 4)
        assert legal_moves(fresh_state) == []

    def test_opening_move_passes_turn(self, fresh_state):
        state = roll(fresh_state, dice=make_dice(3, 1))
        assert status_message(state) == "White to move (3-1)"
        state = validate_and_apply_move(state, 7, 4)
        assert state.turn == Side.WHITE
        assert state.dice.remaining() == [1]

        state = validate_and_apply_move(state, 5, 4)
        assert state.turn == Side.BLACK
        assert not state.dice.is_rolled
        assert state.board.count(4, Side.WHITE) == 2
        assert len(state.history) == 3
        assert is_valid_board(state.board)[0]

    def test_illegal_move_keeps_state(self, fresh_state):
        state = roll(fresh_state, dice=make_dice(3, 1))
        with pytest.raises(InvalidMoveError):
            validate_and_apply_move(state, 12, 6)
        assert state.board == initial_board()

    def test_pieces_follow_the_board(self, fresh_state):
        state = play_opening(fresh_state)
        on_four = [p for p in state.pieces if p.position == 4]
        assert len(on_four) == 2
        assert all(p.move_count == 1 for p in on_four)

    def test_roll_without_legal_move_ends_turn(self):
        board = board_from_positions(
            white={3: 14}, black={p: 2 for p in range(18, 24)}, bar=(1, 0)
        )
        state = roll(new_game_state(board=board), dice=make_dice(6, 1))
        assert state.turn == Side.BLACK
        assert not state.dice.is_rolled
        assert state.turn_number == 1

    def test_reentry_hit_goes_to_bar(self):
        board = board_from_positions(white={2: 1, 12: 14}, black={18: 14}, bar=(0, 1))
        state = new_game_state(board=board, first_turn=Side.BLACK)
        state = roll(state, dice=make_dice(3, 5))
        state = validate_and_apply_move(state, BAR, 2)
        assert state.board.bar == (1, 0)
        on_bar = [p for p in state.pieces if p.position == BAR]
        assert [p.player for p in on_bar] == [Side.WHITE]


class TestGameEnd:
    """Tests for finishing a game."""

    def test_bear_off_ends_game(self):
        state = new_game_state(board=board_from_positions(**BEAR_OFF_FINISH))
        state = roll(state, dice=make_dice(1, 2))
        state = validate_and_apply_move(state, 0, OFF)

        assert state.phase == GamePhase.GAME_OVER
        assert state.result.winner == Side.WHITE
        assert state.result.win_class == WinClass.GAMMON
        assert state.result.final_points == 2
        assert state.match.white_score == 2
        assert state.match.game_number == 2
        assert not state.dice.is_rolled
        assert turn_phase(state) == TurnPhase.TURN_COMPLETE
        assert status_message(state) == state.result.message

    def test_actions_after_game_over(self):
        state = new_game_state(board=board_from_positions(**BEAR_OFF_FINISH))
        state = validate_and_apply_move(roll(state, dice=make_dice(1, 2)), 0, OFF)
        with pytest.raises(IllegalActionError):
            roll(state, dice=make_dice(3, 1))
        assert not can_double(state)

    def test_next_game_keeps_score(self):
        state = new_game_state(board=board_from_positions(**BEAR_OFF_FINISH))
        state = validate_and_apply_move(roll(state, dice=make_dice(1, 2)), 0, OFF)

        nxt = start_new_game(state)
        assert nxt.phase == GamePhase.PLAYING
        assert nxt.board == initial_board()
        assert nxt.turn == Side.WHITE
        assert nxt.match.white_score == 2
        assert nxt.cube.value == 1
        assert nxt.turn_number == 0

    def test_next_game_requires_game_over(self, fresh_state):
        with pytest.raises(IllegalActionError):
            start_new_game(fresh_state)

    def test_no_next_game_after_match(self):
        state = new_game_state(
            match=initial_match_state(1), board=board_from_positions(**BEAR_OFF_FINISH)
        )
        state = validate_and_apply_move(roll(state, dice=make_dice(1, 2)), 0, OFF)
        assert state.match.match_winner == Side.WHITE
        assert state.match.white_score == 1
        with pytest.raises(IllegalActionError):
            start_new_game(state)

    def test_end_match_resets(self):
        state = end_match(start_new_match(3))
        assert state.match == initial_match_state(7)


class TestDoubling:
    """Tests for cube actions through the engine."""

    def test_no_double_before_first_roll(self, fresh_state):
        assert not can_double(fresh_state)
        with pytest.raises(CannotDoubleError):
            offer_double(fresh_state)

    def test_offer_and_take(self, fresh_state):
        state = play_opening(fresh_state)
        assert can_double(state)
        state = offer_double(state)
        assert state.cube.pending_offer
        assert "Black offers to double to 2" in status_message(state)

        with pytest.raises(IllegalActionError):
            roll(state, dice=make_dice(3, 1))

        state = accept_double(state)
        assert state.cube.owner == Side.WHITE
        assert state.cube.value == 2
        assert not can_double(state)

    def test_offer_out_of_turn(self, fresh_state):
        state = play_opening(fresh_state)
        with pytest.raises(CannotDoubleError):
            offer_double(state, Side.WHITE)

    def test_offer_after_rolling(self, fresh_state):
        state = roll(play_opening(fresh_state), dice=make_dice(6, 5))
        with pytest.raises(CannotDoubleError):
            offer_double(state)

    def test_reject_concedes(self, fresh_state):
        state = reject_double(offer_double(play_opening(fresh_state)))
        assert state.phase == GamePhase.GAME_OVER
        assert state.result.by_rejection
        assert state.result.winner == Side.BLACK
        assert state.match.black_score == 1
        assert state.cube.value == 2

    def test_accept_without_offer(self, fresh_state):
        with pytest.raises(CannotDoubleError):
            accept_double(fresh_state)

    def test_beaver_and_raccoon(self, fresh_state):
        state = offer_double(play_opening(fresh_state))
        state = beaver_double(state)
        assert state.cube.value == 4
        assert state.cube.owner == Side.WHITE
        assert not state.cube.pending_offer

        state = raccoon_double(state)
        assert state.cube.value == 8
        assert state.cube.owner == Side.BLACK

    def test_cube_limit(self, fresh_state):
        state = play_opening(fresh_state)
        assert can_double(state, max_cube_value=2)
        assert not can_double(state, max_cube_value=1)
        with pytest.raises(CannotDoubleError):
            offer_double(state, max_cube_value=1)

        state = offer_double(state, max_cube_value=2)
        with pytest.raises(CannotDoubleError):
            beaver_double(state, max_cube_value=2)
        assert beaver_double(state, max_cube_value=4).cube.value == 4

    def test_crawford_game_blocks_cube(self):
        match = MatchState(match_length=5, white_score=4, crawford_game=True)
        state = play_opening(new_game_state(match=match))
        assert not can_double(state)
        with pytest.raises(CannotDoubleError):
            offer_double(state)

    def test_gammon_doubled_by_cube(self):
        state = replace(
            new_game_state(board=board_from_positions(**BEAR_OFF_FINISH), match=initial_match_state(11)),
            cube=CubeState(value=2, owner=Side.WHITE),
        )
        state = validate_and_apply_move(roll(state, dice=make_dice(6, 5)), 0, OFF)
        assert state.result.final_points == 4
        assert state.match.white_score == 4
        assert "(Cube: 2x)" in state.result.message


class TestReplay:
    """Tests for stepping through history."""

    def test_step_back_and_forward(self, fresh_state):
        state = play_opening(fresh_state)
        back = step_history(state, -1)
        assert back.displayed_board != state.board
        assert back.board == state.board
        assert step_history(back, 1).displayed_board == state.board
        assert step_history(step_history(state, -10), -1).history.index == 0

    def test_moves_refused_while_stepped_back(self, fresh_state):
        state = roll(play_opening(fresh_state), dice=make_dice(6, 5))
        back = step_history(state, -1)
        with pytest.raises(IllegalActionError):
            validate_and_apply_move(back, 0, 6)
        forward = step_history(back, 1)
        assert validate_and_apply_move(forward, 0, 6).board.count(6, Side.BLACK) == 1

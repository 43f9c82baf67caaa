"""Tests for the turn resolver."""

import pytest

from bgrules.core.board import board_from_positions, is_valid_board
from bgrules.core.dice import make_dice
from bgrules.core.types import BAR, Dice, MoveKind, Side, TurnPhase
from bgrules.errors import (
    IllegalActionError,
    InvalidMoveError,
    MustReenterFromBarError,
    NoLegalMoveError,
)
from bgrules.rules.turn import TurnState, play, start_turn, turn_phase


class TestDoubles:
    """A roll of doubles gives four moves."""

    def test_white_plays_four_threes(self):
        turn = start_turn(board_from_positions(white={23: 2}), Side.WHITE, make_dice(3, 3))
        assert turn.phase == TurnPhase.FREE_MOVE
        for from_point in (23, 20, 17, 14):
            assert not turn.is_complete
            turn = play(turn, from_point, from_point - 3)
        assert turn.is_complete
        assert turn.forfeited == ()
        assert turn.board.count(11, Side.WHITE) == 1
        assert turn.board.count(23, Side.WHITE) == 1

    def test_black_plays_four_threes(self):
        """Double 3s run one checker 0->3->6->9->12.

        Black moves toward higher points, so the sequence starting on point 0
        is played by black. The white test above plays its mirror image,
        23->20->17->14->11.
        """
        turn = start_turn(board_from_positions(black={0: 2}), Side.BLACK, make_dice(3, 3))
        for from_point in (0, 3, 6, 9):
            turn = play(turn, from_point, from_point + 3)
        assert turn.is_complete
        assert len(turn.moves) == 4
        assert turn.dice.all_used
        assert turn.board.count(12, Side.BLACK) == 1


class TestHitAndReentry:
    """A hit forces the opponent's next turn to start from the bar."""

    def test_hit_then_forced_reentry(self):
        board = board_from_positions(white={5: 1, 12: 14}, black={3: 1, 18: 14})
        turn = start_turn(board, Side.BLACK, make_dice(2, 4))
        turn = play(turn, 3, 5)
        assert turn.moves[-1].kind == MoveKind.HIT
        assert turn.board.bar == (1, 0)
        assert is_valid_board(turn.board)[0]

        turn = play(turn, 5, 9)
        assert turn.is_complete

        reply = start_turn(turn.board, Side.WHITE, make_dice(6, 5))
        assert reply.phase == TurnPhase.FORCED_REENTRY
        with pytest.raises(MustReenterFromBarError):
            play(reply, 12, 6)

        # 18 is held by black, so only the 5 enters
        reply = play(reply, BAR, 19)
        assert reply.board.bar == (0, 0)
        assert reply.phase == TurnPhase.FREE_MOVE


class TestForfeits:
    """Unplayable dice end the turn."""

    def test_closed_board_forfeits_everything(self):
        board = board_from_positions(white={3: 14}, black={p: 2 for p in range(18, 24)}, bar=(1, 0))
        turn = start_turn(board, Side.WHITE, make_dice(6, 1))
        assert turn.is_complete
        assert turn.forfeited == (6, 1)
        assert turn.moves == ()

    def test_partial_forfeit(self):
        board = board_from_positions(white={10: 1}, black={2: 2})
        turn = start_turn(board, Side.WHITE, make_dice(6, 2))
        turn = play(turn, 10, 4)
        assert turn.is_complete
        assert turn.forfeited == (2,)

    def test_play_after_complete(self):
        board = board_from_positions(white={10: 1}, black={2: 2})
        turn = play(start_turn(board, Side.WHITE, make_dice(6, 2)), 10, 4)
        with pytest.raises(NoLegalMoveError):
            play(turn, 4, 2)


class TestPhases:
    """Tests for phase bookkeeping."""

    def test_rolling_phase(self, start_board):
        assert turn_phase(start_board, Side.WHITE, Dice()) == TurnPhase.ROLLING
        with pytest.raises(IllegalActionError):
            play(TurnState(side=Side.WHITE, board=start_board), 7, 4)

    def test_start_without_dice(self, start_board):
        with pytest.raises(IllegalActionError):
            start_turn(start_board, Side.WHITE, Dice())

    def test_failed_move_leaves_turn_unchanged(self, start_board):
        turn = start_turn(start_board, Side.WHITE, make_dice(3, 1))
        with pytest.raises(InvalidMoveError):
            play(turn, 9, 6)
        assert turn.moves == ()
        assert turn.board == start_board

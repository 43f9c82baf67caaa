"""Tests for snapshot persistence."""

import copy
import json

import pytest
from pydantic import ValidationError

from bgrules.core.dice import make_dice
from bgrules.core.types import CubeState, Side
from bgrules.engine import (
    offer_double,
    reject_double,
    roll,
    start_new_match,
    start_single_game,
    step_history,
    validate_and_apply_move,
)
from bgrules.errors import CorruptStateError, Reason
from bgrules.snapshot import SNAPSHOT_VERSION, deserialize, dumps, loads, serialize


def mid_turn_state(fresh_state):
    state = roll(fresh_state, dice=make_dice(3, 1))
    return validate_and_apply_move(state, 7, 4)


class TestRoundTrip:
    """A saved state loads back unchanged."""

    def test_fresh_state(self, fresh_state):
        assert deserialize(serialize(fresh_state)) == fresh_state

    def test_mid_turn(self, fresh_state):
        state = mid_turn_state(fresh_state)
        data = serialize(state)
        assert data["dice"] == [3, 1]
        assert data["used_dice"] == [0]
        assert data["version"] == SNAPSHOT_VERSION
        assert loads(dumps(state)) == state

    def test_stepped_back_history(self, fresh_state):
        state = step_history(mid_turn_state(fresh_state), -1)
        restored = loads(dumps(state))
        assert restored.history.index == 0
        assert restored.displayed_board == state.displayed_board

    def test_finished_game(self, fresh_state):
        state = mid_turn_state(fresh_state)
        state = validate_and_apply_move(state, 5, 4)
        state = reject_double(offer_double(state))
        restored = loads(dumps(state))
        assert restored == state
        assert restored.result.by_rejection
        assert restored.match.black_score == 1

    def test_money_game(self):
        state = start_single_game(jacoby_rule=True)
        restored = loads(dumps(state))
        assert not restored.match.is_match_play
        assert restored.match.jacoby_rule

    def test_finished_match(self):
        state = validate_and_apply_move(mid_turn_state(start_new_match(1)), 5, 4)
        state = reject_double(offer_double(state))
        restored = loads(dumps(state))
        assert restored == state
        assert restored.match.match_winner == Side.BLACK
        assert restored.match.black_score == 1

    def test_owner_redouble_pending(self, fresh_state):
        data = serialize(fresh_state)
        data["cube"] = {"value": 4, "owner": "white", "pending_offer": True, "offering_player": "white"}
        assert deserialize(data).cube == CubeState(
            value=4, owner=Side.WHITE, pending_offer=True, offering_player=Side.WHITE
        )

    def test_json_is_plain(self, fresh_state):
        data = json.loads(dumps(fresh_state))
        assert data["turn"] == "white"
        assert data["phase"] == "playing"
        assert len(data["board"]) == 24
        assert data["pieces"][0]["state"] == "active"


class TestCorruptSnapshots:
    """Anything malformed raises CorruptStateError."""

    @pytest.fixture
    def data(self, fresh_state):
        return serialize(mid_turn_state(fresh_state))

    def check(self, data):
        with pytest.raises(CorruptStateError) as excinfo:
            deserialize(data)
        assert excinfo.value.reason == Reason.CORRUPT_STATE

    def test_missing_key(self, data):
        del data["cube"]
        self.check(data)

    def test_wrong_board_shape(self, data):
        data["board"] = data["board"][:23]
        self.check(data)

    def test_negative_count(self, data):
        data["board"][9] = [-1, 0]
        self.check(data)

    def test_conservation(self, data):
        data["board"][9] = [1, 0]
        self.check(data)

    def test_both_sides_on_a_point(self, data):
        data["board"][12] = [4, 1]
        data["board"][11] = [0, 4]
        self.check(data)

    def test_unknown_side(self, data):
        data["turn"] = "red"
        self.check(data)

    def test_unknown_phase(self, data):
        data["phase"] = "paused"
        self.check(data)

    def test_bad_cube_value(self, data):
        data["cube"]["value"] = 3
        self.check(data)

    def test_offer_without_offerer(self, data):
        data["cube"]["pending_offer"] = True
        self.check(data)

    def test_off_menu_match_length(self, data):
        data["match"]["match_length"] = 4
        self.check(data)

    def test_used_dice_out_of_range(self, data):
        data["used_dice"] = [0, 5]
        self.check(data)

    def test_bad_dice(self, data):
        data["dice"] = [3, 1, 2]
        self.check(data)

    def test_doubles_stored_as_two_dice(self, data):
        data["dice"] = [3, 3]
        self.check(data)

    def test_offer_by_side_not_owning_cube(self, data):
        data["cube"] = {"value": 4, "owner": "white", "pending_offer": True, "offering_player": "black"}
        self.check(data)

    def test_match_winner_without_points(self, data):
        data["match"]["match_winner"] = "white"
        self.check(data)

    def test_score_above_match_length(self, data):
        data["match"]["white_score"] = 40
        self.check(data)

    def test_winner_missing_at_match_length(self, data):
        data["match"]["black_score"] = 7
        self.check(data)

    def test_strings_are_not_numbers(self, data):
        data["turn_number"] = "1"
        self.check(data)

    def test_booleans_are_not_counts(self, data):
        data["bar"] = [True, 0]
        self.check(data)

    def test_history_index(self, data):
        data["history"]["index"] = 7
        self.check(data)

    def test_corrupt_history_board(self, data):
        data["history"]["snapshots"][0]["bar"] = [1, 0]
        self.check(data)

    def test_pieces_out_of_sync(self, data):
        piece = next(p for p in data["pieces"] if p["position"] == 23)
        piece["position"] = 22
        self.check(data)

    def test_unsupported_version(self, data):
        data["version"] = 99
        self.check(data)

    def test_not_an_object(self):
        self.check([1, 2, 3])

    def test_validation_details_kept(self, data):
        data["cube"]["value"] = 3
        with pytest.raises(CorruptStateError) as excinfo:
            deserialize(data)
        assert isinstance(excinfo.value.__cause__, ValidationError)
        assert str(excinfo.value).startswith("cube.value")

    def test_invalid_json(self):
        with pytest.raises(CorruptStateError):
            loads("{not json")

    def test_original_untouched(self, fresh_state):
        data = serialize(fresh_state)
        pristine = copy.deepcopy(data)
        data["cube"]["value"] = 5
        with pytest.raises(CorruptStateError):
            deserialize(data)
        assert deserialize(pristine) == fresh_state


class TestSides:
    def test_black_turn_round_trip(self, fresh_state):
        state = validate_and_apply_move(mid_turn_state(fresh_state), 5, 4)
        assert state.turn == Side.BLACK
        assert loads(dumps(state)).turn == Side.BLACK


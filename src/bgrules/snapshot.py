"""Persisted game snapshots.

``serialize`` turns a ``GameState`` into plain JSON-compatible data and
``deserialize`` rebuilds it. Loading goes through the pydantic models below,
which check shapes and types field by field and then cross-field rules
such as piece conservation and cube consistency. A snapshot that fails
validation raises ``CorruptStateError``; the caller decides whether to fall
back to a fresh game.
"""

import json
import logging
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple

import numpy as np
from pydantic import (
    BaseModel,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
    model_validator,
)

from bgrules.config import MATCH_LENGTH_OPTIONS
from bgrules.core.pieces import synchronize_board_from_pieces
from bgrules.core.types import (
    BAR,
    BOARD_SIZE,
    MAX_CUBE_VALUE,
    OFF,
    PIECES_PER_SIDE,
    Board,
    CubeState,
    Dice,
    GamePhase,
    MatchState,
    Piece,
    PieceState,
    Point,
    Side,
    WinClass,
)
from bgrules.engine import GameState
from bgrules.errors import CorruptStateError
from bgrules.history import ReplayHistory
from bgrules.rules.game_end import GameEndResult

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1

Count = Annotated[StrictInt, Field(ge=0)]
DieValue = Annotated[StrictInt, Field(ge=1, le=6)]
SidePair = Tuple[Count, Count]  # (white, black)


# ==============================================================================
# SERIALIZE
# ==============================================================================


def _side(side: Optional[Side]) -> Optional[str]:
    return side.value if side is not None else None


def board_to_dict(board: Board) -> Dict[str, Any]:
    return {
        "board": [[p.white, p.black] for p in board.points],
        "bar": list(board.bar),
        "off": list(board.off),
    }


def _result_to_dict(result: Optional[GameEndResult]) -> Optional[Dict[str, Any]]:
    if result is None:
        return None
    return {
        "game_ended": result.game_ended,
        "winner": _side(result.winner),
        "win_class": result.win_class.value if result.win_class is not None else None,
        "base_points": result.base_points,
        "final_points": result.final_points,
        "message": result.message,
        "by_rejection": result.by_rejection,
    }


def serialize(state: GameState) -> Dict[str, Any]:
    """Convert a game state to JSON-compatible data.

    Args:
        state: State to persist

    Returns:
        Dict of plain lists, ints, strings, bools and None
    """
    data = board_to_dict(state.board)
    data.update({
        "version": SNAPSHOT_VERSION,
        "dice": list(state.dice.values),
        "used_dice": [i for i, used in enumerate(state.dice.used) if used],
        "turn": state.turn.value,
        "phase": state.phase.value,
        "turn_number": state.turn_number,
        "cube": {
            "value": state.cube.value,
            "owner": _side(state.cube.owner),
            "pending_offer": state.cube.pending_offer,
            "offering_player": _side(state.cube.offering_player),
        },
        "match": {
            "match_length": state.match.match_length,
            "white_score": state.match.white_score,
            "black_score": state.match.black_score,
            "game_number": state.match.game_number,
            "match_winner": _side(state.match.match_winner),
            "is_match_play": state.match.is_match_play,
            "crawford_game": state.match.crawford_game,
            "post_crawford": state.match.post_crawford,
            "jacoby_rule": state.match.jacoby_rule,
        },
        "history": {
            "snapshots": [board_to_dict(b) for b in state.history.snapshots],
            "index": state.history.index,
        },
        "pieces": [
            {
                "id": p.id,
                "player": p.player.value,
                "position": p.position,
                "state": p.state.value,
                "move_count": p.move_count,
                "last_move_turn": p.last_move_turn,
                "is_blot": p.is_blot,
            }
            for p in state.pieces
        ],
        "result": _result_to_dict(state.result),
    })
    return data


def dumps(state: GameState) -> str:
    return json.dumps(serialize(state))


# ==============================================================================
# SNAPSHOT MODELS
# ==============================================================================


class BoardModel(BaseModel):
    """A board: 24 ``[white, black]`` points plus bar and borne-off pairs."""

    board: List[SidePair] = Field(..., min_length=BOARD_SIZE, max_length=BOARD_SIZE)
    bar: SidePair
    off: SidePair

    @model_validator(mode="after")
    def check_board(self) -> "BoardModel":
        counts = np.asarray(self.board)
        shared = np.flatnonzero((counts > 0).all(axis=1))
        if shared.size:
            raise ValueError(f"both sides on point {int(shared[0])}")
        totals = counts.sum(axis=0) + np.asarray(self.bar) + np.asarray(self.off)
        if not (totals == PIECES_PER_SIDE).all():
            raise ValueError(f"expected {PIECES_PER_SIDE} pieces per side, got {totals.tolist()}")
        return self

    def to_board(self) -> Board:
        return Board(
            points=tuple(Point(white=w, black=b) for w, b in self.board),
            bar=self.bar,
            off=self.off,
        )


class DiceModel(BaseModel):
    """Rolled values and the indices of the ones already played."""

    dice: List[DieValue] = Field(..., max_length=4)
    used_dice: List[Count]

    @model_validator(mode="after")
    def check_dice(self) -> "DiceModel":
        values = self.dice
        if len(values) not in (0, 2, 4):
            raise ValueError(f"expected 0, 2 or 4 dice, got {len(values)}")
        if len(values) == 4 and len(set(values)) != 1:
            raise ValueError(f"four dice must be doubles, got {values}")
        if len(values) == 2 and values[0] == values[1]:
            raise ValueError(f"doubles are stored as four dice, got {values}")
        if len(set(self.used_dice)) != len(self.used_dice):
            raise ValueError("used_dice has duplicates")
        if any(i >= len(values) for i in self.used_dice):
            raise ValueError(f"used_dice {self.used_dice} out of range for {len(values)} dice")
        return self

    def to_dice(self) -> Dice:
        used = set(self.used_dice)
        return Dice(values=tuple(self.dice), used=tuple(i in used for i in range(len(self.dice))))


class CubeModel(BaseModel):
    value: Annotated[StrictInt, Field(ge=1, le=MAX_CUBE_VALUE)]
    owner: Optional[Side]
    pending_offer: StrictBool
    offering_player: Optional[Side]

    @field_validator("value")
    @classmethod
    def check_power_of_two(cls, value: int) -> int:
        if value & (value - 1):
            raise ValueError(f"cube value must be a power of two, got {value}")
        return value

    @model_validator(mode="after")
    def check_offer(self) -> "CubeModel":
        if self.pending_offer != (self.offering_player is not None):
            raise ValueError("offering_player must be set exactly when an offer is pending")
        if self.pending_offer and self.owner not in (None, self.offering_player):
            raise ValueError(f"{self.offering_player.value} offered a cube owned by {self.owner.value}")
        return self

    def to_cube(self) -> CubeState:
        return CubeState(
            value=self.value,
            owner=self.owner,
            pending_offer=self.pending_offer,
            offering_player=self.offering_player,
        )


class MatchModel(BaseModel):
    """Match score and Crawford flags.

    In match play the scores are capped at ``match_length`` and the match
    winner is exactly the side that reached it.
    """

    match_length: Annotated[StrictInt, Field(ge=1)]
    white_score: Count
    black_score: Count
    game_number: Annotated[StrictInt, Field(ge=1)]
    match_winner: Optional[Side]
    is_match_play: StrictBool
    crawford_game: StrictBool
    post_crawford: StrictBool
    jacoby_rule: StrictBool

    @model_validator(mode="after")
    def check_match(self) -> "MatchModel":
        if self.crawford_game and self.post_crawford:
            raise ValueError("crawford_game and post_crawford are exclusive")
        if not self.is_match_play:
            if self.match_winner is not None:
                raise ValueError("a single game has no match winner")
            return self

        length = self.match_length
        if length not in MATCH_LENGTH_OPTIONS:
            raise ValueError(f"invalid match length {length}")
        scores = {Side.WHITE: self.white_score, Side.BLACK: self.black_score}
        score_text = f"{scores[Side.WHITE]}-{scores[Side.BLACK]}"
        if max(scores.values()) > length:
            raise ValueError(f"score {score_text} exceeds a {length}-point match")
        reached = [side for side, score in scores.items() if score == length]
        if len(reached) > 1:
            raise ValueError("both sides reached the match length")
        expected = reached[0] if reached else None
        if self.match_winner != expected:
            raise ValueError(
                f"match_winner {_side(self.match_winner)!r} does not fit the score {score_text} to {length}"
            )
        return self

    def to_match(self) -> MatchState:
        return MatchState(**self.model_dump())


class HistoryModel(BaseModel):
    snapshots: List[BoardModel]
    index: StrictInt

    @model_validator(mode="after")
    def check_index(self) -> "HistoryModel":
        if not -1 <= self.index < len(self.snapshots) or (self.index < 0 and self.snapshots):
            raise ValueError(f"history index {self.index} out of range for {len(self.snapshots)} snapshots")
        return self

    def to_history(self) -> ReplayHistory:
        return ReplayHistory(
            snapshots=tuple(b.to_board() for b in self.snapshots),
            index=self.index,
        )


class PieceModel(BaseModel):
    id: StrictStr
    player: Side
    position: StrictInt
    state: PieceState
    move_count: Count
    last_move_turn: Optional[StrictInt]
    is_blot: StrictBool

    @model_validator(mode="after")
    def check_position(self) -> "PieceModel":
        if not (0 <= self.position < BOARD_SIZE or self.position in (BAR, OFF)):
            raise ValueError(f"invalid piece position {self.position}")
        expected = {BAR: PieceState.ON_BAR, OFF: PieceState.BORNE_OFF}.get(self.position, PieceState.ACTIVE)
        if self.state != expected:
            raise ValueError(f"piece {self.id} at {self.position} cannot be {self.state.value}")
        return self

    def to_piece(self) -> Piece:
        return Piece(**self.model_dump())


class ResultModel(BaseModel):
    game_ended: StrictBool
    winner: Optional[Side]
    win_class: Optional[WinClass]
    base_points: Count
    final_points: Count
    message: StrictStr
    by_rejection: StrictBool

    @model_validator(mode="after")
    def check_winner(self) -> "ResultModel":
        if self.game_ended and self.winner is None:
            raise ValueError("a finished game needs a winner")
        return self

    def to_result(self) -> GameEndResult:
        return GameEndResult(**self.model_dump())


class SnapshotModel(BoardModel, DiceModel):
    """The whole persisted game: live board and dice plus everything else."""

    version: Literal[SNAPSHOT_VERSION]
    turn: Side
    phase: GamePhase
    turn_number: Count
    cube: CubeModel
    match: MatchModel
    history: HistoryModel
    pieces: List[PieceModel]
    result: Optional[ResultModel]

    @model_validator(mode="after")
    def check_pieces(self) -> "SnapshotModel":
        # Older snapshots may carry no piece records at all
        if not self.pieces:
            return self
        if len({p.id for p in self.pieces}) != len(self.pieces):
            raise ValueError("duplicate piece ids")
        pieces = [p.to_piece() for p in self.pieces]
        if synchronize_board_from_pieces(pieces) != self.to_board():
            raise ValueError("pieces do not match the board")
        return self

    def to_state(self) -> GameState:
        return GameState(
            board=self.to_board(),
            turn=self.turn,
            phase=self.phase,
            dice=self.to_dice(),
            cube=self.cube.to_cube(),
            match=self.match.to_match(),
            history=self.history.to_history(),
            turn_number=self.turn_number,
            pieces=tuple(p.to_piece() for p in self.pieces),
            result=self.result.to_result() if self.result is not None else None,
        )


# ==============================================================================
# DESERIALIZE
# ==============================================================================


def _fail(message: str) -> CorruptStateError:
    logger.warning("Rejected snapshot: %s", message)
    return CorruptStateError(message)


def _describe(exc: ValidationError) -> str:
    first = exc.errors()[0]
    where = ".".join(str(part) for part in first["loc"]) or "snapshot"
    more = exc.error_count() - 1
    suffix = f" (and {more} more)" if more else ""
    return f"{where}: {first['msg']}{suffix}"


def deserialize(data: Dict[str, Any]) -> GameState:
    """Rebuild a game state from ``serialize`` output.

    Args:
        data: Snapshot data

    Returns:
        The persisted GameState

    Raises:
        CorruptStateError: Missing keys, bad shapes, negative counts, broken
            conservation, unknown enum values or inconsistent sub-states
    """
    try:
        model = SnapshotModel.model_validate(data)
    except ValidationError as exc:
        raise _fail(_describe(exc)) from exc
    return model.to_state()


def loads(text: str) -> GameState:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise _fail(f"invalid JSON: {exc}") from exc
    return deserialize(data)

"""Agent-vs-agent game and match simulation.

Drives the engine through complete games, including cube decisions, so that
match-level behaviour (score capping, Crawford and post-Crawford games) can be
observed over many matches.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from bgrules import engine
from bgrules.agents import Agent, CubeResponse
from bgrules.core.cube import can_beaver
from bgrules.core.match import DEFAULT_MATCH_LENGTH, is_match_complete
from bgrules.core.types import MAX_CUBE_VALUE, GamePhase, Side, WinClass
from bgrules.engine import GameState
from bgrules.recorder import GameRecorder
from bgrules.rules.game_end import GameEndResult

logger = logging.getLogger(__name__)


@dataclass
class GameResult:
    """Result of one simulated game."""
    final_state: GameState
    result: Optional[GameEndResult]  # None if the move limit was hit
    num_moves: int
    crawford: bool
    game_number: int


@dataclass
class MatchResult:
    """Result of one simulated match."""
    final_state: GameState
    games: List[GameResult] = field(default_factory=list)

    @property
    def winner(self) -> Optional[Side]:
        """Match winner, or the game winner for a single money game."""
        if not self.final_state.match.is_match_play:
            result = self.final_state.result
            return result.winner if result is not None else None
        return self.final_state.match.match_winner


def _cube_phase(
    state: GameState,
    agents: Dict[Side, Agent],
    recorder: Optional[GameRecorder],
    max_cube_value: int = MAX_CUBE_VALUE,
) -> GameState:
    """Let the side to act double, and its opponent respond."""
    doubler = state.turn
    if not engine.can_double(state, max_cube_value) or not agents[doubler].wants_to_double(state):
        return state

    state = engine.offer_double(state, max_cube_value=max_cube_value)
    if recorder is not None:
        recorder.log_cube_action("offer", doubler, state.cube.value)

    taker = doubler.opponent()
    response = agents[taker].respond_to_double(state)
    if response == CubeResponse.BEAVER and can_beaver(state.cube, taker, max_cube_value):
        state = engine.beaver_double(state, taker, max_cube_value)
        action = "beaver"
    elif response == CubeResponse.PASS:
        state = engine.reject_double(state, taker)
        action = "pass"
    else:
        state = engine.accept_double(state, taker)
        action = "take"
    if recorder is not None:
        recorder.log_cube_action(action, taker, state.cube.value)
    return state


def play_game(
    state: GameState,
    white_agent: Agent,
    black_agent: Agent,
    max_moves: int = 2000,
    rng: Optional[np.random.Generator] = None,
    recorder: Optional[GameRecorder] = None,
    max_cube_value: int = MAX_CUBE_VALUE,
) -> GameResult:
    """Play a single game between two agents.

    Args:
        state: State at the start of the game
        white_agent: Agent playing white
        black_agent: Agent playing black
        max_moves: Maximum checker moves before giving up on the game
        rng: Random number generator
        recorder: Optional event recorder
        max_cube_value: Highest cube value either side may double to

    Returns:
        GameResult with the final state
    """
    if rng is None:
        rng = np.random.default_rng()

    agents = {Side.WHITE: white_agent, Side.BLACK: black_agent}
    crawford = state.match.crawford_game
    game_number = state.match.game_number
    num_moves = 0

    while state.phase == GamePhase.PLAYING and num_moves < max_moves:
        state = _cube_phase(state, agents, recorder, max_cube_value)
        if state.phase != GamePhase.PLAYING:
            break

        state = engine.roll(state, rng)
        agent = agents[state.turn]
        while state.phase == GamePhase.PLAYING and state.dice.is_rolled:
            move = agent.select_move(state, engine.legal_moves(state))
            state = engine.validate_and_apply_move(state, move.from_point, move.to_point)
            num_moves += 1

    if state.phase != GamePhase.GAME_OVER:
        logger.warning("Game %d stopped after %d moves without a winner", game_number, num_moves)

    if recorder is not None and state.result is not None:
        recorder.log_game_end(state.result, game_number, num_moves)

    return GameResult(
        final_state=state,
        result=state.result,
        num_moves=num_moves,
        crawford=crawford,
        game_number=game_number,
    )


def play_match(
    white_agent: Agent,
    black_agent: Agent,
    match_length: int = DEFAULT_MATCH_LENGTH,
    max_moves_per_game: int = 2000,
    rng: Optional[np.random.Generator] = None,
    recorder: Optional[GameRecorder] = None,
    max_cube_value: int = MAX_CUBE_VALUE,
) -> MatchResult:
    """Play a full match between two agents.

    Args:
        white_agent: Agent playing white
        black_agent: Agent playing black
        match_length: Points to play to
        max_moves_per_game: Per-game move limit
        rng: Random number generator
        recorder: Optional event recorder
        max_cube_value: Highest cube value either side may double to

    Returns:
        MatchResult with every game played
    """
    if rng is None:
        rng = np.random.default_rng()

    state = engine.start_new_match(match_length)
    match = MatchResult(final_state=state)

    while True:
        game = play_game(
            state, white_agent, black_agent, max_moves_per_game, rng, recorder, max_cube_value
        )
        match.games.append(game)
        match.final_state = game.final_state
        if game.result is None or is_match_complete(game.final_state.match):
            break
        state = engine.start_new_game(game.final_state)

    logger.info(
        "Match finished after %d games: %s",
        len(match.games),
        engine.status_message(match.final_state),
    )
    return match


def play_single_game(
    white_agent: Agent,
    black_agent: Agent,
    jacoby_rule: bool = False,
    max_moves: int = 2000,
    rng: Optional[np.random.Generator] = None,
    recorder: Optional[GameRecorder] = None,
    max_cube_value: int = MAX_CUBE_VALUE,
) -> MatchResult:
    """Play one money game, reported as a one-game MatchResult.

    Points are not capped and there is no Crawford game. With ``jacoby_rule``
    gammons and backgammons only count once the cube has been turned.
    """
    state = engine.start_single_game(jacoby_rule=jacoby_rule)
    game = play_game(state, white_agent, black_agent, max_moves, rng, recorder, max_cube_value)
    return MatchResult(final_state=game.final_state, games=[game])


def compute_match_statistics(matches: List[MatchResult]) -> dict:
    """Compute statistics from a batch of matches.

    Args:
        matches: List of match results

    Returns:
        Dictionary of statistics
    """
    total_matches = len(matches)
    games = [g for m in matches for g in m.games]
    finished = [g for g in games if g.result is not None]

    white_wins = sum(1 for m in matches if m.winner == Side.WHITE)
    black_wins = sum(1 for m in matches if m.winner == Side.BLACK)

    return {
        'total_matches': total_matches,
        'white_match_wins': white_wins,
        'black_match_wins': black_wins,
        'unfinished_matches': total_matches - white_wins - black_wins,
        'total_games': len(games),
        'avg_games_per_match': float(np.mean([len(m.games) for m in matches])) if matches else 0.0,
        'avg_moves_per_game': float(np.mean([g.num_moves for g in games])) if games else 0.0,
        'gammons': sum(1 for g in finished if g.result.win_class == WinClass.GAMMON),
        'backgammons': sum(1 for g in finished if g.result.win_class == WinClass.BACKGAMMON),
        'doubles_declined': sum(1 for g in finished if g.result.by_rejection),
        'crawford_games': sum(1 for g in games if g.crawford),
        'max_cube_value': max((g.final_state.cube.value for g in games), default=1),
    }

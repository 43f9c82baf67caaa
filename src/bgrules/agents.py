"""Player agents for simulated matches.

Agents are deliberately simple. They only need to produce legal actions so
that full matches, with cube play and Crawford transitions, can be exercised
end to end.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

import numpy as np

from bgrules.core.types import Move
from bgrules.engine import GameState


class CubeResponse(Enum):
    TAKE = "take"
    PASS = "pass"
    BEAVER = "beaver"


@dataclass
class Agent:
    """An agent that plays moves and makes cube decisions.

    Attributes:
        name: Agent name for identification
        select_move_fn: Picks one of the legal moves
        offer_double_fn: Decides whether to double before rolling
        respond_fn: Answers a pending double
    """
    name: str
    select_move_fn: Callable[[GameState, List[Move]], Move]
    offer_double_fn: Callable[[GameState], bool]
    respond_fn: Callable[[GameState], CubeResponse]

    def select_move(self, state: GameState, legal_moves: List[Move]) -> Move:
        return self.select_move_fn(state, legal_moves)

    def wants_to_double(self, state: GameState) -> bool:
        return self.offer_double_fn(state)

    def respond_to_double(self, state: GameState) -> CubeResponse:
        return self.respond_fn(state)


def random_agent(
    seed: Optional[int] = None,
    double_rate: float = 0.0,
    take_rate: float = 1.0,
    beaver_rate: float = 0.0,
) -> Agent:
    """Create an agent that plays uniformly random legal moves.

    Args:
        seed: Random seed (optional, for reproducibility)
        double_rate: Probability of doubling whenever allowed
        take_rate: Probability of taking (vs passing) an offered double
        beaver_rate: Probability of beavering a take, when a beaver is legal

    Returns:
        Random agent
    """
    rng = np.random.default_rng(seed)

    def select_random_move(state: GameState, legal_moves: List[Move]) -> Move:
        if not legal_moves:
            raise ValueError("No legal moves to choose from")
        return legal_moves[int(rng.integers(0, len(legal_moves)))]

    def maybe_double(state: GameState) -> bool:
        return bool(rng.random() < double_rate)

    def respond(state: GameState) -> CubeResponse:
        if rng.random() >= take_rate:
            return CubeResponse.PASS
        if state.cube.value == 2 and rng.random() < beaver_rate:
            return CubeResponse.BEAVER
        return CubeResponse.TAKE

    return Agent(
        name=f"random(seed={seed})",
        select_move_fn=select_random_move,
        offer_double_fn=maybe_double,
        respond_fn=respond,
    )

"""
bgrules - a backgammon rules engine: board legality, bar/off-board bookkeeping,
the doubling cube and match scoring with the Crawford rule.
"""

__version__ = "0.1.0"

# Core exports
from bgrules.core.types import (
    Board,
    CubeState,
    Dice,
    GamePhase,
    MatchState,
    Move,
    MoveKind,
    Side,
    TurnPhase,
    WinClass,
)
from bgrules.errors import Reason, RulesError

__all__ = [
    "Board",
    "CubeState",
    "Dice",
    "GamePhase",
    "MatchState",
    "Move",
    "MoveKind",
    "Side",
    "TurnPhase",
    "WinClass",
    "Reason",
    "RulesError",
]

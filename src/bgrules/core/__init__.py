"""Core game data structures: board, dice, cube, match and pieces."""

from bgrules.core.types import (
    BAR,
    OFF,
    Board,
    CubeState,
    Dice,
    MatchState,
    Move,
    Piece,
    Point,
    Side,
)

__all__ = [
    "BAR",
    "OFF",
    "Board",
    "CubeState",
    "Dice",
    "MatchState",
    "Move",
    "Piece",
    "Point",
    "Side",
]

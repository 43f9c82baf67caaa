"""Dice utilities for backgammon.

Randomness is always injected as a ``numpy.random.Generator`` so games can be
replayed from a seed.
"""

from typing import List, Optional, Tuple
import numpy as np

from bgrules.core.types import Dice


def all_dice_rolls() -> List[Tuple[int, int]]:
    """Generate all 21 unique dice outcomes.

    (2,3) and (3,2) are equivalent, so there are 6 doubles and 15 non-doubles.

    Returns:
        List of all 21 unique dice combinations, sorted
    """
    rolls = []
    for die1 in range(1, 7):
        for die2 in range(die1, 7):
            rolls.append((die1, die2))
    return rolls


def dice_values(die1: int, die2: int) -> Tuple[int, ...]:
    """Get the dice values to play.

    Examples:
        >>> dice_values(3, 5)
        (3, 5)
        >>> dice_values(4, 4)
        (4, 4, 4, 4)
    """
    if die1 == die2:
        return (die1,) * 4
    return (die1, die2)


def make_dice(die1: int, die2: int) -> Dice:
    """Build an unused roll, expanding doubles to four dice."""
    values = dice_values(die1, die2)
    return Dice(values=values, used=(False,) * len(values))


def no_dice() -> Dice:
    """Dice before rolling."""
    return Dice()


def roll_dice(rng: Optional[np.random.Generator] = None) -> Dice:
    """Roll two dice.

    Args:
        rng: NumPy random generator (fresh OS-seeded generator if None)

    Returns:
        Unused Dice, with four values on doubles
    """
    if rng is None:
        rng = np.random.default_rng()
    die1 = int(rng.integers(1, 7))
    die2 = int(rng.integers(1, 7))
    return make_dice(die1, die2)


def dice_to_string(dice: Dice) -> str:
    """Readable form of a roll, e.g. ``"3-5"`` or ``"Double 4s"``."""
    if not dice.is_rolled:
        return "-"
    if dice.is_doubles:
        return f"Double {dice.values[0]}s"
    return f"{dice.values[0]}-{dice.values[1]}"

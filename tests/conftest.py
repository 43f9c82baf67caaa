"""Pytest configuration and shared fixtures."""

import pytest
import numpy as np


@pytest.fixture
def rng():
    """Seeded NumPy random generator."""
    return np.random.default_rng(42)


@pytest.fixture
def start_board():
    """Standard starting position."""
    from bgrules.core.board import initial_board
    return initial_board()


@pytest.fixture
def fresh_state():
    """New game in a default 7-point match, white to roll."""
    from bgrules.engine import new_game_state
    return new_game_state()


@pytest.fixture
def make_board():
    """Factory for partial test positions."""
    from bgrules.core.board import board_from_positions
    return board_from_positions

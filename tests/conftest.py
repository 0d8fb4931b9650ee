"""
Pytest configuration for the test suite.

This file is automatically loaded by pytest and applies configuration
to all tests in the tests/ directory.
"""

import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import Config
from deep2048.game.base_game import BaseGame


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


@pytest.fixture
def tmp_config(tmp_path):
    """Config that writes models and logs under a temporary directory.

    Logging and checkpoint tests must never touch the working directory.
    """
    return Config(
        MODEL_DIR=str(tmp_path / 'models'),
        LOG_DIR=str(tmp_path / 'logs'),
        LOG_EVERY=1,
        SAVE_EVERY=2,
    )


class LineGame(BaseGame):
    """
    Tiny deterministic game for learner tests.

    The state is a position on a line 0..length. 'step' moves 1 (reward 1),
    'jump' moves 2 (reward 3) if that stays on the line. The game ends at
    the last position.
    """

    ACTIONS = ['step', 'jump']

    def __init__(self, length: int = 4):
        self.length = length
        self.position = 0

    @property
    def discount(self) -> float:
        return 0.9

    @property
    def input_size(self) -> int:
        return 1

    @property
    def output_size(self) -> int:
        return len(self.ACTIONS)

    @property
    def neural_net_input_layer_size(self) -> int:
        return self.length + 1

    def restart(self) -> None:
        self.position = 0

    def get_game_state(self) -> int:
        return self.position

    def perform_action(self, action: str) -> None:
        self.position += 1 if action == 'step' else 2

    def get_legal_actions(self, state: int) -> list:
        return [a for a in self.ACTIONS if state + (1 if a == 'step' else 2) <= self.length]

    def is_terminal(self, state: int) -> bool:
        return state == self.length

    def get_reward(self, state: int, action: str, next_state: int) -> float:
        return 1.0 if next_state - state == 1 else 3.0

    def get_score(self, state: int) -> float:
        return float(state)

    def get_features(self, state: int, action: str) -> dict:
        return {'bias': 1.0, 'jump': 1.0 if action == 'jump' else 0.0}

    def get_neural_net_features(self, state: int) -> np.ndarray:
        features = np.zeros(self.length + 1)
        features[state] = 1.0
        return features

    def get_action_from_node_number(self, node: int) -> str:
        return self.ACTIONS[node]

    def get_node_number_from_action(self, action: str) -> int:
        return self.ACTIONS.index(action)


@pytest.fixture
def line_game():
    return LineGame()

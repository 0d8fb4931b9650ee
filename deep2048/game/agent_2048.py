"""
2048 Agent
==========

Teaches the Q-learners how to play 2048: features, rewards and the mapping
between moves and network output nodes.

State:
    The board matrix (real tile values, 0 for empty).

Neural network features (n = number of squares, 256 for a 4x4 board):
    [0, n)          tile values / 10000
    [n, n + n(n-1)) for every ordered pair of different squares (j, k), j
                    outer: 1 if both hold the same non-zero tile, else 0

Reward:
    - Highest tile increased: the increase
    - More occupied squares than before: -1
    - Otherwise (something merged): 1
"""

from typing import Dict, List, Optional

import numpy as np

from .base_game import BaseGame
from .game_2048 import Direction, Game2048


class Agent2048(BaseGame[np.ndarray, Direction]):
    """
    2048 game wrapped for the Q-learners.

    Example:
        >>> agent = Agent2048(rng=np.random.default_rng(0))
        >>> state = agent.get_game_state()
        >>> agent.get_legal_actions(state)
        [<Direction.UP: 0>, <Direction.RIGHT: 1>, ...]
    """

    TILE_SCALE = 10000
    APPROXIMATE_REWARD_SCALE = 500

    def __init__(
        self,
        rng: Optional[np.random.Generator] = None,
        percent_twos: float = 0.9,
        board_size: int = Game2048.DEFAULT_SIZE
    ):
        self.rng = rng if rng is not None else np.random.default_rng()
        self.game = Game2048(rng=self.rng, percent_twos=percent_twos, size=board_size)
        self._num_squares = board_size * board_size
        # Ordered pairs (j, k) with j != k, j outer, in row-major mask order
        self._pair_mask = ~np.eye(self._num_squares, dtype=bool)

    # =========================================================================
    # SIZES
    # =========================================================================

    @property
    def discount(self) -> float:
        return 1.0

    @property
    def input_size(self) -> int:
        return self._num_squares

    @property
    def output_size(self) -> int:
        return len(Direction)

    @property
    def neural_net_input_layer_size(self) -> int:
        return self._num_squares * self._num_squares

    # =========================================================================
    # LIVE GAME
    # =========================================================================

    def restart(self) -> None:
        self.game.restart()

    def get_game_state(self) -> np.ndarray:
        return self.game.board

    def perform_action(self, action: Direction) -> None:
        self.game.action(action)

    # =========================================================================
    # RULES
    # =========================================================================

    def get_legal_actions(self, state: np.ndarray) -> List[Direction]:
        """Directions that change the given board."""
        game = Game2048(state, rng=self.rng)
        return [direction for direction in Direction if game.is_possible_move(direction)]

    def is_terminal(self, state: np.ndarray) -> bool:
        return Game2048(state, rng=self.rng).over

    def get_reward(self, state: np.ndarray, action: Direction, next_state: np.ndarray) -> float:
        max_original = int(np.max(state))
        max_next = int(np.max(next_state))
        if max_next > max_original:
            return float(max_next - max_original)
        if np.count_nonzero(next_state) > np.count_nonzero(state):
            return -1.0
        return 1.0

    def get_score(self, state: np.ndarray) -> float:
        """Score is the highest tile."""
        return float(np.max(state))

    # =========================================================================
    # FEATURES
    # =========================================================================

    def get_features(self, state: np.ndarray, action: Direction) -> Dict[str, float]:
        """Reward of the move (before a new tile appears), scaled down."""
        game = Game2048(state, rng=self.rng)
        game.action_no_add_tile(action)
        reward = self.get_reward(state, action, game.board)
        return {"reward": reward / self.APPROXIMATE_REWARD_SCALE}

    def get_neural_net_features(self, state: np.ndarray) -> np.ndarray:
        tiles = np.asarray(state).ravel()
        if tiles.size != self._num_squares:
            raise ValueError(f"State should have {self._num_squares} squares, got {tiles.size}")

        same_tile = (tiles[:, np.newaxis] == tiles[np.newaxis, :]) & (tiles[:, np.newaxis] != 0)
        return np.concatenate([
            tiles / self.TILE_SCALE,
            same_tile[self._pair_mask].astype(np.float64),
        ])

    # =========================================================================
    # OUTPUT NODES
    # =========================================================================

    def get_action_from_node_number(self, node: int) -> Direction:
        return Direction(node)

    def get_node_number_from_action(self, action: Direction) -> int:
        return action.value

"""
Configuration file for the 2048 Q-Learning AI
==============================================

All hyperparameters, game settings, and training options are centralized here.
Modify these values to experiment with different training configurations.

Usage:
    from config import Config
    cfg = Config()
    print(cfg.LEARNING_RATE)
"""

from dataclasses import dataclass
from typing import Optional

from deep2048.ai.activations import (
    ActivationFunction,
    LeakyReLU,
    NoActivation,
    ReLUWithSlopes,
    Sigmoid,
)


@dataclass
class Config:
    """
    Central configuration for the entire project.

    Sections:
    1. Game Settings - 2048 board parameters
    2. Neural Network - Architecture configuration
    3. Q-Learning - Learning hyperparameters
    4. Exploration - Epsilon-greedy settings
    5. Training Control - Episodes, logging and checkpoints
    6. System - Paths, logging and seeding
    """

    # =========================================================================
    # GAME SETTINGS
    # =========================================================================

    # Board is BOARD_SIZE x BOARD_SIZE tiles
    BOARD_SIZE: int = 4

    # Probability that a spawned tile is a 2 (otherwise a 4)
    PERCENT_TWOS: float = 0.9

    # =========================================================================
    # NEURAL NETWORK ARCHITECTURE
    # =========================================================================

    # Input and output sizes come from the agent (256 features, 4 moves).
    # All middle layers share one width.
    HIDDEN_NODES: int = 50
    HIDDEN_LAYERS: int = 2

    # Activation function: 'sigmoid', 'leaky_relu', 'relu_slopes', 'none'
    ACTIVATION: str = 'relu_slopes'

    # Slopes used by 'relu_slopes'
    RELU_POSITIVE_SLOPE: float = 0.1
    RELU_NEGATIVE_SLOPE: float = 0.001

    # Output layer activation ('none' gives raw, unbounded Q-values)
    OUTPUT_ACTIVATION: str = 'none'

    # Learning rate (Alpha) of the network's gradient descent
    # Too high: weights explode on large rewards
    # Too low: very slow learning
    LEARNING_RATE: float = 0.01

    # =========================================================================
    # Q-LEARNING HYPERPARAMETERS
    # =========================================================================

    # Discount factor (gamma). None means use the agent's own discount
    # (the 2048 agent uses 1.0, no discounting)
    GAMMA: Optional[float] = None

    # Number of updates before the main network is replaced by a clone
    # of the trained (target) network
    TARGET_UPDATE: int = 100

    # Learning rate of the approximate (linear) Q-learner
    APPROX_LEARNING_RATE: float = 0.004

    # =========================================================================
    # EXPLORATION SETTINGS (Epsilon-Greedy)
    # =========================================================================

    # Starting exploration rate (1.0 = 100% random)
    EPSILON_START: float = 1.0

    # Minimum exploration rate, epsilon never decays below this
    EPSILON_END: float = 0.0

    # Decay rate per episode: epsilon *= EPSILON_DECAY after each episode
    EPSILON_DECAY: float = 0.99

    # =========================================================================
    # TRAINING CONTROL
    # =========================================================================

    # Episodes (games) to train when no count is given on the command line
    MAX_EPISODES: int = 100

    # Log stats every N episodes
    LOG_EVERY: int = 10

    # Save the trained network every N episodes (0 = only best/final)
    SAVE_EVERY: int = 50

    # Number of episodes kept in the metrics history
    PLOT_HISTORY_LENGTH: int = 1000

    # =========================================================================
    # SYSTEM SETTINGS
    # =========================================================================

    # Paths
    MODEL_DIR: str = 'models'
    LOG_DIR: str = 'logs'

    # 'DEBUG', 'INFO', 'WARNING', 'ERROR'
    LOG_LEVEL: str = 'INFO'

    # Write log files in addition to console output
    LOG_TO_FILE: bool = False

    # Random seed for reproducibility (None for random)
    SEED: Optional[int] = None

    def __post_init__(self):
        """Validation and derived calculations."""
        assert self.LEARNING_RATE > 0, "Learning rate must be positive"
        assert self.APPROX_LEARNING_RATE > 0, "Approximate learning rate must be positive"
        assert self.GAMMA is None or 0 < self.GAMMA <= 1, "Gamma must be in (0, 1]"
        assert 0 <= self.EPSILON_END <= self.EPSILON_START <= 1, \
            "Epsilon must satisfy 0 <= end <= start <= 1"
        assert 0 < self.EPSILON_DECAY <= 1, "Epsilon decay must be in (0, 1]"
        assert self.TARGET_UPDATE > 0, "Target update interval must be positive"
        assert self.HIDDEN_LAYERS >= 0, "Hidden layer count can't be negative"
        assert self.HIDDEN_NODES > 0, "Hidden layer width must be positive"
        assert 0 <= self.PERCENT_TWOS <= 1, "Percent twos must be a probability"

    def build_activation(self, name: Optional[str] = None) -> ActivationFunction:
        """
        Create the activation function named in the config.

        Args:
            name: Activation name, defaults to ACTIVATION

        Returns:
            A (stateless) activation function instance
        """
        name = name or self.ACTIVATION
        if name == 'sigmoid':
            return Sigmoid()
        if name == 'leaky_relu':
            return LeakyReLU()
        if name == 'relu_slopes':
            return ReLUWithSlopes(self.RELU_POSITIVE_SLOPE, self.RELU_NEGATIVE_SLOPE)
        if name == 'none':
            return NoActivation()
        raise ValueError(f"Unknown activation name in config: {name!r}")


# Global config instance for easy importing
config = Config()


if __name__ == "__main__":
    # Print configuration summary
    cfg = Config()
    print("=" * 60)
    print("2048 Q-Learning AI - Configuration Summary")
    print("=" * 60)
    print(f"\nBoard: {cfg.BOARD_SIZE}x{cfg.BOARD_SIZE}")
    print(f"\nNeural Network:")
    print(f"   Hidden layers: {cfg.HIDDEN_LAYERS} x {cfg.HIDDEN_NODES}")
    print(f"   Activation: {cfg.ACTIVATION} (output: {cfg.OUTPUT_ACTIVATION})")
    print(f"\nTraining:")
    print(f"   Learning rate: {cfg.LEARNING_RATE}")
    print(f"   Target update: {cfg.TARGET_UPDATE}")
    print(f"\nExploration:")
    print(f"   Epsilon: {cfg.EPSILON_START} -> {cfg.EPSILON_END}")
    print(f"   Decay: {cfg.EPSILON_DECAY}")
    print("=" * 60)

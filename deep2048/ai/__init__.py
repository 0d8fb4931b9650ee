"""
AI Module
=========

Q-learning components for playing 2048.

Classes:
    NeuralNet           - Dense feed-forward network with hand-written derivatives
    LayerTransform      - One weights + biases + activation stage of a NeuralNet
    QLearner            - Epsilon-greedy Q-learning base (episode loop, stats)
    ApproximateQLearner - Linear Q-learning over named features
    DeepQLearner        - Q-learning with main and target networks

The Trainer lives in deep2048.ai.trainer (it depends on the root config).
"""

from .activations import (
    ActivationFunction,
    LeakyReLU,
    NoActivation,
    ReLUWithSlopes,
    Sigmoid,
    UnknownActivationError,
)
from .network import ForwardPassRequiredError, LayerTransform, NetworkShapeError, NeuralNet
from .persistence import NetworkFileError, load_network, save_network
from .qlearner import ApproximateQLearner, EpisodeStats, QLearner
from .agent import DeepQLearner

__all__ = [
    'ActivationFunction',
    'LeakyReLU',
    'NoActivation',
    'ReLUWithSlopes',
    'Sigmoid',
    'UnknownActivationError',
    'ForwardPassRequiredError',
    'LayerTransform',
    'NetworkShapeError',
    'NeuralNet',
    'NetworkFileError',
    'load_network',
    'save_network',
    'ApproximateQLearner',
    'EpisodeStats',
    'QLearner',
    'DeepQLearner',
]

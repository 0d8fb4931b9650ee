"""
Base Game Interface
===================

Abstract base class for games the Q-learners can play.

A game (the "agent" side of Q-learning) owns the environment and tells the
learner everything it needs: legal actions, rewards, features and how actions
map onto the network's output nodes. The learners only talk to this
interface, so any game that implements it can be learned.

To add a new game:
1. Create a new file in deep2048/game/
2. Inherit from BaseGame
3. Implement all abstract methods
"""

from abc import ABC, abstractmethod
from typing import Dict, Generic, List, TypeVar

import numpy as np


State = TypeVar('State')
Action = TypeVar('Action')


class BaseGame(ABC, Generic[State, Action]):
    """
    Abstract base class for learnable games.

    Properties:
        discount: float - Discount factor (gamma) for future rewards
        input_size: int - Size of the raw game state
        output_size: int - Number of actions (network output nodes)
        neural_net_input_layer_size: int - Length of get_neural_net_features()

    Methods:
        restart() / get_game_state() / perform_action(action)
            Drive the live game

        get_legal_actions(state) / is_terminal(state)
            Rules, evaluated on any state (not only the live one)

        get_reward(state, action, next_state) / get_score(state)
            Reward signal for learning, score for reporting

        get_features(state, action) / get_neural_net_features(state)
            Inputs for the approximate and deep learners

        get_action_from_node_number(node) / get_node_number_from_action(action)
            Mapping between actions and network output nodes
    """

    @property
    @abstractmethod
    def discount(self) -> float:
        """Return the discount factor for future rewards."""
        pass

    @property
    @abstractmethod
    def input_size(self) -> int:
        """Return the size of the raw game state."""
        pass

    @property
    @abstractmethod
    def output_size(self) -> int:
        """Return the number of actions, one network output node each."""
        pass

    @property
    @abstractmethod
    def neural_net_input_layer_size(self) -> int:
        """Return the length of the neural network feature vector."""
        pass

    @abstractmethod
    def restart(self) -> None:
        """Start a new game."""
        pass

    @abstractmethod
    def get_game_state(self) -> State:
        """Return a copy of the current game state."""
        pass

    @abstractmethod
    def perform_action(self, action: Action) -> None:
        """Apply an action to the live game."""
        pass

    @abstractmethod
    def get_legal_actions(self, state: State) -> List[Action]:
        """Return every action that is allowed in the given state."""
        pass

    @abstractmethod
    def is_terminal(self, state: State) -> bool:
        """Return True if no more actions are possible from the state."""
        pass

    @abstractmethod
    def get_reward(self, state: State, action: Action, next_state: State) -> float:
        """
        Reward for moving from state to next_state with action.

        Args:
            state: State before the action
            action: Action taken
            next_state: State after the action

        Returns:
            float: Reward signal
        """
        pass

    @abstractmethod
    def get_score(self, state: State) -> float:
        """Return the score of a state, for reporting only."""
        pass

    @abstractmethod
    def get_features(self, state: State, action: Action) -> Dict[str, float]:
        """Return named features of a (state, action) pair for linear Q-learning."""
        pass

    @abstractmethod
    def get_neural_net_features(self, state: State) -> np.ndarray:
        """Return the network input vector for a state."""
        pass

    @abstractmethod
    def get_action_from_node_number(self, node: int) -> Action:
        """Return the action that a network output node stands for."""
        pass

    @abstractmethod
    def get_node_number_from_action(self, action: Action) -> int:
        """Return the network output node of an action."""
        pass

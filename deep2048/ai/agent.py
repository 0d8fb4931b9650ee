"""
Deep Q-Learner
==============

Q-learning with the hand-written NeuralNet as the Q-function.

Key Components:
    1. Main Network   - Chooses actions and provides bootstrap targets
    2. Target Network - The network that is actually trained
    3. Epsilon-Greedy - Balances exploration vs exploitation

Update (one call per transition s -a-> s' with reward r):
    1. x = features(s)
    2. V(s') = 0 if s' is terminal, else max over legal a' of Q_main(s', a')
    3. y = target_net(x), with y[node(a)] = r + gamma * V(s')
    4. Gradient descent on target_net towards y
       (only the taken action's output has a non-zero error)
    5. Every iterations_before_net_transfer updates:
       main_net = copy of target_net
"""

import random
from typing import Optional

import numpy as np

from ..game.base_game import Action, BaseGame, State
from ..utils.logger import get_logger
from .activations import ActivationFunction
from .network import NetworkShapeError, NeuralNet
from .persistence import save_network
from .qlearner import QLearner


logger = get_logger(__name__)


class DeepQLearner(QLearner[State, Action]):
    """
    Deep Q-learner with separate main and target networks.

    The two networks never share parameters: synchronizing replaces the
    main network with a deep copy of the target network.

    Example:
        >>> learner = DeepQLearner(Agent2048(), 50, 2, ReLUWithSlopes(0.1, 0.001),
        ...                        output_activator=NoActivation())
        >>> learner.iterations_before_net_transfer = 50
        >>> learner.perform_q_learning(10)
        >>> learner.save('models/2048.txt')
    """

    DEFAULT_ITERATIONS_BEFORE_NET_TRANSFER = 100

    def __init__(
        self,
        agent: BaseGame[State, Action],
        num_middle_nodes: int,
        num_middle_layers: int,
        activator: Optional[ActivationFunction] = None,
        output_activator: Optional[ActivationFunction] = None,
        rng: Optional[random.Random] = None,
        net_rng: Optional[np.random.Generator] = None,
        discount: Optional[float] = None
    ):
        """
        Build a learner with a fresh random network.

        Args:
            agent: The game being learned
            num_middle_nodes: Width of every middle layer
            num_middle_layers: Number of middle layers
            activator: Activation for the network (default Sigmoid)
            output_activator: Activation for the output layer (default: activator)
            rng: Random source for exploration and tie breaking
            net_rng: Random source for the initial network parameters
            discount: Override for the agent's discount factor
        """
        net = NeuralNet(
            agent.neural_net_input_layer_size,
            num_middle_nodes,
            agent.output_size,
            num_middle_layers,
            activator=activator,
            output_activator=output_activator,
            rng=net_rng,
        )
        self._init_learner(agent, net, rng, discount)

    @classmethod
    def from_network(
        cls,
        agent: BaseGame[State, Action],
        starting_net: NeuralNet,
        rng: Optional[random.Random] = None,
        discount: Optional[float] = None
    ) -> 'DeepQLearner':
        """
        Build a learner that starts from an existing network (e.g. a loaded one).

        The network is copied, the caller's instance is never trained.

        Raises:
            NetworkShapeError: If the network's input/output sizes don't match the agent
        """
        if (starting_net.num_input_nodes != agent.neural_net_input_layer_size
                or starting_net.num_output_nodes != agent.output_size):
            raise NetworkShapeError(
                f"Neural network should have input size of {agent.neural_net_input_layer_size} "
                f"and output size of {agent.output_size}, got {starting_net.num_input_nodes} "
                f"and {starting_net.num_output_nodes}"
            )

        learner = cls.__new__(cls)
        learner._init_learner(agent, starting_net.clone(), rng, discount)
        return learner

    def _init_learner(
        self,
        agent: BaseGame[State, Action],
        target_net: NeuralNet,
        rng: Optional[random.Random],
        discount: Optional[float]
    ) -> None:
        self.target_net = target_net
        self.main_net = target_net.clone()

        # QLearner sets the linear learner default, keep the network's own rate
        alpha = target_net.alpha
        super().__init__(agent, rng=rng, discount=discount)
        self.alpha = alpha

        self.iterations_before_net_transfer = self.DEFAULT_ITERATIONS_BEFORE_NET_TRANSFER
        self._iteration_counter = 0

        logger.debug(
            f"DeepQLearner: {self.target_net}, {self.target_net.count_parameters():,} parameters"
        )

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def alpha(self) -> float:
        """Learning rate of both networks."""
        return self.target_net.alpha

    @alpha.setter
    def alpha(self, value: float) -> None:
        self.main_net.alpha = value
        self.target_net.alpha = value

    @property
    def iteration_counter(self) -> int:
        """Updates since the last network synchronization."""
        return self._iteration_counter

    # =========================================================================
    # Q-FUNCTION
    # =========================================================================

    def get_action_from_q_values(self, state: State) -> Optional[Action]:
        """Legal action with the highest main network output, ties broken at random."""
        legal_nodes = [
            self.agent.get_node_number_from_action(action)
            for action in self.agent.get_legal_actions(state)
        ]
        if not legal_nodes:
            return None

        output = self.main_net.get_output_values(self.agent.get_neural_net_features(state))
        best = max(output[node] for node in legal_nodes)
        best_nodes = [node for node in legal_nodes if output[node] >= best]

        if len(best_nodes) == 1:
            return self.agent.get_action_from_node_number(best_nodes[0])
        return self.agent.get_action_from_node_number(self.rng.choice(best_nodes))

    def get_q_value(self, state: State, action: Action) -> float:
        output = self.main_net.get_output_values(self.agent.get_neural_net_features(state))
        return float(output[self.agent.get_node_number_from_action(action)])

    def get_value_from_q_values(self, state: State) -> float:
        """Highest main network output over legal actions (one forward pass), 0 if none."""
        legal_nodes = [
            self.agent.get_node_number_from_action(action)
            for action in self.agent.get_legal_actions(state)
        ]
        if not legal_nodes:
            return 0.0
        output = self.main_net.get_output_values(self.agent.get_neural_net_features(state))
        return float(max(output[node] for node in legal_nodes))

    # =========================================================================
    # LEARNING
    # =========================================================================

    def update(self, state: State, action: Action, next_state: State, reward: float) -> None:
        input = self.agent.get_neural_net_features(state)

        if self.agent.is_terminal(next_state):
            value_next_state = 0.0
        else:
            value_next_state = self.get_value_from_q_values(next_state)

        # Desired output: current output with only the taken action's node moved
        output = self.target_net.get_output_values(input)
        output[self.agent.get_node_number_from_action(action)] = reward + self.discount * value_next_state

        self.target_net.perform_gradient_descent(input, output)

        self._iteration_counter += 1
        if self._iteration_counter >= self.iterations_before_net_transfer:
            self.sync_networks()

        self.total_rewards += reward

    def sync_networks(self) -> None:
        """Replace the main network with a copy of the target network."""
        self._iteration_counter = 0
        self.main_net = self.target_net.clone()
        logger.debug("Main network synced from target network")

    def set_activator(self, layer: int, activator: Optional[ActivationFunction]) -> None:
        """Set one layer transform's activation on both networks."""
        self.main_net.set_activator(layer, activator)
        self.target_net.set_activator(layer, activator)

    def save(self, path: str) -> None:
        """Save the trained (target) network."""
        save_network(self.target_net, path)

"""
Q-Learning Core
===============

Epsilon-greedy Q-learning over any BaseGame.

Episode loop:
    1. Restart the game, observe state s
    2. Choose action a (random with probability epsilon, else best Q-value)
    3. Perform a, observe s' and reward r = game.get_reward(s, a, s')
    4. update(s, a, s', r)
    5. Repeat from 2 until s' is terminal
    6. Record score and reward, epsilon *= epsilon_decay (never below min_epsilon)

Learners:
    QLearner            - Abstract base: policy, value, episode loop, stats
    ApproximateQLearner - Linear Q-function over named features
        Q(s, a) = sum_i f_i(s, a) * w_i
        w_i += alpha * (r + gamma * V(s') - Q(s, a)) * f_i(s, a)
"""

import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
from typing import Any, Dict, Generic, List, Optional

from ..game.base_game import Action, BaseGame, State
from ..utils.logger import get_logger
from .persistence import dictionary_dot_product


logger = get_logger(__name__)


@dataclass
class EpisodeStats:
    """Result of one played episode."""
    episode: int
    score: float
    total_reward: float
    steps: int
    epsilon: float
    trained: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class QLearner(ABC, Generic[State, Action]):
    """
    Abstract epsilon-greedy Q-learner.

    Subclasses provide the Q-function (get_q_value) and the learning rule
    (update). Everything else, from action selection to the episode loop and
    running statistics, lives here.

    Attributes:
        alpha: Learning rate
        epsilon: Probability of acting randomly, in [0, 1]
        epsilon_decay: Epsilon is multiplied by this after each episode
        min_epsilon: Epsilon never decays below this
        rng: Random source for exploration and tie breaking
    """

    DEFAULT_ALPHA = 0.004

    def __init__(
        self,
        agent: BaseGame[State, Action],
        rng: Optional[random.Random] = None,
        discount: Optional[float] = None
    ):
        """
        Args:
            agent: The game being learned
            rng: Random source (a fresh unseeded one if not given)
            discount: Override for the agent's discount factor
        """
        self.agent = agent
        self.rng = rng if rng is not None else random.Random()
        self._discount = discount

        self.alpha = self.DEFAULT_ALPHA
        self.epsilon = 1.0
        self.epsilon_decay = 0.9
        self.min_epsilon = 0.0

        self.total_score = 0.0
        self.total_rewards = 0.0
        self.episodes_completed = 0

    @property
    def discount(self) -> float:
        """Discount factor: the override if one was given, else the agent's."""
        return self._discount if self._discount is not None else self.agent.discount

    # =========================================================================
    # STATISTICS
    # =========================================================================

    @property
    def average_score(self) -> float:
        if self.episodes_completed == 0:
            return 0.0
        return self.total_score / self.episodes_completed

    @property
    def average_rewards(self) -> float:
        if self.episodes_completed == 0:
            return 0.0
        return self.total_rewards / self.episodes_completed

    def reset_stats(self) -> None:
        """Set score, reward and episode totals back to 0."""
        self.total_score = 0.0
        self.total_rewards = 0.0
        self.episodes_completed = 0

    # =========================================================================
    # POLICY
    # =========================================================================

    @abstractmethod
    def get_q_value(self, state: State, action: Action) -> float:
        """Estimated return of taking action in state."""
        pass

    @abstractmethod
    def update(self, state: State, action: Action, next_state: State, reward: float) -> None:
        """Learn from one transition."""
        pass

    def get_action(self, state: State) -> Optional[Action]:
        """
        Epsilon-greedy action.

        Returns:
            A random legal action with probability epsilon, otherwise the
            best one. None if there are no legal actions.
        """
        legal_actions = self.agent.get_legal_actions(state)
        if not legal_actions:
            return None

        if self.rng.random() < self.epsilon:
            return self.rng.choice(legal_actions)
        return self.get_action_from_q_values(state)

    def get_action_from_q_values(self, state: State) -> Optional[Action]:
        """Legal action with the highest Q-value, ties broken at random. None if no legal actions."""
        legal_actions = self.agent.get_legal_actions(state)
        if not legal_actions:
            return None

        q_values = [self.get_q_value(state, action) for action in legal_actions]
        best = max(q_values)
        best_actions = [a for a, q in zip(legal_actions, q_values) if q == best]
        return self.rng.choice(best_actions)

    def get_value_from_q_values(self, state: State) -> float:
        """Highest legal Q-value of a state, 0 if there are no legal actions."""
        legal_actions = self.agent.get_legal_actions(state)
        if not legal_actions:
            return 0.0
        return max(self.get_q_value(state, action) for action in legal_actions)

    # =========================================================================
    # EPISODES
    # =========================================================================

    def decay_epsilon(self) -> None:
        """Multiply epsilon by epsilon_decay, clamped at min_epsilon."""
        if self.epsilon != self.min_epsilon:
            self.epsilon = max(self.epsilon * self.epsilon_decay, self.min_epsilon)

    def run_episode(self, train: bool = True) -> EpisodeStats:
        """
        Play one game from a fresh start.

        Args:
            train: Explore, learn from every transition and decay epsilon.
                Without training the greedy policy is followed and nothing
                is learned.

        Returns:
            EpisodeStats for the game
        """
        self.agent.restart()
        state = self.agent.get_game_state()
        episode_reward = 0.0
        steps = 0
        # Epsilon the episode was played with
        epsilon = self.epsilon if train else 0.0

        while not self.agent.is_terminal(state):
            action = self.get_action(state) if train else self.get_action_from_q_values(state)
            if action is None:
                logger.warning("No legal action in a non-terminal state, ending episode early")
                break

            self.agent.perform_action(action)
            next_state = self.agent.get_game_state()
            reward = self.agent.get_reward(state, action, next_state)

            if train:
                self.update(state, action, next_state, reward)
            else:
                self.total_rewards += reward

            episode_reward += reward
            steps += 1
            state = next_state

        score = self.agent.get_score(state)
        self.total_score += score
        self.episodes_completed += 1

        if train:
            self.decay_epsilon()

        return EpisodeStats(
            episode=self.episodes_completed,
            score=score,
            total_reward=episode_reward,
            steps=steps,
            epsilon=epsilon,
            trained=train,
        )

    def perform_q_learning(self, episodes: int) -> List[EpisodeStats]:
        """Train for a number of episodes."""
        results = []
        for _ in range(episodes):
            stats = self.run_episode(train=True)
            logger.debug(
                f"Episode {stats.episode}: score={stats.score:.0f}, "
                f"reward={stats.total_reward:.1f}, steps={stats.steps}, eps={self.epsilon:.4f}"
            )
            results.append(stats)
        return results

    def perform_without_training(self, episodes: int) -> List[EpisodeStats]:
        """Play greedily for a number of episodes. Nothing is learned, epsilon is untouched."""
        return [self.run_episode(train=False) for _ in range(episodes)]


class ApproximateQLearner(QLearner[State, Action]):
    """
    Linear Q-learning over the agent's named features.

    Example:
        >>> learner = ApproximateQLearner(Agent2048(), rng=random.Random(0))
        >>> learner.epsilon_decay = 0.99
        >>> learner.perform_q_learning(200)
        >>> learner.weights
        {'reward': ...}
    """

    def __init__(
        self,
        agent: BaseGame[State, Action],
        rng: Optional[random.Random] = None,
        discount: Optional[float] = None
    ):
        super().__init__(agent, rng=rng, discount=discount)
        # Feature name -> weight, missing features weigh 0
        self.weights: Dict[str, float] = {}

    def get_q_value(self, state: State, action: Action) -> float:
        return dictionary_dot_product(self.agent.get_features(state, action), self.weights)

    def update(self, state: State, action: Action, next_state: State, reward: float) -> None:
        features = self.agent.get_features(state, action)
        value_next_state = self.get_value_from_q_values(next_state)
        q_value = self.get_q_value(state, action)
        correction = reward + self.discount * value_next_state - q_value

        for name, value in features.items():
            self.weights[name] = self.weights.get(name, 0.0) + self.alpha * correction * value

        self.total_rewards += reward

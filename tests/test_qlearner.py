"""
Tests for the Q-learning core.

These tests verify:
    - Epsilon-greedy action selection and tie breaking
    - Epsilon decay and its floor
    - Episode loop and running statistics
    - Linear (approximate) Q-learning updates
"""

import random

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from deep2048.ai.qlearner import ApproximateQLearner, EpisodeStats


@pytest.fixture
def learner(line_game):
    """Approximate learner on the line game with a seeded rng."""
    learner = ApproximateQLearner(line_game, rng=random.Random(0))
    learner.alpha = 0.1
    return learner


class TestDefaults:
    """Test construction."""

    def test_default_hyperparameters(self, learner):
        """Learners start fully exploratory."""
        fresh = ApproximateQLearner(learner.agent)
        assert fresh.alpha == 0.004
        assert fresh.epsilon == 1.0
        assert fresh.epsilon_decay == 0.9
        assert fresh.min_epsilon == 0.0
        assert fresh.weights == {}

    def test_discount_from_agent(self, learner):
        """Without an override the agent's discount is used."""
        assert learner.discount == 0.9

    def test_discount_override(self, line_game):
        """An explicit discount wins over the agent's."""
        assert ApproximateQLearner(line_game, discount=0.5).discount == 0.5

    def test_averages_are_zero_before_any_episode(self, learner):
        """No division by zero without episodes."""
        assert learner.average_score == 0.0
        assert learner.average_rewards == 0.0


class TestActionSelection:
    """Test the epsilon-greedy policy."""

    def test_no_action_in_terminal_state(self, learner):
        """Terminal states have no action and value 0."""
        assert learner.get_action(4) is None
        assert learner.get_action_from_q_values(4) is None
        assert learner.get_value_from_q_values(4) == 0.0

    def test_greedy_picks_highest_q(self, learner):
        """With epsilon 0 the best legal action is taken."""
        learner.epsilon = 0.0
        learner.weights = {'jump': 1.0}
        assert learner.get_action(0) == 'jump'
        learner.weights = {'jump': -1.0}
        assert learner.get_action(0) == 'step'

    def test_only_legal_actions(self, learner):
        """Illegal actions are never chosen even when they look best."""
        learner.epsilon = 0.0
        learner.weights = {'jump': 100.0}
        assert learner.get_action(3) == 'step'
        learner.epsilon = 1.0
        assert all(learner.get_action(3) == 'step' for _ in range(20))

    def test_ties_broken_randomly(self, learner):
        """Equal Q-values are chosen between at random."""
        chosen = {learner.get_action_from_q_values(0) for _ in range(50)}
        assert chosen == {'step', 'jump'}

    def test_exploration_is_random(self, learner):
        """With epsilon 1 both actions show up regardless of weights."""
        learner.weights = {'jump': 100.0}
        chosen = {learner.get_action(0) for _ in range(50)}
        assert chosen == {'step', 'jump'}

    def test_value_is_best_q(self, learner):
        """Value of a state is its highest legal Q-value."""
        learner.weights = {'bias': 0.5, 'jump': 2.0}
        assert learner.get_value_from_q_values(0) == pytest.approx(2.5)
        assert learner.get_value_from_q_values(3) == pytest.approx(0.5)


class TestEpsilonDecay:
    """Test decay_epsilon."""

    def test_decay(self, learner):
        """Epsilon is multiplied by the decay."""
        learner.epsilon_decay = 0.5
        learner.decay_epsilon()
        assert learner.epsilon == 0.5

    def test_floor(self, learner):
        """Epsilon never drops below min_epsilon."""
        learner.epsilon = 0.5
        learner.epsilon_decay = 0.5
        learner.min_epsilon = 0.3
        learner.decay_epsilon()
        assert learner.epsilon == 0.3
        learner.decay_epsilon()
        assert learner.epsilon == 0.3


class TestApproximateUpdate:
    """Test the linear Q-learning rule."""

    def test_first_update(self, learner):
        """w += alpha * (r + gamma * V(s') - Q(s, a)) * f with all weights 0."""
        learner.update(0, 'jump', 2, 3.0)
        assert learner.weights['bias'] == pytest.approx(0.3)
        assert learner.weights['jump'] == pytest.approx(0.3)
        assert learner.total_rewards == 3.0

    def test_second_update_bootstraps(self, learner):
        """The next state's value uses the weights learned so far."""
        learner.update(0, 'jump', 2, 3.0)
        learner.update(0, 'step', 1, 1.0)
        # V(1) = 0.6, Q(0, step) = 0.3, correction = 1 + 0.9 * 0.6 - 0.3
        assert learner.weights['bias'] == pytest.approx(0.3 + 0.1 * 1.24)
        assert learner.weights['jump'] == pytest.approx(0.3)

    def test_q_value_is_dot_product(self, learner):
        """Q(s, a) is features dot weights."""
        learner.weights = {'bias': 2.0, 'jump': -0.5}
        assert learner.get_q_value(0, 'jump') == pytest.approx(1.5)
        assert learner.get_q_value(0, 'step') == pytest.approx(2.0)

    def test_learns_to_jump(self, learner):
        """Jumping pays more, so the greedy policy ends up jumping."""
        learner.epsilon_decay = 0.95
        learner.perform_q_learning(100)
        assert learner.weights['jump'] > 0
        assert learner.get_action_from_q_values(0) == 'jump'


class TestEpisodes:
    """Test the episode loop and statistics."""

    def test_training_episode(self, learner):
        """A training episode reaches the end, learns and decays epsilon."""
        learner.epsilon_decay = 0.5
        stats = learner.run_episode(train=True)

        assert isinstance(stats, EpisodeStats)
        assert stats.score == 4.0
        assert stats.episode == 1
        assert stats.epsilon == 1.0
        assert stats.trained
        assert learner.epsilon == 0.5
        assert learner.weights

    def test_greedy_episode(self, learner):
        """Without training the greedy path is followed and nothing changes."""
        learner.epsilon = 0.5
        learner.weights = {'jump': 1.0}
        stats = learner.run_episode(train=False)

        assert stats.steps == 2
        assert stats.total_reward == 6.0
        assert stats.epsilon == 0.0
        assert not stats.trained
        assert learner.epsilon == 0.5
        assert learner.weights == {'jump': 1.0}
        assert learner.total_rewards == 6.0

    def test_perform_q_learning_totals(self, learner):
        """Running averages cover every trained episode."""
        results = learner.perform_q_learning(3)

        assert [stats.episode for stats in results] == [1, 2, 3]
        assert learner.episodes_completed == 3
        assert learner.average_score == 4.0
        assert learner.average_rewards == pytest.approx(sum(s.total_reward for s in results) / 3)

    def test_perform_without_training_keeps_epsilon(self, learner):
        """Greedy play leaves epsilon alone."""
        learner.epsilon = 0.7
        learner.perform_without_training(3)
        assert learner.epsilon == 0.7
        assert learner.episodes_completed == 3

    def test_reset_stats(self, learner):
        """reset_stats clears the running totals."""
        learner.perform_q_learning(2)
        learner.reset_stats()
        assert learner.episodes_completed == 0
        assert learner.average_score == 0.0

    def test_stuck_game_ends_episode(self, line_game):
        """A non-terminal state without legal actions ends the episode."""
        line_game.get_legal_actions = lambda state: []
        learner = ApproximateQLearner(line_game, rng=random.Random(0))
        stats = learner.run_episode(train=True)
        assert stats.steps == 0
        assert stats.score == 0.0

    def test_stats_to_dict(self):
        """EpisodeStats converts to a plain dict."""
        stats = EpisodeStats(episode=1, score=8.0, total_reward=3.0, steps=4, epsilon=0.5)
        assert stats.to_dict() == {
            'episode': 1, 'score': 8.0, 'total_reward': 3.0,
            'steps': 4, 'epsilon': 0.5, 'trained': True,
        }

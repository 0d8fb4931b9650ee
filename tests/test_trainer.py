"""
Tests for the Trainer module.

These tests verify:
    - TrainingMetrics tracking and statistics
    - Checkpoints written during training
    - Greedy evaluation leaves the learner as it was
"""

import random

import pytest
import numpy as np
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from deep2048.ai import ApproximateQLearner, DeepQLearner, load_network
from deep2048.ai.qlearner import EpisodeStats
from deep2048.ai.trainer import Trainer, TrainingMetrics
from deep2048.game import Agent2048


def make_stats(episode, score, reward=1.0):
    return EpisodeStats(episode=episode, score=score, total_reward=reward, steps=10, epsilon=0.5)


@pytest.fixture
def agent():
    """2048 on a 2x2 board keeps episodes short."""
    return Agent2048(rng=np.random.default_rng(0), board_size=2)


@pytest.fixture
def learner(agent):
    return DeepQLearner(agent, 4, 1, rng=random.Random(0), net_rng=np.random.default_rng(0))


@pytest.fixture
def trainer(learner, tmp_config):
    return Trainer(learner, tmp_config, model_name='test')


class TestTrainingMetrics:
    """Test TrainingMetrics class."""

    def test_initialization(self):
        """Metrics should initialize with empty lists."""
        metrics = TrainingMetrics(history_length=100)
        assert len(metrics.scores) == 0
        assert metrics.get_best_score() == 0.0
        assert metrics.get_recent_average('scores') == 0.0

    def test_add_episode_stats(self):
        """Adding stats should update all lists."""
        metrics = TrainingMetrics()
        metrics.add(make_stats(1, 64.0, reward=25.5))
        assert metrics.scores == [64.0]
        assert metrics.rewards == [25.5]
        assert metrics.steps == [10]
        assert metrics.epsilons == [0.5]
        assert metrics.episodes_recorded == 1

    def test_history_is_bounded(self):
        """Old entries are dropped, the best score is kept."""
        metrics = TrainingMetrics(history_length=3)
        for episode, score in enumerate([256.0, 8.0, 16.0, 32.0, 64.0], start=1):
            metrics.add(make_stats(episode, score))

        assert metrics.scores == [16.0, 32.0, 64.0]
        assert len(metrics.rewards) == 3
        assert metrics.get_best_score() == 256.0
        assert metrics.episodes_recorded == 5

    def test_recent_average(self):
        """Average over the last n values."""
        metrics = TrainingMetrics()
        for episode, score in enumerate([2.0, 4.0, 8.0], start=1):
            metrics.add(make_stats(episode, score))
        assert metrics.get_recent_average('scores', 2) == pytest.approx(6.0)
        assert metrics.get_recent_average('scores') == pytest.approx(14.0 / 3)


class TestTraining:
    """Test the training loop."""

    def test_train_records_every_episode(self, trainer, learner):
        """Metrics and learner totals cover every episode."""
        metrics = trainer.train(4)
        assert metrics.episodes_recorded == 4
        assert learner.episodes_completed == 4
        assert trainer.current_episode == 4
        assert trainer.total_steps == sum(metrics.steps)
        assert metrics.get_best_score() == max(metrics.scores)

    def test_default_episode_count(self, learner, tmp_config):
        """Without a count MAX_EPISODES is used."""
        tmp_config.MAX_EPISODES = 2
        Trainer(learner, tmp_config).train()
        assert learner.episodes_completed == 2

    def test_zero_episodes_runs_nothing(self, learner, tmp_config):
        """An explicit count of zero is not replaced by MAX_EPISODES."""
        tmp_config.MAX_EPISODES = 3
        trainer = Trainer(learner, tmp_config, model_name='test')
        metrics = trainer.train(0)
        assert metrics.episodes_recorded == 0
        assert learner.episodes_completed == 0
        assert not os.path.exists(trainer.checkpoint_path('final'))

    def test_checkpoints(self, trainer, tmp_config):
        """Best, periodic and final networks are written to MODEL_DIR."""
        trainer.train(4)
        for tag in ('best', 'ep2', 'ep4', 'final'):
            assert os.path.exists(os.path.join(tmp_config.MODEL_DIR, f'test_{tag}.txt'))
        assert not os.path.exists(os.path.join(tmp_config.MODEL_DIR, 'test_ep3.txt'))

    def test_final_checkpoint_is_target_network(self, trainer, learner):
        """The final file holds the trained network."""
        trainer.train(2)
        loaded = load_network(trainer.checkpoint_path('final'))
        for a, b in zip(loaded.get_weights(), learner.target_net.get_weights()):
            np.testing.assert_array_equal(a, b)

    def test_progress_callback(self, trainer):
        """Callback gets (episode, total, stats) after every episode."""
        calls = []
        trainer.train(3, progress_callback=lambda ep, total, stats: calls.append((ep, total)))
        assert calls == [(1, 3), (2, 3), (3, 3)]

    def test_learner_without_save(self, agent, tmp_config):
        """Learners that can't save train without writing checkpoints."""
        trainer = Trainer(ApproximateQLearner(agent, rng=random.Random(0)), tmp_config)
        assert not trainer.can_save
        trainer.train(2)
        assert not os.path.exists(tmp_config.MODEL_DIR)

    def test_epsilon_decays_per_episode(self, trainer, learner):
        learner.epsilon_decay = 0.5
        trainer.train(3)
        assert learner.epsilon == pytest.approx(0.125)


class TestEvaluate:
    """Test greedy evaluation."""

    def test_returns_statistics(self, trainer):
        """Mean, max and min score plus mean reward."""
        evaluation = trainer.evaluate(3)
        assert set(evaluation) == {'mean_score', 'max_score', 'min_score', 'mean_reward'}
        assert evaluation['min_score'] <= evaluation['mean_score'] <= evaluation['max_score']

    def test_learner_state_restored(self, trainer, learner):
        """Epsilon and running totals are untouched by evaluation."""
        trainer.train(2)
        learner.epsilon = 0.4
        before = (learner.total_score, learner.total_rewards, learner.episodes_completed)

        trainer.evaluate(3)
        assert learner.epsilon == 0.4
        assert (learner.total_score, learner.total_rewards, learner.episodes_completed) == before

    def test_zero_episodes(self, trainer):
        """Evaluating nothing reports zeros."""
        assert trainer.evaluate(0) == {
            'mean_score': 0.0, 'max_score': 0.0, 'min_score': 0.0, 'mean_reward': 0.0,
        }

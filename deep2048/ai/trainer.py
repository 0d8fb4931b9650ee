"""
Training Loop
=============

Orchestrates training of a Q-learner:
    1. Run episodes (the learner updates itself every move)
    2. Track metrics
    3. Log progress
    4. Save checkpoints (learners with a save() method)

Checkpoints are written to MODEL_DIR as <name>_best.txt, <name>_ep<N>.txt
and <name>_final.txt.
"""

import os
import time
from typing import Callable, Dict, List, Optional

import numpy as np

from config import Config
from ..utils.logger import get_logger, log_model_event, log_training_metrics
from .qlearner import EpisodeStats, QLearner


logger = get_logger(__name__)


class TrainingMetrics:
    """
    Bounded history of episode statistics.

    Metrics tracked:
        - Episode scores
        - Total rewards
        - Moves per episode
        - Epsilon values
    """

    def __init__(self, history_length: int = 1000):
        self.history_length = history_length

        self.scores: List[float] = []
        self.rewards: List[float] = []
        self.steps: List[int] = []
        self.epsilons: List[float] = []
        self.best_score = 0.0
        self.episodes_recorded = 0

    def add(self, stats: EpisodeStats) -> None:
        """Add episode statistics."""
        self.scores.append(stats.score)
        self.rewards.append(stats.total_reward)
        self.steps.append(stats.steps)
        self.epsilons.append(stats.epsilon)
        self.best_score = max(self.best_score, stats.score)
        self.episodes_recorded += 1

        if len(self.scores) > self.history_length:
            for attr in ['scores', 'rewards', 'steps', 'epsilons']:
                setattr(self, attr, getattr(self, attr)[-self.history_length:])

    def get_recent_average(self, metric: str, n: int = 100) -> float:
        """Get average of last n values for a metric."""
        values = getattr(self, metric, [])
        if not values:
            return 0.0
        return float(np.mean(values[-n:]))

    def get_best_score(self) -> float:
        """Highest score seen, including episodes trimmed from the history."""
        return self.best_score


class Trainer:
    """
    Runs training episodes for any QLearner.

    Example:
        >>> learner = DeepQLearner(Agent2048(), 50, 2)
        >>> trainer = Trainer(learner, Config(MAX_EPISODES=100))
        >>> metrics = trainer.train()
        >>> trainer.evaluate(10)
    """

    def __init__(
        self,
        learner: QLearner,
        config: Optional[Config] = None,
        model_name: str = 'deep2048'
    ):
        """
        Args:
            learner: Learner to train
            config: Configuration object
            model_name: Prefix of checkpoint file names
        """
        self.learner = learner
        self.config = config or Config()
        self.model_name = model_name

        self.metrics = TrainingMetrics(self.config.PLOT_HISTORY_LENGTH)
        self.current_episode = 0
        self.total_steps = 0

    @property
    def can_save(self) -> bool:
        return callable(getattr(self.learner, 'save', None))

    def checkpoint_path(self, tag: str) -> str:
        return os.path.join(self.config.MODEL_DIR, f'{self.model_name}_{tag}.txt')

    def train(
        self,
        num_episodes: Optional[int] = None,
        progress_callback: Optional[Callable[[int, int, EpisodeStats], None]] = None
    ) -> TrainingMetrics:
        """
        Run the training loop.

        Args:
            num_episodes: Number of episodes (default from config)
            progress_callback: Called with (episode, num_episodes, stats) after each episode

        Returns:
            Training metrics
        """
        if num_episodes is None:
            num_episodes = self.config.MAX_EPISODES

        print("\n" + "=" * 60)
        print("Starting 2048 Q-Learning")
        print("=" * 60)
        print(f"   Learner: {type(self.learner).__name__}")
        print(f"   Episodes: {num_episodes}")
        print(f"   Epsilon: {self.learner.epsilon:.3f} (decay {self.learner.epsilon_decay}, "
              f"min {self.learner.min_epsilon})")
        print(f"   Alpha: {self.learner.alpha}")
        print("=" * 60 + "\n")

        start_time = time.time()
        best_score = self.metrics.get_best_score()

        for episode in range(1, num_episodes + 1):
            self.current_episode = episode

            stats = self.learner.run_episode(train=True)
            self.metrics.add(stats)
            self.total_steps += stats.steps

            if episode % self.config.LOG_EVERY == 0:
                log_training_metrics(
                    episode,
                    stats.score,
                    self.learner.epsilon,
                    total_reward=stats.total_reward,
                    steps=stats.steps,
                    avg_score=self.metrics.get_recent_average('scores', 100),
                )

            if self.can_save:
                if stats.score > best_score:
                    best_score = stats.score
                    self.save_checkpoint('best', episode=episode, score=stats.score)
                if self.config.SAVE_EVERY and episode % self.config.SAVE_EVERY == 0:
                    self.save_checkpoint(f'ep{episode}', episode=episode, score=stats.score)

            if progress_callback:
                progress_callback(episode, num_episodes, stats)

        if self.can_save and num_episodes > 0:
            self.save_checkpoint('final', episode=self.current_episode)

        elapsed = time.time() - start_time
        print("\n" + "=" * 60)
        print("Training Complete!")
        print("=" * 60)
        print(f"   Best score: {self.metrics.get_best_score():.0f}")
        print(f"   Average score: {self.learner.average_score:.1f}")
        print(f"   Average rewards: {self.learner.average_rewards:.1f}")
        print(f"   Final epsilon: {self.learner.epsilon:.4f}")
        print(f"   Total moves: {self.total_steps:,} in {elapsed:.1f}s")
        print("=" * 60)

        return self.metrics

    def save_checkpoint(self, tag: str, **context) -> None:
        path = self.checkpoint_path(tag)
        self.learner.save(path)
        log_model_event('checkpoint', path, **context)

    def evaluate(self, num_episodes: int = 10) -> Dict[str, float]:
        """
        Play greedily without learning.

        The learner's epsilon and running totals are left as they were.

        Returns:
            Evaluation statistics
        """
        learner = self.learner
        saved = (learner.epsilon, learner.total_score, learner.total_rewards, learner.episodes_completed)

        try:
            results = learner.perform_without_training(num_episodes)
        finally:
            (learner.epsilon, learner.total_score,
             learner.total_rewards, learner.episodes_completed) = saved

        if not results:
            return {'mean_score': 0.0, 'max_score': 0.0, 'min_score': 0.0, 'mean_reward': 0.0}

        scores = [stats.score for stats in results]
        rewards = [stats.total_reward for stats in results]
        evaluation = {
            'mean_score': float(np.mean(scores)),
            'max_score': float(max(scores)),
            'min_score': float(min(scores)),
            'mean_reward': float(np.mean(rewards)),
        }
        logger.info(
            f"Evaluation over {num_episodes} episodes: mean={evaluation['mean_score']:.1f} "
            f"max={evaluation['max_score']:.0f} min={evaluation['min_score']:.0f}"
        )
        return evaluation

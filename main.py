#!/usr/bin/env python3
"""
2048 Q-Learning AI - Main Entry Point
=====================================

Trains Q-learning agents to play 2048, replays saved networks and lets you
play yourself.

Usage:
    # Train the deep Q-learner (default)
    python main.py --episodes 200

    # Continue training from a saved network
    python main.py --load models/deep2048_final.txt --epsilon 0.3

    # Train the linear approximate Q-learner
    python main.py --approx --episodes 200

    # Replay a saved network without training
    python main.py --play models/deep2048_best.txt --episodes 50 --watch

    # Play in the terminal or in a pygame window
    python main.py --human
    python main.py --gui
"""

import argparse
import random
import sys
from typing import List, Optional

import numpy as np

from config import Config
from deep2048.ai import ApproximateQLearner, DeepQLearner, NeuralNet, QLearner, load_network
from deep2048.ai.trainer import Trainer
from deep2048.game import Agent2048, CommandLineDisplay, Game2048
from deep2048.game.display import play_console
from deep2048.utils.logger import LogLevel, get_logger, setup_logging


logger = get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="2048 Q-Learning AI - Train approximate and deep Q-learners to play 2048",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
EXAMPLES
========

Training:
    python main.py                                  Deep Q-learning with config defaults
    python main.py --episodes 500 --seed 7          Longer, reproducible run
    python main.py --approx                         Linear approximate Q-learning
    python main.py --load models/deep2048_final.txt Continue from a saved network

Saved Networks:
    python main.py --play models/deep2048_best.txt --episodes 50
    python main.py --play models/deep2048_best.txt --watch

Playing Yourself:
    python main.py --human      Type left, right, up, down (or close)
    python main.py --gui        Arrow keys in a pygame window

TIPS
====
- Networks are saved to MODEL_DIR (config.py) as plain text
- Use --log-level DEBUG to see every episode and network sync
        """
    )

    # Mode selection
    mode_group = parser.add_mutually_exclusive_group()
    mode_group.add_argument(
        '--human', action='store_true',
        help='Play 2048 yourself in the terminal'
    )
    mode_group.add_argument(
        '--gui', action='store_true',
        help='Play 2048 yourself in a pygame window'
    )
    mode_group.add_argument(
        '--approx', action='store_true',
        help='Train the approximate (linear) Q-learner instead of the deep one'
    )
    mode_group.add_argument(
        '--play', type=str, metavar='NETWORK_FILE',
        help='Replay a saved network greedily, without training'
    )

    # Training options
    parser.add_argument(
        '--episodes', type=int, default=None,
        help='Number of episodes to train or play (default: MAX_EPISODES from config)'
    )
    parser.add_argument(
        '--load', type=str, default=None, metavar='NETWORK_FILE',
        help='Start deep Q-learning from a saved network'
    )
    parser.add_argument(
        '--hidden-nodes', type=int, default=None,
        help='Width of the middle layers'
    )
    parser.add_argument(
        '--hidden-layers', type=int, default=None,
        help='Number of middle layers'
    )
    parser.add_argument(
        '--lr', type=float, default=None,
        help='Learning rate (network alpha, or linear alpha with --approx)'
    )
    parser.add_argument(
        '--epsilon', type=float, default=None,
        help='Starting exploration rate'
    )
    parser.add_argument(
        '--target-update', type=int, default=None,
        help='Updates between main network syncs'
    )

    # Display and system options
    parser.add_argument(
        '--watch', action='store_true',
        help='Print the board after every move'
    )
    parser.add_argument(
        '--seed', type=int, default=None,
        help='Random seed for reproducibility'
    )
    parser.add_argument(
        '--log-level', type=str, default=None,
        choices=[level.name for level in LogLevel],
        help='Logging verbosity'
    )
    parser.add_argument(
        '--log-file', action='store_true',
        help='Also write logs to LOG_DIR'
    )

    return parser.parse_args(argv)


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Copy command line overrides onto the config."""
    if args.episodes is not None:
        config.MAX_EPISODES = args.episodes
    if args.hidden_nodes is not None:
        config.HIDDEN_NODES = args.hidden_nodes
    if args.hidden_layers is not None:
        config.HIDDEN_LAYERS = args.hidden_layers
    if args.lr is not None:
        if args.approx:
            config.APPROX_LEARNING_RATE = args.lr
        else:
            config.LEARNING_RATE = args.lr
    if args.epsilon is not None:
        config.EPSILON_START = args.epsilon
    if args.target_update is not None:
        config.TARGET_UPDATE = args.target_update
    if args.seed is not None:
        config.SEED = args.seed
    if args.log_level is not None:
        config.LOG_LEVEL = args.log_level
    if args.log_file:
        config.LOG_TO_FILE = True
    # Re-run validation on the overridden values
    config.__post_init__()
    return config


def make_agent(config: Config) -> Agent2048:
    return Agent2048(
        rng=np.random.default_rng(config.SEED),
        percent_twos=config.PERCENT_TWOS,
        board_size=config.BOARD_SIZE,
    )


def learner_rng(config: Config) -> random.Random:
    return random.Random(config.SEED)


def configure_exploration(learner: QLearner, config: Config) -> None:
    learner.epsilon = config.EPSILON_START
    learner.epsilon_decay = config.EPSILON_DECAY
    learner.min_epsilon = config.EPSILON_END


def load_configured_network(config: Config, path: str) -> NeuralNet:
    """Load a network; files without stored activations use the config ones."""
    return load_network(
        path,
        default_activator=config.build_activation(),
        default_output_activator=config.build_activation(config.OUTPUT_ACTIVATION),
    )


def build_deep_learner(config: Config, agent: Agent2048, load_path: Optional[str] = None) -> DeepQLearner:
    """Deep Q-learner with a fresh network, or one loaded from a file."""
    if load_path:
        # Activations stored in the file win over the config
        net = load_configured_network(config, load_path)
        learner = DeepQLearner.from_network(agent, net, rng=learner_rng(config), discount=config.GAMMA)
        logger.info(f"Loaded starting network from {load_path}")
    else:
        net_seed = None if config.SEED is None else config.SEED + 1
        learner = DeepQLearner(
            agent,
            config.HIDDEN_NODES,
            config.HIDDEN_LAYERS,
            activator=config.build_activation(),
            output_activator=config.build_activation(config.OUTPUT_ACTIVATION),
            rng=learner_rng(config),
            net_rng=np.random.default_rng(net_seed),
            discount=config.GAMMA,
        )

    learner.alpha = config.LEARNING_RATE
    learner.iterations_before_net_transfer = config.TARGET_UPDATE
    configure_exploration(learner, config)
    return learner


def build_approximate_learner(config: Config, agent: Agent2048) -> ApproximateQLearner:
    learner = ApproximateQLearner(agent, rng=learner_rng(config), discount=config.GAMMA)
    learner.alpha = config.APPROX_LEARNING_RATE
    configure_exploration(learner, config)
    return learner


def run_training(config: Config, args: argparse.Namespace) -> None:
    agent = make_agent(config)
    if args.approx:
        learner = build_approximate_learner(config, agent)
        model_name = 'approx2048'
    else:
        learner = build_deep_learner(config, agent, args.load)
        model_name = 'deep2048'

    if args.watch:
        CommandLineDisplay(agent.game)

    trainer = Trainer(learner, config, model_name=model_name)
    try:
        trainer.train(config.MAX_EPISODES)
    except KeyboardInterrupt:
        print("\n\nTraining interrupted by user")
        if trainer.can_save:
            trainer.save_checkpoint('interrupted', episode=trainer.current_episode)
        return

    if args.approx:
        logger.info(f"Learned feature weights: {learner.weights}")


def run_play_mode(config: Config, args: argparse.Namespace) -> None:
    """Replay a saved network without training."""
    agent = make_agent(config)
    net = load_configured_network(config, args.play)
    learner = DeepQLearner.from_network(agent, net, rng=learner_rng(config), discount=config.GAMMA)
    if args.watch:
        CommandLineDisplay(agent.game)

    for stats in learner.perform_without_training(config.MAX_EPISODES):
        logger.info(f"Game {stats.episode}: highest tile {stats.score:.0f} in {stats.steps} moves")

    print(f"Test score: {learner.average_score}")
    print(f"Test rewards: {learner.average_rewards}")


def run_human_mode(config: Config) -> None:
    game = Game2048(rng=np.random.default_rng(config.SEED), percent_twos=config.PERCENT_TWOS,
                    size=config.BOARD_SIZE)
    play_console(game, CommandLineDisplay(game))
    print(f"Highest tile: {game.highest_number}")


def run_gui_mode(config: Config) -> None:
    # pygame is only needed for this mode
    from deep2048.visualizer import run_gui
    game = Game2048(rng=np.random.default_rng(config.SEED), percent_twos=config.PERCENT_TWOS,
                    size=config.BOARD_SIZE)
    run_gui(game)


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    config = apply_overrides(Config(), args)

    setup_logging(
        log_dir=config.LOG_DIR,
        level=LogLevel.from_name(config.LOG_LEVEL),
        file_output=config.LOG_TO_FILE,
        force=True,
    )

    if args.human:
        run_human_mode(config)
    elif args.gui:
        run_gui_mode(config)
    elif args.play:
        run_play_mode(config, args)
    else:
        run_training(config, args)


if __name__ == "__main__":
    main(sys.argv[1:])

"""
deep2048
========

Approximate and deep Q-learning agents for the game 2048, built on a small
hand-written numpy neural network.

Subpackages:
    ai         - Activations, neural network, Q-learners, persistence, trainer
    game       - 2048 board mechanics, the 2048 agent and the console display
    utils      - Logging
    visualizer - pygame board view
"""

__version__ = '1.0.0'

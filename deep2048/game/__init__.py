"""
Game Module
===========

2048 and the interface the Q-learners use to play it.

Classes:
    BaseGame           - Abstract learnable game (agent contract)
    Game2048           - 2048 board mechanics
    Direction          - The four moves
    Agent2048          - 2048 features, rewards and action mapping
    CommandLineDisplay - Boxed text board that redraws after every move
"""

from .base_game import BaseGame
from .game_2048 import Direction, Game2048
from .agent_2048 import Agent2048
from .display import CommandLineDisplay

__all__ = [
    'BaseGame',
    'Direction',
    'Game2048',
    'Agent2048',
    'CommandLineDisplay',
]

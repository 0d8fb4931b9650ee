"""
Visualization Module
====================

pygame rendering of 2048 boards.

Classes:
    BoardView - Draws a board with tile colours

Functions:
    run_gui - Arrow-key play window
"""

from .board_view import BoardView, run_gui

__all__ = ['BoardView', 'run_gui']

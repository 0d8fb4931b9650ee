"""
Console display and play loop for 2048.

The display follows a game and redraws the board after every move:

    +------+------+------+------+
    |      |      |      |      |
    |     2|      |      |     4|
    |      |      |      |      |
    +------+------+------+------+
    ...
"""

import sys
from typing import Callable, Optional, TextIO

from .game_2048 import Direction, Game2048


COMMANDS = {
    'left': Direction.LEFT,
    'right': Direction.RIGHT,
    'up': Direction.UP,
    'down': Direction.DOWN,
}
CLOSE_COMMAND = 'close'

CELL_WIDTH = 6


class CommandLineDisplay:
    """Text rendering of a 2048 board, redrawn on every move of the followed game."""

    def __init__(self, game: Game2048, stream: Optional[TextIO] = None):
        self.stream = stream if stream is not None else sys.stdout
        self.game = game
        self.follow_game(game)

    def follow_game(self, game: Game2048) -> None:
        """Switch to a game and redraw after each of its moves."""
        self.game = game
        game.subscribe(self._on_move)

    def _on_move(self, game: Game2048, direction: Direction) -> None:
        # Only the followed game is drawn
        if game is self.game:
            self.display_game()

    def render(self) -> str:
        """Board as boxed text."""
        size = self.game.dimension
        border = "+" + "+".join("-" * CELL_WIDTH for _ in range(size)) + "+"
        padding = "|" + "|".join(" " * CELL_WIDTH for _ in range(size)) + "|"

        lines = [border]
        for row in range(size):
            cells = []
            for column in range(size):
                value = self.game[row, column]
                cells.append(f"{value:>{CELL_WIDTH}}" if value else " " * CELL_WIDTH)
            lines.extend([padding, "|" + "|".join(cells) + "|", padding, border])
        return "\n".join(lines)

    def display_game(self) -> None:
        self.stream.write(self.render() + "\n")
        self.stream.flush()


def parse_command(text: str) -> Optional[Direction]:
    """Direction for a typed command, None if it isn't one."""
    return COMMANDS.get(text.strip().lower())


def play_console(
    game: Game2048,
    display: CommandLineDisplay,
    input_fn: Callable[[str], str] = input
) -> None:
    """
    Let a person play in the terminal until the game is over or they type 'close'.

    Unknown commands are ignored and the prompt is shown again.
    """
    display.display_game()
    while not game.over:
        try:
            text = input_fn("Enter a move: ")
        except EOFError:
            break
        if text.strip().lower() == CLOSE_COMMAND:
            break
        direction = parse_command(text)
        if direction is None:
            display.stream.write(f"Unknown move {text.strip()!r}, use left, right, up, down or close\n")
            continue
        game.action(direction)

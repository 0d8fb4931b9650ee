"""
2048 Board View
===============

Draws a 2048 board with pygame, in the classic tile colours, and
runs a small window for playing with the arrow keys.

Controls:
    Arrow keys  move
    R           restart
    ESC         quit
"""

from typing import Dict, Optional, Tuple

import numpy as np
import pygame

from ..game.game_2048 import Direction, Game2048
from ..utils.logger import get_logger


logger = get_logger(__name__)

Color = Tuple[int, int, int]


class BoardView:
    """
    Renders a board onto any pygame surface.

    Example:
        >>> view = BoardView()
        >>> screen = pygame.display.set_mode(view.size)
        >>> view.draw(screen, game.board)
    """

    BACKGROUND: Color = (187, 173, 160)
    WINDOW_BACKGROUND: Color = (250, 248, 239)
    TEXT_DARK: Color = (119, 110, 101)
    TEXT_LIGHT: Color = (249, 246, 242)

    TILE_COLORS: Dict[int, Color] = {
        0: (205, 193, 180),
        2: (238, 228, 218),
        4: (237, 224, 200),
        8: (242, 177, 121),
        16: (245, 149, 99),
        32: (246, 124, 95),
        64: (246, 94, 59),
        128: (237, 207, 114),
        256: (237, 204, 97),
        512: (237, 200, 80),
        1024: (237, 197, 63),
        2048: (237, 194, 46),
    }
    # Anything above 2048
    BIG_TILE_COLOR: Color = (60, 58, 50)

    def __init__(self, dimension: int = 4, tile_size: int = 100, margin: int = 15):
        self.dimension = dimension
        self.tile_size = tile_size
        self.margin = margin
        self._fonts: Dict[int, pygame.font.Font] = {}

    @property
    def size(self) -> Tuple[int, int]:
        """Pixel size of the drawn board."""
        side = self.dimension * self.tile_size + (self.dimension + 1) * self.margin
        return side, side

    def tile_color(self, value: int) -> Color:
        return self.TILE_COLORS.get(value, self.BIG_TILE_COLOR)

    def text_color(self, value: int) -> Color:
        # Dark text on the two lightest tiles
        return self.TEXT_DARK if value <= 4 else self.TEXT_LIGHT

    def tile_rect(self, row: int, column: int, origin: Tuple[int, int] = (0, 0)) -> pygame.Rect:
        x = origin[0] + self.margin + column * (self.tile_size + self.margin)
        y = origin[1] + self.margin + row * (self.tile_size + self.margin)
        return pygame.Rect(x, y, self.tile_size, self.tile_size)

    def _font_for(self, value: int) -> pygame.font.Font:
        if value < 100:
            points = self.tile_size * 3 // 5
        elif value < 1000:
            points = self.tile_size // 2
        else:
            points = self.tile_size * 2 // 5
        if points not in self._fonts:
            self._fonts[points] = pygame.font.Font(None, points)
        return self._fonts[points]

    def draw(self, surface: pygame.Surface, board: np.ndarray, origin: Tuple[int, int] = (0, 0)) -> None:
        """
        Draw a board.

        Args:
            surface: Surface to draw on
            board: Board matrix of tile values
            origin: Top left corner of the board on the surface
        """
        pygame.draw.rect(surface, self.BACKGROUND, pygame.Rect(origin, self.size), border_radius=10)

        for row in range(board.shape[0]):
            for column in range(board.shape[1]):
                value = int(board[row, column])
                rect = self.tile_rect(row, column, origin)
                pygame.draw.rect(surface, self.tile_color(value), rect, border_radius=8)
                if value:
                    text = self._font_for(value).render(str(value), True, self.text_color(value))
                    surface.blit(text, text.get_rect(center=rect.center))


KEY_DIRECTIONS = {
    pygame.K_UP: Direction.UP,
    pygame.K_RIGHT: Direction.RIGHT,
    pygame.K_DOWN: Direction.DOWN,
    pygame.K_LEFT: Direction.LEFT,
}


def run_gui(game: Optional[Game2048] = None, fps: int = 30) -> Game2048:
    """
    Open a window and play with the arrow keys until it is closed.

    Returns:
        The game as it was when the window closed
    """
    game = game if game is not None else Game2048()

    pygame.init()
    view = BoardView(game.dimension)
    header = 60
    width, height = view.size
    screen = pygame.display.set_mode((width, height + header))
    pygame.display.set_caption("2048")
    font = pygame.font.Font(None, 36)
    clock = pygame.time.Clock()

    running = True
    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False
                elif event.key == pygame.K_r:
                    game.restart()
                elif event.key in KEY_DIRECTIONS and not game.over:
                    game.action(KEY_DIRECTIONS[event.key])

        screen.fill(BoardView.WINDOW_BACKGROUND)
        status = "Game over! R to restart" if game.over else f"Highest tile: {game.highest_number}"
        screen.blit(font.render(status, True, BoardView.TEXT_DARK), (view.margin, header // 3))
        view.draw(screen, game.board, origin=(0, header))
        pygame.display.flip()
        clock.tick(fps)

    logger.info(f"Window closed, highest tile {game.highest_number}")
    pygame.quit()
    return game

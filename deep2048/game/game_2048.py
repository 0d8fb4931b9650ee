"""
2048 Board
==========

The board mechanics of 2048: sliding, merging and spawning tiles.

Board:
    size x size int matrix of real tile values (2, 4, 8, ...), 0 for empty.
    board[0, 0] is the top left tile, board[size - 1, size - 1] the bottom right.

Moves:
    Every move is done as a move to the left on a rotated copy of the board.
    Tiles slide as far as they can and two equal neighbours merge into their
    sum. A tile merges at most once per move, so [2, 2, 4, 0] moves left to
    [4, 4, 0, 0] and not [8, 0, 0, 0].

    After a move that changed the board a new tile (2 with probability
    percent_twos, otherwise 4) appears on a random empty square.
"""

from enum import Enum
from typing import Callable, List, Optional

import numpy as np


class Direction(Enum):
    """The four moves. Values are the agent's output node numbers."""
    UP = 0
    RIGHT = 1
    DOWN = 2
    LEFT = 3


# Counter-clockwise quarter turns that make each direction a move to the left
_ROTATIONS = {
    Direction.LEFT: 0,
    Direction.UP: 1,
    Direction.RIGHT: 2,
    Direction.DOWN: 3,
}

MoveCallback = Callable[['Game2048', Direction], None]


def merge_line(line: np.ndarray) -> np.ndarray:
    """
    Slide one row to the left, merging equal neighbours once.

    Args:
        line: 1D array of tile values

    Returns:
        New array of the same length
    """
    tiles = [value for value in line if value != 0]
    merged = []
    i = 0
    while i < len(tiles):
        if i + 1 < len(tiles) and tiles[i] == tiles[i + 1]:
            merged.append(tiles[i] * 2)
            i += 2
        else:
            merged.append(tiles[i])
            i += 1

    result = np.zeros(len(line), dtype=line.dtype)
    result[:len(merged)] = merged
    return result


class Game2048:
    """
    A game of 2048.

    Example:
        >>> game = Game2048(rng=np.random.default_rng(0))
        >>> if game.is_possible_move(Direction.LEFT):
        ...     game.action(Direction.LEFT)
        >>> print(game.highest_number, game.over)
    """

    DEFAULT_SIZE = 4

    def __init__(
        self,
        board: Optional[np.ndarray] = None,
        rng: Optional[np.random.Generator] = None,
        percent_twos: float = 0.9,
        size: Optional[int] = None
    ):
        """
        Start a game.

        Args:
            board: Starting board to copy. Without one the game starts empty
                with two random tiles.
            rng: Random source for new tiles
            percent_twos: Probability that a new tile is a 2
            size: Board width/height when no board is given (default 4)
        """
        self.rng = rng if rng is not None else np.random.default_rng()
        self.percent_twos = percent_twos
        self._subscribers: List[MoveCallback] = []

        if board is None:
            size = size or self.DEFAULT_SIZE
            self._board = np.zeros((size, size), dtype=np.int64)
            self.add_tile()
            self.add_tile()
        else:
            board = np.array(board, dtype=np.int64)
            if board.ndim != 2 or board.shape[0] != board.shape[1]:
                raise ValueError(f"Board must be a square matrix, got shape {board.shape}")
            if size is not None and board.shape[0] != size:
                raise ValueError(f"Board must be {size}x{size}, got shape {board.shape}")
            self._board = board

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def board(self) -> np.ndarray:
        """Copy of the board matrix."""
        return self._board.copy()

    @property
    def dimension(self) -> int:
        return self._board.shape[0]

    def __getitem__(self, position) -> int:
        row, column = position
        if not (0 <= row < self.dimension and 0 <= column < self.dimension):
            raise IndexError(f"({row}, {column}) is outside the {self.dimension}x{self.dimension} board")
        return int(self._board[row, column])

    @property
    def filled(self) -> bool:
        return not np.any(self._board == 0)

    @property
    def empty_spaces(self) -> int:
        return int(np.count_nonzero(self._board == 0))

    @property
    def highest_number(self) -> int:
        return int(self._board.max())

    @property
    def over(self) -> bool:
        """True when no direction changes the board."""
        return not any(self.is_possible_move(direction) for direction in Direction)

    def is_empty(self, row: int, column: int) -> bool:
        return self[row, column] == 0

    # =========================================================================
    # MOVES
    # =========================================================================

    def add_tile(self) -> None:
        """
        Put a new tile on a random empty square.

        Raises:
            RuntimeError: If the board is full
        """
        empty_cells = np.argwhere(self._board == 0)
        if len(empty_cells) == 0:
            raise RuntimeError("Cannot add tile, the board is full")

        row, column = empty_cells[self.rng.integers(len(empty_cells))]
        self._board[row, column] = 2 if self.rng.random() < self.percent_twos else 4

    def action(self, direction: Direction) -> bool:
        """
        Make a move. A tile is added only if the board changed.

        Subscribers are notified after every move, even one that changed nothing.

        Returns:
            True if the board changed
        """
        changed = self.action_no_add_tile(direction)
        if changed:
            self.add_tile()
        for callback in self._subscribers:
            callback(self, direction)
        return changed

    def action_no_add_tile(self, direction: Direction) -> bool:
        """
        Slide and merge without adding a tile or notifying subscribers.

        Returns:
            True if the board changed
        """
        moved = self._moved_board(direction)
        changed = not np.array_equal(moved, self._board)
        self._board = moved
        return changed

    def is_possible_move(self, direction: Direction) -> bool:
        """True if the move would change the board."""
        return not np.array_equal(self._moved_board(direction), self._board)

    def _moved_board(self, direction: Direction) -> np.ndarray:
        turns = _ROTATIONS[direction]
        rotated = np.rot90(self._board, turns)
        moved = np.array([merge_line(row) for row in rotated])
        return np.ascontiguousarray(np.rot90(moved, -turns))

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def restart(self) -> None:
        """Clear the board and add two random tiles."""
        self._board = np.zeros_like(self._board)
        self.add_tile()
        self.add_tile()

    def copy(self) -> 'Game2048':
        """Copy of the board and settings. Subscribers are not copied."""
        return Game2048(self._board, rng=self.rng, percent_twos=self.percent_twos)

    def subscribe(self, callback: MoveCallback) -> None:
        """Call callback(game, direction) after every move."""
        self._subscribers.append(callback)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Game2048):
            return NotImplemented
        return np.array_equal(self._board, other._board)

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        return f"Game2048({self._board.tolist()})"

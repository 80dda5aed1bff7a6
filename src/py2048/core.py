# core.py
# This file is the stateless core logic for the 2048 game: tiles, boards,
# tile spawning, move resolution and terminal-state checks.

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterator, List, NamedTuple, Optional, Tuple
import itertools
import random

from py2048.config import BOARD_SIZE, INITIAL_TILES, TILE_PROBABILITIES, WIN_VALUE


class GameStatus(Enum):
    """Represents the current progress state of a game."""
    PLAYING = "playing"
    WON = "won"
    LOST = "lost"


class Direction(Enum):
    """Represents the possible move directions."""
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class Tile:
    """
    A single numbered tile.

    Tiles are immutable: a tile that slides or merges is replaced by a copy
    carrying the same ``id``. ``merged_from`` holds the two parent tiles only
    on the move that produced this tile.
    """
    id: int
    value: int
    row: int
    col: int
    merged_from: Optional[Tuple["Tile", "Tile"]] = None


Cell = Optional[Tile]
Row = List[Cell]
Board = List[Row]


class MoveResult(NamedTuple):
    board: Board
    score_delta: int
    changed: bool


class SpawnResult(NamedTuple):
    board: Board
    tile: Optional[Tile]


# --- Tile Identity ---

class TileIdAllocator:
    """Hands out ascending tile ids. Ids are never recycled."""

    def __init__(self) -> None:
        self._counter: Iterator[int] = itertools.count()

    def next_id(self) -> int:
        return next(self._counter)


_tile_ids = TileIdAllocator()


def create_tile(value: int, row: int, col: int) -> Tile:
    """
    Creates a new tile with a fresh process-wide id.
    Args:
        value (int): The tile value (a power of two).
        row (int): Row of the cell the tile is placed in.
        col (int): Column of the cell the tile is placed in.
    Returns:
        Tile: The new tile.
    """
    return Tile(id=_tile_ids.next_id(), value=value, row=row, col=col)


# --- Board Helper Functions ---

def new_board(size: int = BOARD_SIZE) -> Board:
    """Creates an empty size x size board."""
    return [[None] * size for _ in range(size)]


def copy_board(board: Board) -> Board:
    """Copies the row storage of a board. Tiles are immutable and shared."""
    return [list(row) for row in board]


def get_board_size(board: Board) -> int:
    """
    Gets the size (N) of an N x N board.
    Args:
        board (Board): The game board.
    Returns:
        int: The dimension of the board.
    Raises:
        ValueError: If the board is not square or empty.
    """
    if not board or not all(len(row) == len(board) for row in board):
        raise ValueError("Board must be a non-empty square matrix.")
    return len(board)


def get_empty_cells(board: Board) -> List[Tuple[int, int]]:
    """
    Get coordinates of empty cells in the given board, in row-major order.
    Args:
        board (Board): The board to check.
    Returns:
        List[Tuple[int, int]]: List of (row, col) tuples for empty cells.
    """
    n = get_board_size(board)
    empty_cells = []
    for row in range(n):
        for col in range(n):
            if board[row][col] is None:
                empty_cells.append((row, col))
    return empty_cells


def iter_tiles(board: Board) -> Iterator[Tile]:
    """Yields every tile on the board in row-major order."""
    for row in board:
        for cell in row:
            if cell is not None:
                yield cell


def _with_positions(board: Board) -> Board:
    # Tiles carry their own coordinates; make them agree with the grid.
    stamped = new_board(len(board))
    for row, cells in enumerate(board):
        for col, tile in enumerate(cells):
            if tile is not None and (tile.row, tile.col) != (row, col):
                tile = replace(tile, row=row, col=col)
            stamped[row][col] = tile
    return stamped


def rotate_board(board: Board, quarter_turns: int) -> Board:
    """
    Rotates a board clockwise.
    One quarter turn maps cell (row, col) to (col, N - 1 - row).
    Args:
        board (Board): The board to rotate.
        quarter_turns (int): Number of 90 degree turns, taken modulo 4.
    Returns:
        Board: A new board. Tile positions are updated to their new cells.
    """
    n = get_board_size(board)
    rotated = copy_board(board)
    for _ in range(quarter_turns % 4):
        turned = new_board(n)
        for row in range(n):
            for col in range(n):
                turned[col][n - 1 - row] = rotated[row][col]
        rotated = turned
    return _with_positions(rotated)


# --- Random Tile Generation ---

def generate_random_tile_value() -> int:
    """
    Draws a value for a new tile from TILE_PROBABILITIES.
    Returns:
        int: The drawn value; 2 if the draw lands outside the configured mass.
    """
    draw = random.random()
    cumulative = 0.0
    for value, probability in TILE_PROBABILITIES.items():
        cumulative += probability
        if draw < cumulative:
            return value
    return 2


def add_random_tile(board: Board) -> SpawnResult:
    """
    Adds a new tile to a uniformly chosen empty cell on a copy of the board.
    Args:
        board (Board): The current game board.
    Returns:
        SpawnResult: The new board and the created tile.
                     If there are no empty cells, the original board and None.
    """
    empty_cells = get_empty_cells(board)
    if not empty_cells:
        return SpawnResult(board, None)

    row, col = random.choice(empty_cells)
    tile = create_tile(generate_random_tile_value(), row, col)
    spawned_board = copy_board(board)
    spawned_board[row][col] = tile
    return SpawnResult(spawned_board, tile)


def initialize_game() -> Board:
    """Creates an empty board with the starting tiles placed on it."""
    board = new_board()
    for _ in range(INITIAL_TILES):
        board, _ = add_random_tile(board)
    return board


# --- Line Manipulation (Core Move Logic) ---

def _same_tile(before: Cell, after: Cell) -> bool:
    if before is None or after is None:
        return before is after
    return before.id == after.id and before.value == after.value


def slide_row(cells: Row) -> Tuple[Row, int, bool]:
    """
    Slides a single line to the left (towards index 0), merging equal neighbours.

    Tiles are compacted first, then scanned left to right. Two equal tiles
    merge into one carrying the left tile's id; a merged tile never merges
    again in the same call.
    Args:
        cells (Row): The line to slide.
    Returns:
        Tuple[Row, int, bool]: The slid line, the score gained from merges,
                               and whether any cell changed.
    """
    tiles = [
        cell if cell.merged_from is None else replace(cell, merged_from=None)
        for cell in cells
        if cell is not None
    ]
    slid: Row = []
    score = 0
    index = 0

    while index < len(tiles):
        current = tiles[index]
        if index + 1 < len(tiles) and current.value == tiles[index + 1].value:
            merged = replace(
                current,
                value=current.value * 2,
                merged_from=(current, tiles[index + 1]),
            )
            slid.append(merged)
            score += merged.value
            index += 2  # Skip the tile that was merged in
        else:
            slid.append(current)
            index += 1

    slid += [None] * (len(cells) - len(slid))
    changed = any(not _same_tile(before, after) for before, after in zip(cells, slid))
    return slid, score, changed


# --- Core Game Move Processing ---

def _with_original_parents(moved: Board, board: Board) -> Board:
    # Parents recorded by slide_row sit in the rotated frame; point merged
    # tiles back at the input tiles, at their pre-move positions.
    originals = {
        tile.id: tile if tile.merged_from is None else replace(tile, merged_from=None)
        for tile in iter_tiles(board)
    }
    restored = copy_board(moved)
    for cells in restored:
        for col, tile in enumerate(cells):
            if tile is not None and tile.merged_from is not None:
                left, right = tile.merged_from
                cells[col] = replace(tile, merged_from=(originals[left.id], originals[right.id]))
    return restored


# Clockwise quarter turns that bring each direction's leading edge to the left.
_ROTATIONS = {
    Direction.LEFT: 0,
    Direction.DOWN: 1,
    Direction.RIGHT: 2,
    Direction.UP: 3,
}


def move_board(board: Board, direction: Direction) -> MoveResult:
    """
    Processes a move in the specified direction.

    Every direction is reduced to a left slide: rotate, slide each row,
    rotate back.
    Args:
        board (Board): The current game board. It is not modified.
        direction (Direction): The direction to move.
    Returns:
        MoveResult:
            - The new board state after the move.
            - The score gained from this move.
            - Whether the board changed. When False the returned board holds
              exactly the input's tiles in the same cells.
    Raises:
        ValueError: If an invalid direction is specified.
    """
    if not isinstance(direction, Direction):
        raise ValueError(f"Invalid direction specified for move_board: {direction!r}")

    rotations = _ROTATIONS[direction]
    rotated = rotate_board(board, rotations)

    slid_rows = []
    total_score = 0
    changed = False
    for row in rotated:
        cells, row_score, row_changed = slide_row(row)
        slid_rows.append(cells)
        total_score += row_score
        changed = changed or row_changed

    if not changed:
        return MoveResult(copy_board(board), 0, False)

    # rotate_board restamps row/col on every tile it returns.
    moved = rotate_board(slid_rows, (4 - rotations) % 4)
    return MoveResult(_with_original_parents(moved, board), total_score, True)


# --- Game State Checks ---

def check_win(board: Board, win_value: int = WIN_VALUE) -> bool:
    """
    Check if the game is won (a tile of at least win_value exists).
    Args:
        board (Board): The game board.
        win_value (int): The tile value that signifies a win. Default is 2048.
    Returns:
        bool: True if the game is won, False otherwise.
    """
    return any(tile.value >= win_value for tile in iter_tiles(board))


def check_game_over(board: Board) -> bool:
    """
    Check if no move is possible: no empty cell and no adjacent equal pair.
    Args:
        board (Board): The game board.
    Returns:
        bool: True if the game is lost, False otherwise.
    """
    if get_empty_cells(board):
        return False

    n = get_board_size(board)
    for row in range(n):
        for col in range(n):
            value = board[row][col].value
            if col < n - 1 and board[row][col + 1].value == value:
                return False
            if row < n - 1 and board[row + 1][col].value == value:
                return False
    return True


def determine_game_status(board: Board, win_value: int = WIN_VALUE) -> GameStatus:
    """Determines the progress state of the game from the board alone."""
    if check_win(board, win_value):
        return GameStatus.WON
    if check_game_over(board):
        return GameStatus.LOST
    return GameStatus.PLAYING


def get_current_score(board: Board) -> int:
    """Sum of all tile values on the board."""
    return sum(tile.value for tile in iter_tiles(board))


def get_highest_tile(board: Board) -> int:
    """Largest tile value on the board, 0 for an empty board."""
    return max((tile.value for tile in iter_tiles(board)), default=0)

from typing import Dict, Tuple

from py2048.core import Board, create_tile, new_board


def build_board(tiles: Dict[Tuple[int, int], int]) -> Board:
    """Builds a 4x4 board from {(row, col): value}."""
    board = new_board()
    for (row, col), value in tiles.items():
        board[row][col] = create_tile(value, row, col)
    return board


def board_from_values(rows) -> Board:
    """Builds a board from a grid of values, 0 meaning empty."""
    return build_board({
        (r, c): value
        for r, row in enumerate(rows)
        for c, value in enumerate(row)
        if value
    })


def values_of(board: Board):
    return [[0 if cell is None else cell.value for cell in row] for row in board]


def assert_positions_consistent(board: Board):
    for r, row in enumerate(board):
        for c, cell in enumerate(row):
            if cell is not None:
                assert (cell.row, cell.col) == (r, c)



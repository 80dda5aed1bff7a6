import pytest

from py2048.core import Board

from tests.helpers import board_from_values


@pytest.fixture
def checkerboard() -> Board:
    """A full board with no equal neighbours in any row or column."""
    return board_from_values([
        [2, 4, 2, 4],
        [4, 2, 4, 2],
        [2, 4, 2, 4],
        [4, 2, 4, 2],
    ])

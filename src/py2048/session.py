# session.py
# Stateful wrapper around the core: holds one round of play and advances it
# one accepted move at a time.

import logging
from dataclasses import dataclass
from typing import NamedTuple, Optional

from py2048.config import WIN_VALUE
from py2048.core import (
    Board,
    Direction,
    GameStatus,
    add_random_tile,
    check_game_over,
    check_win,
    copy_board,
    determine_game_status,
    get_current_score,
    get_empty_cells,
    get_highest_tile,
    initialize_game,
    move_board,
)

logger = logging.getLogger(__name__)


class SpawnRecord(NamedTuple):
    """Where the most recent tile was spawned, and with which value."""
    row: int
    col: int
    value: int


@dataclass(frozen=True)
class GameSnapshot:
    """Read-only view of a session, for presentation adapters."""
    board: Board
    score: int
    move_count: int
    status: GameStatus
    last_direction: Optional[Direction]
    last_spawned_tile: Optional[SpawnRecord]
    empty_cells_count: int
    highest_tile: int


class GameSession:
    """
    One game of 2048.

    Not safe for concurrent use; callers must serialize ``move`` and
    ``restart`` calls.
    """

    def __init__(self, board: Optional[Board] = None, score: Optional[int] = None):
        """
        Args:
            board (Optional[Board]): Start from this board instead of a fresh
                                     one. Its status is derived from the tiles.
            score (Optional[int]): Starting score. Defaults to the sum of the
                                   tiles on the starting board.
        """
        if board is None:
            self.restart()
            return

        self._board = copy_board(board)
        self._score = get_current_score(self._board) if score is None else score
        self._move_count = 0
        self._status = determine_game_status(self._board, WIN_VALUE)
        self._last_direction: Optional[Direction] = None
        self._last_spawned_tile: Optional[SpawnRecord] = None

    # --- Read-only state ---

    @property
    def board(self) -> Board:
        return copy_board(self._board)

    @property
    def score(self) -> int:
        return self._score

    @property
    def move_count(self) -> int:
        return self._move_count

    @property
    def status(self) -> GameStatus:
        return self._status

    @property
    def last_direction(self) -> Optional[Direction]:
        return self._last_direction

    @property
    def last_spawned_tile(self) -> Optional[SpawnRecord]:
        return self._last_spawned_tile

    @property
    def empty_cells_count(self) -> int:
        return len(get_empty_cells(self._board))

    @property
    def highest_tile(self) -> int:
        return get_highest_tile(self._board)

    def snapshot(self) -> GameSnapshot:
        return GameSnapshot(
            board=self.board,
            score=self._score,
            move_count=self._move_count,
            status=self._status,
            last_direction=self._last_direction,
            last_spawned_tile=self._last_spawned_tile,
            empty_cells_count=self.empty_cells_count,
            highest_tile=self.highest_tile,
        )

    # --- Actions ---

    def move(self, direction: Direction) -> bool:
        """
        Plays one move.

        The win check runs before the new tile is spawned and the loss check
        after it, so reaching the win value on an otherwise full board wins.
        Args:
            direction (Direction): The direction to move.
        Returns:
            bool: True if the move was accepted. False if the game is over or
                  the move would not change the board; state is untouched then.
        """
        if self._status is not GameStatus.PLAYING:
            return False

        result = move_board(self._board, direction)
        if not result.changed:
            return False

        self._board = result.board
        self._score += result.score_delta
        self._move_count += 1
        self._last_direction = direction
        logger.debug("Move %d: %s, +%d points", self._move_count, direction.value, result.score_delta)

        if check_win(self._board, WIN_VALUE):
            self._status = GameStatus.WON
            logger.info("Game won after %d moves with score %d", self._move_count, self._score)

        self._board, tile = add_random_tile(self._board)
        if tile is not None:
            self._last_spawned_tile = SpawnRecord(tile.row, tile.col, tile.value)

        if self._status is not GameStatus.WON and check_game_over(self._board):
            self._status = GameStatus.LOST
            logger.info("Game lost after %d moves with score %d", self._move_count, self._score)

        return True

    def restart(self) -> None:
        """Discards the current game and starts a fresh one."""
        self._board = initialize_game()
        self._score = get_current_score(self._board)
        self._move_count = 0
        self._status = GameStatus.PLAYING
        self._last_direction = None
        self._last_spawned_tile = None

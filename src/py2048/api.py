import logging
import threading
import uuid
from collections import OrderedDict
from typing import List, Optional, Tuple

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from py2048 import __version__
from py2048.config import MAX_GAMES, RATE_LIMIT
from py2048.core import Direction, GameStatus, Tile
from py2048.session import GameSession, GameSnapshot

logger = logging.getLogger(__name__)

# Initialize the rate limiter
limiter = Limiter(key_func=get_remote_address)
app = FastAPI(
    title="2048 Game API",
    description="An API for playing the 2048 game. "\
                "Games are held in server memory and addressed by their game_id.",
    version=__version__
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# --- Session storage ---

class SessionStore:
    """
    In-memory games keyed by id. Each game has its own lock so moves are serialized.

    Holds at most ``max_games`` games; adding one more drops the least recently used.
    """

    def __init__(self, max_games: int = MAX_GAMES):
        self.max_games = max_games
        self._games: "OrderedDict[str, Tuple[GameSession, threading.Lock]]" = OrderedDict()
        self._guard = threading.Lock()

    def __len__(self) -> int:
        with self._guard:
            return len(self._games)

    def create(self) -> str:
        return self.add(GameSession())

    def add(self, session: GameSession) -> str:
        game_id = uuid.uuid4().hex
        with self._guard:
            self._games[game_id] = (session, threading.Lock())
            while len(self._games) > self.max_games:
                evicted, _ = self._games.popitem(last=False)
                logger.info("Evicted game %s", evicted)
        return game_id

    def checkout(self, game_id: str) -> Tuple[GameSession, threading.Lock]:
        """Returns a game and its lock together, marking the game as recently used."""
        with self._guard:
            entry = self._games[game_id]
            self._games.move_to_end(game_id)
            return entry

    def get(self, game_id: str) -> GameSession:
        return self.checkout(game_id)[0]

    def remove(self, game_id: str) -> None:
        with self._guard:
            del self._games[game_id]

    def clear(self) -> None:
        with self._guard:
            self._games.clear()


store = SessionStore()

# --- Pydantic Models for API requests and responses ---

class TileData(BaseModel):
    """A tile on the board."""
    id: int = Field(..., ge=0, description="Unique tile id, stable while the tile slides or absorbs a merge.")
    value: int = Field(..., ge=2, description="Tile value, a power of two.")
    row: int = Field(..., ge=0)
    col: int = Field(..., ge=0)
    merged_from: Optional[List[int]] = Field(
        default=None,
        description="Ids of the two tiles merged into this one on the last move, if any."
    )


class SpawnedTileData(BaseModel):
    """The most recently spawned tile."""
    row: int
    col: int
    value: int


class GameStateData(BaseModel):
    """Represents the complete state of a game instance."""
    game_id: str = Field(..., description="Identifier to use for further requests on this game.")
    board: List[List[Optional[TileData]]] = Field(..., description="The N x N game board; empty cells are null.")
    score: int = Field(..., ge=0, description="Current score of the game.")
    status: GameStatus = Field(..., description="Current progress state of the game (playing, won, lost).")
    move_count: int = Field(..., ge=0, description="Number of accepted moves.")
    last_direction: Optional[Direction] = Field(default=None, description="Direction of the last accepted move.")
    last_spawned_tile: Optional[SpawnedTileData] = Field(default=None, description="The last tile spawned.")
    empty_cells: int = Field(..., ge=0, description="Number of empty cells.")
    highest_tile: int = Field(..., ge=0, description="Largest tile value on the board.")


class MoveRequestData(BaseModel):
    """Data required to make a move."""
    direction: Direction = Field(
        ...,
        description="Direction of the move (up, down, left, right)."
    )


class MoveResponseData(GameStateData):
    """Response after a move, including the new game state and move effectiveness."""
    move_was_effective: bool = Field(
        ...,
        description="True if the move was accepted, False otherwise."
    )
    message: Optional[str] = Field(
        default=None,
        description="An optional message, e.g., if a move was invalid, game ended, or other info."
    )


def _tile_data(tile: Optional[Tile]) -> Optional[TileData]:
    if tile is None:
        return None
    merged_from = [parent.id for parent in tile.merged_from] if tile.merged_from else None
    return TileData(id=tile.id, value=tile.value, row=tile.row, col=tile.col, merged_from=merged_from)


def _state_fields(game_id: str, snapshot: GameSnapshot) -> dict:
    spawned = snapshot.last_spawned_tile
    return dict(
        game_id=game_id,
        board=[[_tile_data(cell) for cell in row] for row in snapshot.board],
        score=snapshot.score,
        status=snapshot.status,
        move_count=snapshot.move_count,
        last_direction=snapshot.last_direction,
        last_spawned_tile=SpawnedTileData(**spawned._asdict()) if spawned else None,
        empty_cells=snapshot.empty_cells_count,
        highest_tile=snapshot.highest_tile,
    )


def _lookup(game_id: str) -> Tuple[GameSession, threading.Lock]:
    try:
        return store.checkout(game_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Game {game_id} not found.")

# --- API Endpoints ---

@app.post("/game/new", response_model=GameStateData, summary="Start a New 2048 Game")
@limiter.limit(RATE_LIMIT)
def start_new_game(request: Request):
    """
    Starts a new 4x4 game with two random tiles.

    Returns the initial game state, including the `game_id` to use for
    further requests, the board, score (the sum of the two tiles) and
    status (playing). When the server already holds its maximum number of
    games, the least recently used game is discarded.
    """
    try:
        session = GameSession()
        game_id = store.add(session)
        logger.info("Created game %s", game_id)
        return GameStateData(**_state_fields(game_id, session.snapshot()))
    except Exception as e:
        logger.error("Unexpected error in /game/new: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail=f"An unexpected error occurred during game creation: {str(e)}")


@app.get("/game/{game_id}", response_model=GameStateData, summary="Get the State of a Game")
@limiter.limit(RATE_LIMIT)
def get_game(request: Request, game_id: str):
    """Returns the current state of the game."""
    session, lock = _lookup(game_id)
    with lock:
        snapshot = session.snapshot()
    return GameStateData(**_state_fields(game_id, snapshot))


@app.post("/game/{game_id}/move", response_model=MoveResponseData, summary="Make a Move in the Game")
@limiter.limit(RATE_LIMIT)
def make_move(request: Request, game_id: str, request_data: MoveRequestData):
    """
    Processes a player's move in the game.

    The game will:
    1. Attempt to process the move (slide tiles, merge).
    2. If the move changed the board, add a new random tile (2 or 4).
    3. Determine the new game status (playing, won, lost).

    Returns the updated game state, whether the move was effective, and an optional message.
    """
    session, lock = _lookup(game_id)
    message_for_client: Optional[str] = None

    try:
        with lock:
            move_was_effective = session.move(request_data.direction)
            snapshot = session.snapshot()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Error processing move: {str(e)}")
    except Exception as e:
        logger.error("Unexpected error in /game/%s/move: %s", game_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail=f"An unexpected server error occurred while processing the move: {str(e)}")

    if snapshot.status == GameStatus.WON:
        message_for_client = "Congratulations! You won!"
    elif snapshot.status == GameStatus.LOST:
        message_for_client = "Game Over. No more valid moves."
    elif not move_was_effective:
        message_for_client = "Move was not effective; board state unchanged."

    return MoveResponseData(
        **_state_fields(game_id, snapshot),
        move_was_effective=move_was_effective,
        message=message_for_client
    )


@app.post("/game/{game_id}/restart", response_model=GameStateData, summary="Restart a Game")
@limiter.limit(RATE_LIMIT)
def restart_game(request: Request, game_id: str):
    """Discards the board of this game and starts over with two random tiles."""
    session, lock = _lookup(game_id)
    with lock:
        session.restart()
        snapshot = session.snapshot()
    logger.info("Restarted game %s", game_id)
    return GameStateData(**_state_fields(game_id, snapshot))


@app.delete("/game/{game_id}", status_code=204, summary="Delete a Game")
@limiter.limit(RATE_LIMIT)
def delete_game(request: Request, game_id: str):
    """Removes the game from the server."""
    try:
        store.remove(game_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Game {game_id} not found.")
    logger.info("Deleted game %s", game_id)

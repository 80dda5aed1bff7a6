import pytest
from fastapi.testclient import TestClient

from py2048.api import SessionStore, app, limiter, store
from py2048.session import GameSession

from tests.helpers import board_from_values, build_board


@pytest.fixture
def client():
    limiter.reset()
    store.clear()
    with TestClient(app) as test_client:
        yield test_client
    store.clear()


def tiles_in(board):
    return [cell for row in board for cell in row if cell is not None]


def test_new_game(client):
    response = client.post("/game/new")
    assert response.status_code == 200
    data = response.json()
    tiles = tiles_in(data["board"])
    assert len(tiles) == 2
    assert data["score"] == sum(tile["value"] for tile in tiles)
    assert data["status"] == "playing"
    assert data["move_count"] == 0
    assert data["empty_cells"] == 14
    assert data["last_direction"] is None
    assert data["last_spawned_tile"] is None


def test_get_game(client):
    game_id = client.post("/game/new").json()["game_id"]
    response = client.get(f"/game/{game_id}")
    assert response.status_code == 200
    assert response.json()["game_id"] == game_id


def test_unknown_game_returns_404(client):
    assert client.get("/game/missing").status_code == 404
    assert client.post("/game/missing/move", json={"direction": "left"}).status_code == 404
    assert client.post("/game/missing/restart").status_code == 404


def test_invalid_direction_returns_422(client):
    game_id = client.post("/game/new").json()["game_id"]
    response = client.post(f"/game/{game_id}/move", json={"direction": "sideways"})
    assert response.status_code == 422


def test_winning_move(client):
    game_id = store.add(GameSession(board=build_board({(0, 0): 1024, (0, 1): 1024})))
    response = client.post(f"/game/{game_id}/move", json={"direction": "left"})
    assert response.status_code == 200
    data = response.json()
    assert data["move_was_effective"] is True
    assert data["status"] == "won"
    assert data["message"] == "Congratulations! You won!"
    assert data["move_count"] == 1
    assert data["last_direction"] == "left"
    assert data["last_spawned_tile"] is not None
    winner = data["board"][0][0]
    assert winner["value"] == 2048
    assert len(winner["merged_from"]) == 2


def test_ineffective_move(client):
    game_id = store.add(GameSession(board=build_board({(0, 0): 2})))
    response = client.post(f"/game/{game_id}/move", json={"direction": "up"})
    data = response.json()
    assert data["move_was_effective"] is False
    assert data["message"] == "Move was not effective; board state unchanged."
    assert data["move_count"] == 0


def test_lost_game_message(client, checkerboard):
    game_id = store.add(GameSession(board=checkerboard))
    data = client.post(f"/game/{game_id}/move", json={"direction": "down"}).json()
    assert data["move_was_effective"] is False
    assert data["status"] == "lost"
    assert data["message"] == "Game Over. No more valid moves."


def test_restart(client):
    game_id = store.add(GameSession(board=board_from_values([
        [2, 2, 0, 0],
        [0, 0, 0, 0],
        [0, 0, 0, 0],
        [0, 0, 0, 0],
    ])))
    client.post(f"/game/{game_id}/move", json={"direction": "right"})
    data = client.post(f"/game/{game_id}/restart").json()
    assert data["move_count"] == 0
    assert data["status"] == "playing"
    assert len(tiles_in(data["board"])) == 2
    assert data["last_spawned_tile"] is None


def test_delete_game(client):
    game_id = client.post("/game/new").json()["game_id"]
    assert client.delete(f"/game/{game_id}").status_code == 204
    assert client.get(f"/game/{game_id}").status_code == 404
    assert client.delete(f"/game/{game_id}").status_code == 404


def test_store_drops_least_recently_used_game():
    games = SessionStore(max_games=3)
    first, second, third = games.create(), games.create(), games.create()
    games.get(first)
    fourth = games.create()
    assert len(games) == 3
    with pytest.raises(KeyError):
        games.get(second)
    for game_id in (first, third, fourth):
        assert games.get(game_id) is not None


def test_store_stays_bounded():
    games = SessionStore(max_games=5)
    for _ in range(50):
        games.create()
    assert len(games) == 5


def test_store_checkout_returns_session_with_its_lock():
    games = SessionStore()
    session = GameSession()
    game_id = games.add(session)
    checked_out, lock = games.checkout(game_id)
    assert checked_out is session
    assert games.checkout(game_id)[1] is lock
    games.remove(game_id)
    with pytest.raises(KeyError):
        games.checkout(game_id)


def test_evicted_game_returns_404(client, monkeypatch):
    monkeypatch.setattr(store, "max_games", 1)
    evicted = client.post("/game/new").json()["game_id"]
    client.post("/game/new")
    assert client.post(f"/game/{evicted}/move", json={"direction": "left"}).status_code == 404

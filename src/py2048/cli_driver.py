# cli_driver.py
# This file is intended to be run to play the 2048 game on the CLI

import logging
from typing import Optional

from py2048.config import LOG_LEVEL
from py2048.core import Direction, GameStatus
from py2048.session import GameSession, GameSnapshot

KEY_TO_DIRECTION = {
    'W': Direction.UP,
    'A': Direction.LEFT,
    'S': Direction.DOWN,
    'D': Direction.RIGHT,
    'UP': Direction.UP,
    'LEFT': Direction.LEFT,
    'DOWN': Direction.DOWN,
    'RIGHT': Direction.RIGHT,
}

QUIT_KEY = 'Q'


def parse_move_input(raw: str) -> Optional[Direction]:
    """Translates a line of keyboard input into a direction; None for anything else."""
    return KEY_TO_DIRECTION.get(raw.strip().upper())


def main():
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    # 1. Initialize game
    session = GameSession()
    display_board_state(session.snapshot())

    # 2. Game Loop
    while session.status == GameStatus.PLAYING:
        move_input = input("Enter move (W/A/S/D for Up/Left/Down/Right, Q to quit): ")

        if move_input.strip().upper() == QUIT_KEY:
            print("Quitting game.")
            break

        chosen_direction = parse_move_input(move_input)
        if chosen_direction is None:
            print("Invalid input. Use W, A, S, D.")
            continue

        # 3. Play the move; the session spawns the next tile and updates its status
        if not session.move(chosen_direction):
            print("Move did not change the board. Try a different direction.")
            continue

        display_board_state(session.snapshot())

    # 4. Game Ended
    snapshot = session.snapshot()
    print("\n--- Final Board State ---")
    display_board_state(snapshot)
    if snapshot.status == GameStatus.WON:
        print("Congratulations! You reached the 2048 tile!")
    elif snapshot.status == GameStatus.LOST:
        print("No more moves possible. Better luck next time!")


# --- Display Function ---
def display_board_state(snapshot: GameSnapshot):
    """Prints the board, score, and game status to the console."""
    print(f"\nScore: {snapshot.score}  Moves: {snapshot.move_count}")
    status_message = {
        GameStatus.PLAYING: f"Status: {snapshot.status.name}",
        GameStatus.WON: "YOU WON!",
        GameStatus.LOST: "GAME OVER!"
    }
    print(status_message[snapshot.status])

    for row in snapshot.board:
        print("\t".join("." if cell is None else str(cell.value) for cell in row))
    print("-" * (len(snapshot.board) * 6))


if __name__ == "__main__":
    main()

# config.py
# Game constants and adapter settings.

import os
from typing import Dict, Tuple

# --- Game constants (not runtime-configurable) ---

BOARD_SIZE = 4
INITIAL_TILES = 2
WIN_VALUE = 2048

TILE_VALUES: Tuple[int, ...] = tuple(2 ** exponent for exponent in range(1, 17))

# Spawn distribution for new tiles: 90% chance of a 2, 10% chance of a 4.
TILE_PROBABILITIES: Dict[int, float] = {value: 0.0 for value in TILE_VALUES}
TILE_PROBABILITIES[2] = 0.9
TILE_PROBABILITIES[4] = 0.1

# --- Adapter settings ---

RATE_LIMIT = os.environ.get("PY2048_RATE_LIMIT", "100/minute")
LOG_LEVEL = os.environ.get("PY2048_LOG_LEVEL", "WARNING").upper()
# Games kept in memory by the HTTP adapter; the least recently used is dropped beyond this.
MAX_GAMES = int(os.environ.get("PY2048_MAX_GAMES", "1000"))

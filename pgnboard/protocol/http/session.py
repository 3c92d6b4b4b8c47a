from __future__ import annotations

import logging
import threading
import uuid
from collections import OrderedDict
from typing import Optional

from ...engine.game import Game


logger = logging.getLogger(__name__)


class InMemorySessionStore:
    """Thread-safe in-memory game session store.

    Responsibilities:
    - Create new sessions with unique `game_id`s
    - Retrieve existing sessions by `game_id`
    - Delete sessions
    - Evict the least recently used session once `max_sessions` is reached
    """

    def __init__(self, max_sessions: Optional[int] = None) -> None:
        if max_sessions is not None and max_sessions < 1:
            raise ValueError("max_sessions must be >= 1")
        self._lock = threading.RLock()
        self._games: "OrderedDict[str, Game]" = OrderedDict()
        self._max_sessions = max_sessions

    def create(self, game: Optional[Game] = None) -> str:
        """Create a new game session and return its `game_id`."""
        gid = str(uuid.uuid4())
        if game is None:
            game = Game.new()
        with self._lock:
            if self._max_sessions is not None:
                while len(self._games) >= self._max_sessions:
                    evicted, _ = self._games.popitem(last=False)
                    logger.info("session evicted", extra={"game_id": evicted})
            self._games[gid] = game
        return gid

    def get(self, game_id: str) -> Optional[Game]:
        with self._lock:
            game = self._games.get(game_id)
            if game is not None:
                self._games.move_to_end(game_id)
            return game

    def delete(self, game_id: str) -> bool:
        """Remove a session; returns False when `game_id` is unknown."""
        with self._lock:
            return self._games.pop(game_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._games)

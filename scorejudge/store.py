# scorejudge/store.py
from __future__ import annotations

from threading import Lock
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from .state import GameState, game_from_dict


@runtime_checkable
class GameStore(Protocol):
    """
    Holds the canonical copy of each game by id.

    Implementations hand out independent copies: mutating the GameState
    returned by `get` changes nothing until it is passed back to `set`.
    """

    def get(self, game_id: str) -> Optional[GameState]:
        raise NotImplementedError

    def set(self, game_state: GameState) -> None:
        raise NotImplementedError

    def list_ids(self) -> List[str]:
        raise NotImplementedError

    def delete(self, game_id: str) -> None:
        raise NotImplementedError


class InMemoryGameStore(GameStore):
    """Process-local store keeping one JSON-compatible snapshot per game."""

    def __init__(self) -> None:
        self._games: Dict[str, Dict[str, Any]] = {}
        self._lock = Lock()

    def get(self, game_id: str) -> Optional[GameState]:
        with self._lock:
            snapshot = self._games.get(game_id)
        if snapshot is None:
            return None
        return game_from_dict(snapshot)

    def set(self, game_state: GameState) -> None:
        snapshot = game_state.to_dict()
        with self._lock:
            self._games[game_state.id] = snapshot

    def list_ids(self) -> List[str]:
        with self._lock:
            return list(self._games)

    def delete(self, game_id: str) -> None:
        with self._lock:
            self._games.pop(game_id, None)

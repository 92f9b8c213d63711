# scorejudge/service.py
from __future__ import annotations

import logging
from threading import Lock
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from .actions import Action, SubmitBids, SubmitTricks, UndoRound, parse_action
from .config import EngineConfig
from .engine import GameEngine
from .errors import GameNotFound, InvalidConfiguration, ScoreJudgeError
from .outbox import Outbox
from .predictions import PredictionHints, calculate_predictions
from .state import GameState, RoundPhase
from .store import GameStore

logger = logging.getLogger(__name__)

# Called with (game_id, snapshot) after every commit.
Notifier = Callable[[str, Dict[str, Any]], None]

# Called with keyword arguments game_id, action, error and inputs when an
# action is refused. ActionAuditLog.log_rejection fits.
RejectionListener = Callable[..., None]


class GameService:
    """
    The calling layer around GameEngine.

    - Serializes mutations per game id with one lock per game.
    - Loads from and saves to the injected store.
    - After each commit, publishes an outbox event and notifies observers.
      Neither step can undo the commit.
    - Reports refused actions to rejection listeners, then re-raises.
    """

    def __init__(
        self,
        store: GameStore,
        *,
        config: Optional[EngineConfig] = None,
        outbox: Optional[Outbox] = None,
        notifiers: Optional[List[Notifier]] = None,
    ) -> None:
        self.store = store
        self.config = config or EngineConfig()
        self.outbox = outbox
        self.notifiers: List[Notifier] = list(notifiers or [])
        self.rejection_listeners: List[RejectionListener] = []
        self._locks: Dict[str, Lock] = {}
        self._locks_guard = Lock()

    def subscribe(self, notifier: Notifier) -> None:
        self.notifiers.append(notifier)

    def on_rejection(self, listener: RejectionListener) -> None:
        self.rejection_listeners.append(listener)

    def _lock_for(self, game_id: str) -> Lock:
        with self._locks_guard:
            lock = self._locks.get(game_id)
            if lock is None:
                lock = Lock()
                self._locks[game_id] = lock
            return lock

    def _load(self, game_id: str) -> GameState:
        game = self.store.get(game_id)
        if game is None:
            raise GameNotFound(game_id)
        return game

    def _engine(self, game: GameState) -> GameEngine:
        return GameEngine(game, max_players=self.config.max_players)

    def _commit(
        self,
        game: GameState,
        action_name: str,
        round_index: Optional[int] = None,
    ) -> GameState:
        """
        Store the game, then publish and notify.

        `round_index` is the round the action touched; it defaults to the
        current round.
        """
        self.store.set(game)
        snapshot = game.to_dict()
        if round_index is None:
            round_index = game.current_round_index or None
        if self.outbox is not None:
            self.outbox.publish(
                game_id=game.id,
                action=action_name,
                snapshot=snapshot,
                round_index=round_index,
            )
        for notify in self.notifiers:
            try:
                notify(game.id, snapshot)
            except Exception as exc:  # noqa: BLE001
                logger.error(
                    "Notifier failed after %s on %s: %s", action_name, game.id, exc
                )
        return game

    # -------------------------------------------------------------------------
    # Games and roster
    # -------------------------------------------------------------------------

    def create_game(
        self, game_id: str, name: str = "", deck_size: Optional[int] = None
    ) -> GameState:
        with self._lock_for(game_id):
            if self.store.get(game_id) is not None:
                raise InvalidConfiguration(f"Game {game_id!r} already exists")
            game = GameState(
                id=game_id,
                name=name,
                deck_size=deck_size or self.config.deck_size,
            )
            return self._commit(game, "CREATE")

    def get_game(self, game_id: str) -> GameState:
        return self._load(game_id)

    def delete_game(self, game_id: str) -> None:
        """Remove a game from the store and forget its lock."""
        with self._lock_for(game_id):
            self.store.delete(game_id)
        with self._locks_guard:
            self._locks.pop(game_id, None)

    def join(
        self, game_id: str, email: str, name: str, image: Optional[str] = None
    ) -> GameState:
        with self._lock_for(game_id):
            game = self._load(game_id)
            if game.find_player(email) is not None:
                return game
            self._engine(game).add_player(email, name, image)
            return self._commit(game, "JOIN")

    def rename(self, game_id: str, email: str, name: str) -> GameState:
        with self._lock_for(game_id):
            game = self._load(game_id)
            self._engine(game).rename_player(email, name)
            return self._commit(game, "RENAME")

    def reorder(self, game_id: str, emails: Sequence[str]) -> GameState:
        with self._lock_for(game_id):
            game = self._load(game_id)
            self._engine(game).reorder_players(emails)
            return self._commit(game, "REORDER")

    # -------------------------------------------------------------------------
    # Round actions
    # -------------------------------------------------------------------------

    def handle(
        self, game_id: str, request: Union[Action, Mapping[str, Any]]
    ) -> GameState:
        """Apply an action (or a raw request body) to a game and commit it."""
        if isinstance(request, Mapping):
            try:
                action = parse_action(request)
            except ScoreJudgeError as exc:
                self._reject(
                    game_id,
                    str(request.get("action", "")).upper(),
                    exc,
                    request.get("inputs"),
                )
                raise
        else:
            action = request

        with self._lock_for(game_id):
            game = self._load(game_id)
            # TRICKS advances the game; the event belongs to the scored round.
            touched = game.current_round_index or None
            try:
                self._engine(game).apply(action)
            except ScoreJudgeError as exc:
                self._reject(game_id, action.name, exc, _action_inputs(action))
                raise
            return self._commit(game, action.name, round_index=touched)

    def _reject(
        self,
        game_id: str,
        action_name: str,
        error: ScoreJudgeError,
        inputs: Any,
    ) -> None:
        logger.info("Rejected %s on %s: %s", action_name, game_id, error)
        for listener in self.rejection_listeners:
            try:
                listener(
                    game_id=game_id,
                    action=action_name,
                    error=str(error),
                    inputs=inputs,
                )
            except Exception as exc:  # noqa: BLE001
                logger.error(
                    "Rejection listener failed for %s on %s: %s",
                    action_name,
                    game_id,
                    exc,
                )

    def predictions(self, game_id: str, email: str) -> PredictionHints:
        """Hints for `email` against the round currently being played."""
        game = self._load(game_id)
        round_state = game.current_round
        if round_state is None:
            return PredictionHints(show=False, position=1)
        engine = self._engine(game)
        is_final = (
            round_state.index >= engine.final_round
            and round_state.state != RoundPhase.COMPLETED
        )
        return calculate_predictions(
            email,
            game.players,
            round_state.cards,
            game.num_players,
            is_final,
        )


def _action_inputs(action: Action) -> Optional[Dict[str, Any]]:
    if isinstance(action, SubmitBids):
        return dict(action.bids)
    if isinstance(action, SubmitTricks):
        return dict(action.outcomes)
    if isinstance(action, UndoRound):
        return {"targetRoundIndex": action.target_index}
    return None

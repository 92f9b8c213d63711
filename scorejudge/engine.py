# scorejudge/engine.py
from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Sequence

from .actions import Action, StartRound, SubmitBids, SubmitTricks, UndoRound
from .errors import (
    GameOver,
    InvalidAction,
    InvalidConfiguration,
    InvalidRoundState,
    InvalidUndoTarget,
    PlayerNotFound,
    RosterLocked,
    RoundNotFound,
)
from .plan import MIN_PLAYERS, dealer_index, final_round_number, generate_round_plan
from .rules import score_round, validate_bids, validate_outcomes
from .state import GameState, PlayerState, RoundPhase, RoundState

logger = logging.getLogger(__name__)

DEFAULT_MAX_PLAYERS = 12


class GameEngine:
    """
    Applies scoring actions to one game.

    This module is *pure* game logic: no transport, no persistence, no
    locking. Every action validates completely before touching the state,
    so a raised error leaves the game exactly as it was. Callers that share
    a game between threads must serialize calls themselves.
    """

    def __init__(
        self,
        game_state: GameState,
        max_players: int = DEFAULT_MAX_PLAYERS,
    ) -> None:
        self.game_state = game_state
        self.max_players = max_players

    @property
    def _label(self) -> str:
        return f" for {self.game_state.id}" if self.game_state.id else ""

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def apply(self, action: Action) -> GameState:
        """Dispatch one action and return the updated GameState."""
        if isinstance(action, StartRound):
            return self.start()
        if isinstance(action, SubmitBids):
            return self.submit_bids(action.bids)
        if isinstance(action, SubmitTricks):
            return self.submit_tricks(action.outcomes)
        if isinstance(action, UndoRound):
            return self.undo_round(action.target_index)
        raise InvalidAction(f"Unsupported action {action!r}")

    @property
    def final_round(self) -> int:
        return final_round_number(
            self.game_state.num_players, self.game_state.deck_size
        )

    @property
    def is_finished(self) -> bool:
        game = self.game_state
        if not game.rounds:
            return False
        final = self.final_round
        return any(
            r.index >= final and r.state == RoundPhase.COMPLETED
            for r in game.rounds
        )

    def dealer(self, round_index: Optional[int] = None) -> PlayerState:
        game = self.game_state
        if round_index is None:
            round_index = game.current_round_index
        return game.players[dealer_index(round_index, game.num_players)]

    # -------------------------------------------------------------------------
    # Round lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> GameState:
        """Generate the round plan if needed and open round 1."""
        game = self.game_state
        if game.num_players < MIN_PLAYERS:
            raise InvalidConfiguration(
                f"Cannot start game. Minimum {MIN_PLAYERS} players required. "
                f"Currently {game.num_players} player(s).",
                num_players=game.num_players,
                deck_size=game.deck_size,
            )

        final = self.final_round
        if self.is_finished or game.current_round_index > final:
            raise GameOver(final)

        if not game.rounds:
            plan, final = generate_round_plan(game.num_players, game.deck_size)
            game.rounds = [
                RoundState(index=entry.index, cards=entry.cards, trump=entry.trump)
                for entry in plan
            ]
            game.current_round_index = 1
            logger.info(
                "Generated %d-round plan (final round %d)%s",
                len(plan),
                final,
                self._label,
            )
        return game

    def submit_bids(self, raw_bids: Mapping[str, Any]) -> GameState:
        """Validate every bid and the dealer hook, then open play."""
        round_state = self._active_round(RoundPhase.BIDDING)
        bids = validate_bids(round_state, self.game_state.players, raw_bids)

        round_state.bids = bids
        round_state.state = RoundPhase.PLAYING
        logger.info(
            "Committed bids for round %d (total %d of %d)%s",
            round_state.index,
            sum(bids.values()),
            round_state.cards,
            self._label,
        )
        return self.game_state

    def submit_tricks(self, raw_outcomes: Mapping[str, Any]) -> GameState:
        """Validate outcomes, score the round and advance the game."""
        game = self.game_state
        round_state = self._active_round(RoundPhase.PLAYING)
        outcomes = validate_outcomes(round_state, game.players, raw_outcomes)

        round_state.tricks = outcomes
        round_state.state = RoundPhase.COMPLETED
        deltas = score_round(round_state, game.players)
        for p in game.players:
            p.score += deltas[p.email]

        final = self.final_round
        if round_state.index >= final:
            game.current_round_index = final
            logger.info(
                "Finished final round %d%s", round_state.index, self._label
            )
        else:
            game.current_round_index = min(game.current_round_index + 1, final)
            logger.info(
                "Finished round %d/%d%s", round_state.index, final, self._label
            )
        return game

    def undo_round(self, target_index: int) -> GameState:
        """
        Reset the active round to BIDDING.

        Points already awarded for it are taken back (never below zero).
        Only the current round can be undone; earlier rounds stay scored.
        """
        game = self.game_state
        if target_index < 1 or target_index != game.current_round_index:
            raise InvalidUndoTarget(
                target_index=target_index,
                current_index=game.current_round_index,
            )
        round_state = game.find_round(target_index)
        if round_state is None:
            raise RoundNotFound(target_index)

        if round_state.state == RoundPhase.COMPLETED:
            deltas = score_round(round_state, game.players)
            for p in game.players:
                reverted = p.score - deltas[p.email]
                if reverted < 0:
                    logger.warning(
                        "Undo of round %d would leave %s at %d; clamping to 0%s",
                        target_index,
                        p.email,
                        reverted,
                        self._label,
                    )
                p.score = max(0, reverted)

        round_state.reset()
        logger.info("Reset round %d to bidding%s", target_index, self._label)
        return game

    def _active_round(self, expected: RoundPhase) -> RoundState:
        game = self.game_state
        round_state = game.find_round(game.current_round_index)
        if round_state is None:
            raise RoundNotFound(game.current_round_index)
        if round_state.state != expected:
            raise InvalidRoundState(
                round_index=round_state.index,
                state=round_state.state.value,
                expected=expected.value,
            )
        return round_state

    # -------------------------------------------------------------------------
    # Roster
    # -------------------------------------------------------------------------

    def add_player(
        self, email: str, name: str, image: Optional[str] = None
    ) -> GameState:
        """Seat a new player at the end of the table. Joining twice is a no-op."""
        game = self.game_state
        if game.find_player(email) is not None:
            return game
        if game.rounds:
            raise RosterLocked("Players cannot join after the game has started")
        if game.num_players >= self.max_players:
            raise InvalidConfiguration(
                "Game is full",
                num_players=game.num_players,
                deck_size=game.deck_size,
            )
        game.players.append(PlayerState(email=email, name=name, image=image))
        logger.info("%s joined%s", email, self._label)
        return game

    def rename_player(self, email: str, name: str) -> GameState:
        game = self.game_state
        player = game.find_player(email)
        if player is None:
            raise PlayerNotFound(email)
        if game.rounds:
            raise RosterLocked(
                "Name cannot be changed after the game has started"
            )
        player.name = name
        return game

    def reorder_players(self, emails: Sequence[str]) -> GameState:
        """
        Change the seating order (and so the dealer rotation).

        Refused while the current round has committed bids, since the
        dealer for that round has already bid last.
        """
        game = self.game_state
        current = game.current_round
        if current is not None and current.state != RoundPhase.BIDDING:
            raise RosterLocked(
                f"Seating order is locked while round {current.index} is "
                f"{current.state.value}"
            )

        by_email = {p.email: p for p in game.players}
        for email in emails:
            if email not in by_email:
                raise PlayerNotFound(email)
        if len(emails) != len(by_email) or len(set(emails)) != len(emails):
            raise InvalidConfiguration(
                "New seating order must list every player exactly once",
                num_players=game.num_players,
                deck_size=game.deck_size,
            )

        reordered: List[PlayerState] = [by_email[email] for email in emails]
        game.players = reordered
        return game

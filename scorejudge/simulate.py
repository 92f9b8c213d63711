# scorejudge/simulate.py
from __future__ import annotations

import logging
import random
from typing import Any, Dict, List, Optional

from .actions import StartRound, SubmitBids, SubmitTricks
from .agents.base import TableAgent
from .plan import bidding_order, dealer_index
from .rules import forbidden_dealer_bid
from .service import GameService
from .state import GameState, PlayerState, RoundState

logger = logging.getLogger(__name__)


class TableSimulator:
    """
    Plays whole games through a GameService using pluggable agents.

    Cards are not modelled: each round the tricks are handed out at random,
    then every agent reports its outcome as a scorekeeper would enter it.
    """

    def __init__(
        self,
        service: GameService,
        agents: List[TableAgent],
        rng_seed: Optional[int] = None,
    ) -> None:
        if len(agents) < 3:
            raise ValueError("A table needs at least 3 agents")
        self.service = service
        self.agents = agents
        self.rng = random.Random(rng_seed)

    def play_game(
        self,
        game_id: str,
        player_names: Optional[List[str]] = None,
        deck_size: Optional[int] = None,
    ) -> GameState:
        """Create, seat, and play a full game. Returns the final GameState."""
        if player_names is None:
            player_names = [f"Player {i}" for i in range(len(self.agents))]
        if len(player_names) != len(self.agents):
            raise ValueError("player_names must match number of agents")

        self.service.create_game(game_id, name=game_id, deck_size=deck_size)
        for i, name in enumerate(player_names):
            self.service.join(game_id, f"p{i}@{game_id}.local", name)

        game = self.service.handle(game_id, StartRound())
        agent_by_email = {
            p.email: agent for p, agent in zip(game.players, self.agents)
        }

        while True:
            round_state = game.current_round
            if round_state is None:
                break
            bids = self._collect_bids(game, round_state, agent_by_email)
            game = self.service.handle(game_id, SubmitBids(bids=bids))

            round_state = game.current_round
            outcomes = self._collect_outcomes(game, round_state, agent_by_email)
            finished_index = round_state.index
            game = self.service.handle(game_id, SubmitTricks(outcomes=outcomes))
            if game.current_round_index == finished_index:
                break

        logger.info("Finished game %s", game_id)
        return game

    # -------------------------------------------------------------------------
    # Round phases
    # -------------------------------------------------------------------------

    def _collect_bids(
        self,
        game: GameState,
        round_state: RoundState,
        agent_by_email: Dict[str, TableAgent],
    ) -> Dict[str, int]:
        order = bidding_order(game.players, round_state.index)
        bids: Dict[str, int] = {}
        for seat, player in enumerate(order):
            is_dealer = seat == len(order) - 1
            obs = self._observation(game, round_state, player)
            obs.update(
                {
                    "phase": "bidding",
                    "bids_so_far": dict(bids),
                    "bidding_order": [p.email for p in order],
                    "is_dealer": is_dealer,
                    "forbidden_bid": (
                        forbidden_dealer_bid(list(bids.values()), round_state.cards)
                        if is_dealer
                        else None
                    ),
                }
            )
            bids[player.email] = agent_by_email[player.email].choose_bid(obs)
        return bids

    def _collect_outcomes(
        self,
        game: GameState,
        round_state: RoundState,
        agent_by_email: Dict[str, TableAgent],
    ) -> Dict[str, Any]:
        taken = {p.email: 0 for p in game.players}
        for _ in range(round_state.cards):
            winner = self.rng.choice(game.players)
            taken[winner.email] += 1

        outcomes: Dict[str, Any] = {}
        for player in game.players:
            obs = self._observation(game, round_state, player)
            obs.update(
                {
                    "phase": "scoring",
                    "bid": round_state.bids[player.email],
                    "tricks_taken": taken[player.email],
                }
            )
            outcomes[player.email] = agent_by_email[player.email].report_outcome(obs)
        return outcomes

    def _observation(
        self, game: GameState, round_state: RoundState, player: PlayerState
    ) -> Dict[str, Any]:
        dealer = game.players[dealer_index(round_state.index, game.num_players)]
        return {
            "game": {
                "game_id": game.id,
                "round_index": round_state.index,
                "cards": round_state.cards,
                "trump": round_state.trump.value,
                "num_players": game.num_players,
                "dealer_email": dealer.email,
            },
            "player": {
                "email": player.email,
                "name": player.name,
                "score": player.score,
            },
            "scores": {p.email: p.score for p in game.players},
            "seating_order": [p.email for p in game.players],
        }

# scorejudge/agents/random_agent.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict
import random

from ..rules import MISSED_SENTINEL
from .base import TableAgent


@dataclass
class RandomTableAgent(TableAgent):
    """
    A simple baseline player:

    - choose_bid: roughly a fair share of the tricks, with random jitter;
      as dealer, steps off the forbidden bid.
    - report_outcome: the exact count when the bid was made; when missed,
      sometimes the exact count and sometimes just the miss marker.
    """

    rng: random.Random
    exact_miss_rate: float = 0.5

    def choose_bid(self, observation: Dict[str, Any]) -> int:
        cards = observation["game"]["cards"]
        num_players = observation["game"]["num_players"]

        expected = round(cards / num_players)
        low = max(0, expected - 1)
        high = min(cards, expected + 1)
        bid = self.rng.randint(low, high)

        forbidden = observation.get("forbidden_bid")
        if forbidden is not None and bid == forbidden:
            options = [b for b in range(cards + 1) if b != forbidden]
            bid = self.rng.choice(options)
        return bid

    def report_outcome(self, observation: Dict[str, Any]) -> Any:
        taken = observation["tricks_taken"]
        if taken == observation["bid"]:
            return taken
        if self.rng.random() < self.exact_miss_rate:
            return taken
        return MISSED_SENTINEL

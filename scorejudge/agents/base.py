# scorejudge/agents/base.py
from __future__ import annotations

from typing import Any, Dict, Protocol, runtime_checkable


@runtime_checkable
class TableAgent(Protocol):
    """
    Interface for a simulated player at a scored table.

    `observation` is a JSON-like dict containing:
      - game-level info (round index, cards, trump, dealer, seating)
      - player info (email, name, score)
      - phase-specific info (bids so far, forbidden dealer bid, tricks taken)
    """

    def choose_bid(self, observation: Dict[str, Any]) -> int:
        """Return the bid (0..cards). The dealer must avoid the forbidden bid."""

        raise NotImplementedError

    def report_outcome(self, observation: Dict[str, Any]) -> Any:
        """
        Return what gets entered for this player once the round is played.

        The observation includes "bid" and "tricks_taken". Return the exact
        trick count, or -1 to record only that the bid was missed.
        """
        raise NotImplementedError

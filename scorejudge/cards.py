# scorejudge/cards.py
from __future__ import annotations

from typing import Tuple
import enum


class Trump(enum.Enum):
    """Trump for a round. NO_TRUMP means every suit plays at face value."""

    SPADES = "S"
    DIAMONDS = "D"
    CLUBS = "C"
    HEARTS = "H"
    NO_TRUMP = "NT"

    def __str__(self) -> str:
        if self is Trump.NO_TRUMP:
            return "No Trump"
        return self.name.title()


# Round 1 is Spades; the cycle wraps every five rounds regardless of cards.
TRUMP_CYCLE: Tuple[Trump, ...] = (
    Trump.SPADES,
    Trump.DIAMONDS,
    Trump.CLUBS,
    Trump.HEARTS,
    Trump.NO_TRUMP,
)

STANDARD_DECK_SIZE = 52
DEBUG_DECK_SIZE = 6


def trump_for_round(round_index: int) -> Trump:
    """Return the trump for a 1-based round index."""
    if round_index < 1:
        raise ValueError("round_index is 1-based")
    return TRUMP_CYCLE[(round_index - 1) % len(TRUMP_CYCLE)]


def trump_to_symbol(trump: Trump) -> str:
    return trump.value


def symbol_to_trump(symbol: str) -> Trump:
    """Convert a stored symbol ("S", "NT", ...) back into a Trump."""
    return Trump(symbol.strip().upper())

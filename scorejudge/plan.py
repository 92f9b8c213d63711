# scorejudge/plan.py
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple, TypeVar

from .cards import Trump, trump_for_round
from .errors import InvalidConfiguration

MIN_PLAYERS = 3

T = TypeVar("T")


@dataclass(frozen=True)
class RoundPlanEntry:
    index: int  # 1-based
    cards: int
    trump: Trump


def max_cards_per_player(num_players: int, deck_size: int) -> int:
    """Largest hand every player can be dealt from one deck."""
    if num_players < MIN_PLAYERS:
        raise InvalidConfiguration(
            f"At least {MIN_PLAYERS} players are required; got {num_players}",
            num_players=num_players,
            deck_size=deck_size,
        )
    if deck_size < 1:
        raise InvalidConfiguration(
            f"Deck size must be positive; got {deck_size}",
            num_players=num_players,
            deck_size=deck_size,
        )
    max_cards = deck_size // num_players
    if max_cards < 1:
        raise InvalidConfiguration(
            f"A deck of {deck_size} cannot deal {num_players} players one "
            "card each",
            num_players=num_players,
            deck_size=deck_size,
        )
    return max_cards


def final_round_number(num_players: int, deck_size: int) -> int:
    """The round whose completion ends the game."""
    return 2 * max_cards_per_player(num_players, deck_size) - 1


def generate_round_plan(
    num_players: int, deck_size: int
) -> Tuple[List[RoundPlanEntry], int]:
    """
    Build the round plan for a game.

    Cards count down from the maximum hand to 1, then back up to the
    maximum. Trump follows the fixed cycle S, D, C, H, NT from round 1.

    Returns (entries, final_round_number).
    """
    max_cards = max_cards_per_player(num_players, deck_size)
    sequence = list(range(max_cards, 0, -1)) + list(range(1, max_cards + 1))

    entries = [
        RoundPlanEntry(index=i, cards=cards, trump=trump_for_round(i))
        for i, cards in enumerate(sequence, start=1)
    ]
    return entries, 2 * max_cards - 1


def dealer_index(round_index: int, num_players: int) -> int:
    """0-based seat of the dealer for a 1-based round index."""
    return (round_index - 1) % num_players


def bidding_order(players: Sequence[T], round_index: int) -> List[T]:
    """Every non-dealer in seating order, then the dealer."""
    d = dealer_index(round_index, len(players))
    return list(players[:d]) + list(players[d + 1:]) + [players[d]]

# scorejudge/rules.py
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

from .errors import (
    DealerConstraintViolation,
    InvalidBid,
    InvalidTrickSubmission,
    MissingInput,
    PlayerNotFound,
)
from .plan import bidding_order, dealer_index
from .state import PlayerState, RoundState, TrickOutcome

# Legacy encoding for "missed, exact count not recorded".
MISSED_SENTINEL = -1
MISSED_WORDS = frozenset({"missed", "miss", "x"})


def _is_blank(raw: Any) -> bool:
    return raw is None or (isinstance(raw, str) and not raw.strip())


def _parse_int(raw: Any) -> Optional[int]:
    """Integer value of a raw input, or None if it is not a whole number."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if raw.is_integer() else None
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError:
            return None
    return None


def _check_known_players(
    inputs: Mapping[str, Any], players: Sequence[PlayerState]
) -> None:
    emails = {p.email for p in players}
    for email in inputs:
        if email not in emails:
            raise PlayerNotFound(email)


# --------------------------------------------------------------------------- #
# Bidding                                                                     #
# --------------------------------------------------------------------------- #


def parse_bid(raw: Any, player: PlayerState, cards: int) -> int:
    if _is_blank(raw):
        raise MissingInput(player_name=player.name)
    bid = _parse_int(raw)
    if bid is None:
        raise InvalidBid(
            player_name=player.name, reason=InvalidBid.NON_NUMERIC, value=raw
        )
    if bid < 0 or bid > cards:
        raise InvalidBid(
            player_name=player.name,
            reason=InvalidBid.OUT_OF_RANGE,
            value=bid,
            cards=cards,
        )
    return bid


def forbidden_dealer_bid(other_bids: Sequence[int], cards: int) -> Optional[int]:
    """
    The one bid the dealer may not make, given everyone else's bids.

    Returns None when that bid would be outside [0, cards], i.e. the dealer
    is unconstrained this round.
    """
    forbidden = cards - sum(other_bids)
    if 0 <= forbidden <= cards:
        return forbidden
    return None


def validate_bids(
    round_state: RoundState,
    players: Sequence[PlayerState],
    raw_bids: Mapping[str, Any],
) -> Dict[str, int]:
    """
    Parse and check a full set of bids for a round.

    Players are checked in bidding order (dealer last), so the first
    offending bidder in that order is the one reported. Returns the
    validated email -> bid mapping; commits nothing.
    """
    _check_known_players(raw_bids, players)

    validated: Dict[str, int] = {}
    for player in bidding_order(list(players), round_state.index):
        validated[player.email] = parse_bid(
            raw_bids.get(player.email), player, round_state.cards
        )

    total = sum(validated.values())
    if total == round_state.cards:
        dealer = players[dealer_index(round_state.index, len(players))]
        raise DealerConstraintViolation(
            dealer_name=dealer.name, total=total, cards=round_state.cards
        )

    # Keep seating order in the committed mapping.
    return {p.email: validated[p.email] for p in players}


# --------------------------------------------------------------------------- #
# Trick outcomes                                                              #
# --------------------------------------------------------------------------- #


def parse_outcome(raw: Any, player: PlayerState, bid: int) -> TrickOutcome:
    """
    Normalize one raw trick input.

    Accepts a TrickOutcome, the -1 sentinel (or "missed"), or an exact
    non-negative trick count which is a made bid iff it equals `bid`.
    """
    if isinstance(raw, TrickOutcome):
        if raw.made and raw.tricks != bid:
            raise InvalidTrickSubmission(
                f"{player.name} is marked as made with {raw.tricks} tricks "
                f"but bid {bid}",
                reason=InvalidTrickSubmission.INCONSISTENT,
                player_names=[player.name],
            )
        if not raw.made and raw.tricks == bid:
            raise InvalidTrickSubmission(
                f"{player.name} is marked as missed with {raw.tricks} tricks "
                f"but bid {bid}",
                reason=InvalidTrickSubmission.INCONSISTENT,
                player_names=[player.name],
            )
        return raw
    if _is_blank(raw):
        raise InvalidTrickSubmission(
            f"Missing tricks for {player.name}",
            reason=InvalidTrickSubmission.MISSING,
            player_names=[player.name],
        )
    if isinstance(raw, str) and raw.strip().lower() in MISSED_WORDS:
        return TrickOutcome.missed()

    tricks = _parse_int(raw)
    if tricks is None:
        raise InvalidTrickSubmission(
            f"Invalid tricks for {player.name}: {raw!r} is not a number",
            reason=InvalidTrickSubmission.NON_NUMERIC,
            player_names=[player.name],
        )
    if tricks == MISSED_SENTINEL:
        return TrickOutcome.missed()
    if tricks < 0:
        raise InvalidTrickSubmission(
            f"Invalid tricks for {player.name}: must be a non-negative "
            f"number (or {MISSED_SENTINEL} for missed bid)",
            reason=InvalidTrickSubmission.NEGATIVE,
            player_names=[player.name],
        )
    if tricks == bid:
        return TrickOutcome(made=True, tricks=tricks)
    return TrickOutcome.missed(tricks)


def validate_outcomes(
    round_state: RoundState,
    players: Sequence[PlayerState],
    raw_outcomes: Mapping[str, Any],
) -> Dict[str, TrickOutcome]:
    """
    Parse and cross-check a round's trick outcomes against its bids.

    Rules:
    - Tricks taken by players who made their bid cannot exceed the cards.
    - If those players account for every trick, nobody who bid 0 can have
      missed.
    - If nobody missed, made bids must account for every trick.
    """
    _check_known_players(raw_outcomes, players)
    cards = round_state.cards

    outcomes: Dict[str, TrickOutcome] = {}
    for p in players:
        outcomes[p.email] = parse_outcome(
            raw_outcomes.get(p.email), p, round_state.bids[p.email]
        )

    made_players = [p for p in players if outcomes[p.email].made]
    made_sum = sum(outcomes[p.email].tricks for p in made_players)
    zero_bid_missed = [
        p for p in players
        if round_state.bids[p.email] == 0 and not outcomes[p.email].made
    ]
    any_missed = len(made_players) < len(players)

    if made_sum == cards and zero_bid_missed:
        names = ", ".join(p.name for p in zero_bid_missed)
        raise InvalidTrickSubmission(
            f"All {cards} tricks have been taken by players who made their "
            f"bids. Players who bid 0 ({names}) must have made their bid.",
            reason=InvalidTrickSubmission.ZERO_BID_MISSED,
            player_names=[p.name for p in zero_bid_missed],
            made_sum=made_sum,
            cards=cards,
        )

    if made_sum > cards:
        names = ", ".join(p.name for p in made_players)
        raise InvalidTrickSubmission(
            f"The sum of tricks for players who made their bids ({made_sum}) "
            f"exceeds the total tricks available ({cards}). Players who made "
            f"their bids: {names}.",
            reason=InvalidTrickSubmission.OVERSUBSCRIBED,
            player_names=[p.name for p in made_players],
            made_sum=made_sum,
            cards=cards,
        )

    if not any_missed and made_sum != cards:
        raise InvalidTrickSubmission(
            f"All players are marked as made, but only {made_sum} out of "
            f"{cards} tricks are accounted for.",
            reason=InvalidTrickSubmission.UNDERSUBSCRIBED,
            made_sum=made_sum,
            cards=cards,
        )

    return outcomes


# --------------------------------------------------------------------------- #
# Scoring                                                                     #
# --------------------------------------------------------------------------- #


def points_for(bid: int, outcome: Optional[TrickOutcome], cards: int) -> int:
    """A made bid scores bid + cards; anything else scores 0."""
    if outcome is None or not outcome.made or outcome.tricks != bid:
        return 0
    return bid + cards


def score_round(
    round_state: RoundState, players: List[PlayerState]
) -> Dict[str, int]:
    """Per-player score deltas for a round with recorded outcomes."""
    deltas: Dict[str, int] = {}
    for p in players:
        bid = round_state.bids.get(p.email)
        outcome = round_state.tricks.get(p.email)
        if bid is None:
            deltas[p.email] = 0
        else:
            deltas[p.email] = points_for(bid, outcome, round_state.cards)
    return deltas

# scorejudge/errors.py
from __future__ import annotations

from typing import Optional


class ScoreJudgeError(ValueError):
    """Base class for every error the scoring engine raises to its caller."""


class InvalidConfiguration(ScoreJudgeError):
    """Bad player count or deck size."""

    def __init__(self, message: str, *, num_players: Optional[int] = None,
                 deck_size: Optional[int] = None) -> None:
        super().__init__(message)
        self.num_players = num_players
        self.deck_size = deck_size


class InvalidBid(ScoreJudgeError):
    """A bid is missing, non-numeric, or outside [0, cards]."""

    MISSING = "missing"
    NON_NUMERIC = "non_numeric"
    OUT_OF_RANGE = "out_of_range"

    def __init__(self, *, player_name: str, reason: str, value=None,
                 cards: Optional[int] = None) -> None:
        if reason == self.MISSING:
            message = f"Missing bid for {player_name}"
        elif reason == self.NON_NUMERIC:
            message = (
                f"Invalid bid for {player_name}: {value!r} is not a "
                "non-negative number"
            )
        else:
            message = (
                f"{player_name} cannot bid {value}. Bids must be between 0 "
                f"and {cards} (cards dealt per player)."
            )
        super().__init__(message)
        self.player_name = player_name
        self.reason = reason
        self.value = value
        self.cards = cards


class MissingInput(InvalidBid):
    """No bid at all was supplied for a player."""

    def __init__(self, *, player_name: str) -> None:
        super().__init__(player_name=player_name, reason=InvalidBid.MISSING)


class DealerConstraintViolation(ScoreJudgeError):
    """Sum of bids equals the cards dealt, which the hook rule forbids."""

    def __init__(self, *, dealer_name: str, total: int, cards: int) -> None:
        super().__init__(
            f"Dealer ({dealer_name}) must bid such that total bids do not "
            f"equal {cards}. Current total: {total}"
        )
        self.dealer_name = dealer_name
        self.total = total
        self.cards = cards


class InvalidTrickSubmission(ScoreJudgeError):
    """Trick outcomes are incomplete or cannot all be true at once."""

    MISSING = "missing"
    NON_NUMERIC = "non_numeric"
    NEGATIVE = "negative"
    INCONSISTENT = "inconsistent"
    OVERSUBSCRIBED = "oversubscribed"
    UNDERSUBSCRIBED = "undersubscribed"
    ZERO_BID_MISSED = "zero_bid_missed"

    def __init__(
        self,
        message: str,
        *,
        reason: str,
        player_names: Optional[list] = None,
        made_sum: Optional[int] = None,
        cards: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.player_names = list(player_names or [])
        self.made_sum = made_sum
        self.cards = cards


class RoundNotFound(ScoreJudgeError):
    def __init__(self, round_index: int) -> None:
        super().__init__(f"Round {round_index} not found")
        self.round_index = round_index


class InvalidUndoTarget(ScoreJudgeError):
    def __init__(self, *, target_index, current_index: int) -> None:
        super().__init__(
            f"Can only undo current round {current_index}; got {target_index}"
        )
        self.target_index = target_index
        self.current_index = current_index


class PlayerNotFound(ScoreJudgeError):
    def __init__(self, email: str) -> None:
        super().__init__(f"Player {email!r} is not in this game")
        self.email = email


class InvalidRoundState(ScoreJudgeError):
    """The active round is not in the state the action requires."""

    def __init__(self, *, round_index: int, state: str, expected: str) -> None:
        super().__init__(
            f"Round {round_index} is {state}; expected {expected}"
        )
        self.round_index = round_index
        self.state = state
        self.expected = expected


class GameOver(ScoreJudgeError):
    def __init__(self, final_round: int) -> None:
        super().__init__(
            f"Game has ended. Final round ({final_round}) has been completed."
        )
        self.final_round = final_round


class GameNotFound(ScoreJudgeError):
    def __init__(self, game_id: str) -> None:
        super().__init__(f"Game {game_id!r} not loaded")
        self.game_id = game_id


class InvalidAction(ScoreJudgeError):
    """A raw request could not be turned into an engine action."""


class RosterLocked(ScoreJudgeError):
    """Seating order cannot change once bidding has begun for the round."""

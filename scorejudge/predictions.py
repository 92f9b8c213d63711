# scorejudge/predictions.py
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence
import enum

from .state import PlayerState


@dataclass
class CatchUpHint:
    target_name: str
    target_score: int
    min_bid: int
    impossible: bool  # even if the target misses
    min_bid_if_they_make: Optional[int] = None
    impossible_if_they_make: Optional[bool] = None


@dataclass
class StayAheadHint:
    threat_name: str
    threat_score: int
    they_need_bid: int
    you_are_safe: bool


class WinConditionType(enum.Enum):
    GUARANTEED = "guaranteed"
    IF_OTHERS_MISS = "if_others_miss"
    LEAD_MAINTAINED = "lead_maintained"
    TIED = "tied"


@dataclass
class WinCondition:
    type: WinConditionType
    message: str
    gap: Optional[int] = None


@dataclass
class PredictionHints:
    show: bool
    position: int
    tied_with: List[str] = field(default_factory=list)
    catch_up: Optional[CatchUpHint] = None
    stay_ahead: Optional[StayAheadHint] = None
    win_condition: Optional[WinCondition] = None
    is_eliminated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if self.win_condition is not None:
            data["win_condition"]["type"] = self.win_condition.type.value
        return data


def calculate_predictions(
    current_email: str,
    players: Sequence[PlayerState],
    cards_per_player: int,
    num_players: int,
    is_final_round: bool,
) -> PredictionHints:
    """
    Strategic hints for one player from the live standings.

    A made bid scores bid + cards_per_player, so the most anyone can gain in
    a round is 2 * cards_per_player and the least a made bid gains is
    cards_per_player. `num_players` is accepted for callers that pass the
    table size; it does not change single-player scoring.

    Never mutates `players`.
    """
    max_bid = cards_per_player
    max_round_score = max_bid + cards_per_player

    # sorted() is stable, so ties keep seating order.
    ranked = sorted(players, key=lambda p: p.score, reverse=True)

    if all(p.score == 0 for p in ranked):
        return PredictionHints(show=False, position=1)

    my_index = next(
        (i for i, p in enumerate(ranked) if p.email == current_email), None
    )
    if my_index is None:
        return PredictionHints(show=False, position=1)

    me = ranked[my_index]
    position = 1 + sum(1 for p in ranked if p.score > me.score)
    tied_with = [
        p.name for p in ranked if p.score == me.score and p.email != me.email
    ]
    hints = PredictionHints(show=True, position=position, tied_with=tied_with)

    # Offense: the player directly above.
    if position > 1:
        above = ranked[my_index - 1]
        if above.score == me.score:
            hints.catch_up = CatchUpHint(
                target_name=above.name,
                target_score=above.score,
                min_bid=0,
                impossible=False,
            )
        else:
            gap = above.score - me.score
            # They miss and gain nothing: we need gap + 1 points.
            min_if_miss = max(0, gap + 1 - cards_per_player)
            impossible_if_miss = min_if_miss > max_bid
            # They make and gain at least cards_per_player.
            min_if_make = max(0, gap + cards_per_player + 1 - cards_per_player)
            hints.catch_up = CatchUpHint(
                target_name=above.name,
                target_score=above.score,
                min_bid=max_bid if impossible_if_miss else min_if_miss,
                impossible=impossible_if_miss,
                min_bid_if_they_make=min_if_make,
                impossible_if_they_make=min_if_make > max_bid,
            )

        if is_final_round:
            gap = above.score - me.score
            hints.is_eliminated = gap + 1 > max_round_score

    # Defense: the player directly below.
    if my_index < len(ranked) - 1:
        below = ranked[my_index + 1]
        gap = me.score - below.score
        they_need = max(0, gap + 1 - cards_per_player)
        safe = they_need > max_bid
        hints.stay_ahead = StayAheadHint(
            threat_name=below.name,
            threat_score=below.score,
            they_need_bid=max_bid + 1 if safe else they_need,
            you_are_safe=safe,
        )

    if position == 1:
        hints.win_condition = _win_condition(
            me, ranked, tied_with, max_round_score, is_final_round
        )

    return hints


def _win_condition(
    me: PlayerState,
    ranked: Sequence[PlayerState],
    tied_with: List[str],
    max_round_score: int,
    is_final_round: bool,
) -> Optional[WinCondition]:
    if tied_with:
        return WinCondition(
            type=WinConditionType.TIED,
            message="Tied for 1st! Any made bid wins it.",
        )

    runner_up = next((p for p in ranked if p.score < me.score), None)
    if runner_up is None:
        return None
    gap = me.score - runner_up.score

    if gap > max_round_score:
        return WinCondition(
            type=WinConditionType.GUARANTEED,
            message="Victory secured! No one can catch you.",
            gap=gap,
        )
    if is_final_round:
        return WinCondition(
            type=WinConditionType.IF_OTHERS_MISS,
            message="If everyone else misses, you win!",
            gap=gap,
        )
    return WinCondition(
        type=WinConditionType.LEAD_MAINTAINED,
        message=f"Leading by {gap} pts",
        gap=gap,
    )


def format_bid_hint(min_bid: int) -> str:
    """Short label for a minimum bid; 0 means any made bid is enough."""
    if min_bid == 0:
        return "Any bid made"
    return f"Bid {min_bid}+"

# scorejudge/state.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import enum

from .cards import STANDARD_DECK_SIZE, Trump, symbol_to_trump, trump_to_symbol


class RoundPhase(enum.Enum):
    BIDDING = "BIDDING"
    PLAYING = "PLAYING"
    COMPLETED = "COMPLETED"


@dataclass(frozen=True)
class TrickOutcome:
    """
    What a player achieved in a round.

    - made=True: took exactly their bid; `tricks` is that count.
    - made=False: missed; `tricks` is the count if it was recorded, else None.
    """
    made: bool
    tricks: Optional[int] = None

    def __post_init__(self) -> None:
        if self.made and self.tricks is None:
            raise ValueError("A made outcome must carry its trick count")
        if self.tricks is not None and self.tricks < 0:
            raise ValueError("Trick count cannot be negative")

    @classmethod
    def missed(cls, tricks: Optional[int] = None) -> "TrickOutcome":
        return cls(made=False, tricks=tricks)

    def to_dict(self) -> Dict[str, Any]:
        return {"made": self.made, "tricks": self.tricks}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrickOutcome":
        tricks = data.get("tricks")
        return cls(
            made=bool(data["made"]),
            tricks=int(tricks) if tricks is not None else None,
        )


@dataclass
class PlayerState:
    email: str
    name: str
    score: int = 0
    image: Optional[str] = None  # avatar reference, opaque to the engine


@dataclass
class RoundState:
    index: int  # 1-based
    cards: int
    trump: Trump
    state: RoundPhase = RoundPhase.BIDDING
    bids: Dict[str, int] = field(default_factory=dict)
    tricks: Dict[str, TrickOutcome] = field(default_factory=dict)

    def reset(self) -> None:
        self.bids = {}
        self.tricks = {}
        self.state = RoundPhase.BIDDING


@dataclass
class GameState:
    id: str
    players: List[PlayerState] = field(default_factory=list)
    rounds: List[RoundState] = field(default_factory=list)
    current_round_index: int = 0  # 0 until the round plan is generated
    name: str = ""
    deck_size: int = STANDARD_DECK_SIZE

    @property
    def num_players(self) -> int:
        return len(self.players)

    def find_round(self, index: int) -> Optional[RoundState]:
        for round_state in self.rounds:
            if round_state.index == index:
                return round_state
        return None

    def find_player(self, email: str) -> Optional[PlayerState]:
        for player in self.players:
            if player.email == email:
                return player
        return None

    @property
    def current_round(self) -> Optional[RoundState]:
        return self.find_round(self.current_round_index)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-compatible snapshot handed to stores and observers."""
        return {
            "id": self.id,
            "name": self.name,
            "deck_size": self.deck_size,
            "current_round_index": self.current_round_index,
            "players": [
                {
                    "email": p.email,
                    "name": p.name,
                    "score": p.score,
                    "image": p.image,
                }
                for p in self.players
            ],
            "rounds": [
                {
                    "index": r.index,
                    "cards": r.cards,
                    "trump": trump_to_symbol(r.trump),
                    "state": r.state.value,
                    "bids": dict(r.bids),
                    "tricks": {
                        email: outcome.to_dict()
                        for email, outcome in r.tricks.items()
                    },
                }
                for r in self.rounds
            ],
        }


def game_from_dict(data: Dict[str, Any]) -> GameState:
    """Rebuild a GameState from `GameState.to_dict()` output."""
    players = [
        PlayerState(
            email=p["email"],
            name=p["name"],
            score=int(p.get("score", 0)),
            image=p.get("image"),
        )
        for p in data.get("players", [])
    ]
    rounds = [
        RoundState(
            index=int(r["index"]),
            cards=int(r["cards"]),
            trump=symbol_to_trump(r["trump"]),
            state=RoundPhase(r["state"]),
            bids={email: int(bid) for email, bid in r.get("bids", {}).items()},
            tricks={
                email: TrickOutcome.from_dict(outcome)
                for email, outcome in r.get("tricks", {}).items()
            },
        )
        for r in data.get("rounds", [])
    ]
    return GameState(
        id=data["id"],
        name=data.get("name", ""),
        deck_size=int(data.get("deck_size", STANDARD_DECK_SIZE)),
        current_round_index=int(data.get("current_round_index", 0)),
        players=players,
        rounds=rounds,
    )

# scorejudge/game_log.py
from __future__ import annotations

import csv
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional

from .cards import trump_to_symbol
from .outbox import GameEvent
from .plan import dealer_index
from .rules import score_round
from .state import GameState, RoundPhase, RoundState, game_from_dict

FIELDNAMES = [
    "game_id",
    "round_index",
    "cards",
    "trump",
    "dealer_email",
    "player_email",
    "player_name",
    "bid",
    "made",
    "tricks",
    "points",
    "total_score",
]


def _is_round_complete(round_state: RoundState, num_players: int) -> bool:
    """Return True if the round is scored with bids and tricks for everyone."""
    return (
        round_state.state == RoundPhase.COMPLETED
        and len(round_state.bids) == num_players
        and len(round_state.tricks) == num_players
    )


def build_round_score_rows(
    game_state: GameState,
    game_id: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Build a list of rows summarizing per-round scores for CSV export.

    Each row corresponds to (round, player) and has keys in FIELDNAMES.
    Rounds that are not completed are skipped, so games in progress can
    still be exported. An unrecorded trick count is written as an empty
    cell.
    """
    players = game_state.players
    num_players = len(players)
    running_scores: Dict[str, int] = {p.email: 0 for p in players}
    rows: List[Dict[str, Any]] = []
    if game_id is None:
        game_id = game_state.id

    for round_state in sorted(game_state.rounds, key=lambda r: r.index):
        if not _is_round_complete(round_state, num_players):
            continue
        deltas = score_round(round_state, players)
        dealer = players[dealer_index(round_state.index, num_players)]

        for p in players:
            running_scores[p.email] += deltas[p.email]
            outcome = round_state.tricks[p.email]
            rows.append(
                {
                    "game_id": game_id,
                    "round_index": round_state.index,
                    "cards": round_state.cards,
                    "trump": trump_to_symbol(round_state.trump),
                    "dealer_email": dealer.email,
                    "player_email": p.email,
                    "player_name": p.name,
                    "bid": round_state.bids[p.email],
                    "made": outcome.made,
                    "tricks": "" if outcome.tricks is None else outcome.tricks,
                    "points": deltas[p.email],
                    "total_score": running_scores[p.email],
                }
            )

    return rows


def write_rows_csv(rows: List[Dict[str, Any]], path) -> None:
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=FIELDNAMES)
        writer.writeheader()
        for row in rows:
            writer.writerow({field: row.get(field) for field in FIELDNAMES})


def write_round_scores_csv(
    game_state: GameState,
    path,
    game_id: Optional[str] = None,
) -> None:
    """
    Write per-round scores to a CSV file.

    `path` can be a string or any path-like object accepted by `open`.
    """
    write_rows_csv(build_round_score_rows(game_state, game_id=game_id), path)


class CsvScoreSink:
    """
    Outbox sink that keeps a CSV of every game's score history.

    Each event rewrites the file from the event's snapshot, so delivering
    the same event twice produces the same file.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._rows_by_game: Dict[str, List[Dict[str, Any]]] = {}
        self._lock = Lock()

    def __call__(self, event: GameEvent) -> None:
        rows = build_round_score_rows(game_from_dict(event.snapshot))
        with self._lock:
            self._rows_by_game[event.game_id] = rows
            all_rows = [
                row
                for game_rows in self._rows_by_game.values()
                for row in game_rows
            ]
            self.path.parent.mkdir(parents=True, exist_ok=True)
            write_rows_csv(all_rows, self.path)

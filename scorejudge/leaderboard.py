# scorejudge/leaderboard.py
from __future__ import annotations

from typing import Union

import numpy as np
import pandas as pd

LEADERBOARD_COLUMNS = [
    "player_email",
    "player_name",
    "games_played",
    "wins",
    "total_points",
    "avg_final_score",
    "made_rate",
]


def load_score_history(path) -> pd.DataFrame:
    """Read a score-history CSV written by scorejudge.game_log."""
    df = pd.read_csv(path)
    if "made" in df.columns and df["made"].dtype != bool:
        df["made"] = df["made"].astype(str).str.lower().eq("true")
    return df


def final_scores(df: pd.DataFrame) -> pd.DataFrame:
    """One row per (game, player) holding the total after the last scored round."""
    last_rows = df.sort_values("round_index").groupby(
        ["game_id", "player_email"], as_index=False
    ).tail(1)
    return last_rows[["game_id", "player_email", "player_name", "total_score"]]


def build_leaderboard(history: Union[pd.DataFrame, str]) -> pd.DataFrame:
    """
    Aggregate score history across games.

    A game's winners are every player sharing its top final score, so a
    shared win counts for each of them. Sorted by wins, then total points.
    """
    df = history if isinstance(history, pd.DataFrame) else load_score_history(history)
    if df.empty:
        return pd.DataFrame(columns=LEADERBOARD_COLUMNS)

    finals = final_scores(df).copy()
    top = finals.groupby("game_id")["total_score"].transform("max")
    finals["won"] = np.where(finals["total_score"] == top, 1, 0)

    per_player = finals.groupby("player_email").agg(
        player_name=("player_name", "last"),
        games_played=("game_id", "nunique"),
        wins=("won", "sum"),
        total_points=("total_score", "sum"),
        avg_final_score=("total_score", "mean"),
    )
    made_rate = df.assign(made=df["made"].astype(float)).groupby(
        "player_email"
    )["made"].mean()
    per_player["made_rate"] = made_rate.reindex(per_player.index).fillna(0.0)

    board = (
        per_player.reset_index()
        .sort_values(["wins", "total_points"], ascending=[False, False])
        .reset_index(drop=True)
    )
    return board[LEADERBOARD_COLUMNS]

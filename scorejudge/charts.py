# scorejudge/charts.py
from __future__ import annotations

from pathlib import Path
from typing import Optional

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402


def plot_score_progression(
    df: pd.DataFrame,
    out_path,
    game_id: Optional[str] = None,
) -> Path:
    """
    Plot each player's running total by round and save it as an image.

    `df` is score history as written by scorejudge.game_log. When the file
    holds several games, `game_id` picks one (default: the first).
    """
    if df.empty:
        raise ValueError("No scored rounds to plot")
    if game_id is None:
        game_id = df["game_id"].iloc[0]
    game = df[df["game_id"] == game_id]
    if game.empty:
        raise ValueError(f"No rows for game {game_id!r}")

    fig, ax = plt.subplots(figsize=(10, 6))
    for name in sorted(game["player_name"].unique()):
        sub = game[game["player_name"] == name].sort_values("round_index")
        ax.plot(sub["round_index"], sub["total_score"], marker="o", label=name)

    ax.set_xlabel("Round")
    ax.set_ylabel("Total score")
    ax.set_title(f"Score progression for {game_id}")
    ax.grid(True)
    ax.legend()
    fig.tight_layout()

    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out)
    plt.close(fig)
    return out

import pandas as pd
import pytest

from scorejudge.leaderboard import (
    LEADERBOARD_COLUMNS,
    build_leaderboard,
    final_scores,
    load_score_history,
)


def _row(game_id, round_index, email, name, made, total):
    return {
        "game_id": game_id,
        "round_index": round_index,
        "player_email": email,
        "player_name": name,
        "made": made,
        "total_score": total,
    }


def _history() -> pd.DataFrame:
    rows = [
        # g1: A wins outright.
        _row("g1", 1, "a@x", "A", True, 3),
        _row("g1", 1, "b@x", "B", False, 0),
        _row("g1", 2, "a@x", "A", True, 5),
        _row("g1", 2, "b@x", "B", True, 2),
        # g2: A and B share the top score.
        _row("g2", 1, "a@x", "A", False, 0),
        _row("g2", 1, "b@x", "B", True, 4),
        _row("g2", 2, "a@x", "A", True, 4),
        _row("g2", 2, "b@x", "B", False, 4),
    ]
    return pd.DataFrame(rows)


def test_final_scores_take_last_round():
    finals = final_scores(_history())
    by_key = {
        (row.game_id, row.player_email): row.total_score
        for row in finals.itertuples()
    }
    assert by_key == {
        ("g1", "a@x"): 5,
        ("g1", "b@x"): 2,
        ("g2", "a@x"): 4,
        ("g2", "b@x"): 4,
    }


def test_leaderboard_counts_shared_wins():
    board = build_leaderboard(_history())

    assert list(board.columns) == LEADERBOARD_COLUMNS
    assert list(board["player_email"]) == ["a@x", "b@x"]

    a = board.iloc[0]
    assert a["games_played"] == 2
    assert a["wins"] == 2
    assert a["total_points"] == 9
    assert a["avg_final_score"] == pytest.approx(4.5)
    assert a["made_rate"] == pytest.approx(0.75)

    b = board.iloc[1]
    assert b["wins"] == 1
    assert b["total_points"] == 6
    assert b["made_rate"] == pytest.approx(0.5)


def test_empty_history():
    board = build_leaderboard(pd.DataFrame())
    assert board.empty
    assert list(board.columns) == LEADERBOARD_COLUMNS


def test_load_score_history_parses_made_flags(tmp_path):
    path = tmp_path / "scores.csv"
    _history().to_csv(path, index=False)

    df = load_score_history(path)
    assert df["made"].dtype == bool
    assert df["made"].sum() == 5
    assert build_leaderboard(str(path))["wins"].tolist() == [2, 1]

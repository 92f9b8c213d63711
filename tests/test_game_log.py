import csv

from scorejudge.cards import Trump
from scorejudge.game_log import (
    FIELDNAMES,
    CsvScoreSink,
    build_round_score_rows,
    write_round_scores_csv,
)
from scorejudge.outbox import Outbox
from scorejudge.state import (
    GameState,
    PlayerState,
    RoundPhase,
    RoundState,
    TrickOutcome,
)


def _make_game(game_id: str = "g1") -> GameState:
    return GameState(
        id=game_id,
        deck_size=6,
        current_round_index=2,
        players=[
            PlayerState(email="a@x", name="A", score=3),
            PlayerState(email="b@x", name="B", score=2),
            PlayerState(email="c@x", name="C", score=0),
        ],
        rounds=[
            RoundState(
                index=1,
                cards=2,
                trump=Trump.SPADES,
                state=RoundPhase.COMPLETED,
                bids={"a@x": 1, "b@x": 0, "c@x": 0},
                tricks={
                    "a@x": TrickOutcome(made=True, tricks=1),
                    "b@x": TrickOutcome(made=True, tricks=0),
                    "c@x": TrickOutcome.missed(),
                },
            ),
            RoundState(
                index=2,
                cards=1,
                trump=Trump.DIAMONDS,
                state=RoundPhase.PLAYING,
                bids={"a@x": 0, "b@x": 1, "c@x": 1},
            ),
        ],
    )


def test_rows_skip_unfinished_rounds():
    rows = build_round_score_rows(_make_game())

    assert len(rows) == 3
    assert {row["round_index"] for row in rows} == {1}
    assert [row["points"] for row in rows] == [3, 2, 0]
    assert [row["total_score"] for row in rows] == [3, 2, 0]
    assert rows[0]["trump"] == "S"
    assert rows[0]["dealer_email"] == "a@x"
    # Missed without a count.
    assert rows[2]["made"] is False
    assert rows[2]["tricks"] == ""


def test_running_totals_accumulate_across_rounds():
    game = _make_game()
    second = game.rounds[1]
    second.state = RoundPhase.COMPLETED
    second.tricks = {
        "a@x": TrickOutcome(made=True, tricks=0),
        "b@x": TrickOutcome(made=True, tricks=1),
        "c@x": TrickOutcome.missed(0),
    }

    rows = build_round_score_rows(game, game_id="renamed")
    round_two = [row for row in rows if row["round_index"] == 2]

    assert {row["game_id"] for row in rows} == {"renamed"}
    assert [row["points"] for row in round_two] == [1, 2, 0]
    assert [row["total_score"] for row in round_two] == [4, 4, 0]
    assert round_two[0]["dealer_email"] == "b@x"
    assert round_two[2]["tricks"] == 0


def test_write_round_scores_csv(tmp_path):
    path = tmp_path / "scores.csv"
    write_round_scores_csv(_make_game(), path)

    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        assert reader.fieldnames == FIELDNAMES
        rows = list(reader)

    assert [row["player_name"] for row in rows] == ["A", "B", "C"]
    assert rows[0]["made"] == "True"
    assert rows[2]["tricks"] == ""


def test_csv_sink_keeps_latest_snapshot_per_game(tmp_path):
    path = tmp_path / "out" / "scores.csv"
    sink = CsvScoreSink(path)
    outbox = Outbox()

    empty = GameState(id="g2", deck_size=6)
    for game in (_make_game("g1"), empty, _make_game("g1")):
        event = outbox.publish(
            game_id=game.id,
            action="TRICKS",
            snapshot=game.to_dict(),
            round_index=game.current_round_index or None,
        )
        sink(event)

    with open(path, newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))

    assert len(rows) == 3
    assert {row["game_id"] for row in rows} == {"g1"}

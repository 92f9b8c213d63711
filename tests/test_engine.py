import logging

import pytest

from scorejudge.actions import StartRound, SubmitBids, SubmitTricks, UndoRound, parse_action
from scorejudge.cards import Trump
from scorejudge.engine import GameEngine
from scorejudge.errors import (
    DealerConstraintViolation,
    GameOver,
    InvalidBid,
    InvalidConfiguration,
    InvalidRoundState,
    InvalidTrickSubmission,
    InvalidUndoTarget,
    PlayerNotFound,
    RosterLocked,
    RoundNotFound,
)
from scorejudge.rules import score_round
from scorejudge.state import GameState, PlayerState, RoundPhase, RoundState, TrickOutcome


def _make_engine(num_players: int = 3, deck_size: int = 6) -> GameEngine:
    game = GameState(id="test-game", deck_size=deck_size)
    engine = GameEngine(game)
    for i in range(num_players):
        engine.add_player(f"p{i}@x", f"P{i}")
    return engine


def _emails(engine):
    return [p.email for p in engine.game_state.players]


def _play_round_dealer_sweeps(engine: GameEngine) -> None:
    """Everyone bids 0; the dealer takes every trick and misses."""
    game = engine.game_state
    round_state = game.current_round
    engine.submit_bids({e: 0 for e in _emails(engine)})
    dealer = engine.dealer(round_state.index)
    engine.submit_tricks(
        {e: (-1 if e == dealer.email else 0) for e in _emails(engine)}
    )


def test_start_generates_plan_and_opens_round_one():
    engine = _make_engine()
    game = engine.start()

    assert [r.cards for r in game.rounds] == [2, 1, 1, 2]
    assert [r.trump for r in game.rounds][:3] == [
        Trump.SPADES,
        Trump.DIAMONDS,
        Trump.CLUBS,
    ]
    assert all(r.state == RoundPhase.BIDDING for r in game.rounds)
    assert game.current_round_index == 1
    assert engine.final_round == 3
    assert engine.dealer().email == "p0@x"


def test_start_is_idempotent_once_rounds_exist():
    engine = _make_engine()
    engine.start()
    engine.submit_bids({"p0@x": 0, "p1@x": 0, "p2@x": 0})
    game = engine.start()
    assert game.current_round_index == 1
    assert game.rounds[0].state == RoundPhase.PLAYING


def test_start_requires_three_players():
    engine = _make_engine(num_players=2)
    with pytest.raises(InvalidConfiguration):
        engine.start()
    assert engine.game_state.rounds == []


def test_bids_commit_and_move_to_playing():
    engine = _make_engine()
    engine.start()
    game = engine.submit_bids({"p0@x": "1", "p1@x": 0, "p2@x": 0})

    round_state = game.rounds[0]
    assert round_state.state == RoundPhase.PLAYING
    assert round_state.bids == {"p0@x": 1, "p1@x": 0, "p2@x": 0}
    assert round_state.tricks == {}


def test_rejected_bids_commit_nothing():
    engine = _make_engine()
    engine.start()
    with pytest.raises(DealerConstraintViolation):
        engine.submit_bids({"p0@x": 1, "p1@x": 1, "p2@x": 0})
    with pytest.raises(InvalidBid):
        engine.submit_bids({"p0@x": 3, "p1@x": 0, "p2@x": 0})

    round_state = engine.game_state.rounds[0]
    assert round_state.state == RoundPhase.BIDDING
    assert round_state.bids == {}


def test_actions_require_the_right_round_state():
    engine = _make_engine()
    engine.start()
    with pytest.raises(InvalidRoundState):
        engine.submit_tricks({"p0@x": 0, "p1@x": 0, "p2@x": -1})
    engine.submit_bids({"p0@x": 0, "p1@x": 0, "p2@x": 0})
    with pytest.raises(InvalidRoundState):
        engine.submit_bids({"p0@x": 0, "p1@x": 0, "p2@x": 0})


def test_actions_before_start_have_no_round():
    engine = _make_engine()
    with pytest.raises(RoundNotFound):
        engine.submit_bids({"p0@x": 0, "p1@x": 0, "p2@x": 0})


def test_made_bid_scores_bid_plus_cards():
    # 3 players, 15 cards: round 1 deals 5 each.
    engine = _make_engine(deck_size=15)
    engine.start()
    engine.submit_bids({"p0@x": 2, "p1@x": 1, "p2@x": 1})
    game = engine.submit_tricks({"p0@x": 2, "p1@x": 0, "p2@x": 3})

    scores = {p.email: p.score for p in game.players}
    assert scores == {"p0@x": 7, "p1@x": 0, "p2@x": 0}
    assert game.rounds[0].state == RoundPhase.COMPLETED
    assert game.rounds[0].tricks["p1@x"] == TrickOutcome.missed(0)
    assert game.current_round_index == 2


def test_rejected_tricks_commit_nothing():
    engine = _make_engine()
    engine.start()
    engine.submit_bids({"p0@x": 1, "p1@x": 0, "p2@x": 0})
    with pytest.raises(InvalidTrickSubmission):
        # Everyone made, but only 1 of 2 tricks accounted for.
        engine.submit_tricks({"p0@x": 1, "p1@x": 0, "p2@x": 0})

    game = engine.game_state
    assert game.rounds[0].state == RoundPhase.PLAYING
    assert game.rounds[0].tricks == {}
    assert all(p.score == 0 for p in game.players)
    assert game.current_round_index == 1


def test_full_game_round_trip():
    engine = _make_engine(num_players=3, deck_size=6)
    engine.start()

    for _ in range(engine.final_round):
        _play_round_dealer_sweeps(engine)

    game = engine.game_state
    assert game.current_round_index == engine.final_round == 3
    for r in game.rounds:
        if r.index <= engine.final_round:
            assert r.state == RoundPhase.COMPLETED
            assert sum(r.bids.values()) != r.cards
        else:
            # The trailing planned round is never dealt.
            assert r.state == RoundPhase.BIDDING
    assert engine.is_finished

    # Dealers were p0, p1, p2; each non-dealer scored 0 + cards.
    assert {p.email: p.score for p in game.players} == {
        "p0@x": 1 + 1,
        "p1@x": 2 + 1,
        "p2@x": 2 + 1,
    }
    totals = {p.email: 0 for p in game.players}
    for r in game.rounds[:3]:
        for email, delta in score_round(r, game.players).items():
            totals[email] += delta
    assert totals == {p.email: p.score for p in game.players}

    with pytest.raises(GameOver):
        engine.start()
    with pytest.raises(InvalidRoundState):
        engine.submit_bids({"p0@x": 0, "p1@x": 0, "p2@x": 0})


def _completed_final_round_game() -> GameEngine:
    """A game sitting on a scored round 1 where p0 made 2 of 5 (+7)."""
    players = [
        PlayerState(email="p0@x", name="P0", score=10),
        PlayerState(email="p1@x", name="P1", score=3),
        PlayerState(email="p2@x", name="P2", score=0),
    ]
    round_state = RoundState(
        index=1,
        cards=5,
        trump=Trump.SPADES,
        state=RoundPhase.COMPLETED,
        bids={"p0@x": 2, "p1@x": 1, "p2@x": 1},
        tricks={
            "p0@x": TrickOutcome(made=True, tricks=2),
            "p1@x": TrickOutcome.missed(0),
            "p2@x": TrickOutcome.missed(),
        },
    )
    game = GameState(
        id="undo", players=players, rounds=[round_state], current_round_index=1
    )
    return GameEngine(game)


def test_undo_completed_round_reverts_exact_delta():
    engine = _completed_final_round_game()
    game = engine.undo_round(1)

    assert [p.score for p in game.players] == [3, 3, 0]
    round_state = game.rounds[0]
    assert round_state.state == RoundPhase.BIDDING
    assert round_state.bids == {}
    assert round_state.tricks == {}
    assert game.current_round_index == 1


def test_undo_floors_scores_at_zero(caplog):
    engine = _completed_final_round_game()
    engine.game_state.players[0].score = 4

    with caplog.at_level(logging.WARNING, logger="scorejudge.engine"):
        game = engine.undo_round(1)
    assert game.players[0].score == 0
    assert "clamping to 0" in caplog.text


def test_undo_final_round_of_played_game():
    engine = _make_engine()
    engine.start()
    for _ in range(3):
        _play_round_dealer_sweeps(engine)
    before = {p.email: p.score for p in engine.game_state.players}

    game = engine.undo_round(3)
    after = {p.email: p.score for p in game.players}
    # Round 3 (1 card, p2 dealing) gave p0 and p1 one point each.
    assert after == {
        "p0@x": before["p0@x"] - 1,
        "p1@x": before["p1@x"] - 1,
        "p2@x": before["p2@x"],
    }
    assert game.current_round_index == 3
    assert not engine.is_finished

    # The round can be replayed.
    _play_round_dealer_sweeps(engine)
    assert {p.email: p.score for p in engine.game_state.players} == before


def test_undo_playing_round_only_clears_bids():
    engine = _make_engine()
    engine.start()
    engine.submit_bids({"p0@x": 1, "p1@x": 0, "p2@x": 0})
    game = engine.undo_round(1)

    assert game.rounds[0].state == RoundPhase.BIDDING
    assert game.rounds[0].bids == {}
    assert all(p.score == 0 for p in game.players)


def test_undo_only_targets_current_round():
    engine = _make_engine()
    engine.start()
    _play_round_dealer_sweeps(engine)
    assert engine.game_state.current_round_index == 2

    with pytest.raises(InvalidUndoTarget):
        engine.undo_round(1)
    with pytest.raises(InvalidUndoTarget):
        engine.undo_round(0)
    # Round 1 stays scored.
    assert engine.game_state.rounds[0].state == RoundPhase.COMPLETED


def test_undo_missing_round():
    engine = _completed_final_round_game()
    engine.game_state.current_round_index = 5
    with pytest.raises(RoundNotFound):
        engine.undo_round(5)


def test_apply_dispatches_actions():
    engine = _make_engine()
    engine.apply(StartRound())
    engine.apply(SubmitBids(bids={"p0@x": 0, "p1@x": 0, "p2@x": 0}))
    engine.apply(SubmitTricks(outcomes={"p0@x": -1, "p1@x": 0, "p2@x": 0}))
    engine.apply(UndoRound(target_index=2))
    game = engine.apply(
        parse_action({"action": "BIDS", "inputs": {"p0@x": 0, "p1@x": 0, "p2@x": 0}})
    )
    assert game.current_round_index == 2
    assert game.rounds[1].state == RoundPhase.PLAYING


# --------------------------------------------------------------------------- #
# Roster                                                                      #
# --------------------------------------------------------------------------- #


def test_join_twice_is_a_no_op():
    engine = _make_engine()
    engine.add_player("p0@x", "Someone Else")
    assert [p.name for p in engine.game_state.players] == ["P0", "P1", "P2"]


def test_roster_locks_after_start():
    engine = _make_engine()
    engine.start()
    with pytest.raises(RosterLocked):
        engine.add_player("late@x", "Late")
    with pytest.raises(RosterLocked):
        engine.rename_player("p0@x", "New Name")
    with pytest.raises(PlayerNotFound):
        engine.rename_player("ghost@x", "Ghost")


def test_table_size_limit():
    game = GameState(id="full")
    engine = GameEngine(game, max_players=3)
    for i in range(3):
        engine.add_player(f"p{i}@x", f"P{i}")
    with pytest.raises(InvalidConfiguration):
        engine.add_player("p3@x", "P3")


def test_reorder_changes_dealer_until_bids_are_in():
    engine = _make_engine()
    engine.start()
    engine.reorder_players(["p2@x", "p0@x", "p1@x"])
    assert engine.dealer().email == "p2@x"

    engine.submit_bids({"p0@x": 0, "p1@x": 0, "p2@x": 0})
    with pytest.raises(RosterLocked):
        engine.reorder_players(["p0@x", "p1@x", "p2@x"])
    assert _emails(engine) == ["p2@x", "p0@x", "p1@x"]


def test_reorder_must_list_every_player_once():
    engine = _make_engine()
    with pytest.raises(PlayerNotFound):
        engine.reorder_players(["p0@x", "p1@x", "ghost@x"])
    with pytest.raises(InvalidConfiguration):
        engine.reorder_players(["p0@x", "p1@x"])
    with pytest.raises(InvalidConfiguration):
        engine.reorder_players(["p0@x", "p1@x", "p1@x"])

import pytest

from scorejudge.actions import (
    StartRound,
    SubmitBids,
    SubmitTricks,
    UndoRound,
    parse_action,
)
from scorejudge.errors import InvalidAction


def test_parse_each_action():
    assert parse_action({"action": "START"}) == StartRound()
    assert parse_action({"action": "bids", "inputs": {"a@x": "1"}}) == SubmitBids(
        bids={"a@x": "1"}
    )
    assert parse_action({"action": "TRICKS", "inputs": {"a@x": -1}}) == SubmitTricks(
        outcomes={"a@x": -1}
    )
    assert parse_action({"action": "UNDO", "targetRoundIndex": "3"}) == UndoRound(
        target_index=3
    )


def test_action_names_match_request_kinds():
    assert [cls.name for cls in (StartRound, SubmitBids, SubmitTricks, UndoRound)] == [
        "START",
        "BIDS",
        "TRICKS",
        "UNDO",
    ]


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"action": "DEAL"},
        {"action": "BIDS"},
        {"action": "TRICKS", "inputs": [1, 2, 3]},
        {"action": "UNDO"},
        {"action": "UNDO", "targetRoundIndex": "first"},
        {"action": "UNDO", "targetRoundIndex": True},
    ],
)
def test_malformed_requests(payload):
    with pytest.raises(InvalidAction):
        parse_action(payload)

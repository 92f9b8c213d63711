# scorejudge/actions.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Union

from .errors import InvalidAction


@dataclass(frozen=True)
class StartRound:
    """Generate the round plan (first call only) and open round 1."""

    name = "START"


@dataclass(frozen=True)
class SubmitBids:
    bids: Dict[str, Any] = field(default_factory=dict)

    name = "BIDS"


@dataclass(frozen=True)
class SubmitTricks:
    # email -> TrickOutcome, exact count, or the -1 sentinel
    outcomes: Dict[str, Any] = field(default_factory=dict)

    name = "TRICKS"


@dataclass(frozen=True)
class UndoRound:
    target_index: int

    name = "UNDO"


Action = Union[StartRound, SubmitBids, SubmitTricks, UndoRound]


def _inputs(payload: Mapping[str, Any]) -> Dict[str, Any]:
    inputs = payload.get("inputs")
    if inputs is None:
        raise InvalidAction(f"{payload.get('action')} requires 'inputs'")
    if not isinstance(inputs, Mapping):
        raise InvalidAction("'inputs' must map player email to a value")
    return dict(inputs)


def parse_action(payload: Mapping[str, Any]) -> Action:
    """
    Convert a loosely-typed request body into an action.

    Accepted shape: {"action": "START" | "BIDS" | "TRICKS" | "UNDO",
    "inputs": {email: value}, "targetRoundIndex": n}.
    """
    kind = str(payload.get("action", "")).strip().upper()
    if kind == StartRound.name:
        return StartRound()
    if kind == SubmitBids.name:
        return SubmitBids(bids=_inputs(payload))
    if kind == SubmitTricks.name:
        return SubmitTricks(outcomes=_inputs(payload))
    if kind == UndoRound.name:
        raw = payload.get("targetRoundIndex", payload.get("target_index"))
        if isinstance(raw, bool):
            raise InvalidAction("Invalid target round index")
        try:
            target = int(raw)
        except (TypeError, ValueError):
            raise InvalidAction("Invalid target round index") from None
        return UndoRound(target_index=target)
    raise InvalidAction(f"Unknown action {payload.get('action')!r}")

# scorejudge/audit_log.py
from __future__ import annotations

from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional

from .outbox import GameEvent


def _standings(snapshot: Dict[str, Any]) -> str:
    players = sorted(
        snapshot.get("players", []), key=lambda p: p["score"], reverse=True
    )
    return ", ".join(f"{p['name']}={p['score']}" for p in players)


class ActionAuditLog:
    """Accumulates a human-readable trail of committed and rejected actions."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._entries: List[str] = []
        self._lock = Lock()

    def log_action(
        self,
        *,
        game_id: str,
        action: str,
        round_index: Optional[int],
        snapshot: Dict[str, Any],
        sequence: Optional[int] = None,
        created_at: Optional[str] = None,
    ) -> None:
        header_parts = [f"Game: {game_id}", f"Action: {action}"]
        if sequence is not None:
            header_parts.append(f"Seq: {sequence}")
        if round_index is not None:
            header_parts.append(f"Round: {round_index}")
        if created_at is not None:
            header_parts.append(f"At: {created_at}")
        header = " | ".join(header_parts)

        lines = [f"=== {header} ==="]
        current = snapshot.get("current_round_index")
        for r in snapshot.get("rounds", []):
            if r["index"] != round_index and r["index"] != current:
                continue
            lines.append(
                f"Round {r['index']} ({r['cards']} cards, {r['trump']}): "
                f"{r['state']}"
            )
            if r.get("bids"):
                lines.append(f"  Bids: {r['bids']}")
            if r.get("tricks"):
                lines.append(f"  Tricks: {r['tricks']}")
        lines.append(f"Standings: {_standings(snapshot)}")

        entry = "\n".join(lines).strip()
        with self._lock:
            self._entries.append(entry)

    def log_rejection(
        self,
        *,
        game_id: str,
        action: str,
        error: str,
        inputs: Optional[Dict[str, Any]] = None,
    ) -> None:
        lines = [
            f"=== Game: {game_id} | Action: {action} | REJECTED ===",
            f"Error: {error}",
        ]
        if inputs is not None:
            lines.append(f"Inputs: {inputs!r}")

        entry = "\n".join(lines).strip()
        with self._lock:
            self._entries.append(entry)

    def __call__(self, event: GameEvent) -> None:
        """Outbox sink entry point."""
        self.log_action(
            game_id=event.game_id,
            action=event.action,
            round_index=event.round_index,
            snapshot=event.snapshot,
            sequence=event.sequence,
            created_at=event.created_at,
        )

    @property
    def entries(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def flush(self) -> None:
        with self._lock:
            if not self._entries:
                return
            to_write = "\n\n".join(self._entries)
            self._entries.clear()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(to_write + "\n\n")

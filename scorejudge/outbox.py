# scorejudge/outbox.py
from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Callable, Deque, Dict, List, Optional

logger = logging.getLogger(__name__)

# A sink receives one committed event, e.g. to write a CSV or sync a backend.
EventSink = Callable[["GameEvent"], None]


@dataclass(frozen=True)
class GameEvent:
    """A committed action together with the game snapshot it produced."""
    game_id: str
    action: str
    snapshot: Dict[str, Any]
    round_index: Optional[int] = None
    sequence: int = 0
    created_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )


class Outbox:
    """
    Thread-safe FIFO of committed events.

    `publish` is called while the game's lock is held, right after the
    commit; draining happens elsewhere.
    """

    def __init__(self) -> None:
        self._events: Deque[GameEvent] = deque()
        self._lock = Lock()
        self._sequence = 0

    def publish(
        self,
        *,
        game_id: str,
        action: str,
        snapshot: Dict[str, Any],
        round_index: Optional[int] = None,
    ) -> GameEvent:
        with self._lock:
            self._sequence += 1
            event = GameEvent(
                game_id=game_id,
                action=action,
                snapshot=snapshot,
                round_index=round_index,
                sequence=self._sequence,
            )
            self._events.append(event)
        return event

    def take_all(self) -> List[GameEvent]:
        with self._lock:
            events = list(self._events)
            self._events.clear()
        return events

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


class OutboxWorker:
    """
    Delivers outbox events to sinks off the request path.

    Each sink call runs in a worker thread. A failing delivery is retried
    with exponential backoff; after `max_attempts` the event is dropped for
    that sink and the failure logged. Failures never reach the code that
    committed the event.
    """

    def __init__(
        self,
        outbox: Outbox,
        sinks: Optional[List[EventSink]] = None,
        *,
        max_attempts: int = 3,
        retry_delay_seconds: float = 0.5,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.outbox = outbox
        self.sinks: List[EventSink] = list(sinks or [])
        self.max_attempts = max_attempts
        self.retry_delay_seconds = retry_delay_seconds
        self.delivered = 0
        self.dropped = 0

    def add_sink(self, sink: EventSink) -> None:
        self.sinks.append(sink)

    async def _deliver(self, sink: EventSink, event: GameEvent) -> bool:
        sink_name = getattr(sink, "__name__", type(sink).__name__)
        for attempt in range(1, self.max_attempts + 1):
            try:
                await asyncio.to_thread(sink, event)
                return True
            except Exception as exc:  # noqa: BLE001
                logger.warning(
                    "Sink %s failed for %s event %d (attempt %d/%d): %s",
                    sink_name,
                    event.action,
                    event.sequence,
                    attempt,
                    self.max_attempts,
                    exc,
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(
                        self.retry_delay_seconds * 2 ** (attempt - 1)
                    )
        logger.error(
            "Dropping %s event %d for game %s after %d attempts",
            event.action,
            event.sequence,
            event.game_id,
            self.max_attempts,
        )
        return False

    async def drain(self) -> int:
        """Deliver everything currently queued, in order. Returns the count."""
        events = self.outbox.take_all()
        for event in events:
            for sink in self.sinks:
                if await self._deliver(sink, event):
                    self.delivered += 1
                else:
                    self.dropped += 1
        return len(events)

    async def run(
        self, stop: asyncio.Event, poll_interval_seconds: float = 0.2
    ) -> None:
        """Drain until `stop` is set, then flush what is left."""
        while not stop.is_set():
            await self.drain()
            try:
                await asyncio.wait_for(stop.wait(), timeout=poll_interval_seconds)
            except asyncio.TimeoutError:
                pass
        await self.drain()

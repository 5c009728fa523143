"""In-process event stream for fleet observability.

Agent loops publish state transitions, submitted actions, and errors here;
the ``/ws/events`` feed replays them to clients, optionally for one agent.
"""

from __future__ import annotations

import itertools
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class FleetEvent:
    """One event published by an agent's control loop."""

    seq: int
    agent_id: int
    kind: str
    fields: dict[str, Any] = field(default_factory=dict)
    timestamp: str = ""

    def to_message(self) -> dict[str, Any]:
        """Wire shape sent to event feed clients."""
        return {
            "id": self.seq,
            "timestamp": self.timestamp,
            "payload": {"event": self.kind, "agent": self.agent_id, **self.fields},
        }


class FleetEventStream:
    """Bounded buffer of fleet events, oldest dropped first.

    Sequence numbers are global and strictly increasing, so a reader resumes
    with the last ``seq`` it saw whether or not it filters by agent.
    """

    def __init__(self, max_events: int = 500) -> None:
        self._buffer: deque[FleetEvent] = deque(maxlen=max(1, max_events))
        self._seq = itertools.count(1)
        self._lock = threading.Lock()

    def push_event(self, agent_id: int, event: str, **fields: Any) -> int:
        """Publish an event for an agent and return its sequence number."""
        stamp = datetime.now(timezone.utc).isoformat()
        with self._lock:
            entry = FleetEvent(
                seq=next(self._seq), agent_id=agent_id, kind=event, fields=fields, timestamp=stamp
            )
            self._buffer.append(entry)
        return entry.seq

    def get_events_since(self, last_seq: int, agent_id: int | None = None) -> list[FleetEvent]:
        """Buffered events newer than ``last_seq``, optionally for one agent."""
        with self._lock:
            snapshot = list(self._buffer)
        return [
            entry
            for entry in snapshot
            if entry.seq > last_seq and (agent_id is None or entry.agent_id == agent_id)
        ]

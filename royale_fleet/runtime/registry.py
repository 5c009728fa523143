"""Process-wide shared state for control loops.

Both tables are owned by the supervisor and injected into each lifecycle
instance. They live for the whole process and are only cleared on shutdown.
"""

from __future__ import annotations

import threading


class RunFlag:
    """Per-loop run flag; every blocking wait is also a stop check point."""

    def __init__(self) -> None:
        self._stopped = threading.Event()

    @property
    def active(self) -> bool:
        return not self._stopped.is_set()

    def stop(self) -> None:
        self._stopped.set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to `seconds`; returns False if stopped meanwhile."""
        if seconds > 0:
            self._stopped.wait(seconds)
        return self.active


class ActiveLoopTable:
    """Maps agent ids to the run flag of their single live control loop."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._flags: dict[int, RunFlag] = {}

    def claim(self, agent_id: int) -> RunFlag | None:
        """Mark an agent active; returns None if a loop already holds it."""
        with self._lock:
            if agent_id in self._flags:
                return None
            flag = RunFlag()
            self._flags[agent_id] = flag
            return flag

    def revoke(self, agent_id: int) -> bool:
        """Ask the agent's loop to stop. The entry stays until the loop releases it."""
        with self._lock:
            flag = self._flags.get(agent_id)
        if flag is None:
            return False
        flag.stop()
        return True

    def release(self, agent_id: int, flag: RunFlag) -> None:
        """Drop the entry once its loop has exited."""
        with self._lock:
            if self._flags.get(agent_id) is flag:
                del self._flags[agent_id]

    def is_active(self, agent_id: int) -> bool:
        with self._lock:
            flag = self._flags.get(agent_id)
        return flag is not None and flag.active

    def holds(self, agent_id: int) -> bool:
        """Whether any loop, active or still exiting, holds the agent."""
        with self._lock:
            return agent_id in self._flags

    def active_ids(self) -> list[int]:
        with self._lock:
            return [agent_id for agent_id, flag in self._flags.items() if flag.active]

    def revoke_all(self) -> None:
        with self._lock:
            flags = list(self._flags.values())
        for flag in flags:
            flag.stop()


class FinishedSessions:
    """Append-mostly memo of session ids known to be over for our agents."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids: set[str] = set()

    def add(self, game_id: str) -> None:
        with self._lock:
            self._ids.add(game_id)

    def __contains__(self, game_id: object) -> bool:
        with self._lock:
            return game_id in self._ids

    def __len__(self) -> int:
        with self._lock:
            return len(self._ids)

    def clear(self) -> None:
        with self._lock:
            self._ids.clear()

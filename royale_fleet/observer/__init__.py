"""Observer package: event streaming and the fleet control API.

The FastAPI app lives in :mod:`royale_fleet.observer.server`.
"""

from royale_fleet.observer.streaming import FleetEvent, FleetEventStream

__all__ = ["FleetEvent", "FleetEventStream"]

"""Shared data models for royale-fleet.

All wire-facing models use Pydantic for validation and serialization.
"""

from royale_fleet.models.actions import Action, ActionType, TargetKind
from royale_fleet.models.records import AgentRecord, AgentStatus, GameStatus, SessionRef
from royale_fleet.models.snapshot import (
    GroundItem,
    Interactable,
    Item,
    Monster,
    Region,
    RegionRef,
    SelfState,
    Snapshot,
    VisibleAgent,
)

__all__ = [
    "Action",
    "ActionType",
    "AgentRecord",
    "AgentStatus",
    "GameStatus",
    "GroundItem",
    "Interactable",
    "Item",
    "Monster",
    "Region",
    "RegionRef",
    "SelfState",
    "SessionRef",
    "Snapshot",
    "TargetKind",
    "VisibleAgent",
]

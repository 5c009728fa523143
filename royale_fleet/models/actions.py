"""Action models for representing agent actions."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class ActionType(StrEnum):
    """Types of actions an agent can submit for a tick."""

    MOVE = "move"
    ATTACK = "attack"
    USE_ITEM = "use_item"
    INTERACT = "interact"
    EQUIP = "equip"
    EXPLORE = "explore"
    REST = "rest"
    PICKUP = "pickup"


class TargetKind(StrEnum):
    """Kinds of attack targets."""

    AGENT = "agent"
    MONSTER = "monster"


class Action(BaseModel):
    """An action to be submitted by the agent.

    Actions are immutable; exactly one optional field is populated depending
    on the action type.
    """

    type: ActionType = Field(..., description="The type of action to perform")
    region_id: str | None = Field(default=None, description="Destination region for move")
    target_id: str | None = Field(default=None, description="Attack target id")
    target_kind: TargetKind | None = Field(default=None, description="Attack target kind")
    item_id: str | None = Field(default=None, description="Item for use/equip/pickup")
    interactable_id: str | None = Field(default=None, description="Interactable for interact")

    model_config = {"frozen": True}

    @classmethod
    def move(cls, region_id: str) -> Action:
        """Create a move action."""
        return cls(type=ActionType.MOVE, region_id=region_id)

    @classmethod
    def attack(cls, target_id: str, target_kind: TargetKind = TargetKind.AGENT) -> Action:
        """Create an attack action."""
        return cls(type=ActionType.ATTACK, target_id=target_id, target_kind=target_kind)

    @classmethod
    def use_item(cls, item_id: str) -> Action:
        """Create a use-item action."""
        return cls(type=ActionType.USE_ITEM, item_id=item_id)

    @classmethod
    def interact(cls, interactable_id: str) -> Action:
        """Create an interact action."""
        return cls(type=ActionType.INTERACT, interactable_id=interactable_id)

    @classmethod
    def equip(cls, item_id: str) -> Action:
        """Create an equip action."""
        return cls(type=ActionType.EQUIP, item_id=item_id)

    @classmethod
    def pickup(cls, item_id: str) -> Action:
        """Create a pickup action."""
        return cls(type=ActionType.PICKUP, item_id=item_id)

    @classmethod
    def explore(cls) -> Action:
        """Create an explore action."""
        return cls(type=ActionType.EXPLORE)

    @classmethod
    def rest(cls) -> Action:
        """Create a rest action."""
        return cls(type=ActionType.REST)

    def to_payload(self) -> dict[str, Any]:
        """Render the action in the game service's wire shape."""
        payload: dict[str, Any] = {"type": self.type.value}
        if self.region_id is not None:
            payload["regionId"] = self.region_id
        if self.target_id is not None:
            payload["targetId"] = self.target_id
            payload["targetType"] = (self.target_kind or TargetKind.AGENT).value
        if self.item_id is not None:
            payload["itemId"] = self.item_id
        if self.interactable_id is not None:
            payload["interactableId"] = self.interactable_id
        return payload

    def describe(self) -> str:
        """Short human-readable description."""
        argument = self.region_id or self.target_id or self.item_id or self.interactable_id
        if argument is None:
            return self.type.value
        return f"{self.type.value}({argument})"

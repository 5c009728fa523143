"""Game state snapshot models received once per tick.

The game service sends camelCase JSON where several fields are loosely typed:
region references can be full region objects or bare id strings, and lists
may be ``null``. Everything is normalized here so strategy code never has to
branch on runtime types.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator


class _WireModel(BaseModel):
    """Base for models parsed from game service payloads."""

    model_config = {"frozen": True, "populate_by_name": True}

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # Explicit nulls fall back to field defaults.
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class Item(_WireModel):
    """An inventory or ground item."""

    id: str
    name: str = ""
    category: str = ""
    atk_bonus: float = Field(default=0.0, alias="atkBonus")
    range: int = 0

    @property
    def is_weapon(self) -> bool:
        return self.category == "weapon"

    @property
    def is_recovery(self) -> bool:
        return self.category == "recovery"


class Interactable(_WireModel):
    """A usable facility inside a region."""

    id: str
    type: str = ""
    is_used: bool = Field(default=False, alias="isUsed")


class Region(_WireModel):
    """Full detail of a map region."""

    id: str
    name: str = ""
    terrain: str | None = None
    is_death_zone: bool = Field(default=False, alias="isDeathZone")
    interactables: list[Interactable] = Field(default_factory=list)
    connections: list[str] = Field(default_factory=list)

    @field_validator("connections", mode="before")
    @classmethod
    def _connection_ids(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [entry.get("id") if isinstance(entry, dict) else entry for entry in value]
        return value

    def unused_interactable(self, kind: str) -> Interactable | None:
        """First unused interactable of the given type."""
        for interactable in self.interactables:
            if interactable.type == kind and not interactable.is_used:
                return interactable
        return None


class RegionRef(BaseModel):
    """A region reference that may or may not carry full detail."""

    id: str
    detail: Region | None = None

    model_config = {"frozen": True}

    @classmethod
    def parse(cls, raw: Any) -> RegionRef:
        """Normalize a bare id or a region object into a reference."""
        if isinstance(raw, RegionRef):
            return raw
        if isinstance(raw, Region):
            return cls(id=raw.id, detail=raw)
        if isinstance(raw, dict):
            region = Region.model_validate(raw)
            return cls(id=region.id, detail=region)
        return cls(id=str(raw))

    @property
    def terrain(self) -> str | None:
        return self.detail.terrain if self.detail else None

    @property
    def is_death_zone(self) -> bool:
        return bool(self.detail and self.detail.is_death_zone)


class SelfState(_WireModel):
    """The agent's own full state."""

    id: str = ""
    name: str = ""
    hp: float = 0.0
    ep: float = 0.0
    atk: float = 0.0
    defense: float = Field(default=0.0, alias="def")
    is_alive: bool = Field(default=True, alias="isAlive")
    region_id: str | None = Field(default=None, alias="regionId")
    inventory: list[Item] = Field(default_factory=list)
    equipped_weapon: Item | None = Field(default=None, alias="equippedWeapon")

    @property
    def weapon_bonus(self) -> float:
        return self.equipped_weapon.atk_bonus if self.equipped_weapon else 0.0

    def first_recovery_item(self) -> Item | None:
        for item in self.inventory:
            if item.is_recovery:
                return item
        return None

    def best_weapon(self) -> Item | None:
        """Highest-bonus weapon held in inventory (stable on ties)."""
        weapons = sorted(
            (item for item in self.inventory if item.is_weapon),
            key=lambda item: item.atk_bonus,
            reverse=True,
        )
        return weapons[0] if weapons else None

    def upgrade_weapon(self) -> Item | None:
        """Inventory weapon strictly better than the equipped one, if any."""
        best = self.best_weapon()
        if best is None:
            return None
        if self.equipped_weapon is None or best.atk_bonus > self.equipped_weapon.atk_bonus:
            return best
        return None


class VisibleAgent(_WireModel):
    """Another agent visible from the current region."""

    id: str
    name: str = ""
    hp: float = 0.0
    atk: float = 0.0
    defense: float = Field(default=0.0, alias="def")
    is_alive: bool = Field(default=True, alias="isAlive")
    region_id: str | None = Field(default=None, alias="regionId")


class Monster(_WireModel):
    """A hostile non-player entity."""

    id: str
    name: str = ""
    hp: float = 0.0
    atk: float = 0.0
    defense: float = Field(default=0.0, alias="def")


class GroundItem(_WireModel):
    """An item lying in a region."""

    region_id: str | None = Field(default=None, alias="regionId")
    item: Item


class Snapshot(_WireModel):
    """Complete view of one tick for one agent."""

    me: SelfState = Field(alias="self")
    visible_agents: list[VisibleAgent] = Field(default_factory=list, alias="visibleAgents")
    visible_monsters: list[Monster] = Field(default_factory=list, alias="visibleMonsters")
    visible_items: list[GroundItem] = Field(default_factory=list, alias="visibleItems")
    current_region: Region = Field(alias="currentRegion")
    connected_regions: list[RegionRef] = Field(default_factory=list, alias="connectedRegions")
    pending_deathzones: list[RegionRef] = Field(default_factory=list, alias="pendingDeathzones")
    game_status: str = Field(default="running", alias="gameStatus")

    @field_validator("connected_regions", "pending_deathzones", mode="before")
    @classmethod
    def _normalize_refs(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [RegionRef.parse(entry) for entry in value]
        return value

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Snapshot:
        """Parse a raw agent-state payload."""
        return cls.model_validate(payload)

    @property
    def pending_ids(self) -> frozenset[str]:
        return frozenset(ref.id for ref in self.pending_deathzones)

    def is_unsafe(self, region: RegionRef | Region) -> bool:
        """A region is unsafe if flagged directly or listed as a pending death zone."""
        if region.id in self.pending_ids:
            return True
        if isinstance(region, Region):
            return region.is_death_zone
        if region.id == self.current_region.id:
            return self.current_region.is_death_zone
        return region.is_death_zone

    @property
    def current_region_unsafe(self) -> bool:
        return self.is_unsafe(self.current_region)

    def reachable(self) -> list[RegionRef]:
        """Reachable regions, falling back to the current region's connection ids."""
        if self.connected_regions:
            return list(self.connected_regions)
        return [RegionRef(id=region_id) for region_id in self.current_region.connections]

    def safe_reachable(self) -> list[RegionRef]:
        """Reachable regions safe by both signals, detailed ones first.

        An id-only region has no hazard flag to check, so it ranks after every
        detailed safe region but still counts when it is not a pending death zone.
        """
        safe = [ref for ref in self.reachable() if not self.is_unsafe(ref)]
        return [ref for ref in safe if ref.detail is not None] + [ref for ref in safe if ref.detail is None]

    def first_reachable_id(self) -> str | None:
        """First reachable region id, preferring the connected list."""
        if self.connected_regions:
            return self.connected_regions[0].id
        if self.current_region.connections:
            return self.current_region.connections[0]
        return None

    def living_agents(self) -> list[VisibleAgent]:
        return [agent for agent in self.visible_agents if agent.is_alive]

    def item_here(self) -> GroundItem | None:
        """First ground item co-located with the agent."""
        for ground in self.visible_items:
            if ground.region_id == self.me.region_id:
                return ground
        return None

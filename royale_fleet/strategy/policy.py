"""Rule-based action policies for the battle-royale game.

Each policy is a pure function of a snapshot (plus a seedable random source):
no I/O and no mutable state. Policies evaluate an ordered list of steps and
return the first decision any step produces. Every variant keeps the same
two leading steps:

1) danger escape, which overrides everything else
2) heal, which always precedes combat and repositioning
"""

from __future__ import annotations

import random
from collections.abc import Callable
from dataclasses import dataclass

from royale_fleet.models.actions import Action, TargetKind
from royale_fleet.models.snapshot import Monster, RegionRef, SelfState, Snapshot, VisibleAgent

_CONCEALMENT_TERRAIN = frozenset({"forest", "ruins"})
_HIGH_GROUND_TERRAIN = "hills"


@dataclass(frozen=True)
class PolicyConfig:
    """Thresholds for policy behavior."""

    heal_below_hp: float = 70.0
    engage_min_ep: float = 2.0
    healthy_hp: float = 80.0
    wounded_target_hp: float = 50.0
    rest_below_ep: float = 3.0
    explore_above_ep: float = 7.0
    use_medical_facility: bool = True


@dataclass(frozen=True)
class Decision:
    """Policy-selected action and supporting metadata."""

    action: Action
    strategy: str
    rationale: str

    def thought(self) -> dict[str, str]:
        """Explanation text submitted alongside the action."""
        return {
            "reasoning": self.rationale,
            "plannedAction": f"Executing {self.action.describe()} ({self.strategy}).",
        }


Step = Callable[[Snapshot, random.Random], Decision | None]


def estimated_damage(me: SelfState, target: VisibleAgent | Monster) -> float:
    """Damage of one hit: base attack plus weapon bonus minus half the target's defense."""
    return me.atk + me.weapon_bonus - target.defense * 0.5


def weakest(targets: list[VisibleAgent] | list[Monster]) -> VisibleAgent | Monster | None:
    """Lowest-hp target, first on ties."""
    ranked = sorted(targets, key=lambda target: target.hp)
    return ranked[0] if ranked else None


class BaselinePolicy:
    """Full survival-first policy; also the fallback for unknown roles.

    Steps, first match wins:
    1) escape an unsafe region
    2) heal below threshold
    3) engage a lethal or badly wounded target
    4) progress: better weapon, ruins, supply caches, high ground
    5) rest when energy is critically low
    6) explore or wander
    """

    name = "baseline"
    default_config = PolicyConfig()

    def __init__(self, config: PolicyConfig | None = None) -> None:
        self._config = config or self.default_config

    @property
    def config(self) -> PolicyConfig:
        return self._config

    def decide(self, snapshot: Snapshot, rng: random.Random) -> Decision:
        """Pick exactly one action for this tick."""
        for step in self._steps():
            decision = step(snapshot, rng)
            if decision is not None:
                return decision
        return self._default(snapshot, rng)

    def _steps(self) -> list[Step]:
        return [
            self._danger_escape,
            self._heal,
            self._engage,
            self._progress,
            self._manage_energy,
        ]

    def _danger_escape(self, snapshot: Snapshot, rng: random.Random) -> Decision | None:
        if not snapshot.current_region_unsafe:
            return None

        here = snapshot.current_region.id
        safe = snapshot.safe_reachable()
        if safe:
            return Decision(
                action=Action.move(safe[0].id),
                strategy="danger_escape",
                rationale=f"Region {here} is or will become a death zone; moving to safe region {safe[0].id}.",
            )

        fallback = snapshot.first_reachable_id()
        if fallback is not None:
            return Decision(
                action=Action.move(fallback),
                strategy="danger_escape",
                rationale=f"Region {here} is unsafe and no safe neighbour is known; leaving via {fallback}.",
            )

        return Decision(
            action=Action.rest(),
            strategy="danger_escape",
            rationale=f"Region {here} is unsafe but has no known exit.",
        )

    def _heal(self, snapshot: Snapshot, rng: random.Random) -> Decision | None:
        me = snapshot.me
        if me.hp >= self._config.heal_below_hp:
            return None

        item = me.first_recovery_item()
        if item is not None:
            return Decision(
                action=Action.use_item(item.id),
                strategy="heal",
                rationale=f"HP {me.hp:.0f} below {self._config.heal_below_hp:.0f}; using {item.name or item.id}.",
            )

        if self._config.use_medical_facility and me.ep >= 1:
            facility = snapshot.current_region.unused_interactable("medical_facility")
            if facility is not None:
                return Decision(
                    action=Action.interact(facility.id),
                    strategy="heal",
                    rationale=f"HP {me.hp:.0f} is low and a medical facility is available.",
                )
        return None

    def _should_engage(self, me: SelfState, target: VisibleAgent, damage: float) -> bool:
        if target.hp <= damage:
            return True
        return me.hp > self._config.healthy_hp and target.hp < self._config.wounded_target_hp

    def _engage(self, snapshot: Snapshot, rng: random.Random) -> Decision | None:
        me = snapshot.me
        if me.ep < self._config.engage_min_ep:
            return None

        target = weakest(snapshot.living_agents())
        if target is None:
            return None

        damage = estimated_damage(me, target)
        if not self._should_engage(me, target, damage):
            return None

        return Decision(
            action=Action.attack(target.id, TargetKind.AGENT),
            strategy="engage",
            rationale=f"Target {target.name or target.id} has {target.hp:.0f} HP against {damage:.0f} damage per hit.",
        )

    def _progress(self, snapshot: Snapshot, rng: random.Random) -> Decision | None:
        me = snapshot.me
        region = snapshot.current_region

        upgrade = me.upgrade_weapon()
        if upgrade is not None:
            return Decision(
                action=Action.equip(upgrade.id),
                strategy="equip",
                rationale=f"Weapon {upgrade.name or upgrade.id} (+{upgrade.atk_bonus:.0f}) outclasses the current one.",
            )

        if region.terrain == "ruins" and me.ep >= 1:
            return Decision(
                action=Action.explore(),
                strategy="loot",
                rationale="Ruins tend to hold loot; exploring.",
            )

        cache = region.unused_interactable("supply_cache")
        if cache is not None and me.ep >= 1:
            return Decision(
                action=Action.interact(cache.id),
                strategy="loot",
                rationale="Unopened supply cache in this region.",
            )

        return self._take_high_ground(snapshot, rng)

    def _take_high_ground(self, snapshot: Snapshot, rng: random.Random) -> Decision | None:
        if snapshot.current_region.terrain == _HIGH_GROUND_TERRAIN:
            return None
        hill = self._first_safe_with_terrain(snapshot, {_HIGH_GROUND_TERRAIN})
        if hill is None:
            return None
        return Decision(
            action=Action.move(hill.id),
            strategy="high_ground",
            rationale=f"Hills at {hill.id} give better vision.",
        )

    def _manage_energy(self, snapshot: Snapshot, rng: random.Random) -> Decision | None:
        if snapshot.me.ep >= self._config.rest_below_ep:
            return None
        return Decision(
            action=Action.rest(),
            strategy="rest",
            rationale=f"EP {snapshot.me.ep:.0f} is critically low.",
        )

    def _default(self, snapshot: Snapshot, rng: random.Random) -> Decision:
        if snapshot.me.ep > self._config.explore_above_ep:
            return Decision(
                action=Action.explore(),
                strategy="explore",
                rationale="Energy is abundant; exploring the current region.",
            )

        choices = [ref.id for ref in snapshot.reachable()]
        if not choices:
            return Decision(
                action=Action.explore(),
                strategy="explore",
                rationale="No reachable region; exploring in place.",
            )

        region_id = rng.choice(choices)
        return Decision(
            action=Action.move(region_id),
            strategy="wander",
            rationale=f"Nothing urgent; wandering to {region_id}.",
        )

    @staticmethod
    def _first_safe_with_terrain(snapshot: Snapshot, terrains: set[str] | frozenset[str]) -> RegionRef | None:
        for ref in snapshot.connected_regions:
            if ref.terrain in terrains and not snapshot.is_unsafe(ref):
                return ref
        return None


class BalancedPolicy(BaselinePolicy):
    """General-purpose policy for most roles: no progress step, never rests."""

    name = "balanced"
    default_config = PolicyConfig(
        heal_below_hp=60.0,
        healthy_hp=80.0,
        wounded_target_hp=40.0,
        rest_below_ep=0.0,
        explore_above_ep=5.0,
        use_medical_facility=False,
    )

    def _steps(self) -> list[Step]:
        return [self._danger_escape, self._heal, self._engage, self._manage_energy]

    def _should_engage(self, me: SelfState, target: VisibleAgent, damage: float) -> bool:
        return target.hp < self._config.wounded_target_hp or me.hp > self._config.healthy_hp


class StealthPolicy(BalancedPolicy):
    """Seeks concealing terrain before considering combat."""

    name = "stealth"

    def _steps(self) -> list[Step]:
        return [
            self._danger_escape,
            self._heal,
            self._seek_concealment,
            self._engage,
            self._manage_energy,
        ]

    def _seek_concealment(self, snapshot: Snapshot, rng: random.Random) -> Decision | None:
        if snapshot.current_region.terrain in _CONCEALMENT_TERRAIN:
            return None
        hideout = self._first_safe_with_terrain(snapshot, _CONCEALMENT_TERRAIN)
        if hideout is None:
            return None
        return Decision(
            action=Action.move(hideout.id),
            strategy="conceal",
            rationale=f"Moving into {hideout.terrain} at {hideout.id} for cover.",
        )


class RangedPolicy(BalancedPolicy):
    """Prefers standing attacks with a ranged weapon, then elevated terrain."""

    name = "ranged"

    def _steps(self) -> list[Step]:
        return [
            self._danger_escape,
            self._heal,
            self._standing_attack,
            self._take_high_ground,
            self._engage,
            self._manage_energy,
        ]

    def _standing_attack(self, snapshot: Snapshot, rng: random.Random) -> Decision | None:
        me = snapshot.me
        weapon = me.equipped_weapon
        if weapon is None or weapon.range < 1 or me.ep < self._config.engage_min_ep:
            return None
        target = weakest(snapshot.living_agents())
        if target is None:
            return None
        return Decision(
            action=Action.attack(target.id, TargetKind.AGENT),
            strategy="ranged_attack",
            rationale=f"Ranged weapon in hand; firing at {target.name or target.id} without closing distance.",
        )


class AggressivePolicy(BalancedPolicy):
    """Attacks anything alive whenever energy allows."""

    name = "aggressive"

    def _steps(self) -> list[Step]:
        return [self._danger_escape, self._heal, self._charge, self._manage_energy]

    def _charge(self, snapshot: Snapshot, rng: random.Random) -> Decision | None:
        if snapshot.me.ep < self._config.engage_min_ep:
            return None

        agent = weakest(snapshot.living_agents())
        if agent is not None:
            return Decision(
                action=Action.attack(agent.id, TargetKind.AGENT),
                strategy="charge",
                rationale=f"Charging agent {agent.name or agent.id}.",
            )

        monster = weakest(snapshot.visible_monsters)
        if monster is not None:
            return Decision(
                action=Action.attack(monster.id, TargetKind.MONSTER),
                strategy="charge",
                rationale=f"No agents in sight; attacking monster {monster.name or monster.id}.",
            )
        return None

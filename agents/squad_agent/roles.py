"""
Role classification and assignment.

A unit's role comes from its body: whichever of heal / ranged / melee it
carries most decides. On the first tick the fastest Vanguards become flag
Runners; every `role_reeval_ticks` the role table is patched so that no
critical role stays empty after deaths.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from env.core.types import PartKind, Role
from env.entities import Unit
from env.world.grid import Grid
from env.world.snapshot import WorldSnapshot
from infra.logger import get_logger

from .config import SquadConfig
from .state import SquadState

log = get_logger(__name__)


def classify_unit(unit: Unit) -> Role:
    """
    Map a body loadout to a role.

    Counts include disabled parts: the role reflects what the unit was
    built for, not its current damage.
    """
    melee = unit.count_parts(PartKind.ATTACK)
    ranged = unit.count_parts(PartKind.RANGED_ATTACK)
    heal = unit.count_parts(PartKind.HEAL)

    if heal > 0 and heal >= melee and heal >= ranged:
        return Role.MEDIC
    if ranged > 0 and ranged >= melee:
        return Role.RANGER
    if melee > 0:
        return Role.VANGUARD
    # carry / tough / move only
    return Role.VANGUARD


def assign_roles(snapshot: WorldSnapshot, state: SquadState, config: SquadConfig) -> Dict[int, Role]:
    """
    First assignment: classify every owned unit, then redesignate Runners and Sentinels.

    Returns the resulting role table.
    """
    for unit in snapshot.my_units:
        state.set_role(unit.id, classify_unit(unit))

    vanguards = [u for u in snapshot.my_units if state.roles[u.id] == Role.VANGUARD]
    # sorted() is stable: equal MOVE counts keep snapshot order
    fastest = sorted(vanguards, key=lambda u: -u.count_parts(PartKind.MOVE))
    runners = fastest[: config.runner_count]
    for unit in runners:
        state.set_role(unit.id, Role.RUNNER)

    home = snapshot.home_flag
    if config.sentinel_count > 0 and home is not None:
        runner_ids = {u.id for u in runners}
        remaining = [u for u in vanguards if u.id not in runner_ids]
        closest = sorted(remaining, key=lambda u: Grid.range(u.pos, home.pos))
        for unit in closest[: config.sentinel_count]:
            state.set_role(unit.id, Role.SENTINEL)

    state.initialized = True
    log.debug("Initial roster at tick %s: %s", snapshot.tick, state.role_counts())
    return dict(state.roles)


def assign_new_units(snapshot: WorldSnapshot, state: SquadState) -> List[int]:
    """Classify units seen for the first time (spawns). No Runner designation."""
    new_ids = []
    for unit in snapshot.my_units:
        if unit.id in state.roles:
            continue
        role = classify_unit(unit)
        state.set_role(unit.id, role)
        new_ids.append(unit.id)
        log.debug("Spawn detected: unit %s classified as %s", unit.id, role)
    return new_ids


def should_reevaluate(tick: int, config: SquadConfig) -> bool:
    return tick > 1 and tick % config.role_reeval_ticks == 0


def _best(candidates: List[Unit], part: PartKind) -> Optional[Unit]:
    """Most active parts of a kind, then largest body; earliest wins ties."""
    best = None
    for unit in candidates:
        key = (unit.count_active(part), len(unit.body))
        if best is None or key > best[0]:
            best = (key, unit)
    return best[1] if best else None


def reevaluate_roles(snapshot: WorldSnapshot, state: SquadState, config: SquadConfig) -> List[Dict[str, object]]:
    """
    Patch role gaps left by deaths.

    Returns one event per promotion.
    """
    live = snapshot.my_unit_ids
    for uid in [u for u in state.roles if u not in live]:
        state.release_charger(uid, restore=False)
        del state.roles[uid]

    def with_role(role: Role) -> List[Unit]:
        return [u for u in snapshot.my_units if state.roles.get(u.id) == role]

    changes: List[Dict[str, object]] = []

    def promote(unit: Unit, new_role: Role, reason: str) -> None:
        old = state.roles[unit.id]
        state.set_role(unit.id, new_role)
        changes.append({
            "kind": "role_change",
            "unit_id": unit.id,
            "from": old.value,
            "to": new_role.value,
            "reason": reason,
        })
        log.debug("Tick %s: unit %s %s -> %s (%s)", snapshot.tick, unit.id, old, new_role, reason)

    rangers = with_role(Role.RANGER)
    if not with_role(Role.VANGUARD) and len(rangers) >= config.min_rangers_for_vanguard_promotion:
        best = _best(rangers, PartKind.ATTACK)
        if best is not None:
            promote(best, Role.VANGUARD, "no vanguard")

    rangers = with_role(Role.RANGER)
    if not with_role(Role.MEDIC) and len(rangers) >= config.min_rangers_for_medic_conversion:
        healers = [u for u in rangers if u.count_active(PartKind.HEAL) >= 1]
        best = _best(healers, PartKind.HEAL)
        if best is not None:
            promote(best, Role.MEDIC, "no medic")

    runners = with_role(Role.RUNNER)
    if not with_role(Role.VANGUARD) and len(runners) > 1:
        best = _best(runners, PartKind.ATTACK)
        if best is not None:
            promote(best, Role.VANGUARD, "no vanguard, runner recalled")

    return changes

"""
SquadState - the controller's whole per-match memory in one value.

`run_tick` copies the state, mutates the copy and returns it, so every
mutation site is visible and a state can be built by hand in tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, TYPE_CHECKING

from env.core.types import ChargerState, GridPos, Owner, Role
from env.world.snapshot import WorldSnapshot
from infra.logger import get_logger

if TYPE_CHECKING:
    from .influence import InfluenceField

log = get_logger(__name__)


@dataclass
class SquadState:
    """
    Per-match squad memory.

    Attributes:
        roles: Role of every living owned unit
        previous_roles: Role to restore when a charger is released
        tower_to_charger / charger_to_tower: Exclusive tower <-> unit bindings
        charger_states: WITHDRAW/DELIVER per bound unit
        focus_target_id: Shared focus-fire enemy
        tank_id: Designated tank
        sticky_objective_id / sticky_set_tick: Locked flag objective and lock time
        movement_targets: Per-unit destination written by the commander
        formation_point: Medic gathering point behind the tank
        centroid: Squad centroid of the current tick
        interceptors: Unit id -> owned flag id it is defending
        influence: Cached influence field
        initialized: True once the first role assignment ran
        last_flag_owners: Flag ownership seen last tick
    """

    roles: Dict[int, Role] = field(default_factory=dict)
    previous_roles: Dict[int, Role] = field(default_factory=dict)
    tower_to_charger: Dict[int, int] = field(default_factory=dict)
    charger_to_tower: Dict[int, int] = field(default_factory=dict)
    charger_states: Dict[int, ChargerState] = field(default_factory=dict)
    focus_target_id: Optional[int] = None
    tank_id: Optional[int] = None
    sticky_objective_id: Optional[int] = None
    sticky_set_tick: int = 0
    movement_targets: Dict[int, GridPos] = field(default_factory=dict)
    formation_point: Optional[GridPos] = None
    centroid: Optional[GridPos] = None
    interceptors: Dict[int, int] = field(default_factory=dict)
    influence: Optional["InfluenceField"] = None
    initialized: bool = False
    last_flag_owners: Dict[int, Owner] = field(default_factory=dict)

    def copy(self) -> SquadState:
        """Shallow-copy every table; the influence field is shared read-only."""
        return SquadState(
            roles=dict(self.roles),
            previous_roles=dict(self.previous_roles),
            tower_to_charger=dict(self.tower_to_charger),
            charger_to_tower=dict(self.charger_to_tower),
            charger_states=dict(self.charger_states),
            focus_target_id=self.focus_target_id,
            tank_id=self.tank_id,
            sticky_objective_id=self.sticky_objective_id,
            sticky_set_tick=self.sticky_set_tick,
            movement_targets=dict(self.movement_targets),
            formation_point=self.formation_point,
            centroid=self.centroid,
            interceptors=dict(self.interceptors),
            influence=self.influence,
            initialized=self.initialized,
            last_flag_owners=dict(self.last_flag_owners),
        )

    # ------------------------------------------------------------------
    # Roles and charger bindings
    # ------------------------------------------------------------------
    def set_role(self, unit_id: int, role: Role) -> None:
        """Assign a role; leaving LOGISTICS releases the charger binding."""
        if self.roles.get(unit_id) == Role.LOGISTICS and role != Role.LOGISTICS:
            self.release_charger(unit_id, restore=False)
        self.roles[unit_id] = role

    def count_role(self, role: Role) -> int:
        return sum(1 for r in self.roles.values() if r == role)

    def bind_charger(self, unit_id: int, tower_id: int) -> None:
        """
        Bind a unit to a tower exclusively; the unit becomes LOGISTICS.

        Raises:
            ValueError: If either side is already bound
        """
        if unit_id in self.charger_to_tower or tower_id in self.tower_to_charger:
            raise ValueError(f"Unit {unit_id} or tower {tower_id} is already bound")
        self.previous_roles[unit_id] = self.roles.get(unit_id, Role.VANGUARD)
        self.roles[unit_id] = Role.LOGISTICS
        self.charger_to_tower[unit_id] = tower_id
        self.tower_to_charger[tower_id] = unit_id
        self.charger_states[unit_id] = ChargerState.WITHDRAW

    def release_charger(self, unit_id: int, *, restore: bool = True) -> Optional[int]:
        """
        Drop a unit's binding. Returns the tower it was bound to.

        With `restore`, a unit still in the role table gets its previous role back.
        """
        tower_id = self.charger_to_tower.pop(unit_id, None)
        if tower_id is not None and self.tower_to_charger.get(tower_id) == unit_id:
            del self.tower_to_charger[tower_id]
        self.charger_states.pop(unit_id, None)
        previous = self.previous_roles.pop(unit_id, None)
        if restore and self.roles.get(unit_id) == Role.LOGISTICS:
            self.roles[unit_id] = previous or Role.VANGUARD
        return tower_id

    def bindings_consistent(self) -> bool:
        """True when the two binding tables mirror each other exactly."""
        if len(self.tower_to_charger) != len(self.charger_to_tower):
            return False
        return all(self.charger_to_tower.get(u) == t for t, u in self.tower_to_charger.items())

    # ------------------------------------------------------------------
    # Liveness sweep
    # ------------------------------------------------------------------
    def sweep(self, snapshot: WorldSnapshot) -> Dict[int, Role]:
        """
        Purge every reference to objects absent from the snapshot.

        Runs once per tick before any table is read. Returns the dead owned
        units with the role they held.
        """
        live_units = snapshot.my_unit_ids
        live_towers = {t.id for t in snapshot.my_towers}
        live_flags = {f.id for f in snapshot.flags}

        dead = {uid: role for uid, role in self.roles.items() if uid not in live_units}
        for uid in dead:
            self.release_charger(uid, restore=False)
            del self.roles[uid]

        for uid in [u for u in self.charger_to_tower if u not in live_units]:
            self.release_charger(uid, restore=False)
        for tower_id, uid in list(self.tower_to_charger.items()):
            if tower_id not in live_towers:
                log.debug("Tower %s gone, releasing charger %s", tower_id, uid)
                self.release_charger(uid)

        for table in (self.previous_roles, self.charger_states, self.movement_targets):
            for uid in [u for u in table if u not in live_units]:
                del table[uid]
        for uid, flag_id in list(self.interceptors.items()):
            if uid not in live_units or flag_id not in live_flags:
                del self.interceptors[uid]

        if self.tank_id is not None and self.tank_id not in live_units:
            self.tank_id = None
        if self.focus_target_id is not None and snapshot.get_enemy(self.focus_target_id) is None:
            self.focus_target_id = None
        if self.sticky_objective_id is not None and self.sticky_objective_id not in live_flags:
            self.sticky_objective_id = None

        return dead

    def role_counts(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for role in self.roles.values():
            counts[role.value] = counts.get(role.value, 0) + 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly summary (the influence field is reduced to its build tick)."""
        return {
            "roles": {str(uid): role.value for uid, role in self.roles.items()},
            "chargers": {str(uid): tid for uid, tid in self.charger_to_tower.items()},
            "charger_states": {str(uid): s.value for uid, s in self.charger_states.items()},
            "focus_target_id": self.focus_target_id,
            "tank_id": self.tank_id,
            "sticky_objective_id": self.sticky_objective_id,
            "formation_point": list(self.formation_point) if self.formation_point else None,
            "interceptors": {str(uid): fid for uid, fid in self.interceptors.items()},
            "influence_built_at": self.influence.built_at_tick if self.influence else None,
        }

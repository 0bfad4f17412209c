"""
Shared order validation helpers.

Validation combines the actor's own capabilities (active parts, fatigue,
cargo) with world-dependent checks (bounds, target validity, range) so
executors and tests use the same rules. Failures are codes, not exceptions.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Union

from .constants import MELEE_RANGE, RANGED_HEAL_RANGE, RANGED_RANGE, TOWER_RANGE, TRANSFER_RANGE
from .types import ActionType, ActionValidation, Owner, PartKind

if TYPE_CHECKING:
    from ..entities import Tower, Unit
    from ..world.snapshot import WorldSnapshot
    from .actions import Action

# Part each unit action needs, and the range it acts at.
_UNIT_REQUIREMENTS = {
    ActionType.ATTACK: (PartKind.ATTACK, MELEE_RANGE),
    ActionType.RANGED_ATTACK: (PartKind.RANGED_ATTACK, RANGED_RANGE),
    ActionType.RANGED_MASS_ATTACK: (PartKind.RANGED_ATTACK, RANGED_RANGE),
    ActionType.HEAL: (PartKind.HEAL, MELEE_RANGE),
    ActionType.RANGED_HEAL: (PartKind.HEAL, RANGED_HEAL_RANGE),
    ActionType.WITHDRAW: (PartKind.CARRY, TRANSFER_RANGE),
    ActionType.TRANSFER: (PartKind.CARRY, TRANSFER_RANGE),
}


def validate_action_in_world(
    snapshot: WorldSnapshot,
    actor: Union[Unit, Tower],
    action: Action,
) -> ActionValidation:
    """
    Validate an order for an owned unit or tower against a snapshot.

    Returns a success result or a failure carrying one of the codes
    documented on ActionValidation.
    """
    from ..entities import Tower

    if isinstance(actor, Tower):
        return _validate_tower(snapshot, actor, action)

    if actor.spawning or snapshot.get_my_unit(actor.id) is None:
        return ActionValidation.fail("DEAD", f"{actor.label()} is not available")

    if action.type == ActionType.WAIT:
        return ActionValidation.success()

    if action.type == ActionType.MOVE:
        if not actor.has_active(PartKind.MOVE):
            return ActionValidation.fail("NO_BODYPART", f"{actor.label()} has no active MOVE part")
        if actor.fatigue > 0:
            return ActionValidation.fail("TIRED", f"{actor.label()} fatigue={actor.fatigue}")
        dx, dy = action.direction.delta
        new_pos = (actor.pos[0] + dx, actor.pos[1] + dy)
        if not snapshot.grid.is_walkable(new_pos):
            return ActionValidation.fail(
                "OUT_OF_BOUNDS", f"{actor.label()} cannot move {action.direction.name}"
            )
        return ActionValidation.success()

    part, max_range = _UNIT_REQUIREMENTS[action.type]
    if not actor.has_active(part):
        return ActionValidation.fail("NO_BODYPART", f"{actor.label()} has no active {part.name} part")

    if action.type == ActionType.RANGED_MASS_ATTACK:
        return ActionValidation.success()

    if action.type in (ActionType.ATTACK, ActionType.RANGED_ATTACK):
        target = snapshot.get_enemy(action.target_id)
        if target is None:
            return ActionValidation.fail("INVALID_TARGET", f"{actor.label()} target invalid or dead")
        return _in_range(actor, target.pos, max_range, snapshot)

    if action.type in (ActionType.HEAL, ActionType.RANGED_HEAL):
        target = snapshot.get_my_unit(action.target_id)
        if target is None:
            return ActionValidation.fail("INVALID_TARGET", f"{actor.label()} heal target invalid")
        return _in_range(actor, target.pos, max_range, snapshot)

    if action.type == ActionType.WITHDRAW:
        container = next((c for c in snapshot.containers if c.id == action.target_id), None)
        if container is None:
            return ActionValidation.fail("INVALID_TARGET", f"{actor.label()} container invalid")
        if container.energy <= 0:
            return ActionValidation.fail("NOT_ENOUGH_RESOURCES", "Container is empty")
        if actor.free_capacity <= 0:
            return ActionValidation.fail("FULL", f"{actor.label()} cargo is full")
        return _in_range(actor, container.pos, max_range, snapshot)

    # TRANSFER
    tower = snapshot.get_tower(action.target_id)
    if tower is None or tower.owner != Owner.MINE:
        return ActionValidation.fail("INVALID_TARGET", f"{actor.label()} transfer target invalid")
    if actor.energy <= 0:
        return ActionValidation.fail("NOT_ENOUGH_RESOURCES", f"{actor.label()} carries no energy")
    if tower.free_capacity <= 0:
        return ActionValidation.fail("FULL", f"Tower#{tower.id} is full")
    return _in_range(actor, tower.pos, max_range, snapshot)


def _validate_tower(snapshot: WorldSnapshot, tower: Tower, action: Action) -> ActionValidation:
    if tower.owner != Owner.MINE:
        return ActionValidation.fail("INVALID_TARGET", f"Tower#{tower.id} is not ours")
    if action.type == ActionType.WAIT:
        return ActionValidation.success()
    if action.type not in (ActionType.ATTACK, ActionType.HEAL):
        return ActionValidation.fail("INVALID_TARGET", f"Towers cannot {action.type.name}")
    if tower.cooldown > 0:
        return ActionValidation.fail("BUSY", f"Tower#{tower.id} cooling down")
    if tower.energy <= 0:
        return ActionValidation.fail("NOT_ENOUGH_RESOURCES", f"Tower#{tower.id} has no energy")
    target = (
        snapshot.get_enemy(action.target_id)
        if action.type == ActionType.ATTACK
        else snapshot.get_my_unit(action.target_id)
    )
    if target is None:
        return ActionValidation.fail("INVALID_TARGET", f"Tower#{tower.id} target invalid")
    if snapshot.grid.range(tower.pos, target.pos) > TOWER_RANGE:
        return ActionValidation.fail("NOT_IN_RANGE", f"Tower#{tower.id} target out of range")
    return ActionValidation.success()


def _in_range(actor: Unit, pos, max_range: int, snapshot: WorldSnapshot) -> ActionValidation:
    distance = snapshot.grid.range(actor.pos, pos)
    if distance > max_range:
        return ActionValidation.fail(
            "NOT_IN_RANGE", f"{actor.label()} target out of range ({distance} > {max_range})"
        )
    return ActionValidation.success()

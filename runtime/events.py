from typing import Any, Dict, List, Optional

from env.world.snapshot import SnapshotDelta, WorldSnapshot


def extract_events(
    *,
    previous: Optional[WorldSnapshot],
    current: WorldSnapshot,
) -> List[Dict[str, Any]]:
    """
    Match-level events between two consecutive snapshots.
    """
    delta = SnapshotDelta.between(previous, current)
    events: List[Dict[str, Any]] = []

    # ---------------------------------------------------------
    # 1. SPAWNS (skipped on the first tick: everything is new)
    # ---------------------------------------------------------
    if previous is not None:
        for unit_id in sorted(delta.spawned):
            events.append({"type": "UNIT_SPAWNED", "tick": current.tick, "unit_id": unit_id})

    # ---------------------------------------------------------
    # 2. LOSSES
    # ---------------------------------------------------------
    for unit_id in sorted(delta.died):
        unit = previous.get_my_unit(unit_id)
        events.append({
            "type": "UNIT_LOST",
            "tick": current.tick,
            "unit_id": unit_id,
            "last_position": unit.pos if unit else None,
            "severity": "HIGH",
        })

    # ---------------------------------------------------------
    # 3. FLAGS
    # ---------------------------------------------------------
    if not delta.ownership_changed:
        return events
    for flag_id in sorted(delta.flags_captured):
        events.append({"type": "FLAG_CAPTURED", "tick": current.tick, "flag_id": flag_id})
    for flag_id in sorted(delta.flags_lost):
        events.append({"type": "FLAG_LOST", "tick": current.tick, "flag_id": flag_id, "severity": "HIGH"})
    for flag_id in sorted(delta.flags_taken_by_enemy - delta.flags_lost):
        events.append({"type": "FLAG_TAKEN_BY_ENEMY", "tick": current.tick, "flag_id": flag_id})

    return events

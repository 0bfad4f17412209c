"""
Write-only match diagnostics.

SquadDiagnostics counts what every role did, records deaths, spawns and
flag changes, samples compute time, and periodically pushes a compact
summary to a DiagnosticsSink. Nothing in the decision logic reads it.
"""

from __future__ import annotations

import json
from collections import Counter, defaultdict
from typing import Any, Dict, List, Optional

from env.interfaces import DiagnosticsSink
from env.world.snapshot import WorldSnapshot
from infra.logger import get_logger

from .decisions import TickResult

log = get_logger(__name__)

ACTIVITIES = ("move", "attack", "heal", "harvest", "idle")
TRACKED_EVENTS = ("death", "spawn", "role_change", "charger_bound", "charger_released", "flag_change")


class LoggingSink:
    """Default sink: one JSON line per payload on the diagnostics logger."""

    def __init__(self, logger=None):
        self.logger = logger or log

    def emit(self, kind: str, payload: Dict[str, Any]) -> None:
        self.logger.info("%s %s", kind, json.dumps(payload, sort_keys=True, default=str))


class MemorySink:
    """Keeps every payload in a list; handy for tests and the HTTP driver."""

    def __init__(self):
        self.records: List[Dict[str, Any]] = []

    def emit(self, kind: str, payload: Dict[str, Any]) -> None:
        self.records.append({"kind": kind, **payload})


class SquadDiagnostics:
    """
    Accumulates per-match counters.

    Args:
        interval: Ticks between periodic summaries (a summary is also sent at tick 1)
        sink: Where summaries and the end-of-match report go
    """

    def __init__(self, interval: int = 100, sink: Optional[DiagnosticsSink] = None):
        self.interval = interval
        self.sink: DiagnosticsSink = sink or LoggingSink()
        self.reset()

    def reset(self) -> None:
        self.actions: Dict[str, Counter] = defaultdict(Counter)
        self.events: Counter = Counter()
        self.idle_ticks: Counter = Counter()
        self.cpu_samples: List[int] = []
        self.ticks_seen = 0
        self.last_tick = 0

    def record_tick(self, snapshot: WorldSnapshot, result: TickResult) -> None:
        self.ticks_seen += 1
        self.last_tick = result.tick
        self.cpu_samples.append(snapshot.cpu_time_ns)

        for uid, orders in result.unit_orders.items():
            activity = orders.activity
            self.actions[orders.role.value][activity] += 1
            if activity == "idle":
                self.idle_ticks[uid] += 1

        for event in result.events:
            kind = event.get("kind")
            if kind in TRACKED_EVENTS:
                self.events[kind] += 1

        if result.tick == 1 or result.tick % self.interval == 0:
            self.sink.emit("squad_summary", self.summary(snapshot, result))

    def summary(self, snapshot: WorldSnapshot, result: TickResult) -> Dict[str, Any]:
        roles = Counter(o.role.value for o in result.unit_orders.values())
        return {
            "tick": result.tick,
            "phase": str(result.phase),
            "units": len(snapshot.my_units),
            "enemies": len(snapshot.enemies),
            "flags": {
                "mine": len(snapshot.my_flags),
                "enemy": len(snapshot.enemy_flags),
                "neutral": len(snapshot.neutral_flags),
            },
            "roles": dict(roles),
            "focus": result.focus_target_id,
            "tank": result.tank_id,
            "cpu_ms": round(snapshot.cpu_time_ns / 1e6, 3),
        }

    def report(self) -> Dict[str, Any]:
        """End-of-match report."""
        cpu = self.cpu_samples
        return {
            "ticks": self.ticks_seen,
            "last_tick": self.last_tick,
            "actions": {role: {a: counts.get(a, 0) for a in ACTIVITIES} for role, counts in self.actions.items()},
            "events": dict(self.events),
            "most_idle": [uid for uid, _ in self.idle_ticks.most_common(5)],
            "cpu_ms": {
                "avg": round(sum(cpu) / len(cpu) / 1e6, 3) if cpu else 0.0,
                "max": round(max(cpu) / 1e6, 3) if cpu else 0.0,
            },
        }

    def end_of_match(self) -> Dict[str, Any]:
        report = self.report()
        self.sink.emit("squad_report", report)
        return report

from __future__ import annotations

from typing import Any, Dict, List, Optional

from agents import BaseAgent, create_agent_from_spec
from env.scenario import Scenario
from env.world import WorldSnapshot, WorldState
from infra.logger import get_logger

from .events import extract_events
from .executor import RecordingExecutor
from .frame import Frame, OrderFailure

log = get_logger(__name__)


class GameRunner:
    """
    Step-by-step match runner that returns UI-friendly frames.

    The runner owns the in-memory world, the agent and the executor. Each
    step snapshots the world, asks the agent for orders, executes them
    and advances the tick. Rejected orders are logged and the match goes on.
    """

    def __init__(
        self,
        scenario: Scenario,
        agent: Optional[BaseAgent] = None,
        world: Optional[WorldState] = None,
        executor: Optional[RecordingExecutor] = None,
    ):
        self.scenario = scenario.clone()
        self.world = world or self.scenario.build_world()
        self.agent = agent or create_agent_from_spec(self.scenario.agent)
        self.executor = executor or RecordingExecutor()

        self._previous: Optional[WorldSnapshot] = None
        self._done = False
        self.frames: List[Frame] = []

        log.info("GameRunner initialized: %s with agent %s", self.scenario, self.agent)

    # ------------------------------------------------------------------#
    # Core API
    # ------------------------------------------------------------------#
    @property
    def tick(self) -> int:
        return self.world.tick

    @property
    def done(self) -> bool:
        return self._done

    @property
    def last_snapshot(self) -> Optional[WorldSnapshot]:
        return self._previous

    def step(self) -> Frame:
        """Run one tick and return its frame."""
        if self._done:
            raise RuntimeError("Match is over; call reset() to start again")

        snapshot = self.world.snapshot()
        events = extract_events(previous=self._previous, current=snapshot)
        result = self.agent.get_actions(snapshot)

        self.executor.begin(snapshot)
        executed = 0
        failures: List[OrderFailure] = []
        orders = [(uid, a) for uid, o in result.unit_orders.items() for a in o.actions()]
        orders.extend(result.tower_orders.items())
        for actor_id, action in orders:
            outcome = self.executor.execute(actor_id, action)
            if outcome.valid:
                executed += 1
                continue
            failures.append(OrderFailure(actor_id, action.to_dict(), outcome.error_code, outcome.message))
            log.warning("Tick %s: order %s for %s rejected: %s", snapshot.tick, action, actor_id, outcome.message)

        for event in events:
            log.info("Tick %s event: %s", snapshot.tick, event)

        self._previous = snapshot
        self._done = snapshot.tick >= self.scenario.max_ticks
        if self._done:
            report = self.agent.on_match_end(snapshot)
            log.info("Match finished at tick %s: %s", snapshot.tick, report)
        else:
            self.world.advance()

        frame = Frame(
            tick=snapshot.tick,
            result=result,
            executed=executed,
            failures=failures,
            events=events,
            done=self._done,
        )
        self.frames.append(frame)
        return frame

    def run(self, max_ticks: Optional[int] = None) -> List[Frame]:
        """Step until the match ends or `max_ticks` more ticks have run."""
        frames: List[Frame] = []
        while not self._done and (max_ticks is None or len(frames) < max_ticks):
            frames.append(self.step())
        return frames

    def reset(self) -> None:
        self.world = self.scenario.build_world()
        self.agent.reset()
        self.executor.clear()
        self._previous = None
        self._done = False
        self.frames = []

    def status(self) -> Dict[str, Any]:
        return {
            "tick": self.tick,
            "done": self._done,
            "frames": len(self.frames),
            "agent": str(self.agent),
        }

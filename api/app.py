"""HTTP API entrypoint for driving the squad controller from a host simulation."""

from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, ValidationError

from agents import BaseAgent, create_agent_from_spec
from env.scenario import Scenario
from env.world.snapshot import WorldSnapshot
from infra.logger import get_logger
from runtime.runner import GameRunner

log = get_logger(__name__)

app = FastAPI(title="Squad controller")
agent: Optional[BaseAgent] = None
runner: Optional[GameRunner] = None
ticks_served = 0


# Allow a browser-based host (served from file:// or other origins)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


class StartRequest(BaseModel):
    agent: Dict[str, Any] = Field(default_factory=lambda: {"type": "squad"})
    scenario: Optional[Dict[str, Any]] = None


class TickRequest(BaseModel):
    snapshot: Dict[str, Any]


@app.post("/start")
def start(request: StartRequest):
    """Start a match: a bare agent fed by /tick, or a headless scenario driven by /step."""
    global agent, runner, ticks_served
    try:
        if request.scenario is not None:
            scenario = Scenario.from_dict(request.scenario)
            if "agent" not in request.scenario:
                scenario.agent = dict(request.agent)
            runner = GameRunner(scenario)
            agent = runner.agent
        else:
            runner = None
            agent = create_agent_from_spec(request.agent)
    except (ValueError, TypeError, ValidationError) as exc:
        raise HTTPException(400, str(exc)) from exc
    ticks_served = 0
    log.info("Match started with agent %s (scenario=%s)", agent, runner is not None)
    return {"success": True, "agent": str(agent), "headless": runner is not None}


@app.post("/tick")
def tick(request: TickRequest):
    """Compute orders for one snapshot posted by the host."""
    global ticks_served
    if agent is None:
        raise HTTPException(400, "No active match")
    try:
        snapshot = WorldSnapshot.from_dict(request.snapshot)
    except (KeyError, ValueError, TypeError) as exc:
        raise HTTPException(422, f"Malformed snapshot: {exc}") from exc
    result = agent.get_actions(snapshot)
    ticks_served += 1
    return result.to_dict()


@app.post("/step")
def step():
    """Advance the headless scenario by one tick."""
    if runner is None:
        raise HTTPException(400, "No headless match; start one with a scenario")
    try:
        return runner.step().to_dict()
    except RuntimeError as exc:
        raise HTTPException(400, str(exc)) from exc


@app.post("/stop")
def stop(snapshot: Optional[Dict[str, Any]] = None):
    global agent, runner
    if agent is None:
        raise HTTPException(400, "No active match")
    report: Dict[str, Any] = {}
    if snapshot is not None:
        report = agent.on_match_end(WorldSnapshot.from_dict(snapshot))
    elif runner is not None and runner.last_snapshot is not None and not runner.done:
        report = agent.on_match_end(runner.last_snapshot)
    agent = None
    runner = None
    return {"success": True, "message": "Match stopped", "report": report}


@app.get("/status")
def status():
    if agent is None:
        return {"active": False}
    payload: Dict[str, Any] = {"active": True, "agent": str(agent), "ticks_served": ticks_served}
    if runner is not None:
        payload.update(runner.status())
    return payload

from __future__ import annotations

from typing import Any, Dict, Union

from infra.logger import get_logger

from .base_agent import BaseAgent
from .registry import resolve_agent_class
from .spec import AgentSpec

log = get_logger(__name__)


def create_agent_from_spec(spec: Union[AgentSpec, Dict[str, Any]]) -> BaseAgent:
    """
    Build the agent described by `spec` (an AgentSpec or its dict form).

    Raises:
        ValueError: Unknown type, or init params the agent rejects
        TypeError: The resolved class does not produce a BaseAgent
    """
    if not isinstance(spec, AgentSpec):
        spec = AgentSpec.from_dict(spec)

    kwargs = dict(spec.init_params)
    if spec.name is not None:
        kwargs.setdefault("name", spec.name)

    agent = resolve_agent_class(spec.type)(**kwargs)
    if not isinstance(agent, BaseAgent):
        raise TypeError(f"'{spec.type}' built {type(agent).__name__}, not a BaseAgent")

    log.info("Created agent %s from '%s' (config overrides: %s)", agent, spec.type,
             sorted(spec.config_overrides) or "none")
    return agent

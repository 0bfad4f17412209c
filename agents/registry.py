from __future__ import annotations

import importlib
from typing import Callable, Dict, List, Type, TypeVar

from infra.logger import get_logger

from .base_agent import BaseAgent

log = get_logger(__name__)

AGENT_REGISTRY: Dict[str, Type[BaseAgent]] = {}
AgentType = TypeVar("AgentType", bound=Type[BaseAgent])


def register_agent(key: str, cls: AgentType | None = None) -> AgentType | Callable[[AgentType], AgentType]:
    """
    Make an agent class constructible by key from scenarios and API requests.

    Works as `@register_agent("squad")` or as `register_agent("squad", SquadAgent)`.
    Re-registering the same class is a no-op; claiming a key that another
    class already holds raises ValueError.
    """
    def decorator(target_cls: AgentType) -> AgentType:
        current = AGENT_REGISTRY.get(key)
        if current is not None and current.__qualname__ != target_cls.__qualname__:
            raise ValueError(f"Agent key '{key}' already registered to {current.__qualname__}")
        AGENT_REGISTRY[key] = target_cls
        log.debug("Registered agent '%s' -> %s", key, target_cls.__qualname__)
        return target_cls

    return decorator if cls is None else decorator(cls)


def available_agents() -> List[str]:
    return sorted(AGENT_REGISTRY)


def resolve_agent_class(type_ref: str) -> Type[BaseAgent]:
    """
    Look up `type_ref` in the registry, falling back to a dotted import
    path ("pkg.module.Class") for agents defined outside this package.
    """
    registered = AGENT_REGISTRY.get(type_ref)
    if registered is not None:
        return registered

    module_name, _, class_name = type_ref.rpartition(".")
    if not module_name:
        known = ", ".join(available_agents()) or "none"
        raise ValueError(f"Unknown agent type '{type_ref}' (registered: {known})")

    try:
        cls = getattr(importlib.import_module(module_name), class_name)
    except (ImportError, AttributeError) as exc:
        raise ValueError(f"Cannot import agent '{type_ref}': {exc}") from exc

    if not (isinstance(cls, type) and issubclass(cls, BaseAgent)):
        raise TypeError(f"{type_ref} is not a BaseAgent subclass")
    return cls

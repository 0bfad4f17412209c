from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class AgentSpec:
    """
    Serializable description of the agent that drives a match.

    Scenarios and API requests carry this as a dict; the factory turns it
    into an instance. Controller thresholds travel in
    `init_params["config"]` as SquadConfig overrides.
    """
    type: str
    name: Optional[str] = None
    init_params: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.type, str) or not self.type:
            raise ValueError(f"AgentSpec type must be a non-empty string, got {self.type!r}")

    @property
    def config_overrides(self) -> Dict[str, Any]:
        return dict(self.init_params.get("config") or {})

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type, "init_params": self.init_params}
        if self.name is not None:
            data["name"] = self.name
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AgentSpec":
        if "type" not in data:
            raise ValueError("AgentSpec requires 'type'")
        return cls(
            type=data["type"],
            name=data.get("name"),
            init_params=dict(data.get("init_params") or {}),
        )

    def with_config(self, **overrides: Any) -> "AgentSpec":
        """Return a copy whose config overrides include `overrides` (later wins)."""
        params = dict(self.init_params)
        params["config"] = {**self.config_overrides, **overrides}
        return AgentSpec(type=self.type, name=self.name, init_params=params)

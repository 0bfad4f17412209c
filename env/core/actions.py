"""
Action definitions and utilities.

Actions represent commands given to units and towers. This module provides:
- Action dataclass
- Parameter validation
- Action factory methods
- Action serialization
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Any
import json

from .types import ActionType, MoveDir

# Parameter each action type requires, and its expected Python type.
_REQUIRED_PARAMS: Dict[ActionType, Dict[str, type]] = {
    ActionType.WAIT: {},
    ActionType.MOVE: {"dir": MoveDir},
    ActionType.ATTACK: {"target_id": int},
    ActionType.RANGED_ATTACK: {"target_id": int},
    ActionType.RANGED_MASS_ATTACK: {},
    ActionType.HEAL: {"target_id": int},
    ActionType.RANGED_HEAL: {"target_id": int},
    ActionType.WITHDRAW: {"target_id": int},
    ActionType.TRANSFER: {"target_id": int},
}


@dataclass
class Action:
    """
    A command for a unit or tower.

    Actions consist of a type and optional parameters. The parameters
    are validated based on the action type.

    Use static factory methods for convenient construction:
        - Action.wait()
        - Action.move(direction)
        - Action.attack(target_id) / Action.ranged_attack(target_id)
        - Action.ranged_mass_attack()
        - Action.heal(target_id) / Action.ranged_heal(target_id)
        - Action.withdraw(container_id) / Action.transfer(structure_id)
    """

    type: ActionType
    params: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate action parameters after initialization."""
        self._validate()

    def _validate(self) -> None:
        """
        Validate that parameters match the action type.

        Raises:
            ValueError: If parameters are invalid for the action type
        """
        required = _REQUIRED_PARAMS[self.type]
        if not required and self.params:
            raise ValueError(f"{self.type.name} action should have no parameters")

        for name, expected in required.items():
            if name not in self.params:
                raise ValueError(f"{self.type.name} action requires '{name}' parameter")
            value = self.params[name]
            if not isinstance(value, expected) or isinstance(value, bool):
                raise ValueError(
                    f"'{name}' must be {expected.__name__}, got {type(value).__name__}"
                )

    @property
    def target_id(self) -> int | None:
        return self.params.get("target_id")

    @property
    def direction(self) -> MoveDir | None:
        return self.params.get("dir")

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert action to a JSON-serializable dictionary.

        Returns:
            Dictionary representation of the action
        """
        params_dict = {}
        for key, value in self.params.items():
            if isinstance(value, MoveDir):
                params_dict[key] = value.name
            else:
                params_dict[key] = value

        return {
            "type": self.type.name,
            "params": params_dict
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Action:
        """
        Create an action from a dictionary.

        Raises:
            ValueError: If dictionary format is invalid
        """
        if "type" not in data:
            raise ValueError("Action dictionary must contain 'type'")

        action_type = ActionType[data["type"]]
        params = dict(data.get("params", {}))

        # Convert string direction back to enum
        if "dir" in params and isinstance(params["dir"], str):
            params["dir"] = MoveDir[params["dir"]]

        return cls(type=action_type, params=params)

    def to_json(self) -> str:
        """Convert action to JSON string."""
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    @classmethod
    def from_json(cls, json_str: str) -> Action:
        """Create action from JSON string."""
        return cls.from_dict(json.loads(json_str))

    def __str__(self) -> str:
        """Human-readable string representation."""
        if self.type == ActionType.WAIT:
            return "WAIT"
        if self.type == ActionType.MOVE:
            return f"MOVE {self.params['dir'].name}"
        if self.type == ActionType.RANGED_MASS_ATTACK:
            return "RANGED_MASS_ATTACK"
        return f"{self.type.name} target={self.params['target_id']}"

    # FACTORY METHODS
    @staticmethod
    def wait() -> Action:
        """Do nothing this tick."""
        return Action(ActionType.WAIT)

    @staticmethod
    def move(direction: MoveDir) -> Action:
        """Step one tile in `direction`."""
        return Action(ActionType.MOVE, {"dir": direction})

    @staticmethod
    def attack(target_id: int) -> Action:
        """Melee attack an adjacent target."""
        return Action(ActionType.ATTACK, {"target_id": target_id})

    @staticmethod
    def ranged_attack(target_id: int) -> Action:
        """Single-target ranged attack."""
        return Action(ActionType.RANGED_ATTACK, {"target_id": target_id})

    @staticmethod
    def ranged_mass_attack() -> Action:
        """Area attack hitting every enemy within ranged range."""
        return Action(ActionType.RANGED_MASS_ATTACK)

    @staticmethod
    def heal(target_id: int) -> Action:
        """Heal an adjacent ally, or the unit itself."""
        return Action(ActionType.HEAL, {"target_id": target_id})

    @staticmethod
    def ranged_heal(target_id: int) -> Action:
        """Heal an ally at range."""
        return Action(ActionType.RANGED_HEAL, {"target_id": target_id})

    @staticmethod
    def withdraw(container_id: int) -> Action:
        """Withdraw energy from an adjacent container."""
        return Action(ActionType.WITHDRAW, {"target_id": container_id})

    @staticmethod
    def transfer(structure_id: int) -> Action:
        """Transfer carried energy into an adjacent structure."""
        return Action(ActionType.TRANSFER, {"target_id": structure_id})

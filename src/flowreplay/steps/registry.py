"""
Step action registry.

The registry maps a recorded step ``type`` to the action that replays it.
The engine looks actions up here; a type with no registered action is
reported as unsupported and skipped.

Usage:
    from flowreplay.steps.registry import default_registry

    action = default_registry.get_optional("click")
"""

from typing import Iterator

from flowreplay.steps.base import StepAction


class StepRegistry:
    """
    Registry for looking up step actions by type.

    Attributes:
        _actions: Internal mapping of step types to action instances
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._actions: dict[str, StepAction] = {}

    def register(self, action: StepAction) -> None:
        """
        Register an action, replacing any action already registered for its type.

        Raises:
            ValueError: If action is None or has an empty step type
        """
        if action is None:
            msg = "Cannot register None as a step action"
            raise ValueError(msg)

        step_type = action.step_type
        if not step_type:
            msg = "Step action must have a non-empty step type"
            raise ValueError(msg)

        self._actions[step_type] = action

    def get_optional(self, step_type: str) -> StepAction | None:
        """Look up an action by step type, returning None if not registered."""
        return self._actions.get(step_type)

    def has(self, step_type: str) -> bool:
        return step_type in self._actions

    def unregister(self, step_type: str) -> bool:
        """Remove an action; returns False if it wasn't registered."""
        if step_type in self._actions:
            del self._actions[step_type]
            return True
        return False

    def list_types(self) -> list[str]:
        """List registered step types in sorted order."""
        return sorted(self._actions.keys())

    def __len__(self) -> int:
        return len(self._actions)

    def __iter__(self) -> Iterator[StepAction]:
        return iter(self._actions.values())

    def __contains__(self, step_type: str) -> bool:
        return step_type in self._actions

    def __repr__(self) -> str:
        types = ", ".join(self.list_types())
        return f"<StepRegistry: [{types}]>"


def build_default_registry() -> StepRegistry:
    """Create a registry holding every built-in step action."""
    from flowreplay.steps.input import register_input_steps
    from flowreplay.steps.page import register_page_steps
    from flowreplay.steps.wait import register_wait_steps

    registry = StepRegistry()
    register_page_steps(registry)
    register_input_steps(registry)
    register_wait_steps(registry)
    return registry


# Registry used by the engine unless overridden
default_registry = build_default_registry()

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..workflow.models import StepAction


@dataclass
class ActionResult:
    success: bool
    output: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None


class BaseAgent(ABC):
    """ Abstract base class for agents that carry out one step action. """

    def __init__(self, step_id: str, action: StepAction):
        self.step_id = step_id
        self.action = action

    @property
    def action_type(self) -> str:
        return self.action.type.value

    @abstractmethod
    async def execute(self, context: Dict[str, Any]) -> ActionResult:
        """
        Carry out the action. Must be implemented by subclasses.
        """
        pass

    def dry_run(self, context: Dict[str, Any]) -> ActionResult:
        """
        Simulate execution without side effects.
        """
        return ActionResult(success=True, output={"dry_run": f"{self.step_id}:{self.action_type}:DRY"})

""" Factory for creating agent instances based on action type. """
from typing import Dict, Type

from ..agents.base import BaseAgent
from ..agents.checkpoint import CheckpointAgent
from ..agents.tool import ToolAgent
from .models import ActionType, StepAction

_AGENT_MAP: Dict[ActionType, Type[BaseAgent]] = {
    ActionType.CHECKPOINT_CREATE: CheckpointAgent,
    ActionType.CODE_EDIT: ToolAgent,
    ActionType.FILE_CREATE: ToolAgent,
    ActionType.FILE_DELETE: ToolAgent,
    ActionType.SERVER_COMMAND: ToolAgent,
    ActionType.ENVIRONMENT_SETUP: ToolAgent,
}


def make_agent(step_id: str, action: StepAction) -> BaseAgent:
    cls = _AGENT_MAP.get(action.type)
    if not cls:
        raise ValueError(f"Unsupported action type: {action.type}")
    return cls(step_id, action)

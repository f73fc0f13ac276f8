import inspect
from typing import Any, Dict

from .base import ActionResult, BaseAgent
from ..tools.registry import get_tool


class ToolAgent(BaseAgent):
    """ Agent that hands an action to the collaborator registered for its type. """

    async def execute(self, context: Dict[str, Any]) -> ActionResult:
        fn = get_tool(self.action_type)
        result = fn(dict(self.action.payload), context)
        if inspect.isawaitable(result):
            result = await result

        # Ensure result is a dict
        if not isinstance(result, dict):
            result = {"result": result}

        success = bool(result.get("success", True))
        error = None
        if not success:
            error = str(result.get("error") or f"{self.action_type} reported failure")
        return ActionResult(success=success, output=result, error=error)

from typing import Any, Dict

from .base import ActionResult, BaseAgent
from ..workflow.models import Checkpoint, new_record_id


class CheckpointAgent(BaseAgent):
    """ Records a named checkpoint in the plan's sink. """

    async def execute(self, context: Dict[str, Any]) -> ActionResult:
        sink = context.get("sink")
        if sink is None:
            return ActionResult(success=False, error="No checkpoint sink in context")

        name = self.action.payload.get("name", self.step_id)
        plan = context.get("plan")
        checkpoint = Checkpoint(
            id=new_record_id("checkpoint"),
            name=name,
            plan_id=plan.id if plan is not None else None,
            step_id=self.step_id,
            description=self.action.description or f"Checkpoint: {name}",
            payload={
                "request": getattr(plan, "request", ""),
                "steps_completed": getattr(plan, "steps_completed", 0),
                **self.action.payload,
            },
        )
        sink.append(checkpoint)
        return ActionResult(success=True, output={"checkpoint_id": checkpoint.id})

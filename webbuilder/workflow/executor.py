"""
Plan state machine.

    analyzing -> planning -> approved -> executing -> completed
                     |           |            |
                     +-----------+------------+--> failed

A plan in ``planning`` waits for ``approve``/``deny`` or for its auto-execute
countdown to fire. Step errors never escape ``execute``: they fail the plan
and land in the checkpoint sink as unsuccessful log entries.
"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional, Set

from ..errors import InvalidTransitionError, StepFailedError, StepTimeoutError
from .checkpoints import CheckpointSink, MemoryCheckpointSink
from .compiler import execution_order, validate_plan
from .factory import make_agent
from .models import (
    Checkpoint,
    FailureReason,
    LogEntry,
    PlanFailure,
    PlanStatus,
    StepStatus,
    WorkflowPlan,
    WorkflowStep,
    new_record_id,
)

logger = logging.getLogger(__name__)

DEFAULT_AUTO_EXECUTE_AFTER = 5.0


class WorkflowExecutor:

    def __init__(self, sink: Optional[CheckpointSink] = None, *,
                 auto_execute_after: float = DEFAULT_AUTO_EXECUTE_AFTER,
                 step_timeout: Optional[float] = None,
                 dry_run: bool = False):
        self.sink = sink if sink is not None else MemoryCheckpointSink()
        self.auto_execute_after = auto_execute_after
        self.step_timeout = step_timeout
        self.dry_run = dry_run
        self._countdowns: Dict[str, asyncio.Task] = {}
        self._background: Set[asyncio.Task] = set()

    # ============================================
    # Auto-execute countdown
    # ============================================

    def start_countdown(self, plan: WorkflowPlan, delay: Optional[float] = None) -> asyncio.Task:
        """
        Approve and execute ``plan`` after ``delay`` seconds unless it is
        approved, denied or re-scheduled first. Replaces any countdown already
        pending for the same plan. Must be called from a running event loop.
        """
        if plan.status != PlanStatus.PLANNING:
            raise InvalidTransitionError(plan.id, plan.status.value, PlanStatus.APPROVED.value)

        self.cancel_countdown(plan.id)
        delay = self.auto_execute_after if delay is None else delay
        task = asyncio.get_running_loop().create_task(self._auto_execute(plan, delay))
        self._countdowns[plan.id] = task
        self._background.add(task)
        task.add_done_callback(self._background.discard)

        self._log(plan, "countdown_started", f"Auto-executing in {delay}s unless denied")
        return task

    def cancel_countdown(self, plan_id: str) -> bool:
        task = self._countdowns.pop(plan_id, None)
        if task is None or task.done():
            return False
        task.cancel()
        logger.info("Cancelled auto-execute countdown for %s", plan_id)
        return True

    def has_countdown(self, plan_id: str) -> bool:
        task = self._countdowns.get(plan_id)
        return task is not None and not task.done()

    async def _auto_execute(self, plan: WorkflowPlan, delay: float) -> WorkflowPlan:
        await asyncio.sleep(delay)

        # fired; from here on the countdown can no longer be cancelled
        if self._countdowns.get(plan.id) is asyncio.current_task():
            del self._countdowns[plan.id]
        if plan.status != PlanStatus.PLANNING:
            return plan

        self.approve(plan, approved_by="auto")
        return await self.execute(plan)

    # ============================================
    # Approval gate
    # ============================================

    def approve(self, plan: WorkflowPlan, approved_by: str = "user") -> bool:
        if plan.status != PlanStatus.PLANNING:
            return False

        self.cancel_countdown(plan.id)
        plan.status = PlanStatus.APPROVED
        plan.approved_by = approved_by
        plan.approved_at = time.time()
        plan.touch()
        self._log(plan, "plan_approved", f"Approved by {approved_by}")
        return True

    def deny(self, plan: WorkflowPlan, reason: str = "Denied by user") -> bool:
        """ Reject a pending plan. A no-op once the plan is past ``planning``. """
        if plan.status != PlanStatus.PLANNING:
            return False

        self.cancel_countdown(plan.id)
        self._fail(plan, FailureReason.USER_CANCELLED, reason)
        return True

    def cancel(self, plan: WorkflowPlan, reason: str = "Cancelled by user") -> bool:
        """
        Stop a plan cooperatively. A step already dispatched runs to its end,
        but no further step starts.
        """
        if plan.status == PlanStatus.PLANNING:
            return self.deny(plan, reason)
        if plan.status not in (PlanStatus.APPROVED, PlanStatus.EXECUTING):
            return False

        self._fail(plan, FailureReason.CANCELLED, reason)
        return True

    # ============================================
    # Execution
    # ============================================

    async def run(self, plan: WorkflowPlan, approved_by: str = "user") -> WorkflowPlan:
        """ Approve and execute in one go. """
        self.approve(plan, approved_by=approved_by)
        return await self.execute(plan)

    async def execute(self, plan: WorkflowPlan) -> WorkflowPlan:
        if plan.status != PlanStatus.APPROVED:
            raise InvalidTransitionError(plan.id, plan.status.value, PlanStatus.EXECUTING.value)

        try:
            validate_plan(plan)
            order = execution_order(plan)
        except ValueError as e:
            self._fail(plan, FailureReason.STEP_FAILED, str(e))
            return plan

        plan.status = PlanStatus.EXECUTING
        plan.touch()
        self._log(plan, "plan_started", f"Executing {plan.steps_total} steps")

        context: Dict[str, Any] = {
            "plan": plan,
            "sink": self.sink,
            "request": plan.request,
            "outputs": {},
        }

        for step in order:
            if plan.status != PlanStatus.EXECUTING:
                logger.info("Plan %s stopped before step %s", plan.id, step.id)
                return plan

            unmet = [dep for dep in step.dependencies
                     if plan.step(dep) is None or plan.step(dep).status != StepStatus.COMPLETED]
            if unmet:
                self._fail(plan, FailureReason.STEP_FAILED,
                           f"Dependencies not completed: {', '.join(unmet)}", step)
                return plan

            if not await self._run_step(plan, step, context):
                return plan

        if plan.status == PlanStatus.EXECUTING and plan.steps_completed == plan.steps_total:
            plan.status = PlanStatus.COMPLETED
            plan.touch()
            self._checkpoint(plan, "plan_completed", None, {"steps_completed": plan.steps_completed})
            self._log(plan, "plan_completed", f"Completed {plan.steps_completed}/{plan.steps_total} steps")
            logger.info("Plan %s completed", plan.id)
        return plan

    async def _run_step(self, plan: WorkflowPlan, step: WorkflowStep, context: Dict[str, Any]) -> bool:
        step.status = StepStatus.IN_PROGRESS
        self._log(plan, "step_started", step.title, step_id=step.id)

        try:
            if self.step_timeout is not None:
                try:
                    await asyncio.wait_for(self._perform(step, context), self.step_timeout)
                except asyncio.TimeoutError:
                    raise StepTimeoutError(step.id, self.step_timeout)
            else:
                await self._perform(step, context)
        except StepTimeoutError as e:
            self._fail(plan, FailureReason.TIMEOUT, str(e), step)
            return False
        except StepFailedError as e:
            self._fail(plan, FailureReason.STEP_FAILED, str(e), step)
            return False
        except Exception as e:
            logger.exception("Step %s of plan %s raised", step.id, plan.id)
            self._fail(plan, FailureReason.STEP_FAILED, f"{type(e).__name__}: {e}", step)
            return False

        step.status = StepStatus.COMPLETED
        plan.steps_completed += 1
        plan.touch()
        self._checkpoint(plan, f"step:{step.id}", step.id, {
            "steps_completed": plan.steps_completed,
            "output": context["outputs"].get(step.id, {}),
        })
        if plan.failure is not None and plan.failure.reason == FailureReason.CANCELLED:
            plan.failure.last_completed_index = plan.last_completed_index
        return True

    async def _perform(self, step: WorkflowStep, context: Dict[str, Any]) -> None:
        outputs: Dict[str, Any] = {}
        for action in step.actions:
            agent = make_agent(step.id, action)
            result = agent.dry_run(context) if self.dry_run else await agent.execute(context)
            if not result.success:
                raise StepFailedError(step.id, result.error or f"{agent.action_type} failed")
            outputs.update(result.output)
        context["outputs"][step.id] = outputs

    # ============================================
    # Audit trail
    # ============================================

    def _fail(self, plan: WorkflowPlan, reason: FailureReason, message: str,
              step: Optional[WorkflowStep] = None) -> None:
        if step is not None and step.status != StepStatus.COMPLETED:
            step.status = StepStatus.FAILED
        if plan.status == PlanStatus.FAILED:
            # already halted (e.g. cancelled mid-step); keep the original failure
            self._log(plan, "step_failed", message, success=False,
                      step_id=step.id if step is not None else None)
            return

        plan.status = PlanStatus.FAILED
        plan.failure = PlanFailure(
            reason=reason,
            message=message,
            step_id=step.id if step is not None else None,
            step_description=step.description if step is not None else "",
            last_completed_index=plan.last_completed_index,
        )
        plan.touch()
        self.cancel_countdown(plan.id)
        self._log(plan, "plan_failed", message, success=False,
                  step_id=step.id if step is not None else None,
                  metadata={"reason": reason.value, "last_completed_index": plan.failure.last_completed_index})
        logger.warning("Plan %s failed (%s): %s", plan.id, reason.value, message)

    def _log(self, plan: WorkflowPlan, action: str, details: str, success: bool = True,
             step_id: Optional[str] = None, metadata: Optional[Dict[str, Any]] = None) -> None:
        self.sink.append(LogEntry(
            id=new_record_id("log"),
            action=action,
            details=details,
            plan_id=plan.id,
            step_id=step_id,
            success=success,
            metadata=metadata or {},
        ))

    def _checkpoint(self, plan: WorkflowPlan, name: str, step_id: Optional[str],
                    payload: Dict[str, Any]) -> None:
        self.sink.append(Checkpoint(
            id=new_record_id("checkpoint"),
            name=name,
            plan_id=plan.id,
            step_id=step_id,
            description=f"Checkpoint: {name}",
            payload=payload,
        ))

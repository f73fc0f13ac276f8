"""
JoseyAI: the editor's chat assistant.

The assistant follows this cycle:
1. Receive a chat message (plus what the user is looking at)
2. Analyse it and build a work plan
3. Ask for approval, auto-executing after a countdown unless denied
4. Execute the plan step by step, leaving checkpoints and logs behind
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from .config import Settings
from .workflow.analysis import RequestAnalysis, analyze_request
from .workflow.checkpoints import CheckpointSink, JsonlCheckpointSink, MemoryCheckpointSink
from .workflow.executor import WorkflowExecutor
from .workflow.models import PlanStatus, WorkflowPlan
from .workflow.planner import AbstractWorkflowPlanner, KeywordWorkflowPlanner

logger = logging.getLogger(__name__)

VERSION = "1.0.0"

MAX_LOG_ENTRIES = 1000

CAPABILITIES = [
    "Code creation and editing",
    "Debugging and error fixing",
    "Server command execution",
    "Environment management",
    "Screen awareness",
    "Task tracking",
    "Auto-execution",
    "Checkpoint creation",
    "Proactive suggestions",
]


@dataclass
class ScreenContext:
    """ What the user currently has open in the app. """
    current_view: str  # editor, dashboard, ...
    current_file: Optional[str] = None
    selected_element: Optional[str] = None
    viewport_data: Dict[str, Any] = field(default_factory=dict)
    updated_at: float = field(default_factory=time.time)


@dataclass
class AssistantRequest:
    message: str
    user_id: str
    project_id: Optional[str] = None
    context: Optional[ScreenContext] = None


@dataclass
class AssistantResponse:
    message: str
    plan: WorkflowPlan
    requires_approval: bool
    auto_execute_after: Optional[float] = None  # seconds; None when no countdown runs


class JoseyAssistant:
    """
    Top-level orchestrator: planner in front, executor behind.

    Keeps the plans it produced, the latest screen context per user, and an
    in-memory execution log for the chat UI.
    """

    def __init__(self, planner: Optional[AbstractWorkflowPlanner] = None,
                 executor: Optional[WorkflowExecutor] = None,
                 settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self.planner = planner or KeywordWorkflowPlanner()
        self.executor = executor or WorkflowExecutor(
            auto_execute_after=self.settings.auto_execute_after,
            step_timeout=self.settings.step_timeout,
        )
        self.plans: Dict[str, WorkflowPlan] = {}
        self.execution_log: List[Dict[str, Any]] = []
        self._screen_contexts: Dict[str, ScreenContext] = {}
        self._pending_by_user: Dict[str, str] = {}
        self._superseded: Set[str] = set()

    @classmethod
    def from_settings(cls, settings: Settings) -> "JoseyAssistant":
        sink: CheckpointSink
        if settings.checkpoint_log is not None:
            sink = JsonlCheckpointSink(settings.checkpoint_log)
        else:
            sink = MemoryCheckpointSink()
        executor = WorkflowExecutor(
            sink,
            auto_execute_after=settings.auto_execute_after,
            step_timeout=settings.step_timeout,
        )
        return cls(executor=executor, settings=settings)

    # -------------------------
    # CHAT
    # -------------------------

    async def process_request(self, request: AssistantRequest) -> AssistantResponse:
        """
        Plan a response to a chat message. When the plan needs approval and
        auto-execution is on, its countdown starts here; a pending plan from
        the same user loses its countdown and waits for an explicit answer.
        """
        self._log(f"[JOSEY] Processing request from {request.user_id}: {request.message[:50]}")
        if request.context is not None:
            self.update_screen_context(request.user_id, request.context)

        analysis = analyze_request(request.message, request.context)
        plan = self.planner.plan(request.message, analysis.requires_code, analysis.requires_server, analysis)
        self.plans[plan.id] = plan
        self._log(f"[JOSEY] Plan {plan.id}: {[s.id for s in plan.steps]}")

        previous_id = self._pending_by_user.get(request.user_id)
        previous = self.plans.get(previous_id) if previous_id else None
        if previous is not None and previous.status == PlanStatus.PLANNING:
            self.executor.cancel_countdown(previous.id)
            self._superseded.add(previous.id)
            self._log(f"[JOSEY] Plan {previous.id} superseded; waiting for an explicit answer")

        requires_approval = len(plan.steps) > 1
        auto_execute_after = None
        if requires_approval and self.settings.auto_execute:
            auto_execute_after = self.settings.auto_execute_after
            self.executor.start_countdown(plan, auto_execute_after)
        self._pending_by_user[request.user_id] = plan.id

        return AssistantResponse(
            message=self._response_message(analysis, plan, auto_execute_after),
            plan=plan,
            requires_approval=requires_approval,
            auto_execute_after=auto_execute_after,
        )

    def get_plan(self, plan_id: str) -> Optional[WorkflowPlan]:
        return self.plans.get(plan_id)

    async def approve(self, plan_id: str, approved_by: str = "user") -> WorkflowPlan:
        """ Approve a pending plan and run it to the end. """
        plan = self._require_plan(plan_id)
        if not self.executor.approve(plan, approved_by=approved_by):
            self._log(f"[JOSEY] Plan {plan_id} is {plan.status.value}; approval ignored")
            return plan
        self._superseded.discard(plan_id)
        self._log(f"[JOSEY] Plan {plan_id} approved by {approved_by}, executing")
        await self.executor.execute(plan)
        self._log(f"[JOSEY] Plan {plan_id} finished as {plan.status.value}")
        return plan

    def deny(self, plan_id: str) -> bool:
        plan = self._require_plan(plan_id)
        denied = self.executor.deny(plan)
        if denied:
            self._superseded.discard(plan_id)
            self._log(f"[JOSEY] Plan {plan_id} denied")
        return denied

    def prune_finished(self) -> int:
        """ Forget completed and failed plans; returns how many were dropped. """
        finished = [plan_id for plan_id, plan in self.plans.items() if plan.status.is_terminal]
        for plan_id in finished:
            del self.plans[plan_id]
            self._superseded.discard(plan_id)
        self._pending_by_user = {user: plan_id for user, plan_id in self._pending_by_user.items()
                                 if plan_id in self.plans}
        return len(finished)

    def _require_plan(self, plan_id: str) -> WorkflowPlan:
        plan = self.plans.get(plan_id)
        if plan is None:
            raise KeyError(f"Unknown plan: {plan_id}")
        return plan

    def _response_message(self, analysis: RequestAnalysis, plan: WorkflowPlan,
                          auto_execute_after: Optional[float]) -> str:
        context_aware = "I can see what you're currently working on. " if analysis.screen_aware else ""
        complexity = {
            "high": "This is a complex request that will require multiple steps. ",
            "medium": "This is a moderate request. ",
        }.get(analysis.complexity, "This is a straightforward request. ")

        message = (
            f"{context_aware}{complexity}I'll {analysis.intent} what you need. "
            f"My plan involves {plan.steps_total} steps. "
        )
        if auto_execute_after is not None:
            message += (
                f"Would you like me to proceed? I'll auto-execute in "
                f"{auto_execute_after:g} seconds if you don't respond."
            )
        else:
            message += "Would you like me to proceed?"
        return message

    # -------------------------
    # SCREEN AWARENESS
    # -------------------------

    def update_screen_context(self, user_id: str, context: ScreenContext) -> None:
        self._screen_contexts[user_id] = context
        logger.debug("Updated screen context for %s: %s", user_id, context.current_view)

    def get_screen_context(self, user_id: str) -> Optional[ScreenContext]:
        return self._screen_contexts.get(user_id)

    def suggestions(self, user_id: str) -> List[str]:
        """ Proactive suggestions based on what the user is looking at. """
        context = self._screen_contexts.get(user_id)
        if context is None:
            return []

        suggestions: List[str] = []
        if context.current_view == "editor":
            suggestions.extend([
                "Consider adding error boundaries to your components",
                "I can help implement TypeScript for better type safety",
                "Want me to optimize your component performance?",
            ])
        if context.current_file and context.current_file.endswith(".tsx"):
            suggestions.extend([
                "I can help improve the component's styling",
                "Would you like me to create tests for this component?",
                "I can make this component mobile-responsive",
            ])
        return suggestions

    def status(self, user_id: Optional[str] = None) -> Dict[str, Any]:
        # superseded plans still accept an answer but no longer count as active
        active = [p.id for p in self.plans.values()
                  if p.status in (PlanStatus.APPROVED, PlanStatus.EXECUTING)
                  or (p.status == PlanStatus.PLANNING and p.id not in self._superseded)]
        return {
            "online": True,
            "version": VERSION,
            "capabilities": list(CAPABILITIES),
            "current_user": user_id,
            "screen_context": self._screen_contexts.get(user_id) if user_id else None,
            "active_plans": active,
            "superseded_plans": sorted(p for p in self._superseded
                                       if self.plans[p].status == PlanStatus.PLANNING),
            "timestamp": time.time(),
        }

    def _log(self, message: str):
        """Add a message to execution log."""
        self.execution_log.append({
            'timestamp': time.time(),
            'message': message,
        })
        if len(self.execution_log) > MAX_LOG_ENTRIES:
            del self.execution_log[:-MAX_LOG_ENTRIES]
        logger.info(message)

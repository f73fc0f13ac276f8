"""
Turns a free-text request into an ordered, dependency-chained work plan.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from .analysis import RequestAnalysis, analyze_request
from .compiler import instantiate_step, load_default_templates, validate_plan
from .models import PlanStatus, WorkflowPlan, WorkflowStep, new_record_id
from .schema import StepTemplateSpec

logger = logging.getLogger(__name__)

ANALYZE = "analyze"
CODE_CHANGES = "code_changes"
SERVER_OPS = "server_ops"
FINALIZE = "finalize"


class AbstractWorkflowPlanner(ABC):
    """
    Abstract base for planners.
    Concrete planners implement `plan`; the executor only sees the resulting WorkflowPlan.
    """

    @abstractmethod
    def plan(self, request_text: str, has_code_intent: bool, has_server_intent: bool,
             analysis: Optional[RequestAnalysis] = None) -> WorkflowPlan:
        """ ``analysis`` is the caller's analysis of ``request_text``, when it already has one. """
        raise NotImplementedError()

    def plan_request(self, request_text: str, context: Optional[object] = None) -> WorkflowPlan:
        analysis = analyze_request(request_text, context)
        return self.plan(request_text, analysis.requires_code, analysis.requires_server, analysis)


class KeywordWorkflowPlanner(AbstractWorkflowPlanner):
    """
    Strict linear chain: analyze -> [code_changes] -> [server_ops] -> finalize.
    Each step depends on the one immediately before it.
    """

    def __init__(self, templates: Optional[Dict[str, StepTemplateSpec]] = None):
        self.templates = templates or load_default_templates()
        for required in (ANALYZE, CODE_CHANGES, SERVER_OPS, FINALIZE):
            if required not in self.templates:
                raise ValueError(f"Missing step template: {required}")

    def plan(self, request_text: str, has_code_intent: bool, has_server_intent: bool,
             analysis: Optional[RequestAnalysis] = None) -> WorkflowPlan:
        if analysis is None:
            analysis = analyze_request(request_text)
        plan = WorkflowPlan(
            id=new_record_id("plan"),
            title=_title(request_text),
            description=f"Executing {analysis.intent} request with {analysis.complexity} complexity",
            status=PlanStatus.ANALYZING,
            request=request_text,
        )

        step_ids = [ANALYZE]
        if has_code_intent:
            step_ids.append(CODE_CHANGES)
        if has_server_intent:
            step_ids.append(SERVER_OPS)
        step_ids.append(FINALIZE)

        plan.steps = self._chain(step_ids, analysis)
        plan.steps_total = len(plan.steps)
        validate_plan(plan)

        plan.status = PlanStatus.PLANNING
        plan.touch()
        logger.info("Planned %s with steps %s", plan.id, [s.id for s in plan.steps])
        return plan

    def _chain(self, step_ids: List[str], analysis: RequestAnalysis) -> List[WorkflowStep]:
        values = {"intent": analysis.intent, "complexity": analysis.complexity}
        steps: List[WorkflowStep] = []
        for step_id in step_ids:
            dependencies = [steps[-1].id] if steps else []
            steps.append(instantiate_step(self.templates[step_id], dependencies, values))
        return steps


def _title(request_text: str) -> str:
    text = request_text.strip()
    if len(text) > 50:
        return f"Plan: {text[:50]}..."
    return f"Plan: {text}"

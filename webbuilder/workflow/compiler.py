""" Load step templates from YAML and validate plans built from them. """

import copy
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .models import StepAction, WorkflowPlan, WorkflowStep
from .schema import StepTemplateSpec, validate_step_templates

DEFAULT_TEMPLATES_FILE = Path(__file__).parent / "steps.yaml"


def load_step_templates(yaml_text: str) -> Dict[str, StepTemplateSpec]:
    """
    Load step templates from a YAML string, keyed by step id.
    """
    data = yaml.safe_load(yaml_text) or {}
    spec = validate_step_templates(data)

    templates: Dict[str, StepTemplateSpec] = {}
    for step in spec.steps:
        if step.id in templates:
            raise ValueError(f"Duplicate step template: {step.id}")
        templates[step.id] = step
    return templates


def load_default_templates() -> Dict[str, StepTemplateSpec]:
    return load_step_templates(DEFAULT_TEMPLATES_FILE.read_text(encoding="utf-8"))


def instantiate_step(template: StepTemplateSpec, dependencies: Optional[List[str]] = None,
                     values: Optional[Dict[str, Any]] = None) -> WorkflowStep:
    """ Build a plan step from a template, filling ``{name}`` placeholders in payloads. """
    values = values or {}
    actions = [
        StepAction(
            type=action.type,
            payload=_fill(copy.deepcopy(action.payload), values),
            description=action.description,
        )
        for action in template.actions
    ]
    return WorkflowStep(
        id=template.id,
        title=template.title,
        description=template.description,
        actions=actions,
        dependencies=list(dependencies or []),
        estimated_minutes=template.estimated_minutes,
    )


def _fill(value: Any, values: Dict[str, Any]) -> Any:
    if isinstance(value, str) and value.startswith("{") and value.endswith("}"):
        return values.get(value[1:-1], value)
    if isinstance(value, dict):
        return {k: _fill(v, values) for k, v in value.items()}
    if isinstance(value, list):
        return [_fill(v, values) for v in value]
    return value


def validate_plan(plan: WorkflowPlan) -> None:
    """
    Step ids are unique, dependencies only point at earlier steps, totals agree.
    """
    seen = set()
    for step in plan.steps:
        if step.id in seen:
            raise ValueError(f"Duplicate step id in plan {plan.id}: {step.id}")
        for dep in step.dependencies:
            if dep not in seen:
                raise ValueError(f"Step {step.id} depends on {dep}, which is not an earlier step")
        seen.add(step.id)

    if plan.steps_total != len(plan.steps):
        raise ValueError(f"Plan {plan.id} declares {plan.steps_total} steps but has {len(plan.steps)}")


def execution_order(plan: WorkflowPlan) -> List[WorkflowStep]:
    """
    Topological order of the plan's steps (Kahn), ties broken by plan order.
    """
    step_ids = [step.id for step in plan.steps]
    by_id = {step.id: step for step in plan.steps}
    indegree = {step_id: 0 for step_id in step_ids}
    dependents: Dict[str, List[str]] = {step_id: [] for step_id in step_ids}

    for step in plan.steps:
        for dep in step.dependencies:
            if dep not in by_id:
                raise ValueError(f"Step {step.id} depends on unknown step: {dep}")
            indegree[step.id] += 1
            dependents[dep].append(step.id)

    queue = [step_id for step_id in step_ids if indegree[step_id] == 0]
    order: List[WorkflowStep] = []
    while queue:
        current = queue.pop(0)
        order.append(by_id[current])
        for neighbor in dependents[current]:
            indegree[neighbor] -= 1
            if indegree[neighbor] == 0:
                queue.append(neighbor)
        queue.sort(key=step_ids.index)

    if len(order) != len(step_ids):
        raise ValueError(f"Cycle detected in plan {plan.id} step dependencies.")
    return order

"""Tests for request analysis, step templates and plan building."""

import pytest

from webbuilder.workflow.analysis import (
    analyze_request,
    assess_complexity,
    detect_intent,
    requires_code_changes,
    requires_server_access,
)
from webbuilder.workflow.compiler import (
    execution_order,
    instantiate_step,
    load_default_templates,
    load_step_templates,
    validate_plan,
)
from webbuilder.workflow.models import ActionType, PlanStatus, StepStatus, WorkflowPlan, WorkflowStep
from webbuilder.workflow.planner import KeywordWorkflowPlanner


@pytest.mark.parametrize("message, intent", [
    ("Add a contact form", "create"),
    ("Please fix the login error", "debug"),
    ("Change the header colour", "edit"),
    ("How do I deploy?", "deploy"),
    ("Explain flexbox to me", "help"),
    ("Hello there", "general"),
])
def test_detect_intent(message, intent):
    assert detect_intent(message) == intent


def test_assess_complexity():
    assert assess_complexity("Build a component with database and api integration") == "high"
    assert assess_complexity("Add a test") == "medium"
    assert assess_complexity("Make the title bigger") == "low"


def test_code_and_server_keywords():
    assert requires_code_changes("update the CSS of the hero")
    assert not requires_code_changes("make it pop")
    assert requires_server_access("npm install lodash")
    assert not requires_server_access("make it pop")


def test_analyze_request_notes_screen_context():
    analysis = analyze_request("Add a pricing component", context=object())

    assert analysis.intent == "create"
    assert analysis.complexity == "medium"
    assert analysis.requires_code
    assert not analysis.requires_server
    assert analysis.screen_aware
    assert not analyze_request("Add a pricing component").screen_aware


def test_code_request_plans_three_linked_steps():
    """analyze -> code_changes -> finalize, each depending on the previous."""
    plan = KeywordWorkflowPlanner().plan("Add a hero component", True, False)

    assert [s.id for s in plan.steps] == ["analyze", "code_changes", "finalize"]
    assert [s.dependencies for s in plan.steps] == [[], ["analyze"], ["code_changes"]]
    assert plan.steps_total == 3
    assert plan.steps_completed == 0
    assert plan.status == PlanStatus.PLANNING
    assert all(s.status == StepStatus.PENDING for s in plan.steps)
    assert plan.title == "Plan: Add a hero component"
    assert plan.description == "Executing create request with medium complexity"
    assert plan.request == "Add a hero component"
    assert plan.step("code_changes").actions[0].payload == {"intent": "create"}
    assert plan.estimated_minutes_total == 7


@pytest.mark.parametrize("has_code, has_server, step_ids", [
    (False, False, ["analyze", "finalize"]),
    (True, False, ["analyze", "code_changes", "finalize"]),
    (False, True, ["analyze", "server_ops", "finalize"]),
    (True, True, ["analyze", "code_changes", "server_ops", "finalize"]),
])
def test_plan_shapes(planner, has_code, has_server, step_ids):
    plan = planner.plan("Do the thing", has_code, has_server)

    assert [s.id for s in plan.steps] == step_ids
    assert plan.steps_total == len(step_ids)
    for previous, step in zip(plan.steps, plan.steps[1:]):
        assert step.dependencies == [previous.id]
    assert [s.id for s in execution_order(plan)] == step_ids


def test_long_request_title_is_truncated(planner):
    text = "Create a landing page with a hero, three feature cards and a footer"
    plan = planner.plan(text, False, False)

    assert plan.title == f"Plan: {text[:50]}..."


def test_plan_request_uses_analysis(planner):
    plan = planner.plan_request("Deploy the server")

    assert [s.id for s in plan.steps] == ["analyze", "server_ops", "finalize"]
    assert plan.step("server_ops").actions[0].type == ActionType.SERVER_COMMAND


def test_plan_uses_given_analysis(planner):
    analysis = analyze_request("Build a component with database and api integration")

    plan = planner.plan("Make it so", True, False, analysis)

    assert plan.description == "Executing create request with high complexity"
    assert plan.step("code_changes").actions[0].payload == {"intent": "create"}


def test_planner_requires_all_templates():
    templates = load_default_templates()
    del templates["server_ops"]

    with pytest.raises(ValueError, match="Missing step template: server_ops"):
        KeywordWorkflowPlanner(templates)


def test_load_step_templates():
    yaml_text = """
version: 1
steps:
  - id: scaffold
    title: Scaffold
    estimated_minutes: 2
    actions:
      - type: file_create
        payload: { path: "src/{name}.tsx", name: "{name}" }
"""
    templates = load_step_templates(yaml_text)

    assert list(templates) == ["scaffold"]
    assert templates["scaffold"].actions[0].type == ActionType.FILE_CREATE


def test_load_step_templates_rejects_duplicates():
    yaml_text = """
steps:
  - { id: a, title: A }
  - { id: a, title: Again }
"""
    with pytest.raises(ValueError, match="Duplicate step template: a"):
        load_step_templates(yaml_text)


def test_load_step_templates_rejects_unknown_action():
    yaml_text = """
steps:
  - id: a
    title: A
    actions:
      - type: launch_rockets
"""
    with pytest.raises(ValueError, match="YAML validation error"):
        load_step_templates(yaml_text)


def test_instantiate_step_fills_placeholders():
    yaml_text = """
steps:
  - id: a
    title: A
    actions:
      - type: code_edit
        payload:
          intent: "{intent}"
          tags: ["{complexity}", "{unknown}"]
          retries: 2
"""
    template = load_step_templates(yaml_text)["a"]

    step = instantiate_step(template, ["prev"], {"intent": "edit", "complexity": "low"})

    assert step.dependencies == ["prev"]
    assert step.actions[0].payload == {"intent": "edit", "tags": ["low", "{unknown}"], "retries": 2}
    assert template.actions[0].payload["intent"] == "{intent}"


def _plan(*steps, total=None):
    return WorkflowPlan(id="plan_t", title="T", steps=list(steps),
                        steps_total=len(steps) if total is None else total)


def test_validate_plan_errors():
    with pytest.raises(ValueError, match="not an earlier step"):
        validate_plan(_plan(WorkflowStep(id="a", title="A", dependencies=["b"]),
                            WorkflowStep(id="b", title="B")))
    with pytest.raises(ValueError, match="Duplicate step id"):
        validate_plan(_plan(WorkflowStep(id="a", title="A"), WorkflowStep(id="a", title="A")))
    with pytest.raises(ValueError, match="declares 3 steps"):
        validate_plan(_plan(WorkflowStep(id="a", title="A"), total=3))


def test_execution_order_breaks_ties_by_plan_order():
    plan = _plan(
        WorkflowStep(id="a", title="A"),
        WorkflowStep(id="c", title="C", dependencies=["a"]),
        WorkflowStep(id="b", title="B", dependencies=["a"]),
        WorkflowStep(id="d", title="D", dependencies=["b", "c"]),
    )

    assert [s.id for s in execution_order(plan)] == ["a", "c", "b", "d"]


def test_execution_order_errors():
    with pytest.raises(ValueError, match="unknown step"):
        execution_order(_plan(WorkflowStep(id="a", title="A", dependencies=["ghost"])))
    with pytest.raises(ValueError, match="Cycle detected"):
        execution_order(_plan(WorkflowStep(id="a", title="A", dependencies=["b"]),
                              WorkflowStep(id="b", title="B", dependencies=["a"])))

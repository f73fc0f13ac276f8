"""Tests for agent implementations."""

import pytest

from webbuilder.agents.base import BaseAgent
from webbuilder.agents.checkpoint import CheckpointAgent
from webbuilder.agents.tool import ToolAgent
from webbuilder.workflow.checkpoints import MemoryCheckpointSink
from webbuilder.workflow.factory import make_agent
from webbuilder.workflow.models import ActionType, StepAction, WorkflowPlan


def test_base_agent_is_abstract():
    """BaseAgent requires an execute() implementation."""
    with pytest.raises(TypeError):
        BaseAgent("step", StepAction(type=ActionType.CODE_EDIT))


@pytest.mark.asyncio
async def test_tool_agent_execute():
    """ToolAgent hands the payload to the registered collaborator."""
    agent = ToolAgent("code_changes", StepAction(type=ActionType.CODE_EDIT, payload={"intent": "create"}))

    result = await agent.execute({})

    assert result.success
    assert result.error is None
    assert result.output["output"] == "Applied code changes (create)"


@pytest.mark.asyncio
async def test_tool_agent_reports_failure():
    agent = ToolAgent("cleanup", StepAction(type=ActionType.FILE_DELETE))

    result = await agent.execute({})

    assert not result.success
    assert result.error == "file_delete requires a 'path'"


@pytest.mark.asyncio
async def test_tool_agent_awaits_async_tool(use_tool):
    seen = {}

    async def run_command(payload, context):
        seen.update(payload)
        return {"success": True, "exit_code": 0}

    use_tool("server_command", run_command)
    agent = ToolAgent("server_ops", StepAction(type=ActionType.SERVER_COMMAND, payload={"command": "npm run build"}))

    result = await agent.execute({})

    assert result.success
    assert result.output["exit_code"] == 0
    assert seen == {"command": "npm run build"}


@pytest.mark.asyncio
async def test_tool_agent_wraps_plain_results(use_tool):
    use_tool("environment_setup", lambda payload, context: "ready")
    agent = ToolAgent("env", StepAction(type=ActionType.ENVIRONMENT_SETUP))

    result = await agent.execute({})

    assert result.success
    assert result.output == {"result": "ready"}


@pytest.mark.asyncio
async def test_tool_agent_unknown_tool(monkeypatch):
    from webbuilder.tools import registry

    monkeypatch.delitem(registry._TOOLS, "code_edit")
    agent = ToolAgent("code_changes", StepAction(type=ActionType.CODE_EDIT))

    with pytest.raises(ValueError, match="Tool not found"):
        await agent.execute({})


@pytest.mark.asyncio
async def test_checkpoint_agent_appends_to_sink():
    sink = MemoryCheckpointSink()
    plan = WorkflowPlan(id="plan_1", title="Plan", request="Add a footer", steps_completed=2)
    agent = CheckpointAgent("finalize", StepAction(
        type=ActionType.CHECKPOINT_CREATE,
        payload={"name": "completion"},
        description="Create completion checkpoint",
    ))

    result = await agent.execute({"sink": sink, "plan": plan})

    assert result.success
    checkpoint = sink.checkpoints[0]
    assert result.output == {"checkpoint_id": checkpoint.id}
    assert checkpoint.name == "completion"
    assert checkpoint.plan_id == "plan_1"
    assert checkpoint.step_id == "finalize"
    assert checkpoint.description == "Create completion checkpoint"
    assert checkpoint.payload == {"request": "Add a footer", "steps_completed": 2, "name": "completion"}


@pytest.mark.asyncio
async def test_checkpoint_agent_defaults_name_to_step():
    sink = MemoryCheckpointSink()
    agent = CheckpointAgent("analyze", StepAction(type=ActionType.CHECKPOINT_CREATE))

    await agent.execute({"sink": sink})

    assert sink.checkpoints[0].name == "analyze"
    assert sink.checkpoints[0].plan_id is None


@pytest.mark.asyncio
async def test_checkpoint_agent_without_sink():
    agent = CheckpointAgent("analyze", StepAction(type=ActionType.CHECKPOINT_CREATE))

    result = await agent.execute({})

    assert not result.success
    assert "sink" in result.error


def test_dry_run_has_no_side_effects():
    sink = MemoryCheckpointSink()
    agent = CheckpointAgent("analyze", StepAction(type=ActionType.CHECKPOINT_CREATE))

    result = agent.dry_run({"sink": sink})

    assert result.success
    assert result.output == {"dry_run": "analyze:checkpoint_create:DRY"}
    assert sink.entries == []


@pytest.mark.parametrize("action_type, agent_cls", [
    (ActionType.CHECKPOINT_CREATE, CheckpointAgent),
    (ActionType.CODE_EDIT, ToolAgent),
    (ActionType.FILE_CREATE, ToolAgent),
    (ActionType.FILE_DELETE, ToolAgent),
    (ActionType.SERVER_COMMAND, ToolAgent),
    (ActionType.ENVIRONMENT_SETUP, ToolAgent),
])
def test_make_agent(action_type, agent_cls):
    agent = make_agent("step", StepAction(type=action_type))

    assert type(agent) is agent_cls
    assert agent.step_id == "step"
    assert agent.action_type == action_type.value

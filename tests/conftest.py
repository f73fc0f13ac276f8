import pytest

from webbuilder.canvas.catalog import default_catalog
from webbuilder.canvas.controller import CanvasController
from webbuilder.canvas.tree import ElementTree
from webbuilder.tools import registry
from webbuilder.workflow.checkpoints import MemoryCheckpointSink
from webbuilder.workflow.executor import WorkflowExecutor
from webbuilder.workflow.planner import KeywordWorkflowPlanner


@pytest.fixture
def catalog():
    return default_catalog()


@pytest.fixture
def tree(catalog):
    return ElementTree(catalog)


@pytest.fixture
def controller(tree, catalog):
    return CanvasController(tree, catalog)


@pytest.fixture
def sink():
    return MemoryCheckpointSink()


@pytest.fixture
def executor(sink):
    return WorkflowExecutor(sink, auto_execute_after=0.05)


@pytest.fixture
def planner():
    return KeywordWorkflowPlanner()


@pytest.fixture
def use_tool(monkeypatch):
    """Swaps the collaborator for an action type for the duration of one test."""
    def _use(name, fn):
        monkeypatch.setitem(registry._TOOLS, name, fn)
    return _use


@pytest.fixture
def check_tree():
    """Asserts every child points back at its parent and ids are unique."""
    return _assert_consistent


def _assert_consistent(tree):
    seen = set()

    def check(nodes, parent_id):
        for node in nodes:
            assert node.id not in seen, f"duplicate id {node.id}"
            seen.add(node.id)
            assert node.parent_id == parent_id
            entry = tree.catalog.get(node.type)
            assert (node.children is not None) == entry.can_have_children
            check(node.children or [], node.id)

    check(tree.elements, None)

"""
Registry of external collaborators the assistant dispatches step actions to.

A collaborator takes ``(payload, context)`` and returns a dict with at least a
``success`` flag; it may be a plain function or a coroutine function. The host
application replaces the simulated defaults below with real ones (file editor,
command runner, GitHub client, ...).
"""

import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

_TOOLS: Dict[str, Callable] = {}


def register_tool(name: str):
    def _wrap(fn):
        _TOOLS[name] = fn
        return fn
    return _wrap


def get_tool(name: str) -> Callable:
    if name not in _TOOLS:
        raise ValueError(f"Tool not found: {name}")
    return _TOOLS[name]


def unregister_tool(name: str) -> None:
    _TOOLS.pop(name, None)


def registered_tools() -> List[str]:
    return sorted(_TOOLS)


# Simulated collaborators
@register_tool("code_edit")
def code_edit(payload: Dict[str, Any], context: Dict[str, Any]) -> Dict[str, Any]:
    """ Pretend to apply code changes for the request's intent. """
    logger.info("Simulated code edit for intent %r", payload.get("intent"))
    return {"success": True, "output": f"Applied code changes ({payload.get('intent', 'general')})"}


@register_tool("file_create")
def file_create(payload: Dict[str, Any], context: Dict[str, Any]) -> Dict[str, Any]:
    path = payload.get("path")
    if not path:
        return {"success": False, "error": "file_create requires a 'path'"}
    logger.info("Simulated file create: %s", path)
    return {"success": True, "output": f"Created {path}"}


@register_tool("file_delete")
def file_delete(payload: Dict[str, Any], context: Dict[str, Any]) -> Dict[str, Any]:
    path = payload.get("path")
    if not path:
        return {"success": False, "error": "file_delete requires a 'path'"}
    logger.info("Simulated file delete: %s", path)
    return {"success": True, "output": f"Deleted {path}"}


@register_tool("server_command")
def server_command(payload: Dict[str, Any], context: Dict[str, Any]) -> Dict[str, Any]:
    command = payload.get("command") or payload.get("intent", "noop")
    logger.info("Simulated server command: %s", command)
    return {"success": True, "output": f"Ran {command}"}


@register_tool("environment_setup")
def environment_setup(payload: Dict[str, Any], context: Dict[str, Any]) -> Dict[str, Any]:
    logger.info("Simulated environment setup: %s", payload)
    return {"success": True, "output": "Environment ready"}

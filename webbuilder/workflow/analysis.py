"""
Rule-based request analysis.

This is NOT a model: requests are classified by keyword lists. Swap in a real
classifier by producing the same ``RequestAnalysis``.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

# checked in order; the first group with a hit wins
_INTENT_KEYWORDS: List[Tuple[str, List[str]]] = [
    ("create", ["create", "add", "build"]),
    ("debug", ["fix", "debug", "error"]),
    ("edit", ["edit", "change", "modify"]),
    ("deploy", ["deploy", "server", "environment"]),
    ("help", ["help", "how", "explain"]),
]

_COMPLEXITY_INDICATORS = ["component", "database", "api", "server", "deploy", "test", "integration"]

_CODE_KEYWORDS = ["component", "function", "class", "css", "style", "html", "javascript", "typescript"]

_SERVER_KEYWORDS = ["server", "deploy", "environment", "command", "terminal", "npm", "run"]


@dataclass
class RequestAnalysis:
    intent: str
    complexity: str  # low, medium, high
    requires_code: bool
    requires_server: bool
    screen_aware: bool = False


def detect_intent(message: str) -> str:
    lower = message.lower()
    for intent, keywords in _INTENT_KEYWORDS:
        if any(keyword in lower for keyword in keywords):
            return intent
    return "general"


def assess_complexity(message: str) -> str:
    lower = message.lower()
    matches = sum(1 for indicator in _COMPLEXITY_INDICATORS if indicator in lower)
    if matches >= 3:
        return "high"
    if matches >= 1:
        return "medium"
    return "low"


def requires_code_changes(message: str) -> bool:
    lower = message.lower()
    return any(keyword in lower for keyword in _CODE_KEYWORDS)


def requires_server_access(message: str) -> bool:
    lower = message.lower()
    return any(keyword in lower for keyword in _SERVER_KEYWORDS)


def analyze_request(message: str, context: Optional[object] = None) -> RequestAnalysis:
    return RequestAnalysis(
        intent=detect_intent(message),
        complexity=assess_complexity(message),
        requires_code=requires_code_changes(message),
        requires_server=requires_server_access(message),
        screen_aware=context is not None,
    )

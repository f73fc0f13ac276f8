""" Data models for assistant work plans and their audit trail """

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class PlanStatus(str, Enum):
    ANALYZING = "analyzing"
    PLANNING = "planning"
    APPROVED = "approved"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (PlanStatus.COMPLETED, PlanStatus.FAILED)


class StepStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class ActionType(str, Enum):
    CODE_EDIT = "code_edit"
    FILE_CREATE = "file_create"
    FILE_DELETE = "file_delete"
    SERVER_COMMAND = "server_command"
    ENVIRONMENT_SETUP = "environment_setup"
    CHECKPOINT_CREATE = "checkpoint_create"


class FailureReason(str, Enum):
    USER_CANCELLED = "user_cancelled"
    STEP_FAILED = "step_failed"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


def new_record_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


@dataclass
class StepAction:
    type: ActionType
    payload: Dict[str, Any] = field(default_factory=dict)
    description: str = ""


@dataclass
class WorkflowStep:
    id: str
    title: str
    description: str = ""
    actions: List[StepAction] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)
    estimated_minutes: int = 0
    status: StepStatus = StepStatus.PENDING


@dataclass
class PlanFailure:
    """ Enough context for a human to pick up a halted plan by hand. """
    reason: FailureReason
    message: str
    step_id: Optional[str] = None
    step_description: str = ""
    last_completed_index: int = -1


@dataclass
class WorkflowPlan:
    id: str
    title: str
    description: str = ""
    status: PlanStatus = PlanStatus.ANALYZING
    steps: List[WorkflowStep] = field(default_factory=list)
    steps_total: int = 0
    steps_completed: int = 0
    request: str = ""
    approved_by: Optional[str] = None
    approved_at: Optional[float] = None
    failure: Optional[PlanFailure] = None
    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)

    def step(self, step_id: str) -> Optional[WorkflowStep]:
        return next((s for s in self.steps if s.id == step_id), None)

    def touch(self) -> None:
        self.updated_at = time.time()

    @property
    def progress(self) -> float:
        """ Percentage of completed steps. """
        if not self.steps_total:
            return 0.0
        return self.steps_completed / self.steps_total * 100

    @property
    def estimated_minutes_total(self) -> int:
        return sum(s.estimated_minutes for s in self.steps)

    @property
    def estimated_minutes_remaining(self) -> int:
        return sum(s.estimated_minutes for s in self.steps if s.status != StepStatus.COMPLETED)

    @property
    def last_completed_index(self) -> int:
        last = -1
        for index, step in enumerate(self.steps):
            if step.status == StepStatus.COMPLETED:
                last = index
        return last

    def failure_report(self) -> Optional[str]:
        if self.failure is None:
            return None
        f = self.failure
        where = f"at step '{f.step_id}' ({f.step_description})" if f.step_id else "before execution"
        return (
            f"Plan '{self.title}' failed {where}: {f.message}. "
            f"Last completed step index: {f.last_completed_index}."
        )


@dataclass(frozen=True)
class Checkpoint:
    id: str
    name: str
    plan_id: Optional[str] = None
    step_id: Optional[str] = None
    description: str = ""
    payload: Dict[str, Any] = field(default_factory=dict)
    success: bool = True
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "checkpoint",
            "id": self.id,
            "name": self.name,
            "plan_id": self.plan_id,
            "step_id": self.step_id,
            "description": self.description,
            "payload": self.payload,
            "success": self.success,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class LogEntry:
    id: str
    action: str
    details: str = ""
    plan_id: Optional[str] = None
    step_id: Optional[str] = None
    success: bool = True
    metadata: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "log",
            "id": self.id,
            "action": self.action,
            "details": self.details,
            "plan_id": self.plan_id,
            "step_id": self.step_id,
            "success": self.success,
            "metadata": self.metadata,
            "timestamp": self.timestamp,
        }

from typing import List, Optional, Dict, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .models import ActionType


class ActionSpec(BaseModel):
    type: ActionType
    payload: Dict[str, Any] = Field(default_factory=dict)
    description: str = ""

    model_config = ConfigDict(extra="forbid")


class StepTemplateSpec(BaseModel):
    id: str
    title: str
    description: str = ""
    actions: List[ActionSpec] = Field(default_factory=list)
    estimated_minutes: int = Field(default=0, ge=0)
    notes: Optional[List[str]] = None

    model_config = ConfigDict(extra="forbid")


class StepTemplatesSpec(BaseModel):
    version: Optional[int] = None
    steps: List[StepTemplateSpec] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")  # Unexpected keys in the YAML are typos


def validate_step_templates(raw: Dict[str, Any]) -> StepTemplatesSpec:
    """Validate a raw YAML dict against StepTemplatesSpec."""
    try:
        return StepTemplatesSpec.model_validate(raw)
    except ValidationError as e:
        raise ValueError(f"YAML validation error: {e}")

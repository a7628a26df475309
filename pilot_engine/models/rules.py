"""Rule Model: user-authored declarative keyword rules."""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ConditionType(str, Enum):
    NATURAL_LANGUAGE = "natural_language"   # Keyword expression matched against text
    LOGICAL = "logical"                     # Accepted but never triggers
    COMPOSITE = "composite"                 # Accepted but never triggers


class RuleCondition(BaseModel):
    type: ConditionType = ConditionType.NATURAL_LANGUAGE
    expression: str
    parameters: Dict[str, Any] = {}
    confidence_threshold: Optional[float] = Field(default=None, ge=0, le=100)


class RuleAction(BaseModel):
    type: str                               # e.g., "vote"
    parameters: Dict[str, Any] = {}         # e.g., {"vote": "YES"}
    confirmation_required: bool = False


class Rule(BaseModel):
    """A keyword-expression-to-action mapping, evaluated independently of plugins."""

    id: str
    name: str
    description: str = ""
    condition: RuleCondition
    action: RuleAction
    enabled: bool = True
    priority: int = 0                       # Higher is evaluated first
    metadata: Dict[str, Any] = {}

"""Domain Models - Pydantic schemas for all entities"""
from datetime import datetime
from typing import Annotated, Any, Dict, List, Optional
from pydantic import BaseModel, Field, EmailStr, ConfigDict, PlainSerializer, field_validator

from .enums import (
    AutoRuleTrigger, CaseStatus, CasePriority, CaseType, AuditEntityType,
    ConditionOperator, ConditionLogic
)
from .errors import ConditionSyntaxError
from .conditions import parse_condition
from ..utils.time import format_iso

# Stored and returned as fixed-width UTC strings so they sort in time order
Timestamp = Annotated[datetime, PlainSerializer(format_iso, return_type=str, when_used="json")]


# ============================================================================
# Identity
# ============================================================================

class User(BaseModel):
    """User record as held by the identity provider"""
    model_config = ConfigDict(extra="ignore")

    user_id: str = Field(..., description="User ID")
    tenant_id: str = Field(..., description="Owning tenant")
    email: EmailStr = Field(..., description="User email")
    name: str = Field(..., description="Display name")
    role: str = Field(..., description="Current role")
    is_active: bool = Field(default=True)


class ActorContext(BaseModel):
    """Authenticated caller resolved from the bearer token"""
    model_config = ConfigDict(extra="forbid")

    user_id: str
    tenant_id: str
    email: EmailStr
    name: str
    role: str


# ============================================================================
# Condition & Transition
# ============================================================================

class Condition(BaseModel):
    """Single predicate on a case data field"""
    model_config = ConfigDict(extra="forbid")

    field: str = Field(..., description="Field path in case data (dot notation)")
    operator: ConditionOperator = Field(..., description="Comparison operator")
    value: Any = Field(None, description="Value to compare against")


class ConditionGroup(BaseModel):
    """Group of conditions with AND/OR logic"""
    model_config = ConfigDict(extra="forbid")

    logic: ConditionLogic = Field(ConditionLogic.AND, description="AND or OR")
    conditions: List[Condition] = Field(default_factory=list)
    expression: Optional[str] = Field(None, description="Source text when parsed from a string")


class Stage(BaseModel):
    """Stage a case can occupy"""
    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., min_length=1, description="Stage ID, unique within a definition")
    label: str = Field(..., description="Display label")
    description: Optional[str] = None
    sla_hours: Optional[float] = Field(None, gt=0, description="Time allowed in this stage")
    assigned_roles: List[str] = Field(default_factory=list, description="Roles expected to work this stage")


class Transition(BaseModel):
    """Role-gated edge between two stages, triggered by named actions"""
    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., min_length=1)
    from_stage: str = Field(..., description="Source stage ID")
    to_stage: str = Field(..., description="Target stage ID")
    condition: ConditionGroup = Field(default_factory=ConditionGroup)
    roles: List[str] = Field(default_factory=list, description="Roles allowed to execute")
    actions: List[str] = Field(default_factory=list, description="Action names that trigger this transition")

    @field_validator("condition", mode="before")
    @classmethod
    def _parse_condition_string(cls, value: Any) -> Any:
        if value is None:
            return ConditionGroup()
        if isinstance(value, str):
            try:
                logic, conditions = parse_condition(value)
            except ConditionSyntaxError as e:
                raise ValueError(e.message) from e
            return {"logic": logic, "conditions": conditions, "expression": value}
        return value


class AutoRule(BaseModel):
    """Side-effect hook attached to a stage"""
    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., min_length=1)
    stage: str = Field(..., description="Stage this rule watches")
    trigger: AutoRuleTrigger = Field(AutoRuleTrigger.ON_ENTER)
    action: str = Field(..., description="Action reference, e.g. call:ai/score")
    params: Dict[str, Any] = Field(default_factory=dict)


# ============================================================================
# Workflow Definition
# ============================================================================

class WorkflowDefinitionDraft(BaseModel):
    """Author-supplied definition before a version is assigned"""
    model_config = ConfigDict(extra="forbid")

    workflow_id: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    is_active: bool = Field(default=False)
    stages: List[Stage] = Field(default_factory=list)
    transitions: List[Transition] = Field(default_factory=list)
    auto_rules: List[AutoRule] = Field(default_factory=list)


class WorkflowDefinition(WorkflowDefinitionDraft):
    """Immutable, versioned workflow definition"""
    model_config = ConfigDict(extra="ignore")

    definition_id: str
    tenant_id: str
    version: int = Field(..., ge=1)
    created_by: str
    created_at: Timestamp

    @property
    def first_stage(self) -> Optional[Stage]:
        return self.stages[0] if self.stages else None

    def get_stage(self, stage_id: str) -> Optional[Stage]:
        for stage in self.stages:
            if stage.id == stage_id:
                return stage
        return None

    def has_stage(self, stage_id: str) -> bool:
        return self.get_stage(stage_id) is not None


# ============================================================================
# Case
# ============================================================================

class Case(BaseModel):
    """Case moving through a tenant's workflow"""
    model_config = ConfigDict(extra="ignore")

    case_id: str
    tenant_id: str
    type: CaseType = Field(default=CaseType.GENERIC)
    workflow_id: str
    current_stage: str
    status: CaseStatus = Field(default=CaseStatus.ACTIVE)
    priority: CasePriority = Field(default=CasePriority.MEDIUM)
    assigned_to: Optional[str] = None
    created_by: str
    data: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    stage_entered_at: Optional[Timestamp] = None
    created_at: Timestamp
    updated_at: Timestamp
    version: int = Field(default=1, ge=1, description="Optimistic concurrency token")


class CaseComment(BaseModel):
    """Free-text comment left alongside a case action"""
    model_config = ConfigDict(extra="ignore")

    comment_id: str
    tenant_id: str
    case_id: str
    user_id: str
    comment: str
    created_at: Timestamp


# ============================================================================
# Audit
# ============================================================================

class AuditEntry(BaseModel):
    """Append-only audit record"""
    model_config = ConfigDict(extra="ignore")

    audit_entry_id: str
    tenant_id: str
    actor_id: str
    entity_type: AuditEntityType
    entity_id: str
    action: str
    old_value: Optional[Dict[str, Any]] = None
    new_value: Optional[Dict[str, Any]] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    timestamp: Timestamp
    actor_name: Optional[str] = Field(None, description="Filled in at read time")


# ============================================================================
# Auto-rule outcome
# ============================================================================

class AutoRuleOutcome(BaseModel):
    """Result of firing one auto-rule"""
    rule_id: str
    action: str
    succeeded: bool
    skipped: bool = False
    result: Optional[Any] = None
    error: Optional[str] = None

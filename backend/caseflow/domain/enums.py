"""Domain Enumerations - All status and type definitions"""
from enum import Enum


class CaseStatus(str, Enum):
    """Global case status"""
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ON_HOLD = "on_hold"


class CasePriority(str, Enum):
    """Case priority"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class CaseType(str, Enum):
    """Domain tag of a case"""
    LOAN = "loan"
    GENERIC = "generic"


class UserRole(str, Enum):
    """Roles known to the loan-origination tenant setup"""
    ADMIN = "Admin"
    MAKER = "Maker"
    CHECKER = "Checker"
    UNDERWRITER = "Underwriter"
    DISBURSEMENT_OFFICER = "DisbursementOfficer"
    AUDITOR = "Auditor"


class AutoRuleTrigger(str, Enum):
    """When an auto-rule fires"""
    ON_ENTER = "onEnter"
    ON_EXIT = "onExit"  # Declared, not fired by the engine
    SCHEDULED = "scheduled"  # Declared, not fired by the engine


class AuditEntityType(str, Enum):
    """Entity kinds recorded in the audit log"""
    CASE = "case"
    WORKFLOW_DEFINITION = "workflow_definition"


class AuditAction(str, Enum):
    """Fixed audit actions (transitions use TRANSITION_<ACTION>)"""
    CREATE = "CREATE"
    COMMENT = "COMMENT"
    DEACTIVATE = "DEACTIVATE"


class ConditionOperator(str, Enum):
    """Operators for transition conditions"""
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    GREATER_THAN_OR_EQUALS = "greater_than_or_equals"
    LESS_THAN_OR_EQUALS = "less_than_or_equals"
    IN = "in"
    NOT_IN = "not_in"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"
    IS_TRUE = "is_true"
    IS_FALSE = "is_false"


class ConditionLogic(str, Enum):
    """How conditions in a group combine"""
    AND = "AND"
    OR = "OR"

"""Workflow Engine - The brain of the system"""
from .engine import WorkflowEngine
from .permission_guard import PermissionGuard
from .transition_resolver import TransitionResolver
from .condition_evaluator import ConditionEvaluator
from .audit_writer import AuditWriter
from .auto_rule_dispatcher import AutoRuleDispatcher

__all__ = [
    "WorkflowEngine",
    "PermissionGuard",
    "TransitionResolver",
    "ConditionEvaluator",
    "AuditWriter",
    "AutoRuleDispatcher",
]

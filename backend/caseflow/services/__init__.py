"""Services Layer - Business Logic"""
from .workflow_service import WorkflowService
from .case_service import CaseService
from .automation_client import AutomationClient

__all__ = [
    "WorkflowService",
    "CaseService",
    "AutomationClient",
]

"""Repository modules - Data access layer"""
from .mongo_client import get_database, get_collection, create_indexes
from .workflow_repo import WorkflowRepository
from .case_repo import CaseRepository
from .audit_repo import AuditRepository
from .user_repo import UserRepository
from .comment_repo import CommentRepository

__all__ = [
    "get_database",
    "get_collection",
    "create_indexes",
    "WorkflowRepository",
    "CaseRepository",
    "AuditRepository",
    "UserRepository",
    "CommentRepository",
]

"""API Dependencies - Common dependencies for routes"""
from typing import Optional
from fastapi import Depends, Header, Path
from pymongo.database import Database

from ..domain.models import ActorContext
from ..domain.errors import AuthenticationError
from ..engine.engine import WorkflowEngine
from ..engine.audit_writer import AuditWriter
from ..engine.auto_rule_dispatcher import AutoRuleDispatcher
from ..engine.permission_guard import PermissionGuard
from ..repositories.mongo_client import get_database
from ..repositories.case_repo import CaseRepository
from ..repositories.workflow_repo import WorkflowRepository
from ..repositories.audit_repo import AuditRepository
from ..repositories.user_repo import UserRepository
from ..repositories.comment_repo import CommentRepository
from ..services.automation_client import AutomationClient
from ..services.workflow_service import WorkflowService
from ..services.case_service import CaseService
from ..utils.jwt import get_user_id_from_header
from ..utils.logger import set_correlation_id
from ..utils.idgen import generate_correlation_id


def get_db() -> Database:
    """Database handle; overridden in tests"""
    return get_database()


def get_automation_client() -> AutomationClient:
    """Automation endpoint client; overridden in tests"""
    return AutomationClient()


def get_correlation_id_dep(
    x_correlation_id: Optional[str] = Header(None, alias="X-Correlation-Id")
) -> str:
    """
    Get or generate correlation ID for request tracing

    If client provides X-Correlation-Id, use it.
    Otherwise generate a new one.
    """
    correlation_id = x_correlation_id or generate_correlation_id()
    set_correlation_id(correlation_id)
    return correlation_id


def get_current_user_dep(
    tenant_id: str = Path(..., min_length=1),
    authorization: Optional[str] = Header(None),
    db: Database = Depends(get_db)
) -> ActorContext:
    """
    Resolve the caller from the bearer token

    The token's user must exist, be active, and belong to the tenant in the path.

    Raises:
        AuthenticationError: 401 if the token is missing/invalid or the user is unknown or inactive
        TenantAccessError: 403 if the user belongs to another tenant
    """
    user_id = get_user_id_from_header(authorization)

    user = UserRepository(db).get(user_id)
    if user is None or not user.is_active:
        raise AuthenticationError("Invalid user or inactive account")

    actor = ActorContext(
        user_id=user.user_id,
        tenant_id=user.tenant_id,
        email=user.email,
        name=user.name,
        role=user.role
    )
    PermissionGuard().ensure_same_tenant(actor, tenant_id)
    return actor


def get_workflow_service(db: Database = Depends(get_db)) -> WorkflowService:
    return WorkflowService(
        repo=WorkflowRepository(db),
        audit_writer=AuditWriter(AuditRepository(db), UserRepository(db))
    )


def get_case_service(
    db: Database = Depends(get_db),
    automation: AutomationClient = Depends(get_automation_client)
) -> CaseService:
    case_repo = CaseRepository(db)
    workflow_repo = WorkflowRepository(db)
    user_repo = UserRepository(db)
    audit_writer = AuditWriter(AuditRepository(db), user_repo)

    engine = WorkflowEngine(
        case_repo=case_repo,
        workflow_repo=workflow_repo,
        role_provider=user_repo,
        audit_writer=audit_writer,
        dispatcher=AutoRuleDispatcher(automation)
    )
    return CaseService(
        engine=engine,
        case_repo=case_repo,
        workflow_repo=workflow_repo,
        comment_repo=CommentRepository(db),
        audit_writer=audit_writer
    )

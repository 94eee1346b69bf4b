"""Case API Routes - Case creation, reads and actions"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from ..deps import get_current_user_dep, get_correlation_id_dep, get_case_service
from ...domain.models import ActorContext, Case, Stage, AuditEntry, CaseComment
from ...domain.enums import CaseStatus, CasePriority, CaseType
from ...services.case_service import CaseService
from ...utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================

class CreateCaseRequest(BaseModel):
    """Request to open a case"""
    workflow_id: str = Field(..., min_length=1)
    type: CaseType = Field(default=CaseType.GENERIC)
    priority: CasePriority = Field(default=CasePriority.MEDIUM)
    assigned_to: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class CaseActionRequest(BaseModel):
    """Request to perform an action on a case"""
    action: str = Field(..., min_length=1)
    data: Optional[Dict[str, Any]] = None
    comment: Optional[str] = Field(None, max_length=4000)


class CaseListResponse(BaseModel):
    """Response for case list"""
    items: List[Case]
    page: int
    page_size: int
    total: int


class CaseDetailResponse(BaseModel):
    """Case with stage, SLA, available actions, audit trail and comments"""
    case: Case
    stage: Optional[Stage] = None
    sla_due_at: Optional[datetime] = None
    is_overdue: bool = False
    available_actions: List[str] = Field(default_factory=list)
    audit_trail: List[AuditEntry] = Field(default_factory=list)
    comments: List[CaseComment] = Field(default_factory=list)


class AvailableActionsResponse(BaseModel):
    case_id: str
    current_stage: str
    actions: List[str]


# ============================================================================
# Routes
# ============================================================================

@router.get("", response_model=CaseListResponse)
def list_cases(
    tenant_id: str,
    status_filter: Optional[CaseStatus] = Query(None, alias="status"),
    assigned_to: Optional[str] = Query(None, alias="assignedTo"),
    case_type: Optional[CaseType] = Query(None, alias="type"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: CaseService = Depends(get_case_service)
):
    """List cases, newest first"""
    skip = (page - 1) * page_size
    items = service.list_cases(
        tenant_id,
        status=status_filter,
        assigned_to=assigned_to,
        case_type=case_type,
        skip=skip,
        limit=page_size
    )
    total = service.count_cases(tenant_id, status_filter, assigned_to, case_type)
    return CaseListResponse(items=items, page=page, page_size=page_size, total=total)


@router.post("", response_model=Case, status_code=status.HTTP_201_CREATED)
def create_case(
    tenant_id: str,
    request: CreateCaseRequest,
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: CaseService = Depends(get_case_service)
):
    """Open a case in the first stage of the workflow's active definition"""
    return service.create_case(
        tenant_id=tenant_id,
        actor_id=actor.user_id,
        workflow_id=request.workflow_id,
        case_type=request.type,
        data=request.data,
        priority=request.priority,
        assigned_to=request.assigned_to,
        metadata=request.metadata
    )


@router.get("/{case_id}", response_model=CaseDetailResponse)
def get_case(
    tenant_id: str,
    case_id: str,
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: CaseService = Depends(get_case_service)
):
    """Get a case with its current stage, SLA and recent audit trail"""
    return CaseDetailResponse(**service.get_case_detail(tenant_id, actor.user_id, case_id))


@router.get("/{case_id}/audit", response_model=List[AuditEntry])
def get_case_audit(
    tenant_id: str,
    case_id: str,
    limit: int = Query(100, ge=1, le=500),
    actor: ActorContext = Depends(get_current_user_dep),
    service: CaseService = Depends(get_case_service)
):
    """Audit trail of a case, newest first"""
    return service.get_audit_trail(tenant_id, case_id, limit=limit)


@router.get("/{case_id}/actions", response_model=AvailableActionsResponse)
def get_case_actions(
    tenant_id: str,
    case_id: str,
    actor: ActorContext = Depends(get_current_user_dep),
    service: CaseService = Depends(get_case_service)
):
    """Actions the caller may take from the case's current stage"""
    case = service.get_case(tenant_id, case_id)
    actions = service.available_actions(tenant_id, actor.user_id, case_id)
    return AvailableActionsResponse(case_id=case_id, current_stage=case.current_stage, actions=actions)


@router.post("/{case_id}/action", response_model=Case)
def perform_case_action(
    tenant_id: str,
    case_id: str,
    request: CaseActionRequest,
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: CaseService = Depends(get_case_service)
):
    """
    Perform an action on a case

    Moves the case along the matching transition and merges ``data`` into
    the case's data. Errors: 400 invalid action or unmet condition,
    403 role not permitted, 404 case or workflow missing, 409 concurrent update.
    """
    case = service.execute_action(
        tenant_id=tenant_id,
        actor_id=actor.user_id,
        case_id=case_id,
        action=request.action,
        data=request.data,
        comment=request.comment
    )

    logger.info(
        f"Action '{request.action}' performed on case {case_id}",
        extra={"tenant_id": tenant_id, "case_id": case_id, "actor_id": actor.user_id, "action": request.action}
    )
    return case

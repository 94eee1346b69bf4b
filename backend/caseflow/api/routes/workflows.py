"""Workflow API Routes - Definition authoring and lookup"""
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Body, Depends, Query, status
from pydantic import BaseModel, Field

from ..deps import get_current_user_dep, get_correlation_id_dep, get_workflow_service
from ...domain.models import ActorContext, WorkflowDefinition
from ...engine.permission_guard import PermissionGuard
from ...services.workflow_service import WorkflowService
from ...utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


# ============================================================================
# Response Models
# ============================================================================

class WorkflowListResponse(BaseModel):
    """Response for workflow list"""
    items: List[WorkflowDefinition]
    total: int


class ValidationResult(BaseModel):
    """Validation result"""
    is_valid: bool
    errors: List[Dict[str, Any]] = Field(default_factory=list)
    warnings: List[Dict[str, Any]] = Field(default_factory=list)


# ============================================================================
# Routes
# ============================================================================

@router.get("", response_model=WorkflowListResponse)
def list_workflows(
    tenant_id: str,
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: WorkflowService = Depends(get_workflow_service)
):
    """List the active definition of every workflow, ordered by name"""
    items = service.list_active(tenant_id)
    return WorkflowListResponse(items=items, total=len(items))


@router.post("", response_model=WorkflowDefinition, status_code=status.HTTP_201_CREATED)
def create_workflow(
    tenant_id: str,
    definition: Dict[str, Any] = Body(...),
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: WorkflowService = Depends(get_workflow_service)
):
    """
    Create a workflow definition version

    Admin only. The body is a draft definition; the response carries the
    assigned version. Posting an existing workflow_id stores a new version.
    """
    PermissionGuard().ensure_can_author_workflows(actor)
    created = service.create_definition(tenant_id, actor.user_id, definition)

    logger.info(
        f"Created workflow {created.workflow_id} v{created.version}",
        extra={"tenant_id": tenant_id, "workflow_id": created.workflow_id, "actor_id": actor.user_id}
    )
    return created


@router.post("/validate", response_model=ValidationResult)
def validate_workflow(
    tenant_id: str,
    definition: Dict[str, Any] = Body(...),
    actor: ActorContext = Depends(get_current_user_dep),
    service: WorkflowService = Depends(get_workflow_service)
):
    """Validate a draft definition without storing it"""
    PermissionGuard().ensure_can_author_workflows(actor)
    return ValidationResult(**service.validate_draft(definition))


@router.get("/{workflow_id}", response_model=WorkflowDefinition)
def get_workflow(
    tenant_id: str,
    workflow_id: str,
    version: Optional[int] = Query(None, ge=1),
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: WorkflowService = Depends(get_workflow_service)
):
    """Get the active definition, or a specific version"""
    return service.get_definition(tenant_id, workflow_id, version)


@router.get("/{workflow_id}/versions", response_model=WorkflowListResponse)
def list_workflow_versions(
    tenant_id: str,
    workflow_id: str,
    actor: ActorContext = Depends(get_current_user_dep),
    service: WorkflowService = Depends(get_workflow_service)
):
    """List all versions of a workflow, newest first"""
    items = service.list_versions(tenant_id, workflow_id)
    return WorkflowListResponse(items=items, total=len(items))


@router.post("/{workflow_id}/deactivate")
def deactivate_workflow(
    tenant_id: str,
    workflow_id: str,
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: WorkflowService = Depends(get_workflow_service)
):
    """
    Take a workflow out of service (Admin only)

    Existing cases keep their stage but cannot move until a version is activated.
    """
    PermissionGuard().ensure_can_author_workflows(actor)
    version = service.deactivate_definition(tenant_id, actor.user_id, workflow_id)
    return {"workflow_id": workflow_id, "deactivated_version": version}


@router.put("/{workflow_id}", response_model=WorkflowDefinition)
def update_workflow(
    tenant_id: str,
    workflow_id: str,
    definition: Dict[str, Any] = Body(...),
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: WorkflowService = Depends(get_workflow_service)
):
    """
    Update a workflow

    Admin only. Stores the body as a new version; earlier versions are kept.
    """
    PermissionGuard().ensure_can_author_workflows(actor)
    definition = {**definition, "workflow_id": definition.get("workflow_id", workflow_id)}
    return service.update_definition(tenant_id, actor.user_id, workflow_id, definition)

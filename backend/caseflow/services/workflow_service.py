"""Workflow Service - Workflow definition authoring and lookup"""
from typing import Any, Dict, List, Optional, Set, Tuple, Union
from pydantic import ValidationError as PydanticValidationError

from ..domain.models import WorkflowDefinition, WorkflowDefinitionDraft
from ..domain.enums import AutoRuleTrigger, UserRole, AuditEntityType, AuditAction
from ..domain.errors import ValidationError, WorkflowValidationError, WorkflowNotFoundError
from ..repositories.workflow_repo import WorkflowRepository
from ..engine.audit_writer import AuditWriter
from ..utils.idgen import generate_definition_id
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)

DraftInput = Union[WorkflowDefinitionDraft, Dict[str, Any]]

KNOWN_ROLES = {role.value for role in UserRole}


class WorkflowService:
    """Service for workflow definition operations"""

    def __init__(
        self,
        repo: Optional[WorkflowRepository] = None,
        audit_writer: Optional[AuditWriter] = None
    ):
        self.repo = repo or WorkflowRepository()
        self.audit_writer = audit_writer or AuditWriter()

    # =========================================================================
    # Reads
    # =========================================================================

    def get_definition(
        self,
        tenant_id: str,
        workflow_id: str,
        version: Optional[int] = None
    ) -> WorkflowDefinition:
        """Get the active definition, or a specific version when given"""
        return self.repo.get_or_raise(tenant_id, workflow_id, version)

    def list_active(self, tenant_id: str) -> List[WorkflowDefinition]:
        """List active definitions for a tenant, ordered by name"""
        return self.repo.list_active(tenant_id)

    def list_versions(self, tenant_id: str, workflow_id: str) -> List[WorkflowDefinition]:
        """List all versions of a workflow, newest first"""
        versions = self.repo.list_versions(tenant_id, workflow_id)
        if not versions:
            raise WorkflowNotFoundError(
                f"Workflow {workflow_id} not found",
                details={"workflow_id": workflow_id}
            )
        return versions

    # =========================================================================
    # Authoring
    # =========================================================================

    def create_definition(
        self,
        tenant_id: str,
        actor_id: str,
        draft: DraftInput
    ) -> WorkflowDefinition:
        """
        Store a new version of a workflow definition

        The version is max(existing) + 1 and is only taken by a successful
        insert. When the draft asks to be active, the workflow's active pointer
        is moved to the new version in a single write, so at most one version
        is active at any time.

        Raises:
            WorkflowValidationError: If the draft is malformed
            ConcurrencyError: If concurrent creates kept taking the next version
        """
        draft = coerce_draft(draft)
        validation = check_draft(draft)
        if not validation["is_valid"]:
            raise WorkflowValidationError(
                "Workflow validation failed",
                details={"workflow_id": draft.workflow_id, "errors": validation["errors"]}
            )
        for warning in validation["warnings"]:
            logger.warning(
                f"Workflow {draft.workflow_id}: {warning['message']}",
                extra={"tenant_id": tenant_id, "workflow_id": draft.workflow_id}
            )

        definition = WorkflowDefinition(
            **draft.model_dump(),
            definition_id=generate_definition_id(),
            tenant_id=tenant_id,
            version=1,  # numbered on insert
            created_by=actor_id,
            created_at=utc_now()
        )
        definition = self.repo.insert_next_version(definition)
        version = definition.version

        activated = False
        if draft.is_active:
            activated = self.repo.activate_version(tenant_id, draft.workflow_id, version)
        definition = definition.model_copy(update={"is_active": activated})

        self.audit_writer.write_definition_created(definition)

        logger.info(
            f"Stored workflow {definition.workflow_id} v{version} (active={activated})",
            extra={
                "tenant_id": tenant_id,
                "workflow_id": definition.workflow_id,
                "version": version,
                "actor_id": actor_id
            }
        )
        return definition

    def update_definition(
        self,
        tenant_id: str,
        actor_id: str,
        workflow_id: str,
        draft: DraftInput
    ) -> WorkflowDefinition:
        """Updating a workflow stores a new version; earlier versions are kept"""
        draft = coerce_draft(draft)
        if draft.workflow_id != workflow_id:
            raise ValidationError(
                f"Definition workflow_id '{draft.workflow_id}' does not match '{workflow_id}'",
                details={"workflow_id": workflow_id}
            )
        if not self.repo.list_versions(tenant_id, workflow_id):
            raise WorkflowNotFoundError(
                f"Workflow {workflow_id} not found",
                details={"workflow_id": workflow_id}
            )
        return self.create_definition(tenant_id, actor_id, draft)

    def deactivate_definition(self, tenant_id: str, actor_id: str, workflow_id: str) -> int:
        """
        Take a workflow out of service

        Returns the version that was active.

        Raises:
            WorkflowNotFoundError: If the workflow has no active version
        """
        version = self.repo.deactivate(tenant_id, workflow_id)
        if version is None:
            raise WorkflowNotFoundError(
                f"Workflow {workflow_id} has no active definition",
                details={"workflow_id": workflow_id}
            )

        definition = self.repo.get_version(tenant_id, workflow_id, version)
        self.audit_writer.append(
            tenant_id=tenant_id,
            actor_id=actor_id,
            entity_type=AuditEntityType.WORKFLOW_DEFINITION,
            entity_id=definition.definition_id if definition else workflow_id,
            action=AuditAction.DEACTIVATE.value,
            old_value={"active_version": version},
            new_value={"active_version": None},
            metadata={"workflow_id": workflow_id, "version": version}
        )
        return version

    def validate_draft(self, draft: DraftInput) -> Dict[str, Any]:
        """Validate a draft without storing it; returns is_valid, errors and warnings"""
        try:
            draft = coerce_draft(draft)
        except WorkflowValidationError as e:
            return {"is_valid": False, "errors": e.details.get("errors", []), "warnings": []}
        return check_draft(draft)


# ============================================================================
# Draft validation (no store access, usable offline)
# ============================================================================

def coerce_draft(draft: DraftInput) -> WorkflowDefinitionDraft:
    if isinstance(draft, WorkflowDefinitionDraft):
        return draft
    try:
        return WorkflowDefinitionDraft.model_validate(draft)
    except PydanticValidationError as e:
        errors = [
            {
                "type": "INVALID_FIELD",
                "message": err["msg"],
                "path": ".".join(str(part) for part in err["loc"])
            }
            for err in e.errors()
        ]
        raise WorkflowValidationError(
            "Workflow definition is malformed",
            details={"errors": errors}
        )


def check_draft(draft: WorkflowDefinitionDraft) -> Dict[str, Any]:
    """
    Check the definition graph

    Errors block storage; warnings are logged only.
    """
    errors: List[Dict[str, Any]] = []
    warnings: List[Dict[str, Any]] = []

    if not draft.stages:
        errors.append({
            "type": "EMPTY_STAGES",
            "message": "Workflow must have at least one stage",
            "path": "stages"
        })

    stage_ids: Set[str] = set()
    for i, stage in enumerate(draft.stages):
        if stage.id in stage_ids:
            errors.append({
                "type": "DUPLICATE_STAGE_ID",
                "message": f"Duplicate stage id: {stage.id}",
                "path": f"stages[{i}].id"
            })
        stage_ids.add(stage.id)

    transition_ids: Set[str] = set()
    seen_actions: Dict[Tuple[str, str], str] = {}
    for i, transition in enumerate(draft.transitions):
        path = f"transitions[{i}]"

        if transition.id in transition_ids:
            errors.append({
                "type": "DUPLICATE_TRANSITION_ID",
                "message": f"Duplicate transition id: {transition.id}",
                "path": f"{path}.id"
            })
        transition_ids.add(transition.id)

        for end in ("from_stage", "to_stage"):
            stage_id = getattr(transition, end)
            if stage_id not in stage_ids:
                errors.append({
                    "type": "UNKNOWN_STAGE",
                    "message": f"Transition {transition.id} references unknown stage: {stage_id}",
                    "path": f"{path}.{end}"
                })

        if not transition.actions:
            errors.append({
                "type": "MISSING_ACTIONS",
                "message": f"Transition {transition.id} must declare at least one action",
                "path": f"{path}.actions"
            })
        if not transition.roles:
            errors.append({
                "type": "MISSING_ROLES",
                "message": f"Transition {transition.id} must allow at least one role",
                "path": f"{path}.roles"
            })

        for role in transition.roles:
            if role not in KNOWN_ROLES:
                warnings.append({
                    "type": "UNKNOWN_ROLE",
                    "message": f"Transition {transition.id} allows unknown role: {role}",
                    "path": f"{path}.roles"
                })

        for action in transition.actions:
            key = (transition.from_stage, action)
            if key in seen_actions:
                errors.append({
                    "type": "AMBIGUOUS_ACTION",
                    "message": (
                        f"Action '{action}' from stage '{transition.from_stage}' is declared by "
                        f"both {seen_actions[key]} and {transition.id}"
                    ),
                    "path": f"{path}.actions"
                })
            else:
                seen_actions[key] = transition.id

    for i, rule in enumerate(draft.auto_rules):
        path = f"auto_rules[{i}]"
        if rule.stage not in stage_ids:
            errors.append({
                "type": "UNKNOWN_STAGE",
                "message": f"Auto rule {rule.id} references unknown stage: {rule.stage}",
                "path": f"{path}.stage"
            })
        if rule.trigger != AutoRuleTrigger.ON_ENTER:
            warnings.append({
                "type": "TRIGGER_NOT_FIRED",
                "message": f"Auto rule {rule.id} uses trigger '{rule.trigger.value}', which is never fired",
                "path": f"{path}.trigger"
            })
        if not rule.action.startswith("call:"):
            warnings.append({
                "type": "UNSUPPORTED_ACTION",
                "message": f"Auto rule {rule.id} action '{rule.action}' will be skipped",
                "path": f"{path}.action"
            })

    if draft.stages and not errors:
        reachable = find_reachable_stages(draft.stages[0].id, draft)
        for stage in draft.stages:
            if stage.id not in reachable:
                warnings.append({
                    "type": "UNREACHABLE_STAGE",
                    "message": f"Stage {stage.id} is not reachable from {draft.stages[0].id}",
                    "path": "stages"
                })

    return {
        "is_valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings
    }


def find_reachable_stages(start_stage_id: str, draft: WorkflowDefinitionDraft) -> Set[str]:
    """Breadth-first walk of the transition graph"""
    reachable = {start_stage_id}
    queue = [start_stage_id]
    while queue:
        current = queue.pop(0)
        for transition in draft.transitions:
            if transition.from_stage == current and transition.to_stage not in reachable:
                reachable.add(transition.to_stage)
                queue.append(transition.to_stage)
    return reachable

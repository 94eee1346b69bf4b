"""Audit Writer - Best-effort, append-only audit entries"""
from typing import Any, Dict, List, Optional

from ..domain.models import AuditEntry, Case, Transition, WorkflowDefinition
from ..domain.enums import AuditEntityType, AuditAction
from ..repositories.audit_repo import AuditRepository
from ..repositories.user_repo import UserRepository
from ..utils.idgen import generate_audit_entry_id
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class AuditWriter:
    """
    Write audit entries (append-only)

    Writes are fire-and-forget for the caller: a failed write is logged and
    swallowed so it never fails or rolls back the operation it describes.
    """

    def __init__(
        self,
        repo: Optional[AuditRepository] = None,
        user_repo: Optional[UserRepository] = None
    ):
        self.repo = repo or AuditRepository()
        self.user_repo = user_repo or UserRepository()

    def append(
        self,
        tenant_id: str,
        actor_id: str,
        entity_type: AuditEntityType,
        entity_id: str,
        action: str,
        old_value: Optional[Dict[str, Any]] = None,
        new_value: Optional[Dict[str, Any]] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Optional[AuditEntry]:
        """Append a single audit entry; returns None if the write failed"""
        try:
            entry = AuditEntry(
                audit_entry_id=generate_audit_entry_id(),
                tenant_id=tenant_id,
                actor_id=actor_id,
                entity_type=entity_type,
                entity_id=entity_id,
                action=action,
                old_value=old_value,
                new_value=new_value,
                metadata=metadata or {},
                timestamp=utc_now()
            )
            return self.repo.create_entry(entry)
        except Exception:
            logger.error(
                f"Failed to write audit entry {action} for {entity_type.value} {entity_id}",
                exc_info=True,
                extra={"tenant_id": tenant_id, "actor_id": actor_id, "action": action}
            )
            return None

    def write_transition(
        self,
        tenant_id: str,
        actor_id: str,
        before: Case,
        after: Case,
        transition: Transition,
        action: str
    ) -> Optional[AuditEntry]:
        """Write a case transition entry with old/new (stage, data)"""
        return self.append(
            tenant_id=tenant_id,
            actor_id=actor_id,
            entity_type=AuditEntityType.CASE,
            entity_id=before.case_id,
            action=f"TRANSITION_{action.upper()}",
            old_value={"stage": before.current_stage, "data": before.data},
            new_value={"stage": after.current_stage, "data": after.data},
            metadata={"transition": transition.id, "action": action}
        )

    def write_definition_created(
        self,
        definition: WorkflowDefinition
    ) -> Optional[AuditEntry]:
        """Write a workflow definition creation entry"""
        return self.append(
            tenant_id=definition.tenant_id,
            actor_id=definition.created_by,
            entity_type=AuditEntityType.WORKFLOW_DEFINITION,
            entity_id=definition.definition_id,
            action=AuditAction.CREATE.value,
            new_value=definition.model_dump(mode="json"),
            metadata={"workflow_id": definition.workflow_id, "version": definition.version}
        )

    def write_case_created(self, case: Case) -> Optional[AuditEntry]:
        """Write a case creation entry"""
        return self.append(
            tenant_id=case.tenant_id,
            actor_id=case.created_by,
            entity_type=AuditEntityType.CASE,
            entity_id=case.case_id,
            action=AuditAction.CREATE.value,
            new_value=case.model_dump(mode="json")
        )

    def write_comment(
        self,
        tenant_id: str,
        actor_id: str,
        case_id: str,
        comment_id: str
    ) -> Optional[AuditEntry]:
        """Write a comment entry"""
        return self.append(
            tenant_id=tenant_id,
            actor_id=actor_id,
            entity_type=AuditEntityType.CASE,
            entity_id=case_id,
            action=AuditAction.COMMENT.value,
            metadata={"comment_id": comment_id}
        )

    def trail(
        self,
        tenant_id: str,
        entity_type: AuditEntityType,
        entity_id: str,
        limit: int = 100
    ) -> List[AuditEntry]:
        """Read an entity's audit trail, newest first, with actor names filled in"""
        entries = self.repo.get_trail(tenant_id, entity_type, entity_id, limit)
        names = self.user_repo.get_display_names(e.actor_id for e in entries)
        for entry in entries:
            entry.actor_name = names.get(entry.actor_id)
        return entries

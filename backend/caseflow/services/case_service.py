"""Case Service - Case creation, reads and actions"""
from typing import Any, Dict, List, Optional

from ..domain.models import Case, CaseComment, AuditEntry
from ..domain.enums import CaseStatus, CasePriority, CaseType, AuditEntityType
from ..domain.errors import WorkflowValidationError
from ..repositories.case_repo import CaseRepository
from ..repositories.workflow_repo import WorkflowRepository
from ..repositories.comment_repo import CommentRepository
from ..engine.engine import WorkflowEngine
from ..engine.audit_writer import AuditWriter
from ..utils.idgen import generate_case_id, generate_comment_id
from ..utils.time import utc_now, sla_due_at, is_overdue
from ..utils.logger import get_logger

logger = get_logger(__name__)


class CaseService:
    """
    Service for case operations

    Stage and data changes go through the WorkflowEngine; this service only
    creates cases, reads them, and stores comments left with an action.
    """

    def __init__(
        self,
        engine: Optional[WorkflowEngine] = None,
        case_repo: Optional[CaseRepository] = None,
        workflow_repo: Optional[WorkflowRepository] = None,
        comment_repo: Optional[CommentRepository] = None,
        audit_writer: Optional[AuditWriter] = None
    ):
        self.case_repo = case_repo or CaseRepository()
        self.workflow_repo = workflow_repo or WorkflowRepository()
        self.comment_repo = comment_repo or CommentRepository()
        self.audit_writer = audit_writer or AuditWriter()
        self.engine = engine or WorkflowEngine(
            case_repo=self.case_repo,
            workflow_repo=self.workflow_repo,
            audit_writer=self.audit_writer
        )

    # =========================================================================
    # Create
    # =========================================================================

    def create_case(
        self,
        tenant_id: str,
        actor_id: str,
        workflow_id: str,
        case_type: CaseType = CaseType.GENERIC,
        data: Optional[Dict[str, Any]] = None,
        priority: CasePriority = CasePriority.MEDIUM,
        assigned_to: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Case:
        """Open a case in the first stage of the workflow's active definition"""
        definition = self.workflow_repo.get_or_raise(tenant_id, workflow_id)
        first_stage = definition.first_stage
        if first_stage is None:
            raise WorkflowValidationError(
                f"Workflow {workflow_id} has no stages",
                details={"workflow_id": workflow_id, "version": definition.version}
            )

        now = utc_now()
        case = Case(
            case_id=generate_case_id(),
            tenant_id=tenant_id,
            type=case_type,
            workflow_id=workflow_id,
            current_stage=first_stage.id,
            status=CaseStatus.ACTIVE,
            priority=priority,
            assigned_to=assigned_to,
            created_by=actor_id,
            data=data or {},
            metadata={**(metadata or {}), "workflow_version": definition.version},
            stage_entered_at=now,
            created_at=now,
            updated_at=now,
            version=1
        )
        self.case_repo.create(case)
        self.audit_writer.write_case_created(case)
        return case

    # =========================================================================
    # Reads
    # =========================================================================

    def get_case(self, tenant_id: str, case_id: str) -> Case:
        """Get a case or raise CaseNotFoundError"""
        return self.case_repo.get_or_raise(case_id, tenant_id)

    def get_case_detail(self, tenant_id: str, actor_id: str, case_id: str) -> Dict[str, Any]:
        """
        Case with its stage SLA, available actions, recent audit trail and comments

        SLA fields are empty when the stage has no SLA or the workflow no
        longer has an active definition.
        """
        case = self.get_case(tenant_id, case_id)
        definition = self.workflow_repo.get_active(tenant_id, case.workflow_id)

        stage = definition.get_stage(case.current_stage) if definition else None
        due_at = sla_due_at(case.stage_entered_at, stage.sla_hours if stage else None)

        actions: List[str] = []
        if definition and stage:
            actions = self.engine.available_actions(tenant_id, actor_id, case_id)

        return {
            "case": case,
            "stage": stage,
            "sla_due_at": due_at,
            "is_overdue": is_overdue(due_at),
            "available_actions": actions,
            "audit_trail": self.get_audit_trail(tenant_id, case_id, limit=20),
            "comments": self.comment_repo.list_for_case(tenant_id, case_id)
        }

    def list_cases(
        self,
        tenant_id: str,
        status: Optional[CaseStatus] = None,
        assigned_to: Optional[str] = None,
        case_type: Optional[CaseType] = None,
        skip: int = 0,
        limit: int = 50
    ) -> List[Case]:
        """List cases, newest first"""
        return self.case_repo.list_cases(
            tenant_id=tenant_id,
            status=status,
            assigned_to=assigned_to,
            case_type=case_type,
            skip=skip,
            limit=limit
        )

    def count_cases(
        self,
        tenant_id: str,
        status: Optional[CaseStatus] = None,
        assigned_to: Optional[str] = None,
        case_type: Optional[CaseType] = None
    ) -> int:
        return self.case_repo.count_cases(tenant_id, status, assigned_to, case_type)

    def get_audit_trail(self, tenant_id: str, case_id: str, limit: int = 20) -> List[AuditEntry]:
        """Audit trail of a case, newest first"""
        self.get_case(tenant_id, case_id)
        return self.audit_writer.trail(tenant_id, AuditEntityType.CASE, case_id, limit)

    def available_actions(self, tenant_id: str, actor_id: str, case_id: str) -> List[str]:
        return self.engine.available_actions(tenant_id, actor_id, case_id)

    # =========================================================================
    # Actions
    # =========================================================================

    def execute_action(
        self,
        tenant_id: str,
        actor_id: str,
        case_id: str,
        action: str,
        data: Optional[Dict[str, Any]] = None,
        comment: Optional[str] = None
    ) -> Case:
        """
        Run an action through the engine, then store the comment if one was given

        The comment is written only after the transition committed; a failed
        comment write is logged and does not fail the action.
        """
        case = self.engine.execute_transition(
            tenant_id=tenant_id,
            actor_id=actor_id,
            case_id=case_id,
            action=action,
            data_patch=data
        )

        if comment and comment.strip():
            self._add_comment(tenant_id, actor_id, case_id, comment.strip())

        return case

    def _add_comment(self, tenant_id: str, actor_id: str, case_id: str, text: str) -> Optional[CaseComment]:
        try:
            comment = self.comment_repo.add(CaseComment(
                comment_id=generate_comment_id(),
                tenant_id=tenant_id,
                case_id=case_id,
                user_id=actor_id,
                comment=text,
                created_at=utc_now()
            ))
        except Exception:
            logger.error(
                f"Failed to store comment for case {case_id}",
                exc_info=True,
                extra={"tenant_id": tenant_id, "case_id": case_id, "actor_id": actor_id}
            )
            return None

        self.audit_writer.write_comment(tenant_id, actor_id, case_id, comment.comment_id)
        return comment

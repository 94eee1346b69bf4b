"""
Workflow Engine - The Brain of the System

This module contains the WorkflowEngine class, the only writer of a case's
current stage and data bag.

=============================================================================
TRANSITION EXECUTION
=============================================================================

execute_transition(tenant_id, actor_id, case_id, action, data_patch):

    1. Load the case                              -> CaseNotFoundError
    2. Load the workflow's active definition      -> WorkflowNotFoundError
    3. Find the (current_stage, action) transition -> InvalidActionError
    4. Check the actor's role                     -> PermissionDeniedError
    5. Shallow-merge the data patch
    6. Check the transition condition             -> TransitionConditionError
    7. Conditional write of stage + data + version -> ConcurrencyError
    8. Audit entry                 (post-commit, best-effort)
    9. Auto-rules for the new stage (post-commit, best-effort)
   10. Return the updated case

Steps 1-7 either all succeed or leave the case untouched. Nothing in steps
8-9 can turn a committed transition into a reported failure.

=============================================================================
DEPENDENCIES
=============================================================================

Repositories:
    - CaseRepository: case reads and the conditional stage/data write
    - WorkflowRepository: active definition lookup

Providers:
    - RoleProvider: actor id -> role string (UserRepository by default)

Guards & Resolvers:
    - TransitionResolver: transition lookup and condition check
    - PermissionGuard: role check
    - AuditWriter: audit trail
    - AutoRuleDispatcher: onEnter automation
=============================================================================
"""

from typing import Any, Callable, Dict, List, Optional, Protocol

from ..domain.models import Case, WorkflowDefinition
from ..domain.errors import InvalidActionError
from ..repositories.case_repo import CaseRepository
from ..repositories.workflow_repo import WorkflowRepository
from ..repositories.user_repo import UserRepository
from .permission_guard import PermissionGuard
from .transition_resolver import TransitionResolver
from .audit_writer import AuditWriter
from .auto_rule_dispatcher import AutoRuleDispatcher
from ..utils.logger import get_logger

logger = get_logger(__name__)


class RoleProvider(Protocol):
    def get_role(self, user_id: str) -> Optional[str]: ...


# Runs a post-commit callable; the default runs it inline
PostCommitRunner = Callable[..., Any]


def run_inline(fn: Callable[..., Any], *args: Any) -> Any:
    return fn(*args)


class WorkflowEngine:
    """
    The Workflow Engine - validates and applies case stage transitions

    Responsibilities:
    - Resolve the transition for an action from the case's current stage
    - Enforce role permissions on the transition
    - Commit stage and data together under optimistic concurrency
    - Write the audit trail and fire stage-entry automation after commit

    The engine holds no state of its own beyond its collaborators, and it
    never retries: conflicts and persistence errors go back to the caller.
    """

    def __init__(
        self,
        case_repo: Optional[CaseRepository] = None,
        workflow_repo: Optional[WorkflowRepository] = None,
        role_provider: Optional[RoleProvider] = None,
        audit_writer: Optional[AuditWriter] = None,
        dispatcher: Optional[AutoRuleDispatcher] = None,
        transition_resolver: Optional[TransitionResolver] = None,
        permission_guard: Optional[PermissionGuard] = None,
        post_commit: Optional[PostCommitRunner] = None
    ):
        self.case_repo = case_repo or CaseRepository()
        self.workflow_repo = workflow_repo or WorkflowRepository()
        self.role_provider = role_provider or UserRepository()
        self.audit_writer = audit_writer or AuditWriter()
        if dispatcher is None:
            from ..services.automation_client import AutomationClient
            dispatcher = AutoRuleDispatcher(AutomationClient())
        self.dispatcher = dispatcher
        self.transition_resolver = transition_resolver or TransitionResolver()
        self.permission_guard = permission_guard or PermissionGuard()
        self.post_commit = post_commit or run_inline

    # =========================================================================
    # Transition Execution
    # =========================================================================

    def execute_transition(
        self,
        tenant_id: str,
        actor_id: str,
        case_id: str,
        action: str,
        data_patch: Optional[Dict[str, Any]] = None
    ) -> Case:
        """
        Apply an action to a case

        Args:
            tenant_id: Tenant the case belongs to
            actor_id: User performing the action
            case_id: Case to move
            action: Action name (e.g. "submit")
            data_patch: Top-level keys merged over the case's data

        Returns:
            The case as committed

        Raises:
            CaseNotFoundError, WorkflowNotFoundError, InvalidActionError,
            TransitionConditionError, PermissionDeniedError: terminal, no mutation
            ConcurrencyError: the case changed since it was read; retry from a fresh read
            pymongo.errors.PyMongoError: persistence failure, retryable by the caller
        """
        log_extra = {"tenant_id": tenant_id, "case_id": case_id, "actor_id": actor_id, "action": action}

        case = self.case_repo.get_or_raise(case_id, tenant_id)
        definition = self.workflow_repo.get_or_raise(tenant_id, case.workflow_id)
        self._ensure_stage_known(case, definition)

        transition = self.transition_resolver.find_transition(definition, case.current_stage, action)

        role = self.role_provider.get_role(actor_id)
        self.permission_guard.ensure_can_execute(actor_id, role, transition, action)

        merged_data = {**case.data, **(data_patch or {})}
        self.transition_resolver.ensure_condition_met(transition, merged_data)

        updated = self.case_repo.update_stage_and_data(
            case_id=case.case_id,
            tenant_id=tenant_id,
            new_stage=transition.to_stage,
            new_data=merged_data,
            expected_version=case.version
        )

        logger.info(
            f"Case {case_id} moved {case.current_stage} -> {updated.current_stage} via '{action}'",
            extra={**log_extra, "stage": updated.current_stage, "workflow_id": definition.workflow_id}
        )

        self._after_commit(
            self.audit_writer.write_transition,
            tenant_id, actor_id, case, updated, transition, action
        )
        self._after_commit(
            self.dispatcher.dispatch,
            tenant_id, case_id, updated.current_stage, definition
        )

        return updated

    def available_actions(self, tenant_id: str, actor_id: str, case_id: str) -> List[str]:
        """Actions the actor may take on the case from its current stage"""
        case = self.case_repo.get_or_raise(case_id, tenant_id)
        definition = self.workflow_repo.get_or_raise(tenant_id, case.workflow_id)
        role = self.role_provider.get_role(actor_id)
        if role is None:
            return []
        return self.transition_resolver.get_actions_for_stage(definition, case.current_stage, role)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _ensure_stage_known(self, case: Case, definition: WorkflowDefinition) -> None:
        """A case whose stage vanished from the active definition cannot move"""
        if definition.has_stage(case.current_stage):
            return
        raise InvalidActionError(
            f"Current stage '{case.current_stage}' is not part of workflow "
            f"{definition.workflow_id} v{definition.version}",
            details={
                "current_stage": case.current_stage,
                "workflow_id": definition.workflow_id,
                "version": definition.version
            }
        )

    def _after_commit(self, fn: Callable[..., Any], *args: Any) -> None:
        """Run a post-commit side effect; failures are logged, never raised"""
        try:
            self.post_commit(fn, *args)
        except Exception:
            logger.error(
                f"Post-commit step {getattr(fn, '__name__', fn)} failed",
                exc_info=True
            )

"""Permission Guard - Authorization enforcement for workflow actions"""
from typing import Optional

from ..domain.models import Transition, ActorContext
from ..domain.enums import UserRole
from ..domain.errors import PermissionDeniedError, TenantAccessError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class PermissionGuard:
    """
    Permission enforcement for case and workflow operations

    Rules:
    - A transition may only be executed by a role listed on the transition
    - Only Admins may author workflow definitions
    - Actors only act within their own tenant
    """

    def can_execute(self, role: Optional[str], transition: Transition) -> bool:
        """Check if a role may execute a transition"""
        return role is not None and role in transition.roles

    def ensure_can_execute(
        self,
        actor_id: str,
        role: Optional[str],
        transition: Transition,
        action: str
    ) -> None:
        """
        Raise unless the role may execute the transition

        The message names the actor's role and the action only; the roles
        that are permitted are not disclosed.
        """
        if self.can_execute(role, transition):
            return

        logger.warning(
            f"Role '{role}' denied action '{action}'",
            extra={"actor_id": actor_id, "action": action}
        )
        raise PermissionDeniedError(
            f"User role '{role}' not authorized for action '{action}'",
            details={"action": action, "role": role}
        )

    def ensure_can_author_workflows(self, actor: ActorContext) -> None:
        """Raise unless the actor may create workflow definitions"""
        if actor.role == UserRole.ADMIN.value:
            return
        raise PermissionDeniedError(
            "Only administrators can create or update workflow definitions",
            details={"role": actor.role}
        )

    def ensure_same_tenant(self, actor: ActorContext, tenant_id: str) -> None:
        """Raise unless the actor belongs to the tenant"""
        if actor.tenant_id == tenant_id:
            return
        logger.warning(
            f"Actor from tenant {actor.tenant_id} attempted access to tenant {tenant_id}",
            extra={"actor_id": actor.user_id, "tenant_id": tenant_id}
        )
        raise TenantAccessError("Access denied to this tenant", details={"tenant_id": tenant_id})

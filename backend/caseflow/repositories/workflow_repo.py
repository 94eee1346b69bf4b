"""Workflow Repository - Data access for versioned workflow definitions

Two collections back the store:

- ``workflow_heads``: one document per (tenant, workflow) holding the
  ``active_version`` pointer.
- ``workflow_definitions``: one immutable document per version. Version
  numbers are derived from the stored rows, so a failed insert never uses
  one up.

``is_active`` is never stored on a version row; it is read from the head
pointer when the row is mapped to a WorkflowDefinition. Moving the pointer is
a single-document write, so at most one version is active at any instant.
"""
from typing import Any, Dict, List, Optional
from pymongo import ReturnDocument, ASCENDING, DESCENDING
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from .mongo_client import get_collection
from ..config.settings import settings
from ..domain.models import WorkflowDefinition
from ..domain.errors import WorkflowNotFoundError, ConcurrencyError
from ..utils.time import utc_now, format_iso
from ..utils.logger import get_logger

logger = get_logger(__name__)


class WorkflowRepository:
    """Repository for workflow definition versions"""

    def __init__(self, db: Optional[Database] = None):
        self._heads: Collection = get_collection("workflow_heads", db)
        self._definitions: Collection = get_collection("workflow_definitions", db)

    # =========================================================================
    # Version allocation & activation
    # =========================================================================

    def get_latest_version_number(self, tenant_id: str, workflow_id: str) -> int:
        """Highest stored version of a workflow, or 0 if none exists"""
        doc = self._definitions.find_one(
            {"tenant_id": tenant_id, "workflow_id": workflow_id},
            {"version": 1},
            sort=[("version", DESCENDING)]
        )
        return int(doc["version"]) if doc else 0

    def insert_next_version(self, definition: WorkflowDefinition) -> WorkflowDefinition:
        """
        Insert an immutable version row numbered max(existing) + 1

        The number is only taken by a successful insert. Two concurrent
        creates computing the same number are settled by the unique
        (tenant_id, workflow_id, version) index: the loser recomputes and
        retries. ``is_active`` is never persisted on the row.

        Raises:
            ConcurrencyError: Every attempt lost the race
        """
        attempts = max(1, settings.version_allocation_retries)
        for attempt in range(1, attempts + 1):
            version = self.get_latest_version_number(definition.tenant_id, definition.workflow_id) + 1
            candidate = definition.model_copy(update={"version": version})
            doc = candidate.model_dump(mode="json", exclude={"is_active"})
            doc["_id"] = candidate.definition_id

            try:
                self._definitions.insert_one(doc)
            except DuplicateKeyError:
                logger.warning(
                    f"Version {version} of workflow {definition.workflow_id} taken concurrently (attempt {attempt})",
                    extra={"tenant_id": definition.tenant_id, "workflow_id": definition.workflow_id}
                )
                continue

            logger.info(
                f"Created workflow definition version: {candidate.workflow_id} v{version}",
                extra={
                    "tenant_id": candidate.tenant_id,
                    "workflow_id": candidate.workflow_id,
                    "version": version
                }
            )
            return candidate

        raise ConcurrencyError(
            f"Could not allocate a version for workflow {definition.workflow_id}. Please retry.",
            details={"workflow_id": definition.workflow_id}
        )

    def _ensure_head(self, tenant_id: str, workflow_id: str) -> None:
        try:
            self._heads.update_one(
                {"tenant_id": tenant_id, "workflow_id": workflow_id},
                {"$setOnInsert": {"active_version": None, "updated_at": format_iso(utc_now())}},
                upsert=True
            )
        except DuplicateKeyError:
            # A concurrent upsert created the head first
            logger.debug(f"Head for workflow {workflow_id} created concurrently")

    def activate_version(self, tenant_id: str, workflow_id: str, version: int) -> bool:
        """
        Point the head at the given version

        Only moves forward: a slower concurrent create of an older version
        cannot displace a newer active one. Returns True if the pointer moved.
        """
        self._ensure_head(tenant_id, workflow_id)
        result = self._heads.update_one(
            {
                "tenant_id": tenant_id,
                "workflow_id": workflow_id,
                "$or": [
                    {"active_version": None},
                    {"active_version": {"$lt": version}},
                ],
            },
            {"$set": {"active_version": version, "updated_at": format_iso(utc_now())}}
        )
        moved = result.modified_count > 0
        if moved:
            logger.info(
                f"Activated workflow {workflow_id} v{version}",
                extra={"tenant_id": tenant_id, "workflow_id": workflow_id, "version": version}
            )
        else:
            logger.warning(
                f"Workflow {workflow_id} v{version} not activated; a newer version is active",
                extra={"tenant_id": tenant_id, "workflow_id": workflow_id, "version": version}
            )
        return moved

    def deactivate(self, tenant_id: str, workflow_id: str) -> Optional[int]:
        """
        Clear the active pointer

        Returns the version that was active, or None if nothing was active.
        Cases on the workflow can no longer move until a version is activated.
        """
        head = self._heads.find_one_and_update(
            {"tenant_id": tenant_id, "workflow_id": workflow_id, "active_version": {"$ne": None}},
            {"$set": {"active_version": None, "updated_at": format_iso(utc_now())}},
            return_document=ReturnDocument.BEFORE
        )
        if not head:
            return None
        logger.info(
            f"Deactivated workflow {workflow_id} (was v{head['active_version']})",
            extra={"tenant_id": tenant_id, "workflow_id": workflow_id, "version": head["active_version"]}
        )
        return head["active_version"]

    def get_active_version_number(self, tenant_id: str, workflow_id: str) -> Optional[int]:
        """Get the active version number, or None"""
        head = self._heads.find_one({"tenant_id": tenant_id, "workflow_id": workflow_id})
        if not head:
            return None
        return head.get("active_version")

    # =========================================================================
    # Reads
    # =========================================================================

    def get_version(
        self,
        tenant_id: str,
        workflow_id: str,
        version: int
    ) -> Optional[WorkflowDefinition]:
        """Get a specific version"""
        doc = self._definitions.find_one({
            "tenant_id": tenant_id,
            "workflow_id": workflow_id,
            "version": version
        })
        if not doc:
            return None
        active_version = self.get_active_version_number(tenant_id, workflow_id)
        return self._to_definition(doc, active_version)

    def get_active(self, tenant_id: str, workflow_id: str) -> Optional[WorkflowDefinition]:
        """Get the single active version, or None"""
        active_version = self.get_active_version_number(tenant_id, workflow_id)
        if active_version is None:
            return None
        doc = self._definitions.find_one({
            "tenant_id": tenant_id,
            "workflow_id": workflow_id,
            "version": active_version
        })
        if not doc:
            # Pointer set but row missing: treat as no active definition
            logger.error(
                f"Active pointer for workflow {workflow_id} references missing v{active_version}",
                extra={"tenant_id": tenant_id, "workflow_id": workflow_id}
            )
            return None
        return self._to_definition(doc, active_version)

    def get_or_raise(
        self,
        tenant_id: str,
        workflow_id: str,
        version: Optional[int] = None
    ) -> WorkflowDefinition:
        """Get the requested version (or the active one) or raise"""
        if version is not None:
            definition = self.get_version(tenant_id, workflow_id, version)
            if not definition:
                raise WorkflowNotFoundError(
                    f"Workflow {workflow_id} version {version} not found",
                    details={"workflow_id": workflow_id, "version": version}
                )
            return definition

        definition = self.get_active(tenant_id, workflow_id)
        if not definition:
            raise WorkflowNotFoundError(
                f"Workflow {workflow_id} has no active definition",
                details={"workflow_id": workflow_id}
            )
        return definition

    def list_active(self, tenant_id: str) -> List[WorkflowDefinition]:
        """List the active version of every workflow for a tenant, ordered by name"""
        heads = self._heads.find({"tenant_id": tenant_id, "active_version": {"$ne": None}})
        pointers = {head["workflow_id"]: head["active_version"] for head in heads}
        if not pointers:
            return []

        query: Dict[str, Any] = {
            "tenant_id": tenant_id,
            "$or": [
                {"workflow_id": workflow_id, "version": version}
                for workflow_id, version in pointers.items()
            ]
        }
        cursor = self._definitions.find(query).sort("name", ASCENDING)
        return [self._to_definition(doc, pointers.get(doc["workflow_id"])) for doc in cursor]

    def list_versions(self, tenant_id: str, workflow_id: str) -> List[WorkflowDefinition]:
        """List every version of a workflow, newest first"""
        active_version = self.get_active_version_number(tenant_id, workflow_id)
        cursor = self._definitions.find(
            {"tenant_id": tenant_id, "workflow_id": workflow_id}
        ).sort("version", DESCENDING)
        return [self._to_definition(doc, active_version) for doc in cursor]

    def _to_definition(self, doc: Dict[str, Any], active_version: Optional[int]) -> WorkflowDefinition:
        doc = dict(doc)
        doc.pop("_id", None)
        doc["is_active"] = active_version is not None and doc.get("version") == active_version
        return WorkflowDefinition.model_validate(doc)

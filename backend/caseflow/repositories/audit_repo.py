"""Audit Repository - Data access for audit entries"""
from typing import List, Optional
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo import DESCENDING

from .mongo_client import get_collection
from ..domain.models import AuditEntry
from ..domain.enums import AuditEntityType
from ..utils.logger import get_logger

logger = get_logger(__name__)


class AuditRepository:
    """Repository for audit entry operations (append-only)"""

    def __init__(self, db: Optional[Database] = None):
        self._audit_entries: Collection = get_collection("audit_entries", db)

    def create_entry(self, entry: AuditEntry) -> AuditEntry:
        """Create an audit entry (append-only)"""
        doc = entry.model_dump(mode="json", exclude={"actor_name"})
        doc["_id"] = entry.audit_entry_id

        self._audit_entries.insert_one(doc)
        logger.info(
            f"Created audit entry: {entry.action}",
            extra={
                "tenant_id": entry.tenant_id,
                "actor_id": entry.actor_id,
                "action": entry.action
            }
        )
        return entry

    def get_trail(
        self,
        tenant_id: str,
        entity_type: AuditEntityType,
        entity_id: str,
        limit: int = 100
    ) -> List[AuditEntry]:
        """Get audit entries for an entity, newest first"""
        cursor = self._audit_entries.find({
            "tenant_id": tenant_id,
            "entity_type": entity_type.value,
            "entity_id": entity_id
        }).sort("timestamp", DESCENDING).limit(limit)

        entries = []
        for doc in cursor:
            doc.pop("_id", None)
            entries.append(AuditEntry.model_validate(doc))
        return entries

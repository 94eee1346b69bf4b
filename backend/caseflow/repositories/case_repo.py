"""Case Repository - Data access for cases"""
from typing import Any, Dict, List, Optional
from pymongo import ReturnDocument, DESCENDING
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from .mongo_client import get_collection
from ..domain.models import Case
from ..domain.enums import CaseStatus, CaseType
from ..domain.errors import CaseNotFoundError, ConcurrencyError, AlreadyExistsError
from ..utils.time import utc_now, format_iso
from ..utils.logger import get_logger

logger = get_logger(__name__)


class CaseRepository:
    """Repository for case operations"""

    def __init__(self, db: Optional[Database] = None):
        self._cases: Collection = get_collection("cases", db)

    def create(self, case: Case) -> Case:
        """Create a new case"""
        doc = case.model_dump(mode="json")
        doc["_id"] = case.case_id

        try:
            self._cases.insert_one(doc)
        except DuplicateKeyError:
            raise AlreadyExistsError(f"Case {case.case_id} already exists")

        logger.info(
            f"Created case: {case.case_id}",
            extra={"tenant_id": case.tenant_id, "case_id": case.case_id, "workflow_id": case.workflow_id}
        )
        return case

    def get(self, case_id: str, tenant_id: str) -> Optional[Case]:
        """Get case by ID within a tenant"""
        doc = self._cases.find_one({"case_id": case_id, "tenant_id": tenant_id})
        if doc:
            doc.pop("_id", None)
            return Case.model_validate(doc)
        return None

    def get_or_raise(self, case_id: str, tenant_id: str) -> Case:
        """Get case by ID or raise error"""
        case = self.get(case_id, tenant_id)
        if not case:
            raise CaseNotFoundError(f"Case {case_id} not found", details={"case_id": case_id})
        return case

    def update_stage_and_data(
        self,
        case_id: str,
        tenant_id: str,
        new_stage: str,
        new_data: Dict[str, Any],
        expected_version: int
    ) -> Case:
        """
        Move a case to a new stage and replace its data bag

        Stage, data and the version bump are written by one conditional
        single-document update, so they commit together or not at all. The
        update only applies if the stored version still equals
        ``expected_version`` (the version the caller read).

        Raises:
            ConcurrencyError: The case was modified since it was read
            CaseNotFoundError: The case no longer exists
        """
        now = format_iso(utc_now())
        result = self._cases.find_one_and_update(
            {"case_id": case_id, "tenant_id": tenant_id, "version": expected_version},
            {
                "$set": {
                    "current_stage": new_stage,
                    "data": new_data,
                    "stage_entered_at": now,
                    "updated_at": now,
                    "version": expected_version + 1,
                }
            },
            return_document=ReturnDocument.AFTER
        )

        if result is None:
            exists = self._cases.find_one({"case_id": case_id, "tenant_id": tenant_id})
            if exists:
                raise ConcurrencyError(
                    f"Case {case_id} was modified by another request. Please refresh and try again.",
                    details={"case_id": case_id, "expected_version": expected_version}
                )
            raise CaseNotFoundError(f"Case {case_id} not found", details={"case_id": case_id})

        result.pop("_id", None)
        logger.info(
            f"Updated case {case_id} to stage {new_stage}",
            extra={"tenant_id": tenant_id, "case_id": case_id, "stage": new_stage}
        )
        return Case.model_validate(result)

    def list_cases(
        self,
        tenant_id: str,
        status: Optional[CaseStatus] = None,
        assigned_to: Optional[str] = None,
        case_type: Optional[CaseType] = None,
        skip: int = 0,
        limit: int = 50
    ) -> List[Case]:
        """List cases for a tenant with optional filters, newest first"""
        query: Dict[str, Any] = {"tenant_id": tenant_id}

        if status:
            query["status"] = status.value
        if assigned_to:
            query["assigned_to"] = assigned_to
        if case_type:
            query["type"] = case_type.value

        cursor = self._cases.find(query).sort("created_at", DESCENDING).skip(skip).limit(limit)

        cases = []
        for doc in cursor:
            doc.pop("_id", None)
            cases.append(Case.model_validate(doc))
        return cases

    def count_cases(
        self,
        tenant_id: str,
        status: Optional[CaseStatus] = None,
        assigned_to: Optional[str] = None,
        case_type: Optional[CaseType] = None
    ) -> int:
        """Count cases with optional filters"""
        query: Dict[str, Any] = {"tenant_id": tenant_id}

        if status:
            query["status"] = status.value
        if assigned_to:
            query["assigned_to"] = assigned_to
        if case_type:
            query["type"] = case_type.value

        return self._cases.count_documents(query)

"""Comment Repository - Comments left alongside case actions"""
from typing import List, Optional
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo import DESCENDING

from .mongo_client import get_collection
from ..domain.models import CaseComment
from ..utils.logger import get_logger

logger = get_logger(__name__)


class CommentRepository:
    """Repository for case comments"""

    def __init__(self, db: Optional[Database] = None):
        self._comments: Collection = get_collection("case_comments", db)

    def add(self, comment: CaseComment) -> CaseComment:
        """Add a comment"""
        doc = comment.model_dump(mode="json")
        doc["_id"] = comment.comment_id
        self._comments.insert_one(doc)
        logger.info(
            f"Added comment to case {comment.case_id}",
            extra={"tenant_id": comment.tenant_id, "case_id": comment.case_id}
        )
        return comment

    def list_for_case(self, tenant_id: str, case_id: str, limit: int = 50) -> List[CaseComment]:
        """List comments for a case, newest first"""
        cursor = self._comments.find(
            {"tenant_id": tenant_id, "case_id": case_id}
        ).sort("created_at", DESCENDING).limit(limit)

        comments = []
        for doc in cursor:
            doc.pop("_id", None)
            comments.append(CaseComment.model_validate(doc))
        return comments

"""
Pytest Configuration and Fixtures

Shared fixtures for all tests. MongoDB is replaced by an in-memory mongomock
database and the automation endpoint by a recording fake.
"""

import os

os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("JWT_SECRET", "test-secret-that-is-at-least-32-bytes-long")

import mongomock
import pytest
from typing import Any, Dict, List, Optional

from caseflow.domain.models import User
from caseflow.domain.errors import AutomationError
from caseflow.engine.engine import WorkflowEngine
from caseflow.engine.audit_writer import AuditWriter
from caseflow.engine.auto_rule_dispatcher import AutoRuleDispatcher
from caseflow.repositories.mongo_client import create_indexes
from caseflow.repositories.case_repo import CaseRepository
from caseflow.repositories.workflow_repo import WorkflowRepository
from caseflow.repositories.audit_repo import AuditRepository
from caseflow.repositories.user_repo import UserRepository
from caseflow.repositories.comment_repo import CommentRepository
from caseflow.services.workflow_service import WorkflowService
from caseflow.services.case_service import CaseService


TENANT_ID = "tenant_acme"
OTHER_TENANT_ID = "tenant_other"


class FakeAutomation:
    """Records automation calls; endpoints listed in ``failing`` raise AutomationError"""

    def __init__(self, failing: Optional[List[str]] = None, result: Any = None):
        self.failing = set(failing or [])
        self.result = result if result is not None else {"status": "ok"}
        self.calls: List[Dict[str, Any]] = []

    def call(self, tenant_id, case_id, endpoint, params=None):
        self.calls.append({
            "tenant_id": tenant_id,
            "case_id": case_id,
            "endpoint": endpoint,
            "params": params
        })
        if endpoint in self.failing:
            raise AutomationError(f"Automation endpoint '{endpoint}' returned 500")
        return self.result


@pytest.fixture
def db():
    """Fresh in-memory database with the application's indexes"""
    database = mongomock.MongoClient()["caseflow_test"]
    create_indexes(database)
    return database


@pytest.fixture
def workflow_repo(db):
    return WorkflowRepository(db)


@pytest.fixture
def case_repo(db):
    return CaseRepository(db)


@pytest.fixture
def audit_repo(db):
    return AuditRepository(db)


@pytest.fixture
def user_repo(db):
    return UserRepository(db)


@pytest.fixture
def comment_repo(db):
    return CommentRepository(db)


@pytest.fixture
def audit_writer(audit_repo, user_repo):
    return AuditWriter(audit_repo, user_repo)


@pytest.fixture
def automation():
    return FakeAutomation()


@pytest.fixture
def engine(case_repo, workflow_repo, user_repo, audit_writer, automation):
    return WorkflowEngine(
        case_repo=case_repo,
        workflow_repo=workflow_repo,
        role_provider=user_repo,
        audit_writer=audit_writer,
        dispatcher=AutoRuleDispatcher(automation)
    )


@pytest.fixture
def workflow_service(workflow_repo, audit_writer):
    return WorkflowService(repo=workflow_repo, audit_writer=audit_writer)


@pytest.fixture
def case_service(engine, case_repo, workflow_repo, comment_repo, audit_writer):
    return CaseService(
        engine=engine,
        case_repo=case_repo,
        workflow_repo=workflow_repo,
        comment_repo=comment_repo,
        audit_writer=audit_writer
    )


@pytest.fixture
def users(user_repo) -> Dict[str, User]:
    """One user per role in the main tenant, plus a Maker in another tenant"""
    created = {}
    for user_id, name, role in [
        ("usr_admin", "Ada Admin", "Admin"),
        ("usr_maker", "Mo Maker", "Maker"),
        ("usr_checker", "Cy Checker", "Checker"),
        ("usr_underwriter", "Uma Underwriter", "Underwriter"),
        ("usr_auditor", "Al Auditor", "Auditor"),
    ]:
        created[user_id] = user_repo.create(User(
            user_id=user_id,
            tenant_id=TENANT_ID,
            email=f"{user_id}@acme-bank.com",
            name=name,
            role=role
        ))
    created["usr_other_maker"] = user_repo.create(User(
        user_id="usr_other_maker",
        tenant_id=OTHER_TENANT_ID,
        email="maker@other-bank.com",
        name="Other Maker",
        role="Maker"
    ))
    created["usr_inactive"] = user_repo.create(User(
        user_id="usr_inactive",
        tenant_id=TENANT_ID,
        email="inactive@acme-bank.com",
        name="Ina Active",
        role="Underwriter",
        is_active=False
    ))
    return created


@pytest.fixture
def review_draft() -> Dict[str, Any]:
    """draft -> review -> done, with a scoring rule on entering review"""
    return {
        "workflow_id": "review_flow",
        "name": "Review Flow",
        "description": "Three stage review",
        "is_active": True,
        "stages": [
            {"id": "draft", "label": "Draft", "sla_hours": 48, "assigned_roles": ["Maker"]},
            {"id": "review", "label": "Review", "sla_hours": 24, "assigned_roles": ["Underwriter"]},
            {"id": "done", "label": "Done"},
        ],
        "transitions": [
            {
                "id": "t_submit",
                "from_stage": "draft",
                "to_stage": "review",
                "condition": "true",
                "roles": ["Maker"],
                "actions": ["submit"]
            },
            {
                "id": "t_approve",
                "from_stage": "review",
                "to_stage": "done",
                "roles": ["Underwriter"],
                "actions": ["approve"]
            },
        ],
        "auto_rules": [
            {
                "id": "score_on_review",
                "stage": "review",
                "trigger": "onEnter",
                "action": "call:ai/score",
                "params": {"model": "credit_risk_v1"}
            },
        ],
    }


@pytest.fixture
def review_workflow(workflow_service, review_draft, users):
    return workflow_service.create_definition(TENANT_ID, "usr_admin", review_draft)


@pytest.fixture
def make_case(case_service, review_workflow):
    """Factory for cases on the review workflow"""
    def _make(data: Optional[Dict[str, Any]] = None, workflow_id: str = "review_flow"):
        return case_service.create_case(
            tenant_id=TENANT_ID,
            actor_id="usr_maker",
            workflow_id=workflow_id,
            data=data or {"amount": 5000}
        )
    return _make

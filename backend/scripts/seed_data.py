"""
Seed Data Script - Creates a demo tenant with users for each role and the
micro loan processing workflow
Run: python -m scripts.seed_data
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from typing import Any, Dict, List

from caseflow.repositories.mongo_client import create_indexes
from caseflow.repositories.user_repo import UserRepository
from caseflow.repositories.workflow_repo import WorkflowRepository
from caseflow.domain.models import User
from caseflow.domain.enums import UserRole
from caseflow.services.workflow_service import WorkflowService
from caseflow.utils.jwt import JWTValidator

DEMO_TENANT_ID = "tenant_demo_bank"

DEMO_USERS: List[Dict[str, str]] = [
    {"user_id": "usr_admin", "email": "admin@demo.com", "name": "System Admin", "role": UserRole.ADMIN.value},
    {"user_id": "usr_maker", "email": "maker@demo.com", "name": "Loan Maker", "role": UserRole.MAKER.value},
    {"user_id": "usr_checker", "email": "checker@demo.com", "name": "Loan Checker", "role": UserRole.CHECKER.value},
    {
        "user_id": "usr_underwriter",
        "email": "underwriter@demo.com",
        "name": "Senior Underwriter",
        "role": UserRole.UNDERWRITER.value
    },
    {
        "user_id": "usr_disbursement",
        "email": "disbursement@demo.com",
        "name": "Disbursement Officer",
        "role": UserRole.DISBURSEMENT_OFFICER.value
    },
    {"user_id": "usr_auditor", "email": "auditor@demo.com", "name": "Risk Auditor", "role": UserRole.AUDITOR.value},
]

LOAN_WORKFLOW: Dict[str, Any] = {
    "workflow_id": "micro_loan_process",
    "name": "Micro Loan Processing Workflow",
    "description": "Micro loan origination with automated scoring and document extraction",
    "is_active": True,
    "stages": [
        {"id": "draft", "label": "Draft Application", "sla_hours": 48, "assigned_roles": ["Maker"]},
        {"id": "document_verification", "label": "Document Verification", "sla_hours": 24, "assigned_roles": ["Checker"]},
        {"id": "credit_assessment", "label": "Credit Assessment", "sla_hours": 72, "assigned_roles": ["Underwriter"]},
        {"id": "approval", "label": "Final Approval", "sla_hours": 24, "assigned_roles": ["Underwriter"]},
        {"id": "disbursement", "label": "Disbursement", "sla_hours": 48, "assigned_roles": ["DisbursementOfficer"]},
        {"id": "completed", "label": "Completed"},
    ],
    "transitions": [
        {
            "id": "submit_application",
            "from_stage": "draft",
            "to_stage": "document_verification",
            "condition": "true",
            "roles": ["Maker"],
            "actions": ["submit"]
        },
        {
            "id": "verify_documents",
            "from_stage": "document_verification",
            "to_stage": "credit_assessment",
            "condition": "documents_verified",
            "roles": ["Checker"],
            "actions": ["verify"]
        },
        {
            "id": "reject_documents",
            "from_stage": "document_verification",
            "to_stage": "draft",
            "condition": "documents_incomplete",
            "roles": ["Checker"],
            "actions": ["reject"]
        },
        {
            "id": "approve_loan",
            "from_stage": "credit_assessment",
            "to_stage": "approval",
            "condition": "pd_score <= 0.15",
            "roles": ["Underwriter"],
            "actions": ["approve"]
        },
        {
            "id": "reject_loan",
            "from_stage": "credit_assessment",
            "to_stage": "completed",
            "condition": "pd_score > 0.30",
            "roles": ["Underwriter"],
            "actions": ["reject"]
        },
        {
            "id": "final_approval",
            "from_stage": "approval",
            "to_stage": "disbursement",
            "condition": "approved",
            "roles": ["Underwriter"],
            "actions": ["final_approve"]
        },
        {
            "id": "disburse_loan",
            "from_stage": "disbursement",
            "to_stage": "completed",
            "condition": "disbursed",
            "roles": ["DisbursementOfficer"],
            "actions": ["disburse"]
        },
    ],
    "auto_rules": [
        {
            "id": "auto_score_credit",
            "stage": "credit_assessment",
            "trigger": "onEnter",
            "action": "call:ai/score",
            "params": {"model": "credit_risk_v1"}
        },
        {
            "id": "auto_extract_documents",
            "stage": "document_verification",
            "trigger": "onEnter",
            "action": "call:ai/parse",
            "params": {"extract_fields": ["name", "pan", "income"]}
        },
    ],
}


def seed_users(user_repo: UserRepository) -> None:
    for user in DEMO_USERS:
        if user_repo.get(user["user_id"]):
            print(f"User {user['email']} already exists. Skipping.")
            continue
        user_repo.create(User(tenant_id=DEMO_TENANT_ID, **user))
        print(f"Created user: {user['email']} ({user['role']})")


def seed_workflow(service: WorkflowService, workflow_repo: WorkflowRepository) -> None:
    if workflow_repo.get_active(DEMO_TENANT_ID, LOAN_WORKFLOW["workflow_id"]):
        print("Loan workflow already active. Skipping.")
        return
    definition = service.create_definition(DEMO_TENANT_ID, "usr_admin", LOAN_WORKFLOW)
    print(f"Created workflow: {definition.workflow_id} v{definition.version}")


def main() -> None:
    create_indexes()

    user_repo = UserRepository()
    workflow_repo = WorkflowRepository()
    seed_users(user_repo)
    seed_workflow(WorkflowService(repo=workflow_repo), workflow_repo)

    validator = JWTValidator()
    print("\nDemo tokens (24h):")
    for user in DEMO_USERS:
        print(f"  {user['role']:<20} {validator.create_token(user['user_id'], DEMO_TENANT_ID)}")

    print("\nSeed complete!")


if __name__ == "__main__":
    main()

"""Transition lookup, condition gating and role checks"""
import pytest

from caseflow.domain.models import WorkflowDefinition, ActorContext
from caseflow.domain.errors import (
    InvalidActionError, TransitionConditionError, PermissionDeniedError, TenantAccessError
)
from caseflow.engine.transition_resolver import TransitionResolver
from caseflow.engine.permission_guard import PermissionGuard
from caseflow.utils.time import utc_now


@pytest.fixture
def definition(review_draft):
    review_draft["transitions"].append({
        "id": "t_return",
        "from_stage": "review",
        "to_stage": "draft",
        "condition": "missing_documents",
        "roles": ["Underwriter", "Checker"],
        "actions": ["return", "send_back"]
    })
    return WorkflowDefinition(
        **review_draft,
        definition_id="WFD-1",
        tenant_id="tenant_acme",
        version=1,
        created_by="usr_admin",
        created_at=utc_now()
    )


@pytest.fixture
def resolver():
    return TransitionResolver()


class TestFindTransition:

    def test_matches_stage_and_action(self, resolver, definition):
        transition = resolver.find_transition(definition, "draft", "submit")
        assert transition.id == "t_submit"
        assert transition.to_stage == "review"

    def test_action_declared_on_another_stage_is_invalid(self, resolver, definition):
        with pytest.raises(InvalidActionError) as exc_info:
            resolver.find_transition(definition, "review", "submit")

        error = exc_info.value
        assert error.message == "Invalid action 'submit' for current stage 'review'"
        assert error.details["available_actions"] == ["approve", "return", "send_back"]
        assert error.http_status == 400

    def test_unknown_action(self, resolver, definition):
        with pytest.raises(InvalidActionError):
            resolver.find_transition(definition, "draft", "teleport")

    def test_second_action_name_matches(self, resolver, definition):
        assert resolver.find_transition(definition, "review", "send_back").id == "t_return"


class TestConditionGate:

    def test_unmet_condition_raises(self, resolver, definition):
        transition = resolver.find_transition(definition, "review", "return")
        with pytest.raises(TransitionConditionError) as exc_info:
            resolver.ensure_condition_met(transition, {"missing_documents": False})

        assert isinstance(exc_info.value, InvalidActionError)
        assert exc_info.value.details["condition"] == "missing_documents"

    def test_met_condition_passes(self, resolver, definition):
        transition = resolver.find_transition(definition, "review", "return")
        resolver.ensure_condition_met(transition, {"missing_documents": True})


class TestActionsForStage:

    def test_all_actions(self, resolver, definition):
        assert resolver.get_actions_for_stage(definition, "review") == ["approve", "return", "send_back"]

    def test_filtered_by_role(self, resolver, definition):
        assert resolver.get_actions_for_stage(definition, "review", "Checker") == ["return", "send_back"]
        assert resolver.get_actions_for_stage(definition, "review", "Maker") == []

    def test_terminal_stage_has_no_actions(self, resolver, definition):
        assert resolver.get_actions_for_stage(definition, "done") == []


class TestPermissionGuard:

    @pytest.fixture
    def guard(self):
        return PermissionGuard()

    def test_allowed_role(self, guard, definition):
        transition = definition.transitions[0]
        guard.ensure_can_execute("usr_maker", "Maker", transition, "submit")

    def test_denied_role_message_does_not_list_permitted_roles(self, guard, definition):
        transition = definition.transitions[1]
        with pytest.raises(PermissionDeniedError) as exc_info:
            guard.ensure_can_execute("usr_maker", "Maker", transition, "approve")

        error = exc_info.value
        assert error.http_status == 403
        assert error.message == "User role 'Maker' not authorized for action 'approve'"
        assert "Underwriter" not in str(error.to_dict())

    def test_unknown_role_is_denied(self, guard, definition):
        with pytest.raises(PermissionDeniedError):
            guard.ensure_can_execute("usr_ghost", None, definition.transitions[0], "submit")

    def test_only_admin_authors_workflows(self, guard):
        admin = ActorContext(user_id="u1", tenant_id="t", email="a@acme-bank.com", name="A", role="Admin")
        maker = ActorContext(user_id="u2", tenant_id="t", email="m@acme-bank.com", name="M", role="Maker")

        guard.ensure_can_author_workflows(admin)
        with pytest.raises(PermissionDeniedError):
            guard.ensure_can_author_workflows(maker)

    def test_cross_tenant_access_denied(self, guard):
        actor = ActorContext(user_id="u1", tenant_id="t1", email="a@acme-bank.com", name="A", role="Admin")
        guard.ensure_same_tenant(actor, "t1")
        with pytest.raises(TenantAccessError):
            guard.ensure_same_tenant(actor, "t2")

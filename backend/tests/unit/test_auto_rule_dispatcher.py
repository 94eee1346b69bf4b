"""Auto-rule dispatch: onEnter only, definition order, per-rule isolation"""
import pytest

from caseflow.domain.models import WorkflowDefinition
from caseflow.engine.auto_rule_dispatcher import AutoRuleDispatcher
from caseflow.utils.time import utc_now
from tests.conftest import FakeAutomation


@pytest.fixture
def definition(review_draft):
    review_draft["auto_rules"] = [
        {"id": "r_score", "stage": "review", "action": "call:ai/score", "params": {"model": "m1"}},
        {"id": "r_parse", "stage": "review", "trigger": "onEnter", "action": "call:ai/parse"},
        {"id": "r_exit", "stage": "review", "trigger": "onExit", "action": "call:ai/cleanup"},
        {"id": "r_nightly", "stage": "review", "trigger": "scheduled", "action": "call:ai/rescore"},
        {"id": "r_email", "stage": "review", "action": "email:underwriters"},
        {"id": "r_done", "stage": "done", "action": "call:ai/archive"},
    ]
    return WorkflowDefinition(
        **review_draft,
        definition_id="WFD-1",
        tenant_id="tenant_acme",
        version=1,
        created_by="usr_admin",
        created_at=utc_now()
    )


def test_fires_only_on_enter_rules_for_the_stage_in_order(definition):
    automation = FakeAutomation()
    outcomes = AutoRuleDispatcher(automation).dispatch("tenant_acme", "CASE-1", "review", definition)

    assert [call["endpoint"] for call in automation.calls] == ["ai/score", "ai/parse"]
    assert automation.calls[0] == {
        "tenant_id": "tenant_acme",
        "case_id": "CASE-1",
        "endpoint": "ai/score",
        "params": {"model": "m1"}
    }
    assert [o.rule_id for o in outcomes] == ["r_score", "r_parse", "r_email"]
    assert outcomes[0].succeeded and outcomes[1].succeeded


def test_unsupported_action_is_skipped(definition):
    outcomes = AutoRuleDispatcher(FakeAutomation()).dispatch("tenant_acme", "CASE-1", "review", definition)

    email = next(o for o in outcomes if o.rule_id == "r_email")
    assert email.skipped is True
    assert email.succeeded is False


def test_failing_rule_does_not_stop_later_rules(definition):
    automation = FakeAutomation(failing=["ai/score"])
    outcomes = AutoRuleDispatcher(automation).dispatch("tenant_acme", "CASE-1", "review", definition)

    assert [call["endpoint"] for call in automation.calls] == ["ai/score", "ai/parse"]
    assert outcomes[0].succeeded is False
    assert "500" in outcomes[0].error
    assert outcomes[1].succeeded is True


def test_unexpected_exception_is_contained(definition):
    class Exploding:
        def call(self, tenant_id, case_id, endpoint, params=None):
            raise RuntimeError("socket closed")

    outcomes = AutoRuleDispatcher(Exploding()).dispatch("tenant_acme", "CASE-1", "review", definition)

    assert [o.succeeded for o in outcomes] == [False, False, False]
    assert outcomes[0].error == "socket closed"


def test_stage_without_rules(definition):
    automation = FakeAutomation()
    assert AutoRuleDispatcher(automation).dispatch("tenant_acme", "CASE-1", "draft", definition) == []
    assert automation.calls == []

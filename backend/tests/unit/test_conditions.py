"""Condition parsing and evaluation"""
import pytest
from pydantic import ValidationError

from caseflow.domain.conditions import parse_condition
from caseflow.domain.enums import ConditionOperator, ConditionLogic
from caseflow.domain.errors import ConditionSyntaxError
from caseflow.domain.models import ConditionGroup, Condition, Transition
from caseflow.engine.condition_evaluator import ConditionEvaluator


def group(expression: str) -> ConditionGroup:
    logic, conditions = parse_condition(expression)
    return ConditionGroup(logic=logic, conditions=conditions, expression=expression)


class TestParseCondition:

    @pytest.mark.parametrize("expression", ["", "   ", "true", "TRUE"])
    def test_always_true_forms_have_no_conditions(self, expression):
        logic, conditions = parse_condition(expression)
        assert logic == ConditionLogic.AND
        assert conditions == []

    def test_comparison(self):
        _, conditions = parse_condition("pd_score <= 0.15")
        assert conditions == [
            {"field": "pd_score", "operator": ConditionOperator.LESS_THAN_OR_EQUALS, "value": 0.15}
        ]

    def test_bare_field_is_truthiness(self):
        _, conditions = parse_condition("documents_verified")
        assert conditions[0]["operator"] == ConditionOperator.IS_TRUE

    @pytest.mark.parametrize("expression", ["not documents_incomplete", "!documents_incomplete"])
    def test_negated_field(self, expression):
        _, conditions = parse_condition(expression)
        assert conditions == [
            {"field": "documents_incomplete", "operator": ConditionOperator.IS_FALSE, "value": None}
        ]

    def test_literals(self):
        _, conditions = parse_condition(
            "decision == 'approved' and tenor >= 12 and flagged == false and note == null"
        )
        assert [c["value"] for c in conditions] == ["approved", 12, False, None]

    def test_joiner_words_inside_quotes_are_literal(self):
        logic, conditions = parse_condition(
            """status == "approved and signed" or remark == 'n/a || pending'"""
        )
        assert logic == ConditionLogic.OR
        assert [c["value"] for c in conditions] == ["approved and signed", "n/a || pending"]

    def test_or_joined_clauses(self):
        logic, conditions = parse_condition("approved || override")
        assert logic == ConditionLogic.OR
        assert [c["field"] for c in conditions] == ["approved", "override"]

    def test_dotted_field(self):
        _, conditions = parse_condition("applicant.income > 50000")
        assert conditions[0]["field"] == "applicant.income"

    @pytest.mark.parametrize("expression", [
        "a and b or c",
        "__import__('os').system('ls')",
        "amount > (1 + 2)",
        "amount >",
        "1 == 1",
    ])
    def test_rejects_unsupported_expressions(self, expression):
        with pytest.raises(ConditionSyntaxError):
            parse_condition(expression)

    def test_transition_accepts_string_condition(self):
        transition = Transition(
            id="t1", from_stage="a", to_stage="b",
            condition="pd_score <= 0.15", roles=["Underwriter"], actions=["approve"]
        )
        assert transition.condition.expression == "pd_score <= 0.15"
        assert transition.condition.conditions[0].operator == ConditionOperator.LESS_THAN_OR_EQUALS

    def test_transition_rejects_bad_condition(self):
        with pytest.raises(ValidationError):
            Transition(
                id="t1", from_stage="a", to_stage="b",
                condition="eval(x)", roles=["Maker"], actions=["go"]
            )

    def test_transition_without_condition_always_passes(self):
        transition = Transition(id="t1", from_stage="a", to_stage="b", roles=["Maker"], actions=["go"])
        assert transition.condition.conditions == []


class TestConditionEvaluator:

    @pytest.fixture
    def evaluator(self):
        return ConditionEvaluator()

    def test_empty_group_passes(self, evaluator):
        assert evaluator.evaluate(ConditionGroup(), {}) is True

    def test_false_literal_never_passes(self, evaluator):
        assert evaluator.evaluate(group("false"), {"__never__": None}) is False

    @pytest.mark.parametrize("data,expected", [
        ({"pd_score": 0.1}, True),
        ({"pd_score": 0.15}, True),
        ({"pd_score": 0.2}, False),
        ({"pd_score": "0.05"}, True),
        ({"pd_score": None}, False),
        ({}, False),
        ({"pd_score": True}, False),
        ({"pd_score": "high"}, False),
    ])
    def test_numeric_comparison(self, evaluator, data, expected):
        assert evaluator.evaluate(group("pd_score <= 0.15"), data) is expected

    def test_truthiness(self, evaluator):
        assert evaluator.evaluate(group("documents_verified"), {"documents_verified": True})
        assert not evaluator.evaluate(group("documents_verified"), {"documents_verified": False})
        assert not evaluator.evaluate(group("documents_verified"), {})

    def test_quoted_string_with_joiner_word(self, evaluator):
        condition = group('status == "approved and signed"')
        assert evaluator.evaluate(condition, {"status": "approved and signed"})
        assert not evaluator.evaluate(condition, {"status": "approved"})

    def test_and_requires_all(self, evaluator):
        condition = group("approved and amount < 10000")
        assert evaluator.evaluate(condition, {"approved": True, "amount": 500})
        assert not evaluator.evaluate(condition, {"approved": True, "amount": 50000})

    def test_or_requires_any(self, evaluator):
        condition = group("approved or override")
        assert evaluator.evaluate(condition, {"approved": False, "override": True})
        assert not evaluator.evaluate(condition, {"approved": False})

    def test_nested_field(self, evaluator):
        condition = group("applicant.income > 50000")
        assert evaluator.evaluate(condition, {"applicant": {"income": 60000}})
        assert not evaluator.evaluate(condition, {"applicant": "n/a"})

    def test_membership_and_emptiness(self, evaluator):
        in_group = ConditionGroup(conditions=[
            Condition(field="grade", operator=ConditionOperator.IN, value=["A", "B"])
        ])
        empty_group = ConditionGroup(conditions=[
            Condition(field="notes", operator=ConditionOperator.IS_EMPTY)
        ])
        assert evaluator.evaluate(in_group, {"grade": "A"})
        assert not evaluator.evaluate(in_group, {"grade": "C"})
        assert evaluator.evaluate(empty_group, {"notes": ""})
        assert not evaluator.evaluate(empty_group, {"notes": "checked"})

"""Condition Evaluator - Safe evaluation of transition conditions"""
from typing import Any, Dict

from ..domain.models import ConditionGroup, Condition
from ..domain.enums import ConditionOperator, ConditionLogic
from ..utils.logger import get_logger

logger = get_logger(__name__)

_EMPTY_VALUES = (None, "", [], {})


class ConditionEvaluator:
    """
    Evaluate transition conditions against case data

    Uses a small predicate DSL - no eval() or exec().
    """

    def evaluate(
        self,
        condition_group: ConditionGroup,
        context: Dict[str, Any]
    ) -> bool:
        """
        Evaluate a condition group

        Args:
            condition_group: Group of conditions with AND/OR logic
            context: Case data the conditions refer to

        Returns:
            True if conditions are met
        """
        if not condition_group.conditions:
            return True  # No conditions = always true

        results = [self._evaluate_single(c, context) for c in condition_group.conditions]

        if condition_group.logic == ConditionLogic.OR:
            return any(results)
        return all(results)

    def _evaluate_single(
        self,
        condition: Condition,
        context: Dict[str, Any]
    ) -> bool:
        """Evaluate a single condition"""
        try:
            field_value = self._get_field_value(condition.field, context)
            return self._compare(field_value, condition.operator, condition.value)
        except (TypeError, ValueError) as e:
            logger.warning(f"Condition evaluation failed for field {condition.field}: {e}")
            return False  # Fail closed

    def _get_field_value(self, field_path: str, context: Dict[str, Any]) -> Any:
        """
        Get field value from context using dot notation

        Example: "applicant.income" -> context["applicant"]["income"]
        """
        value: Any = context
        for part in field_path.split("."):
            if isinstance(value, dict):
                value = value.get(part)
            else:
                return None
        return value

    def _compare(
        self,
        field_value: Any,
        operator: ConditionOperator,
        compare_value: Any
    ) -> bool:
        """Compare values using operator"""

        if operator == ConditionOperator.EQUALS:
            return field_value == compare_value

        elif operator == ConditionOperator.NOT_EQUALS:
            return field_value != compare_value

        elif operator == ConditionOperator.GREATER_THAN:
            return self._compare_numeric(field_value, compare_value, lambda a, b: a > b)

        elif operator == ConditionOperator.LESS_THAN:
            return self._compare_numeric(field_value, compare_value, lambda a, b: a < b)

        elif operator == ConditionOperator.GREATER_THAN_OR_EQUALS:
            return self._compare_numeric(field_value, compare_value, lambda a, b: a >= b)

        elif operator == ConditionOperator.LESS_THAN_OR_EQUALS:
            return self._compare_numeric(field_value, compare_value, lambda a, b: a <= b)

        elif operator == ConditionOperator.IN:
            if not isinstance(compare_value, list):
                compare_value = [compare_value]
            return field_value in compare_value

        elif operator == ConditionOperator.NOT_IN:
            if not isinstance(compare_value, list):
                compare_value = [compare_value]
            return field_value not in compare_value

        elif operator == ConditionOperator.IS_EMPTY:
            return field_value in _EMPTY_VALUES

        elif operator == ConditionOperator.IS_NOT_EMPTY:
            return field_value not in _EMPTY_VALUES

        elif operator == ConditionOperator.IS_TRUE:
            return bool(field_value)

        elif operator == ConditionOperator.IS_FALSE:
            return not field_value

        return False

    def _compare_numeric(
        self,
        field_value: Any,
        compare_value: Any,
        comparator
    ) -> bool:
        """Compare numeric values; a missing or non-numeric value never matches"""
        if field_value is None or compare_value is None:
            return False
        if isinstance(field_value, bool) or isinstance(compare_value, bool):
            return False
        try:
            return comparator(float(field_value), float(compare_value))
        except (ValueError, TypeError):
            return False

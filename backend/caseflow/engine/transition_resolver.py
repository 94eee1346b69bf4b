"""Transition Resolver - Find the transition for a stage and action"""
from typing import Any, Dict, List, Optional

from ..domain.models import WorkflowDefinition, Transition
from ..domain.errors import InvalidActionError, TransitionConditionError
from .condition_evaluator import ConditionEvaluator
from ..utils.logger import get_logger

logger = get_logger(__name__)


class TransitionResolver:
    """
    Resolve transitions based on current stage and action name

    Given current stage S and action A:
    1. Take the first transition where from_stage=S and A is in its actions
    2. If none found -> raise InvalidActionError naming A and S
    3. Check the transition's condition against the proposed case data
    """

    def __init__(self, condition_evaluator: Optional[ConditionEvaluator] = None):
        self.condition_evaluator = condition_evaluator or ConditionEvaluator()

    def find_transition(
        self,
        definition: WorkflowDefinition,
        current_stage: str,
        action: str
    ) -> Transition:
        """
        Find the transition triggered by an action from the current stage

        Definitions are validated so at most one transition matches; if an
        older definition has duplicates the first in definition order wins.

        Raises:
            InvalidActionError: If no transition matches
        """
        for transition in definition.transitions:
            if transition.from_stage == current_stage and action in transition.actions:
                logger.info(
                    f"Resolved transition {transition.id}: {current_stage} -> {transition.to_stage}",
                    extra={"workflow_id": definition.workflow_id, "action": action, "stage": current_stage}
                )
                return transition

        raise InvalidActionError(
            f"Invalid action '{action}' for current stage '{current_stage}'",
            details={
                "action": action,
                "current_stage": current_stage,
                "available_actions": self.get_actions_for_stage(definition, current_stage)
            }
        )

    def ensure_condition_met(self, transition: Transition, data: Dict[str, Any]) -> None:
        """
        Check the transition's condition against case data

        Raises:
            TransitionConditionError: If the condition is not satisfied
        """
        if self.condition_evaluator.evaluate(transition.condition, data):
            return

        raise TransitionConditionError(
            f"Condition for transition '{transition.id}' is not met",
            details={
                "transition_id": transition.id,
                "condition": transition.condition.expression
                or transition.condition.model_dump(mode="json", exclude={"expression"})
            }
        )

    def get_outgoing_transitions(
        self,
        definition: WorkflowDefinition,
        stage_id: str
    ) -> List[Transition]:
        """Get all outgoing transitions from a stage"""
        return [t for t in definition.transitions if t.from_stage == stage_id]

    def get_actions_for_stage(
        self,
        definition: WorkflowDefinition,
        stage_id: str,
        role: Optional[str] = None
    ) -> List[str]:
        """Get action names available from a stage, optionally limited to a role"""
        actions: List[str] = []
        for transition in self.get_outgoing_transitions(definition, stage_id):
            if role is not None and role not in transition.roles:
                continue
            for action in transition.actions:
                if action not in actions:
                    actions.append(action)
        return actions


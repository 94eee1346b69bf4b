"""Auto-Rule Dispatcher - Fire stage-entry automation after a transition commits"""
from typing import List, Optional, Protocol, Any, Dict

from ..domain.models import WorkflowDefinition, AutoRule, AutoRuleOutcome
from ..domain.enums import AutoRuleTrigger
from ..domain.errors import AutomationError
from ..utils.logger import get_logger

logger = get_logger(__name__)

CALL_PREFIX = "call:"


class AutomationEndpoint(Protocol):
    def call(
        self,
        tenant_id: str,
        case_id: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None
    ) -> Any: ...


class AutoRuleDispatcher:
    """
    Run the onEnter auto-rules of a stage

    Rules run in definition order. Each rule is isolated: its failure is
    logged and recorded in the outcome list, and later rules still run.
    Nothing raised by a rule escapes ``dispatch``.
    """

    def __init__(self, automation: AutomationEndpoint):
        self.automation = automation

    def rules_for_stage(self, definition: WorkflowDefinition, stage: str) -> List[AutoRule]:
        """onEnter rules watching a stage, in definition order"""
        return [
            rule for rule in definition.auto_rules
            if rule.stage == stage and rule.trigger == AutoRuleTrigger.ON_ENTER
        ]

    def dispatch(
        self,
        tenant_id: str,
        case_id: str,
        new_stage: str,
        definition: WorkflowDefinition
    ) -> List[AutoRuleOutcome]:
        """Fire every onEnter rule for the stage the case just entered"""
        outcomes = []
        for rule in self.rules_for_stage(definition, new_stage):
            outcomes.append(self._run_rule(tenant_id, case_id, rule))
        return outcomes

    def _run_rule(self, tenant_id: str, case_id: str, rule: AutoRule) -> AutoRuleOutcome:
        log_extra = {"tenant_id": tenant_id, "case_id": case_id, "rule_id": rule.id}

        if not rule.action.startswith(CALL_PREFIX):
            logger.warning(f"Skipping auto rule {rule.id}: unsupported action '{rule.action}'", extra=log_extra)
            return AutoRuleOutcome(rule_id=rule.id, action=rule.action, succeeded=False, skipped=True)

        endpoint = rule.action[len(CALL_PREFIX):]
        try:
            result = self.automation.call(tenant_id, case_id, endpoint, rule.params)
        except AutomationError as e:
            logger.error(f"Auto rule {rule.id} failed: {e.message}", extra=log_extra)
            return AutoRuleOutcome(rule_id=rule.id, action=rule.action, succeeded=False, error=e.message)
        except Exception as e:
            logger.error(f"Auto rule {rule.id} failed unexpectedly: {e}", exc_info=True, extra=log_extra)
            return AutoRuleOutcome(rule_id=rule.id, action=rule.action, succeeded=False, error=str(e))

        logger.info(f"Executed auto rule {rule.id} for case {case_id}", extra=log_extra)
        return AutoRuleOutcome(rule_id=rule.id, action=rule.action, succeeded=True, result=result)

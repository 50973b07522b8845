"""
Condition evaluation against a rule context
"""
import logging
from typing import Any, Optional

from .interfaces import ScoringStore
from .operators import apply_operator
from .schema import CONTENT_CONDITION_TYPES, ConditionResult, RuleCondition, RuleContext

logger = logging.getLogger(__name__)

CONTENT_SKIPPED_VALUE = '(Content not loaded yet)'
CONTENT_SKIPPED_ERROR = 'Content not loaded - condition skipped'


class ConditionEvaluator:
    """Resolves the actual value for a condition and applies its operator"""

    def __init__(self, scoring_store: Optional[ScoringStore] = None):
        self.scoring_store = scoring_store

    def evaluate(self, condition: RuleCondition, context: RuleContext) -> ConditionResult:
        """Evaluate a single condition; errors are reported in the result"""
        result = ConditionResult(
            condition_id=condition.id,
            type=condition.type,
            expected_value=condition.value,
        )
        try:
            if condition.type in CONTENT_CONDITION_TYPES and not context.email.content_loaded:
                logger.debug(f"Skipping {condition.type} condition {condition.id}: content not loaded")
                result.actual_value = CONTENT_SKIPPED_VALUE
                result.error = CONTENT_SKIPPED_ERROR
                return result

            actual = self._actual_value(condition, context)
            result.actual_value = actual
            case_sensitive = condition.case_sensitive is not False
            result.matched = apply_operator(actual, condition.operator, condition.value, case_sensitive)
            logger.debug(
                f"Condition: {condition.type} {condition.operator} '{condition.value}' "
                f"(actual: '{actual}') -> {result.matched}"
            )
        except Exception as e:
            logger.error(f"Error evaluating condition {condition.id}: {e}")
            result.matched = False
            result.error = str(e)
        return result

    def _actual_value(self, condition: RuleCondition, context: RuleContext) -> Any:
        email = context.email
        if condition.type == 'sender_email':
            return context.sender_info.email
        elif condition.type == 'sender_name':
            return context.sender_info.name or ''
        elif condition.type == 'subject':
            return email.subject
        elif condition.type in CONTENT_CONDITION_TYPES:
            return email.html_body or email.body or ''
        elif condition.type == 'url_contains':
            return ' '.join(link.url for link in context.extracted_links)
        elif condition.type == 'link_domain':
            return ' '.join(link.domain for link in context.extracted_links)
        elif condition.type == 'sender_score':
            return self._sender_score(context)
        elif condition.type == 'has_links':
            return len(context.extracted_links) > 0
        raise ValueError(f"Unknown condition type: {condition.type}")

    def _sender_score(self, context: RuleContext) -> float:
        if self.scoring_store is None:
            return context.sender_score or 0
        return self.scoring_store.get_score(context.sender_info.email) or 0

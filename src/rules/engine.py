"""
Rules engine for evaluating user rules against emails
"""
from datetime import datetime
import logging
import time
import uuid
from typing import List, Optional

from .actions import ActionExecutor
from .conditions import ConditionEvaluator
from .config import EngineConfig
from .context import extract_links
from .interfaces import DebugLogSink, RuleStore
from .pending import PendingExecutions
from .schema import ActionResult, Rule, RuleContext, RuleExecutionResult, RulesDebugLog

logger = logging.getLogger(__name__)


class RulesEngine:
    """Engine for evaluating enabled rules against an email context"""

    def __init__(
        self,
        rule_store: RuleStore,
        action_executor: Optional[ActionExecutor] = None,
        condition_evaluator: Optional[ConditionEvaluator] = None,
        debug_log: Optional[DebugLogSink] = None,
        config: Optional[EngineConfig] = None,
    ):
        self.rule_store = rule_store
        self.config = config or EngineConfig()
        self.action_executor = action_executor or ActionExecutor(config=self.config)
        self.condition_evaluator = condition_evaluator or ConditionEvaluator(
            self.action_executor.scoring_store
        )
        self.debug_log = debug_log
        self.pending = PendingExecutions()

    def execute_rules(self, context: RuleContext) -> List[RuleExecutionResult]:
        """Run every enabled rule against the context; never raises"""
        try:
            rules = self.rule_store.list_enabled()
        except Exception as e:
            logger.error(f"Failed to load enabled rules: {e}")
            return []

        if not context.email.content_loaded and any(rule.has_content_conditions() for rule in rules):
            logger.info(f"Deferring rules for email {context.email.id}: content-based rules need the body")
            self.pending.mark_pending(context.email.id, context)
            return []

        logger.info(f"Executing {len(rules)} enabled rules for email: {context.email.subject}")
        results = []
        for rule in rules:
            result = self._execute_rule(rule, context)
            results.append(result)

            if result.matched:
                try:
                    self.rule_store.increment_execution_count(rule.id, datetime.utcnow())
                except Exception as e:
                    logger.error(f"Failed to record execution of rule {rule.name}: {e}")

        if results and self.config.debug_mode:
            self._write_debug_log(context, results)

        return results

    def resolve_pending(self, email_id: str, body: str, html_body: Optional[str] = None) -> List[RuleExecutionResult]:
        """Re-run a deferred pass now that the email content is available"""
        context = self.pending.take(email_id)
        if context is None:
            logger.debug(f"No pending rules for email {email_id}")
            return []

        email = context.email.model_copy(update={
            'body': body,
            'html_body': html_body if html_body is not None else context.email.html_body,
        })
        # Links come from the body, so the metadata-only context has none
        links = extract_links(email.body, email.html_body)
        logger.info(f"Executing deferred rules for email: {email.subject}")
        return self.execute_rules(context.model_copy(update={'email': email, 'extracted_links': links}))

    def clear_pending(self, email_id: str) -> None:
        self.pending.clear(email_id)

    def pending_count(self) -> int:
        return self.pending.count()

    def _execute_rule(self, rule: Rule, context: RuleContext) -> RuleExecutionResult:
        """Evaluate one rule and run its actions if it matches"""
        start = time.perf_counter()
        result = RuleExecutionResult(
            rule_id=rule.id,
            rule_name=rule.name,
            variables=dict(context.variables),
        )

        try:
            logger.debug(f"Checking rule: {rule.name} ({rule.logic_operator})")
            for condition in rule.conditions:
                result.condition_results.append(self.condition_evaluator.evaluate(condition, context))

            matched_flags = [cr.matched for cr in result.condition_results]
            if rule.logic_operator == 'AND':
                result.matched = all(matched_flags)
            else:
                result.matched = any(matched_flags)
            logger.debug(f"Rule conditions matched: {result.matched}")

            if result.matched:
                logger.info(f"Rule '{rule.name}' matched - executing {len(rule.actions)} actions")
                for action in rule.actions:
                    result.action_results.append(
                        self.action_executor.execute(action, context, result.variables)
                    )
        except Exception as e:
            logger.error(f"Error executing rule '{rule.name}': {e}")
            result.action_results.append(ActionResult(
                action_id='error',
                type='error',
                success=False,
                error=str(e),
            ))

        # Later rules in the same pass see variables produced here
        context.variables.update(result.variables)
        result.variables = dict(result.variables)
        result.execution_time = int((time.perf_counter() - start) * 1000)
        return result

    def _write_debug_log(self, context: RuleContext, results: List[RuleExecutionResult]) -> None:
        if self.debug_log is None:
            return
        log = RulesDebugLog(
            id=f"log_{uuid.uuid4().hex[:12]}",
            timestamp=datetime.utcnow(),
            email_id=context.email.id,
            email_subject=context.email.subject,
            email_from=context.email.from_address,
            results=results,
            total_rules_checked=len(results),
            total_rules_fired=sum(1 for r in results if r.matched),
        )
        try:
            self.debug_log.append(log)
        except Exception as e:
            logger.error(f"Failed to save rules debug log: {e}")

    @staticmethod
    def condition_types() -> List[dict]:
        """Metadata describing the supported condition types"""
        return CONDITION_TYPES

    @staticmethod
    def action_types() -> List[dict]:
        """Metadata describing the supported action types"""
        return ACTION_TYPES


CONDITION_TYPES = [
    {'type': 'sender_email', 'label': 'Sender Email', 'description': 'The email address of the sender',
     'valueType': 'string', 'supportedOperators': ['equals', 'contains', 'starts_with', 'ends_with', 'regex_match']},
    {'type': 'sender_name', 'label': 'Sender Name', 'description': 'The display name of the sender',
     'valueType': 'string',
     'supportedOperators': ['equals', 'contains', 'starts_with', 'ends_with', 'regex_match', 'exists', 'not_exists']},
    {'type': 'subject', 'label': 'Subject', 'description': 'The email subject line',
     'valueType': 'string', 'supportedOperators': ['equals', 'contains', 'starts_with', 'ends_with', 'regex_match']},
    {'type': 'content', 'label': 'Email Content', 'description': 'The body text of the email',
     'valueType': 'string', 'supportedOperators': ['contains', 'regex_match', 'exists', 'not_exists']},
    {'type': 'content_regex', 'label': 'Content (Regex)', 'description': 'Match email content using regular expressions',
     'valueType': 'string', 'supportedOperators': ['regex_match']},
    {'type': 'url_contains', 'label': 'URLs Contain', 'description': 'Check if any extracted URLs contain text',
     'valueType': 'string', 'supportedOperators': ['contains', 'regex_match']},
    {'type': 'link_domain', 'label': 'Link Domain', 'description': 'Check domains of extracted links',
     'valueType': 'string', 'supportedOperators': ['equals', 'contains', 'starts_with', 'ends_with']},
    {'type': 'sender_score', 'label': 'Sender Score', 'description': 'The scoring points of the sender',
     'valueType': 'number', 'supportedOperators': ['equals', 'greater_than', 'less_than']},
    {'type': 'has_links', 'label': 'Has Links', 'description': 'Whether the email contains any links',
     'valueType': 'boolean', 'supportedOperators': ['equals']},
]

ACTION_TYPES = [
    {'type': 'javascript_code', 'label': 'Run Script',
     'description': 'Run a rule script with access to the email context',
     'parameters': [{'name': 'code', 'type': 'textarea', 'required': True,
                     'description': 'One expression per line. Available: email, senderInfo, extractedLinks, '
                                    'senderScore, variables, console, window, utils, set_var'}]},
    {'type': 'open_url', 'label': 'Open URL', 'description': 'Open a URL in a new window or tab',
     'parameters': [{'name': 'url', 'type': 'string', 'required': True,
                     'description': 'URL to open. Can use ${email.subject}, ${senderInfo.email}, ${variables.name}'},
                    {'name': 'target', 'type': 'string', 'required': False,
                     'description': 'Window target (_blank, _self)'}]},
    {'type': 'save_variable', 'label': 'Save Variable',
     'description': 'Extract and save data to a variable for use in other actions',
     'parameters': [{'name': 'variableName', 'type': 'string', 'required': True, 'description': 'Variable name'},
                    {'name': 'regexPattern', 'type': 'string', 'required': False,
                     'description': 'Regex pattern to extract the value'},
                    {'name': 'groupIndex', 'type': 'number', 'required': False,
                     'description': 'Capture group to use (default: 1)'},
                    {'name': 'source', 'type': 'string', 'required': False,
                     'description': 'Source to extract from: content, subject, from, urls'},
                    {'name': 'directValue', 'type': 'string', 'required': False,
                     'description': 'Fixed value to save instead of a regex extraction'}]},
    {'type': 'log_message', 'label': 'Log Message', 'description': 'Write a message to the log',
     'parameters': [{'name': 'message', 'type': 'string', 'required': True, 'description': 'Message to log'}]},
    {'type': 'add_score', 'label': 'Add Score Points', 'description': "Add points to the sender's score",
     'parameters': [{'name': 'points', 'type': 'number', 'required': True, 'description': 'Number of points to add'},
                    {'name': 'reason', 'type': 'string', 'required': False, 'description': 'Reason for the points'}]},
    {'type': 'mark_email', 'label': 'Mark Email', 'description': 'Mark the email with a custom tag',
     'parameters': [{'name': 'marker', 'type': 'string', 'required': True, 'description': 'Tag to mark the email with'}]},
    {'type': 'notify', 'label': 'Notification', 'description': 'Show a notification',
     'parameters': [{'name': 'title', 'type': 'string', 'required': True, 'description': 'Notification title'},
                    {'name': 'body', 'type': 'string', 'required': True, 'description': 'Notification message'}]},
    {'type': 'delete_email', 'label': 'Delete Email', 'description': 'Delete the email', 'parameters': []},
    {'type': 'mark_as_read', 'label': 'Mark as Read', 'description': 'Mark the email as read', 'parameters': []},
    {'type': 'request_summary', 'label': 'Request Summary',
     'description': 'Generate an email summary or save for later', 'parameters': []},
    {'type': 'goto_next_email', 'label': 'Go to Next Email', 'description': 'Navigate to the next email',
     'parameters': []},
    {'type': 'goto_previous_email', 'label': 'Go to Previous Email', 'description': 'Navigate to the previous email',
     'parameters': []},
]

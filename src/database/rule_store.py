"""
SQLAlchemy-backed storage for rules
"""
from datetime import datetime
import logging
import secrets
import time
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from src.rules.schema import Rule, RuleAction, RuleCondition, RulesConfig

from . import models

logger = logging.getLogger(__name__)


def generate_rule_id() -> str:
    return f"rule_{int(time.time() * 1000)}_{secrets.token_hex(5)[:9]}"


def field_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    """Map camelCase rule keys to field names"""
    names = {field.alias or name: name for name, field in Rule.model_fields.items()}
    return {names.get(key, key): value for key, value in data.items()}


class RuleRepository:
    """CRUD, execution tracking and import/export for rules"""

    def __init__(self, db: Session):
        self.db = db

    # Reads

    def list_rules(self) -> List[Rule]:
        rows = self.db.query(models.Rule).order_by(models.Rule.id).all()
        return [self._to_schema(row) for row in rows]

    def list_enabled(self) -> List[Rule]:
        rows = (
            self.db.query(models.Rule)
            .filter(models.Rule.enabled.is_(True))
            .order_by(models.Rule.id)
            .all()
        )
        return [self._to_schema(row) for row in rows]

    def get_rule(self, rule_id: str) -> Optional[Rule]:
        row = self._get_row(rule_id)
        return self._to_schema(row) if row else None

    # Writes

    def create_rule(self, rule_data: Dict[str, Any]) -> Rule:
        """Create a rule from authoring data; ids and counters are assigned here"""
        now = datetime.utcnow()
        data = field_keys(rule_data)
        data.update(id=generate_rule_id(), execution_count=0, last_executed=None,
                    created_at=now, last_modified=now)
        rule = Rule.model_validate(data)

        self.db.add(self._to_row(rule))
        self.db.commit()
        logger.info(f"Created new rule: {rule.name}")
        return rule

    def update_rule(self, rule_id: str, updates: Dict[str, Any]) -> Optional[Rule]:
        row = self._get_row(rule_id)
        if not row:
            logger.error(f"Rule not found: {rule_id}")
            return None

        changes = field_keys(updates)
        for protected in ('id', 'created_at'):
            changes.pop(protected, None)
        changes['last_modified'] = datetime.utcnow()
        rule = Rule.model_validate({**self._to_schema(row).model_dump(), **changes})

        self._apply(row, rule)
        self.db.commit()
        logger.info(f"Updated rule: {rule.name}")
        return rule

    def delete_rule(self, rule_id: str) -> bool:
        row = self._get_row(rule_id)
        if not row:
            logger.error(f"Rule not found for deletion: {rule_id}")
            return False
        self.db.delete(row)
        self.db.commit()
        logger.info(f"Deleted rule: {rule_id}")
        return True

    def toggle_rule(self, rule_id: str) -> Optional[Rule]:
        rule = self.get_rule(rule_id)
        if not rule:
            return None
        return self.update_rule(rule_id, {'enabled': not rule.enabled})

    def increment_execution_count(self, rule_id: str, timestamp: datetime) -> None:
        """Record one matching execution of a rule"""
        row = self._get_row(rule_id)
        if not row:
            logger.warning(f"Cannot record execution for unknown rule {rule_id}")
            return
        row.execution_count = (row.execution_count or 0) + 1
        row.last_executed = timestamp
        row.last_modified = datetime.utcnow()
        self.db.commit()

    def clear_rules(self) -> None:
        for row in self.db.query(models.Rule).all():
            self.db.delete(row)
        self.db.commit()
        logger.info("All rules cleared")

    # Import / export

    def export_rules(self) -> RulesConfig:
        return RulesConfig(rules=self.list_rules(), exported_at=datetime.utcnow())

    def import_rules(self, config: RulesConfig) -> int:
        """Replace all stored rules with the imported ones"""
        self.clear_rules()
        now = datetime.utcnow()
        for rule in config.rules:
            rule = rule.model_copy(update={
                'created_at': rule.created_at or now,
                'last_modified': rule.last_modified or now,
            })
            self.db.add(self._to_row(rule))
        self.db.commit()
        logger.info(f"Successfully imported {len(config.rules)} rules")
        return len(config.rules)

    def statistics(self) -> Dict[str, int]:
        rules = self.list_rules()
        return {
            'totalRules': len(rules),
            'enabledRules': sum(1 for r in rules if r.enabled),
            'disabledRules': sum(1 for r in rules if not r.enabled),
            'totalExecutions': sum(r.execution_count for r in rules),
            'rulesWithExecutions': sum(1 for r in rules if r.execution_count > 0),
            'debugLogsCount': self.db.query(models.RulesDebugLog).count(),
        }

    def create_example_rules(self) -> List[Rule]:
        """Seed the disabled demo rules"""
        created = [self.create_rule(example) for example in EXAMPLE_RULES]
        logger.info(f"Created {len(created)} example rules")
        return created

    # Mapping helpers

    def _get_row(self, rule_id: str) -> Optional[models.Rule]:
        return self.db.query(models.Rule).filter(models.Rule.identifier == rule_id).first()

    def _to_row(self, rule: Rule) -> models.Rule:
        row = models.Rule(identifier=rule.id, created_at=rule.created_at)
        self._apply(row, rule)
        return row

    def _apply(self, row: models.Rule, rule: Rule) -> None:
        row.name = rule.name
        row.description = rule.description
        row.enabled = rule.enabled
        row.logic_operator = rule.logic_operator
        row.execution_count = rule.execution_count
        row.last_executed = rule.last_executed
        row.last_modified = rule.last_modified
        row.conditions = [
            models.RuleCondition(
                condition_id=condition.id,
                position=position,
                condition_type=condition.type,
                operator=condition.operator,
                value=condition.value,
                case_sensitive=condition.case_sensitive,
            )
            for position, condition in enumerate(rule.conditions)
        ]
        row.actions = [
            models.RuleAction(
                action_id=action.id,
                position=position,
                action_type=action.type,
                parameters=dict(action.parameters),
                description=action.description,
            )
            for position, action in enumerate(rule.actions)
        ]

    def _to_schema(self, row: models.Rule) -> Rule:
        return Rule(
            id=row.identifier,
            name=row.name,
            description=row.description or '',
            enabled=bool(row.enabled),
            logic_operator=row.logic_operator,
            execution_count=row.execution_count or 0,
            last_executed=row.last_executed,
            created_at=row.created_at,
            last_modified=row.last_modified,
            conditions=[
                RuleCondition(
                    id=c.condition_id,
                    type=c.condition_type,
                    operator=c.operator,
                    value=c.value,
                    case_sensitive=c.case_sensitive,
                )
                for c in row.conditions
            ],
            actions=[
                RuleAction(
                    id=a.action_id,
                    type=a.action_type,
                    parameters=a.parameters or {},
                    description=a.description or '',
                )
                for a in row.actions
            ],
        )


def _log_then(action_type: str, message: str, action_description: str, description: str) -> List[Dict[str, Any]]:
    return [
        {'id': 'action1', 'type': 'log_message', 'parameters': {'message': message},
         'description': description},
        {'id': 'action2', 'type': action_type, 'parameters': {}, 'description': action_description},
    ]


def _score_condition(operator: str, value: int) -> List[Dict[str, Any]]:
    return [{'id': 'cond1', 'type': 'sender_score', 'operator': operator, 'value': value}]


UNSUBSCRIBE_CONDITION = [
    {'id': 'cond1', 'type': 'url_contains', 'operator': 'contains', 'value': 'unsubscribe', 'caseSensitive': False}
]

EXAMPLE_RULES = [
    {
        'name': 'High Scorer Auto-Summary',
        'description': 'Automatically trigger summary for emails from high-scoring senders',
        'enabled': False,
        'conditions': _score_condition('greater_than', 50),
        'actions': [
            {'id': 'action1', 'type': 'log_message',
             'parameters': {'message': 'High-scoring sender detected: '
                                       '${senderInfo.name || senderInfo.email} (Score: ${senderScore})'},
             'description': 'Log high-scoring sender'},
        ],
        'logicOperator': 'AND',
    },
    {
        'name': 'Newsletter Link Detector',
        'description': 'Detects newsletters with unsubscribe links and logs them',
        'enabled': False,
        'conditions': UNSUBSCRIBE_CONDITION,
        'actions': [
            {'id': 'action1', 'type': 'log_message',
             'parameters': {'message': 'Newsletter detected from ${senderInfo.name || senderInfo.email}: '
                                       '${email.subject}'},
             'description': 'Log newsletter detection'},
            {'id': 'action2', 'type': 'mark_email', 'parameters': {'marker': 'newsletter'},
             'description': 'Mark as newsletter'},
        ],
        'logicOperator': 'AND',
    },
    {
        'name': 'Auto-delete Low Quality Emails',
        'description': 'Automatically delete emails from very low-scoring senders',
        'enabled': False,
        'conditions': _score_condition('less_than', -10),
        'actions': _log_then(
            'delete_email',
            'Auto-deleting low quality email from ${senderInfo.name || senderInfo.email}: ${email.subject}',
            'Delete the email', 'Log deletion action'),
        'logicOperator': 'AND',
    },
    {
        'name': 'Auto-mark Newsletters as Read',
        'description': 'Automatically mark newsletter emails as read',
        'enabled': False,
        'conditions': UNSUBSCRIBE_CONDITION,
        'actions': _log_then(
            'mark_as_read',
            'Auto-marking newsletter as read from ${senderInfo.name || senderInfo.email}: ${email.subject}',
            'Mark email as read', 'Log mark as read action'),
        'logicOperator': 'AND',
    },
    {
        'name': 'Auto-summarize Important Emails',
        'description': 'Automatically request summary for high-scoring senders',
        'enabled': False,
        'conditions': _score_condition('greater_than', 75),
        'actions': _log_then(
            'request_summary',
            'Auto-summarizing important email from ${senderInfo.name || senderInfo.email}: ${email.subject}',
            'Request email summary or save for later', 'Log summary request action'),
        'logicOperator': 'AND',
    },
    {
        'name': 'Skip Low Quality Emails',
        'description': 'Automatically navigate to next email for very low-scoring senders',
        'enabled': False,
        'conditions': _score_condition('less_than', -20),
        'actions': _log_then(
            'goto_next_email',
            'Skipping very low quality email from ${senderInfo.name || senderInfo.email}: ${email.subject}',
            'Navigate to next email', 'Log skip action'),
        'logicOperator': 'AND',
    },
    {
        'name': 'Review VIP Emails',
        'description': 'Summarize emails from very high-scoring senders',
        'enabled': False,
        'conditions': _score_condition('greater_than', 95),
        'actions': _log_then(
            'request_summary',
            'VIP email detected from ${senderInfo.name || senderInfo.email}: ${email.subject} - '
            'Score: ${senderScore}',
            'Generate summary for VIP email', 'Log VIP detection'),
        'logicOperator': 'AND',
    },
]

"""
Schemas for rules, evaluation contexts and execution results
"""
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# Placeholder body for emails listed before their content was fetched
CONTENT_NOT_LOADED = '(Content will be loaded when opened)'

ConditionType = Literal[
    'sender_email', 'sender_name', 'subject', 'content', 'content_regex',
    'url_contains', 'link_domain', 'sender_score', 'has_links',
]
Operator = Literal[
    'equals', 'contains', 'starts_with', 'ends_with', 'regex_match',
    'greater_than', 'less_than', 'exists', 'not_exists',
]
ActionType = Literal[
    'javascript_code', 'open_url', 'save_variable', 'log_message', 'add_score',
    'mark_email', 'notify', 'delete_email', 'mark_as_read', 'request_summary',
    'goto_next_email', 'goto_previous_email',
]

CONTENT_CONDITION_TYPES = ('content', 'content_regex')
LINK_CONDITION_TYPES = ('url_contains', 'link_domain', 'has_links')


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RuleCondition(CamelModel):
    """Schema for a rule condition"""
    id: str
    type: ConditionType
    operator: Operator
    value: Union[bool, int, float, str, None] = None
    case_sensitive: Optional[bool] = None


# Typed parameters, one model per action type

class JavascriptCodeParameters(CamelModel):
    code: str


class OpenUrlParameters(CamelModel):
    url: str
    target: str = '_blank'


class SaveVariableParameters(CamelModel):
    variable_name: str
    regex_pattern: Optional[str] = None
    group_index: int = 1
    source: Literal['content', 'subject', 'from', 'urls'] = 'content'
    direct_value: Optional[str] = None


class LogMessageParameters(CamelModel):
    message: str


class AddScoreParameters(CamelModel):
    points: float = 0
    reason: Optional[str] = None


class MarkEmailParameters(CamelModel):
    marker: str = 'default'


class NotifyParameters(CamelModel):
    title: str = 'Gmail Reader Rule'
    body: str = 'A rule was triggered'


class NoParameters(CamelModel):
    pass


ACTION_PARAMETERS = {
    'javascript_code': JavascriptCodeParameters,
    'open_url': OpenUrlParameters,
    'save_variable': SaveVariableParameters,
    'log_message': LogMessageParameters,
    'add_score': AddScoreParameters,
    'mark_email': MarkEmailParameters,
    'notify': NotifyParameters,
    'delete_email': NoParameters,
    'mark_as_read': NoParameters,
    'request_summary': NoParameters,
    'goto_next_email': NoParameters,
    'goto_previous_email': NoParameters,
}


class RuleAction(CamelModel):
    """Schema for a rule action"""
    id: str
    type: ActionType
    parameters: Dict[str, Any] = Field(default_factory=dict)
    description: str = ''

    @model_validator(mode='after')
    def _validate_parameters(self):
        self.typed_parameters()
        return self

    def typed_parameters(self) -> CamelModel:
        """Validate the raw parameters against the model for this action type"""
        return ACTION_PARAMETERS[self.type].model_validate(self.parameters)


class Rule(CamelModel):
    """Schema for a single rule"""
    id: str
    name: str
    description: str = ''
    enabled: bool = True
    conditions: List[RuleCondition] = Field(default_factory=list)
    actions: List[RuleAction] = Field(default_factory=list)
    logic_operator: Literal['AND', 'OR'] = 'AND'
    execution_count: int = 0
    last_executed: Optional[datetime] = None
    created_at: Optional[datetime] = None
    last_modified: Optional[datetime] = None

    def has_content_conditions(self) -> bool:
        return any(c.type in CONTENT_CONDITION_TYPES for c in self.conditions)


class EngineSettingsSnapshot(CamelModel):
    """Engine settings carried along with exported rules"""
    debug_mode: bool = False
    debug_retention_days: int = 7


class RulesConfig(CamelModel):
    """Schema for an exported/imported set of rules"""
    rules: List[Rule]
    config: Optional[EngineSettingsSnapshot] = None
    exported_at: Optional[datetime] = None
    version: str = '1.0'


# Evaluation context

class EmailContent(CamelModel):
    """The email a rule pass is evaluated against"""
    id: str
    thread_id: Optional[str] = None
    subject: str = ''
    from_address: str = Field('', alias='from')
    to: str = ''
    date: str = ''
    body: str = ''
    html_body: Optional[str] = None
    snippet: Optional[str] = None
    is_read: bool = False

    @property
    def content_loaded(self) -> bool:
        return self.body != CONTENT_NOT_LOADED and self.html_body != CONTENT_NOT_LOADED


class SenderInfo(CamelModel):
    email: str
    name: Optional[str] = None


class ExtractedLink(CamelModel):
    url: str
    text: str = ''
    domain: str = ''


class RuleContext(CamelModel):
    """Per-evaluation bundle of email, sender, links, score and variables"""
    email: EmailContent
    sender_info: SenderInfo
    extracted_links: List[ExtractedLink] = Field(default_factory=list)
    sender_score: float = 0
    variables: Dict[str, Any] = Field(default_factory=dict)


# Results

class ConditionResult(CamelModel):
    condition_id: str
    type: str
    matched: bool = False
    actual_value: Any = None
    expected_value: Any = None
    error: Optional[str] = None


class ActionResult(CamelModel):
    action_id: str
    type: str
    success: bool = False
    result: Any = None
    error: Optional[str] = None


class RuleExecutionResult(CamelModel):
    rule_id: str
    rule_name: str
    matched: bool = False
    condition_results: List[ConditionResult] = Field(default_factory=list)
    action_results: List[ActionResult] = Field(default_factory=list)
    execution_time: int = 0  # milliseconds
    variables: Dict[str, Any] = Field(default_factory=dict)


class RulesDebugLog(CamelModel):
    """One entry per email evaluation pass"""
    id: str
    timestamp: datetime
    email_id: str
    email_subject: str = ''
    email_from: str = ''
    results: List[RuleExecutionResult] = Field(default_factory=list)
    total_rules_checked: int = 0
    total_rules_fired: int = 0

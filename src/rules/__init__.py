"""
Rules engine package for the Gmail triage assistant
"""
from .actions import ActionExecutor
from .conditions import ConditionEvaluator
from .config import EngineConfig
from .context import build_context, extract_links, parse_sender
from .engine import RulesEngine
from .interpolation import interpolate
from .operators import apply_operator
from .schema import (
    CONTENT_NOT_LOADED,
    EmailContent,
    Rule,
    RuleAction,
    RuleCondition,
    RuleContext,
    RuleExecutionResult,
    RulesConfig,
    RulesDebugLog,
    SenderInfo,
)

__all__ = [
    'ActionExecutor',
    'ConditionEvaluator',
    'EngineConfig',
    'RulesEngine',
    'CONTENT_NOT_LOADED',
    'EmailContent',
    'Rule',
    'RuleAction',
    'RuleCondition',
    'RuleContext',
    'RuleExecutionResult',
    'RulesConfig',
    'RulesDebugLog',
    'SenderInfo',
    'apply_operator',
    'build_context',
    'extract_links',
    'interpolate',
    'parse_sender',
]

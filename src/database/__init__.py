"""
Database package for the Gmail triage rules engine
"""
from .connection import get_db_session, init_db, make_engine
from .models import (
    Base,
    EmailMarker,
    Rule,
    RuleAction,
    RuleCondition,
    RulesDebugLog,
    SavedSummary,
    ScoringAction,
    SenderScore,
)
from .rule_store import RuleRepository
from .scoring import SenderScoreStore, normalize_sender_email
from .storage import DebugLogRepository, MarkerRepository, SummaryRepository

__all__ = [
    'Base',
    'Rule',
    'RuleCondition',
    'RuleAction',
    'RulesDebugLog',
    'SenderScore',
    'ScoringAction',
    'EmailMarker',
    'SavedSummary',
    'RuleRepository',
    'SenderScoreStore',
    'DebugLogRepository',
    'MarkerRepository',
    'SummaryRepository',
    'normalize_sender_email',
    'init_db',
    'get_db_session',
    'make_engine',
]

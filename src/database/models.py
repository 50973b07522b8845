"""
Database models for the Gmail triage rules engine
"""
from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class Rule(Base):
    """Rule model for storing user-defined rules"""
    __tablename__ = 'rules'

    id = Column(Integer, primary_key=True)
    identifier = Column(String(255), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, default='')
    enabled = Column(Boolean, default=True)
    logic_operator = Column(String(3), nullable=False, default='AND')  # 'AND' or 'OR'
    execution_count = Column(Integer, default=0, nullable=False)
    last_executed = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    last_modified = Column(DateTime, default=datetime.utcnow)

    conditions = relationship('RuleCondition', back_populates='rule', cascade='all, delete-orphan',
                              order_by='RuleCondition.position')
    actions = relationship('RuleAction', back_populates='rule', cascade='all, delete-orphan',
                           order_by='RuleAction.position')


class RuleCondition(Base):
    """Condition model for storing rule conditions"""
    __tablename__ = 'rule_conditions'

    id = Column(Integer, primary_key=True)
    rule_id = Column(Integer, ForeignKey('rules.id'), nullable=False)
    condition_id = Column(String(255), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    condition_type = Column(String(50), nullable=False)  # sender_email, subject, content, ...
    operator = Column(String(50), nullable=False)  # equals, contains, regex_match, ...
    value = Column(JSON)  # string, number or boolean
    case_sensitive = Column(Boolean)

    rule = relationship('Rule', back_populates='conditions')


class RuleAction(Base):
    """Action model for storing rule actions"""
    __tablename__ = 'rule_actions'

    id = Column(Integer, primary_key=True)
    rule_id = Column(Integer, ForeignKey('rules.id'), nullable=False)
    action_id = Column(String(255), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    action_type = Column(String(50), nullable=False)  # log_message, delete_email, ...
    parameters = Column(JSON, default=dict)
    description = Column(Text, default='')

    rule = relationship('Rule', back_populates='actions')


class RulesDebugLog(Base):
    """One row per email evaluation pass when debug mode is on"""
    __tablename__ = 'rules_debug_logs'

    id = Column(Integer, primary_key=True)
    log_id = Column(String(255), nullable=False, unique=True)
    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    email_id = Column(String(255), nullable=False)
    email_subject = Column(String(255))
    email_from = Column(String(255))
    results = Column(JSON, nullable=False)
    total_rules_checked = Column(Integer, default=0)
    total_rules_fired = Column(Integer, default=0)


class SenderScore(Base):
    """Aggregate score per sender email"""
    __tablename__ = 'sender_scores'

    id = Column(Integer, primary_key=True)
    sender_email = Column(String(255), nullable=False, unique=True)
    sender_name = Column(String(255))
    total_score = Column(Float, default=0, nullable=False)
    email_summary_count = Column(Integer, default=0, nullable=False)
    link_open_count = Column(Integer, default=0, nullable=False)
    first_activity = Column(DateTime, default=datetime.utcnow)
    last_activity = Column(DateTime, default=datetime.utcnow)


class ScoringAction(Base):
    """Individual scoring event behind a sender score"""
    __tablename__ = 'scoring_actions'

    id = Column(Integer, primary_key=True)
    sender_email = Column(String(255), nullable=False, index=True)
    action_type = Column(String(50), nullable=False)  # email_summary, link_open, rule
    points = Column(Float, nullable=False)
    timestamp = Column(DateTime, default=datetime.utcnow)
    email_id = Column(String(255))
    link_url = Column(Text)


class EmailMarker(Base):
    """Email ids collected under a named marker"""
    __tablename__ = 'email_markers'

    id = Column(Integer, primary_key=True)
    marker = Column(String(255), nullable=False)
    email_id = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint('marker', 'email_id', name='uix_marker_email'),
    )


class SavedSummary(Base):
    """Summaries and saved-for-later records keyed by tab/email key"""
    __tablename__ = 'saved_summaries'

    id = Column(Integer, primary_key=True)
    key = Column(String(255), nullable=False, unique=True)
    summary = Column(JSON, nullable=False)
    source_body = Column(Text)
    source_label = Column(String(255))
    saved_at = Column(DateTime, default=datetime.utcnow)

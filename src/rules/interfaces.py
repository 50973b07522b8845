"""
Collaborator interfaces consumed by the rules engine
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

from .schema import Rule, RulesDebugLog


class RuleStore(Protocol):
    def list_enabled(self) -> List[Rule]: ...

    def increment_execution_count(self, rule_id: str, timestamp: datetime) -> None: ...


class ScoringStore(Protocol):
    def get_score(self, email: str) -> float: ...

    def add_points(self, email: str, name: Optional[str] = None,
                   email_id: Optional[str] = None, points: Optional[float] = None) -> None: ...


class MailClient(Protocol):
    def delete_email(self, msg_id: str) -> bool: ...

    def mark_as_read(self, msg_id: str) -> bool: ...


class SummaryGenerator(Protocol):
    def summarize(self, body: str) -> str: ...


class TabPersistence(Protocol):
    def save_link_summary(self, key: str, summary: Dict[str, Any],
                          source_body: Optional[str] = None,
                          source_label: Optional[str] = None) -> None: ...


class MarkerStore(Protocol):
    def append_marker(self, bucket: str, email_id: str) -> None: ...


class NotificationSink(Protocol):
    def notify(self, title: str, body: str) -> None: ...


class NavigationSink(Protocol):
    def emit(self, direction: str) -> None: ...


class UrlOpener(Protocol):
    def open(self, url: str, target: str = '_blank') -> None: ...


class DebugLogSink(Protocol):
    def append(self, log: RulesDebugLog) -> None: ...

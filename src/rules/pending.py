"""
Pending rule passes waiting for email content
"""
import logging
from typing import Dict, Optional

from .schema import RuleContext

logger = logging.getLogger(__name__)


class PendingExecutions:
    """Holds at most one deferred context per email id"""

    def __init__(self):
        self._contexts: Dict[str, RuleContext] = {}

    def mark_pending(self, email_id: str, context: RuleContext) -> None:
        if email_id in self._contexts:
            logger.debug(f"Replacing pending context for email {email_id}")
        self._contexts[email_id] = context

    def get(self, email_id: str) -> Optional[RuleContext]:
        return self._contexts.get(email_id)

    def take(self, email_id: str) -> Optional[RuleContext]:
        """Remove and return the pending context for an email"""
        return self._contexts.pop(email_id, None)

    def clear(self, email_id: str) -> None:
        self._contexts.pop(email_id, None)

    def count(self) -> int:
        return len(self._contexts)

    def __contains__(self, email_id: str) -> bool:
        return email_id in self._contexts

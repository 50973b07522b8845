"""
Sender scoring backed by the database
"""
from datetime import datetime
import logging
import os
import re
from typing import List, Optional

from sqlalchemy.orm import Session

from src.rules.config import env_flag

from .models import ScoringAction, SenderScore

logger = logging.getLogger(__name__)

ANGLE_ADDRESS = re.compile(r'<(.+)>')


def normalize_sender_email(email: str) -> str:
    """Reduce 'Name <addr>' forms to a lowercase address"""
    match = ANGLE_ADDRESS.search(email or '')
    address = match.group(1) if match else (email or '')
    return address.lower().strip()


class SenderScoreStore:
    """Aggregate sender scores and the actions that produced them"""

    def __init__(self, db: Session, email_summary_points: Optional[float] = None,
                 link_open_points: Optional[float] = None, enabled: Optional[bool] = None):
        self.db = db
        if email_summary_points is None:
            email_summary_points = float(os.getenv('SCORING_EMAIL_SUMMARY_POINTS', '10'))
        if link_open_points is None:
            link_open_points = float(os.getenv('SCORING_LINK_OPEN_POINTS', '5'))
        self.email_summary_points = email_summary_points
        self.link_open_points = link_open_points
        self.enabled = env_flag('SCORING_ENABLED', True) if enabled is None else enabled

    def get_sender_score(self, email: str) -> Optional[SenderScore]:
        address = normalize_sender_email(email)
        return self.db.query(SenderScore).filter(SenderScore.sender_email == address).first()

    def get_score(self, email: str) -> float:
        """Total score for a sender, 0 when unknown"""
        score = self.get_sender_score(email)
        return score.total_score if score else 0

    def add_points(self, email: str, name: Optional[str] = None, email_id: Optional[str] = None,
                   points: Optional[float] = None) -> None:
        """Award summary points to a sender; points overrides the configured amount"""
        action_type = 'email_summary' if points is None else 'rule'
        self._record(email, name, action_type, self.email_summary_points if points is None else points,
                     email_id=email_id)

    def add_link_open_points(self, email: str, name: Optional[str], link_url: str,
                             email_id: Optional[str] = None) -> None:
        self._record(email, name, 'link_open', self.link_open_points, email_id=email_id, link_url=link_url)

    def leaderboard(self, limit: int = 10) -> List[SenderScore]:
        return (
            self.db.query(SenderScore)
            .order_by(SenderScore.total_score.desc())
            .limit(limit)
            .all()
        )

    def _record(self, email: str, name: Optional[str], action_type: str, points: float,
                email_id: Optional[str] = None, link_url: Optional[str] = None) -> None:
        if not self.enabled:
            logger.debug("Scoring disabled, ignoring scoring action")
            return

        address = normalize_sender_email(email)
        if not address:
            logger.warning("Cannot score an empty sender address")
            return

        now = datetime.utcnow()
        self.db.add(ScoringAction(
            sender_email=address,
            action_type=action_type,
            points=points,
            timestamp=now,
            email_id=email_id,
            link_url=link_url,
        ))

        score = self.get_sender_score(address)
        if score is None:
            score = SenderScore(sender_email=address, total_score=0, email_summary_count=0,
                                link_open_count=0, first_activity=now)
            self.db.add(score)
        score.total_score = (score.total_score or 0) + points
        if action_type == 'email_summary':
            score.email_summary_count = (score.email_summary_count or 0) + 1
        elif action_type == 'link_open':
            score.link_open_count = (score.link_open_count or 0) + 1
        if name:
            score.sender_name = name
        score.last_activity = now
        self.db.commit()
        logger.debug(f"Added {points} points to {address} ({action_type})")

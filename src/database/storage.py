"""
Persistence for markers, saved summaries and rules debug logs
"""
from datetime import datetime, timedelta
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from src.rules.schema import RulesDebugLog

from . import models

logger = logging.getLogger(__name__)


class MarkerRepository:
    """Named buckets of email ids"""

    def __init__(self, db: Session):
        self.db = db

    def append_marker(self, bucket: str, email_id: str) -> None:
        exists = self.db.query(models.EmailMarker).filter(
            models.EmailMarker.marker == bucket,
            models.EmailMarker.email_id == email_id,
        ).first()
        if exists:
            logger.debug(f"Email {email_id} already marked as {bucket}")
            return
        self.db.add(models.EmailMarker(marker=bucket, email_id=email_id))
        self.db.commit()

    def list_marked(self, bucket: str) -> List[str]:
        rows = (
            self.db.query(models.EmailMarker)
            .filter(models.EmailMarker.marker == bucket)
            .order_by(models.EmailMarker.id)
            .all()
        )
        return [row.email_id for row in rows]


class SummaryRepository:
    """Summaries and saved-for-later records keyed by tab key"""

    def __init__(self, db: Session):
        self.db = db

    def save_link_summary(self, key: str, summary: Dict[str, Any], source_body: Optional[str] = None,
                          source_label: Optional[str] = None) -> None:
        row = self.db.query(models.SavedSummary).filter(models.SavedSummary.key == key).first()
        if row is None:
            row = models.SavedSummary(key=key)
            self.db.add(row)
        row.summary = dict(summary)
        row.source_body = source_body
        row.source_label = source_label
        row.saved_at = datetime.utcnow()
        self.db.commit()
        logger.debug(f"Saved summary for {key}")

    def get_summary(self, key: str) -> Optional[Dict[str, Any]]:
        row = self.db.query(models.SavedSummary).filter(models.SavedSummary.key == key).first()
        return row.summary if row else None

    def saved_for_later(self) -> List[models.SavedSummary]:
        rows = self.db.query(models.SavedSummary).order_by(models.SavedSummary.saved_at.desc()).all()
        return [row for row in rows if row.summary.get('savedForLater')]


class DebugLogRepository:
    """Rules debug log with a retention window enforced on write"""

    def __init__(self, db: Session, retention_days: int = 7):
        self.db = db
        self.retention_days = retention_days

    def append(self, log: RulesDebugLog) -> None:
        self.db.add(models.RulesDebugLog(
            log_id=log.id,
            timestamp=log.timestamp,
            email_id=log.email_id,
            email_subject=log.email_subject,
            email_from=log.email_from,
            results=[result.model_dump(mode='json', by_alias=True) for result in log.results],
            total_rules_checked=log.total_rules_checked,
            total_rules_fired=log.total_rules_fired,
        ))
        self.db.flush()
        self.prune()
        self.db.commit()

    def prune(self) -> int:
        cutoff = datetime.utcnow() - timedelta(days=self.retention_days)
        removed = (
            self.db.query(models.RulesDebugLog)
            .filter(models.RulesDebugLog.timestamp < cutoff)
            .delete(synchronize_session=False)
        )
        if removed:
            logger.debug(f"Pruned {removed} debug logs older than {self.retention_days} days")
        return removed

    def list_logs(self) -> List[RulesDebugLog]:
        rows = self.db.query(models.RulesDebugLog).order_by(models.RulesDebugLog.timestamp).all()
        return [
            RulesDebugLog(
                id=row.log_id,
                timestamp=row.timestamp,
                email_id=row.email_id,
                email_subject=row.email_subject or '',
                email_from=row.email_from or '',
                results=row.results,
                total_rules_checked=row.total_rules_checked,
                total_rules_fired=row.total_rules_fired,
            )
            for row in rows
        ]

    def clear(self) -> None:
        self.db.query(models.RulesDebugLog).delete()
        self.db.commit()
        logger.info("Debug logs cleared")

"""
services/activity_service.py

Audit trail for admin writes. log_activity() only adds the row to the
caller's session, so the entry is committed (or rolled back) together with
the write it describes.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from models.activity_logs import ActivityLog

logger = logging.getLogger(__name__)

RESULTS_INGESTED = "RESULTS_INGESTED"
STRUCTURE_UPSERTED = "STRUCTURE_UPSERTED"
DEGREE_CREATED = "DEGREE_CREATED"
YEAR_CREATED = "YEAR_CREATED"
SEMESTER_CREATED = "SEMESTER_CREATED"
MODULE_UPDATED = "MODULE_UPDATED"
MODULE_DELETED = "MODULE_DELETED"
GRADE_SAVED = "GRADE_SAVED"
GRADES_BULK_SAVED = "GRADES_BULK_SAVED"
GRADE_DELETED = "GRADE_DELETED"
STUDENT_UPDATED = "STUDENT_UPDATED"
BATCH_DELETED = "BATCH_DELETED"


def log_activity(db: Session, action: str, details: Optional[Dict[str, object]] = None,
                 success: bool = True) -> ActivityLog:
    entry = ActivityLog(action=action, details=details or {}, success=success)
    db.add(entry)
    logger.info("Activity %s %s", action, details or {})
    return entry


def get_activity_logs(db: Session, limit: int = 50, action: Optional[str] = None) -> List[ActivityLog]:
    """Newest first; optionally only one action."""
    query = db.query(ActivityLog)
    if action:
        query = query.filter(ActivityLog.action == action)
    return query.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc()).limit(limit).all()


def activity_out(entry: ActivityLog) -> Dict[str, object]:
    return {
        "id": entry.id,
        "action": entry.action,
        "details": entry.details,
        "success": entry.success,
        "created_at": entry.created_at.isoformat() if entry.created_at else None,
    }

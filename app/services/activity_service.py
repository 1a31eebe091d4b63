# app/services/activity_service.py
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.activity_log import ActivityLog

logger = logging.getLogger(__name__)


def log_activity(
    db: Session,
    *,
    action: str,
    user_name: str | None,
    product_name: str | None = None,
    details: str | None = None,
    status: str | None = None,
    image_url: str | None = None,
    zone: str | None = None,
) -> ActivityLog | None:
    """
    Append an entry to the activity feed.
    Logging must never break main flow: call it after the main commit.
    """
    try:
        entry = ActivityLog(
            action=action,
            product_name=product_name,
            user_name=user_name,
            details=(details or "")[:1000] or None,
            status=status,
            image_url=image_url,
            zone=zone,
        )
        db.add(entry)
        db.commit()
        return entry
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("Failed to log activity action=%s: %s", action, e, exc_info=True)
        return None


def list_recent_activity(db: Session, *, limit: int = 20) -> list[ActivityLog]:
    return (
        db.query(ActivityLog)
        .order_by(ActivityLog.created_at.desc())
        .limit(limit)
        .all()
    )

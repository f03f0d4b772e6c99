import logging
from datetime import datetime, date, timedelta
from typing import Optional

from fastapi import Request
from sqlalchemy.orm import Session

from ..models import ActivityLog, User
from .pagination import contains_pattern, paginate

logger = logging.getLogger(__name__)


def record_activity(db: Session, user: Optional[User], action: str, details: Optional[str] = None, request: Optional[Request] = None) -> ActivityLog:
    """Append one activity log row and commit it."""
    entry = ActivityLog(
        user_id=user.id if user else None,
        user_name=(user.full_name if user else "anonymous"),
        action=action,
        details=details,
        ip_address=(request.client.host if request is not None and request.client else None),
        user_agent=(request.headers.get("user-agent") if request is not None else None),
    )
    db.add(entry)
    db.commit()
    logger.debug("Activity %s by %s: %s", action, entry.user_name, details)
    return entry


def list_activity(db: Session, page: int = 1, limit: int = 20, user_id: Optional[int] = None, action: Optional[str] = None, start: Optional[datetime] = None, end: Optional[datetime] = None) -> tuple[list, dict]:
    q = db.query(ActivityLog)
    if user_id:
        q = q.filter(ActivityLog.user_id == user_id)
    if action:
        q = q.filter(ActivityLog.action.ilike(contains_pattern(action), escape="\\"))
    if start:
        q = q.filter(ActivityLog.created_at >= start)
    if end:
        q = q.filter(ActivityLog.created_at <= end)
    q = q.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
    return paginate(q, page, limit)


def activity_stats(db: Session, today: Optional[date] = None) -> dict:
    today = today or datetime.utcnow().date()
    day_start = datetime.combine(today, datetime.min.time())
    week_start = day_start - timedelta(days=7)
    base = db.query(ActivityLog)
    return {
        "today_activities": base.filter(ActivityLog.created_at >= day_start).count(),
        "week_activities": base.filter(ActivityLog.created_at >= week_start).count(),
        "today_logins": base.filter(ActivityLog.created_at >= day_start, ActivityLog.action == "LOGIN").count(),
    }

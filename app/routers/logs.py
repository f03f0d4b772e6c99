from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import User
from ..security import require_admin
from ..services.activity_log import list_activity, activity_stats

router = APIRouter(prefix="/api/logs", tags=["logs"])

class ActivityLogOut(BaseModel):
    id: int
    user_id: Optional[int] = None
    user_name: str
    action: str
    details: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True

@router.get("")
def api_logs(
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user_id: Optional[int] = None,
    action: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
):
    logs, pagination = list_activity(db, page, limit, user_id=user_id, action=action, start=start_date, end=end_date)
    return {
        "success": True,
        "data": {
            "logs": [ActivityLogOut.model_validate(log).model_dump(mode="json") for log in logs],
            "pagination": pagination,
        },
    }

@router.get("/stats")
def api_log_stats(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return {"success": True, "data": activity_stats(db)}

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import User, RoomType, BlackoutDate, MinimumStayRule
from ..schemas import RoomTypeOut, BlackoutDateOut, MinimumStayRuleOut
from ..security import require_user

router = APIRouter(prefix="/api", tags=["reference"])

@router.get("/room-types")
def api_room_types(db: Session = Depends(get_db), user: User = Depends(require_user)):
    rows = db.query(RoomType).order_by(RoomType.id.asc()).all()
    return {"success": True, "data": [RoomTypeOut.model_validate(r).model_dump() for r in rows]}

@router.get("/blackout-dates")
def api_blackout_dates(db: Session = Depends(get_db), user: User = Depends(require_user)):
    rows = db.query(BlackoutDate).order_by(BlackoutDate.date.asc()).all()
    return {"success": True, "data": [BlackoutDateOut.model_validate(r).model_dump(mode="json") for r in rows]}

@router.get("/minimum-stay-rules")
def api_minimum_stay_rules(db: Session = Depends(get_db), user: User = Depends(require_user)):
    rows = db.query(MinimumStayRule).order_by(MinimumStayRule.start_date.asc()).all()
    return {"success": True, "data": [MinimumStayRuleOut.model_validate(r).model_dump(mode="json") for r in rows]}

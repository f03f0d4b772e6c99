from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, HTTPException
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..limiter import limiter
from ..models import User
from ..security import require_user, set_session, clear_session, verify_password, hash_password
from ..services.activity_log import record_activity

router = APIRouter(prefix="/api/auth", tags=["auth"])

# ==== Schemas ====

class LoginIn(BaseModel):
    email: str
    password: str = Field(min_length=6)

class ChangePasswordIn(BaseModel):
    current_password: str = Field(min_length=6)
    new_password: str = Field(min_length=6)
    confirm_password: str = Field(min_length=6)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.new_password != self.confirm_password:
            raise ValueError("new_password and confirm_password do not match")
        return self

class UserOut(BaseModel):
    id: int
    email: str
    full_name: str
    role: str
    department: Optional[str] = None
    phone: Optional[str] = None
    avatar: Optional[str] = None
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True

# ==== Endpoints ====

@router.post("/login")
@limiter.limit(settings.RATE_LIMIT_AUTH)
def api_login(request: Request, payload: LoginIn, response: Response, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == payload.email.strip().lower()).first()
    if not user or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(status_code=400, detail="Invalid email or password")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="Account is disabled")
    user.last_login = datetime.utcnow()
    db.commit()
    set_session(response, user.id)
    record_activity(db, user, "LOGIN", None, request)
    return {"success": True, "data": UserOut.model_validate(user).model_dump(mode="json")}

@router.post("/logout")
def api_logout(request: Request, response: Response, db: Session = Depends(get_db), user: User = Depends(require_user)):
    record_activity(db, user, "LOGOUT", None, request)
    clear_session(response)
    return {"success": True}

@router.get("/me")
def api_me(user: User = Depends(require_user)):
    return {"success": True, "data": UserOut.model_validate(user).model_dump(mode="json")}

@router.post("/change-password")
def api_change_password(request: Request, payload: ChangePasswordIn, db: Session = Depends(get_db), user: User = Depends(require_user)):
    if not verify_password(payload.current_password, user.hashed_password):
        raise HTTPException(status_code=400, detail="Current password is incorrect")
    user.hashed_password = hash_password(payload.new_password)
    db.commit()
    record_activity(db, user, "CHANGE_PASSWORD", None, request)
    return {"success": True}

from typing import Optional, Literal

from fastapi import APIRouter, Depends, Request, HTTPException, Query
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import User, UserRole
from ..security import require_admin, hash_password
from ..services.activity_log import record_activity
from ..services.pagination import contains_pattern, paginate
from .auth import UserOut

router = APIRouter(prefix="/api/users", tags=["users"])

# ==== Schemas ====

class UserCreateIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: str = Field(min_length=2)
    role: UserRole = UserRole.USER
    department: Optional[str] = None
    phone: Optional[str] = None
    avatar: Optional[str] = None
    is_active: bool = True

    class Config:
        extra = "forbid"

class UserUpdateIn(BaseModel):
    email: Optional[EmailStr] = None
    full_name: Optional[str] = Field(default=None, min_length=2)
    role: Optional[UserRole] = None
    department: Optional[str] = None
    phone: Optional[str] = None
    avatar: Optional[str] = None
    is_active: Optional[bool] = None

    class Config:
        extra = "forbid"

class ResetPasswordIn(BaseModel):
    new_password: str = Field(min_length=6)

_SORT_COLUMNS = {
    "created_at": User.created_at,
    "full_name": User.full_name,
    "email": User.email,
    "role": User.role,
}

# ==== Helpers ====

def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user

def _out(user: User) -> dict:
    return UserOut.model_validate(user).model_dump(mode="json")

# ==== Endpoints ====

@router.get("")
def api_list_users(
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    role: Optional[UserRole] = None,
    is_active: Optional[bool] = None,
    sort_by: Literal["created_at", "full_name", "email", "role"] = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
):
    q = db.query(User)
    if search:
        term = contains_pattern(search.strip())
        q = q.filter(or_(User.full_name.ilike(term, escape="\\"), User.email.ilike(term, escape="\\")))
    if role:
        q = q.filter(User.role == role.value)
    if is_active is not None:
        q = q.filter(User.is_active == is_active)
    column = _SORT_COLUMNS[sort_by]
    q = q.order_by(column.asc() if sort_order == "asc" else column.desc(), User.id.asc())
    users, pagination = paginate(q, page, limit)
    return {"success": True, "data": {"users": [_out(u) for u in users], "pagination": pagination}}

@router.get("/{user_id}")
def api_get_user(user_id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return {"success": True, "data": _out(_get_user_or_404(db, user_id))}

@router.post("", status_code=201)
def api_create_user(request: Request, payload: UserCreateIn, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    email = payload.email.strip().lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="Email is already registered")
    user = User(
        email=email,
        hashed_password=hash_password(payload.password),
        full_name=payload.full_name.strip(),
        role=payload.role.value,
        department=payload.department,
        phone=payload.phone,
        avatar=payload.avatar,
        is_active=payload.is_active,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    record_activity(db, admin, "CREATE_USER", f"{user.email} ({user.role})", request)
    return {"success": True, "data": _out(user)}

@router.patch("/{user_id}")
def api_update_user(request: Request, user_id: int, payload: UserUpdateIn, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    user = _get_user_or_404(db, user_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("email"):
        email = changes["email"].strip().lower()
        clash = db.query(User).filter(User.email == email, User.id != user.id).first()
        if clash:
            raise HTTPException(status_code=400, detail="Email is already registered")
        changes["email"] = email
    if changes.get("role") is not None:
        changes["role"] = changes["role"].value
    for field, value in changes.items():
        if value is None and field in ("email", "full_name", "role", "is_active"):
            continue
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    record_activity(db, admin, "UPDATE_USER", f"{user.email}: {', '.join(sorted(changes))}", request)
    return {"success": True, "data": _out(user)}

@router.delete("/{user_id}")
def api_delete_user(request: Request, user_id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    user = _get_user_or_404(db, user_id)
    if user.id == admin.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    email = user.email
    db.delete(user)
    db.commit()
    record_activity(db, admin, "DELETE_USER", email, request)
    return {"success": True}

@router.post("/{user_id}/reset-password")
def api_reset_password(request: Request, user_id: int, payload: ResetPasswordIn, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    user = _get_user_or_404(db, user_id)
    user.hashed_password = hash_password(payload.new_password)
    db.commit()
    record_activity(db, admin, "RESET_PASSWORD", user.email, request)
    return {"success": True}

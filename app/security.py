from typing import Optional
from passlib.context import CryptContext
from itsdangerous import URLSafeTimedSerializer, BadSignature
from fastapi import Request, Response, Depends, HTTPException
from sqlalchemy.orm import Session

from .config import settings
from .db import get_db
from .models import User

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
# Timestamped so the cookie's age is checked server side, not only by the browser
serializer = URLSafeTimedSerializer(settings.SECRET_KEY, salt="hotel-admin-session")

SESSION_MAX_AGE_SECONDS = settings.SESSION_MAX_AGE_DAYS * 24 * 60 * 60


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


def session_token(user_id: int) -> str:
    return serializer.dumps({"uid": user_id})


def user_id_from_token(token: Optional[str]) -> Optional[int]:
    """User id carried by a session token, or None if it is missing, forged or expired."""
    if not token:
        return None
    try:
        data = serializer.loads(token, max_age=SESSION_MAX_AGE_SECONDS)
        return int(data.get("uid"))
    except (BadSignature, ValueError, TypeError, AttributeError):
        # SignatureExpired is a BadSignature
        return None


def set_session(response: Response, user_id: int):
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=session_token(user_id),
        httponly=True,
        samesite="lax",
        secure=settings.ENVIRONMENT == "production",
        path="/",
        max_age=SESSION_MAX_AGE_SECONDS,
    )


def clear_session(response: Response):
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")


def require_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    Logged-in, active user for the request, else 401.
    Accounts deleted or deactivated after login lose their session.
    """
    user_id = user_id_from_token(request.cookies.get(settings.SESSION_COOKIE_NAME))
    user = db.get(User, user_id) if user_id else None
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def require_admin(user: User = Depends(require_user)) -> User:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user

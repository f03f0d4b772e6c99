import logging
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from .config import settings
from .db import SessionLocal, init_db
from .errors import BookingError
from .limiter import limiter
from .models import User, UserRole
from .routers import auth, bookings, logs, reference, users
from .security import hash_password
from .services.reference_data import seed_reference_data

# --- Logging configuration ---
_level = logging.DEBUG if getattr(settings, "DEBUG", False) else logging.INFO
logging.basicConfig(
    level=_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
# Align uvicorn loggers with our level (useful under Docker Compose)
for _name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
    logging.getLogger(_name).setLevel(_level)
logger = logging.getLogger("app.startup")
logger.info("Starting %s (DEBUG=%s)", settings.APP_NAME, getattr(settings, "DEBUG", False))

app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    description=f"{settings.APP_NAME}: room booking administration API.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

@app.on_event("startup")
def startup_event():
    """Runs startup tasks: schema, default admin and reference data."""
    logger.info("Running startup tasks...")
    init_db()

    def _ensure_default_admin(db):
        if db.query(User).filter(User.role == UserRole.ADMIN.value).first():
            return
        email = settings.ADMIN_EMAIL.strip().lower()
        user = db.query(User).filter(User.email == email).first()
        if user:
            user.role = UserRole.ADMIN.value
        else:
            user = User(
                email=email,
                hashed_password=hash_password(settings.ADMIN_PASSWORD),
                full_name=settings.ADMIN_FULL_NAME,
                role=UserRole.ADMIN.value,
                is_active=True,
            )
            db.add(user)
        db.commit()
        logger.info("Default admin user ensured.")

    db = SessionLocal()
    try:
        _ensure_default_admin(db)
        if settings.SEED_REFERENCE_DATA:
            seed_reference_data(db)
    finally:
        db.close()
    logger.info("Startup tasks complete.")


@app.exception_handler(BookingError)
def booking_error_handler(request: Request, exc: BookingError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message, "code": exc.code, **exc.details()},
    )


@app.exception_handler(StarletteHTTPException)
def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


# Add the limiter to the app state
app.state.limiter = limiter
# Add the exception handler for rate limit exceeded errors
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
# Applies RATE_LIMIT_DEFAULT to every route not exempted or decorated
app.add_middleware(SlowAPIMiddleware)

app.include_router(auth.router)
app.include_router(users.router)
app.include_router(logs.router)
app.include_router(bookings.router)
app.include_router(reference.router)


@app.get("/health")
@limiter.exempt
def health():
    return {"status": "ok", "timestamp": datetime.utcnow().isoformat()}

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlmodel import Session, select

from devsera.api.deps import audit, client_ip, get_current_user
from devsera.core.config import settings
from devsera.core.database import get_db
from devsera.core.rate_limit import limiter
from devsera.core.security import create_access_token, hash_password, verify_password
from devsera.models import Profile, SecurityLog
from devsera.schemas import Token, UserResponse
from devsera.services.email_validation import email_rejection_reason
from devsera.services.premium import is_premium

router = APIRouter(prefix="/auth", tags=["auth"])
_REGISTER_LIMIT = f"{settings.rate_limit_register_per_minute}/minute;100/hour"


def _user_response(db: Session, user: Profile) -> UserResponse:
    return UserResponse(
        id=user.id or 0,
        email=user.email,
        full_name=user.full_name or "",
        role=user.role,
        admin_role=user.admin_role,
        is_premium=is_premium(db, user.id),
    )


@router.post("/register", response_model=UserResponse)
@limiter.limit(_REGISTER_LIMIT)
async def register(
    request: Request,
    db: Session = Depends(get_db),
):
    form = await request.form()
    email = (form.get("email") or "").strip().lower()
    password = form.get("password") or ""
    full_name = (form.get("full_name") or "").strip()
    if not full_name:
        raise HTTPException(status_code=422, detail="Please enter your name.")
    reason = email_rejection_reason(email)
    if reason:
        raise HTTPException(status_code=422, detail=reason)
    if len(password) < 6:
        raise HTTPException(status_code=422, detail="Password must be at least 6 characters.")
    if db.exec(select(Profile).where(Profile.email == email)).first():
        raise HTTPException(status_code=400, detail="An account with this email already exists.")
    user = Profile(email=email, hashed_password=hash_password(password), full_name=full_name)
    db.add(user)
    db.commit()
    db.refresh(user)
    audit(db, "register", user.id, client_ip(request))
    return _user_response(db, user)


@router.post("/login", response_model=Token)
@limiter.limit("5/minute;20/hour")
async def login(
    request: Request,
    db: Session = Depends(get_db),
):
    form = await request.form()
    email = (form.get("email") or "").strip().lower()
    password = form.get("password") or ""
    if not email or not password:
        raise HTTPException(status_code=422, detail="Please enter your email and password.")
    user = db.exec(select(Profile).where(Profile.email == email)).first()
    ip = client_ip(request)
    if not user or not verify_password(password, user.hashed_password):
        db.add(SecurityLog(event="failed_login", ip=ip or None, endpoint="/auth/login", detail=email))
        db.commit()
        raise HTTPException(status_code=401, detail="Incorrect email or password.")
    if not user.is_active:
        db.add(SecurityLog(event="failed_login", user_id=user.id, ip=ip or None, endpoint="/auth/login", detail="inactive"))
        db.commit()
        raise HTTPException(status_code=403, detail="Your account has been deactivated.")
    user.last_login_at = datetime.utcnow()
    db.add(user)
    db.commit()
    audit(db, "login", user.id, ip)
    return Token(access_token=create_access_token(user.id))


@router.get("/me", response_model=UserResponse)
def me(user: Profile = Depends(get_current_user), db: Session = Depends(get_db)):
    return _user_response(db, user)

"""Admin auth: bearer token of an active admin profile, per-resource permission flags, and the bootstrap secret."""
import hmac

from fastapi import Depends, Header, HTTPException
from sqlmodel import Session, select

from devsera.api.deps import get_current_user
from devsera.core.config import settings
from devsera.core.database import get_db
from devsera.models import AdminPermissions, Profile
from devsera.models.profile import permission_flags


def _admin_secret_constant_time_compare(provided: str | None, expected: str | None) -> bool:
    """Timing-safe; never reveals how much of the secret matched."""
    p = (provided or "").encode("utf-8")
    e = (expected or "").encode("utf-8")
    if len(p) != len(e):
        # still spend a comparison so length mismatches are not faster
        hmac.compare_digest(e, e)
        return False
    return hmac.compare_digest(p, e)


def require_admin_secret(
    x_admin_secret: str | None = Header(None, alias="X-Admin-Secret"),
) -> None:
    expected = (settings.admin_secret or "").strip()
    if not expected:
        raise HTTPException(status_code=503, detail="Admin bootstrap is not configured (ADMIN_SECRET missing).")
    if not _admin_secret_constant_time_compare(x_admin_secret, expected):
        raise HTTPException(status_code=403, detail="Forbidden.")


def is_admin(user: Profile | None) -> bool:
    return bool(user and user.role == "admin" and user.admin_role and user.is_active)


def get_current_admin(user: Profile = Depends(get_current_user)) -> Profile:
    if not is_admin(user):
        raise HTTPException(status_code=403, detail="Admin access required.")
    return user


def permissions_for(db: Session, admin: Profile) -> dict[str, bool]:
    """Effective flags; super admins hold every permission."""
    if admin.admin_role == "super_admin":
        return {flag: True for flag in permission_flags()}
    row = db.exec(select(AdminPermissions).where(AdminPermissions.admin_id == admin.id)).first()
    return {flag: bool(getattr(row, flag, False)) for flag in permission_flags()}


def has_permission(db: Session, admin: Profile, flag: str) -> bool:
    return permissions_for(db, admin).get(flag, False)


def require_permission(flag: str):
    if flag not in permission_flags():
        raise ValueError(f"Unknown permission flag: {flag}")

    def dependency(
        admin: Profile = Depends(get_current_admin),
        db: Session = Depends(get_db),
    ) -> Profile:
        if not has_permission(db, admin, flag):
            raise HTTPException(status_code=403, detail="You do not have permission to perform this action.")
        return admin

    return dependency


def require_super_admin(admin: Profile = Depends(get_current_admin)) -> Profile:
    if admin.admin_role != "super_admin":
        raise HTTPException(status_code=403, detail="Only super admins can perform this action.")
    return admin

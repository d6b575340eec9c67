"""Admin accounts: bootstrap, creation, permissions, roles, deactivation, deletion and password resets."""
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlmodel import Session, select

from devsera.admin.deps import (
    get_current_admin,
    permissions_for,
    require_admin_secret,
    require_permission,
    require_super_admin,
)
from devsera.api.deps import audit, client_ip
from devsera.core.database import get_db
from devsera.core.security import hash_password
from devsera.models import AdminPermissions, Profile
from devsera.models.profile import permission_flags
from devsera.schemas import ActiveUpdate, AdminCreate, BootstrapRequest, PasswordReset, RoleUpdate

log = logging.getLogger("devsera.admin")

router = APIRouter()


def admin_dict(db: Session, p: Profile) -> dict:
    return {
        "id": p.id,
        "email": p.email,
        "full_name": p.full_name,
        "admin_role": p.admin_role,
        "is_active": p.is_active,
        "created_by": p.created_by,
        "created_at": p.created_at.strftime("%d.%m.%Y %H:%M") if p.created_at else "-",
        "last_login_at": p.last_login_at.strftime("%d.%m.%Y %H:%M") if p.last_login_at else None,
        "permissions": permissions_for(db, p),
    }


def _target_admin(db: Session, admin_id: int) -> Profile:
    p = db.get(Profile, admin_id)
    if not p or p.role != "admin" or not p.admin_role:
        raise HTTPException(status_code=404, detail="Admin not found.")
    return p


def _check_grantable(db: Session, admin: Profile, flags: dict[str, bool]) -> None:
    """Nobody hands out permissions they do not hold."""
    granted = permissions_for(db, admin)
    escalated = sorted(f for f, v in flags.items() if v and f in granted and not granted[f])
    if escalated:
        raise HTTPException(status_code=403, detail=f"Cannot grant permissions you do not have: {', '.join(escalated)}")


def _save_permissions(db: Session, admin_id: int, flags: dict[str, bool]) -> None:
    unknown = sorted(set(flags) - set(permission_flags()))
    if unknown:
        raise HTTPException(status_code=422, detail=f"Unknown permissions: {', '.join(unknown)}")
    row = db.exec(select(AdminPermissions).where(AdminPermissions.admin_id == admin_id)).first()
    if row is None:
        row = AdminPermissions(admin_id=admin_id)
    for flag, value in flags.items():
        setattr(row, flag, bool(value))
    row.updated_at = datetime.utcnow()
    db.add(row)


@router.post("/bootstrap", status_code=201)
def bootstrap(
    body: BootstrapRequest,
    request: Request,
    _=Depends(require_admin_secret),
    db: Session = Depends(get_db),
):
    """First super admin. Promotes an existing account with that email or creates one."""
    if db.exec(select(Profile).where(Profile.admin_role == "super_admin")).first():
        raise HTTPException(status_code=409, detail="A super admin already exists.")
    email = body.email.lower()
    p = db.exec(select(Profile).where(Profile.email == email)).first()
    if p is None:
        p = Profile(email=email, hashed_password=hash_password(body.password), full_name=body.full_name)
    else:
        p.hashed_password = hash_password(body.password)
    p.role = "admin"
    p.admin_role = "super_admin"
    p.is_active = True
    db.add(p)
    db.commit()
    db.refresh(p)
    audit(db, "admin_bootstrap", p.id, client_ip(request))
    log.info("Super admin bootstrapped: %s", email)
    return admin_dict(db, p)


@router.get("/me")
def admin_me(admin: Profile = Depends(get_current_admin), db: Session = Depends(get_db)):
    return admin_dict(db, admin)


@router.get("/admins")
def admins_list(_=Depends(require_permission("can_manage_admins")), db: Session = Depends(get_db)):
    rows = db.exec(
        select(Profile).where(Profile.role == "admin").where(Profile.admin_role.is_not(None)).order_by(Profile.id)
    ).all()
    return [admin_dict(db, p) for p in rows]


@router.post("/admins", status_code=201)
def admin_create(
    body: AdminCreate,
    request: Request,
    admin: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    if admin.admin_role not in ("super_admin", "admin"):
        raise HTTPException(status_code=403, detail="Only super admins and admins can create admin accounts.")
    if admin.admin_role == "admin" and body.admin_role != "moderator":
        raise HTTPException(status_code=403, detail="Admins can only create moderators.")
    _check_grantable(db, admin, body.permissions)
    email = body.email.lower()
    if db.exec(select(Profile).where(Profile.email == email)).first():
        raise HTTPException(status_code=400, detail="An account with this email already exists.")
    p = Profile(
        email=email,
        hashed_password=hash_password(body.password),
        full_name=body.full_name,
        role="admin",
        admin_role=body.admin_role,
        created_by=admin.id,
    )
    db.add(p)
    db.commit()
    db.refresh(p)
    _save_permissions(db, p.id, body.permissions)
    db.commit()
    audit(db, "admin_create", admin.id, client_ip(request), f"admin={p.id} role={p.admin_role}")
    return admin_dict(db, p)


@router.put("/admins/{admin_id}/permissions")
def admin_permissions_update(
    admin_id: int,
    body: dict[str, bool],
    admin: Profile = Depends(require_permission("can_manage_admins")),
    db: Session = Depends(get_db),
):
    target = _target_admin(db, admin_id)
    if target.id == admin.id and admin.admin_role != "super_admin":
        raise HTTPException(status_code=403, detail="You cannot change your own permissions.")
    if target.admin_role == "super_admin":
        raise HTTPException(status_code=409, detail="Super admins always hold every permission.")
    _check_grantable(db, admin, body)
    _save_permissions(db, target.id, body)
    db.commit()
    return admin_dict(db, target)


@router.put("/admins/{admin_id}/role")
def admin_role_update(
    admin_id: int,
    body: RoleUpdate,
    admin: Profile = Depends(require_permission("can_manage_admins")),
    db: Session = Depends(get_db),
):
    target = _target_admin(db, admin_id)
    if target.id == admin.id:
        raise HTTPException(status_code=409, detail="You cannot change your own role.")
    if "super_admin" in (target.admin_role, body.admin_role) and admin.admin_role != "super_admin":
        raise HTTPException(status_code=403, detail="Only super admins can grant or remove the super admin role.")
    target.admin_role = body.admin_role
    db.add(target)
    db.commit()
    db.refresh(target)
    return admin_dict(db, target)


@router.put("/admins/{admin_id}/active")
def admin_active_update(
    admin_id: int,
    body: ActiveUpdate,
    admin: Profile = Depends(require_permission("can_manage_admins")),
    db: Session = Depends(get_db),
):
    target = _target_admin(db, admin_id)
    if target.id == admin.id and not body.is_active:
        raise HTTPException(status_code=409, detail="You cannot deactivate your own account.")
    if target.admin_role == "super_admin" and admin.admin_role != "super_admin":
        raise HTTPException(status_code=403, detail="Only super admins can deactivate a super admin.")
    target.is_active = body.is_active
    db.add(target)
    db.commit()
    db.refresh(target)
    return admin_dict(db, target)


@router.delete("/admins/{admin_id}")
def admin_delete(
    admin_id: int,
    request: Request,
    delete_completely: bool = False,
    admin: Profile = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    """Demotes to a regular customer, or removes the account with delete_completely."""
    target = _target_admin(db, admin_id)
    if target.id == admin.id:
        raise HTTPException(status_code=409, detail="You cannot delete your own account.")
    if target.admin_role == "super_admin":
        raise HTTPException(status_code=409, detail="Super admins cannot be deleted.")
    perms = db.exec(select(AdminPermissions).where(AdminPermissions.admin_id == target.id)).first()
    if perms:
        db.delete(perms)
    if delete_completely:
        db.delete(target)
    else:
        target.role = "user"
        target.admin_role = None
        db.add(target)
    db.commit()
    audit(
        db,
        "admin_delete",
        admin.id,
        client_ip(request),
        f"admin={admin_id} completely={delete_completely}",
    )
    return {"ok": True, "deleted_completely": delete_completely}


@router.post("/admins/{admin_id}/reset-password")
def admin_reset_password(
    admin_id: int,
    body: PasswordReset,
    request: Request,
    admin: Profile = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    target = _target_admin(db, admin_id)
    target.hashed_password = hash_password(body.new_password)
    db.add(target)
    db.commit()
    audit(db, "admin_reset_password", admin.id, client_ip(request), f"admin={admin_id}")
    return {"ok": True}

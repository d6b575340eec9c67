"""Premium memberships: plan lookup, status checks and admin transitions."""
import logging
from datetime import datetime, timedelta

from sqlmodel import Session, or_, select

from devsera.models import PremiumMembership, PremiumProduct
from devsera.models.premium import PREMIUM_PLANS

log = logging.getLogger("devsera.premium")


class MembershipError(Exception):
    """Transition not allowed for the membership's current state."""


def plan_info(plan_type: str) -> tuple[str, int, int | None] | None:
    return PREMIUM_PLANS.get(plan_type)


def plan_expiry(plan_type: str, start: datetime) -> datetime | None:
    info = plan_info(plan_type)
    if not info or info[2] is None:
        return None
    return start + timedelta(days=info[2])


def active_membership(db: Session, user_id: int, now: datetime | None = None) -> PremiumMembership | None:
    """Approved membership that never expires or expires in the future."""
    now = now or datetime.utcnow()
    return db.exec(
        select(PremiumMembership)
        .where(PremiumMembership.user_id == user_id)
        .where(PremiumMembership.status == "approved")
        .where(or_(PremiumMembership.expires_at.is_(None), PremiumMembership.expires_at > now))
        .order_by(PremiumMembership.approved_at.desc())
    ).first()


def is_premium(db: Session, user_id: int | None) -> bool:
    if not user_id:
        return False
    return active_membership(db, user_id) is not None


def premium_products_map(db: Session) -> dict[int, PremiumProduct]:
    return {pp.product_id: pp for pp in db.exec(select(PremiumProduct)).all()}


def _touch(m: PremiumMembership) -> None:
    m.updated_at = datetime.utcnow()


def approve(db: Session, membership: PremiumMembership, admin_id: int | None) -> PremiumMembership:
    if membership.status != "pending":
        raise MembershipError("Only pending requests can be approved")
    now = datetime.utcnow()
    membership.status = "approved"
    membership.approved_at = now
    membership.approved_by = admin_id
    membership.expires_at = plan_expiry(membership.plan_type, now)
    _touch(membership)
    db.add(membership)
    db.commit()
    db.refresh(membership)
    log.info("Premium membership %s approved by %s", membership.id, admin_id)
    return membership


def reject(db: Session, membership: PremiumMembership, reason: str) -> PremiumMembership:
    if membership.status != "pending":
        raise MembershipError("Only pending requests can be rejected")
    membership.status = "rejected"
    membership.rejection_reason = reason
    _touch(membership)
    db.add(membership)
    db.commit()
    db.refresh(membership)
    return membership


def revoke(db: Session, membership: PremiumMembership, reason: str) -> PremiumMembership:
    if membership.status != "approved":
        raise MembershipError("Only approved memberships can be revoked")
    membership.status = "expired"
    membership.notes = f"Revoked: {reason}"
    _touch(membership)
    db.add(membership)
    db.commit()
    db.refresh(membership)
    log.info("Premium membership %s revoked", membership.id)
    return membership


def extend(db: Session, membership: PremiumMembership, days: int) -> PremiumMembership:
    """Adds days to the current expiry, or counts from now when it already lapsed."""
    if days <= 0:
        raise MembershipError("Days must be positive")
    if membership.status != "approved":
        raise MembershipError("Only approved memberships can be extended")
    if membership.expires_at is None:
        raise MembershipError("Lifetime memberships never expire")
    now = datetime.utcnow()
    base = membership.expires_at if membership.expires_at > now else now
    membership.expires_at = base + timedelta(days=days)
    _touch(membership)
    db.add(membership)
    db.commit()
    db.refresh(membership)
    return membership

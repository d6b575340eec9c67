"""Loyalty points: balance, tiers and the point ledger."""
import logging
from datetime import datetime

from sqlmodel import Session, select

from devsera.models import LoyaltyAccount, PointTransaction

log = logging.getLogger("devsera.loyalty")

# lifetime points needed for each tier, highest first
TIERS = (("platinum", 5000), ("gold", 1500), ("silver", 500), ("bronze", 0))
POINTS_PER_CURRENCY_UNIT = 10


def tier_for(lifetime_points: int) -> str:
    for name, threshold in TIERS:
        if (lifetime_points or 0) >= threshold:
            return name
    return "bronze"


def points_for_amount(amount: int) -> int:
    return max(0, int(amount or 0) // POINTS_PER_CURRENCY_UNIT)


def get_or_create_account(db: Session, user_id: int) -> LoyaltyAccount:
    account = db.exec(select(LoyaltyAccount).where(LoyaltyAccount.user_id == user_id)).first()
    if account:
        return account
    account = LoyaltyAccount(user_id=user_id)
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


def record_points(
    db: Session,
    user_id: int,
    points: int,
    type_: str,
    description: str,
    order_id: int | None = None,
) -> LoyaltyAccount:
    """
    Adds a ledger row and moves the balance. Positive movements also count
    toward lifetime points (and so the tier); redemptions only lower the balance.
    """
    account = get_or_create_account(db, user_id)
    account.total_points = max(0, (account.total_points or 0) + points)
    if points > 0:
        account.lifetime_points = (account.lifetime_points or 0) + points
        account.tier = tier_for(account.lifetime_points)
    account.updated_at = datetime.utcnow()
    db.add(account)
    db.add(
        PointTransaction(
            user_id=user_id,
            points=points,
            type=type_,
            description=description,
            order_id=order_id,
        )
    )
    db.commit()
    db.refresh(account)
    return account


def award_order_points(db: Session, user_id: int, order_id: int, amount: int) -> int:
    """Points earned for a completed order; returns the points awarded (0 for tiny orders)."""
    points = points_for_amount(amount)
    if points <= 0:
        return 0
    record_points(db, user_id, points, "earned", f"Earned from order #{order_id}", order_id=order_id)
    log.info("Awarded %s points to user %s for order %s", points, user_id, order_id)
    return points


def transactions(db: Session, user_id: int, limit: int = 50) -> list[PointTransaction]:
    return list(
        db.exec(
            select(PointTransaction)
            .where(PointTransaction.user_id == user_id)
            .order_by(PointTransaction.created_at.desc(), PointTransaction.id.desc())
            .limit(limit)
        ).all()
    )

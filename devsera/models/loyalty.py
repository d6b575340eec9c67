"""Loyalty points: running balance per customer plus a ledger of point movements."""
from datetime import datetime

from sqlmodel import Field, SQLModel


class LoyaltyAccount(SQLModel, table=True):
    __tablename__ = "loyalty_points"
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="profiles.id", unique=True, index=True)
    total_points: int = 0
    lifetime_points: int = 0
    tier: str = "bronze"  # bronze | silver | gold | platinum
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class PointTransaction(SQLModel, table=True):
    __tablename__ = "point_transactions"
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="profiles.id", index=True)
    points: int
    type: str  # earned | redeemed | bonus
    description: str = ""
    order_id: int | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

"""Operational logs: audit trail, exception log and security events."""
from datetime import datetime

from sqlmodel import Field, SQLModel


class AuditLog(SQLModel, table=True):
    __tablename__ = "audit_logs"
    id: int | None = Field(default=None, primary_key=True)
    event: str = Field(index=True)  # login, register, order_submit, order_approve, ...
    user_id: int | None = Field(default=None, index=True)
    ip: str | None = None
    detail: str | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class ErrorLog(SQLModel, table=True):
    """Filled by the global exception handler."""

    __tablename__ = "error_logs"
    id: int | None = Field(default=None, primary_key=True)
    user_id: int | None = Field(default=None, index=True)
    endpoint: str | None = None
    method: str | None = None
    error_message: str | None = None
    stack_trace: str | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class SecurityLog(SQLModel, table=True):
    __tablename__ = "security_logs"
    id: int | None = Field(default=None, primary_key=True)
    event: str = Field(index=True)  # failed_login | rate_limit | suspicious
    user_id: int | None = Field(default=None, index=True)
    ip: str | None = None
    endpoint: str | None = None
    detail: str | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

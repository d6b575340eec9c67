from pydantic import BaseModel, EmailStr, field_validator

from devsera.models.profile import ADMIN_ROLES


def _check_password(v: str) -> str:
    if len(v or "") < 6:
        raise ValueError("Password must be at least 6 characters")
    return v


def _check_role(v: str) -> str:
    if v not in ADMIN_ROLES:
        raise ValueError(f"admin_role must be one of {', '.join(ADMIN_ROLES)}")
    return v


class BootstrapRequest(BaseModel):
    email: EmailStr
    password: str
    full_name: str = ""

    @field_validator("password")
    @classmethod
    def password_min_length(cls, v: str) -> str:
        return _check_password(v)


class AdminCreate(BaseModel):
    email: EmailStr
    password: str
    full_name: str = ""
    admin_role: str = "moderator"
    permissions: dict[str, bool] = {}

    @field_validator("password")
    @classmethod
    def password_min_length(cls, v: str) -> str:
        return _check_password(v)

    @field_validator("admin_role")
    @classmethod
    def known_role(cls, v: str) -> str:
        return _check_role(v)


class RoleUpdate(BaseModel):
    admin_role: str

    @field_validator("admin_role")
    @classmethod
    def known_role(cls, v: str) -> str:
        return _check_role(v)


class ActiveUpdate(BaseModel):
    is_active: bool


class PasswordReset(BaseModel):
    new_password: str

    @field_validator("new_password")
    @classmethod
    def password_min_length(cls, v: str) -> str:
        return _check_password(v)

"""Scheduled promotional banners shown on the home page."""
from datetime import datetime

from sqlmodel import Field, SQLModel

DEFAULT_GRADIENT = "from-teal-600 via-teal-700 to-emerald-800"


class Banner(SQLModel, table=True):
    __tablename__ = "banner_posts"
    id: int | None = Field(default=None, primary_key=True)
    title: str
    subtitle: str | None = None
    description: str | None = None
    button_text: str = "Shop Now"
    button_link: str = "/"
    gradient: str = DEFAULT_GRADIENT
    icon_type: str = "sparkles"
    image_url: str | None = None
    is_active: bool = Field(default=True, index=True)
    display_order: int = Field(default=0, index=True)
    start_date: datetime | None = None
    end_date: datetime | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

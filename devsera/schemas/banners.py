from datetime import datetime

from pydantic import BaseModel, Field

from devsera.models.banner import DEFAULT_GRADIENT


class BannerIn(BaseModel):
    title: str = Field(min_length=1)
    subtitle: str | None = None
    description: str | None = None
    button_text: str | None = None
    button_link: str | None = None
    gradient: str | None = None
    icon_type: str | None = None
    image_url: str | None = None
    is_active: bool = True
    display_order: int | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None

    def with_defaults(self) -> dict:
        data = self.model_dump()
        data["button_text"] = (self.button_text or "").strip() or "Shop Now"
        data["button_link"] = (self.button_link or "").strip() or "/"
        data["gradient"] = (self.gradient or "").strip() or DEFAULT_GRADIENT
        data["icon_type"] = (self.icon_type or "").strip() or "sparkles"
        return data


class ReorderRequest(BaseModel):
    ids: list[int]

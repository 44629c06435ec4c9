"""Item request/response schemas - REST API contract."""

from datetime import datetime

from pydantic import BaseModel, Field


class ItemBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    image: str | None = None
    large_image: str | None = None
    price_cents: int = Field(0, ge=0)


class ItemCreate(ItemBase):
    pass


class ItemUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    image: str | None = None
    large_image: str | None = None
    price_cents: int | None = Field(None, ge=0)


class ItemResponse(ItemBase):
    id: int
    owner_id: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}

# bookstream/schemas/reading.py
# Pydantic request/response models for reading progress endpoints

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, field_validator


class ProgressUpdateRequest(BaseModel):
    book_id: UUID
    current_page: int
    total_pages: Optional[int] = None  # None or 0 -> DEFAULT_TOTAL_PAGES

    @field_validator("current_page")
    @classmethod
    def page_not_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("current_page must be a non-negative integer")
        return v

    @field_validator("total_pages")
    @classmethod
    def total_not_negative(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("total_pages must be a positive integer")
        return v


class ProgressBookInfo(BaseModel):
    id: UUID
    title: str
    author: str
    cover_image_url: Optional[str] = None

    model_config = {"from_attributes": True}


class ProgressResponse(BaseModel):
    id: UUID
    user_id: UUID
    book_id: UUID
    current_page: int
    total_pages: int
    percentage_complete: float
    last_read_at: datetime

    model_config = {"from_attributes": True}


class ProgressWithBookResponse(ProgressResponse):
    book: ProgressBookInfo

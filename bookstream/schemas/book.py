# bookstream/schemas/book.py
# Pydantic response models for catalog endpoints.
#
# Book rows are converted explicitly (see endpoints/books.py::book_to_response)
# because the ORM attribute for the JSON bag is `extra_metadata`.

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel


class UploaderInfo(BaseModel):
    """Minimal uploader identity embedded in book responses."""
    id: UUID
    name: Optional[str] = None
    avatar: Optional[str] = None

    model_config = {"from_attributes": True}


class ViewerProgress(BaseModel):
    """Viewer's own progress -- only present for authenticated requests."""
    current_page: int
    total_pages: int
    percentage_complete: float
    last_read_at: datetime

    model_config = {"from_attributes": True}


class BookResponse(BaseModel):
    id: UUID
    title: str
    author: str
    genre: Optional[str] = None
    summary_short: Optional[str] = None
    summary_long: Optional[str] = None
    cover_image_url: Optional[str] = None
    file_url: str
    file_format: str
    uploader_id: UUID
    metadata: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime
    uploader: Optional[UploaderInfo] = None


class BookDetailResponse(BookResponse):
    reading_progress: Optional[List[ViewerProgress]] = None


class BookListResponse(BaseModel):
    books: List[BookResponse]
    total: int


class CategoryResponse(BaseModel):
    books: List[BookResponse]
    category: str


class RelatedBooksResponse(BaseModel):
    books: List[BookResponse]


class BookUploadResponse(BaseModel):
    message: str
    book: BookResponse

# bookstream/api/endpoints/reading.py
# Reading progress -- one row per (user, book), upserted on every write
#
# POST /reading/progress             -- save progress
# GET  /reading/progress/{book_id}   -- own progress for one book
# GET  /reading/progress             -- all own progress, most recently read first

from datetime import datetime, timezone
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy import and_
from sqlalchemy.orm import Session, joinedload

import bookstream.db.base  # noqa: F401
from bookstream.core.dependencies import require_login
from bookstream.core.errors import NotFoundError
from bookstream.db.session import get_db
from bookstream.models.book import Book
from bookstream.models.reading_progress import DEFAULT_TOTAL_PAGES, ReadingProgress
from bookstream.models.user import User
from bookstream.schemas.reading import (
    ProgressResponse,
    ProgressUpdateRequest,
    ProgressWithBookResponse,
)

router = APIRouter()


def compute_progress(current_page: int, total_pages: int) -> tuple[int, float]:
    """Clamp the page into [0, total_pages] and derive the percentage."""
    page = max(0, min(current_page, total_pages))
    percentage = min(100.0, max(0.0, page / total_pages * 100))
    return page, percentage


@router.post("/progress", response_model=ProgressResponse, summary="Save reading progress")
def save_progress(
    payload: ProgressUpdateRequest,
    current_user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    book = db.query(Book).filter(Book.id == payload.book_id).first()
    if not book:
        raise NotFoundError("Book not found")

    total_pages = payload.total_pages or DEFAULT_TOTAL_PAGES
    current_page, percentage = compute_progress(payload.current_page, total_pages)

    progress = db.query(ReadingProgress).filter(
        and_(
            ReadingProgress.user_id == current_user.id,
            ReadingProgress.book_id == book.id,
        )
    ).first()

    if progress:
        progress.current_page = current_page
        progress.total_pages = total_pages
        progress.percentage_complete = percentage
        progress.last_read_at = datetime.now(timezone.utc)
    else:
        progress = ReadingProgress(
            user_id=current_user.id,
            book_id=book.id,
            current_page=current_page,
            total_pages=total_pages,
            percentage_complete=percentage,
        )
        db.add(progress)

    db.commit()
    db.refresh(progress)
    return ProgressResponse.model_validate(progress)


@router.get("/progress/{book_id}", response_model=ProgressResponse, summary="Get reading progress for a book")
def get_progress(
    book_id: str,
    current_user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    try:
        book_uuid = UUID(book_id)
    except ValueError:
        raise NotFoundError("No reading progress found")

    progress = db.query(ReadingProgress).filter(
        and_(
            ReadingProgress.user_id == current_user.id,
            ReadingProgress.book_id == book_uuid,
        )
    ).first()
    if not progress:
        raise NotFoundError("No reading progress found")
    return ProgressResponse.model_validate(progress)


@router.get("/progress", response_model=List[ProgressWithBookResponse], summary="List own reading progress")
def list_progress(
    current_user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    rows = (
        db.query(ReadingProgress)
        .options(joinedload(ReadingProgress.book))
        .filter(ReadingProgress.user_id == current_user.id)
        .order_by(ReadingProgress.last_read_at.desc())
        .all()
    )
    return [ProgressWithBookResponse.model_validate(r) for r in rows]

# bookstream/api/endpoints/books.py
# Catalog read endpoints -- open to everyone, viewer progress shown if logged in
#
# GET /books                         -- search / list  (?q&genre&limit&offset)
# GET /books/categories/{category}   -- popular | trending | new
# GET /books/{book_id}               -- single book (+ viewer's reading progress)
# GET /books/{book_id}/related       -- same genre, newest first

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, joinedload

import bookstream.db.base  # noqa: F401
from bookstream.core.dependencies import get_optional_user
from bookstream.core.errors import NotFoundError
from bookstream.db.session import get_db
from bookstream.models.book import Book
from bookstream.models.reading_progress import ReadingProgress
from bookstream.models.user import User
from bookstream.schemas.book import (
    BookDetailResponse,
    BookListResponse,
    BookResponse,
    CategoryResponse,
    RelatedBooksResponse,
    UploaderInfo,
    ViewerProgress,
)
from bookstream.services.search import (
    DEFAULT_CATEGORY_LIMIT,
    DEFAULT_RELATED_LIMIT,
    DEFAULT_SEARCH_LIMIT,
    get_books_by_category,
    get_related_books,
    search_books,
)

router = APIRouter()


def book_to_response(book: Book, include_uploader: bool = True) -> BookResponse:
    return BookResponse(
        id=book.id,
        title=book.title,
        author=book.author,
        genre=book.genre,
        summary_short=book.summary_short,
        summary_long=book.summary_long,
        cover_image_url=book.cover_image_url,
        file_url=book.file_url,
        file_format=book.file_format,
        uploader_id=book.uploader_id,
        metadata=book.extra_metadata,
        created_at=book.created_at,
        updated_at=book.updated_at,
        uploader=UploaderInfo.model_validate(book.uploader) if include_uploader and book.uploader else None,
    )


@router.get("", response_model=BookListResponse, summary="Search and list books")
def list_books(
    q: Optional[str] = Query(None),
    genre: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    offset: Optional[str] = Query(None),
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    result = search_books(
        db,
        query=q,
        genre=genre,
        limit=limit if limit is not None else DEFAULT_SEARCH_LIMIT,
        offset=offset if offset is not None else 0,
    )
    return BookListResponse(
        books=[book_to_response(b) for b in result["books"]],
        total=result["total"],
    )


@router.get("/categories/{category}", response_model=CategoryResponse, summary="Books by category")
def list_category(
    category: str,
    limit: Optional[str] = Query(None),
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    books = get_books_by_category(
        db, category, limit if limit is not None else DEFAULT_CATEGORY_LIMIT
    )
    return CategoryResponse(books=[book_to_response(b) for b in books], category=category)


@router.get("/{book_id}", response_model=BookDetailResponse, summary="Get a book")
def get_book(
    book_id: str,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    try:
        book_uuid = UUID(book_id)
    except ValueError:
        raise NotFoundError("Book not found")

    book = db.query(Book).options(joinedload(Book.uploader)).filter(Book.id == book_uuid).first()
    if not book:
        raise NotFoundError("Book not found")

    progress = None
    if current_user:
        rows = db.query(ReadingProgress).filter(
            ReadingProgress.book_id == book.id,
            ReadingProgress.user_id == current_user.id,
        ).all()
        progress = [ViewerProgress.model_validate(r) for r in rows]

    return BookDetailResponse(
        **book_to_response(book).model_dump(),
        reading_progress=progress,
    )


@router.get("/{book_id}/related", response_model=RelatedBooksResponse, summary="Related books")
def related_books(
    book_id: str,
    limit: Optional[str] = Query(None),
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    books = get_related_books(
        db, book_id, limit if limit is not None else DEFAULT_RELATED_LIMIT
    )
    return RelatedBooksResponse(books=[book_to_response(b, include_uploader=False) for b in books])

# bookstream/services/search.py
# Catalog read queries: search, category listings, related-by-genre.
#
# Pagination inputs arrive as raw query strings and are sanitized here;
# bad values fall back to defaults instead of failing the request.

from typing import Any, Dict, List, Optional, Union
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from bookstream.models.book import Book

DEFAULT_SEARCH_LIMIT = 50
DEFAULT_CATEGORY_LIMIT = 20
DEFAULT_RELATED_LIMIT = 5


def sanitize_non_negative_int(value: Union[int, str, None], fallback: int) -> int:
    """Non-negative int from an int or an all-digit string, else `fallback`."""
    if isinstance(value, bool):
        return fallback
    if isinstance(value, int):
        return value if value >= 0 else fallback
    if isinstance(value, str):
        value = value.strip()
        return int(value) if value.isdecimal() else fallback
    return fallback


def search_books(
    db: Session,
    query: Optional[str] = None,
    genre: Optional[str] = None,
    limit: Union[int, str, None] = DEFAULT_SEARCH_LIMIT,
    offset: Union[int, str, None] = 0,
) -> Dict[str, Any]:
    """
    Case-insensitive substring match on title OR author, AND exact
    case-insensitive genre match. Empty filters impose no constraint.
    Returns {"books": [...newest first], "total": <all matches>}.
    """
    limit = sanitize_non_negative_int(limit, DEFAULT_SEARCH_LIMIT)
    offset = sanitize_non_negative_int(offset, 0)

    base = db.query(Book)
    if query:
        base = base.filter(or_(
            Book.title.icontains(query, autoescape=True),
            Book.author.icontains(query, autoescape=True),
        ))
    if genre:
        base = base.filter(func.lower(Book.genre) == genre.lower())

    total = base.count()
    books = (
        base.options(joinedload(Book.uploader))
        .order_by(Book.created_at.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return {"books": books, "total": total}


def get_books_by_category(
    db: Session,
    category: str,
    limit: Union[int, str, None] = DEFAULT_CATEGORY_LIMIT,
) -> List[Book]:
    """
    "trending" -> most recently updated; "popular", "new" and anything else
    -> newest. Creation / update time stand in for real popularity signals.
    """
    limit = sanitize_non_negative_int(limit, DEFAULT_CATEGORY_LIMIT)

    if category.lower() == "trending":
        order = Book.updated_at.desc()
    else:
        order = Book.created_at.desc()

    return (
        db.query(Book)
        .options(joinedload(Book.uploader))
        .order_by(order)
        .limit(limit)
        .all()
    )


def get_related_books(
    db: Session,
    book_id: Union[UUID, str],
    limit: Union[int, str, None] = DEFAULT_RELATED_LIMIT,
) -> List[Book]:
    """Other books in the same genre, newest first. Unknown book -> []."""
    limit = sanitize_non_negative_int(limit, DEFAULT_RELATED_LIMIT)

    if not isinstance(book_id, UUID):
        try:
            book_id = UUID(str(book_id))
        except ValueError:
            return []

    book = db.query(Book).filter(Book.id == book_id).first()
    if not book:
        return []

    return (
        db.query(Book)
        .filter(Book.genre == book.genre, Book.id != book_id)
        .order_by(Book.created_at.desc())
        .limit(limit)
        .all()
    )

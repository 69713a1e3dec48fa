# bookstream/models/book.py
# Catalog record for an uploaded PDF / EPUB.
# Created by the upload pipeline; metadata comes from services/book_parser.py.
#
# (title, author) is only checked for duplicates at upload time, case-insensitively.
# There is no unique constraint on it -- see DESIGN.md.

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from bookstream.db.base_class import Base


class Book(Base):
    __tablename__ = "books"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # ── Metadata ──────────────────────────────────────────────────────────────
    title           = Column(String(500), nullable=False, index=True)
    author          = Column(String(255), nullable=False, index=True)
    genre           = Column(String(100), nullable=True, index=True)
    summary_short   = Column(Text, nullable=True)
    summary_long    = Column(Text, nullable=True)
    cover_image_url = Column(Text, nullable=True)

    # ── File ──────────────────────────────────────────────────────────────────
    file_url    = Column(Text, nullable=False)          # public URL on the storage backend
    file_format = Column(String(100), nullable=False)   # MIME type

    uploader_id = Column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Extraction bag: {"extracted_from", "file_size", "pages"} or {"error"}
    extra_metadata = Column(
        "metadata", JSON().with_variant(JSONB, "postgresql"), nullable=True
    )

    # ── Timestamps ────────────────────────────────────────────────────────────
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # ── Relationships ─────────────────────────────────────────────────────────
    uploader = relationship("User", back_populates="books")
    reading_progress = relationship(
        "ReadingProgress", back_populates="book", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Book id={self.id} title={self.title!r} author={self.author!r}>"

# bookstream/models/reading_progress.py
# One row per (user, book). Upserted on every progress write.

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from bookstream.db.base_class import Base

DEFAULT_TOTAL_PAGES = 100


class ReadingProgress(Base):
    __tablename__ = "reading_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "book_id", name="uq_reading_progress_user_book"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    book_id = Column(
        Uuid(as_uuid=True), ForeignKey("books.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # ── Progress ──────────────────────────────────────────────────────────────
    current_page = Column(Integer, nullable=False, default=0)       # 0 <= current_page <= total_pages
    total_pages = Column(Integer, nullable=False, default=DEFAULT_TOTAL_PAGES)
    percentage_complete = Column(Float, nullable=False, default=0.0)  # clamped to [0, 100]

    last_read_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # ── Relationships ─────────────────────────────────────────────────────────
    user = relationship("User", back_populates="reading_progress")
    book = relationship("Book", back_populates="reading_progress")

    def __repr__(self) -> str:
        return (
            f"<ReadingProgress user_id={self.user_id} book_id={self.book_id} "
            f"page={self.current_page}/{self.total_pages}>"
        )

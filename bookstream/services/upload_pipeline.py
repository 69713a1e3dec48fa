# bookstream/services/upload_pipeline.py
# Book ingestion: uploaded file -> catalog record.
#
#   RECEIVED            UploadedFile from intake (disk path or memory buffer)
#   MATERIALIZED        buffer-only uploads written to a private temp dir
#   METADATA_EXTRACTED  MetadataExtractor (never raises)
#   DUPLICATE_CHECKED   case-insensitive (title, author) lookup
#   STORED              FileStore.save
#   COMMITTED           Book row written
#
# Any failure aborts. The temp dir and the intake copy are owned by an ExitStack,
# so each is removed exactly once on every exit path. The intake copy is
# released from cleanup once the FileStore has taken it over (STORED).
# The duplicate check is advisory: two concurrent uploads of the same book
# can both pass it (see DESIGN.md).

import enum
import logging
import os
import tempfile
from contextlib import ExitStack
from typing import Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from bookstream.core.errors import ConflictError, InputError
from bookstream.core.storage_config import StorageConfig
from bookstream.models.book import Book
from bookstream.services.book_parser import ExtractedMetadata, MetadataExtractor
from bookstream.services.file_storage import FileStore, StoredFileDescriptor, UploadedFile

logger = logging.getLogger("bookstream.upload")

TEMP_DIR_PREFIX = "bookstream-"
DEFAULT_FILE_FORMAT = "application/pdf"


class IngestState(str, enum.Enum):
    RECEIVED = "received"
    MATERIALIZED = "materialized"
    METADATA_EXTRACTED = "metadata_extracted"
    DUPLICATE_CHECKED = "duplicate_checked"
    STORED = "stored"
    COMMITTED = "committed"


def find_duplicate(db: Session, title: str, author: str) -> Optional[Book]:
    return db.query(Book).filter(
        func.lower(Book.title) == title.lower(),
        func.lower(Book.author) == author.lower(),
    ).first()


class UploadPipeline:

    def __init__(
        self,
        config: StorageConfig,
        file_store: FileStore,
        extractor: Optional[MetadataExtractor] = None,
    ):
        self.config = config
        self.file_store = file_store
        self.extractor = extractor or MetadataExtractor()

    def ingest(self, db: Session, uploaded: UploadedFile, uploader_id: UUID) -> Book:
        state = IngestState.RECEIVED
        logger.info(
            f"Ingest start: '{uploaded.original_name}' ({uploaded.size} bytes) "
            f"uploader={uploader_id} backend={self.config.kind.value}"
        )

        with ExitStack() as cleanup:
            intake_copy = cleanup.enter_context(ExitStack())
            intake_copy.callback(self._discard_intake_copy, uploaded)
            try:
                working_path = self._materialize(uploaded, cleanup)
                state = IngestState.MATERIALIZED

                metadata = self.extractor.extract(working_path, uploaded.original_name)
                state = IngestState.METADATA_EXTRACTED
                logger.info(f"Metadata: title='{metadata.title}' author='{metadata.author}' genre={metadata.genre}")

                existing = find_duplicate(db, metadata.title, metadata.author)
                if existing:
                    logger.info(f"Duplicate of book id={existing.id}, upload rejected")
                    raise ConflictError(
                        "Book already exists",
                        existing_book={
                            "id": str(existing.id),
                            "title": existing.title,
                            "author": existing.author,
                            "cover_image_url": existing.cover_image_url,
                        },
                    )
                state = IngestState.DUPLICATE_CHECKED

                stored = self.file_store.save(uploaded)
                state = IngestState.STORED
                intake_copy.pop_all()

                book = self._commit(db, uploaded, metadata, stored, uploader_id)
                state = IngestState.COMMITTED
            except Exception as e:
                logger.info(f"Ingest aborted after state={state.value}: {type(e).__name__}: {e}")
                raise

        logger.info(f"Ingest done: book id={book.id} url={book.file_url}")
        return book

    def _materialize(self, uploaded: UploadedFile, cleanup: ExitStack) -> str:
        """Return a readable path for the upload, writing buffers to a temp dir."""
        if uploaded.path:
            if not os.path.isfile(uploaded.path):
                raise InputError("Uploaded file is no longer available.")
            return uploaded.path

        if uploaded.buffer is None:
            raise InputError("No file uploaded")

        temp_dir = cleanup.enter_context(
            tempfile.TemporaryDirectory(prefix=TEMP_DIR_PREFIX, ignore_cleanup_errors=True)
        )
        temp_path = os.path.join(temp_dir, f"{uploaded.field_name or 'upload'}{uploaded.extension or '.tmp'}")
        with open(temp_path, "wb") as fh:
            fh.write(uploaded.buffer)
        return temp_path

    def _discard_intake_copy(self, uploaded: UploadedFile) -> None:
        if not uploaded.path or not os.path.exists(uploaded.path):
            return
        try:
            os.unlink(uploaded.path)
        except OSError as e:
            logger.warning(f"Could not remove intake copy {uploaded.path}: {e}")

    def _commit(
        self,
        db: Session,
        uploaded: UploadedFile,
        metadata: ExtractedMetadata,
        stored: StoredFileDescriptor,
        uploader_id: UUID,
    ) -> Book:
        book = Book(
            title=metadata.title,
            author=metadata.author,
            genre=metadata.genre,
            summary_short=metadata.summary_short,
            summary_long=metadata.summary_long,
            cover_image_url=metadata.cover_image_url,
            file_url=stored.url,
            file_format=uploaded.content_type or DEFAULT_FILE_FORMAT,
            uploader_id=uploader_id,
            extra_metadata=metadata.metadata,
        )
        try:
            db.add(book)
            db.commit()
        except Exception:
            db.rollback()
            # The stored file has no catalog record pointing at it
            self.file_store.delete(stored.path)
            raise
        db.refresh(book)
        return book

# bookstream/api/endpoints/upload.py
# POST /books/upload -- multipart, file in the `book` field
#
# Sync endpoint: FastAPI runs it in the threadpool, so disk / DB / storage
# I/O for one upload never blocks other requests.

from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

import bookstream.db.base  # noqa: F401
from bookstream.api.endpoints.books import book_to_response
from bookstream.core.dependencies import get_storage_config, get_upload_pipeline, require_login
from bookstream.core.storage_config import StorageConfig
from bookstream.db.session import get_db
from bookstream.models.user import User
from bookstream.schemas.book import BookUploadResponse
from bookstream.services.intake import accept_upload
from bookstream.services.upload_pipeline import UploadPipeline

router = APIRouter()


@router.post("/upload", response_model=BookUploadResponse, status_code=201, summary="Upload a book")
def upload_book(
    book: Optional[UploadFile] = File(None),
    current_user: User = Depends(require_login),
    storage_config: StorageConfig = Depends(get_storage_config),
    pipeline: UploadPipeline = Depends(get_upload_pipeline),
    db: Session = Depends(get_db),
):
    uploaded = accept_upload(book, storage_config, field_name="book")
    created = pipeline.ingest(db, uploaded, current_user.id)
    return BookUploadResponse(
        message="Book uploaded successfully",
        book=book_to_response(created),
    )

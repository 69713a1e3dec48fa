# bookstream/services/intake.py
# Multipart intake in front of the upload pipeline.
#
# Validates type and size, then hands the pipeline an UploadedFile:
#   local backend  -> bytes written to UPLOAD_DIR as book-<ms>-<random><ext>
#   remote backend -> bytes kept in memory (nothing touches local disk)

import logging
import os
import random
import time
from typing import BinaryIO, Optional

from fastapi import UploadFile

from bookstream.core.errors import FileTooLargeError, InputError
from bookstream.core.storage_config import StorageConfig
from bookstream.services.file_storage import UploadedFile, get_file_extension

logger = logging.getLogger("bookstream.intake")

CHUNK_SIZE = 1024 * 1024


def is_allowed(filename: str, content_type: Optional[str], config: StorageConfig) -> bool:
    """Accepted by declared MIME type OR by extension."""
    return (content_type or "") in config.allowed_formats or \
        get_file_extension(filename) in config.allowed_extensions


def disk_filename(field_name: str, original_name: str) -> str:
    suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    return f"{field_name}-{suffix}{os.path.splitext(original_name)[1]}"


def _too_large(config: StorageConfig) -> FileTooLargeError:
    limit_mb = config.max_file_size / (1024 * 1024)
    return FileTooLargeError(f"File too large. Max {limit_mb:g} MB.")


def _read_limited(stream: BinaryIO, config: StorageConfig) -> bytes:
    chunks = []
    total = 0
    while True:
        chunk = stream.read(CHUNK_SIZE)
        if not chunk:
            break
        total += len(chunk)
        if total > config.max_file_size:
            raise _too_large(config)
        chunks.append(chunk)
    return b"".join(chunks)


def _write_limited(stream: BinaryIO, dest: str, config: StorageConfig) -> int:
    total = 0
    try:
        with open(dest, "wb") as out:
            while True:
                chunk = stream.read(CHUNK_SIZE)
                if not chunk:
                    break
                total += len(chunk)
                if total > config.max_file_size:
                    raise _too_large(config)
                out.write(chunk)
    except Exception:
        if os.path.exists(dest):
            os.unlink(dest)
        raise
    return total


def accept_upload(
    upload: Optional[UploadFile],
    config: StorageConfig,
    field_name: str = "book",
) -> UploadedFile:
    if upload is None or not upload.filename:
        raise InputError("No file uploaded")

    filename = upload.filename
    content_type = upload.content_type or ""
    if not is_allowed(filename, content_type, config):
        raise InputError("Invalid file type. Only PDF and ePub files are allowed.")

    if config.is_remote:
        buffer = _read_limited(upload.file, config)
        if not buffer:
            raise InputError("Empty file.")
        logger.info(f"Intake (memory): '{filename}' {len(buffer)} bytes")
        return UploadedFile(
            original_name=filename,
            content_type=content_type,
            size=len(buffer),
            buffer=buffer,
            field_name=field_name,
        )

    os.makedirs(config.local_path, exist_ok=True)
    dest = os.path.join(config.local_path, disk_filename(field_name, filename))
    size = _write_limited(upload.file, dest, config)
    if size == 0:
        os.unlink(dest)
        raise InputError("Empty file.")
    logger.info(f"Intake (disk): '{filename}' {size} bytes -> {dest}")
    return UploadedFile(
        original_name=filename,
        content_type=content_type,
        size=size,
        path=dest,
        field_name=field_name,
    )

# bookstream/services/file_storage.py
# Persist uploaded book files on the configured storage backend.
#
# Two backends, chosen once from StorageConfig.kind:
#   LocalFileStore     -- the intake layer already wrote the bytes to UPLOAD_DIR;
#                         save() just records where they are (/api/files/<name>)
#   RemoteObjectStore  -- Supabase Storage HTTP API (POST / DELETE on
#                         /storage/v1/object/<bucket>/<key>)
#
# save() raises StorageUploadError on failure.
# delete() never raises -- it logs and returns False. Deletion is cleanup only.

import logging
import os
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import httpx

from bookstream.core.errors import InputError, StorageDeleteError, StorageUploadError
from bookstream.core.storage_config import StorageConfig

logger = logging.getLogger("bookstream.file_storage")

REMOTE_TIMEOUT_SECONDS = 60.0


@dataclass
class UploadedFile:
    """
    A file received by the upload endpoint.
    Exactly one of `path` (written to disk by intake) or `buffer` is normally set.
    """
    original_name: str
    content_type: str
    size: int
    path: Optional[str] = None
    buffer: Optional[bytes] = None
    field_name: str = "book"

    @property
    def extension(self) -> str:
        return os.path.splitext(self.original_name)[1]


@dataclass(frozen=True)
class StoredFileDescriptor:
    filename: str
    original_name: str
    path: str           # local path or remote object key
    size: int
    content_type: str
    url: str            # publicly resolvable URL


def get_file_extension(filename: str) -> str:
    return os.path.splitext(filename)[1].lower()


def is_pdf(filename: str) -> bool:
    return get_file_extension(filename) == ".pdf"


def generate_filename(original_name: str) -> str:
    """Random UUID + original extension (".bin" when there is none)."""
    ext = os.path.splitext(original_name)[1] or ".bin"
    return f"{uuid.uuid4()}{ext}"


# ── Interface ─────────────────────────────────────────────────────────────────

class FileStore(ABC):
    def __init__(self, config: StorageConfig):
        self.config = config

    @abstractmethod
    def save(self, file: UploadedFile) -> StoredFileDescriptor:
        ...

    @abstractmethod
    def _delete(self, path_or_key: str) -> None:
        ...

    def delete(self, path_or_key: str) -> bool:
        try:
            self._delete(path_or_key)
            return True
        except Exception as e:
            logger.error(f"Error deleting file '{path_or_key}': {e}")
            return False

    def close(self) -> None:
        pass


# ── Local Disk ────────────────────────────────────────────────────────────────

class LocalFileStore(FileStore):

    def save(self, file: UploadedFile) -> StoredFileDescriptor:
        if not file.path:
            raise StorageUploadError("Local storage expects the upload to be on disk already.")
        filename = os.path.basename(file.path)
        return StoredFileDescriptor(
            filename=filename,
            original_name=file.original_name,
            path=file.path,
            size=file.size,
            content_type=file.content_type,
            url=self.file_url(filename),
        )

    def _delete(self, path_or_key: str) -> None:
        os.unlink(path_or_key)

    @staticmethod
    def file_url(filename: str) -> str:
        return f"/api/files/{filename}"


# ── Remote Object Store ───────────────────────────────────────────────────────

class RemoteObjectStore(FileStore):

    def __init__(self, config: StorageConfig, client: Optional[httpx.Client] = None):
        super().__init__(config)
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=REMOTE_TIMEOUT_SECONDS)

    def _object_key(self, filename: str) -> str:
        if not self.config.remote_url or not self.config.remote_service_key:
            raise StorageUploadError(
                "Supabase storage requires SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY"
            )
        folder = self.config.remote_folder
        return f"{folder}/{filename}" if folder else filename

    def _object_url(self, key: str) -> str:
        return f"{self.config.remote_url}/storage/v1/object/{self.config.remote_bucket}/{key}"

    def public_url(self, key: str) -> str:
        return f"{self.config.remote_url}/storage/v1/object/public/{self.config.remote_bucket}/{key}"

    def _auth_headers(self) -> dict:
        return {"Authorization": f"Bearer {self.config.remote_service_key}"}

    def save(self, file: UploadedFile) -> StoredFileDescriptor:
        filename = generate_filename(file.original_name)
        key = self._object_key(filename)

        if file.buffer is not None:
            data = file.buffer
        elif file.path:
            with open(file.path, "rb") as fh:
                data = fh.read()
        else:
            raise InputError("No file content to upload.")

        headers = self._auth_headers()
        headers["Content-Type"] = file.content_type or "application/octet-stream"
        headers["x-upsert"] = "false"

        try:
            response = self._client.post(self._object_url(key), content=data, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Supabase upload request failed for key={key}: {e}")
            raise StorageUploadError(f"Supabase upload failed: {e}") from e

        if not response.is_success:
            message = response.text or response.reason_phrase
            logger.error(f"Supabase upload rejected ({response.status_code}) for key={key}: {message}")
            raise StorageUploadError(f"Supabase upload failed: {message}")

        logger.info(f"Uploaded {len(data)} bytes to bucket={self.config.remote_bucket} key={key}")

        # At most one durable copy: drop the intake's disk copy now that the remote one exists
        if file.path:
            try:
                os.unlink(file.path)
            except OSError as e:
                logger.warning(f"Could not remove local copy {file.path}: {e}")

        return StoredFileDescriptor(
            filename=filename,
            original_name=file.original_name,
            path=key,
            size=file.size if file.size is not None else len(data),
            content_type=file.content_type,
            url=self.public_url(key),
        )

    def _delete(self, path_or_key: str) -> None:
        response = self._client.delete(self._object_url(path_or_key), headers=self._auth_headers())
        if not response.is_success:
            message = response.text or response.reason_phrase
            raise StorageDeleteError(f"Supabase delete failed: {message}")

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


def build_file_store(config: StorageConfig, client: Optional[httpx.Client] = None) -> FileStore:
    """Select the backend once, from config.kind."""
    if config.is_remote:
        return RemoteObjectStore(config, client=client)
    return LocalFileStore(config)

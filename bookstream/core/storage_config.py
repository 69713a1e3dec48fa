# bookstream/core/storage_config.py
# Storage backend configuration
#
# Built once per process by load_storage_config() and passed by reference
# into FileStore / UploadPipeline / intake. Nothing below the API layer reads
# the environment on its own.
#
# Env vars (process environment or .env, case-insensitive):
#   STORAGE_TYPE               local | supabase (alias: remote)
#   UPLOAD_DIR                 local upload directory (default ./uploads)
#   MAX_FILE_SIZE              bytes (default 50 MiB)
#   SUPABASE_URL               object store endpoint
#   SUPABASE_SERVICE_ROLE_KEY  service credential
#   SUPABASE_BUCKET            bucket name (default "books")
#   SUPABASE_FOLDER            optional key prefix inside the bucket

import enum
from typing import Any, FrozenSet, Mapping, Optional

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MAX_FILE_SIZE = 50 * 1024 * 1024  # 50 MiB
DEFAULT_UPLOAD_DIR = "./uploads"
DEFAULT_BUCKET = "books"

ALLOWED_FORMATS = frozenset({
    "application/pdf",
    "application/epub+zip",
    "application/epub",
})
ALLOWED_EXTENSIONS = frozenset({".pdf", ".epub"})


class StorageKind(str, enum.Enum):
    LOCAL = "local"
    REMOTE = "remote"


_KIND_ALIASES = {
    "local": StorageKind.LOCAL,
    "supabase": StorageKind.REMOTE,
    "remote": StorageKind.REMOTE,
}


class StorageConfig(BaseModel):
    """Immutable storage configuration value."""

    model_config = ConfigDict(frozen=True)

    kind: StorageKind = StorageKind.LOCAL
    local_path: str = DEFAULT_UPLOAD_DIR
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    allowed_formats: FrozenSet[str] = ALLOWED_FORMATS
    allowed_extensions: FrozenSet[str] = ALLOWED_EXTENSIONS

    # Remote object store (Supabase Storage HTTP API)
    remote_url: str = ""
    remote_service_key: str = ""
    remote_bucket: str = DEFAULT_BUCKET
    remote_folder: str = ""

    @property
    def is_remote(self) -> bool:
        return self.kind == StorageKind.REMOTE


class StorageSettings(BaseSettings):
    """
    Raw storage settings as they appear in the environment.
    Every field falls back to its default instead of failing validation.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    storage_type: StorageKind = StorageKind.LOCAL
    upload_dir: str = DEFAULT_UPLOAD_DIR
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    supabase_bucket: str = DEFAULT_BUCKET
    supabase_folder: str = ""

    @field_validator("storage_type", mode="before")
    @classmethod
    def parse_kind(cls, v: Any) -> StorageKind:
        if isinstance(v, StorageKind):
            return v
        return _KIND_ALIASES.get(str(v or "").strip().lower(), StorageKind.LOCAL)

    @field_validator("max_file_size", mode="before")
    @classmethod
    def parse_size(cls, v: Any) -> int:
        """Positive integer byte count, or the default for anything else."""
        try:
            size = int(str(v).strip())
        except (TypeError, ValueError):
            return DEFAULT_MAX_FILE_SIZE
        return size if size > 0 else DEFAULT_MAX_FILE_SIZE

    @field_validator("upload_dir", "supabase_bucket", mode="before")
    @classmethod
    def blank_is_default(cls, v: Any, info: ValidationInfo) -> str:
        v = str(v or "").strip()
        return v or cls.model_fields[info.field_name].default

    @field_validator("supabase_url", "supabase_service_role_key", "supabase_folder", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> str:
        return str(v or "").strip()

    def to_config(self) -> StorageConfig:
        return StorageConfig(
            kind=self.storage_type,
            local_path=self.upload_dir,
            max_file_size=self.max_file_size,
            remote_url=self.supabase_url.rstrip("/"),
            remote_service_key=self.supabase_service_role_key,
            remote_bucket=self.supabase_bucket,
            remote_folder=self.supabase_folder.strip("/"),
        )


def load_storage_config(
    environ: Optional[Mapping[str, str]] = None,
    env_file: Optional[str] = ".env",
) -> StorageConfig:
    """
    Build a StorageConfig from the process environment plus `env_file`,
    or only from `environ` when a mapping is given.
    Never raises -- missing or invalid values fall back to defaults.
    """
    if environ is None:
        storage_settings = StorageSettings(_env_file=env_file)
    else:
        # model_validate skips the environment / .env sources
        storage_settings = StorageSettings.model_validate(
            {key.lower(): value for key, value in environ.items()}
        )
    return storage_settings.to_config()

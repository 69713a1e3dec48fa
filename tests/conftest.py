"""Shared fixtures: in-memory database, isolated storage dirs, API client."""

import os
import random
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterator, List, Optional

# Settings are read at import time -- configure before importing the app
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("STORAGE_TYPE", "local")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import bookstream.db.base  # noqa: F401, E402
from bookstream.core.security import create_access_token  # noqa: E402
from bookstream.core.storage_config import StorageConfig, StorageKind  # noqa: E402
from bookstream.db.base_class import Base  # noqa: E402
from bookstream.db.session import get_db  # noqa: E402
from bookstream.models.book import Book  # noqa: E402
from bookstream.models.user import User  # noqa: E402
from bookstream.services.book_parser import MetadataExtractor, PlaceholderClassifier  # noqa: E402
from bookstream.services.file_storage import FileStore, build_file_store  # noqa: E402
from bookstream.services.upload_pipeline import UploadPipeline  # noqa: E402

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


# ── PDF fixtures ──────────────────────────────────────────────────────────────

def make_pdf(lines: List[str], pages: int = 1) -> bytes:
    """
    Minimal Helvetica PDF. Every page shows `lines`, one per row.
    Object layout: 1 catalog, 2 pages, 3 font, 4 content, 5.. page objects.
    """
    ops = ["BT", "/F1 24 Tf", "72 720 Td"]
    for i, line in enumerate(lines):
        if i:
            ops.append("0 -30 Td")
        ops.append(f"({line}) Tj")
    ops.append("ET")
    content = "\n".join(ops).encode("latin-1")

    page_ids = [5 + i for i in range(pages)]
    kids = " ".join(f"{pid} 0 R" for pid in page_ids)
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {pages} >>".encode(),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
        b"<< /Length %d >>\nstream\n" % len(content) + content + b"\nendstream",
    ]
    for _ in page_ids:
        objects.append(
            b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            b"/Resources << /Font << /F1 3 0 R >> >> /Contents 4 0 R >>"
        )

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"
    xref_at = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref_at)
    return bytes(out)


# ── Database ──────────────────────────────────────────────────────────────────

@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db_session(session_factory) -> Iterator[Session]:
    session = session_factory()
    yield session
    session.close()


# ── Storage ───────────────────────────────────────────────────────────────────

@pytest.fixture
def temp_root(tmp_path: Path, monkeypatch) -> Path:
    """Redirect tempfile.* into a directory the test can inspect."""
    root = tmp_path / "tmp"
    root.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(root))
    return root


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def local_config(upload_dir: Path) -> StorageConfig:
    return StorageConfig(kind=StorageKind.LOCAL, local_path=str(upload_dir))


@pytest.fixture
def remote_config() -> StorageConfig:
    return StorageConfig(
        kind=StorageKind.REMOTE,
        remote_url="https://store.example.com",
        remote_service_key="service-key",
        remote_bucket="books",
        remote_folder="uploads",
    )


@pytest.fixture
def extractor() -> MetadataExtractor:
    return MetadataExtractor(PlaceholderClassifier(random.Random(42)))


# ── Data helpers ──────────────────────────────────────────────────────────────

def make_user(db: Session, email: str = "reader@example.com", name: str = "Reader") -> User:
    user = User(email=email, name=name)
    db.add(user)
    db.commit()
    return user


def make_book(
    db: Session,
    uploader: User,
    title: str,
    author: str,
    genre: str = "Fiction",
    minutes: int = 0,
    updated_minutes: Optional[int] = None,
) -> Book:
    """`minutes` offsets created_at from BASE_TIME so ordering is deterministic."""
    created = BASE_TIME + timedelta(minutes=minutes)
    updated = BASE_TIME + timedelta(minutes=updated_minutes if updated_minutes is not None else minutes)
    book = Book(
        title=title,
        author=author,
        genre=genre,
        file_url=f"/api/files/{title.lower().replace(' ', '-')}.pdf",
        file_format="application/pdf",
        uploader_id=uploader.id,
        created_at=created,
        updated_at=updated,
    )
    db.add(book)
    db.commit()
    return book


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


# ── API client ────────────────────────────────────────────────────────────────

def install_storage(app, config: StorageConfig, extractor: MetadataExtractor, http_client=None) -> FileStore:
    file_store = build_file_store(config, client=http_client)
    app.state.storage_config = config
    app.state.file_store = file_store
    app.state.upload_pipeline = UploadPipeline(config, file_store, extractor)
    return file_store


@pytest.fixture
def app(session_factory, local_config, extractor, temp_root):
    from bookstream.main import app as fastapi_app

    def override_get_db():
        db = session_factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    saved_state = (
        fastapi_app.state.storage_config,
        fastapi_app.state.file_store,
        fastapi_app.state.upload_pipeline,
    )
    fastapi_app.dependency_overrides[get_db] = override_get_db
    install_storage(fastapi_app, local_config, extractor)
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()
    (
        fastapi_app.state.storage_config,
        fastapi_app.state.file_store,
        fastapi_app.state.upload_pipeline,
    ) = saved_state


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)

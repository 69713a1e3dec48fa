# bookstream/core/dependencies.py
# FastAPI dependency functions for authentication and service wiring
#
#   get_optional_user()   -- catalog reads: None for anonymous requests
#   require_login()       -- uploads, reading progress, /auth/me: 401 otherwise
#   get_storage_config()  -- StorageConfig built once at startup (app.state)
#   get_upload_pipeline() -- UploadPipeline built once at startup (app.state)

from typing import Optional
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from bookstream.core.errors import AuthError
from bookstream.core.security import decode_token
from bookstream.core.storage_config import StorageConfig
from bookstream.db.session import get_db
from bookstream.models.user import User
from bookstream.services.upload_pipeline import UploadPipeline

# Bearer token extractor -- auto_error=False so we can handle 401 ourselves
bearer_scheme = HTTPBearer(auto_error=False)


# ── Token Extraction ──────────────────────────────────────────────────────────

def _extract_user_from_token(
    credentials: Optional[HTTPAuthorizationCredentials],
    db: Session,
) -> Optional[User]:
    """
    Internal helper: decode Bearer token and load user from DB.
    Returns None if no token, invalid token, or user not found.
    """
    if not credentials:
        return None

    payload = decode_token(credentials.credentials)
    if not payload:
        return None

    user_id = payload.get("sub")
    if not user_id:
        return None

    try:
        user_uuid = UUID(str(user_id))
    except ValueError:
        return None

    return db.query(User).filter(User.id == user_uuid).first()


# ── Auth Dependencies ─────────────────────────────────────────────────────────

def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """
    Returns the authenticated user if a valid token is present.
    Returns None for anonymous requests -- does NOT raise 401.
    """
    return _extract_user_from_token(credentials, db)


def require_login(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Requires a valid JWT token. Raises 401 if not authenticated."""
    if not credentials:
        raise AuthError("No token provided")
    user = _extract_user_from_token(credentials, db)
    if not user:
        raise AuthError("Invalid token")
    return user


# ── Service Dependencies ──────────────────────────────────────────────────────

def get_storage_config(request: Request) -> StorageConfig:
    return request.app.state.storage_config


def get_upload_pipeline(request: Request) -> UploadPipeline:
    return request.app.state.upload_pipeline

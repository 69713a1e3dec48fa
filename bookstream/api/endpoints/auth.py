# bookstream/api/endpoints/auth.py
# Authentication endpoints
#
# POST /auth/register         -- email + password signup, returns token + user
# POST /auth/login            -- email + password, returns token + user
# GET  /auth/google           -- redirect to Google OAuth
# GET  /auth/callback/google  -- exchange code, redirect to frontend with token
# GET  /auth/me               -- current user
# POST /auth/logout           -- client drops the token; nothing to revoke server-side

import logging
from urllib.parse import urlencode

import httpx
from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

import bookstream.db.base  # noqa: F401 -- registers all models so relationships resolve
from bookstream.core.config import settings
from bookstream.core.dependencies import require_login
from bookstream.core.errors import AuthError, BookStreamError, InputError
from bookstream.core.security import create_access_token, hash_password, verify_password
from bookstream.db.session import get_db
from bookstream.models.user import User
from bookstream.schemas.auth import (
    AuthResponse,
    LoginRequest,
    MeResponse,
    MessageResponse,
    RegisterRequest,
    UserInfo,
)

router = APIRouter()
logger = logging.getLogger("bookstream.auth")

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"
GOOGLE_PROVIDER = "google"


# Helper
def _auth_response(user: User) -> AuthResponse:
    return AuthResponse(
        token=create_access_token(user.id),
        user=UserInfo.model_validate(user),
    )


# Register
@router.post("/register", response_model=AuthResponse, status_code=201, summary="Create an account")
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    email = payload.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise InputError("User already exists")
    user = User(
        email=email,
        password_hash=hash_password(payload.password),
        name=payload.name or email.split("@")[0],
    )
    db.add(user)
    db.commit()
    logger.info(f"Registered user id={user.id}")
    return _auth_response(user)


# Login
@router.post("/login", response_model=AuthResponse, summary="Log in with email and password")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == payload.email.lower()).first()
    if not user or not user.password_hash:
        raise AuthError("Invalid credentials")
    if not verify_password(payload.password, user.password_hash):
        raise AuthError("Invalid credentials")
    return _auth_response(user)


# Google OAuth
@router.get("/google", summary="Redirect to Google OAuth")
def google_login():
    if not settings.oauth_enabled:
        raise BookStreamError("Google OAuth is not configured.", status_code=503)
    params = {
        "client_id": settings.google_client_id,
        "redirect_uri": settings.google_callback_url,
        "response_type": "code",
        "scope": "openid email profile",
        "prompt": "select_account",
    }
    return RedirectResponse(url=f"{GOOGLE_AUTH_URL}?{urlencode(params)}")


def fetch_google_profile(code: str) -> dict:
    """Exchange the authorization code and return Google's userinfo payload."""
    with httpx.Client(timeout=10.0) as client:
        token_resp = client.post(GOOGLE_TOKEN_URL, data={
            "code": code,
            "client_id": settings.google_client_id,
            "client_secret": settings.google_client_secret,
            "redirect_uri": settings.google_callback_url,
            "grant_type": "authorization_code",
        })
        token_resp.raise_for_status()
        google_tokens = token_resp.json()
        userinfo_resp = client.get(
            GOOGLE_USERINFO_URL,
            headers={"Authorization": f"Bearer {google_tokens['access_token']}"},
        )
        userinfo_resp.raise_for_status()
        return userinfo_resp.json()


def find_or_create_oauth_user(db: Session, profile: dict) -> User:
    """
    Match by email or (provider, oauth id). Creates the account if missing;
    links Google to an existing password account that has no provider yet.
    """
    email = (profile.get("email") or "").lower()
    oauth_id = profile.get("sub")
    if not email or not oauth_id:
        raise InputError("Google account did not provide an email address.")

    user = db.query(User).filter(
        or_(
            User.email == email,
            and_(User.oauth_id == oauth_id, User.oauth_provider == GOOGLE_PROVIDER),
        )
    ).first()

    if not user:
        user = User(
            email=email,
            name=profile.get("name") or email.split("@")[0],
            avatar=profile.get("picture"),
            oauth_provider=GOOGLE_PROVIDER,
            oauth_id=oauth_id,
        )
        db.add(user)
        logger.info(f"Created Google user email={email}")
    elif not user.oauth_provider:
        user.oauth_provider = GOOGLE_PROVIDER
        user.oauth_id = oauth_id
        user.avatar = profile.get("picture") or user.avatar
        logger.info(f"Linked Google account to user id={user.id}")

    db.commit()
    return user


@router.get("/callback/google", summary="Google OAuth callback")
def google_callback(code: str, db: Session = Depends(get_db)):
    if not settings.oauth_enabled:
        raise BookStreamError("Google OAuth is not configured.", status_code=503)
    try:
        profile = fetch_google_profile(code)
    except (httpx.HTTPError, KeyError) as e:
        logger.warning(f"Google OAuth exchange failed: {e}")
        raise InputError("Failed to authenticate with Google.")

    user = find_or_create_oauth_user(db, profile)
    token = create_access_token(user.id)
    frontend_url = settings.cors_origins[0] if settings.cors_origins else settings.frontend_url
    return RedirectResponse(url=f"{frontend_url}/auth/callback?{urlencode({'token': token})}")


# Current user
@router.get("/me", response_model=MeResponse, summary="Get the current user")
def me(current_user: User = Depends(require_login)):
    return MeResponse(user=UserInfo.model_validate(current_user))


# Logout
@router.post("/logout", response_model=MessageResponse, status_code=status.HTTP_200_OK, summary="Log out")
def logout(current_user: User = Depends(require_login)):
    return MessageResponse(message="Logged out successfully")

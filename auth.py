import logging
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import Optional

from fastapi import Cookie, Header, HTTPException
from supabase import Client, create_client

from config import get_settings
from db import UserSession
from models import User

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "sb-access-token"


class AuthError(Exception):
    """Magic-link verification failed; the message is a short reason code."""


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: Optional[str] = None


@lru_cache(maxsize=4)
def _cached_client(url: str, key: str) -> Client:
    return create_client(url, key)


def get_supabase() -> Optional[Client]:
    """Shared anon client for stateless calls (token lookups). None when not configured."""
    settings = get_settings()
    if not settings.supabase_url or not settings.supabase_key:
        return None
    return _cached_client(settings.supabase_url, settings.supabase_key)


def get_supabase_admin() -> Optional[Client]:
    """Service-role client for storage and session revocation."""
    settings = get_settings()
    if not settings.supabase_url or not settings.supabase_service_key:
        return None
    return _cached_client(settings.supabase_url, settings.supabase_service_key)


def _fresh_client() -> Client:
    # sign-in flows keep session state on the client, so never share one
    settings = get_settings()
    if not settings.supabase_url or not settings.supabase_key:
        raise HTTPException(status_code=503, detail="Authentication service is not configured.")
    return create_client(settings.supabase_url, settings.supabase_key)


def bearer_token(authorization: Optional[str], cookie: Optional[str] = None) -> Optional[str]:
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()
    return cookie or None


def send_magic_link(email: str) -> None:
    redirect = f"{get_settings().app_url}/auth/callback"
    _fresh_client().auth.sign_in_with_otp(
        {"email": email, "options": {"email_redirect_to": redirect}}
    )
    logger.info("Magic link sent to %s", email)


def verify_callback(token_hash: str, otp_type: str = "email"):
    """
    Exchange a magic-link token for a session.

    Returns:
        The auth-service session (access_token, refresh_token, expires_in, user)

    Raises:
        AuthError: 'auth_failed', 'no_user' or 'unconfirmed'
    """
    try:
        response = _fresh_client().auth.verify_otp({"token_hash": token_hash, "type": otp_type})
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Auth exchange error: %s", e)
        raise AuthError("auth_failed") from e

    user = getattr(response, "user", None)
    session = getattr(response, "session", None)
    if user is None or session is None:
        logger.error("No user data received")
        raise AuthError("no_user")

    if not getattr(user, "email_confirmed_at", None) and not getattr(user, "confirmed_at", None):
        logger.info("Email not confirmed for %s", user.id)
        raise AuthError("unconfirmed")

    logger.info("User %s authenticated (type=%s)", user.id, otp_type)
    return session


def resolve_user(token: str) -> Optional[AuthUser]:
    client = get_supabase()
    if client is None:
        raise HTTPException(status_code=503, detail="Authentication service is not configured.")
    try:
        response = client.auth.get_user(token)
    except Exception as e:
        logger.info("Rejected access token: %s", e)
        return None
    user = getattr(response, "user", None)
    if user is None:
        return None
    return AuthUser(id=str(user.id), email=user.email)


def sign_out(token: str) -> None:
    admin = get_supabase_admin()
    if admin is None:
        raise HTTPException(status_code=503, detail="Authentication service is not configured.")
    admin.auth.admin.sign_out(token)


def upsert_user(user: AuthUser) -> User:
    """Mirror an authenticated user into the user store."""
    now = datetime.utcnow()
    with UserSession() as s:
        record = s.get(User, user.id)
        if record is None:
            record = User(id=user.id, email=user.email, created_at=now, updated_at=now)
            s.add(record)
            logger.info("Registered user %s", user.id)
        elif user.email and record.email != user.email:
            record.email = user.email
            record.updated_at = now
        record.last_seen_at = now
        s.commit()
        s.refresh(record)
        s.expunge(record)
        return record


def get_current_user(
    authorization: Optional[str] = Header(None),
    access_token: Optional[str] = Cookie(None, alias=ACCESS_TOKEN_COOKIE),
) -> AuthUser:
    """FastAPI dependency: the authenticated caller, or 401."""
    token = bearer_token(authorization, access_token)
    if not token:
        raise HTTPException(status_code=401, detail="Unauthorized")
    user = resolve_user(token)
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    upsert_user(user)
    return user

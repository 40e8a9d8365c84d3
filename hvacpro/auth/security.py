import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt as _bcrypt
import structlog
from fastapi import Depends
from fastapi.security import APIKeyCookie
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..errors import AuthenticationError, AuthorizationError
from ..models.models import User, UserSession


log = structlog.get_logger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
session_cookie = APIKeyCookie(name=settings.session_cookie_name, auto_error=False)

LEGACY_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


def get_password_hash(password: str) -> str:
    # Use pbkdf2_sha256 to avoid native bcrypt backend issues
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    # Legacy bcrypt hashes are checked with the bcrypt module directly to avoid passlib backend init quirks
    if hashed.startswith(LEGACY_BCRYPT_PREFIXES):
        pb = plain.encode("utf-8")[:72]
        try:
            return _bcrypt.checkpw(pb, hashed.encode("utf-8"))
        except ValueError:
            return False
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        return False


def authenticate(db: Session, username: str, password: str) -> User:
    """Look up by unique username and check the password.

    Unknown user, inactive user and wrong password all raise the same
    AuthenticationError so callers cannot enumerate usernames.
    """
    user = db.query(User).filter(User.username == username).first()
    if user is None:
        # Burn comparable time so a missing user is indistinguishable from a bad password
        pwd_context.dummy_verify()
        log.info("login_failed", username=username, reason="unknown_user")
        raise AuthenticationError("Invalid credentials")
    if not verify_password(password, user.password_hash) or not user.is_active:
        log.info("login_failed", username=username, reason="bad_password_or_inactive")
        raise AuthenticationError("Invalid credentials")
    return user


def _as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def create_session(db: Session, user: User) -> str:
    now = datetime.now(timezone.utc)
    sid = secrets.token_urlsafe(32)
    db.add(
        UserSession(
            sid=sid,
            user_id=user.id,
            created_at=now,
            expires_at=now + timedelta(seconds=settings.session_ttl_seconds),
        )
    )
    user.last_login_at = now
    db.commit()
    log.info("session_created", user_id=user.id)
    return sid


def resolve_session(db: Session, sid: Optional[str]) -> Optional[User]:
    if not sid:
        return None
    row = db.query(UserSession).filter(UserSession.sid == sid).first()
    if row is None:
        return None
    if _as_utc(row.expires_at) <= datetime.now(timezone.utc):
        db.delete(row)
        db.commit()
        return None
    user = db.query(User).filter(User.id == row.user_id).first()
    if user is None or not user.is_active:
        return None
    return user


def destroy_session(db: Session, sid: Optional[str]) -> None:
    if not sid:
        return
    db.query(UserSession).filter(UserSession.sid == sid).delete(synchronize_session=False)
    db.commit()


def purge_expired_sessions(db: Session) -> int:
    now = datetime.now(timezone.utc)
    removed = db.query(UserSession).filter(UserSession.expires_at <= now).delete(synchronize_session=False)
    db.commit()
    if removed:
        log.info("sessions_purged", count=removed)
    return removed


def get_current_user(
    sid: Optional[str] = Depends(session_cookie),
    db: Session = Depends(get_db),
) -> User:
    user = resolve_session(db, sid)
    if user is None:
        raise AuthenticationError("Unauthorized")
    return user


def require_roles(*allowed_roles: str):
    """Allow the request only when the caller's role in its tenant is one of allowed_roles.

    The platform-wide ``admin`` user role always passes.
    """
    from ..services.tenancy import TenantContext, get_tenant

    def _dep(tenant: TenantContext = Depends(get_tenant)) -> TenantContext:
        if tenant.user.role == "admin":
            return tenant
        if (tenant.role or "") not in allowed_roles:
            raise AuthorizationError("Forbidden")
        return tenant

    return _dep

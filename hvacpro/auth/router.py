from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..errors import AuthorizationError, ConflictError
from ..models.models import User, UserRole
from ..schemas.auth import LoginRequest, MeResponse, UserCreate, UserResponse
from ..services.audit import record_audit
from ..services.tenancy import TenantContext, get_membership
from .security import (
    authenticate,
    create_session,
    destroy_session,
    get_current_user,
    get_password_hash,
    require_roles,
    session_cookie,
)


router = APIRouter(prefix="/auth", tags=["auth"])
log = structlog.get_logger(__name__)


@router.post("/login", response_model=UserResponse)
def login(req: LoginRequest, response: Response, db: Session = Depends(get_db)):
    user = authenticate(db, req.username, req.password)
    sid = create_session(db, user)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=sid,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    log.info("login_succeeded", user_id=user.id)
    return user


@router.get("/me", response_model=MeResponse)
def me(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    membership = get_membership(db, user.id)
    return MeResponse(
        id=user.id,
        username=user.username,
        name=user.name,
        email=user.email,
        role=user.role,
        company_id=membership.company_id if membership else None,
        company_role=membership.role if membership else None,
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(sid: Optional[str] = Depends(session_cookie), db: Session = Depends(get_db)):
    destroy_session(db, sid)
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(settings.session_cookie_name)
    return response


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(require_roles("owner", "admin")),
):
    """Provision a login and its membership in the caller's company."""
    if db.query(User.id).filter(User.username == payload.username).first() is not None:
        raise ConflictError("Username already exists")
    role = payload.role.value
    # Platform admins bypass tenant role checks, so only an admin may mint one
    if role == "admin" and tenant.user.role != "admin":
        raise AuthorizationError("Only an admin can create admin users")
    user = User(
        username=payload.username,
        password_hash=get_password_hash(payload.password),
        name=payload.name,
        email=str(payload.email),
        role=role,
        is_active=True,
    )
    db.add(user)
    try:
        db.flush()
        db.add(UserRole(user_id=user.id, company_id=tenant.company_id, role=role))
        record_audit(
            db,
            entity_type="user",
            entity_id=user.id,
            action="CREATE",
            company_id=tenant.company_id,
            actor_id=tenant.user_id,
            changes={"username": user.username, "role": role},
        )
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Username already exists") from exc
    db.refresh(user)
    log.info("user_created", id=user.id, company_id=tenant.company_id, role=role)
    return user

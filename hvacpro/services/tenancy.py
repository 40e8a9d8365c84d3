"""
Tenant resolution and ownership checks.

Every tenant-scoped operation runs against exactly one company id, carried
explicitly in a TenantContext. Customers, technicians, inventory and the
company pricebook hold company_id directly; jobs, invoices and equipment
inherit it through their customer.
"""
from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ..auth.security import get_current_user
from ..db import get_db
from ..errors import AuthorizationError, NotFoundError
from ..models.models import (
    Company,
    CompanyPricebook,
    Customer,
    Equipment,
    InventoryItem,
    Invoice,
    InvoiceItem,
    Job,
    Technician,
    User,
    UserRole,
)


log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class TenantContext:
    """Request-scoped identity: who is acting, and inside which company."""

    user: User
    company_id: int
    role: Optional[str] = None
    slug: Optional[str] = None

    @property
    def user_id(self) -> int:
        return self.user.id


def get_membership(db: Session, user_id: int) -> Optional[UserRole]:
    # Multi-company membership is unsupported; the oldest row wins
    return (
        db.query(UserRole)
        .filter(UserRole.user_id == user_id)
        .order_by(UserRole.id.asc())
        .first()
    )


def resolve_company_for_user(db: Session, user_id: int) -> Optional[int]:
    membership = get_membership(db, user_id)
    return membership.company_id if membership else None


def resolve_tenant_from_slug(db: Session, slug: str) -> int:
    """Map a URL slug to its company id. Unknown slugs are NotFound, never a default company."""
    normalized = (slug or "").strip().lower()
    if not normalized:
        raise NotFoundError("Tenant not found")
    company_id = db.query(Company.id).filter(Company.slug == normalized).scalar()
    if company_id is None:
        raise NotFoundError("Tenant not found")
    return company_id


def _customer_company(db: Session, customer_id: Optional[int]) -> Optional[int]:
    if customer_id is None:
        return None
    return db.query(Customer.company_id).filter(Customer.id == customer_id).scalar()


def owning_company(db: Session, entity) -> Optional[int]:
    if isinstance(entity, (Customer, Technician, InventoryItem, CompanyPricebook)):
        return entity.company_id
    if isinstance(entity, (Job, Invoice, Equipment)):
        return _customer_company(db, entity.customer_id)
    if isinstance(entity, InvoiceItem):
        customer_id = db.query(Invoice.customer_id).filter(Invoice.id == entity.invoice_id).scalar()
        return _customer_company(db, customer_id)
    raise TypeError(f"{type(entity).__name__} is not tenant-scoped")


def assert_ownership(db: Session, entity, company_id: int) -> None:
    owner = owning_company(db, entity)
    if owner is None or owner != company_id:
        log.warning(
            "cross_tenant_access",
            entity=type(entity).__name__,
            entity_id=getattr(entity, "id", None),
            company_id=company_id,
        )
        raise AuthorizationError("Access denied to this tenant")


def get_tenant(
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TenantContext:
    """Resolve the acting company for the request.

    Under the ``/{slug}`` route family the slug picks the company and the
    caller must be a member of it; elsewhere the caller's membership decides.
    """
    membership = get_membership(db, user.id)
    slug = request.path_params.get("slug")
    if slug is not None:
        company_id = resolve_tenant_from_slug(db, slug)
        if membership is None or membership.company_id != company_id:
            raise AuthorizationError("Access denied to this tenant")
    elif membership is None:
        raise AuthorizationError("No tenant access")
    else:
        company_id = membership.company_id
    structlog.contextvars.bind_contextvars(company_id=company_id, user_id=user.id)
    return TenantContext(user=user, company_id=company_id, role=membership.role, slug=slug)
